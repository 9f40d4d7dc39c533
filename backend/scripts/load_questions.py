from __future__ import annotations

import argparse
import logging
from pathlib import Path

from teamforge.db.session import init_schema
from teamforge.exam_store import exam_store
from teamforge.question_bank import load_question_file


logger = logging.getLogger("load_questions")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load a JSON question bank into the exam database.")
    parser.add_argument("path", type=Path, help="JSON file with a list of questions")
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = parse_args()
    init_schema()
    questions = load_question_file(args.path)
    stored = exam_store.add_questions(questions)
    logger.info("Question bank import completed: %d questions", stored)


if __name__ == "__main__":
    main()

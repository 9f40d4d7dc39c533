"""Load exam question banks from JSON files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

from pydantic import ValidationError

from .exam_models import Question


logger = logging.getLogger(__name__)


def parse_question_bank(payload: Any) -> List[Question]:
    """Validate a list of question dicts (or ``{"questions": [...]}``), skipping invalid entries."""
    records = payload.get("questions", []) if isinstance(payload, dict) else payload
    if not isinstance(records, list):
        raise ValueError("Question bank must be a list or an object with a 'questions' list.")

    questions: List[Question] = []
    seen: set[int] = set()
    for entry in records:
        try:
            question = Question.model_validate(entry)
        except ValidationError as exc:
            logger.warning("Skipping invalid question payload: %s", exc)
            continue
        if question.id in seen:
            raise ValueError(f"Question {question.id} is defined more than once.")
        seen.add(question.id)
        questions.append(question)
    return questions


def load_question_file(path: Path) -> List[Question]:
    with path.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    questions = parse_question_bank(payload)
    logger.info("Loaded %d questions from %s", len(questions), path)
    return questions


__all__ = ["load_question_file", "parse_question_bank"]

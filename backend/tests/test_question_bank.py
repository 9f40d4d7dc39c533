from __future__ import annotations

import json
from pathlib import Path

import pytest

from teamforge.question_bank import load_question_file, parse_question_bank


def _entry(question_id: int, **overrides):
    payload = {
        "id": question_id,
        "category": "cs",
        "prompt": f"Question {question_id}",
        "choice_a": "a",
        "choice_b": "b",
        "choice_c": "c",
        "answer": "A",
    }
    payload.update(overrides)
    return payload


def test_parse_skips_invalid_entries() -> None:
    questions = parse_question_bank([_entry(1), _entry(2, category="math"), _entry(3, answer="D")])
    assert [question.id for question in questions] == [1]


def test_parse_accepts_wrapped_payload() -> None:
    questions = parse_question_bank({"questions": [_entry(1), _entry(2, category="ai")]})
    assert [question.category for question in questions] == ["cs", "ai"]


def test_parse_rejects_duplicate_ids() -> None:
    with pytest.raises(ValueError, match="more than once"):
        parse_question_bank([_entry(1), _entry(1)])


def test_parse_rejects_non_list_payload() -> None:
    with pytest.raises(ValueError):
        parse_question_bank({"questions": "nope"})


def test_load_question_file(tmp_path: Path) -> None:
    path = tmp_path / "questions.json"
    path.write_text(json.dumps([_entry(5), _entry(6, category="collab")]), encoding="utf-8")

    questions = load_question_file(path)

    assert [question.id for question in questions] == [5, 6]

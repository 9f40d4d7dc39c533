from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from teamforge.config import get_settings
from teamforge.db.base import Base
from teamforge.db.session import dispose_engine, get_engine, init_schema
from teamforge.exam_models import ExamResponse
from teamforge.exam_store import exam_store
from teamforge.team_store import team_store

from scripts import load_questions, match_teams  # noqa: E402


@pytest.fixture
def database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("TEAMFORGE_DATABASE_URL", f"sqlite:///{tmp_path / 'scripts.db'}")
    get_settings.cache_clear()
    dispose_engine()
    init_schema()
    yield tmp_path
    Base.metadata.drop_all(get_engine())
    dispose_engine()
    get_settings.cache_clear()


def _write_bank(directory: Path) -> Path:
    path = directory / "bank.json"
    path.write_text(
        json.dumps(
            {
                "questions": [
                    {"id": 1, "category": "cs", "prompt": "p1", "choice_a": "a", "choice_b": "b", "choice_c": "c", "answer": "A"},
                    {"id": 2, "category": "ai", "prompt": "p2", "choice_a": "a", "choice_b": "b", "choice_c": "c", "answer": "C"},
                    {"id": 3, "category": "unknown", "prompt": "p3"},
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


def test_load_questions_script_stores_valid_entries(database: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write_bank(database)
    monkeypatch.setattr(sys, "argv", ["load_questions", str(path)])

    load_questions.main()

    assert [question.id for question in exam_store.list_questions()] == [1, 2]


def test_match_teams_script_prints_and_saves_layout(
    database: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(sys, "argv", ["load_questions", str(_write_bank(database))])
    load_questions.main()
    for student_id, selected in [("ana", ["A", "C"]), ("ben", ["A", "A"]), ("cy", ["B", "A"])]:
        attempt = exam_store.start_attempt(student_id)
        exam_store.submit_attempt(
            attempt.id,
            student_id,
            [ExamResponse(question_id=index + 1, selected=choice) for index, choice in enumerate(selected)],
        )

    monkeypatch.setattr(sys, "argv", ["match_teams", "--team-size", "2", "--mode", "rank", "--save"])
    assert match_teams.main() == 0

    printed = json.loads(capsys.readouterr().out)
    assert printed["mode"] == "rank"
    assert [member["student_id"] for member in printed["teams"][0]["members"]] == ["ana", "cy"]
    saved = team_store.load_layout()
    assert saved is not None
    assert sorted(saved.student_ids()) == ["ana", "ben", "cy"]


def test_match_teams_script_fails_without_submissions(database: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["match_teams", "--team-size", "2"])
    assert match_teams.main() == 1
    assert team_store.load_layout() is None

"""End-to-end tests for the examinee API."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from teamforge.config import get_settings
from teamforge.db.base import Base
from teamforge.db.session import dispose_engine, get_engine, init_schema
from teamforge.exam_models import Question
from teamforge.exam_store import exam_store
from teamforge.main import app


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("TEAMFORGE_DATABASE_URL", f"sqlite:///{tmp_path / 'exam.db'}")
    monkeypatch.setenv("TEAMFORGE_EXAM_QUESTION_LIMIT", "3")
    get_settings.cache_clear()
    dispose_engine()
    init_schema()
    exam_store.add_questions(
        [
            Question(id=index, category=category, prompt=f"q{index}", choice_a="a", choice_b="b", choice_c="c", answer="A")
            for index, category in enumerate(["cs", "cs", "collab", "ai"], start=1)
        ]
    )
    yield TestClient(app)
    Base.metadata.drop_all(get_engine())
    dispose_engine()
    get_settings.cache_clear()


def test_questions_hide_answers_and_respect_limit(client: TestClient) -> None:
    response = client.get("/api/exam/questions")
    assert response.status_code == 200
    payload = response.json()
    assert [entry["id"] for entry in payload] == [1, 2, 3]
    assert all("answer" not in entry for entry in payload)


def test_full_exam_flow(client: TestClient) -> None:
    started = client.post("/api/exam/student-1/attempts")
    assert started.status_code == 201
    attempt_id = started.json()["id"]

    duplicate = client.post("/api/exam/student-1/attempts")
    assert duplicate.status_code == 409

    submitted = client.post(
        f"/api/exam/student-1/attempts/{attempt_id}/submit",
        json={
            "responses": [
                {"question_id": 1, "selected": "A"},
                {"question_id": 2, "selected": "A"},
                {"question_id": 3, "selected": "B"},
                {"question_id": 4, "selected": "A"},
            ]
        },
    )
    assert submitted.status_code == 200
    body = submitted.json()
    assert body["total_score"] == 3
    assert body["breakdown"]["cs"] == {"correct": 2, "total": 2}
    assert body["breakdown"]["collab"] == {"correct": 0, "total": 1}

    fetched = client.get("/api/exam/student-1/attempts")
    assert fetched.status_code == 200
    assert fetched.json()["status"] == "submitted"

    result = client.get(f"/api/exam/student-1/attempts/{attempt_id}/result")
    assert result.status_code == 200
    result_body = result.json()
    assert len(result_body["results"]) == 4
    assert result_body["report"]["ratios"]["cs"] == 1.0
    assert "Can lead code implementation and debugging." in result_body["report"]["strengths"]
    assert any("pull requests" in entry for entry in result_body["report"]["weaknesses"])

    again = client.post(
        f"/api/exam/student-1/attempts/{attempt_id}/submit",
        json={"responses": [{"question_id": 1, "selected": "A"}]},
    )
    assert again.status_code == 409


def test_submit_for_other_student_is_forbidden(client: TestClient) -> None:
    attempt_id = client.post("/api/exam/student-1/attempts").json()["id"]
    response = client.post(
        f"/api/exam/student-2/attempts/{attempt_id}/submit",
        json={"responses": [{"question_id": 1, "selected": "A"}]},
    )
    assert response.status_code == 403

    result = client.get(f"/api/exam/student-2/attempts/{attempt_id}/result")
    assert result.status_code == 403


def test_result_before_submission_conflicts(client: TestClient) -> None:
    attempt_id = client.post("/api/exam/student-1/attempts").json()["id"]
    response = client.get(f"/api/exam/student-1/attempts/{attempt_id}/result")
    assert response.status_code == 409


def test_missing_attempt_returns_404(client: TestClient) -> None:
    assert client.get("/api/exam/nobody/attempts").status_code == 404
    response = client.post(
        "/api/exam/student-1/attempts/missing/submit",
        json={"responses": [{"question_id": 1, "selected": "A"}]},
    )
    assert response.status_code == 404


def test_invalid_submission_payloads(client: TestClient) -> None:
    attempt_id = client.post("/api/exam/student-1/attempts").json()["id"]
    empty = client.post(f"/api/exam/student-1/attempts/{attempt_id}/submit", json={"responses": []})
    assert empty.status_code == 422

    duplicated = client.post(
        f"/api/exam/student-1/attempts/{attempt_id}/submit",
        json={"responses": [{"question_id": 1, "selected": "A"}, {"question_id": 1, "selected": "B"}]},
    )
    assert duplicated.status_code == 422
    assert "more than once" in duplicated.json()["detail"]


def test_concurrent_start_conflicts_instead_of_failing(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    assert client.post("/api/exam/student-1/attempts").status_code == 201
    monkeypatch.setattr(exam_store, "_attempt_for", lambda session, student_id: None)

    response = client.post("/api/exam/student-1/attempts")

    assert response.status_code == 409
    assert "already started" in response.json()["detail"]

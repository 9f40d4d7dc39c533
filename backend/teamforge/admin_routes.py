"""Admin endpoints: login, attempt overview, question loading and team matching."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from .admin_session import (
    ADMIN_SESSION_COOKIE,
    AdminSessionNotConfigured,
    issue_admin_token,
    require_admin_session,
    validate_admin_password,
)
from .config import Settings, get_settings
from .exam_models import AttemptRecord, Question
from .exam_store import exam_store
from .team_layout import TeamLayout, TeamLayoutError, layout_from_result, team_sizes
from .team_matching import MatchingMode, TeamMatchingError, match_teams
from .team_store import team_store
from .telemetry import emit_event


router = APIRouter(prefix="/api/admin", tags=["admin"])
protected = APIRouter(dependencies=[Depends(require_admin_session)])
logger = logging.getLogger(__name__)


class AdminLoginRequest(BaseModel):
    password: str = Field(..., min_length=1)


class QuestionBankRequest(BaseModel):
    questions: List[Question] = Field(..., min_length=1)


class QuestionBankResponse(BaseModel):
    stored: int


class TeamMatchRequest(BaseModel):
    team_size: Optional[int] = None
    mode: Optional[MatchingMode] = None


class TeamLayoutResponse(BaseModel):
    layout: TeamLayout
    team_count: int
    team_sizes: Dict[int, int]


class TeamMoveRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    to_team: int
    from_team: Optional[int] = None


def _layout_response(layout: TeamLayout) -> TeamLayoutResponse:
    return TeamLayoutResponse(layout=layout, team_count=layout.team_count, team_sizes=team_sizes(layout))


@router.post("/login", status_code=status.HTTP_204_NO_CONTENT)
def admin_login(
    payload: AdminLoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> Response:
    if not validate_admin_password(payload.password, settings):
        emit_event("admin_login", status="denied")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin password.")
    try:
        token = issue_admin_token(settings)
    except AdminSessionNotConfigured as exc:
        logger.error("Admin login unavailable: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    response.status_code = status.HTTP_204_NO_CONTENT
    response.set_cookie(
        ADMIN_SESSION_COOKIE,
        token,
        max_age=settings.admin_session_ttl_seconds,
        httponly=True,
        samesite="lax",
    )
    emit_event("admin_login", status="success")
    return response


@protected.get("/attempts", response_model=List[AttemptRecord], status_code=status.HTTP_200_OK)
def list_all_attempts() -> List[AttemptRecord]:
    return exam_store.list_attempts()


@protected.post("/questions", response_model=QuestionBankResponse, status_code=status.HTTP_201_CREATED)
def load_question_bank(payload: QuestionBankRequest) -> QuestionBankResponse:
    ids = [question.id for question in payload.questions]
    if len(ids) != len(set(ids)):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Question IDs must be unique within a question bank.",
        )
    stored = exam_store.add_questions(payload.questions)
    return QuestionBankResponse(stored=stored)


@protected.post("/teams/match", response_model=TeamLayoutResponse, status_code=status.HTTP_200_OK)
def preview_team_match(
    payload: TeamMatchRequest,
    settings: Settings = Depends(get_settings),
) -> TeamLayoutResponse:
    team_size = payload.team_size if payload.team_size is not None else settings.default_team_size
    mode = payload.mode or MatchingMode(settings.default_matching_mode)

    attempts = exam_store.graded_attempts()
    try:
        result = match_teams(attempts, team_size, mode)
    except TeamMatchingError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    scores = {attempt.attempt_id: attempt.score for attempt in attempts}
    layout = layout_from_result(result, mode=mode, team_size=team_size, scores=scores)
    emit_event(
        "team_match_generated",
        mode=mode,
        team_size=team_size,
        team_count=result.team_count,
        attempts=len(attempts),
    )
    return _layout_response(layout)


@protected.get("/teams", response_model=TeamLayoutResponse, status_code=status.HTTP_200_OK)
def fetch_saved_teams() -> TeamLayoutResponse:
    layout = team_store.load_layout()
    if layout is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No saved team layout exists.")
    return _layout_response(layout)


@protected.put("/teams", response_model=TeamLayoutResponse, status_code=status.HTTP_200_OK)
def save_teams(layout: TeamLayout) -> TeamLayoutResponse:
    try:
        saved = team_store.save_layout(layout)
    except TeamLayoutError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    emit_event(
        "team_layout_saved",
        mode=saved.mode,
        team_count=saved.team_count,
        students=len(saved.student_ids()),
    )
    return _layout_response(saved)


@protected.post("/teams/move", response_model=TeamLayoutResponse, status_code=status.HTTP_200_OK)
def move_team_member(payload: TeamMoveRequest) -> TeamLayoutResponse:
    try:
        updated = team_store.move_member(payload.student_id, payload.to_team, from_team=payload.from_team)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except TeamLayoutError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    logger.info("Admin moved %s to team %d", payload.student_id, payload.to_team)
    emit_event(
        "team_member_moved",
        student_id=payload.student_id,
        from_team=payload.from_team,
        to_team=payload.to_team,
    )
    return _layout_response(updated)


router.include_router(protected)

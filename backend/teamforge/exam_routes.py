"""Examinee endpoints: fetch questions, start an attempt, submit and review results."""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from .assessment_report import CategoryReport, build_category_report
from .config import Settings, get_settings
from .exam_grading import summarize_results
from .exam_models import (
    AttemptRecord,
    CategoryKey,
    CategoryScore,
    ExamResponse,
    PublicQuestion,
    ResponseResult,
)
from .exam_store import AttemptOwnershipError, AttemptStateError, exam_store
from .telemetry import emit_event


router = APIRouter(prefix="/api/exam", tags=["exam"])
logger = logging.getLogger(__name__)


class ExamSubmissionRequest(BaseModel):
    responses: List[ExamResponse] = Field(..., min_length=1)


class ExamSubmissionResponse(BaseModel):
    attempt_id: str
    total_score: int
    breakdown: Dict[CategoryKey, CategoryScore]


class ExamResultResponse(BaseModel):
    attempt: AttemptRecord
    results: List[ResponseResult]
    report: CategoryReport


def _owned_attempt(student_id: str, attempt_id: str) -> AttemptRecord:
    try:
        attempt = exam_store.get_attempt(attempt_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if attempt.student_id != student_id.strip():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Students may only access their own attempts.",
        )
    return attempt


@router.get("/questions", response_model=List[PublicQuestion], status_code=status.HTTP_200_OK)
def list_exam_questions(settings: Settings = Depends(get_settings)) -> List[PublicQuestion]:
    questions = exam_store.list_questions(limit=settings.exam_question_limit)
    return [PublicQuestion.from_question(question) for question in questions]


@router.post("/{student_id}/attempts", response_model=AttemptRecord, status_code=status.HTTP_201_CREATED)
def start_exam_attempt(student_id: str) -> AttemptRecord:
    try:
        attempt = exam_store.start_attempt(student_id)
    except AttemptStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    emit_event("exam_attempt_started", student_id=attempt.student_id, attempt_id=attempt.id)
    return attempt


@router.get("/{student_id}/attempts", response_model=AttemptRecord, status_code=status.HTTP_200_OK)
def fetch_exam_attempt(student_id: str) -> AttemptRecord:
    try:
        attempt = exam_store.attempt_for(student_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    if attempt is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No exam attempt found for '{student_id}'.",
        )
    return attempt


@router.post(
    "/{student_id}/attempts/{attempt_id}/submit",
    response_model=ExamSubmissionResponse,
    status_code=status.HTTP_200_OK,
)
def submit_exam_attempt(student_id: str, attempt_id: str, payload: ExamSubmissionRequest) -> ExamSubmissionResponse:
    try:
        outcome = exam_store.submit_attempt(attempt_id, student_id, payload.responses)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except AttemptOwnershipError as exc:
        logger.warning("Rejected submission of attempt %s by %s", attempt_id, student_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except AttemptStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    emit_event(
        "exam_submitted",
        student_id=student_id,
        attempt_id=attempt_id,
        total_score=outcome.total_score,
        answered=outcome.answered,
    )
    return ExamSubmissionResponse(
        attempt_id=attempt_id,
        total_score=outcome.total_score,
        breakdown=outcome.breakdown,
    )


@router.get(
    "/{student_id}/attempts/{attempt_id}/result",
    response_model=ExamResultResponse,
    status_code=status.HTTP_200_OK,
)
def get_exam_result(
    student_id: str,
    attempt_id: str,
    settings: Settings = Depends(get_settings),
) -> ExamResultResponse:
    attempt = _owned_attempt(student_id, attempt_id)
    if attempt.status == "in_progress":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Attempt '{attempt_id}' has not been submitted yet.",
        )
    results = exam_store.attempt_responses(attempt_id)
    if not results:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No responses recorded for attempt '{attempt_id}'.",
        )

    report = build_category_report(
        summarize_results(results),
        strength_threshold=settings.report_strength_threshold,
        weakness_threshold=settings.report_weakness_threshold,
    )
    return ExamResultResponse(attempt=attempt, results=results, report=report)

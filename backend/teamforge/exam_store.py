"""Database-backed store for students, questions, attempts and responses."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from .db.models import AttemptModel, QuestionModel, ResponseModel, StudentModel
from .db.session import session_scope
from .exam_grading import GradingOutcome, grade_responses
from .exam_models import AttemptRecord, ExamResponse, GradedAttempt, Question, ResponseResult


logger = logging.getLogger(__name__)


class AttemptStateError(ValueError):
    """Raised when an attempt cannot move to the requested state."""


class AttemptOwnershipError(PermissionError):
    """Raised when a student touches an attempt that belongs to someone else."""


def _normalize_student_id(student_id: str) -> str:
    normalized = student_id.strip()
    if not normalized:
        raise ValueError("Student ID cannot be empty.")
    return normalized


class ExamStore:
    """Persistence helper for the exam lifecycle: start, submit, review."""

    # ------------------------------------------------------------------
    # Students and questions
    # ------------------------------------------------------------------

    def upsert_student(self, student_id: str, name: Optional[str] = None) -> None:
        normalized = _normalize_student_id(student_id)
        with session_scope() as session:
            model = session.get(StudentModel, normalized)
            if model is None:
                session.add(StudentModel(id=normalized, name=name))
            elif name and model.name != name:
                model.name = name

    def add_questions(self, questions: Iterable[Question]) -> int:
        count = 0
        with session_scope() as session:
            for question in questions:
                model = session.get(QuestionModel, question.id)
                if model is None:
                    model = QuestionModel(id=question.id)
                    session.add(model)
                model.category = question.category
                model.prompt = question.prompt
                model.choice_a = question.choice_a
                model.choice_b = question.choice_b
                model.choice_c = question.choice_c
                model.answer = question.answer
                count += 1
        logger.info("Stored %d exam questions", count)
        return count

    def list_questions(self, limit: Optional[int] = None) -> List[Question]:
        with session_scope(commit=False) as session:
            stmt = select(QuestionModel).order_by(QuestionModel.id.asc())
            if limit is not None:
                stmt = stmt.limit(limit)
            rows = session.execute(stmt).scalars().all()
            return [self._question_to_domain(row) for row in rows]

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    def start_attempt(self, student_id: str) -> AttemptRecord:
        normalized = _normalize_student_id(student_id)
        with session_scope() as session:
            student = session.get(StudentModel, normalized)
            if student is None:
                student = StudentModel(id=normalized)
                session.add(student)
            existing = self._attempt_for(session, normalized)
            if existing is not None:
                raise AttemptStateError(f"Student '{normalized}' has already started the exam.")
            model = AttemptModel(student=student, status="in_progress")
            session.add(model)
            try:
                session.flush()
            except IntegrityError as exc:
                # a concurrent start for the same student won the unique constraint
                raise AttemptStateError(f"Student '{normalized}' has already started the exam.") from exc
            logger.info("Started attempt %s for %s", model.id, normalized)
            return self._attempt_to_domain(model, student.name)

    def get_attempt(self, attempt_id: str) -> AttemptRecord:
        with session_scope(commit=False) as session:
            model = self._require_attempt(session, attempt_id)
            return self._attempt_to_domain(model, model.student.name if model.student else None)

    def attempt_for(self, student_id: str) -> Optional[AttemptRecord]:
        normalized = _normalize_student_id(student_id)
        with session_scope(commit=False) as session:
            model = self._attempt_for(session, normalized)
            if model is None:
                return None
            return self._attempt_to_domain(model, model.student.name if model.student else None)

    def submit_attempt(
        self,
        attempt_id: str,
        student_id: str,
        responses: Sequence[ExamResponse],
    ) -> GradingOutcome:
        normalized = _normalize_student_id(student_id)
        with session_scope() as session:
            model = self._require_attempt(session, attempt_id)
            if model.student_id != normalized:
                raise AttemptOwnershipError(f"Attempt '{attempt_id}' does not belong to '{normalized}'.")
            if model.status != "in_progress":
                raise AttemptStateError(f"Attempt '{attempt_id}' has already been submitted.")

            question_ids = [response.question_id for response in responses]
            stmt = select(QuestionModel).where(QuestionModel.id.in_(question_ids))
            questions = [self._question_to_domain(row) for row in session.execute(stmt).scalars().all()]
            outcome = grade_responses(questions, responses)

            for result in outcome.results:
                model.responses.append(
                    ResponseModel(
                        question_id=result.question_id,
                        selected=result.selected,
                        is_correct=result.is_correct,
                    )
                )
            model.status = "submitted"
            model.submitted_at = datetime.now(timezone.utc)
            model.total_score = outcome.total_score
            model.cs_score = outcome.correct_for("cs")
            model.collab_score = outcome.correct_for("collab")
            model.ai_score = outcome.correct_for("ai")
            session.flush()
            logger.info(
                "Graded attempt %s for %s: %d/%d correct",
                attempt_id,
                normalized,
                outcome.total_score,
                outcome.answered,
            )
            return outcome

    def list_attempts(self) -> List[AttemptRecord]:
        """All attempts, highest total score first; ungraded attempts last."""
        with session_scope(commit=False) as session:
            stmt = (
                select(AttemptModel)
                .options(selectinload(AttemptModel.student))
                .order_by(AttemptModel.total_score.desc().nulls_last(), AttemptModel.created_at.asc())
            )
            rows = session.execute(stmt).scalars().all()
            return [self._attempt_to_domain(row, row.student.name if row.student else None) for row in rows]

    def graded_attempts(self) -> List[GradedAttempt]:
        return [record.as_graded_attempt() for record in self.list_attempts() if record.status != "in_progress"]

    def attempt_responses(self, attempt_id: str) -> List[ResponseResult]:
        with session_scope(commit=False) as session:
            model = self._require_attempt(session, attempt_id)
            question_ids = [response.question_id for response in model.responses]
            stmt = select(QuestionModel).where(QuestionModel.id.in_(question_ids))
            lookup = {row.id: self._question_to_domain(row) for row in session.execute(stmt).scalars().all()}
            return [
                ResponseResult(
                    question=lookup.get(response.question_id),
                    question_id=response.question_id,
                    selected=response.selected,  # type: ignore[arg-type]
                    is_correct=response.is_correct,
                )
                for response in model.responses
            ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _attempt_for(self, session: Session, student_id: str) -> AttemptModel | None:
        stmt = (
            select(AttemptModel)
            .options(selectinload(AttemptModel.student))
            .where(AttemptModel.student_id == student_id)
        )
        return session.execute(stmt).scalar_one_or_none()

    def _require_attempt(self, session: Session, attempt_id: str) -> AttemptModel:
        stmt = (
            select(AttemptModel)
            .options(selectinload(AttemptModel.student), selectinload(AttemptModel.responses))
            .where(AttemptModel.id == attempt_id)
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise LookupError(f"Attempt '{attempt_id}' was not found.")
        return model

    def _question_to_domain(self, model: QuestionModel) -> Question:
        return Question(
            id=model.id,
            category=model.category,  # type: ignore[arg-type]
            prompt=model.prompt,
            choice_a=model.choice_a,
            choice_b=model.choice_b,
            choice_c=model.choice_c,
            answer=model.answer,  # type: ignore[arg-type]
        )

    def _attempt_to_domain(self, model: AttemptModel, student_name: Optional[str]) -> AttemptRecord:
        return AttemptRecord(
            id=model.id,
            student_id=model.student_id,
            student_name=student_name,
            status=model.status,  # type: ignore[arg-type]
            total_score=model.total_score,
            cs_score=model.cs_score,
            collab_score=model.collab_score,
            ai_score=model.ai_score,
            created_at=model.created_at,
            submitted_at=model.submitted_at,
        )


exam_store = ExamStore()

__all__ = [
    "AttemptOwnershipError",
    "AttemptStateError",
    "ExamStore",
    "exam_store",
]

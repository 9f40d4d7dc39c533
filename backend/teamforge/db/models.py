"""ORM models backing exam attempts and saved team layouts."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


def _uuid() -> str:
    return str(uuid.uuid4())


class StudentModel(TimestampMixin, Base):
    __tablename__ = "students"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    attempts: Mapped[list["AttemptModel"]] = relationship(back_populates="student", cascade="all, delete-orphan")


class QuestionModel(Base):
    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    choice_a: Mapped[str] = mapped_column(Text, nullable=False)
    choice_b: Mapped[str] = mapped_column(Text, nullable=False)
    choice_c: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(String(1), nullable=False)


class AttemptModel(TimestampMixin, Base):
    __tablename__ = "attempts"
    __table_args__ = (UniqueConstraint("student_id", name="uq_attempts_student"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    student_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(16), default="in_progress", nullable=False)
    total_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cs_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    collab_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    ai_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    student: Mapped[StudentModel] = relationship(back_populates="attempts")
    responses: Mapped[list["ResponseModel"]] = relationship(
        back_populates="attempt", cascade="all, delete-orphan", order_by="ResponseModel.id"
    )


class ResponseModel(Base):
    __tablename__ = "responses"
    __table_args__ = (UniqueConstraint("attempt_id", "question_id", name="uq_responses_attempt_question"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    attempt_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id: Mapped[int] = mapped_column(Integer, nullable=False)
    selected: Mapped[str] = mapped_column(String(1), nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    attempt: Mapped[AttemptModel] = relationship(back_populates="responses")


class TeamRunModel(TimestampMixin, Base):
    __tablename__ = "team_runs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    team_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mode: Mapped[str] = mapped_column(String(16), nullable=False)

    teams: Mapped[list["TeamModel"]] = relationship(
        back_populates="run", cascade="all, delete-orphan", order_by="TeamModel.team_index"
    )


class TeamModel(Base):
    __tablename__ = "teams"
    __table_args__ = (Index("ix_teams_run_index", "run_id", "team_index", unique=True),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    run_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("team_runs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_index: Mapped[int] = mapped_column(Integer, nullable=False)

    run: Mapped[TeamRunModel] = relationship(back_populates="teams")
    members: Mapped[list["TeamMemberModel"]] = relationship(
        back_populates="team", cascade="all, delete-orphan", order_by="TeamMemberModel.position"
    )


class TeamMemberModel(Base):
    __tablename__ = "team_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(String(64), nullable=False)
    attempt_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    score: Mapped[float | None] = mapped_column(nullable=True)

    team: Mapped[TeamModel] = relationship(back_populates="members")


__all__ = [
    "AttemptModel",
    "QuestionModel",
    "ResponseModel",
    "StudentModel",
    "TeamMemberModel",
    "TeamModel",
    "TeamRunModel",
]

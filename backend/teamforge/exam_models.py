"""Shared data models for the competency exam: questions, responses and graded attempts."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


CategoryKey = Literal["cs", "collab", "ai"]
ChoiceKey = Literal["A", "B", "C"]
AttemptStatus = Literal["in_progress", "submitted", "graded"]

# Fixed priority order: primary-skill tie-breaks and the balanced interleave cycle both follow it.
CATEGORY_ORDER: Tuple[CategoryKey, ...] = ("cs", "collab", "ai")

CATEGORY_LABELS: Dict[CategoryKey, str] = {
    "cs": "CS",
    "collab": "Collaboration",
    "ai": "AI",
}


class Question(BaseModel):
    """A single multiple-choice exam question, including its answer key."""

    id: int = Field(ge=1)
    category: CategoryKey
    prompt: str = Field(..., min_length=1)
    choice_a: str
    choice_b: str
    choice_c: str
    answer: ChoiceKey


class PublicQuestion(BaseModel):
    """Question as shown to examinees, without the answer key."""

    id: int
    category: CategoryKey
    prompt: str
    choice_a: str
    choice_b: str
    choice_c: str

    @classmethod
    def from_question(cls, question: Question) -> "PublicQuestion":
        return cls(
            id=question.id,
            category=question.category,
            prompt=question.prompt,
            choice_a=question.choice_a,
            choice_b=question.choice_b,
            choice_c=question.choice_c,
        )


class ExamResponse(BaseModel):
    question_id: int
    selected: ChoiceKey


class CategoryScore(BaseModel):
    correct: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)

    @property
    def ratio(self) -> Optional[float]:
        if self.total == 0:
            return None
        return self.correct / self.total


class GradedAttempt(BaseModel):
    """An examinee's completed exam result, as consumed by team matching.

    Scores are optional; a missing score counts as zero wherever it is compared.
    """

    model_config = ConfigDict(frozen=True)

    attempt_id: str
    student_id: str
    score: Optional[float] = None
    cs_score: Optional[float] = None
    collab_score: Optional[float] = None
    ai_score: Optional[float] = None

    def category_score(self, category: CategoryKey) -> float:
        value = {
            "cs": self.cs_score,
            "collab": self.collab_score,
            "ai": self.ai_score,
        }[category]
        return value or 0.0

    @property
    def overall(self) -> float:
        return self.score or 0.0


class AttemptRecord(BaseModel):
    """Stored attempt as returned by the exam store."""

    id: str
    student_id: str
    student_name: Optional[str] = None
    status: AttemptStatus = "in_progress"
    total_score: Optional[int] = None
    cs_score: Optional[int] = None
    collab_score: Optional[int] = None
    ai_score: Optional[int] = None
    created_at: datetime
    submitted_at: Optional[datetime] = None

    def as_graded_attempt(self) -> GradedAttempt:
        return GradedAttempt(
            attempt_id=self.id,
            student_id=self.student_id,
            score=self.total_score,
            cs_score=self.cs_score,
            collab_score=self.collab_score,
            ai_score=self.ai_score,
        )


class ResponseResult(BaseModel):
    question: Optional[Question] = None
    question_id: int
    selected: ChoiceKey
    is_correct: bool


__all__ = [
    "AttemptRecord",
    "AttemptStatus",
    "CATEGORY_LABELS",
    "CATEGORY_ORDER",
    "CategoryKey",
    "CategoryScore",
    "ChoiceKey",
    "ExamResponse",
    "GradedAttempt",
    "PublicQuestion",
    "Question",
    "ResponseResult",
]

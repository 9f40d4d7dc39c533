"""Deterministic grading of multiple-choice exam submissions."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence

from pydantic import BaseModel, Field

from .exam_models import (
    CATEGORY_ORDER,
    CategoryKey,
    CategoryScore,
    ExamResponse,
    GradedAttempt,
    Question,
    ResponseResult,
)


logger = logging.getLogger(__name__)


class GradingOutcome(BaseModel):
    total_score: int = Field(ge=0)
    breakdown: Dict[CategoryKey, CategoryScore]
    results: List[ResponseResult] = Field(default_factory=list)

    @property
    def answered(self) -> int:
        return len(self.results)

    def correct_for(self, category: CategoryKey) -> int:
        return self.breakdown[category].correct

    def as_graded_attempt(self, attempt_id: str, student_id: str) -> GradedAttempt:
        return GradedAttempt(
            attempt_id=attempt_id,
            student_id=student_id,
            score=self.total_score,
            cs_score=self.correct_for("cs"),
            collab_score=self.correct_for("collab"),
            ai_score=self.correct_for("ai"),
        )


def _question_lookup(questions: Iterable[Question]) -> Dict[int, Question]:
    return {question.id: question for question in questions}


def summarize_results(results: Iterable[ResponseResult]) -> Dict[CategoryKey, CategoryScore]:
    """Per-category correct/total counts; results without a known question are skipped."""
    breakdown: Dict[CategoryKey, CategoryScore] = {category: CategoryScore() for category in CATEGORY_ORDER}
    for result in results:
        if result.question is None:
            continue
        score = breakdown[result.question.category]
        score.total += 1
        if result.is_correct:
            score.correct += 1
    return breakdown


def grade_responses(questions: Iterable[Question], responses: Sequence[ExamResponse]) -> GradingOutcome:
    """Grade responses against the answer key.

    A response to a question missing from ``questions`` is recorded as incorrect
    and does not count toward any category total.
    """
    if not responses:
        raise ValueError("A submission must contain at least one response.")

    seen: set[int] = set()
    for response in responses:
        if response.question_id in seen:
            raise ValueError(f"Question {response.question_id} is answered more than once.")
        seen.add(response.question_id)

    lookup = _question_lookup(questions)
    results: List[ResponseResult] = []

    for response in responses:
        question = lookup.get(response.question_id)
        if question is None:
            logger.warning("Response references unknown question %s", response.question_id)
            results.append(
                ResponseResult(
                    question_id=response.question_id,
                    selected=response.selected,
                    is_correct=False,
                )
            )
            continue
        results.append(
            ResponseResult(
                question=question,
                question_id=question.id,
                selected=response.selected,
                is_correct=question.answer == response.selected,
            )
        )

    breakdown = summarize_results(results)
    total = sum(score.correct for score in breakdown.values())
    return GradingOutcome(total_score=total, breakdown=breakdown, results=results)


__all__ = ["GradingOutcome", "grade_responses", "summarize_results"]

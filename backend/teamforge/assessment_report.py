"""Rule-based category report for a graded exam attempt."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from .exam_models import CATEGORY_ORDER, CategoryKey, CategoryScore


REPORT_CATEGORY_LABELS: Dict[CategoryKey, str] = {
    "cs": "CS fundamentals",
    "collab": "Team collaboration and communication",
    "ai": "AI tool usage",
}

_STRENGTHS: Dict[CategoryKey, str] = {
    "cs": "Can lead code implementation and debugging.",
    "collab": "Works reliably with Git workflows and team communication.",
    "ai": "Can raise team productivity with AI tooling.",
}

_WEAKNESSES: Dict[CategoryKey, str] = {
    "cs": "May get stuck tracing errors and debugging APIs.",
    "collab": "May struggle with splitting pull requests and code review.",
    "ai": "Needs practice validating LLM output and refining prompts.",
}


class CategoryReport(BaseModel):
    summary: str
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    ratios: Dict[CategoryKey, float] = Field(default_factory=dict)


def _strongest(ratios: Mapping[CategoryKey, float]) -> Optional[CategoryKey]:
    best: Optional[CategoryKey] = None
    for category in CATEGORY_ORDER:
        if category not in ratios:
            continue
        if best is None or ratios[category] > ratios[best]:
            best = category
    return best


def build_category_report(
    breakdown: Mapping[CategoryKey, CategoryScore],
    *,
    strength_threshold: float = 0.7,
    weakness_threshold: float = 0.4,
) -> CategoryReport:
    ratios: Dict[CategoryKey, float] = {}
    strengths: List[str] = []
    weaknesses: List[str] = []

    for category in CATEGORY_ORDER:
        score = breakdown.get(category)
        if score is None or score.ratio is None:
            continue
        ratio = score.ratio
        ratios[category] = ratio
        if ratio >= strength_threshold:
            strengths.append(_STRENGTHS[category])
        if ratio <= weakness_threshold:
            weaknesses.append(_WEAKNESSES[category])

    correct = sum(score.correct for score in breakdown.values())
    total = sum(score.total for score in breakdown.values())
    strongest = _strongest(ratios)
    if strongest is None:
        summary = "No graded responses are available yet."
    else:
        summary = (
            f"Answered {correct} of {total} questions correctly; "
            f"strongest area is {REPORT_CATEGORY_LABELS[strongest]}."
        )
    return CategoryReport(summary=summary, strengths=strengths, weaknesses=weaknesses, ratios=ratios)


__all__ = ["CategoryReport", "REPORT_CATEGORY_LABELS", "build_category_report"]

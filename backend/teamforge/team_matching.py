"""Team matching: partition graded exam attempts into round-robin teams.

Two ordering policies are supported:

* ``rank`` orders attempts by overall score, highest first.
* ``balanced`` orders attempts by overall score, buckets them by primary
  skill and interleaves the buckets over the ``cs -> collab -> ai`` cycle.

Both policies then deal the ordered attempts across teams by position
(``index % team_count``), so team sizes may differ by one when the number of
attempts is not a multiple of the team count. ``team_size`` only determines
how many teams are created.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from enum import Enum
from typing import Deque, Dict, List, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from .exam_models import CATEGORY_LABELS, CATEGORY_ORDER, CategoryKey, GradedAttempt


logger = logging.getLogger(__name__)


class MatchingMode(str, Enum):
    RANK = "rank"
    BALANCED = "balanced"


class TeamMatchingError(ValueError):
    """Base class for input contract violations detected before matching."""


class EmptyInputError(TeamMatchingError):
    """Raised when there are no attempts to match."""


NoAttemptsError = EmptyInputError


class InvalidTeamSizeError(TeamMatchingError):
    """Raised when the requested team size is not a positive integer."""


class InvalidMatchingModeError(TeamMatchingError):
    """Raised when the matching mode is neither ``rank`` nor ``balanced``."""


class TeamAssignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    team_index: int = Field(ge=0)
    student_id: str
    attempt_id: str
    reason: str


class TeamMatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    team_count: int = Field(ge=1)
    assignments: List[TeamAssignment] = Field(default_factory=list)

    def team_members(self, team_index: int) -> List[TeamAssignment]:
        return [entry for entry in self.assignments if entry.team_index == team_index]


def primary_skill(attempt: GradedAttempt) -> CategoryKey:
    """Return the category with the highest sub-score; ties favour cs, then collab."""
    cs = attempt.category_score("cs")
    collab = attempt.category_score("collab")
    ai = attempt.category_score("ai")
    if cs >= collab and cs >= ai:
        return "cs"
    if collab >= cs and collab >= ai:
        return "collab"
    return "ai"


def _coerce_mode(mode: Union[MatchingMode, str]) -> MatchingMode:
    if isinstance(mode, MatchingMode):
        return mode
    try:
        return MatchingMode(str(mode).strip().lower())
    except ValueError as exc:
        raise InvalidMatchingModeError(
            f"Unknown matching mode '{mode}'. Expected one of: rank, balanced."
        ) from exc


def _validate_inputs(attempts: Sequence[GradedAttempt], team_size: int) -> None:
    if not attempts:
        raise EmptyInputError("Cannot match teams without any graded attempts.")
    # bool is an int subclass; True must not pass as a team size of one.
    if isinstance(team_size, bool) or not isinstance(team_size, int):
        raise InvalidTeamSizeError(f"Team size must be an integer, got {team_size!r}.")
    if team_size <= 0:
        raise InvalidTeamSizeError(f"Team size must be positive, got {team_size}.")


def order_by_rank(attempts: Sequence[GradedAttempt]) -> List[GradedAttempt]:
    # sorted() is stable, so equal scores keep their input order.
    return sorted(attempts, key=lambda attempt: attempt.overall, reverse=True)


def order_balanced(attempts: Sequence[GradedAttempt]) -> List[GradedAttempt]:
    ranked = order_by_rank(attempts)
    buckets: Dict[CategoryKey, Deque[GradedAttempt]] = {category: deque() for category in CATEGORY_ORDER}
    for attempt in ranked:
        buckets[primary_skill(attempt)].append(attempt)

    interleaved: List[GradedAttempt] = []
    while len(interleaved) < len(ranked):
        for category in CATEGORY_ORDER:
            bucket = buckets[category]
            if bucket:
                interleaved.append(bucket.popleft())
    return interleaved


def order_attempts(attempts: Sequence[GradedAttempt], mode: Union[MatchingMode, str]) -> List[GradedAttempt]:
    """Produce the single ordered sequence that team indices are dealt from."""
    resolved = _coerce_mode(mode)
    if resolved is MatchingMode.RANK:
        return order_by_rank(attempts)
    return order_balanced(attempts)


def _reason(mode: MatchingMode, position: int, attempt: GradedAttempt) -> str:
    if mode is MatchingMode.RANK:
        return f"Assigned by overall rank position {position + 1} to balance teams."
    label = CATEGORY_LABELS[primary_skill(attempt)]
    return f"Assigned considering primary strength ({label}) to balance teams."


def match_teams(
    attempts: Sequence[GradedAttempt],
    team_size: int,
    mode: Union[MatchingMode, str] = MatchingMode.RANK,
) -> TeamMatchResult:
    """Assign every attempt to exactly one team.

    Raises:
        EmptyInputError: ``attempts`` is empty.
        InvalidTeamSizeError: ``team_size`` is not a positive integer.
        InvalidMatchingModeError: ``mode`` is not a known matching mode.
    """
    _validate_inputs(attempts, team_size)
    resolved = _coerce_mode(mode)

    ordered = order_attempts(attempts, resolved)
    team_count = math.ceil(len(ordered) / team_size)
    assignments = [
        TeamAssignment(
            team_index=position % team_count,
            student_id=attempt.student_id,
            attempt_id=attempt.attempt_id,
            reason=_reason(resolved, position, attempt),
        )
        for position, attempt in enumerate(ordered)
    ]
    logger.debug(
        "Matched %d attempts into %d teams (team_size=%d, mode=%s)",
        len(assignments),
        team_count,
        team_size,
        resolved.value,
    )
    return TeamMatchResult(team_count=team_count, assignments=assignments)


__all__ = [
    "EmptyInputError",
    "InvalidMatchingModeError",
    "InvalidTeamSizeError",
    "MatchingMode",
    "NoAttemptsError",
    "TeamAssignment",
    "TeamMatchResult",
    "TeamMatchingError",
    "match_teams",
    "order_attempts",
    "order_balanced",
    "order_by_rank",
    "primary_skill",
]

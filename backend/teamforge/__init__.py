"""TeamForge: competency exam grading and team matching."""

from .team_matching import (
    EmptyInputError,
    InvalidMatchingModeError,
    InvalidTeamSizeError,
    MatchingMode,
    NoAttemptsError,
    TeamAssignment,
    TeamMatchingError,
    TeamMatchResult,
    match_teams,
)
from .exam_models import GradedAttempt

__all__ = [
    "EmptyInputError",
    "GradedAttempt",
    "InvalidMatchingModeError",
    "InvalidTeamSizeError",
    "MatchingMode",
    "NoAttemptsError",
    "TeamAssignment",
    "TeamMatchResult",
    "TeamMatchingError",
    "match_teams",
]

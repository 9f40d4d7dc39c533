"""Team layouts built from match results, plus manual member reassignment."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Set

from pydantic import BaseModel, Field

from .team_matching import MatchingMode, TeamMatchResult


logger = logging.getLogger(__name__)


class TeamLayoutError(ValueError):
    """Base class for layout validation and reassignment failures."""


class UnknownStudentError(TeamLayoutError):
    pass


class UnknownTeamError(TeamLayoutError):
    pass


class LayoutIntegrityError(TeamLayoutError):
    pass


class TeamMember(BaseModel):
    student_id: str = Field(..., min_length=1)
    attempt_id: Optional[str] = None
    reason: Optional[str] = None
    score: Optional[float] = None


class TeamRoster(BaseModel):
    team_index: int = Field(ge=0)
    members: List[TeamMember] = Field(default_factory=list)


class TeamLayout(BaseModel):
    mode: MatchingMode
    team_size: int = Field(gt=0)
    teams: List[TeamRoster] = Field(default_factory=list)

    @property
    def team_count(self) -> int:
        return len(self.teams)

    def student_ids(self) -> List[str]:
        return [member.student_id for team in self.teams for member in team.members]

    def find_team(self, student_id: str) -> Optional[int]:
        for team in self.teams:
            if any(member.student_id == student_id for member in team.members):
                return team.team_index
        return None


def layout_from_result(
    result: TeamMatchResult,
    *,
    mode: MatchingMode,
    team_size: int,
    scores: Optional[Mapping[str, Optional[float]]] = None,
) -> TeamLayout:
    """Group match assignments by team index, keeping assignment order within each team."""
    scores = scores or {}
    rosters = [TeamRoster(team_index=index) for index in range(result.team_count)]
    for assignment in result.assignments:
        rosters[assignment.team_index].members.append(
            TeamMember(
                student_id=assignment.student_id,
                attempt_id=assignment.attempt_id,
                reason=assignment.reason,
                score=scores.get(assignment.attempt_id),
            )
        )
    layout = TeamLayout(mode=mode, team_size=team_size, teams=rosters)
    validate_layout(layout)
    return layout


def validate_layout(layout: TeamLayout) -> None:
    if not layout.teams:
        raise LayoutIntegrityError("A team layout needs at least one team.")
    for expected, team in enumerate(layout.teams):
        if team.team_index != expected:
            raise LayoutIntegrityError(
                f"Team indices must be contiguous from 0; found {team.team_index} at position {expected}."
            )
    seen: Set[str] = set()
    for student_id in layout.student_ids():
        if student_id in seen:
            raise LayoutIntegrityError(f"Student '{student_id}' appears in more than one team slot.")
        seen.add(student_id)


def move_member(
    layout: TeamLayout,
    student_id: str,
    to_team: int,
    *,
    from_team: Optional[int] = None,
) -> TeamLayout:
    """Return a copy of ``layout`` with ``student_id`` moved to ``to_team``.

    The moved member keeps its attempt, score and reason and is appended to the
    end of the target roster. The input layout is never mutated.
    """
    if not 0 <= to_team < layout.team_count:
        raise UnknownTeamError(f"Team {to_team} does not exist in a layout of {layout.team_count} teams.")
    if from_team is not None and not 0 <= from_team < layout.team_count:
        raise UnknownTeamError(f"Team {from_team} does not exist in a layout of {layout.team_count} teams.")

    current = layout.find_team(student_id)
    if current is None:
        raise UnknownStudentError(f"Student '{student_id}' is not part of the team layout.")
    if from_team is not None and current != from_team:
        raise UnknownStudentError(f"Student '{student_id}' is in team {current}, not team {from_team}.")

    updated = layout.model_copy(deep=True)
    if current == to_team:
        return updated

    source = updated.teams[current]
    member = next(entry for entry in source.members if entry.student_id == student_id)
    source.members = [entry for entry in source.members if entry.student_id != student_id]
    updated.teams[to_team].members.append(member)

    validate_layout(updated)
    if len(updated.student_ids()) != len(layout.student_ids()):
        raise LayoutIntegrityError("Member count changed while moving a student.")
    logger.info("Moved student %s from team %d to team %d", student_id, current, to_team)
    return updated


def team_sizes(layout: TeamLayout) -> Dict[int, int]:
    return {team.team_index: len(team.members) for team in layout.teams}


__all__ = [
    "LayoutIntegrityError",
    "TeamLayout",
    "TeamLayoutError",
    "TeamMember",
    "TeamRoster",
    "UnknownStudentError",
    "UnknownTeamError",
    "layout_from_result",
    "move_member",
    "team_sizes",
    "validate_layout",
]

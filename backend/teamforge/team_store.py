"""Persistence for the single saved team layout."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .db.models import TeamMemberModel, TeamModel, TeamRunModel
from .db.session import session_scope
from .team_layout import TeamLayout, TeamMember, TeamRoster, move_member, validate_layout
from .team_matching import MatchingMode


logger = logging.getLogger(__name__)


class TeamStore:
    """Keeps at most one saved team run; saving replaces the previous one."""

    def save_layout(self, layout: TeamLayout) -> TeamLayout:
        validate_layout(layout)
        with session_scope() as session:
            self._delete_runs(session)
            self._write(session, layout)
            session.flush()
            logger.info(
                "Saved team layout: %d teams, %d students, mode=%s",
                layout.team_count,
                len(layout.student_ids()),
                layout.mode.value,
            )
            return self._read(session)  # type: ignore[return-value]

    def load_layout(self) -> Optional[TeamLayout]:
        with session_scope(commit=False) as session:
            return self._read(session)

    def move_member(
        self,
        student_id: str,
        to_team: int,
        *,
        from_team: Optional[int] = None,
    ) -> TeamLayout:
        with session_scope() as session:
            current = self._read(session)
            if current is None:
                raise LookupError("No saved team layout exists.")
            updated = move_member(current, student_id, to_team, from_team=from_team)
            self._delete_runs(session)
            self._write(session, updated)
            session.flush()
            return updated

    def clear(self) -> None:
        with session_scope() as session:
            self._delete_runs(session)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _delete_runs(self, session: Session) -> None:
        for run in session.execute(select(TeamRunModel)).scalars().all():
            session.delete(run)
        session.flush()

    def _write(self, session: Session, layout: TeamLayout) -> None:
        run = TeamRunModel(team_size=layout.team_size, mode=layout.mode.value)
        for roster in layout.teams:
            team = TeamModel(team_index=roster.team_index)
            for position, member in enumerate(roster.members):
                team.members.append(
                    TeamMemberModel(
                        student_id=member.student_id,
                        attempt_id=member.attempt_id,
                        position=position,
                        reason=member.reason,
                        score=member.score,
                    )
                )
            run.teams.append(team)
        session.add(run)

    def _read(self, session: Session) -> Optional[TeamLayout]:
        stmt = (
            select(TeamRunModel)
            .options(selectinload(TeamRunModel.teams).selectinload(TeamModel.members))
            .order_by(TeamRunModel.created_at.desc())
            .limit(1)
        )
        run = session.execute(stmt).scalar_one_or_none()
        if run is None:
            return None
        return TeamLayout(
            mode=MatchingMode(run.mode),
            team_size=run.team_size,
            teams=[
                TeamRoster(
                    team_index=team.team_index,
                    members=[
                        TeamMember(
                            student_id=member.student_id,
                            attempt_id=member.attempt_id,
                            reason=member.reason,
                            score=member.score,
                        )
                        for member in team.members
                    ],
                )
                for team in run.teams
            ],
        )


team_store = TeamStore()

__all__ = ["TeamStore", "team_store"]

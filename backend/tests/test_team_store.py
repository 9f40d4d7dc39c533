"""Tests for saving, loading and editing the persisted team layout."""

from __future__ import annotations

from pathlib import Path

import pytest

from teamforge.config import get_settings
from teamforge.db.base import Base
from teamforge.db.session import dispose_engine, get_engine, init_schema
from teamforge.exam_models import GradedAttempt
from teamforge.team_layout import LayoutIntegrityError, TeamLayout, TeamMember, TeamRoster, UnknownStudentError, layout_from_result
from teamforge.team_matching import MatchingMode, match_teams
from teamforge.team_store import TeamStore


@pytest.fixture
def store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TeamStore:
    monkeypatch.setenv("TEAMFORGE_DATABASE_URL", f"sqlite:///{tmp_path / 'teams.db'}")
    get_settings.cache_clear()
    dispose_engine()
    init_schema()
    yield TeamStore()
    Base.metadata.drop_all(get_engine())
    dispose_engine()
    get_settings.cache_clear()


def _layout(count: int = 6, team_size: int = 2, mode: MatchingMode = MatchingMode.BALANCED) -> TeamLayout:
    attempts = [
        GradedAttempt(
            attempt_id=f"a{index}",
            student_id=f"s{index}",
            score=20 - index,
            cs_score=5 if index % 3 == 0 else 1,
            collab_score=5 if index % 3 == 1 else 1,
            ai_score=5 if index % 3 == 2 else 1,
        )
        for index in range(count)
    ]
    result = match_teams(attempts, team_size, mode)
    return layout_from_result(result, mode=mode, team_size=team_size)


def test_load_without_saved_layout(store: TeamStore) -> None:
    assert store.load_layout() is None


def test_save_and_load_round_trip(store: TeamStore) -> None:
    layout = _layout()

    saved = store.save_layout(layout)

    assert saved == layout
    assert store.load_layout() == layout


def test_saving_replaces_previous_layout(store: TeamStore) -> None:
    store.save_layout(_layout())
    replacement = _layout(count=3, team_size=3, mode=MatchingMode.RANK)

    store.save_layout(replacement)

    loaded = store.load_layout()
    assert loaded == replacement
    assert loaded.team_count == 1


def test_save_rejects_invalid_layout(store: TeamStore) -> None:
    duplicate = TeamLayout(
        mode=MatchingMode.RANK,
        team_size=1,
        teams=[
            TeamRoster(team_index=0, members=[TeamMember(student_id="x")]),
            TeamRoster(team_index=1, members=[TeamMember(student_id="x")]),
        ],
    )
    with pytest.raises(LayoutIntegrityError):
        store.save_layout(duplicate)
    assert store.load_layout() is None


def test_move_member_persists(store: TeamStore) -> None:
    layout = store.save_layout(_layout())
    student = layout.teams[0].members[0].student_id

    updated = store.move_member(student, 2, from_team=0)

    loaded = store.load_layout()
    assert loaded == updated
    assert loaded.find_team(student) == 2
    assert sorted(loaded.student_ids()) == sorted(layout.student_ids())


def test_move_member_requires_saved_layout(store: TeamStore) -> None:
    with pytest.raises(LookupError):
        store.move_member("s0", 1)


def test_failed_move_keeps_saved_layout(store: TeamStore) -> None:
    layout = store.save_layout(_layout())
    with pytest.raises(UnknownStudentError):
        store.move_member("ghost", 1)
    assert store.load_layout() == layout

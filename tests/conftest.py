"""Shared test fixtures and configuration.

Sets up environment variables before any fairslot imports and provides
common fixtures like a temp DB and member builders.
"""

import os

# Patch env vars BEFORE any fairslot imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from datetime import datetime, timezone

import pytest

from fairslot.data.models import Member, NoMeetingBlock, Rules, WorkingBlock

WEEKDAYS = (1, 2, 3, 4, 5)
NINE_TO_FIVE = (540, 1020)

# Monday 2026-06-01 00:00 UTC (US on daylight time)
MONDAY_UTC = datetime(2026, 6, 1, 0, 0, tzinfo=timezone.utc)


def weekday_blocks(start_minute: int, end_minute: int, days=WEEKDAYS) -> list[WorkingBlock]:
    return [WorkingBlock(day, start_minute, end_minute) for day in days]


def make_member(
    member_id: str,
    tz: str = "UTC",
    working=None,
    no_meeting=None,
    team_id: str = "team-1",
) -> Member:
    return Member(
        id=member_id,
        team_id=team_id,
        display_name=member_id.title(),
        timezone=tz,
        working_blocks=weekday_blocks(*NINE_TO_FIVE) if working is None else working,
        no_meeting_blocks=no_meeting or [],
    )


def lunch_blocks(days=WEEKDAYS) -> list[NoMeetingBlock]:
    return [NoMeetingBlock(day, 720, 780) for day in days]


@pytest.fixture
def reference_instant():
    return MONDAY_UTC


@pytest.fixture
def default_rules():
    return Rules(duration_minutes=45, min_attendance_ratio=0.6, prohibited_days=[0, 6])


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_fairslot.db")


@pytest.fixture
def team_db(tmp_db_path):
    """Return a TeamDB instance backed by a temp file."""
    from fairslot.data.db import TeamDB
    return TeamDB(db_path=tmp_db_path)


@pytest.fixture
def repository(team_db):
    from fairslot.adapters.sqlite_repository import SQLiteSuggestionRepository
    return SQLiteSuggestionRepository(team_db)

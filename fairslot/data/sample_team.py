"""
FairSlot — Sample Team.

Seeds a four-person distributed team so the engine can be tried end to end
without hand-entering members and blocks.
"""

from __future__ import annotations

import logging

from fairslot.data.db import TeamDB
from fairslot.data.models import NoMeetingBlock, Rules, Team, WorkingBlock

logger = logging.getLogger(__name__)

SAMPLE_TEAM_SLUG = "sample-distributed-team"

SAMPLE_MEMBERS = [
    ("Alex Chen", "America/Los_Angeles"),
    ("Sarah Johnson", "Europe/London"),
    ("Raj Patel", "Asia/Kolkata"),
    ("Kim Min-jun", "Asia/Seoul"),
]

WEEKDAYS = (1, 2, 3, 4, 5)  # Monday–Friday

# 09:00–17:00 local
DEFAULT_WORKING_BLOCKS = [WorkingBlock(day, 540, 1020) for day in WEEKDAYS]

# Lunch 12:00–13:00 local
DEFAULT_NO_MEETING_BLOCKS = [NoMeetingBlock(day, 720, 780) for day in WEEKDAYS]

SAMPLE_RULES = Rules(
    duration_minutes=45,
    cadence="weekly",
    min_attendance_ratio=0.6,
    night_cap_per_week=1,
    prohibited_days=[0, 6],
    required_member_ids=[],
    rotation_enabled=True,
)


def create_sample_team(db: TeamDB) -> Team:
    """Return the sample team, creating it (members, blocks, rules) if missing."""
    existing = db.find_team_by_slug(SAMPLE_TEAM_SLUG)
    if existing is not None:
        logger.info("Sample team already exists, using existing team %s", existing.id)
        return existing

    team = db.add_team(
        "Sample Distributed Team",
        slug=SAMPLE_TEAM_SLUG,
        default_timezone="UTC",
        locale="en",
    )
    for name, tz in SAMPLE_MEMBERS:
        db.add_member(
            team.id,
            name,
            timezone_name=tz,
            working_blocks=DEFAULT_WORKING_BLOCKS,
            no_meeting_blocks=DEFAULT_NO_MEETING_BLOCKS,
        )
    db.set_rules(team.id, SAMPLE_RULES)
    db.log_event(team.id, "team_created", {"sample": True, "members": len(SAMPLE_MEMBERS)})

    logger.info("Created sample team %s with %d members", team.id, len(SAMPLE_MEMBERS))
    return team

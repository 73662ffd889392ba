"""
FairSlot — Candidate Slot Generator.

Enumerates meeting-start candidates on a fixed-granularity grid across a
lookahead horizon, in the team's reference timezone. The reference instant
is always injected; this module never reads the system clock.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from fairslot.core.availability import (
    UTC,
    add_minutes,
    resolve_zone,
    weekday_sunday_first,
)
from fairslot.data.models import MINUTES_PER_DAY, Rules

logger = logging.getLogger(__name__)


def _local_wall_time(day, minute: int, zone: ZoneInfo) -> datetime | None:
    """Build an aware local datetime, or None if the wall time does not exist (DST gap)."""
    naive = datetime.combine(day, time()) + timedelta(minutes=minute)
    local = naive.replace(tzinfo=zone)
    round_trip = local.astimezone(UTC).astimezone(zone)
    if round_trip.replace(tzinfo=None) != naive:
        return None
    return local


def generate_candidate_slots(
    rules: Rules,
    reference_instant: datetime,
    timezone: str | ZoneInfo = "UTC",
    horizon_days: int = 28,
    granularity_minutes: int = 15,
) -> list[datetime]:
    """Return chronological UTC candidate start instants.

    Days whose weekday (in the reference zone) is prohibited are skipped.
    Candidates ending on a different local date than they start, and
    candidates before the reference instant, are discarded.

    Args:
        rules: Team rules (duration and prohibited days are used).
        reference_instant: Timezone-aware "now".
        timezone: Reference zone for the day grid (team default or UTC).
        horizon_days: Number of calendar days to scan, starting today.
        granularity_minutes: Step between candidate starts.
    """
    if reference_instant.tzinfo is None:
        raise ValueError("reference_instant must be timezone-aware")
    if granularity_minutes <= 0:
        raise ValueError("granularity_minutes must be positive")

    zone = resolve_zone(timezone)
    now = reference_instant.astimezone(UTC)
    first_day = now.astimezone(zone).date()
    prohibited = set(rules.prohibited_days)

    candidates: list[datetime] = []
    for offset in range(horizon_days):
        day = first_day + timedelta(days=offset)
        if weekday_sunday_first(day) in prohibited:
            continue

        for minute in range(0, MINUTES_PER_DAY, granularity_minutes):
            local_start = _local_wall_time(day, minute, zone)
            if local_start is None:
                continue
            start = local_start.astimezone(UTC)
            if start < now:
                continue
            end = add_minutes(start, rules.duration_minutes)
            if end.astimezone(zone).date() != day:
                continue
            candidates.append(start)

    logger.debug(
        "Generated %d candidate slots over %d days (%s, every %d min)",
        len(candidates), horizon_days, zone.key, granularity_minutes,
    )
    return candidates

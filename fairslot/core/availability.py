"""
FairSlot — Time & Availability Utilities.

Pure functions converting UTC instants to a member's local weekday and
minute-of-day, detecting night-time, and testing proposed intervals against
a member's working and no-meeting blocks.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fairslot.data.models import Member, WorkingBlock

UTC = dt_timezone.utc
NIGHT_START_HOUR = 21
NIGHT_END_HOUR = 7


class InvalidTimezoneError(ValueError):
    """Raised when an IANA zone name cannot be resolved."""


def resolve_zone(timezone: str | ZoneInfo) -> ZoneInfo:
    """Return a ZoneInfo for an IANA name (ZoneInfo instances pass through)."""
    if isinstance(timezone, ZoneInfo):
        return timezone
    if not timezone:
        raise InvalidTimezoneError("Empty timezone name")
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as exc:
        raise InvalidTimezoneError(f"Unknown timezone {timezone!r}") from exc


def weekday_sunday_first(moment: date) -> int:
    """Weekday with 0=Sunday … 6=Saturday."""
    return (moment.weekday() + 1) % 7


def to_local_day(instant: datetime, timezone: str | ZoneInfo) -> tuple[int, int]:
    """Convert an aware instant to (day_of_week, minute_of_day) in a zone.

    Uses the zone's rules, so DST transitions are honoured.
    """
    local = instant.astimezone(resolve_zone(timezone))
    return weekday_sunday_first(local), local.hour * 60 + local.minute


def is_night(instant: datetime, timezone: str | ZoneInfo) -> bool:
    """True when the local hour is in [21:00, 07:00)."""
    local = instant.astimezone(resolve_zone(timezone))
    return local.hour < NIGHT_END_HOUR or local.hour >= NIGHT_START_HOUR


def member_local_interval(
    start: datetime, end: datetime, timezone: str | ZoneInfo,
) -> tuple[int, int, int] | None:
    """Return (day_of_week, start_minute, end_minute) in the member's zone.

    Returns None when the interval crosses the member's local midnight;
    such candidates are unavailable for that member.
    """
    zone = resolve_zone(timezone)
    local_start = start.astimezone(zone)
    local_end = end.astimezone(zone)
    if local_end.date() != local_start.date():
        return None
    return (
        weekday_sunday_first(local_start),
        local_start.hour * 60 + local_start.minute,
        local_end.hour * 60 + local_end.minute,
    )


def overlaps_any(
    start: int, end: int, blocks: list[tuple[int, int]]
) -> bool:
    """Check if [start, end) overlaps with any [block_start, block_end)."""
    for bs, be in blocks:
        if start < be and bs < end:
            return True
    return False


def _blocks_on(blocks: list[WorkingBlock], day_of_week: int) -> list[WorkingBlock]:
    return [b for b in blocks if b.day_of_week == day_of_week]


def is_available(
    member: Member, day_of_week: int, start_minute: int, end_minute: int,
) -> bool:
    """True iff [start, end) sits inside a working block and clear of no-meeting blocks."""
    carve_outs = [
        (b.start_minute, b.end_minute)
        for b in _blocks_on(member.no_meeting_blocks, day_of_week)
    ]
    if overlaps_any(start_minute, end_minute, carve_outs):
        return False
    return any(
        block.start_minute <= start_minute and end_minute <= block.end_minute
        for block in _blocks_on(member.working_blocks, day_of_week)
    )


def is_adjacent_to_boundary(
    member: Member,
    day_of_week: int,
    start_minute: int,
    end_minute: int,
    window_minutes: int = 30,
) -> bool:
    """True when the slot starts near a block start or ends near a block end."""
    for block in _blocks_on(member.working_blocks, day_of_week):
        if abs(start_minute - block.start_minute) <= window_minutes:
            return True
        if abs(end_minute - block.end_minute) <= window_minutes:
            return True
    return False


def add_minutes(instant: datetime, minutes: int) -> datetime:
    """Absolute-time addition; the result is in UTC.

    Adding a timedelta to a ZoneInfo-aware datetime is wall-clock arithmetic,
    which drifts by an hour across DST changes.
    """
    return instant.astimezone(UTC) + timedelta(minutes=minutes)

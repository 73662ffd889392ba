"""
FairSlot — Feasibility Filter.

For each candidate start, works out which members can attend and rejects
candidates below the minimum attendance ratio or missing a required member.
An empty result is a valid outcome: the rules are too strict for the team.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from fairslot.core.availability import (
    InvalidTimezoneError,
    add_minutes,
    is_available,
    member_local_interval,
    resolve_zone,
)
from fairslot.data.models import Member, Rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeasibleCandidate:
    """A candidate that passed attendance checks, with its attendee set."""

    starts_at: datetime
    ends_at: datetime
    attending_member_ids: tuple[str, ...]
    overlap_ratio: float


def resolve_member_zones(members: list[Member]) -> dict[str, ZoneInfo | None]:
    """Map member id → ZoneInfo, or None for members whose zone is invalid.

    Members with an unresolvable zone are logged once here and are
    unavailable for every slot.
    """
    zones: dict[str, ZoneInfo | None] = {}
    for member in members:
        try:
            zones[member.id] = resolve_zone(member.timezone)
        except InvalidTimezoneError as exc:
            logger.warning(
                "Member %s (%s) treated as unavailable: %s",
                member.id, member.display_name, exc,
            )
            zones[member.id] = None
    return zones


def attending_members(
    start: datetime,
    end: datetime,
    members: list[Member],
    zones: dict[str, ZoneInfo | None],
) -> list[str]:
    """Return ids of members available for [start, end), in member order."""
    attending: list[str] = []
    for member in members:
        zone = zones.get(member.id)
        if zone is None:
            continue
        local = member_local_interval(start, end, zone)
        if local is None:
            continue
        day, start_minute, end_minute = local
        if is_available(member, day, start_minute, end_minute):
            attending.append(member.id)
    return attending


def evaluate_candidate(
    start: datetime,
    members: list[Member],
    rules: Rules,
    zones: dict[str, ZoneInfo | None],
) -> FeasibleCandidate | None:
    """Return a FeasibleCandidate, or None if the slot fails the rules."""
    if not members:
        return None

    end = add_minutes(start, rules.duration_minutes)
    attending = attending_members(start, end, members, zones)

    overlap_ratio = len(attending) / len(members)
    if overlap_ratio < rules.min_attendance_ratio:
        return None

    present = set(attending)
    if any(req_id not in present for req_id in rules.required_member_ids):
        return None

    return FeasibleCandidate(
        starts_at=start,
        ends_at=end,
        attending_member_ids=tuple(attending),
        overlap_ratio=overlap_ratio,
    )


def filter_feasible(
    candidates: list[datetime],
    members: list[Member],
    rules: Rules,
    candidate_cap: int = 1000,
) -> list[FeasibleCandidate]:
    """Evaluate at most candidate_cap candidates and keep the feasible ones.

    When the cap cuts the candidate list short, the result is a best-effort
    subset of the horizon, not a global optimum.
    """
    if not members:
        logger.warning("Team has no members; no candidate can be feasible")
        return []

    if len(candidates) > candidate_cap:
        logger.info(
            "Evaluating first %d of %d candidates (cap reached)",
            candidate_cap, len(candidates),
        )

    zones = resolve_member_zones(members)
    feasible: list[FeasibleCandidate] = []
    for start in candidates[:candidate_cap]:
        result = evaluate_candidate(start, members, rules, zones)
        if result is not None:
            feasible.append(result)

    logger.debug("%d feasible candidates", len(feasible))
    return feasible

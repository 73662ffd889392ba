"""
FairSlot — Fairness & Penalty Scorer.

Two layers of scoring:

1. A team-wide fairness snapshot, computed once per run from how evenly
   night-time meetings have been spread across members recently. The same
   value is attached to every suggestion of the run.
2. Per-candidate penalties accumulated over attending members:
   - night:     W for each attendee for whom the slot is night-time locally
   - adjacency: W/2 for each attendee whose slot hugs a working-block edge
   - burden:    W for each attendee whose night count exceeds the team
                average (only when rotation is enabled)

The final score is overlap_ratio minus the summed penalties. Penalties are
accumulated, not averaged, so high-overlap slots carry more penalty mass.
"""

from __future__ import annotations

import logging
import statistics
from datetime import datetime, timedelta

from fairslot.core.availability import (
    InvalidTimezoneError,
    is_adjacent_to_boundary,
    is_night,
    member_local_interval,
    resolve_zone,
)
from fairslot.core.feasibility import FeasibleCandidate
from fairslot.data.models import (
    HistoricalMeeting,
    Member,
    Penalties,
    Rules,
    Suggestion,
)

logger = logging.getLogger(__name__)

PENALTY_WEIGHT = 0.1


def count_night_meetings(
    history: list[HistoricalMeeting],
    members: list[Member],
    reference_instant: datetime,
    lookback_days: int = 28,
) -> dict[str, int]:
    """Count, per member, recent accepted meetings that fell in their night.

    Only meetings starting within [reference - lookback, reference] count.
    Every member appears in the result, starting at zero.
    """
    counts = {m.id: 0 for m in members}
    zones = {}
    for member in members:
        try:
            zones[member.id] = resolve_zone(member.timezone)
        except InvalidTimezoneError:
            zones[member.id] = None

    cutoff = reference_instant - timedelta(days=lookback_days)
    for meeting in history:
        if not cutoff <= meeting.starts_at_utc <= reference_instant:
            continue
        for member_id in meeting.attending_member_ids:
            zone = zones.get(member_id)
            if zone is None:
                continue
            if is_night(meeting.starts_at_utc, zone):
                counts[member_id] += 1

    logger.debug("Night meeting counts: %s", counts)
    return counts


def calculate_fairness_score(night_counts: dict[str, int]) -> float:
    """Return 1 - stddev/(mean+1), floored at 0. Higher is more even."""
    counts = list(night_counts.values())
    if not counts:
        return 1.0
    mean = statistics.fmean(counts)
    std_dev = statistics.pstdev(counts)
    return max(0.0, 1 - std_dev / (mean + 1))


def score_candidate(
    candidate: FeasibleCandidate,
    members_by_id: dict[str, Member],
    rules: Rules,
    night_counts: dict[str, int],
    fairness_score: float,
    penalty_weight: float = PENALTY_WEIGHT,
    adjacency_window_minutes: int = 30,
) -> Suggestion:
    """Attach penalties and the final ranking score to a feasible candidate."""
    average_nights = (
        statistics.fmean(night_counts.values()) if night_counts else 0.0
    )

    night = 0.0
    adjacency = 0.0
    burden = 0.0
    for member_id in candidate.attending_member_ids:
        member = members_by_id[member_id]
        zone = resolve_zone(member.timezone)

        if is_night(candidate.starts_at, zone):
            night += penalty_weight

        local = member_local_interval(candidate.starts_at, candidate.ends_at, zone)
        if local is not None and is_adjacent_to_boundary(
            member, *local, window_minutes=adjacency_window_minutes,
        ):
            adjacency += penalty_weight / 2

        if rules.rotation_enabled and night_counts.get(member_id, 0) > average_nights:
            burden += penalty_weight

    penalties = Penalties(
        night_penalties=night,
        burden_penalties=burden,
        adjacency_penalties=adjacency,
    )
    return Suggestion(
        starts_at_utc=candidate.starts_at,
        ends_at_utc=candidate.ends_at,
        attending_member_ids=candidate.attending_member_ids,
        overlap_ratio=candidate.overlap_ratio,
        fairness_score=fairness_score,
        penalties=penalties,
        score=candidate.overlap_ratio - penalties.total,
    )


def score_candidates(
    candidates: list[FeasibleCandidate],
    members: list[Member],
    rules: Rules,
    night_counts: dict[str, int],
    penalty_weight: float = PENALTY_WEIGHT,
    adjacency_window_minutes: int = 30,
) -> list[Suggestion]:
    """Score every feasible candidate against one fairness snapshot."""
    fairness = calculate_fairness_score(night_counts)
    members_by_id = {m.id: m for m in members}
    return [
        score_candidate(
            c, members_by_id, rules, night_counts, fairness,
            penalty_weight=penalty_weight,
            adjacency_window_minutes=adjacency_window_minutes,
        )
        for c in candidates
    ]

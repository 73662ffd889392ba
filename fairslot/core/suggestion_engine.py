"""
FairSlot — Suggestion Engine.

Single entry point for regenerating a team's meeting suggestions:

    load snapshot → generate candidates → filter feasible → score → rank → persist

This module is storage-agnostic: it depends on the SuggestionRepository
protocol, not on a specific implementation. Unset tuning parameters fall
back to `fairslot.config.settings`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from fairslot.config import settings
from fairslot.core.availability import InvalidTimezoneError, resolve_zone
from fairslot.core.candidates import generate_candidate_slots
from fairslot.core.fairness import count_night_meetings, score_candidates
from fairslot.core.feasibility import filter_feasible
from fairslot.core.ranking import rank_suggestions
from fairslot.data.models import GenerationResult, Team
from fairslot.ports.suggestion_port import RepositoryError

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from fairslot.ports.suggestion_port import SuggestionRepository

logger = logging.getLogger(__name__)

_team_locks: dict[str, threading.Lock] = {}
_team_locks_guard = threading.Lock()


class SuggestionGenerationError(Exception):
    """Raised when suggestions were computed but could not be persisted."""


def _lock_for(team_id: str) -> threading.Lock:
    with _team_locks_guard:
        return _team_locks.setdefault(team_id, threading.Lock())


def _reference_zone(team: Team) -> ZoneInfo:
    """The team's default zone, or UTC when unset or unresolvable."""
    if not team.default_timezone:
        return resolve_zone("UTC")
    try:
        return resolve_zone(team.default_timezone)
    except InvalidTimezoneError as exc:
        logger.warning("Team %s: %s; falling back to UTC", team.id, exc)
        return resolve_zone("UTC")


def generate_suggestions(
    team_id: str,
    repository: SuggestionRepository,
    reference_instant: datetime,
    *,
    horizon_days: int | None = None,
    granularity_minutes: int | None = None,
    candidate_cap: int | None = None,
    top_k: int | None = None,
    lookback_days: int | None = None,
    penalty_weight: float | None = None,
    adjacency_window_minutes: int | None = None,
) -> GenerationResult:
    """Regenerate and persist the ranked suggestion set for a team.

    Args:
        team_id: Team to schedule.
        repository: Storage collaborator (read snapshot, replace suggestions).
        reference_instant: Timezone-aware "now"; the clock is never read here.

    Returns:
        GenerationResult with the persisted suggestions (possibly empty).

    Raises:
        TeamNotConfiguredError: the team or its rules do not exist.
        RepositoryError: the snapshot could not be read.
        SuggestionGenerationError: the new set could not be persisted.
    """
    if reference_instant.tzinfo is None:
        raise ValueError("reference_instant must be timezone-aware")

    horizon_days = settings.LOOKAHEAD_DAYS if horizon_days is None else horizon_days
    granularity_minutes = (
        settings.SCAN_GRANULARITY_MINUTES if granularity_minutes is None else granularity_minutes
    )
    candidate_cap = settings.CANDIDATE_CAP if candidate_cap is None else candidate_cap
    top_k = settings.TOP_K if top_k is None else top_k
    lookback_days = settings.FAIRNESS_LOOKBACK_DAYS if lookback_days is None else lookback_days
    penalty_weight = settings.PENALTY_WEIGHT if penalty_weight is None else penalty_weight
    adjacency_window_minutes = (
        settings.ADJACENCY_WINDOW_MINUTES
        if adjacency_window_minutes is None else adjacency_window_minutes
    )

    with _lock_for(team_id):
        logger.info("Generating suggestions for team %s", team_id)

        try:
            snapshot = repository.load_team_snapshot(
                team_id, reference_instant - timedelta(days=lookback_days),
            )
        except RepositoryError as exc:
            logger.error("Failed to load team %s: %s", team_id, exc)
            raise

        rules = snapshot.rules
        members = snapshot.members
        logger.info("Found %d members for team %s", len(members), team_id)

        candidates = generate_candidate_slots(
            rules,
            reference_instant,
            timezone=_reference_zone(snapshot.team),
            horizon_days=horizon_days,
            granularity_minutes=granularity_minutes,
        )
        logger.info("Generated %d candidate slots", len(candidates))

        feasible = filter_feasible(candidates, members, rules, candidate_cap=candidate_cap)

        night_counts = count_night_meetings(
            snapshot.history, members, reference_instant, lookback_days=lookback_days,
        )
        scored = score_candidates(
            feasible, members, rules, night_counts,
            penalty_weight=penalty_weight,
            adjacency_window_minutes=adjacency_window_minutes,
        )
        top = rank_suggestions(scored, top_k=top_k)

        if not top:
            logger.warning(
                "No viable slot for team %s under current rules "
                "(min_attendance_ratio=%.2f); consider lowering it",
                team_id, rules.min_attendance_ratio,
            )

        try:
            version = repository.replace_suggestions(team_id, top)
        except RepositoryError as exc:
            logger.error("Error persisting suggestions for team %s: %s", team_id, exc)
            raise SuggestionGenerationError(
                f"Failed to persist suggestions for team {team_id}"
            ) from exc

        persisted = [replace(s, version=version) for s in top]
        logger.info("Found %d valid suggestions (version %d)", len(persisted), version)

        repository.log_event(
            team_id,
            "suggestions_generated",
            {"count": len(persisted), "version": version},
        )

    return GenerationResult(
        suggestion_count=len(persisted),
        suggestions=persisted,
        version=version,
    )

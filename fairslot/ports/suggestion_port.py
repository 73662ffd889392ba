"""Suggestion repository port — abstract interface for the engine's storage.

The engine depends on this protocol, never on a specific database.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from fairslot.data.models import Suggestion, TeamSnapshot


class RepositoryError(Exception):
    """Raised when any repository read or write fails."""


class TeamNotConfiguredError(RepositoryError):
    """Raised when a team, or its rules row, does not exist."""


class SuggestionRepository(Protocol):
    """Read/write contract used by the suggestion engine."""

    def load_team_snapshot(
        self, team_id: str, history_since: datetime
    ) -> TeamSnapshot: ...

    def replace_suggestions(
        self, team_id: str, suggestions: list[Suggestion]
    ) -> int: ...

    def log_event(
        self, team_id: str, event_type: str, metadata: dict | None = None
    ) -> bool: ...

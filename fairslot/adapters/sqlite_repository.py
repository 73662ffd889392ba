"""SQLite repository adapter — implements SuggestionRepository.

Wraps a TeamDB instance to satisfy the SuggestionRepository protocol and
translates storage failures into RepositoryError.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime

from fairslot.data.db import TeamDB
from fairslot.data.models import Suggestion, TeamSnapshot
from fairslot.ports.suggestion_port import RepositoryError, TeamNotConfiguredError

logger = logging.getLogger(__name__)


class SQLiteSuggestionRepository:
    """SQLite implementation of SuggestionRepository."""

    def __init__(self, db: TeamDB | None = None) -> None:
        self._db = db if db is not None else TeamDB()

    def load_team_snapshot(self, team_id: str, history_since: datetime) -> TeamSnapshot:
        try:
            team = self._db.get_team(team_id)
            if team is None:
                raise TeamNotConfiguredError(f"Team {team_id} not found")

            rules = self._db.get_rules(team_id)
            if rules is None:
                raise TeamNotConfiguredError(f"Team {team_id} is not configured (no rules)")

            members = self._db.list_members(team_id)
            history = self._db.list_accepted_meetings(team_id, since=history_since)
        except (sqlite3.Error, ValueError) as exc:
            raise RepositoryError(f"Failed to read team {team_id}: {exc}") from exc

        return TeamSnapshot(team=team, rules=rules, members=members, history=history)

    def replace_suggestions(self, team_id: str, suggestions: list[Suggestion]) -> int:
        try:
            return self._db.replace_suggestions(team_id, suggestions)
        except (sqlite3.Error, ValueError) as exc:
            raise RepositoryError(f"Failed to write suggestions for team {team_id}: {exc}") from exc

    def log_event(self, team_id: str, event_type: str, metadata: dict | None = None) -> bool:
        try:
            self._db.log_event(team_id, event_type, metadata)
        except sqlite3.Error as exc:
            logger.error("Failed to log event %s for team %s: %s", event_type, team_id, exc)
            return False
        return True

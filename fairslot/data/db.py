"""
FairSlot — Team Database.

SQLite-backed storage for teams, members and their weekly blocks, rules,
the current suggestion set, accepted meetings (the fairness history), and an
application event log.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from fairslot.data.models import (
    HistoricalMeeting,
    Member,
    NoMeetingBlock,
    Penalties,
    Rules,
    Suggestion,
    Team,
    WorkingBlock,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS teams (
    id                  TEXT    PRIMARY KEY,
    name                TEXT    NOT NULL,
    slug                TEXT    NOT NULL UNIQUE,
    default_timezone    TEXT,
    locale              TEXT,
    suggestion_version  INTEGER NOT NULL DEFAULT 0,
    created_at          TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS team_members (
    id            TEXT PRIMARY KEY,
    team_id       TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    display_name  TEXT NOT NULL,
    email         TEXT,
    timezone      TEXT NOT NULL DEFAULT 'UTC',
    created_at    TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS working_blocks (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    member_id     TEXT    NOT NULL REFERENCES team_members(id) ON DELETE CASCADE,
    day_of_week   INTEGER NOT NULL,
    start_minute  INTEGER NOT NULL,
    end_minute    INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS no_meeting_blocks (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    member_id     TEXT    NOT NULL REFERENCES team_members(id) ON DELETE CASCADE,
    day_of_week   INTEGER NOT NULL,
    start_minute  INTEGER NOT NULL,
    end_minute    INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS rules (
    team_id               TEXT    PRIMARY KEY REFERENCES teams(id) ON DELETE CASCADE,
    duration_minutes      INTEGER NOT NULL DEFAULT 60,
    cadence               TEXT    NOT NULL DEFAULT 'weekly',
    min_attendance_ratio  REAL    NOT NULL DEFAULT 0.6,
    night_cap_per_week    INTEGER NOT NULL DEFAULT 1,
    prohibited_days       TEXT    NOT NULL DEFAULT '[]',
    required_member_ids   TEXT    NOT NULL DEFAULT '[]',
    rotation_enabled      INTEGER NOT NULL DEFAULT 1,
    updated_at            TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS suggestions (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    team_id               TEXT    NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    starts_at_utc         TEXT    NOT NULL,
    ends_at_utc           TEXT    NOT NULL,
    attending_member_ids  TEXT    NOT NULL,
    overlap_ratio         REAL    NOT NULL,
    fairness_score        REAL    NOT NULL,
    penalties_json        TEXT    NOT NULL,
    score                 REAL    NOT NULL,
    version               INTEGER NOT NULL,
    created_at            TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS accepted_meetings (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    team_id               TEXT    NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    starts_at_utc         TEXT    NOT NULL,
    ends_at_utc           TEXT    NOT NULL,
    attending_member_ids  TEXT    NOT NULL,
    accepted_at           TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS event_logs (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    team_id     TEXT,
    event_type  TEXT NOT NULL,
    metadata    TEXT NOT NULL DEFAULT '{}',
    created_at  TEXT NOT NULL
);
"""


def _to_iso(moment: datetime) -> str:
    """Serialize an aware datetime as a UTC ISO string (sortable as text)."""
    return moment.astimezone(timezone.utc).isoformat()


def _from_iso(raw: str) -> datetime:
    return datetime.fromisoformat(raw).astimezone(timezone.utc)


def _now_iso() -> str:
    return _to_iso(datetime.now(timezone.utc))


class TeamDB:
    """SQLite-backed storage for teams and their scheduling data."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from fairslot.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        """Create all tables if they don't exist."""
        with self._connect() as conn:
            conn.executescript(_SCHEMA)
        logger.debug("FairSlot tables initialized at %s", self._db_path)

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_team(row: sqlite3.Row) -> Team:
        return Team(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            default_timezone=row["default_timezone"],
            locale=row["locale"],
        )

    def add_team(
        self,
        name: str,
        slug: str | None = None,
        default_timezone: str | None = None,
        locale: str | None = None,
        team_id: str | None = None,
    ) -> Team:
        """Insert a new team. The slug defaults to a lowercased, dashed name."""
        team_id = team_id or str(uuid.uuid4())
        slug = slug or "-".join(name.lower().split())

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO teams (id, name, slug, default_timezone, locale, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (team_id, name, slug, default_timezone, locale, _now_iso()),
            )

        logger.info("Team added: %s '%s'", team_id, name)
        return Team(
            id=team_id,
            name=name,
            slug=slug,
            default_timezone=default_timezone,
            locale=locale,
        )

    def get_team(self, team_id: str) -> Team | None:
        """Fetch a single team by ID."""
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_team(row)

    def find_team_by_slug(self, slug: str) -> Team | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM teams WHERE slug = ?", (slug,)).fetchone()
        if row is None:
            return None
        return self._row_to_team(row)

    # ------------------------------------------------------------------
    # Members and blocks
    # ------------------------------------------------------------------

    def add_member(
        self,
        team_id: str,
        display_name: str,
        timezone_name: str = "UTC",
        working_blocks: list[WorkingBlock] | None = None,
        no_meeting_blocks: list[NoMeetingBlock] | None = None,
        email: str | None = None,
        member_id: str | None = None,
    ) -> Member:
        """Insert a member together with their working and no-meeting blocks."""
        member_id = member_id or str(uuid.uuid4())
        working_blocks = list(working_blocks or [])
        no_meeting_blocks = list(no_meeting_blocks or [])

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO team_members (id, team_id, display_name, email, timezone, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (member_id, team_id, display_name, email, timezone_name, _now_iso()),
            )
            conn.executemany(
                """
                INSERT INTO working_blocks (member_id, day_of_week, start_minute, end_minute)
                VALUES (?, ?, ?, ?)
                """,
                [(member_id, b.day_of_week, b.start_minute, b.end_minute) for b in working_blocks],
            )
            conn.executemany(
                """
                INSERT INTO no_meeting_blocks (member_id, day_of_week, start_minute, end_minute)
                VALUES (?, ?, ?, ?)
                """,
                [(member_id, b.day_of_week, b.start_minute, b.end_minute) for b in no_meeting_blocks],
            )

        logger.info(
            "Member added: %s '%s' (%s) with %d working / %d no-meeting blocks",
            member_id, display_name, timezone_name,
            len(working_blocks), len(no_meeting_blocks),
        )
        return Member(
            id=member_id,
            team_id=team_id,
            display_name=display_name,
            timezone=timezone_name,
            working_blocks=working_blocks,
            no_meeting_blocks=no_meeting_blocks,
            email=email,
        )

    def list_members(self, team_id: str) -> list[Member]:
        """Return a team's members (insertion order) with their blocks."""
        with self._connect() as conn:
            member_rows = conn.execute(
                "SELECT * FROM team_members WHERE team_id = ? ORDER BY rowid",
                (team_id,),
            ).fetchall()
            working_rows = conn.execute(
                """
                SELECT wb.* FROM working_blocks wb
                JOIN team_members tm ON tm.id = wb.member_id
                WHERE tm.team_id = ?
                ORDER BY wb.day_of_week, wb.start_minute
                """,
                (team_id,),
            ).fetchall()
            no_meeting_rows = conn.execute(
                """
                SELECT nmb.* FROM no_meeting_blocks nmb
                JOIN team_members tm ON tm.id = nmb.member_id
                WHERE tm.team_id = ?
                ORDER BY nmb.day_of_week, nmb.start_minute
                """,
                (team_id,),
            ).fetchall()

        members = {
            row["id"]: Member(
                id=row["id"],
                team_id=row["team_id"],
                display_name=row["display_name"],
                timezone=row["timezone"],
                email=row["email"],
            )
            for row in member_rows
        }
        for row in working_rows:
            members[row["member_id"]].working_blocks.append(
                WorkingBlock(row["day_of_week"], row["start_minute"], row["end_minute"])
            )
        for row in no_meeting_rows:
            members[row["member_id"]].no_meeting_blocks.append(
                NoMeetingBlock(row["day_of_week"], row["start_minute"], row["end_minute"])
            )
        return list(members.values())

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def set_rules(self, team_id: str, rules: Rules) -> None:
        """Insert or replace the team's rules row."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO rules
                    (team_id, duration_minutes, cadence, min_attendance_ratio,
                     night_cap_per_week, prohibited_days, required_member_ids,
                     rotation_enabled, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(team_id) DO UPDATE SET
                    duration_minutes     = excluded.duration_minutes,
                    cadence              = excluded.cadence,
                    min_attendance_ratio = excluded.min_attendance_ratio,
                    night_cap_per_week   = excluded.night_cap_per_week,
                    prohibited_days      = excluded.prohibited_days,
                    required_member_ids  = excluded.required_member_ids,
                    rotation_enabled     = excluded.rotation_enabled,
                    updated_at           = excluded.updated_at
                """,
                (
                    team_id, rules.duration_minutes, rules.cadence,
                    rules.min_attendance_ratio, rules.night_cap_per_week,
                    json.dumps(list(rules.prohibited_days)),
                    json.dumps(list(rules.required_member_ids)),
                    int(rules.rotation_enabled), _now_iso(),
                ),
            )
        logger.info("Rules updated for team %s", team_id)

    def get_rules(self, team_id: str) -> Rules | None:
        """Fetch the team's rules. Raises ValueError if the stored row is invalid."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM rules WHERE team_id = ?", (team_id,)
            ).fetchone()
        if row is None:
            return None
        return Rules(
            duration_minutes=row["duration_minutes"],
            cadence=row["cadence"],
            min_attendance_ratio=row["min_attendance_ratio"],
            night_cap_per_week=row["night_cap_per_week"],
            prohibited_days=json.loads(row["prohibited_days"] or "[]"),
            required_member_ids=json.loads(row["required_member_ids"] or "[]"),
            rotation_enabled=bool(row["rotation_enabled"]),
        )

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_suggestion(row: sqlite3.Row) -> Suggestion:
        penalties = json.loads(row["penalties_json"])
        return Suggestion(
            starts_at_utc=_from_iso(row["starts_at_utc"]),
            ends_at_utc=_from_iso(row["ends_at_utc"]),
            attending_member_ids=tuple(json.loads(row["attending_member_ids"])),
            overlap_ratio=row["overlap_ratio"],
            fairness_score=row["fairness_score"],
            penalties=Penalties(
                night_penalties=penalties.get("night_penalties", 0.0),
                burden_penalties=penalties.get("burden_penalties", 0.0),
                adjacency_penalties=penalties.get("adjacency_penalties", 0.0),
            ),
            score=row["score"],
            version=row["version"],
        )

    def replace_suggestions(self, team_id: str, suggestions: list[Suggestion]) -> int:
        """Atomically replace the team's suggestion set; return the new version.

        The delete, the inserts and the version bump share one write
        transaction, so either the whole new set lands or the old set stays.
        """
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            cursor = conn.execute(
                "UPDATE teams SET suggestion_version = suggestion_version + 1 WHERE id = ?",
                (team_id,),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Team {team_id} not found")
            version = conn.execute(
                "SELECT suggestion_version FROM teams WHERE id = ?", (team_id,)
            ).fetchone()[0]

            conn.execute("DELETE FROM suggestions WHERE team_id = ?", (team_id,))
            created_at = _now_iso()
            conn.executemany(
                """
                INSERT INTO suggestions
                    (team_id, starts_at_utc, ends_at_utc, attending_member_ids,
                     overlap_ratio, fairness_score, penalties_json, score,
                     version, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        team_id,
                        _to_iso(s.starts_at_utc),
                        _to_iso(s.ends_at_utc),
                        json.dumps(list(s.attending_member_ids)),
                        s.overlap_ratio,
                        s.fairness_score,
                        json.dumps({
                            "night_penalties": s.penalties.night_penalties,
                            "burden_penalties": s.penalties.burden_penalties,
                            "adjacency_penalties": s.penalties.adjacency_penalties,
                        }),
                        s.score,
                        version,
                        created_at,
                    )
                    for s in suggestions
                ],
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        logger.info(
            "Replaced suggestions for team %s: %d rows (version %d)",
            team_id, len(suggestions), version,
        )
        return version

    def list_suggestions(self, team_id: str) -> list[Suggestion]:
        """Return the team's current suggestions in ranked order."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM suggestions WHERE team_id = ? ORDER BY id",
                (team_id,),
            ).fetchall()
        return [self._row_to_suggestion(r) for r in rows]

    # ------------------------------------------------------------------
    # Accepted meetings (fairness history)
    # ------------------------------------------------------------------

    def record_accepted_meeting(
        self,
        team_id: str,
        suggestion: Suggestion,
        accepted_at: datetime | None = None,
    ) -> None:
        """Record that the team accepted a suggestion; it becomes fairness history."""
        accepted_at = accepted_at or datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO accepted_meetings
                    (team_id, starts_at_utc, ends_at_utc, attending_member_ids, accepted_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    team_id,
                    _to_iso(suggestion.starts_at_utc),
                    _to_iso(suggestion.ends_at_utc),
                    json.dumps(list(suggestion.attending_member_ids)),
                    _to_iso(accepted_at),
                ),
            )
        logger.info(
            "Accepted meeting recorded for team %s at %s",
            team_id, suggestion.starts_at_utc.isoformat(),
        )

    def list_accepted_meetings(
        self, team_id: str, since: datetime | None = None,
    ) -> list[HistoricalMeeting]:
        """Return accepted meetings starting at or after `since`, oldest first."""
        query = "SELECT * FROM accepted_meetings WHERE team_id = ?"
        params: list = [team_id]
        if since is not None:
            query += " AND starts_at_utc >= ?"
            params.append(_to_iso(since))
        query += " ORDER BY starts_at_utc, id"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [
            HistoricalMeeting(
                starts_at_utc=_from_iso(r["starts_at_utc"]),
                attending_member_ids=tuple(json.loads(r["attending_member_ids"])),
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Event log
    # ------------------------------------------------------------------

    def log_event(
        self, team_id: str | None, event_type: str, metadata: dict | None = None,
    ) -> int:
        """Append an application event; returns its row id."""
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO event_logs (team_id, event_type, metadata, created_at) VALUES (?, ?, ?, ?)",
                (team_id, event_type, json.dumps(metadata or {}), _now_iso()),
            )
        logger.debug("Event logged: %s for team %s", event_type, team_id)
        return cursor.lastrowid

    def list_events(self, team_id: str, limit: int = 50) -> list[dict]:
        """Return a team's most recent events, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM event_logs WHERE team_id = ? ORDER BY id DESC LIMIT ?",
                (team_id, limit),
            ).fetchall()
        return [
            {
                "id": r["id"],
                "team_id": r["team_id"],
                "event_type": r["event_type"],
                "metadata": json.loads(r["metadata"]),
                "created_at": r["created_at"],
            }
            for r in rows
        ]

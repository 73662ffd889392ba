"""
FairSlot — Command-line interface.

    python main.py seed-sample
    python main.py generate TEAM_ID [--now 2026-06-01T00:00:00+00:00]
    python main.py show TEAM_ID

Output is JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone

from fairslot.adapters.sqlite_repository import SQLiteSuggestionRepository
from fairslot.core.suggestion_engine import SuggestionGenerationError, generate_suggestions
from fairslot.data.db import TeamDB
from fairslot.data.sample_team import create_sample_team
from fairslot.ports.suggestion_port import RepositoryError, TeamNotConfiguredError

logger = logging.getLogger(__name__)


def _parse_now(raw: str | None) -> datetime:
    if not raw:
        return datetime.now(timezone.utc)
    moment = datetime.fromisoformat(raw)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fairslot", description="Fair meeting-time suggestions")
    parser.add_argument("--db", help="SQLite database path (defaults to DATABASE_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed-sample", help="Create the sample distributed team")

    gen = sub.add_parser("generate", help="Regenerate suggestions for a team")
    gen.add_argument("team_id")
    gen.add_argument("--now", help="Reference instant (ISO 8601); defaults to the current time")

    show = sub.add_parser("show", help="Print a team's current suggestions")
    show.add_argument("team_id")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    db = TeamDB(db_path=args.db)

    if args.command == "seed-sample":
        team = create_sample_team(db)
        print(json.dumps({"team_id": team.id, "slug": team.slug}))
        return 0

    if args.command == "show":
        suggestions = db.list_suggestions(args.team_id)
        print(json.dumps([s.to_dict() for s in suggestions], indent=2))
        return 0

    repository = SQLiteSuggestionRepository(db)
    try:
        result = generate_suggestions(args.team_id, repository, _parse_now(args.now))
    except TeamNotConfiguredError as exc:
        logger.error("Team not configured: %s", exc)
        print(json.dumps({"error": "team not configured", "detail": str(exc)}))
        return 2
    except (RepositoryError, SuggestionGenerationError) as exc:
        logger.error("Error in generate-suggestions: %s", exc)
        print(json.dumps({"error": str(exc)}))
        return 1

    payload = {
        "success": True,
        "suggestions": result.suggestion_count,
        "version": result.version,
        "data": [s.to_dict() for s in result.suggestions],
    }
    if not result.suggestions:
        payload["guidance"] = "No viable slot found; try lowering min_attendance_ratio."
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

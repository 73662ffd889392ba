"""
FairSlot — Data Models.

Teams, their members and weekly availability, the scheduling rules, and the
suggestions the engine produces. Blocks are expressed in the member's local
wall-clock time; suggestions carry absolute UTC instants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

CADENCES = ("weekly", "biweekly")
MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 180
MINUTES_PER_DAY = 1440


@dataclass(frozen=True)
class WorkingBlock:
    """A recurring weekly interval during which a member is reachable.

    day_of_week follows 0=Sunday … 6=Saturday.
    """

    day_of_week: int
    start_minute: int      # minutes from local midnight
    end_minute: int        # exclusive

    def __post_init__(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week out of range: {self.day_of_week}")
        if not 0 <= self.start_minute < MINUTES_PER_DAY:
            raise ValueError(f"start_minute out of range: {self.start_minute}")
        if not 0 < self.end_minute <= MINUTES_PER_DAY:
            raise ValueError(f"end_minute out of range: {self.end_minute}")
        if self.start_minute >= self.end_minute:
            raise ValueError(
                f"start_minute {self.start_minute} must be before end_minute {self.end_minute}"
            )


@dataclass(frozen=True)
class NoMeetingBlock(WorkingBlock):
    """A carve-out (e.g. lunch) during which a member is unreachable."""


@dataclass
class Team:
    """A scheduling team. default_timezone drives candidate generation."""

    id: str
    name: str
    default_timezone: str | None = None
    locale: str | None = None
    slug: str = ""


@dataclass
class Member:
    """A team member with a home timezone and weekly availability."""

    id: str
    team_id: str
    display_name: str
    timezone: str                  # IANA zone name, e.g. "Asia/Seoul"
    working_blocks: list[WorkingBlock] = field(default_factory=list)
    no_meeting_blocks: list[NoMeetingBlock] = field(default_factory=list)
    email: str | None = None


@dataclass
class Rules:
    """Team-wide scheduling rules (one row per team)."""

    duration_minutes: int = 60
    cadence: str = "weekly"               # informational only
    min_attendance_ratio: float = 0.6
    night_cap_per_week: int = 1
    prohibited_days: list[int] = field(default_factory=list)
    required_member_ids: list[str] = field(default_factory=list)
    rotation_enabled: bool = True

    def __post_init__(self) -> None:
        if not MIN_DURATION_MINUTES <= self.duration_minutes <= MAX_DURATION_MINUTES:
            raise ValueError(
                f"duration_minutes must be within [{MIN_DURATION_MINUTES}, "
                f"{MAX_DURATION_MINUTES}], got {self.duration_minutes}"
            )
        if self.cadence not in CADENCES:
            raise ValueError(f"Unknown cadence: {self.cadence!r}")
        if not 0.5 <= self.min_attendance_ratio <= 1.0:
            raise ValueError(
                f"min_attendance_ratio must be within [0.5, 1.0], got {self.min_attendance_ratio}"
            )
        if any(not 0 <= d <= 6 for d in self.prohibited_days):
            raise ValueError(f"prohibited_days out of range: {self.prohibited_days}")


@dataclass(frozen=True)
class Penalties:
    night_penalties: float = 0.0
    burden_penalties: float = 0.0
    adjacency_penalties: float = 0.0

    @property
    def total(self) -> float:
        return self.night_penalties + self.burden_penalties + self.adjacency_penalties


@dataclass(frozen=True)
class Suggestion:
    """One recommended meeting slot, as persisted and returned to callers."""

    starts_at_utc: datetime
    ends_at_utc: datetime
    attending_member_ids: tuple[str, ...]
    overlap_ratio: float
    fairness_score: float
    penalties: Penalties
    score: float
    version: int = 0

    def to_dict(self) -> dict:
        return {
            "starts_at_utc": self.starts_at_utc.isoformat(),
            "ends_at_utc": self.ends_at_utc.isoformat(),
            "attending_member_ids": list(self.attending_member_ids),
            "overlap_ratio": self.overlap_ratio,
            "fairness_score": self.fairness_score,
            "penalties": {
                "night_penalties": self.penalties.night_penalties,
                "burden_penalties": self.penalties.burden_penalties,
                "adjacency_penalties": self.penalties.adjacency_penalties,
            },
            "score": self.score,
            "version": self.version,
        }


@dataclass(frozen=True)
class HistoricalMeeting:
    """A previously accepted meeting, used as fairness input."""

    starts_at_utc: datetime
    attending_member_ids: tuple[str, ...]


@dataclass
class TeamSnapshot:
    """Everything one generation run reads from storage."""

    team: Team
    rules: Rules
    members: list[Member]
    history: list[HistoricalMeeting] = field(default_factory=list)


@dataclass
class GenerationResult:
    """Outcome of a generation run. An empty suggestion list is valid."""

    suggestion_count: int
    suggestions: list[Suggestion]
    version: int

"""Tests for fairslot.data.models — dataclass validation and serialization."""

from dataclasses import asdict
from datetime import datetime, timedelta, timezone

import pytest

from fairslot.data.models import NoMeetingBlock, Penalties, Rules, Suggestion, WorkingBlock


class TestBlocks:
    def test_valid_block(self):
        block = WorkingBlock(day_of_week=1, start_minute=540, end_minute=1020)
        assert block.day_of_week == 1

    def test_start_must_precede_end(self):
        with pytest.raises(ValueError):
            WorkingBlock(1, 600, 600)
        with pytest.raises(ValueError):
            NoMeetingBlock(1, 780, 720)

    def test_day_out_of_range(self):
        with pytest.raises(ValueError):
            WorkingBlock(7, 540, 1020)

    def test_minute_out_of_range(self):
        with pytest.raises(ValueError):
            WorkingBlock(1, -15, 60)
        with pytest.raises(ValueError):
            WorkingBlock(1, 60, 1500)


class TestRules:
    def test_defaults(self):
        rules = Rules()
        assert rules.cadence == "weekly"
        assert rules.prohibited_days == []
        assert rules.required_member_ids == []
        assert rules.rotation_enabled is True

    @pytest.mark.parametrize("duration", [10, 181])
    def test_duration_bounds(self, duration):
        with pytest.raises(ValueError):
            Rules(duration_minutes=duration)

    @pytest.mark.parametrize("ratio", [0.4, 1.01])
    def test_ratio_bounds(self, ratio):
        with pytest.raises(ValueError):
            Rules(min_attendance_ratio=ratio)

    def test_unknown_cadence(self):
        with pytest.raises(ValueError):
            Rules(cadence="daily")

    def test_prohibited_days_range(self):
        with pytest.raises(ValueError):
            Rules(prohibited_days=[7])


class TestSuggestion:
    def test_to_dict_shape(self):
        start = datetime(2026, 6, 1, 16, 0, tzinfo=timezone.utc)
        s = Suggestion(
            starts_at_utc=start,
            ends_at_utc=start + timedelta(minutes=45),
            attending_member_ids=("a", "b"),
            overlap_ratio=0.5,
            fairness_score=1.0,
            penalties=Penalties(night_penalties=0.1, adjacency_penalties=0.05),
            score=0.35,
            version=3,
        )
        d = s.to_dict()
        assert d["starts_at_utc"] == "2026-06-01T16:00:00+00:00"
        assert d["ends_at_utc"] == "2026-06-01T16:45:00+00:00"
        assert d["attending_member_ids"] == ["a", "b"]
        assert d["penalties"] == {
            "night_penalties": 0.1,
            "burden_penalties": 0.0,
            "adjacency_penalties": 0.05,
        }
        assert d["version"] == 3

    def test_penalty_total(self):
        p = Penalties(night_penalties=0.2, burden_penalties=0.1, adjacency_penalties=0.05)
        assert p.total == pytest.approx(0.35)

    def test_asdict(self):
        p = Penalties()
        assert asdict(p) == {
            "night_penalties": 0.0,
            "burden_penalties": 0.0,
            "adjacency_penalties": 0.0,
        }

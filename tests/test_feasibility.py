"""Tests for fairslot.core.feasibility — attendance filtering."""

from datetime import datetime, timedelta, timezone

from conftest import lunch_blocks, make_member, weekday_blocks
from fairslot.core.feasibility import (
    attending_members,
    evaluate_candidate,
    filter_feasible,
    resolve_member_zones,
)
from fairslot.data.models import Rules

UTC = timezone.utc
MONDAY_10_UTC = datetime(2026, 6, 1, 10, 0, tzinfo=UTC)


def _rules(**overrides) -> Rules:
    values = {"duration_minutes": 45, "min_attendance_ratio": 0.5}
    values.update(overrides)
    return Rules(**values)


class TestResolveMemberZones:
    def test_invalid_zone_maps_to_none(self, caplog):
        members = [make_member("ok", "UTC"), make_member("bad", "Not/AZone")]
        zones = resolve_member_zones(members)
        assert zones["ok"].key == "UTC"
        assert zones["bad"] is None
        assert "bad" in caplog.text


class TestAttendingMembers:
    def test_member_order_preserved(self):
        members = [make_member("b"), make_member("a"), make_member("c")]
        zones = resolve_member_zones(members)
        start = MONDAY_10_UTC
        assert attending_members(start, start + timedelta(minutes=45), members, zones) == [
            "b", "a", "c",
        ]

    def test_uses_each_members_local_time(self):
        members = [make_member("london", "Europe/London"), make_member("seoul", "Asia/Seoul")]
        zones = resolve_member_zones(members)
        # 08:00 UTC = 09:00 London (BST) = 17:00 Seoul
        start = datetime(2026, 6, 1, 8, 0, tzinfo=UTC)
        assert attending_members(start, start + timedelta(minutes=45), members, zones) == ["london"]

    def test_invalid_zone_member_never_attends(self):
        members = [make_member("ok"), make_member("bad", "Not/AZone")]
        zones = resolve_member_zones(members)
        start = MONDAY_10_UTC
        assert attending_members(start, start + timedelta(minutes=45), members, zones) == ["ok"]


class TestEvaluateCandidate:
    def test_overlap_ratio_is_exact(self):
        members = [make_member("a"), make_member("b"), make_member("c", working=[])]
        zones = resolve_member_zones(members)
        result = evaluate_candidate(MONDAY_10_UTC, members, _rules(), zones)
        assert result is not None
        assert result.overlap_ratio == 2 / 3
        assert result.attending_member_ids == ("a", "b")
        assert result.ends_at == MONDAY_10_UTC + timedelta(minutes=45)

    def test_rejects_below_min_ratio(self):
        members = [make_member("a"), make_member("b", working=[]), make_member("c", working=[])]
        zones = resolve_member_zones(members)
        assert evaluate_candidate(MONDAY_10_UTC, members, _rules(), zones) is None

    def test_ratio_equal_to_minimum_is_accepted(self):
        members = [make_member("a"), make_member("b", working=[])]
        zones = resolve_member_zones(members)
        result = evaluate_candidate(MONDAY_10_UTC, members, _rules(min_attendance_ratio=0.5), zones)
        assert result is not None
        assert result.overlap_ratio == 0.5

    def test_required_member_missing_rejects(self):
        members = [make_member("a"), make_member("b"), make_member("boss", working=[])]
        zones = resolve_member_zones(members)
        rules = _rules(required_member_ids=["boss"])
        assert evaluate_candidate(MONDAY_10_UTC, members, rules, zones) is None

    def test_required_member_present_accepts(self):
        members = [make_member("a"), make_member("boss")]
        zones = resolve_member_zones(members)
        rules = _rules(required_member_ids=["boss"])
        result = evaluate_candidate(MONDAY_10_UTC, members, rules, zones)
        assert result is not None
        assert set(rules.required_member_ids) <= set(result.attending_member_ids)

    def test_lunch_block_excludes_member(self):
        members = [make_member("a", no_meeting=lunch_blocks()), make_member("b")]
        zones = resolve_member_zones(members)
        noon = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)
        result = evaluate_candidate(noon, members, _rules(), zones)
        assert result is not None
        assert result.attending_member_ids == ("b",)

    def test_no_members(self):
        assert evaluate_candidate(MONDAY_10_UTC, [], _rules(), {}) is None


class TestFilterFeasible:
    def _hourly(self, count: int) -> list[datetime]:
        return [MONDAY_10_UTC + timedelta(hours=i) for i in range(count)]

    def test_filters_and_keeps_order(self):
        members = [make_member("a"), make_member("b")]
        candidates = self._hourly(10)  # 10:00 … 19:00 UTC
        feasible = filter_feasible(candidates, members, _rules(min_attendance_ratio=1.0))
        starts = [c.starts_at for c in feasible]
        # Working 09:00–17:00, 45-minute meetings: 10:00 … 16:00
        assert starts == self._hourly(7)

    def test_candidate_cap_limits_evaluation(self):
        members = [make_member("a")]
        candidates = self._hourly(7)
        feasible = filter_feasible(candidates, members, _rules(), candidate_cap=3)
        assert len(feasible) == 3
        assert feasible[-1].starts_at == MONDAY_10_UTC + timedelta(hours=2)

    def test_empty_team(self, caplog):
        assert filter_feasible(self._hourly(3), [], _rules()) == []
        assert "no members" in caplog.text

    def test_full_attendance_impossible_yields_empty(self):
        members = [
            make_member("la", "America/Los_Angeles"),
            make_member("utc", "UTC"),
            make_member("kolkata", "Asia/Kolkata"),
            make_member("seoul", "Asia/Seoul"),
        ]
        candidates = [MONDAY_10_UTC.replace(hour=0) + timedelta(minutes=15 * i) for i in range(96 * 5)]
        assert filter_feasible(candidates, members, _rules(min_attendance_ratio=1.0)) == []

    def test_zero_working_blocks_member_never_available(self):
        members = [make_member("a", working=weekday_blocks(0, 1439)), make_member("idle", working=[])]
        feasible = filter_feasible(self._hourly(5), members, _rules())
        assert feasible
        assert all("idle" not in c.attending_member_ids for c in feasible)

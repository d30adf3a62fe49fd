"""Tests for monthly meeting counts."""
from datetime import datetime, timezone

from performance.aggregator import (
    aggregate_month,
    meetings_in_month,
    outcome_breakdown,
    past_due_meetings,
)
from performance.periods import MonthWindow
from performance.records import MeetingRecord

JAN = MonthWindow(2026, 1)
FEB = MonthWindow(2026, 2)


def _dt(month, day, hour=10):
    return datetime(2026, month, day, hour, 0, tzinfo=timezone.utc)


def _meeting(id, **overrides):
    values = {
        "id": id,
        "client_id": "acme",
        "sdr_id": "alice",
        "booked_at": _dt(1, 5),
        "scheduled_at": _dt(1, 20),
    }
    values.update(overrides)
    return MeetingRecord(**values)


class TestAggregateMonth:
    def test_set_and_held_use_independent_anchors(self):
        # Booked in January, scheduled and held in February.
        meeting = _meeting(
            "m1",
            booked_at=_dt(1, 28),
            scheduled_at=_dt(2, 3),
            status="confirmed",
            held_at=_dt(2, 3),
        )
        jan = aggregate_month([meeting], JAN, sdr_id="alice")
        feb = aggregate_month([meeting], FEB, sdr_id="alice")

        assert (jan.meetings_set, jan.meetings_held) == (1, 0)
        assert (feb.meetings_set, feb.meetings_held) == (0, 1)

    def test_icp_rejection_drops_set_and_held_only(self):
        meeting = _meeting(
            "m1",
            status="confirmed",
            held_at=_dt(1, 20),
            icp_status="rejected",
        )
        counts = aggregate_month([meeting], JAN, sdr_id="alice")
        assert counts.meetings_set == 0
        assert counts.meetings_held == 0
        assert counts.confirmed_count == 1

    def test_status_counts(self):
        meetings = [
            _meeting("pending"),
            _meeting("confirmed", status="confirmed"),
            _meeting("no-show", no_show=True),
            _meeting("lost", no_longer_interested=True),
        ]
        counts = aggregate_month(meetings, JAN, sdr_id="alice")
        assert counts.meetings_set == 4
        assert counts.pending_count == 2
        assert counts.confirmed_count == 1
        assert counts.no_show_count == 1
        assert counts.not_interested_count == 1

    def test_no_show_with_held_at_is_not_held(self):
        meeting = _meeting("m1", held_at=_dt(1, 20), no_show=True)
        assert aggregate_month([meeting], JAN).meetings_held == 0

    def test_scope_by_rep_and_client(self):
        meetings = [
            _meeting("a1"),
            _meeting("a2", client_id="globex"),
            _meeting("b1", sdr_id="bob"),
            _meeting("direct", sdr_id=None),
        ]
        assert aggregate_month(meetings, JAN).meetings_set == 4
        assert aggregate_month(meetings, JAN, sdr_id="alice").meetings_set == 2
        assert aggregate_month(meetings, JAN, sdr_id="alice", client_id="globex").meetings_set == 1
        assert aggregate_month(meetings, JAN, client_id="acme").meetings_set == 3

    def test_meeting_without_booked_at_is_never_set(self):
        meeting = _meeting("m1", booked_at=None)
        assert aggregate_month([meeting], JAN).meetings_set == 0

    def test_empty_input(self):
        counts = aggregate_month([], JAN, sdr_id="alice")
        assert counts.period == "2026-01"
        assert counts.meetings_set == 0
        assert counts.show_rate == 0.0


class TestOutcomeBreakdown:
    def test_each_meeting_lands_in_one_bucket(self):
        meetings = [
            _meeting("held", status="confirmed", held_at=_dt(1, 20), no_longer_interested=True),
            _meeting("no-show", no_show=True, no_longer_interested=True),
            _meeting("lost", no_longer_interested=True),
            _meeting("confirmed", status="confirmed"),
            _meeting("pending"),
        ]
        breakdown = outcome_breakdown(meetings, JAN, sdr_id="alice")
        assert breakdown.held == 1
        assert breakdown.no_show == 1
        assert breakdown.not_interested == 1
        assert breakdown.confirmed == 1
        assert breakdown.pending == 1
        assert breakdown.total == 5
        assert breakdown.percentages()["held"] == 20.0

    def test_empty_percentages_are_zero(self):
        breakdown = outcome_breakdown([], JAN)
        assert breakdown.percentages() == {
            "held": 0.0,
            "no_show": 0.0,
            "not_interested": 0.0,
            "confirmed": 0.0,
            "pending": 0.0,
        }


class TestPastDue:
    def test_sorted_by_slot(self):
        now = _dt(2, 1)
        meetings = [
            _meeting("late", scheduled_at=_dt(1, 25)),
            _meeting("early", scheduled_at=_dt(1, 10)),
            _meeting("future", scheduled_at=_dt(2, 10)),
            _meeting("held", scheduled_at=_dt(1, 12), held_at=_dt(1, 12)),
        ]
        assert [m.id for m in past_due_meetings(meetings, now)] == ["early", "late"]


class TestMeetingsInMonth:
    def test_scheduled_or_held_in_window(self):
        meetings = [
            _meeting("jan", scheduled_at=_dt(1, 20)),
            _meeting("feb", scheduled_at=_dt(2, 2)),
            _meeting("moved", scheduled_at=_dt(1, 31), held_at=_dt(2, 1)),
        ]
        assert [m.id for m in meetings_in_month(meetings, FEB)] == ["moved", "feb"]

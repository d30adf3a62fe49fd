"""Tests for quota resolution from assignments."""
from datetime import date

import pytest

from performance.periods import MonthWindow
from performance.quotas import (
    calculated_held_goal,
    calculated_set_goal,
    client_quota,
    effective_commission_goal,
    progress_percentage,
    resolve_quota,
)
from performance.records import AssignmentRecord

MARCH = MonthWindow(2026, 3)


def _assignment(client_id, set_target, hold_target, **overrides):
    values = {
        "sdr_id": "alice",
        "client_id": client_id,
        "month": date(2026, 3, 1),
        "monthly_set_target": set_target,
        "monthly_hold_target": hold_target,
    }
    values.update(overrides)
    return AssignmentRecord(**values)


class TestProgressPercentage:
    def test_zero_goal_is_zero(self):
        assert progress_percentage(5, 0) == 0.0

    def test_can_exceed_hundred(self):
        assert progress_percentage(15, 10) == 150.0


class TestGoals:
    def test_sum_of_active_assignments_for_month(self):
        assignments = [
            _assignment("acme", 15, 10),
            _assignment("globex", 8, 5),
            _assignment("initech", 4, 3, is_active=False),
            _assignment("acme", 20, 12, month=date(2026, 2, 1)),
            _assignment("acme", 9, 9, sdr_id="bob"),
        ]
        assert calculated_held_goal(assignments, "alice", MARCH) == 15
        assert calculated_set_goal(assignments, "alice", MARCH) == 23

    def test_duplicate_rows_are_summed(self):
        assignments = [_assignment("acme", 5, 4), _assignment("acme", 5, 4)]
        assert client_quota(assignments, "alice", "acme", MARCH).held_goal == 8

    def test_no_assignment_means_zero_goal(self):
        assert calculated_held_goal([], "alice", MARCH) == 0


class TestOverride:
    def test_override_replaces_commission_goal_only(self):
        assignments = [_assignment("acme", 15, 10)]
        quota = resolve_quota(assignments, "alice", MARCH, goal_override=25)
        assert quota.held_goal == 10
        assert quota.commission_goal == 25
        assert quota.has_override is True

    def test_zero_override_is_honoured(self):
        assignments = [_assignment("acme", 15, 10)]
        assert effective_commission_goal(assignments, "alice", MARCH, goal_override=0) == 0

    @pytest.mark.parametrize("override, expected", [(None, 10), (7, 7)])
    def test_effective_goal(self, override, expected):
        assignments = [_assignment("acme", 15, 10)]
        assert effective_commission_goal(assignments, "alice", MARCH, override) == expected

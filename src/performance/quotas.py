"""Quota denominators derived from assignment records.

Assignments are treated as a multiset per (rep, client, month): duplicate
rows are summed, never deduplicated. Inactive assignments never contribute
to a quota, even though their historical meetings still count as actuals.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from performance.periods import MonthWindow
from performance.records import AssignmentRecord


def progress_percentage(count: int, goal: int) -> float:
    """``count / goal`` as a percentage; a goal of zero or less yields 0.0."""
    if goal <= 0:
        return 0.0
    return count * 100 / goal


def active_assignments(
    assignments: Iterable[AssignmentRecord],
    window: MonthWindow,
    sdr_id: str | None = None,
    client_id: str | None = None,
) -> list[AssignmentRecord]:
    return [
        a for a in assignments
        if a.is_active
        and window.matches_month(a.month)
        and (sdr_id is None or a.sdr_id == sdr_id)
        and (client_id is None or a.client_id == client_id)
    ]


def calculated_held_goal(
    assignments: Iterable[AssignmentRecord],
    sdr_id: str,
    window: MonthWindow,
) -> int:
    return sum(a.monthly_hold_target for a in active_assignments(assignments, window, sdr_id))


def calculated_set_goal(
    assignments: Iterable[AssignmentRecord],
    sdr_id: str,
    window: MonthWindow,
) -> int:
    return sum(a.monthly_set_target for a in active_assignments(assignments, window, sdr_id))


def effective_commission_goal(
    assignments: Iterable[AssignmentRecord],
    sdr_id: str,
    window: MonthWindow,
    goal_override: int | None = None,
) -> int:
    """The denominator used for commission math.

    A manual override replaces the calculated held goal here and only here;
    dashboard progress keeps :func:`calculated_held_goal`.
    """
    if goal_override is not None:
        return goal_override
    return calculated_held_goal(assignments, sdr_id, window)


@dataclass(frozen=True)
class ClientQuota:
    client_id: str
    set_goal: int = 0
    held_goal: int = 0


def client_quota(
    assignments: Iterable[AssignmentRecord],
    sdr_id: str,
    client_id: str,
    window: MonthWindow,
) -> ClientQuota:
    rows = active_assignments(assignments, window, sdr_id, client_id)
    return ClientQuota(
        client_id=client_id,
        set_goal=sum(a.monthly_set_target for a in rows),
        held_goal=sum(a.monthly_hold_target for a in rows),
    )


@dataclass(frozen=True)
class QuotaSummary:
    set_goal: int
    held_goal: int
    commission_goal: int
    has_override: bool


def resolve_quota(
    assignments: Iterable[AssignmentRecord],
    sdr_id: str,
    window: MonthWindow,
    goal_override: int | None = None,
) -> QuotaSummary:
    assignments = tuple(assignments)
    held_goal = calculated_held_goal(assignments, sdr_id, window)
    return QuotaSummary(
        set_goal=calculated_set_goal(assignments, sdr_id, window),
        held_goal=held_goal,
        commission_goal=goal_override if goal_override is not None else held_goal,
        has_override=goal_override is not None,
    )

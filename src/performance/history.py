"""Trailing-month roll-up of quota progress and commission.

Each month is recomputed from scratch with that month's own assignments and
meetings; nothing is carried from one month to the next, so correcting one
month never moves another.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from performance.aggregator import aggregate_month
from performance.calculator import commission
from performance.periods import MonthWindow, trailing_windows
from performance.quotas import progress_percentage, resolve_quota
from performance.records import RecordSnapshot

DEFAULT_HISTORY_MONTHS = 12


@dataclass(frozen=True)
class HistoryPoint:
    period: str
    held_goal: int
    calculated_held_goal: int
    held_meetings: int
    meetings_set: int
    progress_percentage: float
    commission: Decimal


def month_snapshot(snapshot: RecordSnapshot, sdr_id: str, window: MonthWindow) -> HistoryPoint:
    counts = aggregate_month(snapshot.meetings, window, sdr_id=sdr_id)
    quota = resolve_quota(
        snapshot.assignments,
        sdr_id,
        window,
        goal_override=snapshot.goal_override_for(sdr_id),
    )
    return HistoryPoint(
        period=window.period,
        held_goal=quota.commission_goal,
        calculated_held_goal=quota.held_goal,
        held_meetings=counts.meetings_held,
        meetings_set=counts.meetings_set,
        progress_percentage=progress_percentage(counts.meetings_held, quota.commission_goal),
        commission=commission(
            counts.meetings_held,
            quota.commission_goal,
            snapshot.compensation_for(sdr_id),
        ),
    )


def build_history(
    snapshot: RecordSnapshot,
    sdr_id: str,
    now: datetime,
    months: int = DEFAULT_HISTORY_MONTHS,
) -> list[HistoryPoint]:
    """One point per month for the ``months`` months ending now, oldest first."""
    return [month_snapshot(snapshot, sdr_id, window) for window in trailing_windows(now, months)]

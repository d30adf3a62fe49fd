"""Monthly meeting counts for a rep, a client or a rep x client pair.

Anchors:
- "set" style counts (set / confirmed / pending / no-show) use ``booked_at``,
  the month in which the rep did the booking work;
- "held" uses ``scheduled_at``, the month whose quota the meeting fulfilled.

The two windows are independent: a meeting booked in January and held in
February counts as set in January and held in February, nothing else.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from performance.classifier import (
    MeetingState,
    is_held,
    is_icp_qualified,
    is_no_show,
    is_past_due_unresolved,
    is_pending_unresolved,
    lifecycle_state,
)
from performance.periods import MonthWindow, as_utc
from performance.quotas import progress_percentage
from performance.records import STATUS_CONFIRMED, MeetingRecord


def filter_scope(
    meetings: Iterable[MeetingRecord],
    sdr_id: str | None = None,
    client_id: str | None = None,
) -> list[MeetingRecord]:
    """Restrict ``meetings`` to one rep and/or one client (``None`` = any)."""
    return [
        m for m in meetings
        if (sdr_id is None or m.sdr_id == sdr_id)
        and (client_id is None or m.client_id == client_id)
    ]


@dataclass(frozen=True)
class MonthlyCounts:
    period: str
    meetings_set: int = 0
    meetings_held: int = 0
    confirmed_count: int = 0
    pending_count: int = 0
    no_show_count: int = 0
    not_interested_count: int = 0

    @property
    def show_rate(self) -> float:
        """Held meetings as a percentage of meetings set (0 when none set)."""
        return progress_percentage(self.meetings_held, self.meetings_set)


def aggregate_month(
    meetings: Iterable[MeetingRecord],
    window: MonthWindow,
    sdr_id: str | None = None,
    client_id: str | None = None,
) -> MonthlyCounts:
    meetings_set = meetings_held = 0
    confirmed = pending = no_shows = not_interested = 0

    for meeting in filter_scope(meetings, sdr_id, client_id):
        if window.contains(meeting.scheduled_at) and is_held(meeting) and is_icp_qualified(meeting):
            meetings_held += 1

        if not window.contains(meeting.booked_at):
            continue
        if is_icp_qualified(meeting):
            meetings_set += 1
        if meeting.status == STATUS_CONFIRMED and not meeting.no_show:
            confirmed += 1
        if is_pending_unresolved(meeting):
            pending += 1
        if is_no_show(meeting):
            no_shows += 1
        if meeting.no_longer_interested:
            not_interested += 1

    return MonthlyCounts(
        period=window.period,
        meetings_set=meetings_set,
        meetings_held=meetings_held,
        confirmed_count=confirmed,
        pending_count=pending,
        no_show_count=no_shows,
        not_interested_count=not_interested,
    )


@dataclass(frozen=True)
class OutcomeBreakdown:
    """Mutually exclusive outcome buckets for the meetings set in a month."""

    held: int = 0
    no_show: int = 0
    not_interested: int = 0
    confirmed: int = 0
    pending: int = 0

    @property
    def total(self) -> int:
        return self.held + self.no_show + self.not_interested + self.confirmed + self.pending

    def percentages(self) -> dict[str, float]:
        total = self.total
        return {
            "held": progress_percentage(self.held, total),
            "no_show": progress_percentage(self.no_show, total),
            "not_interested": progress_percentage(self.not_interested, total),
            "confirmed": progress_percentage(self.confirmed, total),
            "pending": progress_percentage(self.pending, total),
        }


def outcome_breakdown(
    meetings: Iterable[MeetingRecord],
    window: MonthWindow,
    sdr_id: str | None = None,
    client_id: str | None = None,
) -> OutcomeBreakdown:
    """Bucket each set-window meeting exactly once.

    Precedence: held > no-show > not interested > confirmed > pending, so a
    no-show that was also flagged not interested is only counted as a no-show.
    """
    buckets = {"held": 0, "no_show": 0, "not_interested": 0, "confirmed": 0, "pending": 0}
    for meeting in filter_scope(meetings, sdr_id, client_id):
        if not window.contains(meeting.booked_at):
            continue
        state = lifecycle_state(meeting)
        if state is MeetingState.HELD:
            buckets["held"] += 1
        elif state is MeetingState.NO_SHOW:
            buckets["no_show"] += 1
        elif meeting.no_longer_interested:
            buckets["not_interested"] += 1
        elif state is MeetingState.CONFIRMED:
            buckets["confirmed"] += 1
        else:
            buckets["pending"] += 1
    return OutcomeBreakdown(**buckets)


def past_due_meetings(
    meetings: Iterable[MeetingRecord],
    now: datetime,
    sdr_id: str | None = None,
    client_id: str | None = None,
) -> list[MeetingRecord]:
    """Meetings whose slot has passed without any outcome, oldest first."""
    due = [
        m for m in filter_scope(meetings, sdr_id, client_id)
        if is_past_due_unresolved(m, now)
    ]
    return sorted(due, key=lambda m: (as_utc(m.scheduled_at), m.id))


def meetings_in_month(
    meetings: Iterable[MeetingRecord],
    window: MonthWindow,
    sdr_id: str | None = None,
    client_id: str | None = None,
) -> list[MeetingRecord]:
    """Meetings scheduled or held in ``window``, ordered by slot."""
    selected = [
        m for m in filter_scope(meetings, sdr_id, client_id)
        if window.contains(m.scheduled_at) or window.contains(m.held_at)
    ]
    return sorted(selected, key=lambda m: (as_utc(m.scheduled_at or m.held_at), m.id))

"""Lifecycle predicates for a single meeting record.

Storage only keeps ``status`` plus the ``no_show`` / ``no_longer_interested``
flags and the ``held_at`` timestamp; the display state is derived here.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from performance.periods import as_utc
from performance.records import STATUS_CONFIRMED, STATUS_PENDING, MeetingRecord

# Synonyms for a prospect rejected at ICP review.
DISQUALIFIED_ICP_STATUSES = frozenset({"not_qualified", "rejected", "denied"})


class MeetingState(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    HELD = "held"
    NO_SHOW = "no_show"


def is_held(meeting: MeetingRecord) -> bool:
    return meeting.held_at is not None and not meeting.no_show


def is_icp_qualified(meeting: MeetingRecord) -> bool:
    """Disqualification is opt-in: missing or unknown statuses qualify."""
    status = meeting.icp_status
    if status is None:
        return True
    return status.strip().lower() not in DISQUALIFIED_ICP_STATUSES


def is_pending_unresolved(meeting: MeetingRecord) -> bool:
    return (
        meeting.status == STATUS_PENDING
        and not meeting.no_show
        and meeting.held_at is None
    )


def is_no_show(meeting: MeetingRecord) -> bool:
    return bool(meeting.no_show)


def is_past_due_unresolved(meeting: MeetingRecord, now: datetime) -> bool:
    """Scheduled in the past but never resolved as held, no-show or lost."""
    scheduled_at = as_utc(meeting.scheduled_at)
    if scheduled_at is None:
        return False
    return (
        scheduled_at < as_utc(now)
        and meeting.status == STATUS_PENDING
        and not is_held(meeting)
        and not meeting.no_show
        and not meeting.no_longer_interested
    )


def lifecycle_state(meeting: MeetingRecord) -> MeetingState:
    if meeting.no_show:
        return MeetingState.NO_SHOW
    if is_held(meeting):
        return MeetingState.HELD
    if meeting.status == STATUS_CONFIRMED:
        return MeetingState.CONFIRMED
    return MeetingState.PENDING


@dataclass(frozen=True)
class MeetingFlags:
    state: MeetingState
    held: bool
    icp_qualified: bool
    pending_unresolved: bool
    no_show: bool
    past_due_unresolved: bool
    not_interested: bool


def classify(meeting: MeetingRecord, now: datetime) -> MeetingFlags:
    return MeetingFlags(
        state=lifecycle_state(meeting),
        held=is_held(meeting),
        icp_qualified=is_icp_qualified(meeting),
        pending_unresolved=is_pending_unresolved(meeting),
        no_show=is_no_show(meeting),
        past_due_unresolved=is_past_due_unresolved(meeting, now),
        not_interested=bool(meeting.no_longer_interested),
    )

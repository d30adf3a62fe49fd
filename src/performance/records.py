"""Immutable input records consumed by the performance engine.

The engine never touches the ORM: :class:`performance.engine.PerformanceEngine`
converts model rows into these records once, inside a single transaction,
and every calculation afterwards works on that snapshot.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Mapping

PER_MEETING = "per_meeting"
GOAL_BASED = "goal_based"

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"


@dataclass(frozen=True)
class MeetingRecord:
    id: str
    client_id: str
    sdr_id: str | None = None
    booked_at: datetime | None = None
    scheduled_at: datetime | None = None
    status: str = STATUS_PENDING
    confirmed_at: datetime | None = None
    held_at: datetime | None = None
    no_show: bool = False
    no_longer_interested: bool = False
    icp_status: str | None = None


@dataclass(frozen=True)
class AssignmentRecord:
    sdr_id: str
    client_id: str
    month: date
    monthly_set_target: int = 0
    monthly_hold_target: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class MeetingRates:
    booked: Decimal = Decimal("0")
    held: Decimal = Decimal("0")


@dataclass(frozen=True)
class GoalTier:
    percentage: int
    bonus: Decimal


@dataclass(frozen=True)
class CompensationRecord:
    commission_type: str = PER_MEETING
    meeting_rates: MeetingRates = field(default_factory=MeetingRates)
    goal_tiers: tuple[GoalTier, ...] = ()


# Substituted whenever a rep has no compensation structure.
ZERO_COMPENSATION = CompensationRecord(
    commission_type=PER_MEETING,
    meeting_rates=MeetingRates(),
    goal_tiers=(),
)


@dataclass(frozen=True)
class RecordSnapshot:
    """Point-in-time view of one agency's records."""

    meetings: tuple[MeetingRecord, ...] = ()
    assignments: tuple[AssignmentRecord, ...] = ()
    compensation: Mapping[str, CompensationRecord] = field(default_factory=dict)
    goal_overrides: Mapping[str, int] = field(default_factory=dict)

    def compensation_for(self, sdr_id: str) -> CompensationRecord:
        return self.compensation.get(sdr_id, ZERO_COMPENSATION)

    def goal_override_for(self, sdr_id: str) -> int | None:
        return self.goal_overrides.get(sdr_id)

    def sdr_ids(self) -> list[str]:
        """Every rep referenced by a meeting or an assignment, sorted."""
        ids = {m.sdr_id for m in self.meetings if m.sdr_id}
        ids.update(a.sdr_id for a in self.assignments)
        return sorted(ids)

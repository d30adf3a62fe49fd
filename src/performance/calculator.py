"""Commission calculation.

Pure functions only: the same call backs the live commission figure, the
what-if calculator (hypothetical held count) and each month of the
historical roll-up (that month's own goal).
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from performance.records import (
    GOAL_BASED,
    CompensationRecord,
    GoalTier,
    MeetingRates,
)

ZERO = Decimal("0")


def percentage_achieved(held_count: int, held_goal: int) -> Decimal:
    """Exact ``held / goal * 100``; 0 when there is no goal."""
    if held_goal <= 0:
        return ZERO
    return Decimal(held_count) * 100 / Decimal(held_goal)


def per_meeting_commission(held_count: int, held_goal: int, rates: MeetingRates) -> Decimal:
    """Base rate on every meeting, plus the held rate on meetings above goal only."""
    booked = Decimal(rates.booked)
    if held_goal <= 0 or held_count <= held_goal:
        return held_count * booked
    overage = held_count - held_goal
    return held_goal * booked + overage * (booked + Decimal(rates.held))


def sorted_tiers(tiers: Iterable[GoalTier]) -> tuple[GoalTier, ...]:
    """Tiers by percentage descending; ties keep their configured order."""
    return tuple(sorted(tiers, key=lambda t: t.percentage, reverse=True))


def goal_based_commission(held_count: int, held_goal: int, tiers: Iterable[GoalTier]) -> Decimal:
    """Bonus of the highest tier whose percentage does not exceed achievement."""
    achieved = percentage_achieved(held_count, held_goal)
    for tier in sorted_tiers(tiers):
        if tier.percentage <= achieved:
            return Decimal(tier.bonus)
    return ZERO


def commission(held_count: int, held_goal: int, structure: CompensationRecord) -> Decimal:
    if structure.commission_type == GOAL_BASED:
        return goal_based_commission(held_count, held_goal, structure.goal_tiers)
    return per_meeting_commission(held_count, held_goal, structure.meeting_rates)


def _target_meetings(percentage: int, held_goal: int) -> int:
    """Smallest meeting count reaching ``percentage`` of ``held_goal``."""
    return -(-percentage * held_goal // 100)


@dataclass(frozen=True)
class TierTarget:
    percentage: int
    bonus: Decimal
    target_meetings: int
    achieved: bool


def tier_targets(held_count: int, held_goal: int, tiers: Iterable[GoalTier]) -> list[TierTarget]:
    """Meetings required for every tier, highest tier first."""
    achieved = percentage_achieved(held_count, held_goal)
    return [
        TierTarget(
            percentage=tier.percentage,
            bonus=Decimal(tier.bonus),
            target_meetings=_target_meetings(tier.percentage, held_goal),
            achieved=held_goal > 0 and tier.percentage <= achieved,
        )
        for tier in sorted_tiers(tiers)
    ]


@dataclass(frozen=True)
class NextTier:
    percentage: int
    bonus: Decimal
    target_meetings: int
    meetings_needed: int


def next_tier(held_count: int, held_goal: int, tiers: Iterable[GoalTier]) -> NextTier | None:
    """Lowest tier not reached yet, or ``None`` (no goal, or every tier reached)."""
    if held_goal <= 0:
        return None
    achieved = percentage_achieved(held_count, held_goal)
    for tier in reversed(sorted_tiers(tiers)):
        if tier.percentage > achieved:
            target = _target_meetings(tier.percentage, held_goal)
            return NextTier(
                percentage=tier.percentage,
                bonus=Decimal(tier.bonus),
                target_meetings=target,
                meetings_needed=max(0, target - held_count),
            )
    return None

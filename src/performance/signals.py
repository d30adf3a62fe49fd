"""Signals: trigger performance recomputation on meeting/assignment/pay plan changes."""
from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver
from django.utils import timezone

from performance.periods import as_utc

logger = logging.getLogger(__name__)


def _get_period(dt) -> str:
    if dt is None:
        dt = timezone.now()
    return as_utc(dt).strftime("%Y-%m")


def _recompute_now(*, agency_id, sdr_id, period: str) -> None:
    """Best-effort local recompute for immediate dashboard consistency."""
    from performance.engine import PerformanceEngine

    engine = PerformanceEngine(agency_id=str(agency_id))
    engine.compute_for_sdr(
        sdr_id=str(sdr_id),
        period=period,
        trigger="SIGNAL",
    )


def _queue_recompute(*, agency_id, sdr_id, period: str, sync_recompute: bool = True) -> None:
    def _dispatch() -> None:
        queued = False
        try:
            from performance.tasks import recompute_rep_month

            recompute_rep_month.delay(
                agency_id=str(agency_id),
                sdr_id=str(sdr_id),
                period=period,
            )
            queued = True
        except Exception as exc:
            logger.warning("performance async dispatch failed: %s", exc, exc_info=True)

        if sync_recompute:
            try:
                _recompute_now(agency_id=agency_id, sdr_id=sdr_id, period=period)
            except Exception as exc:
                # Never let a signal crash a business transaction.
                level = logger.warning if queued else logger.error
                level("performance sync recompute failed: %s", exc, exc_info=True)

    # Queue after DB commit so the worker reads committed meeting state.
    try:
        transaction.on_commit(_dispatch)
    except Exception:
        _dispatch()


def _queue_for_sdr(sdr_id, periods, agency_id=None) -> None:
    if not sdr_id:
        return
    if agency_id is None:
        from accounts.models import User

        agency_id = (
            User.objects.filter(pk=sdr_id).values_list("agency_id", flat=True).first()
        )
    if not agency_id:
        return
    sync_recompute = getattr(settings, "PERFORMANCE_SYNC_RECOMPUTE", True)
    for period in sorted(set(periods)):
        _queue_recompute(
            agency_id=agency_id,
            sdr_id=sdr_id,
            period=period,
            sync_recompute=sync_recompute,
        )


def _meeting_periods(sdr_id, booked_at, scheduled_at) -> set[tuple]:
    # "Set" counts follow booked_at, "held" counts follow scheduled_at.
    if not sdr_id:
        return set()
    return {
        (sdr_id, _get_period(booked_at)),
        (sdr_id, _get_period(scheduled_at)),
    }


def _queue_meeting(instance, extra: set[tuple] = frozenset()) -> None:
    targets = _meeting_periods(instance.sdr_id, instance.booked_at, instance.scheduled_at)
    targets |= set(extra)
    by_sdr: dict = {}
    for sdr_id, period in targets:
        by_sdr.setdefault(sdr_id, set()).add(period)
    for sdr_id, periods in by_sdr.items():
        _queue_for_sdr(
            sdr_id,
            periods,
            agency_id=instance.agency_id if sdr_id == instance.sdr_id else None,
        )


def _open_periods(sdr_id) -> set[str]:
    """Current month plus every non-final month already computed for the SDR."""
    from performance.models import MonthlyPerformanceSnapshot

    periods = set(
        MonthlyPerformanceSnapshot.objects.filter(
            sdr_id=sdr_id,
            is_final=False,
        ).values_list("period", flat=True)
    )
    periods.add(_get_period(None))
    return periods


# ----------------------------------------------------------------------
# Meetings
# ----------------------------------------------------------------------

@receiver(pre_save, sender="meetings.Meeting")
def on_meeting_pre_save(sender, instance, **kwargs):
    """Capture previous owner and dates so moved meetings refresh both months."""
    instance._previous_periods = set()
    if not getattr(instance, "pk", None):
        return
    previous = (
        sender.objects.filter(pk=instance.pk)
        .only("sdr", "booked_at", "scheduled_at")
        .first()
    )
    if previous is not None:
        instance._previous_periods = _meeting_periods(
            previous.sdr_id, previous.booked_at, previous.scheduled_at,
        )


@receiver(post_save, sender="meetings.Meeting")
def on_meeting_saved(sender, instance, **kwargs):
    _queue_meeting(instance, getattr(instance, "_previous_periods", set()))


@receiver(post_delete, sender="meetings.Meeting")
def on_meeting_deleted(sender, instance, **kwargs):
    _queue_meeting(instance)


# ----------------------------------------------------------------------
# Assignments
# ----------------------------------------------------------------------

@receiver(post_save, sender="meetings.Assignment")
def on_assignment_saved(sender, instance, **kwargs):
    _queue_for_sdr(
        instance.sdr_id,
        {instance.month.strftime("%Y-%m")},
        agency_id=instance.agency_id,
    )


@receiver(post_delete, sender="meetings.Assignment")
def on_assignment_deleted(sender, instance, **kwargs):
    _queue_for_sdr(
        instance.sdr_id,
        {instance.month.strftime("%Y-%m")},
        agency_id=instance.agency_id,
    )


# ----------------------------------------------------------------------
# Compensation
# ----------------------------------------------------------------------

@receiver(post_save, sender="performance.CompensationStructure")
@receiver(post_delete, sender="performance.CompensationStructure")
@receiver(post_save, sender="performance.CommissionGoalOverride")
@receiver(post_delete, sender="performance.CommissionGoalOverride")
def on_pay_plan_changed(sender, instance, **kwargs):
    # Pay plans are not time-versioned: every open month is affected.
    _queue_for_sdr(instance.sdr_id, _open_periods(instance.sdr_id))


@receiver(post_save, sender="performance.CommissionTier")
@receiver(post_delete, sender="performance.CommissionTier")
def on_tier_changed(sender, instance, **kwargs):
    from performance.models import CompensationStructure

    # The parent may already be gone during a cascade delete.
    sdr_id = (
        CompensationStructure.objects.filter(pk=instance.structure_id)
        .values_list("sdr_id", flat=True)
        .first()
    )
    if sdr_id is None:
        return
    _queue_for_sdr(sdr_id, _open_periods(sdr_id))

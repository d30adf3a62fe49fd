"""Celery tasks for the performance module."""
from __future__ import annotations

import logging

from celery import shared_task
from django.utils import timezone

from performance.periods import resolve_month_window

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def recompute_rep_month(self, *, agency_id: str, sdr_id: str, period: str):
    """Recompute MonthlyPerformanceSnapshot for a single SDR/period."""
    try:
        from performance.engine import PerformanceEngine
        engine = PerformanceEngine(agency_id=agency_id)
        result = engine.compute_for_sdr(
            sdr_id=sdr_id,
            period=period,
            trigger="SIGNAL",
        )
    except Exception as exc:
        logger.exception("recompute_rep_month failed: %s", exc)
        raise self.retry(exc=exc)

    if result is None:
        # Lock not acquired, another worker holds this row.
        raise self.retry(countdown=5)
    logger.info("Recomputed performance for sdr=%s period=%s", sdr_id, period)


@shared_task
def recompute_agency_month(*, agency_id: str, period: str, trigger: str = "SCHEDULED"):
    """Recompute snapshots for ALL active SDRs of an agency for a given period."""
    from performance.engine import PerformanceEngine

    engine = PerformanceEngine(agency_id=agency_id)
    sdr_ids = engine.active_sdr_ids()
    for sdr_id in sdr_ids:
        engine.compute_for_sdr(sdr_id=sdr_id, period=period, trigger=trigger)
    logger.info(
        "Recomputed agency month agency=%s period=%s (%d sdrs)",
        agency_id,
        period,
        len(sdr_ids),
    )
    return len(sdr_ids)


@shared_task
def close_month_snapshots():
    """
    Scheduled daily (Celery Beat). Only runs logic on the 1st of each month.
    Recompute the previous month one last time and mark it final.
    """
    from agencies.models import Agency
    from performance.engine import PerformanceEngine

    now = timezone.now()
    if now.day != 1:
        logger.debug("close_month_snapshots: skipping (today is day %d)", now.day)
        return 0

    period = resolve_month_window(now).previous().period
    closed = 0
    for agency_id in Agency.objects.filter(is_active=True).values_list("id", flat=True):
        closed += PerformanceEngine(agency_id=str(agency_id)).finalize_period(period)
    logger.info("Closed %d performance snapshots for period %s", closed, period)
    return closed


@shared_task
def refresh_current_month():
    """
    Run every hour (Celery Beat).
    Refresh current-month snapshots for all active agencies.
    """
    from agencies.models import Agency

    period = resolve_month_window(timezone.now()).period
    agencies = list(Agency.objects.filter(is_active=True).values_list("id", flat=True))
    for agency_id in agencies:
        try:
            recompute_agency_month(agency_id=str(agency_id), period=period)
        except Exception as exc:
            logger.warning("Performance refresh failed agency=%s: %s", agency_id, exc)

    logger.info("Refreshed performance for %d agencies (period=%s)", len(agencies), period)

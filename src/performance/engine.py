"""Performance calculation engine for SDR quotas & commissions.

Core design principles:
- One atomic read builds a RecordSnapshot; every figure afterwards is
  computed by the pure modules (classifier, aggregator, quotas, calculator)
- PostgreSQL advisory locks serialize concurrent recomputes of one row
- JSONB compensation_snapshot freezes rates/tiers at computation time
- Finalized months are never recomputed
"""
from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from django.db import connection, transaction
from django.utils import timezone

from performance.aggregator import (
    MonthlyCounts,
    OutcomeBreakdown,
    aggregate_month,
    outcome_breakdown,
    past_due_meetings,
)
from performance.calculator import (
    NextTier,
    TierTarget,
    commission,
    next_tier,
    tier_targets,
)
from performance.history import HistoryPoint, build_history
from performance.periods import (
    MonthWindow,
    month_progress,
    resolve_month_window,
    window_for_period,
)
from performance.quotas import (
    QuotaSummary,
    active_assignments,
    client_quota,
    progress_percentage,
    resolve_quota,
)
from performance.records import (
    AssignmentRecord,
    CompensationRecord,
    GoalTier,
    MeetingRates,
    MeetingRecord,
    RecordSnapshot,
)

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Model -> record conversion
# ----------------------------------------------------------------------

def meeting_record(meeting) -> MeetingRecord:
    return MeetingRecord(
        id=str(meeting.pk),
        client_id=str(meeting.client_id),
        sdr_id=str(meeting.sdr_id) if meeting.sdr_id else None,
        booked_at=meeting.booked_at,
        scheduled_at=meeting.scheduled_at,
        status=meeting.status,
        confirmed_at=meeting.confirmed_at,
        held_at=meeting.held_at,
        no_show=meeting.no_show,
        no_longer_interested=meeting.no_longer_interested,
        icp_status=meeting.icp_status,
    )


def assignment_record(assignment) -> AssignmentRecord:
    return AssignmentRecord(
        sdr_id=str(assignment.sdr_id),
        client_id=str(assignment.client_id),
        month=assignment.month,
        monthly_set_target=assignment.monthly_set_target,
        monthly_hold_target=assignment.monthly_hold_target,
        is_active=assignment.is_active,
    )


def compensation_record(structure) -> CompensationRecord:
    # tiers.all() keeps any prefetch; the calculator re-sorts by percentage.
    tiers = sorted(structure.tiers.all(), key=lambda t: (t.position, -t.percentage))
    return CompensationRecord(
        commission_type=structure.commission_type,
        meeting_rates=MeetingRates(booked=structure.booked_rate, held=structure.held_rate),
        goal_tiers=tuple(GoalTier(percentage=t.percentage, bonus=t.bonus) for t in tiers),
    )


def compensation_payload(record: CompensationRecord) -> dict:
    return {
        "commission_type": record.commission_type,
        "meeting_rates": {
            "booked": str(record.meeting_rates.booked),
            "held": str(record.meeting_rates.held),
        },
        "goal_tiers": [
            {"percentage": t.percentage, "bonus": str(t.bonus)}
            for t in record.goal_tiers
        ],
    }


# ----------------------------------------------------------------------
# Read models
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class ClientProgress:
    client_id: str
    set_goal: int
    held_goal: int
    meetings_set: int
    meetings_held: int
    progress_percentage: float
    on_track: bool


@dataclass(frozen=True)
class SDRDashboard:
    sdr_id: str
    period: str
    counts: MonthlyCounts
    quota: QuotaSummary
    # Dashboard progress always uses the calculated held goal.
    progress_percentage: float
    set_progress_percentage: float
    # Share of the month elapsed; on track when progress keeps pace with it.
    month_progress: float
    on_track: bool
    commission: Decimal
    outcomes: OutcomeBreakdown
    clients: list[ClientProgress] = field(default_factory=list)
    past_due_meeting_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CommissionSummary:
    sdr_id: str
    period: str
    commission_type: str
    held_meetings: int
    held_goal: int
    calculated_held_goal: int
    has_override: bool
    progress_percentage: float
    commission: Decimal
    hypothetical_held: int | None = None
    hypothetical_commission: Decimal | None = None
    next_tier: NextTier | None = None
    tiers: list[TierTarget] = field(default_factory=list)


@dataclass(frozen=True)
class TeamOverview:
    period: str
    totals: MonthlyCounts
    held_goal: int
    set_goal: int
    progress_percentage: float
    month_progress: float
    on_track: bool
    by_sdr: dict[str, MonthlyCounts] = field(default_factory=dict)


class PerformanceEngine:
    """Compute and persist SDR performance for one agency."""

    # Columns written by a recompute. ``is_final`` is only written when
    # closing a month so a recompute never reopens it.
    COMPUTED_FIELDS = [
        "meetings_set",
        "meetings_held",
        "confirmed_count",
        "pending_count",
        "no_show_count",
        "set_goal",
        "held_goal",
        "commission_goal",
        "has_goal_override",
        "progress_percentage",
        "commission_type",
        "commission",
        "compensation_snapshot",
        "last_trigger",
        "computed_at",
        "updated_at",
    ]

    def __init__(self, agency_id: str) -> None:
        self.agency_id = agency_id

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def load_snapshot(self) -> RecordSnapshot:
        """Read every record of the agency in one transaction."""
        # Late imports to avoid circular deps
        from meetings.models import Assignment, Meeting
        from performance.models import CommissionGoalOverride, CompensationStructure

        with transaction.atomic():
            meetings = tuple(
                meeting_record(m)
                for m in Meeting.objects.filter(agency_id=self.agency_id)
            )
            assignments = tuple(
                assignment_record(a)
                for a in Assignment.objects.filter(agency_id=self.agency_id)
            )
            structures = {
                str(s.sdr_id): compensation_record(s)
                for s in CompensationStructure.objects.filter(
                    sdr__agency_id=self.agency_id,
                ).prefetch_related("tiers")
            }
            overrides = {
                str(o.sdr_id): o.commission_goal
                for o in CommissionGoalOverride.objects.filter(sdr__agency_id=self.agency_id)
            }

        return RecordSnapshot(
            meetings=meetings,
            assignments=assignments,
            compensation=structures,
            goal_overrides=overrides,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def compute_for_sdr(
        self,
        sdr_id: str,
        period: str,  # "YYYY-MM"
        trigger: str = "SIGNAL",
        finalize: bool = False,
    ) -> "MonthlyPerformanceSnapshot | None":
        """
        Compute and persist the monthly snapshot for sdr/period.

        Returns None if a PostgreSQL advisory lock could not be acquired
        (another task is already processing the same row). A finalized
        snapshot is returned unchanged. With ``finalize`` the row is frozen
        in the same transaction as its last recompute.
        """
        from performance.models import MonthlyPerformanceSnapshot

        window = window_for_period(period)
        lock_key = self._make_lock_key(sdr_id, period)

        with transaction.atomic():
            if not self._acquire_lock(lock_key):
                logger.debug(
                    "Advisory lock not acquired for sdr=%s period=%s, skipping",
                    sdr_id,
                    period,
                )
                return None

            # Row lock: a concurrent close waits for this transaction.
            existing = (
                MonthlyPerformanceSnapshot.objects.select_for_update()
                .filter(sdr_id=sdr_id, period=period)
                .first()
            )
            if existing is not None and existing.is_final:
                logger.info(
                    "Snapshot sdr=%s period=%s is final, not recomputed",
                    sdr_id,
                    period,
                )
                return existing

            snapshot = self.load_snapshot()
            stats = existing or MonthlyPerformanceSnapshot(
                agency_id=self.agency_id,
                sdr_id=sdr_id,
                period=period,
            )
            self._fill(stats, snapshot, str(sdr_id), window)
            stats.last_trigger = trigger
            stats.computed_at = timezone.now()
            if finalize:
                stats.is_final = True

            if existing is None:
                stats.save()
            else:
                update_fields = list(self.COMPUTED_FIELDS)
                if finalize:
                    update_fields.append("is_final")
                stats.save(update_fields=update_fields)

            return stats

    def _fill(self, stats, snapshot: RecordSnapshot, sdr_id: str, window: MonthWindow) -> None:
        counts = aggregate_month(snapshot.meetings, window, sdr_id=sdr_id)
        quota = resolve_quota(
            snapshot.assignments,
            sdr_id,
            window,
            goal_override=snapshot.goal_override_for(sdr_id),
        )
        structure = snapshot.compensation_for(sdr_id)

        stats.meetings_set = counts.meetings_set
        stats.meetings_held = counts.meetings_held
        stats.confirmed_count = counts.confirmed_count
        stats.pending_count = counts.pending_count
        stats.no_show_count = counts.no_show_count
        stats.set_goal = quota.set_goal
        stats.held_goal = quota.held_goal
        stats.commission_goal = quota.commission_goal
        stats.has_goal_override = quota.has_override
        stats.progress_percentage = progress_percentage(counts.meetings_held, quota.commission_goal)
        stats.commission_type = structure.commission_type
        stats.commission = commission(counts.meetings_held, quota.commission_goal, structure)
        stats.compensation_snapshot = compensation_payload(structure)

    def finalize_period(self, period: str, attempts: int = 3, retry_delay: float = 1.0) -> int:
        """Recompute then freeze every snapshot of the agency for ``period``.

        SDRs whose row is locked by a concurrent recompute are retried up to
        ``attempts`` passes; rows still locked afterwards stay open. Returns
        the number of snapshots closed by this call.
        """
        from performance.models import MonthlyPerformanceSnapshot

        rows = MonthlyPerformanceSnapshot.objects.filter(
            agency_id=self.agency_id,
            period=period,
        )
        already_final = rows.filter(is_final=True).count()

        pending = self.active_sdr_ids()
        for attempt in range(attempts):
            pending = [
                sdr_id
                for sdr_id in pending
                if self.compute_for_sdr(
                    sdr_id=sdr_id, period=period, trigger="CLOSE", finalize=True,
                ) is None
            ]
            if not pending:
                break
            if attempt + 1 < attempts:
                time.sleep(retry_delay)

        if pending:
            logger.warning(
                "Period %s left open for locked sdrs %s (agency=%s)",
                period,
                ", ".join(pending),
                self.agency_id,
            )

        # Rows of SDRs no longer active are frozen as they stand.
        rows.filter(is_final=False).exclude(sdr_id__in=pending).update(is_final=True)
        return rows.filter(is_final=True).count() - already_final

    def active_sdr_ids(self) -> list[str]:
        from accounts.models import User

        return [
            str(pk)
            for pk in User.objects.filter(
                agency_id=self.agency_id,
                role=User.Role.SDR,
                is_active=True,
            ).values_list("id", flat=True)
        ]

    # ------------------------------------------------------------------
    # Read-side views (computed live, never persisted)
    # ------------------------------------------------------------------

    def sdr_dashboard(
        self,
        sdr_id: str,
        now: datetime | None = None,
        snapshot: RecordSnapshot | None = None,
    ) -> SDRDashboard:
        now = now or timezone.now()
        snapshot = snapshot or self.load_snapshot()
        sdr_id = str(sdr_id)
        window = resolve_month_window(now)

        counts = aggregate_month(snapshot.meetings, window, sdr_id=sdr_id)
        quota = resolve_quota(
            snapshot.assignments,
            sdr_id,
            window,
            goal_override=snapshot.goal_override_for(sdr_id),
        )

        elapsed = month_progress(now, window)

        client_ids = sorted({a.client_id for a in active_assignments(snapshot.assignments, window, sdr_id)})
        clients = []
        for client_id in client_ids:
            target = client_quota(snapshot.assignments, sdr_id, client_id, window)
            client_counts = aggregate_month(
                snapshot.meetings, window, sdr_id=sdr_id, client_id=client_id,
            )
            client_progress = progress_percentage(client_counts.meetings_held, target.held_goal)
            clients.append(
                ClientProgress(
                    client_id=client_id,
                    set_goal=target.set_goal,
                    held_goal=target.held_goal,
                    meetings_set=client_counts.meetings_set,
                    meetings_held=client_counts.meetings_held,
                    progress_percentage=client_progress,
                    on_track=client_progress >= elapsed,
                )
            )

        progress = progress_percentage(counts.meetings_held, quota.held_goal)
        return SDRDashboard(
            sdr_id=sdr_id,
            period=window.period,
            counts=counts,
            quota=quota,
            progress_percentage=progress,
            set_progress_percentage=progress_percentage(counts.meetings_set, quota.set_goal),
            month_progress=elapsed,
            on_track=progress >= elapsed,
            commission=commission(
                counts.meetings_held,
                quota.commission_goal,
                snapshot.compensation_for(sdr_id),
            ),
            outcomes=outcome_breakdown(snapshot.meetings, window, sdr_id=sdr_id),
            clients=clients,
            past_due_meeting_ids=[m.id for m in past_due_meetings(snapshot.meetings, now, sdr_id=sdr_id)],
        )

    def commission_summary(
        self,
        sdr_id: str,
        now: datetime | None = None,
        hypothetical_held: int | None = None,
        snapshot: RecordSnapshot | None = None,
    ) -> CommissionSummary:
        """Current-month commission, with an optional what-if held count."""
        now = now or timezone.now()
        snapshot = snapshot or self.load_snapshot()
        sdr_id = str(sdr_id)
        window = resolve_month_window(now)

        counts = aggregate_month(snapshot.meetings, window, sdr_id=sdr_id)
        quota = resolve_quota(
            snapshot.assignments,
            sdr_id,
            window,
            goal_override=snapshot.goal_override_for(sdr_id),
        )
        structure = snapshot.compensation_for(sdr_id)
        held = counts.meetings_held
        goal = quota.commission_goal

        return CommissionSummary(
            sdr_id=sdr_id,
            period=window.period,
            commission_type=structure.commission_type,
            held_meetings=held,
            held_goal=goal,
            calculated_held_goal=quota.held_goal,
            has_override=quota.has_override,
            progress_percentage=progress_percentage(held, goal),
            commission=commission(held, goal, structure),
            hypothetical_held=hypothetical_held,
            hypothetical_commission=(
                commission(hypothetical_held, goal, structure)
                if hypothetical_held is not None else None
            ),
            next_tier=next_tier(held, goal, structure.goal_tiers),
            tiers=tier_targets(held, goal, structure.goal_tiers),
        )

    def team_overview(
        self,
        now: datetime | None = None,
        period: str | None = None,
        snapshot: RecordSnapshot | None = None,
    ) -> TeamOverview:
        """Agency-wide counts for one month, including direct meetings."""
        now = now or timezone.now()
        window = window_for_period(period) if period else resolve_month_window(now)
        snapshot = snapshot or self.load_snapshot()

        by_sdr = {
            sdr_id: aggregate_month(snapshot.meetings, window, sdr_id=sdr_id)
            for sdr_id in snapshot.sdr_ids()
        }
        rows = active_assignments(snapshot.assignments, window)
        held_goal = sum(a.monthly_hold_target for a in rows)
        totals = aggregate_month(snapshot.meetings, window)
        progress = progress_percentage(totals.meetings_held, held_goal)
        elapsed = month_progress(now, window)

        return TeamOverview(
            period=window.period,
            totals=totals,
            held_goal=held_goal,
            set_goal=sum(a.monthly_set_target for a in rows),
            progress_percentage=progress,
            month_progress=elapsed,
            on_track=progress >= elapsed,
            by_sdr=by_sdr,
        )

    def history(
        self,
        sdr_id: str,
        months: int | None = None,
        now: datetime | None = None,
        snapshot: RecordSnapshot | None = None,
    ) -> list[HistoryPoint]:
        from django.conf import settings

        if months is None:
            months = settings.PERFORMANCE_HISTORY_MONTHS
        snapshot = snapshot or self.load_snapshot()
        return build_history(snapshot, str(sdr_id), now or timezone.now(), months=months)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _acquire_lock(self, lock_key: int) -> bool:
        # On PostgreSQL, use an advisory lock to avoid concurrent recomputes.
        # On other DB engines (sqlite in local tests), continue without lock.
        if connection.vendor != "postgresql":
            return True
        with connection.cursor() as cursor:
            cursor.execute("SELECT pg_try_advisory_xact_lock(%s)", [lock_key])
            row = cursor.fetchone()
        return bool(row and row[0])

    def _make_lock_key(self, sdr_id: str, period: str) -> int:
        raw = f"{sdr_id}:{period}:{self.agency_id}"
        hex_digest = hashlib.md5(raw.encode()).hexdigest()[:8]
        return int(hex_digest, 16) % (2**31)

"""Models for the SDR performance & commission module."""
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class CompensationStructure(TimeStampedModel):
    """How one SDR is paid. Not time-versioned: edits apply to every month."""

    class CommissionType(models.TextChoices):
        PER_MEETING = "per_meeting", "Par rendez-vous"
        GOAL_BASED = "goal_based", "Par objectif"

    sdr = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="compensation_structure",
        verbose_name="SDR",
    )
    commission_type = models.CharField(
        "type de commission",
        max_length=20,
        choices=CommissionType.choices,
        default=CommissionType.PER_MEETING,
    )
    booked_rate = models.DecimalField(
        "montant par rdv",
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    held_rate = models.DecimalField(
        "bonus par rdv tenu au-dela de l'objectif",
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )

    class Meta:
        verbose_name = "structure de commission"
        verbose_name_plural = "structures de commission"

    def __str__(self) -> str:
        return f"{self.sdr} ({self.get_commission_type_display()})"


class CommissionTier(TimeStampedModel):
    """Percentage-of-goal threshold mapped to a flat bonus (goal-based plans)."""

    structure = models.ForeignKey(
        CompensationStructure,
        on_delete=models.CASCADE,
        related_name="tiers",
        verbose_name="structure",
    )
    percentage = models.PositiveIntegerField("pourcentage de l'objectif")
    bonus = models.DecimalField(
        "bonus",
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    position = models.PositiveSmallIntegerField("ordre", default=0)

    class Meta:
        verbose_name = "palier"
        verbose_name_plural = "paliers"
        ordering = ["position", "-percentage"]

    def __str__(self) -> str:
        return f"{self.percentage}% -> {self.bonus}"


class CommissionGoalOverride(TimeStampedModel):
    """Manual substitute for the calculated held goal, used in payout math only."""

    sdr = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="commission_goal_override",
        verbose_name="SDR",
    )
    commission_goal = models.PositiveIntegerField(
        "objectif de commission",
        validators=[MinValueValidator(0)],
    )

    class Meta:
        verbose_name = "objectif de commission force"
        verbose_name_plural = "objectifs de commission forces"

    def __str__(self) -> str:
        return f"{self.sdr}: {self.commission_goal}"


class MonthlyPerformanceSnapshot(TimeStampedModel):
    """Computed counts, quotas and commission for one SDR and one month."""

    class TriggerSource(models.TextChoices):
        SIGNAL = "SIGNAL", "Modification"
        MANUAL = "MANUAL", "Manuel"
        SCHEDULED = "SCHEDULED", "Planifie"
        CLOSE = "CLOSE", "Cloture"

    agency = models.ForeignKey(
        "agencies.Agency",
        on_delete=models.CASCADE,
        related_name="performance_snapshots",
    )
    sdr = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="performance_snapshots",
    )
    period = models.CharField("periode (YYYY-MM)", max_length=7)

    meetings_set = models.PositiveIntegerField("rdv poses", default=0)
    meetings_held = models.PositiveIntegerField("rdv tenus", default=0)
    confirmed_count = models.PositiveIntegerField("rdv confirmes", default=0)
    pending_count = models.PositiveIntegerField("rdv en attente", default=0)
    no_show_count = models.PositiveIntegerField("absences", default=0)

    set_goal = models.PositiveIntegerField("objectif rdv poses", default=0)
    held_goal = models.PositiveIntegerField("objectif rdv tenus", default=0)
    commission_goal = models.PositiveIntegerField("objectif de commission", default=0)
    has_goal_override = models.BooleanField("objectif force", default=False)
    progress_percentage = models.FloatField("progression (%)", default=0.0)

    commission_type = models.CharField(
        "type de commission",
        max_length=20,
        choices=CompensationStructure.CommissionType.choices,
        default=CompensationStructure.CommissionType.PER_MEETING,
    )
    commission = models.DecimalField(
        "commission",
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
    )
    # Frozen copy of the rates / tiers used for this computation.
    compensation_snapshot = models.JSONField("snapshot remuneration", default=dict)

    is_final = models.BooleanField("cloture", default=False)
    last_trigger = models.CharField(
        "dernier declencheur",
        max_length=20,
        choices=TriggerSource.choices,
        default=TriggerSource.SIGNAL,
    )
    computed_at = models.DateTimeField("calcule le", null=True, blank=True)

    class Meta:
        verbose_name = "performance mensuelle"
        verbose_name_plural = "performances mensuelles"
        constraints = [
            models.UniqueConstraint(
                fields=["sdr", "period"],
                name="uniq_sdr_monthly_performance",
            ),
        ]
        ordering = ["-period"]
        indexes = [
            models.Index(fields=["agency", "period"], name="performanc_agency__e2a7d4_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.sdr} - {self.period} ({self.meetings_held}/{self.commission_goal})"

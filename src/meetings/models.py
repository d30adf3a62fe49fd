"""Models for the meetings app: booked prospect meetings and monthly quotas."""
from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


class Meeting(TimeStampedModel):
    """One prospect meeting booked by an SDR for a client.

    Storage keeps ``status`` plus independent flags; the display state
    (pending / confirmed / held / no-show) is derived by
    ``performance.classifier``.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "En attente"
        CONFIRMED = "confirmed", "Confirme"

    class ICPStatus(models.TextChoices):
        PENDING = "pending", "A verifier"
        APPROVED = "approved", "Qualifie"
        NOT_QUALIFIED = "not_qualified", "Non qualifie"
        REJECTED = "rejected", "Rejete"
        DENIED = "denied", "Refuse"

    agency = models.ForeignKey(
        "agencies.Agency",
        on_delete=models.CASCADE,
        related_name="meetings",
        verbose_name="agence",
    )
    client = models.ForeignKey(
        "agencies.Client",
        on_delete=models.CASCADE,
        related_name="meetings",
        verbose_name="client",
    )
    # Null for "direct" meetings sourced outside the SDR pipeline.
    sdr = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="meetings",
        verbose_name="SDR",
    )

    booked_at = models.DateTimeField("pose le", db_index=True)
    scheduled_at = models.DateTimeField("prevu le", db_index=True)
    timezone = models.CharField("fuseau horaire", max_length=64, blank=True, default="")
    status = models.CharField(
        "statut",
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    confirmed_at = models.DateTimeField("confirme le", null=True, blank=True)
    held_at = models.DateTimeField("tenu le", null=True, blank=True)
    no_show = models.BooleanField("absent", default=False)
    no_longer_interested = models.BooleanField("plus interesse", default=False)

    icp_status = models.CharField(
        "statut ICP",
        max_length=20,
        choices=ICPStatus.choices,
        null=True,
        blank=True,
    )
    icp_checked_at = models.DateTimeField("ICP verifie le", null=True, blank=True)
    icp_checked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="icp_reviews",
    )
    icp_notes = models.TextField("notes ICP", blank=True, default="")

    contact_full_name = models.CharField("contact", max_length=255, blank=True, default="")
    contact_email = models.EmailField("e-mail contact", blank=True, default="")
    contact_phone = models.CharField("telephone contact", max_length=50, blank=True, default="")
    company = models.CharField("societe", max_length=255, blank=True, default="")
    title = models.CharField("fonction", max_length=255, blank=True, default="")
    linkedin_page = models.URLField("page LinkedIn", blank=True, default="")
    notes = models.TextField("notes", blank=True, default="")

    class Meta:
        verbose_name = "rendez-vous"
        verbose_name_plural = "rendez-vous"
        ordering = ["scheduled_at"]
        indexes = [
            models.Index(fields=["agency", "booked_at"], name="meetings_me_agency__b5e1c2_idx"),
            models.Index(fields=["agency", "scheduled_at"], name="meetings_me_agency__7a3d90_idx"),
            models.Index(fields=["sdr", "scheduled_at"], name="meetings_me_sdr_id_4c8f21_idx"),
        ]

    def __str__(self) -> str:
        who = self.contact_full_name or self.company or str(self.pk)[:8]
        return f"{who} ({self.client}) {self.scheduled_at:%Y-%m-%d}"

    def clean(self) -> None:
        if self.client_id and self.agency_id and self.client.agency_id != self.agency_id:
            raise ValidationError("Le client n'appartient pas a cette agence.")


class Assignment(TimeStampedModel):
    """Quota contract between one SDR and one client for one calendar month."""

    agency = models.ForeignKey(
        "agencies.Agency",
        on_delete=models.CASCADE,
        related_name="assignments",
        verbose_name="agence",
    )
    sdr = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="assignments",
        verbose_name="SDR",
    )
    client = models.ForeignKey(
        "agencies.Client",
        on_delete=models.CASCADE,
        related_name="assignments",
        verbose_name="client",
    )
    month = models.DateField("mois", help_text="Premier jour du mois.")
    monthly_set_target = models.PositiveIntegerField(
        "objectif rdv poses",
        default=0,
        validators=[MinValueValidator(0)],
    )
    monthly_hold_target = models.PositiveIntegerField(
        "objectif rdv tenus",
        default=0,
        validators=[MinValueValidator(0)],
    )
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "affectation"
        verbose_name_plural = "affectations"
        ordering = ["-month"]
        constraints = [
            models.UniqueConstraint(
                fields=["sdr", "client", "month"],
                name="uniq_assignment_sdr_client_month",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.sdr} / {self.client} {self.month:%Y-%m}"

    def clean(self) -> None:
        if self.month and self.month.day != 1:
            raise ValidationError({"month": "Le mois doit commencer le premier jour."})

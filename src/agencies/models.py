"""Models for the agencies app (tenants and their client companies)."""
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.models import TimeStampedModel


def default_currency() -> str:
    return settings.CURRENCY


class Agency(TimeStampedModel):
    """Tenant: an SDR agency running meetings for its clients."""

    name = models.CharField("nom", max_length=255)
    code = models.CharField("code", max_length=50, unique=True)
    currency = models.CharField("devise", max_length=10, default=default_currency)
    is_active = models.BooleanField("active", default=True)

    class Meta:
        verbose_name = "agence"
        verbose_name_plural = "agences"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class ClientQuerySet(models.QuerySet):
    def active(self):
        return self.filter(archived_at__isnull=True)


class Client(TimeStampedModel):
    """Company for which the agency's SDRs book prospect meetings.

    The monthly targets here are defaults copied onto new assignments; the
    assignment row is the quota of record.
    """

    agency = models.ForeignKey(
        Agency,
        on_delete=models.CASCADE,
        related_name="clients",
        verbose_name="agence",
    )
    name = models.CharField("nom", max_length=255)
    monthly_set_target = models.PositiveIntegerField(
        "objectif mensuel (rdv poses)",
        default=0,
        validators=[MinValueValidator(0)],
    )
    monthly_hold_target = models.PositiveIntegerField(
        "objectif mensuel (rdv tenus)",
        default=0,
        validators=[MinValueValidator(0)],
    )
    archived_at = models.DateTimeField("archive le", null=True, blank=True)

    objects = ClientQuerySet.as_manager()

    class Meta:
        verbose_name = "client"
        verbose_name_plural = "clients"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["agency", "name"],
                name="uniq_client_name_per_agency",
            ),
        ]

    def __str__(self) -> str:
        return self.name

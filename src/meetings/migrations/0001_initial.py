import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("agencies", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Meeting",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("booked_at", models.DateTimeField(db_index=True, verbose_name="pose le")),
                ("scheduled_at", models.DateTimeField(db_index=True, verbose_name="prevu le")),
                ("timezone", models.CharField(blank=True, default="", max_length=64, verbose_name="fuseau horaire")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "En attente"), ("confirmed", "Confirme")],
                        default="pending",
                        max_length=20,
                        verbose_name="statut",
                    ),
                ),
                ("confirmed_at", models.DateTimeField(blank=True, null=True, verbose_name="confirme le")),
                ("held_at", models.DateTimeField(blank=True, null=True, verbose_name="tenu le")),
                ("no_show", models.BooleanField(default=False, verbose_name="absent")),
                ("no_longer_interested", models.BooleanField(default=False, verbose_name="plus interesse")),
                (
                    "icp_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("pending", "A verifier"),
                            ("approved", "Qualifie"),
                            ("not_qualified", "Non qualifie"),
                            ("rejected", "Rejete"),
                            ("denied", "Refuse"),
                        ],
                        max_length=20,
                        null=True,
                        verbose_name="statut ICP",
                    ),
                ),
                ("icp_checked_at", models.DateTimeField(blank=True, null=True, verbose_name="ICP verifie le")),
                ("icp_notes", models.TextField(blank=True, default="", verbose_name="notes ICP")),
                ("contact_full_name", models.CharField(blank=True, default="", max_length=255, verbose_name="contact")),
                ("contact_email", models.EmailField(blank=True, default="", max_length=254, verbose_name="e-mail contact")),
                ("contact_phone", models.CharField(blank=True, default="", max_length=50, verbose_name="telephone contact")),
                ("company", models.CharField(blank=True, default="", max_length=255, verbose_name="societe")),
                ("title", models.CharField(blank=True, default="", max_length=255, verbose_name="fonction")),
                ("linkedin_page", models.URLField(blank=True, default="", verbose_name="page LinkedIn")),
                ("notes", models.TextField(blank=True, default="", verbose_name="notes")),
                (
                    "agency",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="meetings",
                        to="agencies.agency",
                        verbose_name="agence",
                    ),
                ),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="meetings",
                        to="agencies.client",
                        verbose_name="client",
                    ),
                ),
                (
                    "sdr",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="meetings",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="SDR",
                    ),
                ),
                (
                    "icp_checked_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="icp_reviews",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "rendez-vous",
                "verbose_name_plural": "rendez-vous",
                "ordering": ["scheduled_at"],
                "indexes": [
                    models.Index(fields=["agency", "booked_at"], name="meetings_me_agency__b5e1c2_idx"),
                    models.Index(fields=["agency", "scheduled_at"], name="meetings_me_agency__7a3d90_idx"),
                    models.Index(fields=["sdr", "scheduled_at"], name="meetings_me_sdr_id_4c8f21_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Assignment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("month", models.DateField(help_text="Premier jour du mois.", verbose_name="mois")),
                (
                    "monthly_set_target",
                    models.PositiveIntegerField(
                        default=0,
                        validators=[django.core.validators.MinValueValidator(0)],
                        verbose_name="objectif rdv poses",
                    ),
                ),
                (
                    "monthly_hold_target",
                    models.PositiveIntegerField(
                        default=0,
                        validators=[django.core.validators.MinValueValidator(0)],
                        verbose_name="objectif rdv tenus",
                    ),
                ),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                (
                    "agency",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assignments",
                        to="agencies.agency",
                        verbose_name="agence",
                    ),
                ),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assignments",
                        to="agencies.client",
                        verbose_name="client",
                    ),
                ),
                (
                    "sdr",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assignments",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="SDR",
                    ),
                ),
            ],
            options={
                "verbose_name": "affectation",
                "verbose_name_plural": "affectations",
                "ordering": ["-month"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("sdr", "client", "month"),
                        name="uniq_assignment_sdr_client_month",
                    ),
                ],
            },
        ),
    ]

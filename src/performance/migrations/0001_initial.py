import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

COMMISSION_TYPES = [("per_meeting", "Par rendez-vous"), ("goal_based", "Par objectif")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("agencies", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CompensationStructure",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                (
                    "commission_type",
                    models.CharField(
                        choices=COMMISSION_TYPES,
                        default="per_meeting",
                        max_length=20,
                        verbose_name="type de commission",
                    ),
                ),
                (
                    "booked_rate",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="montant par rdv",
                    ),
                ),
                (
                    "held_rate",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="bonus par rdv tenu au-dela de l'objectif",
                    ),
                ),
                (
                    "sdr",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="compensation_structure",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="SDR",
                    ),
                ),
            ],
            options={
                "verbose_name": "structure de commission",
                "verbose_name_plural": "structures de commission",
            },
        ),
        migrations.CreateModel(
            name="CommissionTier",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("percentage", models.PositiveIntegerField(verbose_name="pourcentage de l'objectif")),
                (
                    "bonus",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="bonus",
                    ),
                ),
                ("position", models.PositiveSmallIntegerField(default=0, verbose_name="ordre")),
                (
                    "structure",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tiers",
                        to="performance.compensationstructure",
                        verbose_name="structure",
                    ),
                ),
            ],
            options={
                "verbose_name": "palier",
                "verbose_name_plural": "paliers",
                "ordering": ["position", "-percentage"],
            },
        ),
        migrations.CreateModel(
            name="CommissionGoalOverride",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                (
                    "commission_goal",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(0)],
                        verbose_name="objectif de commission",
                    ),
                ),
                (
                    "sdr",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="commission_goal_override",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="SDR",
                    ),
                ),
            ],
            options={
                "verbose_name": "objectif de commission force",
                "verbose_name_plural": "objectifs de commission forces",
            },
        ),
        migrations.CreateModel(
            name="MonthlyPerformanceSnapshot",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="cree le")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="modifie le")),
                ("period", models.CharField(max_length=7, verbose_name="periode (YYYY-MM)")),
                ("meetings_set", models.PositiveIntegerField(default=0, verbose_name="rdv poses")),
                ("meetings_held", models.PositiveIntegerField(default=0, verbose_name="rdv tenus")),
                ("confirmed_count", models.PositiveIntegerField(default=0, verbose_name="rdv confirmes")),
                ("pending_count", models.PositiveIntegerField(default=0, verbose_name="rdv en attente")),
                ("no_show_count", models.PositiveIntegerField(default=0, verbose_name="absences")),
                ("set_goal", models.PositiveIntegerField(default=0, verbose_name="objectif rdv poses")),
                ("held_goal", models.PositiveIntegerField(default=0, verbose_name="objectif rdv tenus")),
                ("commission_goal", models.PositiveIntegerField(default=0, verbose_name="objectif de commission")),
                ("has_goal_override", models.BooleanField(default=False, verbose_name="objectif force")),
                ("progress_percentage", models.FloatField(default=0.0, verbose_name="progression (%)")),
                (
                    "commission_type",
                    models.CharField(
                        choices=COMMISSION_TYPES,
                        default="per_meeting",
                        max_length=20,
                        verbose_name="type de commission",
                    ),
                ),
                (
                    "commission",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        max_digits=14,
                        verbose_name="commission",
                    ),
                ),
                ("compensation_snapshot", models.JSONField(default=dict, verbose_name="snapshot remuneration")),
                ("is_final", models.BooleanField(default=False, verbose_name="cloture")),
                (
                    "last_trigger",
                    models.CharField(
                        choices=[
                            ("SIGNAL", "Modification"),
                            ("MANUAL", "Manuel"),
                            ("SCHEDULED", "Planifie"),
                            ("CLOSE", "Cloture"),
                        ],
                        default="SIGNAL",
                        max_length=20,
                        verbose_name="dernier declencheur",
                    ),
                ),
                ("computed_at", models.DateTimeField(blank=True, null=True, verbose_name="calcule le")),
                (
                    "agency",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="performance_snapshots",
                        to="agencies.agency",
                    ),
                ),
                (
                    "sdr",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="performance_snapshots",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "performance mensuelle",
                "verbose_name_plural": "performances mensuelles",
                "ordering": ["-period"],
                "indexes": [
                    models.Index(fields=["agency", "period"], name="performanc_agency__e2a7d4_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("sdr", "period"), name="uniq_sdr_monthly_performance"),
                ],
            },
        ),
    ]

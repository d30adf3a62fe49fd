"""DRF Serializers for the performance module."""
from __future__ import annotations

from django.db import transaction
from rest_framework import serializers

from performance.models import (
    CommissionGoalOverride,
    CommissionTier,
    CompensationStructure,
    MonthlyPerformanceSnapshot,
)


# ────────────────────────────────────────────────────────────
# Compensation
# ────────────────────────────────────────────────────────────

class CommissionTierSerializer(serializers.ModelSerializer):
    class Meta:
        model = CommissionTier
        fields = ["id", "percentage", "bonus"]
        read_only_fields = ["id"]

    def validate_percentage(self, value):
        if value <= 0:
            raise serializers.ValidationError("Le pourcentage doit etre superieur a 0.")
        return value

    def validate_bonus(self, value):
        if value <= 0:
            raise serializers.ValidationError("Le bonus doit etre superieur a 0.")
        return value


class CompensationStructureSerializer(serializers.ModelSerializer):
    """Create/update an SDR pay plan; tiers are replaced wholesale."""
    tiers = CommissionTierSerializer(many=True, required=False)

    class Meta:
        model = CompensationStructure
        fields = [
            "id", "sdr", "commission_type", "booked_rate", "held_rate",
            "tiers", "updated_at",
        ]
        read_only_fields = ["id", "updated_at"]

    def validate_booked_rate(self, value):
        if value < 0:
            raise serializers.ValidationError("Le montant par rdv doit etre positif ou nul.")
        return value

    def validate_held_rate(self, value):
        if value < 0:
            raise serializers.ValidationError("Le bonus par rdv tenu doit etre positif ou nul.")
        return value

    def validate_tiers(self, tiers):
        percentages = [t["percentage"] for t in tiers]
        if len(percentages) != len(set(percentages)):
            raise serializers.ValidationError("Les pourcentages des paliers doivent etre uniques.")
        return tiers

    def validate(self, attrs):
        commission_type = attrs.get(
            "commission_type",
            getattr(self.instance, "commission_type", CompensationStructure.CommissionType.PER_MEETING),
        )
        if commission_type == CompensationStructure.CommissionType.GOAL_BASED:
            tiers = attrs.get("tiers")
            if tiers is None and self.instance is not None:
                has_tiers = self.instance.tiers.exists()
            else:
                has_tiers = bool(tiers)
            if not has_tiers:
                raise serializers.ValidationError(
                    {"tiers": "Au moins un palier est requis pour une commission par objectif."}
                )
        return attrs

    def _replace_tiers(self, structure, tiers_data) -> None:
        structure.tiers.all().delete()
        ordered = sorted(tiers_data, key=lambda t: t["percentage"], reverse=True)
        CommissionTier.objects.bulk_create([
            CommissionTier(structure=structure, position=index, **t)
            for index, t in enumerate(ordered)
        ])

    @transaction.atomic
    def create(self, validated_data):
        tiers_data = validated_data.pop("tiers", [])
        structure = CompensationStructure.objects.create(**validated_data)
        self._replace_tiers(structure, tiers_data)
        return structure

    @transaction.atomic
    def update(self, instance, validated_data):
        # tiers may be absent in a PATCH request; keep the existing ones.
        tiers_data = validated_data.pop("tiers", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        if tiers_data is not None:
            self._replace_tiers(instance, tiers_data)
        return instance


class CommissionGoalOverrideSerializer(serializers.ModelSerializer):
    class Meta:
        model = CommissionGoalOverride
        fields = ["id", "sdr", "commission_goal", "updated_at"]
        read_only_fields = ["id", "updated_at"]

    def validate_commission_goal(self, value):
        if value < 0:
            raise serializers.ValidationError("L'objectif de commission doit etre positif ou nul.")
        return value


# ────────────────────────────────────────────────────────────
# Monthly snapshots & read models
# ────────────────────────────────────────────────────────────

class MonthlyPerformanceSnapshotSerializer(serializers.ModelSerializer):
    sdr_name = serializers.SerializerMethodField()
    currency = serializers.CharField(source="agency.currency", read_only=True)

    class Meta:
        model = MonthlyPerformanceSnapshot
        fields = [
            "id", "agency", "sdr", "sdr_name", "period",
            "meetings_set", "meetings_held", "confirmed_count", "pending_count",
            "no_show_count", "set_goal", "held_goal", "commission_goal",
            "has_goal_override", "progress_percentage", "commission_type",
            "commission", "currency", "compensation_snapshot", "is_final", "last_trigger",
            "computed_at",
        ]
        read_only_fields = fields

    def get_sdr_name(self, obj) -> str:
        return obj.sdr.get_full_name() or obj.sdr.email


class HistoryPointSerializer(serializers.Serializer):
    period = serializers.CharField()
    held_goal = serializers.IntegerField()
    calculated_held_goal = serializers.IntegerField()
    held_meetings = serializers.IntegerField()
    meetings_set = serializers.IntegerField()
    progress_percentage = serializers.FloatField()
    commission = serializers.DecimalField(max_digits=14, decimal_places=2)


class NextTierSerializer(serializers.Serializer):
    percentage = serializers.IntegerField()
    bonus = serializers.DecimalField(max_digits=12, decimal_places=2)
    target_meetings = serializers.IntegerField()
    meetings_needed = serializers.IntegerField()


class TierTargetSerializer(serializers.Serializer):
    percentage = serializers.IntegerField()
    bonus = serializers.DecimalField(max_digits=12, decimal_places=2)
    target_meetings = serializers.IntegerField()
    achieved = serializers.BooleanField()


class CommissionSummarySerializer(serializers.Serializer):
    sdr_id = serializers.CharField()
    period = serializers.CharField()
    commission_type = serializers.CharField()
    held_meetings = serializers.IntegerField()
    held_goal = serializers.IntegerField()
    calculated_held_goal = serializers.IntegerField()
    has_override = serializers.BooleanField()
    progress_percentage = serializers.FloatField()
    commission = serializers.DecimalField(max_digits=14, decimal_places=2)
    hypothetical_held = serializers.IntegerField(allow_null=True)
    hypothetical_commission = serializers.DecimalField(
        max_digits=14, decimal_places=2, allow_null=True,
    )
    next_tier = NextTierSerializer(allow_null=True)
    tiers = TierTargetSerializer(many=True)


class WhatIfSerializer(serializers.Serializer):
    """Input for the commission what-if calculator."""
    hypothetical_held = serializers.IntegerField(min_value=0)

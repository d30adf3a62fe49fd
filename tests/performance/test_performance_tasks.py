"""Tests for performance Celery tasks."""
from datetime import datetime, timezone

import pytest

import performance.tasks as performance_tasks
from performance.models import MonthlyPerformanceSnapshot


def _freeze_now(monkeypatch, value):
    monkeypatch.setattr(performance_tasks.timezone, "now", lambda: value)


@pytest.mark.django_db
class TestRecomputeTasks:
    def test_recompute_rep_month(self, agency, sdr_user):
        performance_tasks.recompute_rep_month.apply(
            kwargs={
                "agency_id": str(agency.pk),
                "sdr_id": str(sdr_user.pk),
                "period": "2026-03",
            },
        ).get()

        stats = MonthlyPerformanceSnapshot.objects.get(sdr=sdr_user, period="2026-03")
        assert stats.last_trigger == "SIGNAL"

    def test_recompute_agency_month_skips_managers(self, agency, sdr_user, second_sdr, manager_user):
        count = performance_tasks.recompute_agency_month(
            agency_id=str(agency.pk), period="2026-03",
        )

        assert count == 2
        assert set(
            MonthlyPerformanceSnapshot.objects.filter(period="2026-03").values_list("sdr_id", flat=True)
        ) == {sdr_user.pk, second_sdr.pk}


@pytest.mark.django_db
class TestCloseMonth:
    def test_skips_when_not_first_day(self, monkeypatch, agency, sdr_user):
        _freeze_now(monkeypatch, datetime(2026, 3, 15, tzinfo=timezone.utc))

        assert performance_tasks.close_month_snapshots() == 0
        assert not MonthlyPerformanceSnapshot.objects.exists()

    def test_finalizes_previous_month(self, monkeypatch, agency, sdr_user):
        _freeze_now(monkeypatch, datetime(2026, 3, 1, 0, 5, tzinfo=timezone.utc))

        assert performance_tasks.close_month_snapshots() == 1
        stats = MonthlyPerformanceSnapshot.objects.get(sdr=sdr_user, period="2026-02")
        assert stats.is_final is True
        assert stats.last_trigger == "CLOSE"

    def test_january_closes_december(self, monkeypatch, agency, sdr_user):
        _freeze_now(monkeypatch, datetime(2027, 1, 1, 3, 0, tzinfo=timezone.utc))

        performance_tasks.close_month_snapshots()

        assert MonthlyPerformanceSnapshot.objects.filter(period="2026-12", is_final=True).exists()


@pytest.mark.django_db
def test_refresh_current_month(monkeypatch, agency, other_agency, sdr_user):
    _freeze_now(monkeypatch, datetime(2026, 5, 20, tzinfo=timezone.utc))

    performance_tasks.refresh_current_month()

    stats = MonthlyPerformanceSnapshot.objects.get(sdr=sdr_user)
    assert stats.period == "2026-05"
    assert stats.last_trigger == "SCHEDULED"

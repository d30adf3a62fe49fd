"""Tests for UTC month windows."""
from datetime import date, datetime, timedelta, timezone

import pytest

from performance.periods import (
    MonthWindow,
    as_utc,
    month_progress,
    resolve_month_window,
    trailing_windows,
    window_for_period,
)


class TestMonthWindow:
    def test_boundaries_are_utc_half_open(self):
        window = MonthWindow(2026, 2)
        assert window.start == datetime(2026, 2, 1, tzinfo=timezone.utc)
        assert window.end == datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert window.contains(window.start)
        assert not window.contains(window.end)
        assert window.contains(window.end - timedelta(microseconds=1))

    def test_december_rolls_into_next_year(self):
        window = MonthWindow(2025, 12)
        assert window.end == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert window.shift(1) == MonthWindow(2026, 1)
        assert MonthWindow(2026, 1).previous() == window

    def test_missing_date_is_never_inside(self):
        assert MonthWindow(2026, 3).contains(None) is False

    def test_offset_timestamp_is_compared_in_utc(self):
        # 2026-03-01 01:00 at +02:00 is still February in UTC.
        tz = timezone(timedelta(hours=2))
        dt = datetime(2026, 3, 1, 1, 0, tzinfo=tz)
        assert MonthWindow(2026, 2).contains(dt)
        assert not MonthWindow(2026, 3).contains(dt)

    def test_naive_datetime_is_treated_as_utc(self):
        assert as_utc(datetime(2026, 3, 1)).tzinfo == timezone.utc
        assert MonthWindow(2026, 3).contains(datetime(2026, 3, 1))

    def test_matches_month_for_assignment_dates(self):
        window = MonthWindow(2026, 3)
        assert window.matches_month(date(2026, 3, 1))
        assert not window.matches_month(date(2026, 4, 1))
        assert not window.matches_month(None)

    def test_invalid_month_rejected(self):
        with pytest.raises(ValueError):
            MonthWindow(2026, 13)

    def test_period_label(self):
        assert MonthWindow(2026, 3).period == "2026-03"
        assert str(MonthWindow(2026, 11)) == "2026-11"


class TestResolveMonthWindow:
    def test_defaults_to_current_utc_month(self):
        tz = timezone(timedelta(hours=-5))
        # 2026-03-31 22:00 at -05:00 is already April in UTC.
        now = datetime(2026, 3, 31, 22, 0, tzinfo=tz)
        assert resolve_month_window(now) == MonthWindow(2026, 4)

    def test_explicit_year_and_month(self):
        now = datetime(2026, 3, 15, tzinfo=timezone.utc)
        assert resolve_month_window(now, year=2025, month=7) == MonthWindow(2025, 7)

    def test_year_without_month_rejected(self):
        with pytest.raises(ValueError):
            resolve_month_window(datetime(2026, 3, 15, tzinfo=timezone.utc), year=2025)

    def test_window_for_period(self):
        assert window_for_period("2026-02") == MonthWindow(2026, 2)

    @pytest.mark.parametrize("period", ["2026", "2026-00", "abc-de", None])
    def test_window_for_invalid_period(self, period):
        with pytest.raises(ValueError):
            window_for_period(period)


class TestTrailingWindows:
    def test_oldest_first_ending_with_current(self):
        now = datetime(2026, 2, 10, tzinfo=timezone.utc)
        windows = trailing_windows(now, 3)
        assert [w.period for w in windows] == ["2025-12", "2026-01", "2026-02"]

    def test_twelve_months(self):
        windows = trailing_windows(datetime(2026, 3, 15, tzinfo=timezone.utc), 12)
        assert len(windows) == 12
        assert windows[0].period == "2025-04"
        assert windows[-1].period == "2026-03"

    def test_zero_count_is_empty(self):
        assert trailing_windows(datetime(2026, 3, 15, tzinfo=timezone.utc), 0) == []


class TestMonthProgress:
    def test_counts_today_as_elapsed(self):
        assert month_progress(datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)) == pytest.approx(15 / 31 * 100)

    def test_last_day_is_complete(self):
        assert month_progress(datetime(2026, 2, 28, 23, 0, tzinfo=timezone.utc)) == 100.0

    def test_leap_february(self):
        assert month_progress(datetime(2028, 2, 14, tzinfo=timezone.utc)) == pytest.approx(14 / 29 * 100)

    def test_uses_utc_day(self):
        # Still March 31st locally, already April 1st in UTC.
        local = datetime(2026, 3, 31, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert month_progress(local) == pytest.approx(1 / 30 * 100)

    def test_other_months(self):
        now = datetime(2026, 3, 15, tzinfo=timezone.utc)
        assert month_progress(now, MonthWindow(2026, 2)) == 100.0
        assert month_progress(now, MonthWindow(2026, 4)) == 0.0

"""UTC calendar-month windows.

Every monthly filter in the performance engine goes through
:func:`resolve_month_window` so the same meeting set is selected no matter
which timezone the caller (worker, web process, shell) runs in.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timezone


def as_utc(dt: datetime | None) -> datetime | None:
    """Return ``dt`` in UTC, assuming UTC when it is naive."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


@dataclass(frozen=True)
class MonthWindow:
    """Inclusive-exclusive ``[start, end)`` UTC boundaries of one month."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Mois invalide: {self.month}")

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month, 1, tzinfo=timezone.utc)

    @property
    def end(self) -> datetime:
        year, month = _shift_month(self.year, self.month, 1)
        return datetime(year, month, 1, tzinfo=timezone.utc)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def period(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def contains(self, dt: datetime | None) -> bool:
        """True when ``dt`` falls inside the window; missing dates never do."""
        dt = as_utc(dt)
        if dt is None:
            return False
        return self.start <= dt < self.end

    def matches_month(self, day: date | None) -> bool:
        """True when a calendar ``date`` (e.g. an assignment month) is in this month."""
        if day is None:
            return False
        return day.year == self.year and day.month == self.month

    def previous(self) -> "MonthWindow":
        return MonthWindow(*_shift_month(self.year, self.month, -1))

    def shift(self, months: int) -> "MonthWindow":
        return MonthWindow(*_shift_month(self.year, self.month, months))

    def __str__(self) -> str:
        return self.period


def resolve_month_window(
    now: datetime,
    year: int | None = None,
    month: int | None = None,
) -> MonthWindow:
    """Return the window for ``(year, month)``, or the current UTC month of ``now``."""
    if year is not None and month is not None:
        return MonthWindow(year, month)
    if year is not None or month is not None:
        raise ValueError("L'annee et le mois doivent etre fournis ensemble.")
    now = as_utc(now)
    return MonthWindow(now.year, now.month)


def window_for_period(period: str) -> MonthWindow:
    """Parse a ``YYYY-MM`` period string."""
    try:
        year, month = period.split("-")
        return MonthWindow(int(year), int(month))
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValueError(f"Periode invalide: {period!r} (attendu YYYY-MM)") from exc


def month_progress(now: datetime, window: MonthWindow | None = None) -> float:
    """Share of ``window`` elapsed at ``now``, in percent, counting today.

    Defaults to the current UTC month. Past months are fully elapsed and
    future months not started.
    """
    now = as_utc(now)
    window = window or resolve_month_window(now)
    if now >= window.end:
        return 100.0
    if now < window.start:
        return 0.0
    days_in_month = calendar.monthrange(window.year, window.month)[1]
    return now.day / days_in_month * 100


def trailing_windows(now: datetime, count: int) -> list[MonthWindow]:
    """``count`` consecutive months ending with the current one, oldest first."""
    if count < 1:
        return []
    current = resolve_month_window(now)
    return [current.shift(-offset) for offset in range(count - 1, -1, -1)]

"""
Dashboard Timeframes
Resolves query parameters into month-aligned reporting windows.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from finboard.integrations.reports.utils import get_month_end, months_between, shift_month


class Timeframe(str, Enum):
    """Dashboard period selector."""
    YEAR = "YEAR"
    MONTH = "MONTH"
    CUSTOM = "CUSTOM"


class InvalidTimeWindowError(ValueError):
    """Query parameters do not describe a usable window."""


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive window from the first day of one month to the last day of another."""
    start: date
    end: date

    @classmethod
    def from_dates(cls, start: date, end: date) -> "TimeWindow":
        """Widen arbitrary dates to whole months."""
        if start > end:
            raise InvalidTimeWindowError(
                f"fromDate {start.isoformat()} is after toDate {end.isoformat()}"
            )
        return cls(start=start.replace(day=1), end=get_month_end(end))

    @classmethod
    def for_month(cls, target: date) -> "TimeWindow":
        return cls(start=target.replace(day=1), end=get_month_end(target))

    @classmethod
    def for_year(cls, year: int) -> "TimeWindow":
        return cls(start=date(year, 1, 1), end=date(year, 12, 31))

    @property
    def month_count(self) -> int:
        return months_between(self.start, self.end) + 1

    def months(self) -> list[date]:
        """First day of every month in the window, ascending."""
        return [shift_month(self.start, offset) for offset in range(self.month_count)]

    def previous(self, timeframe: Timeframe) -> "TimeWindow":
        """
        Comparison window: previous calendar year for YEAR, otherwise the
        calendar month before the window start.
        """
        if timeframe == Timeframe.YEAR:
            return TimeWindow.for_year(self.start.year - 1)
        return TimeWindow.for_month(shift_month(self.start, -1))


def parse_iso_date(value: Optional[str], field_name: str) -> Optional[date]:
    """Parse an ISO date query parameter, or None when absent."""
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError as e:
        raise InvalidTimeWindowError(f"{field_name} must be an ISO date (YYYY-MM-DD)") from e


def resolve_window(
    timeframe: Timeframe,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    today: Optional[date] = None,
) -> TimeWindow:
    """
    Resolve the dashboard window.

    Explicit fromDate/toDate win for any timeframe. Without them YEAR is the
    current calendar year and MONTH the current month. CUSTOM requires both.

    Raises:
        InvalidTimeWindowError: If only one date is given, CUSTOM lacks dates,
            or fromDate is after toDate
    """
    today = today or date.today()

    if (from_date is None) != (to_date is None):
        raise InvalidTimeWindowError("fromDate and toDate must be provided together")

    if from_date is not None and to_date is not None:
        return TimeWindow.from_dates(from_date, to_date)

    if timeframe == Timeframe.CUSTOM:
        raise InvalidTimeWindowError("CUSTOM timeframe requires fromDate and toDate")
    if timeframe == Timeframe.MONTH:
        return TimeWindow.for_month(today)
    return TimeWindow.for_year(today.year)


def resolve_trend_window(
    year: Optional[int] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    today: Optional[date] = None,
) -> TimeWindow:
    """Window for the monthly trend: explicit dates, else the given (or current) year."""
    if from_date is not None or to_date is not None:
        return resolve_window(Timeframe.CUSTOM, from_date, to_date, today)

    today = today or date.today()
    return TimeWindow.for_year(year if year is not None else today.year)


def ensure_max_months(window: TimeWindow, max_months: int) -> TimeWindow:
    """Reject windows longer than max_months."""
    if window.month_count > max_months:
        raise InvalidTimeWindowError(
            f"Window spans {window.month_count} months; at most {max_months} are allowed"
        )
    return window

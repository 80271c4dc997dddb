"""Billing week bounds and their display label."""

from datetime import date

from billing_kernel.exceptions import InvalidWeekError

MAX_WEEK_DAYS = 7


def validate_week(week_start: date, week_end: date) -> None:
    """
    Check that a billing week window is well formed.

    Raises:
        InvalidWeekError: If the end precedes the start or the window is
            longer than seven days.
    """
    if week_end < week_start:
        raise InvalidWeekError(week_start, week_end, "week end is before week start")
    if (week_end - week_start).days + 1 > MAX_WEEK_DAYS:
        raise InvalidWeekError(
            week_start, week_end, f"a billing week spans at most {MAX_WEEK_DAYS} days"
        )


def _format_day(value: date) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def format_week_period(week_start: date, week_end: date) -> str:
    """Human-readable label, e.g. ``"Apr 7, 2024 - Apr 13, 2024"``."""
    return f"{_format_day(week_start)} - {_format_day(week_end)}"

"""
Time-Entry Normalizer (``billing_engines.normalizer``).

Responsibility
--------------
Validates one worker's raw daily entries for a billing week and returns
them as a clean, date-ordered tuple of ``TimeEntry``.

Rules
-----
* hours and overtime hours must be non-negative numbers;
* a single day cannot exceed 24 hours in total;
* every date must fall inside ``[week_start, week_end]``;
* at most one entry per calendar date;
* hour values keep their entered precision (padded to at least 2
  decimal places); rounding happens only on the money computed from them;
* the result is sorted ascending by date.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO database,
ZERO clock reads.

Failure modes
-------------
Raises a ``ValidationError`` subclass carrying the worker id and the
zero-based index of the offending entry in the caller's input.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from billing_kernel.db.types import HOURS_DECIMAL_PLACES, to_decimal
from billing_kernel.domain.timesheet import RawTimeEntry, TimeEntry
from billing_kernel.exceptions import (
    DuplicateEntryDateError,
    EntryOutsideWeekError,
    MalformedEntryError,
    NegativeHoursError,
)

MAX_HOURS_PER_DAY = Decimal("24")
HOURS_QUANTUM = Decimal(1).scaleb(-HOURS_DECIMAL_PLACES)


def _unpack(worker_id: str, index: int, raw: RawTimeEntry) -> tuple[object, object, object]:
    if isinstance(raw, TimeEntry):
        return raw.work_date, raw.hours, raw.overtime_hours
    if isinstance(raw, dict):
        if "date" not in raw and "work_date" not in raw:
            raise MalformedEntryError(worker_id, index, "entry has no date")
        work_date = raw.get("work_date", raw.get("date"))
        return (
            work_date,
            raw.get("hours", 0),
            raw.get("overtime_hours", raw.get("overtimeHours", 0)),
        )
    if isinstance(raw, tuple):
        if len(raw) == 2:
            return raw[0], raw[1], 0
        if len(raw) == 3:
            return raw
    raise MalformedEntryError(
        worker_id, index, "expected (date, hours, overtime_hours)"
    )


def _parse_date(worker_id: str, index: int, value: object) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise MalformedEntryError(worker_id, index, f"invalid date {value!r}")


def _parse_hours(worker_id: str, index: int, field: str, value: object) -> Decimal:
    try:
        hours = to_decimal(value, field)
    except ValueError as exc:
        raise MalformedEntryError(worker_id, index, str(exc)) from exc
    if hours < 0:
        raise NegativeHoursError(worker_id, index, field, hours)
    if hours.as_tuple().exponent > -HOURS_DECIMAL_PLACES:
        return hours.quantize(HOURS_QUANTUM)
    return hours


def normalize_entries(
    worker_id: str,
    raw_entries: Iterable[RawTimeEntry],
    week_start: date,
    week_end: date,
) -> tuple[TimeEntry, ...]:
    """Validate and order one worker's entries for the given week.

    Args:
        worker_id: Worker the entries belong to (used in error details).
        raw_entries: ``TimeEntry`` objects, ``(date, hours, overtime_hours)``
            tuples, or mappings with ``date``/``hours``/``overtime_hours``.
        week_start: First day of the billing week (inclusive).
        week_end: Last day of the billing week (inclusive).

    Returns:
        Entries sorted ascending by date.

    Raises:
        MalformedEntryError, NegativeHoursError, EntryOutsideWeekError,
        DuplicateEntryDateError.
    """
    seen: set[date] = set()
    normalized: list[TimeEntry] = []

    for index, raw in enumerate(raw_entries):
        raw_date, raw_hours, raw_overtime = _unpack(worker_id, index, raw)
        work_date = _parse_date(worker_id, index, raw_date)
        hours = _parse_hours(worker_id, index, "hours", raw_hours)
        overtime_hours = _parse_hours(worker_id, index, "overtime_hours", raw_overtime)

        if hours + overtime_hours > MAX_HOURS_PER_DAY:
            raise MalformedEntryError(
                worker_id, index,
                f"{hours + overtime_hours} hours on {work_date} exceeds "
                f"{MAX_HOURS_PER_DAY} hours in a day",
            )
        if not week_start <= work_date <= week_end:
            raise EntryOutsideWeekError(worker_id, index, work_date, week_start, week_end)
        if work_date in seen:
            raise DuplicateEntryDateError(worker_id, index, work_date)
        seen.add(work_date)

        normalized.append(
            TimeEntry(work_date=work_date, hours=hours, overtime_hours=overtime_hours)
        )

    return tuple(sorted(normalized, key=lambda e: e.work_date))

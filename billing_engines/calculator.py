"""
Per-Worker Pay/Bill Calculator (``billing_engines.calculator``).

Responsibility
--------------
Turns one worker's normalized entries and rate snapshot into billed hours,
worker pay and client bill.

Algorithm
---------
1. Entered hours: ``regular = sum(entry.hours)``,
   ``overtime = sum(entry.overtime_hours)``.
2. Billed split:

   * overtime disabled -- overtime hours fold into regular hours and are
     paid/billed at the regular rates (never dropped);
   * overtime enabled with a threshold -- the combined weekly hours are
     re-split: ``regular = min(total, threshold)``, the rest is overtime;
   * overtime enabled without a threshold -- the entered split is kept.

3. Money, rounded ONCE at the end (2 dp, half-up)::

       worker_pay  = R * regular_pay + O * overtime_pay + bonus - deduction
       client_bill = R * regular_bill + O * overtime_bill
       overtime_pay_total = O * overtime_pay

   Bonus and deduction are worker-side only.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.  Same inputs always
yield the same outputs, which lets the lifecycle service recompute instead
of patching.

Failure modes
-------------
* ``RateConfigurationError`` -- a rate needed by hours actually present is
  missing, negative or not a finite number, or the overtime threshold is
  negative or not a number.
* ``InvalidAdjustmentError`` -- bonus or deduction is negative.
"""

from __future__ import annotations

from decimal import Decimal

from billing_engines.normalizer import normalize_entries
from billing_engines.tracer import traced_engine
from billing_kernel.db.types import round_hours, round_money, to_decimal
from billing_kernel.domain.timesheet import (
    ZERO,
    RateConfiguration,
    TimeEntry,
    WorkerTimesheet,
    WorkerTimesheetInput,
)
from billing_kernel.exceptions import InvalidAdjustmentError, RateConfigurationError


def _rate_value(worker_id: str, name: str, raw) -> Decimal:
    try:
        value = to_decimal(raw, name)
    except ValueError as exc:
        raise RateConfigurationError(worker_id, name, f"not a finite number ({raw!r})") from exc
    if value < 0:
        raise RateConfigurationError(worker_id, name, f"negative ({value})")
    return value


def _require_rate(worker_id: str, rates: RateConfiguration, name: str) -> Decimal:
    value = getattr(rates, name)
    if value is None:
        raise RateConfigurationError(worker_id, name)
    return _rate_value(worker_id, name, value)


def _adjustment(worker_id: str, field: str, value) -> Decimal:
    try:
        amount = to_decimal(value, field)
    except ValueError as exc:
        raise InvalidAdjustmentError(worker_id, field, value) from exc
    if amount < 0:
        raise InvalidAdjustmentError(worker_id, field, amount)
    return amount


def split_hours(
    worker_id: str,
    entries: tuple[TimeEntry, ...],
    rates: RateConfiguration,
) -> tuple[Decimal, Decimal]:
    """Return ``(regular, overtime)`` hours as billed for the week."""
    entered_regular = sum((e.hours for e in entries), ZERO)
    entered_overtime = sum((e.overtime_hours for e in entries), ZERO)

    if not rates.overtime_enabled:
        return entered_regular + entered_overtime, ZERO

    if rates.overtime_threshold_hours is None:
        return entered_regular, entered_overtime
    threshold = _rate_value(
        worker_id, "overtime_threshold_hours", rates.overtime_threshold_hours
    )

    total = entered_regular + entered_overtime
    regular = min(total, threshold)
    return regular, total - regular


@traced_engine("calculator", "1.0", fingerprint_fields=("worker",))
def calculate_worker(worker: WorkerTimesheetInput) -> WorkerTimesheet:
    """Compute billed hours, pay and bill for one worker.

    ``worker.entries`` must already be normalized ``TimeEntry`` objects;
    use ``compute_worker`` to normalize and calculate in one step.
    """
    worker_id = worker.worker_id
    entries = tuple(worker.entries)
    rates = worker.rates
    bonus = _adjustment(worker_id, "bonus_amount", worker.bonus_amount)
    deduction = _adjustment(worker_id, "deduction_amount", worker.deduction_amount)

    regular_hours, overtime_hours = split_hours(worker_id, entries, rates)

    regular_pay_rate = regular_bill_rate = ZERO
    if regular_hours > 0:
        regular_pay_rate = _require_rate(worker_id, rates, "regular_pay_rate")
        regular_bill_rate = _require_rate(worker_id, rates, "regular_bill_rate")

    overtime_pay_rate = overtime_bill_rate = ZERO
    if overtime_hours > 0:
        overtime_pay_rate = _require_rate(worker_id, rates, "overtime_pay_rate")
        overtime_bill_rate = _require_rate(worker_id, rates, "overtime_bill_rate")

    overtime_pay_raw = overtime_hours * overtime_pay_rate
    worker_pay_raw = regular_hours * regular_pay_rate + overtime_pay_raw + bonus - deduction
    client_bill_raw = regular_hours * regular_bill_rate + overtime_hours * overtime_bill_rate

    return WorkerTimesheet(
        worker=worker.worker,
        entries=entries,
        rates=rates,
        bonus_amount=round_money(bonus),
        deduction_amount=round_money(deduction),
        total_regular_hours=round_hours(regular_hours),
        total_overtime_hours=round_hours(overtime_hours),
        overtime_pay=round_money(overtime_pay_raw),
        worker_pay=round_money(worker_pay_raw),
        client_bill=round_money(client_bill_raw),
    )


def compute_worker(
    worker: WorkerTimesheetInput,
    week_start,
    week_end,
) -> WorkerTimesheet:
    """Normalize a worker's raw entries for the week, then calculate."""
    entries = normalize_entries(worker.worker_id, worker.entries, week_start, week_end)
    return calculate_worker(
        WorkerTimesheetInput(
            worker=worker.worker,
            entries=entries,
            rates=worker.rates,
            bonus_amount=worker.bonus_amount,
            deduction_amount=worker.deduction_amount,
        )
    )

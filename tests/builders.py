"""Shared test data builders."""

from datetime import date
from decimal import Decimal

from billing_kernel.domain.timesheet import (
    RateConfiguration,
    WorkerRef,
    WorkerTimesheetInput,
)

# Sunday to Saturday
WEEK_START = date(2024, 4, 7)
WEEK_END = date(2024, 4, 13)
WEEKDAYS = [date(2024, 4, d) for d in range(8, 13)]

STANDARD_RATES = RateConfiguration(
    regular_pay_rate=Decimal("20.00"),
    regular_bill_rate=Decimal("25.00"),
    overtime_pay_rate=Decimal("30.00"),
    overtime_bill_rate=Decimal("37.50"),
    overtime_enabled=True,
)


def make_worker(
    worker_id: str,
    hours_per_day=Decimal("8"),
    overtime_per_day=Decimal("0"),
    days=None,
    rates: RateConfiguration = STANDARD_RATES,
    bonus=Decimal("0"),
    deduction=Decimal("0"),
) -> WorkerTimesheetInput:
    """A worker with the same hours on every given day (Mon-Fri by default)."""
    return WorkerTimesheetInput(
        worker=WorkerRef(worker_id=worker_id, display_name=f"Worker {worker_id}"),
        entries=tuple(
            (day, Decimal(hours_per_day), Decimal(overtime_per_day))
            for day in (days or WEEKDAYS)
        ),
        rates=rates,
        bonus_amount=Decimal(bonus),
        deduction_amount=Decimal(deduction),
    )

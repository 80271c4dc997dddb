"""
Bulk Aggregator (``billing_engines.aggregator``).

Sums the computed per-worker results into record-level totals.  Totals are
always rebuilt from the full worker list, never patched incrementally, so a
correction to any worker is reflected record-wide.

Averages divide by the worker count in Decimal and round half-up to 2 dp.
An empty worker list is refused with ``EmptyRecordError`` before any
arithmetic.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from billing_engines.tracer import traced_engine
from billing_kernel.db.types import round_hours, round_money
from billing_kernel.domain.timesheet import (
    ZERO,
    BulkTotals,
    NetPayPolicy,
    WorkerTimesheet,
)
from billing_kernel.exceptions import EmptyRecordError


def _sum(values) -> Decimal:
    return sum(values, ZERO)


def compute_net_pay(
    total_jobseeker_pay: Decimal,
    total_client_bill: Decimal,
    policy: NetPayPolicy,
) -> Decimal:
    if policy == NetPayPolicy.MARGIN:
        return round_money(total_client_bill - total_jobseeker_pay)
    return total_jobseeker_pay


@traced_engine("aggregator", "1.0", fingerprint_fields=("workers", "net_pay_policy"))
def aggregate(
    workers: Sequence[WorkerTimesheet],
    net_pay_policy: NetPayPolicy = NetPayPolicy.JOBSEEKER_PAY,
) -> BulkTotals:
    """Record-level totals for a list of computed worker timesheets."""
    if not workers:
        raise EmptyRecordError()

    count = len(workers)
    total_regular_hours = _sum(w.total_regular_hours for w in workers)
    total_overtime_hours = _sum(w.total_overtime_hours for w in workers)
    total_hours = total_regular_hours + total_overtime_hours
    total_jobseeker_pay = _sum(w.worker_pay for w in workers)
    total_client_bill = _sum(w.client_bill for w in workers)

    return BulkTotals(
        total_hours=total_hours,
        total_regular_hours=total_regular_hours,
        total_overtime_hours=total_overtime_hours,
        total_overtime_pay=_sum(w.overtime_pay for w in workers),
        total_jobseeker_pay=total_jobseeker_pay,
        total_client_bill=total_client_bill,
        total_bonus=_sum(w.bonus_amount for w in workers),
        total_deductions=_sum(w.deduction_amount for w in workers),
        net_pay=compute_net_pay(total_jobseeker_pay, total_client_bill, net_pay_policy),
        number_of_jobseekers=count,
        average_hours_per_jobseeker=round_hours(total_hours / count),
        average_pay_per_jobseeker=round_money(total_jobseeker_pay / count),
    )

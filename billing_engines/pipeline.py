"""
Calculation pipeline: Normalizer -> Calculator (per worker) -> Aggregator.

``compute_bulk`` is the single entry point used by the lifecycle service.
It takes immutable inputs and returns a new immutable ``ComputedBulk``;
nothing here touches persistence.

Workers may be passed either as raw ``WorkerTimesheetInput`` (normalized
and calculated here) or as an already computed ``WorkerTimesheet`` (kept
as is).  Updates use the second form for workers that did not change;
the totals are still rebuilt from every worker.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from billing_engines.aggregator import aggregate
from billing_engines.calculator import compute_worker
from billing_kernel.domain.timesheet import (
    ComputedBulk,
    NetPayPolicy,
    WorkerTimesheet,
    WorkerTimesheetInput,
)
from billing_kernel.domain.week import format_week_period, validate_week
from billing_kernel.exceptions import DuplicateWorkerError, EmptyRecordError


def compute_bulk(
    week_start: date,
    week_end: date,
    workers: Sequence[WorkerTimesheetInput | WorkerTimesheet],
    net_pay_policy: NetPayPolicy = NetPayPolicy.JOBSEEKER_PAY,
) -> ComputedBulk:
    """Run the whole calculation for one bulk timesheet.

    Raises:
        EmptyRecordError: No workers (checked before anything else).
        InvalidWeekError: Malformed week window.
        DuplicateWorkerError: A worker id appears twice.
        ValidationError / RateConfigurationError: From the per-worker steps.
    """
    if not workers:
        raise EmptyRecordError()
    validate_week(week_start, week_end)

    seen: set[str] = set()
    computed: list[WorkerTimesheet] = []
    for worker in workers:
        if worker.worker_id in seen:
            raise DuplicateWorkerError(worker.worker_id)
        seen.add(worker.worker_id)

        if isinstance(worker, WorkerTimesheet):
            computed.append(worker)
        else:
            computed.append(compute_worker(worker, week_start, week_end))

    totals = aggregate(computed, net_pay_policy)

    return ComputedBulk(
        week_start=week_start,
        week_end=week_end,
        week_period=format_week_period(week_start, week_end),
        workers=tuple(computed),
        totals=totals,
    )

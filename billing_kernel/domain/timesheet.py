"""
Bulk Timesheet Value Objects (``billing_kernel.domain.timesheet``).

Responsibility
--------------
Frozen dataclass value objects for the bulk timesheet aggregate: time
entries, worker rate snapshots, computed per-worker results, record-level
totals, revision history entries, and the change set accepted by updates.

Architecture position
---------------------
**Kernel > Domain** -- pure data definitions with ZERO I/O.  Consumed by
the ``billing_engines`` pipeline, the lifecycle service and the selectors.
No dependency on the ORM or the database.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All hour and monetary fields use ``Decimal`` -- NEVER ``float``.
* ``TimeEntry`` hours are non-negative.
* ``RevisionRecord.version`` is at least 2 (version 1 is the creation).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Union
from uuid import UUID

ZERO = Decimal("0")


class NetPayPolicy(str, Enum):
    """How the record-level ``net_pay`` figure is derived."""

    # net_pay == total_jobseeker_pay
    JOBSEEKER_PAY = "jobseeker_pay"
    # net_pay == total_client_bill - total_jobseeker_pay
    MARGIN = "margin"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeEntry:
    """One calendar date of work for one worker."""

    work_date: date
    hours: Decimal
    overtime_hours: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.hours < ZERO or self.overtime_hours < ZERO:
            raise ValueError(
                f"TimeEntry hours cannot be negative: "
                f"{self.hours}/{self.overtime_hours}"
            )

    @property
    def total_hours(self) -> Decimal:
        return self.hours + self.overtime_hours


# Raw entries accepted by the normalizer: a TimeEntry, a
# (date, hours, overtime_hours) tuple, or a mapping with those keys.
RawTimeEntry = Union[TimeEntry, tuple, dict]


@dataclass(frozen=True)
class RateConfiguration:
    """Snapshot of a worker's rates for the billing week.

    A rate is ``None`` when the position does not define it.  Missing rates
    only matter if the worker logged hours of that type.
    """

    regular_pay_rate: Decimal | None
    regular_bill_rate: Decimal | None
    overtime_pay_rate: Decimal | None = None
    overtime_bill_rate: Decimal | None = None
    overtime_enabled: bool = False
    # When set (and overtime is enabled) weekly hours above this threshold
    # are overtime, regardless of how they were entered.
    overtime_threshold_hours: Decimal | None = None


@dataclass(frozen=True)
class WorkerRef:
    """Reference to a worker and the assignment they worked under."""

    worker_id: str
    assignment_id: str | None = None
    display_name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class WorkerTimesheetInput:
    """One worker's raw contribution before calculation."""

    worker: WorkerRef
    entries: tuple[RawTimeEntry, ...]
    rates: RateConfiguration
    bonus_amount: Decimal = ZERO
    deduction_amount: Decimal = ZERO

    @property
    def worker_id(self) -> str:
        return self.worker.worker_id


# ---------------------------------------------------------------------------
# Computed results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkerTimesheet:
    """One worker's normalized entries and computed pay/bill figures.

    ``total_regular_hours`` and ``total_overtime_hours`` are the hours as
    billed: with overtime disabled, entered overtime is folded into regular
    hours.  The entries keep what was entered.
    """

    worker: WorkerRef
    entries: tuple[TimeEntry, ...]
    rates: RateConfiguration
    bonus_amount: Decimal
    deduction_amount: Decimal
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    overtime_pay: Decimal
    worker_pay: Decimal
    client_bill: Decimal

    @property
    def worker_id(self) -> str:
        return self.worker.worker_id

    @property
    def total_hours(self) -> Decimal:
        return self.total_regular_hours + self.total_overtime_hours

    @property
    def entered_regular_hours(self) -> Decimal:
        return sum((e.hours for e in self.entries), ZERO)

    @property
    def entered_overtime_hours(self) -> Decimal:
        return sum((e.overtime_hours for e in self.entries), ZERO)

    def as_input(self) -> WorkerTimesheetInput:
        """The inputs this result was computed from."""
        return WorkerTimesheetInput(
            worker=self.worker,
            entries=self.entries,
            rates=self.rates,
            bonus_amount=self.bonus_amount,
            deduction_amount=self.deduction_amount,
        )


@dataclass(frozen=True)
class BulkTotals:
    """Record-level totals derived from the per-worker results."""

    total_hours: Decimal
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    total_overtime_pay: Decimal
    total_jobseeker_pay: Decimal
    total_client_bill: Decimal
    total_bonus: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    number_of_jobseekers: int
    average_hours_per_jobseeker: Decimal
    average_pay_per_jobseeker: Decimal


@dataclass(frozen=True)
class ComputedBulk:
    """Output of the calculation pipeline for one record."""

    week_start: date
    week_end: date
    week_period: str
    workers: tuple[WorkerTimesheet, ...]
    totals: BulkTotals


# ---------------------------------------------------------------------------
# Revision history
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RevisionRecord:
    """One entry of a record's version history."""

    version: int
    actor_id: UUID
    occurred_at: datetime
    description: str | None = None

    def __post_init__(self) -> None:
        if self.version < 2:
            raise ValueError(
                f"RevisionRecord version must be >= 2, got {self.version}"
            )


@dataclass(frozen=True)
class LedgerState:
    """Version counter and history of a record."""

    version: int
    history: tuple[RevisionRecord, ...] = ()


# ---------------------------------------------------------------------------
# Persisted aggregate (read model)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BulkTimesheet:
    """A persisted bulk timesheet as returned to callers."""

    id: UUID
    client_id: UUID
    position_id: UUID
    invoice_number: str
    week_start: date
    week_end: date
    week_period: str
    email_sent: bool
    workers: tuple[WorkerTimesheet, ...]
    totals: BulkTotals
    version: int
    version_history: tuple[RevisionRecord, ...]
    created_at: datetime
    updated_at: datetime
    created_by_id: UUID
    updated_by_id: UUID | None = None


# ---------------------------------------------------------------------------
# Update requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkerChange:
    """Partial change to one worker already on the record.

    ``None`` means "leave as is".
    """

    worker_id: str
    entries: tuple[RawTimeEntry, ...] | None = None
    rates: RateConfiguration | None = None
    bonus_amount: Decimal | None = None
    deduction_amount: Decimal | None = None


@dataclass(frozen=True)
class BulkTimesheetChanges:
    """Partial changes accepted by the lifecycle update.

    ``workers`` replaces the whole worker list; ``worker_changes`` patches
    individual workers.  The two are mutually exclusive.
    """

    client_id: UUID | None = None
    position_id: UUID | None = None
    week_start: date | None = None
    week_end: date | None = None
    email_sent: bool | None = None
    workers: tuple[WorkerTimesheetInput, ...] | None = None
    worker_changes: tuple[WorkerChange, ...] = field(default_factory=tuple)
    description: str | None = None

    def is_empty(self) -> bool:
        return (
            self.client_id is None
            and self.position_id is None
            and self.week_start is None
            and self.week_end is None
            and self.email_sent is None
            and self.workers is None
            and not self.worker_changes
            and self.description is None
        )

    @property
    def changes_week(self) -> bool:
        return self.week_start is not None or self.week_end is not None

"""Pydantic request and response models for the bulk timesheet API.

Field names are snake_case in Python and camelCase on the wire
(``weekStartDate``, ``workerTimesheets``...).  Both spellings are accepted
on input.  Decimals are returned as strings.

Request models only check shapes; hours, rates and invoice numbers are
validated by the kernel so that every rule has one home and one error code.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from billing_kernel.domain.timesheet import (
    BulkTimesheet,
    BulkTimesheetChanges,
    RateConfiguration,
    RevisionRecord,
    TimeEntry,
    WorkerChange,
    WorkerRef,
    WorkerTimesheet,
    WorkerTimesheetInput,
)
from billing_kernel.selectors.bulk_timesheet_selector import Page


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class TimeEntrySchema(CamelModel):
    work_date: date = Field(alias="date")
    hours: Decimal
    overtime_hours: Decimal = Decimal("0")

    def to_domain(self) -> dict:
        # Passed to the normalizer raw, so negative values get its error code
        return {
            "date": self.work_date,
            "hours": self.hours,
            "overtime_hours": self.overtime_hours,
        }

    @classmethod
    def from_domain(cls, entry: TimeEntry) -> TimeEntrySchema:
        return cls(work_date=entry.work_date, hours=entry.hours, overtime_hours=entry.overtime_hours)


class RatesSchema(CamelModel):
    regular_pay_rate: Decimal | None = None
    regular_bill_rate: Decimal | None = None
    overtime_pay_rate: Decimal | None = None
    overtime_bill_rate: Decimal | None = None
    overtime_enabled: bool = False
    overtime_threshold_hours: Decimal | None = None

    def to_domain(self) -> RateConfiguration:
        return RateConfiguration(
            regular_pay_rate=self.regular_pay_rate,
            regular_bill_rate=self.regular_bill_rate,
            overtime_pay_rate=self.overtime_pay_rate,
            overtime_bill_rate=self.overtime_bill_rate,
            overtime_enabled=self.overtime_enabled,
            overtime_threshold_hours=self.overtime_threshold_hours,
        )

    @classmethod
    def from_domain(cls, rates: RateConfiguration) -> RatesSchema:
        return cls(
            regular_pay_rate=rates.regular_pay_rate,
            regular_bill_rate=rates.regular_bill_rate,
            overtime_pay_rate=rates.overtime_pay_rate,
            overtime_bill_rate=rates.overtime_bill_rate,
            overtime_enabled=rates.overtime_enabled,
            overtime_threshold_hours=rates.overtime_threshold_hours,
        )


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class WorkerTimesheetIn(CamelModel):
    worker_id: str
    assignment_id: str | None = None
    display_name: str | None = None
    email: str | None = None
    entries: list[TimeEntrySchema] = Field(default_factory=list)
    rates: RatesSchema
    bonus_amount: Decimal = Decimal("0")
    deduction_amount: Decimal = Decimal("0")

    def to_domain(self) -> WorkerTimesheetInput:
        return WorkerTimesheetInput(
            worker=WorkerRef(
                worker_id=self.worker_id,
                assignment_id=self.assignment_id,
                display_name=self.display_name,
                email=self.email,
            ),
            entries=tuple(entry.to_domain() for entry in self.entries),
            rates=self.rates.to_domain(),
            bonus_amount=self.bonus_amount,
            deduction_amount=self.deduction_amount,
        )


class BulkTimesheetCreate(CamelModel):
    client_id: UUID
    position_id: UUID
    week_start_date: date
    week_end_date: date
    invoice_number: str | None = None
    email_sent: bool = False
    worker_timesheets: list[WorkerTimesheetIn] = Field(default_factory=list)


class WorkerChangeIn(CamelModel):
    worker_id: str
    entries: list[TimeEntrySchema] | None = None
    rates: RatesSchema | None = None
    bonus_amount: Decimal | None = None
    deduction_amount: Decimal | None = None

    def to_domain(self) -> WorkerChange:
        return WorkerChange(
            worker_id=self.worker_id,
            entries=(
                None if self.entries is None
                else tuple(entry.to_domain() for entry in self.entries)
            ),
            rates=None if self.rates is None else self.rates.to_domain(),
            bonus_amount=self.bonus_amount,
            deduction_amount=self.deduction_amount,
        )


class BulkTimesheetUpdate(CamelModel):
    """Partial update.  ``version`` is the version the caller last saw."""

    version: int = Field(ge=1)
    client_id: UUID | None = None
    position_id: UUID | None = None
    week_start_date: date | None = None
    week_end_date: date | None = None
    email_sent: bool | None = None
    worker_timesheets: list[WorkerTimesheetIn] | None = None
    worker_changes: list[WorkerChangeIn] = Field(default_factory=list)
    description: str | None = Field(default=None, max_length=1000)

    def to_domain(self) -> BulkTimesheetChanges:
        return BulkTimesheetChanges(
            client_id=self.client_id,
            position_id=self.position_id,
            week_start=self.week_start_date,
            week_end=self.week_end_date,
            email_sent=self.email_sent,
            workers=(
                None if self.worker_timesheets is None
                else tuple(w.to_domain() for w in self.worker_timesheets)
            ),
            worker_changes=tuple(c.to_domain() for c in self.worker_changes),
            description=self.description,
        )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class WorkerTimesheetOut(CamelModel):
    worker_id: str
    assignment_id: str | None = None
    display_name: str | None = None
    email: str | None = None
    entries: list[TimeEntrySchema]
    rates: RatesSchema
    bonus_amount: Decimal
    deduction_amount: Decimal
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    total_hours: Decimal
    overtime_pay: Decimal
    worker_pay: Decimal
    client_bill: Decimal

    @classmethod
    def from_domain(cls, worker: WorkerTimesheet) -> WorkerTimesheetOut:
        return cls(
            worker_id=worker.worker_id,
            assignment_id=worker.worker.assignment_id,
            display_name=worker.worker.display_name,
            email=worker.worker.email,
            entries=[TimeEntrySchema.from_domain(e) for e in worker.entries],
            rates=RatesSchema.from_domain(worker.rates),
            bonus_amount=worker.bonus_amount,
            deduction_amount=worker.deduction_amount,
            total_regular_hours=worker.total_regular_hours,
            total_overtime_hours=worker.total_overtime_hours,
            total_hours=worker.total_hours,
            overtime_pay=worker.overtime_pay,
            worker_pay=worker.worker_pay,
            client_bill=worker.client_bill,
        )


class RevisionRecordOut(CamelModel):
    version: int
    actor_id: UUID
    timestamp: datetime
    description: str | None = None

    @classmethod
    def from_domain(cls, revision: RevisionRecord) -> RevisionRecordOut:
        return cls(
            version=revision.version,
            actor_id=revision.actor_id,
            timestamp=revision.occurred_at,
            description=revision.description,
        )


class BulkTimesheetOut(CamelModel):
    id: UUID
    client_id: UUID
    position_id: UUID
    invoice_number: str
    week_start_date: date
    week_end_date: date
    week_period: str
    email_sent: bool
    worker_timesheets: list[WorkerTimesheetOut]
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
    version: int
    version_history: list[RevisionRecordOut]
    created_at: datetime
    updated_at: datetime
    created_by: UUID
    updated_by: UUID | None = None

    @classmethod
    def from_domain(cls, record: BulkTimesheet) -> BulkTimesheetOut:
        totals = record.totals
        return cls(
            id=record.id,
            client_id=record.client_id,
            position_id=record.position_id,
            invoice_number=record.invoice_number,
            week_start_date=record.week_start,
            week_end_date=record.week_end,
            week_period=record.week_period,
            email_sent=record.email_sent,
            worker_timesheets=[WorkerTimesheetOut.from_domain(w) for w in record.workers],
            total_hours=totals.total_hours,
            total_regular_hours=totals.total_regular_hours,
            total_overtime_hours=totals.total_overtime_hours,
            total_overtime_pay=totals.total_overtime_pay,
            total_jobseeker_pay=totals.total_jobseeker_pay,
            total_client_bill=totals.total_client_bill,
            total_bonus=totals.total_bonus,
            total_deductions=totals.total_deductions,
            net_pay=totals.net_pay,
            number_of_jobseekers=totals.number_of_jobseekers,
            average_hours_per_jobseeker=totals.average_hours_per_jobseeker,
            average_pay_per_jobseeker=totals.average_pay_per_jobseeker,
            version=record.version,
            version_history=[RevisionRecordOut.from_domain(r) for r in record.version_history],
            created_at=record.created_at,
            updated_at=record.updated_at,
            created_by=record.created_by_id,
            updated_by=record.updated_by_id,
        )


class PaginationOut(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class BulkTimesheetPageOut(CamelModel):
    bulk_timesheets: list[BulkTimesheetOut]
    pagination: PaginationOut

    @classmethod
    def from_domain(cls, page: Page) -> BulkTimesheetPageOut:
        return cls(
            bulk_timesheets=[BulkTimesheetOut.from_domain(r) for r in page.items],
            pagination=PaginationOut(
                page=page.page,
                limit=page.limit,
                total=page.total,
                total_pages=page.total_pages,
                has_next_page=page.has_next_page,
                has_prev_page=page.has_prev_page,
            ),
        )


class InvoiceNumberOut(CamelModel):
    invoice_number: str

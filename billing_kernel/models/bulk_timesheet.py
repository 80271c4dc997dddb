"""
Module: billing_kernel.models.bulk_timesheet
Responsibility: ORM persistence for the BulkTimesheet aggregate root.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced at the database level:
    - version > 0
    - number_of_jobseekers >= 1
    - week_end_date >= week_start_date
    - invoice_number is UNIQUE

The per-worker breakdown is owned by the row and stored as a JSON document
(``worker_timesheets``); it has no lifecycle of its own.  The document shape
is produced and read by ``billing_kernel.domain.documents``.

Mutation rules:
    - Only BulkTimesheetService writes this table.  Updates go through a
      single conditional ``UPDATE ... WHERE version = :expected``.
    - invoice_number never changes after INSERT (ORM listener in
      db/immutability.py).
"""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import TrackedBase, UUIDString

INVOICE_NUMBER_MAX_LENGTH = 32


class BulkTimesheetModel(TrackedBase):
    """One billing week of worker time for a client position."""

    __tablename__ = "bulk_timesheets"

    __table_args__ = (
        CheckConstraint("version > 0", name="ck_bulk_timesheets_version_positive"),
        CheckConstraint(
            "number_of_jobseekers >= 1",
            name="ck_bulk_timesheets_has_workers",
        ),
        CheckConstraint(
            "week_end_date >= week_start_date",
            name="ck_bulk_timesheets_week_order",
        ),
        Index("idx_bulk_timesheets_client", "client_id"),
        Index("idx_bulk_timesheets_position", "position_id"),
        Index("idx_bulk_timesheets_week", "week_start_date", "week_end_date"),
        Index("idx_bulk_timesheets_created", "created_at"),
    )

    client_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    position_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    invoice_number: Mapped[str] = mapped_column(
        String(INVOICE_NUMBER_MAX_LENGTH),
        nullable=False,
        unique=True,
    )

    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_period: Mapped[str] = mapped_column(String(64), nullable=False)

    email_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Record-level totals, always recomputed from worker_timesheets
    total_hours: Mapped[Decimal] = mapped_column(nullable=False)
    total_regular_hours: Mapped[Decimal] = mapped_column(nullable=False)
    total_overtime_hours: Mapped[Decimal] = mapped_column(nullable=False)
    total_overtime_pay: Mapped[Decimal] = mapped_column(nullable=False)
    total_jobseeker_pay: Mapped[Decimal] = mapped_column(nullable=False)
    total_client_bill: Mapped[Decimal] = mapped_column(nullable=False)
    total_bonus: Mapped[Decimal] = mapped_column(nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False)
    number_of_jobseekers: Mapped[int] = mapped_column(Integer, nullable=False)
    average_hours_per_jobseeker: Mapped[Decimal] = mapped_column(nullable=False)
    average_pay_per_jobseeker: Mapped[Decimal] = mapped_column(nullable=False)

    worker_timesheets: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return (
            f"<BulkTimesheet {self.invoice_number} "
            f"{self.week_start_date}..{self.week_end_date} v{self.version}>"
        )

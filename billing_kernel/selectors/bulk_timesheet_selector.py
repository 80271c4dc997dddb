"""
Module: billing_kernel.selectors.bulk_timesheet_selector
Responsibility: Read access to bulk timesheets: a single record with its
    full version history, a filtered and paginated listing, and the set of
    invoice numbers in use.
Architecture position: Kernel > Selectors.  Read-only; returns frozen DTOs.

Visibility rules come from ``billing_kernel.domain.actor``: a record the
actor cannot view is reported as not found, and listings only contain
records the actor can view.

Decimal columns are stored at Numeric(38, 9) and quantized back to two
places here, so DTOs compare equal to the engine results that produced them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from billing_kernel.db.types import round_hours, round_money
from billing_kernel.domain.actor import Actor, ActorRole, can_view
from billing_kernel.domain.documents import worker_from_document
from billing_kernel.domain.timesheet import BulkTimesheet, BulkTotals, RevisionRecord
from billing_kernel.exceptions import RecordNotFoundError
from billing_kernel.models.bulk_timesheet import BulkTimesheetModel
from billing_kernel.models.revision import RevisionRecordModel
from billing_kernel.selectors.base import BaseSelector

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page:
    """One page of a listing."""

    items: tuple[BulkTimesheet, ...]
    total: int
    total_pages: int
    page: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


def _totals(model: BulkTimesheetModel) -> BulkTotals:
    return BulkTotals(
        total_hours=round_hours(model.total_hours),
        total_regular_hours=round_hours(model.total_regular_hours),
        total_overtime_hours=round_hours(model.total_overtime_hours),
        total_overtime_pay=round_money(model.total_overtime_pay),
        total_jobseeker_pay=round_money(model.total_jobseeker_pay),
        total_client_bill=round_money(model.total_client_bill),
        total_bonus=round_money(model.total_bonus),
        total_deductions=round_money(model.total_deductions),
        net_pay=round_money(model.net_pay),
        number_of_jobseekers=model.number_of_jobseekers,
        average_hours_per_jobseeker=round_hours(model.average_hours_per_jobseeker),
        average_pay_per_jobseeker=round_money(model.average_pay_per_jobseeker),
    )


def _to_dto(
    model: BulkTimesheetModel,
    history: tuple[RevisionRecord, ...],
) -> BulkTimesheet:
    return BulkTimesheet(
        id=model.id,
        client_id=model.client_id,
        position_id=model.position_id,
        invoice_number=model.invoice_number,
        week_start=model.week_start_date,
        week_end=model.week_end_date,
        week_period=model.week_period,
        email_sent=model.email_sent,
        workers=tuple(worker_from_document(doc) for doc in model.worker_timesheets),
        totals=_totals(model),
        version=model.version,
        version_history=history,
        created_at=model.created_at,
        updated_at=model.updated_at,
        created_by_id=model.created_by_id,
        updated_by_id=model.updated_by_id,
    )


class BulkTimesheetSelector(BaseSelector[BulkTimesheetModel]):
    """Read-only queries over bulk timesheets."""

    def __init__(self, session: Session):
        super().__init__(session)

    def _history(self, record_id: UUID) -> tuple[RevisionRecord, ...]:
        rows = self.session.execute(
            select(RevisionRecordModel)
            .where(RevisionRecordModel.record_id == record_id)
            .order_by(RevisionRecordModel.version)
        ).scalars().all()
        return tuple(
            RevisionRecord(
                version=row.version,
                actor_id=row.actor_id,
                occurred_at=row.occurred_at,
                description=row.description,
            )
            for row in rows
        )

    def get(self, record_id: UUID, actor: Actor | None = None) -> BulkTimesheet:
        """
        Load one record with its version history.

        Raises:
            RecordNotFoundError: If the record does not exist or the actor
                may not view it.
        """
        # The lifecycle service updates rows with Core statements, so the
        # identity map may hold an older state.
        model = self.session.execute(
            select(BulkTimesheetModel)
            .where(BulkTimesheetModel.id == record_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if model is None or (actor is not None and not can_view(actor, model.created_by_id)):
            raise RecordNotFoundError(str(record_id))

        return _to_dto(model, self._history(record_id))

    def list(
        self,
        actor: Actor | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        invoice_number_filter: str | None = None,
        week_start_from: date | None = None,
        week_end_to: date | None = None,
        email_sent: bool | None = None,
        client_id: UUID | None = None,
        position_id: UUID | None = None,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> Page:
        """Newest first; ``page`` is 1-based and ``limit`` is capped."""
        page = max(page, 1)
        limit = min(max(limit, 1), max_limit)

        conditions = []
        if actor is not None and actor.role == ActorRole.JOBSEEKER:
            conditions.append(BulkTimesheetModel.created_by_id == actor.actor_id)
        if invoice_number_filter and invoice_number_filter.strip():
            conditions.append(
                BulkTimesheetModel.invoice_number.icontains(
                    invoice_number_filter.strip(), autoescape=True
                )
            )
        if week_start_from is not None:
            conditions.append(BulkTimesheetModel.week_start_date >= week_start_from)
        if week_end_to is not None:
            conditions.append(BulkTimesheetModel.week_end_date <= week_end_to)
        if email_sent is not None:
            conditions.append(BulkTimesheetModel.email_sent == email_sent)
        if client_id is not None:
            conditions.append(BulkTimesheetModel.client_id == client_id)
        if position_id is not None:
            conditions.append(BulkTimesheetModel.position_id == position_id)

        total = self.session.execute(
            select(func.count()).select_from(BulkTimesheetModel).where(*conditions)
        ).scalar_one()

        models = self.session.execute(
            select(BulkTimesheetModel)
            .where(*conditions)
            .order_by(
                BulkTimesheetModel.created_at.desc(),
                BulkTimesheetModel.invoice_number.desc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
            .execution_options(populate_existing=True)
        ).scalars().all()

        total_pages = math.ceil(total / limit) if total else 0
        return Page(
            items=tuple(_to_dto(m, self._history(m.id)) for m in models),
            total=total,
            total_pages=total_pages,
            page=page,
            limit=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )

    def existing_invoice_numbers(self) -> frozenset[str]:
        return frozenset(
            self.session.execute(select(BulkTimesheetModel.invoice_number)).scalars().all()
        )

"""HTTP routes for bulk timesheets.

Each handler runs one kernel operation inside ``session_scope()``: the
transaction commits before the response is built, and change notices are
dispatched by that commit.  Kernel exceptions propagate to the handlers in
``billing_api.errors``.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status

from billing_api.dependencies import build_service, get_actor, get_config
from billing_api.schemas import (
    BulkTimesheetCreate,
    BulkTimesheetOut,
    BulkTimesheetPageOut,
    BulkTimesheetUpdate,
    InvoiceNumberOut,
)
from billing_config import BillingConfig
from billing_kernel.db.engine import session_scope
from billing_kernel.domain.actor import Actor
from billing_kernel.selectors.bulk_timesheet_selector import BulkTimesheetSelector

router = APIRouter(prefix="/bulk-timesheets", tags=["bulk-timesheets"])


# Declared before /{record_id} so the path is not read as an id
@router.get("/generate-invoice-number", response_model=InvoiceNumberOut)
def generate_invoice_number(
    request: Request,
    actor: Actor = Depends(get_actor),
) -> InvoiceNumberOut:
    with session_scope() as session:
        invoice_number = build_service(request, session).generate_invoice_number()
    return InvoiceNumberOut(invoice_number=invoice_number)


@router.post("", response_model=BulkTimesheetOut, status_code=status.HTTP_201_CREATED)
def create_bulk_timesheet(
    payload: BulkTimesheetCreate,
    request: Request,
    actor: Actor = Depends(get_actor),
) -> BulkTimesheetOut:
    with session_scope() as session:
        record = build_service(request, session).create(
            client_id=payload.client_id,
            position_id=payload.position_id,
            week_start=payload.week_start_date,
            week_end=payload.week_end_date,
            workers=[w.to_domain() for w in payload.worker_timesheets],
            actor=actor,
            invoice_number=payload.invoice_number,
            email_sent=payload.email_sent,
        )
    return BulkTimesheetOut.from_domain(record)


@router.get("", response_model=BulkTimesheetPageOut)
def list_bulk_timesheets(
    actor: Actor = Depends(get_actor),
    config: BillingConfig = Depends(get_config),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    invoice_number_filter: str | None = Query(default=None, alias="invoiceNumberFilter"),
    date_range_start: date | None = Query(default=None, alias="dateRangeStart"),
    date_range_end: date | None = Query(default=None, alias="dateRangeEnd"),
    email_sent: bool | None = Query(default=None, alias="emailSentFilter"),
    client_id: UUID | None = Query(default=None, alias="clientId"),
    position_id: UUID | None = Query(default=None, alias="positionId"),
) -> BulkTimesheetPageOut:
    with session_scope() as session:
        result = BulkTimesheetSelector(session).list(
            actor=actor,
            page=page,
            limit=limit or config.pagination.default_page_size,
            invoice_number_filter=invoice_number_filter,
            week_start_from=date_range_start,
            week_end_to=date_range_end,
            email_sent=email_sent,
            client_id=client_id,
            position_id=position_id,
            max_limit=config.pagination.max_page_size,
        )
    return BulkTimesheetPageOut.from_domain(result)


@router.get("/{record_id}", response_model=BulkTimesheetOut)
def get_bulk_timesheet(
    record_id: UUID,
    actor: Actor = Depends(get_actor),
) -> BulkTimesheetOut:
    with session_scope() as session:
        record = BulkTimesheetSelector(session).get(record_id, actor=actor)
    return BulkTimesheetOut.from_domain(record)


@router.put("/{record_id}", response_model=BulkTimesheetOut)
def update_bulk_timesheet(
    record_id: UUID,
    payload: BulkTimesheetUpdate,
    request: Request,
    actor: Actor = Depends(get_actor),
) -> BulkTimesheetOut:
    with session_scope() as session:
        record = build_service(request, session).update(
            record_id=record_id,
            expected_version=payload.version,
            changes=payload.to_domain(),
            actor=actor,
        )
    return BulkTimesheetOut.from_domain(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bulk_timesheet(
    record_id: UUID,
    request: Request,
    version: int | None = Query(default=None, ge=1),
    actor: Actor = Depends(get_actor),
) -> Response:
    with session_scope() as session:
        build_service(request, session).delete(
            record_id=record_id,
            actor=actor,
            expected_version=version,
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)

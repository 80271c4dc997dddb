"""
BulkTimesheetService -- lifecycle manager for bulk timesheets.

Responsibility:
    Create, Update and Delete of ``BulkTimesheet`` records.  This is the
    only code that writes the ``bulk_timesheets`` table.  All arithmetic is
    delegated to the pure pipeline in ``billing_engines``; this service
    loads, validates, persists, versions and audits.

Architecture position:
    Kernel > Services -- imperative shell around the engines.

Invariants enforced:
    - A record is persisted only with freshly computed totals.
    - Version starts at 1 and advances by exactly one per successful update.
    - The version check and the write are one conditional statement
      (``UPDATE ... WHERE id = :id AND version = :expected``); a rowcount of
      zero means another writer won and the caller gets StaleVersionError.
    - A rejected operation leaves no trace: no revision, no audit event,
      no change notice.
    - Invoice number is fixed at creation.

Failure modes:
    - EmptyRecordError, ValidationError subclasses, RateConfigurationError
      from input checks and the engines.
    - DuplicateInvoiceNumberError on Create.
    - StaleVersionError on Update/Delete.
    - RecordNotFoundError, WorkerNotFoundError, AuthorizationError.

Transaction control:
    flush only; the caller commits.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from billing_engines.pipeline import compute_bulk
from billing_kernel.domain.actor import Actor, ActorRole, can_delete, can_view
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.documents import worker_from_document, worker_to_document
from billing_kernel.domain.timesheet import (
    BulkTimesheet,
    BulkTimesheetChanges,
    ComputedBulk,
    NetPayPolicy,
    WorkerChange,
    WorkerTimesheet,
    WorkerTimesheetInput,
)
from billing_kernel.exceptions import (
    AuthorizationError,
    DuplicateInvoiceNumberError,
    EmptyChangeSetError,
    EmptyRecordError,
    RecordNotFoundError,
    StaleVersionError,
    ValidationError,
    WorkerNotFoundError,
)
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models.bulk_timesheet import BulkTimesheetModel
from billing_kernel.selectors.bulk_timesheet_selector import BulkTimesheetSelector
from billing_kernel.services.auditor_service import AuditorService
from billing_kernel.services.base import BaseService
from billing_kernel.services.change_notifier import (
    ACTION_CREATED,
    ACTION_DELETED,
    ACTION_UPDATED,
    ChangeNotice,
    ChangeNotifier,
)
from billing_kernel.services.invoice_number_service import InvoiceNumberService
from billing_kernel.services.revision_ledger import RevisionLedger

logger = get_logger("services.bulk_timesheet")

DEFAULT_DELETE_ROLES = frozenset({ActorRole.ADMIN, ActorRole.RECRUITER})

AnyWorker = WorkerTimesheetInput | WorkerTimesheet


def _computed_columns(computed: ComputedBulk) -> dict:
    """Column values derived from a pipeline result."""
    totals = computed.totals
    return {
        "week_start_date": computed.week_start,
        "week_end_date": computed.week_end,
        "week_period": computed.week_period,
        "total_hours": totals.total_hours,
        "total_regular_hours": totals.total_regular_hours,
        "total_overtime_hours": totals.total_overtime_hours,
        "total_overtime_pay": totals.total_overtime_pay,
        "total_jobseeker_pay": totals.total_jobseeker_pay,
        "total_client_bill": totals.total_client_bill,
        "total_bonus": totals.total_bonus,
        "total_deductions": totals.total_deductions,
        "net_pay": totals.net_pay,
        "number_of_jobseekers": totals.number_of_jobseekers,
        "average_hours_per_jobseeker": totals.average_hours_per_jobseeker,
        "average_pay_per_jobseeker": totals.average_pay_per_jobseeker,
        "worker_timesheets": [worker_to_document(w) for w in computed.workers],
    }


def _as_input(worker: AnyWorker) -> WorkerTimesheetInput:
    if isinstance(worker, WorkerTimesheet):
        return worker.as_input()
    return worker


def _apply_worker_change(worker: AnyWorker, change: WorkerChange) -> WorkerTimesheetInput:
    base = _as_input(worker)
    return WorkerTimesheetInput(
        worker=base.worker,
        entries=base.entries if change.entries is None else tuple(change.entries),
        rates=base.rates if change.rates is None else change.rates,
        bonus_amount=(
            base.bonus_amount if change.bonus_amount is None else change.bonus_amount
        ),
        deduction_amount=(
            base.deduction_amount
            if change.deduction_amount is None
            else change.deduction_amount
        ),
    )


class BulkTimesheetService(BaseService[BulkTimesheetModel]):
    """
    Create, update and delete bulk timesheets.

    Non-goals:
        - Does NOT commit; notices are dispatched by the session's commit.
        - Does NOT retry on conflicts.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        net_pay_policy: NetPayPolicy = NetPayPolicy.JOBSEEKER_PAY,
        delete_roles: frozenset[ActorRole] = DEFAULT_DELETE_ROLES,
        invoice_number_width: int = 6,
        invoice_number_prefix: str = "INV-",
        notifier: ChangeNotifier | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._net_pay_policy = net_pay_policy
        self._delete_roles = delete_roles
        self._notifier = notifier
        self._invoice_numbers = InvoiceNumberService(
            session, width=invoice_number_width, prefix=invoice_number_prefix
        )
        self._ledger = RevisionLedger(session)
        self._auditor = AuditorService(session, self._clock)
        self._selector = BulkTimesheetSelector(session)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _stage(self, model_id: UUID, client_id: UUID, position_id: UUID,
               action: str, version: int) -> None:
        if self._notifier is None:
            return
        self._notifier.stage(
            self.session,
            ChangeNotice(
                record_id=model_id,
                client_id=client_id,
                position_id=position_id,
                action=action,
                version=version,
            ),
        )

    def _load(self, record_id: UUID, actor: Actor) -> BulkTimesheetModel:
        model = self.session.execute(
            select(BulkTimesheetModel)
            .where(BulkTimesheetModel.id == record_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if model is None or not can_view(actor, model.created_by_id):
            raise RecordNotFoundError(str(record_id))
        return model

    def _current_version(self, record_id: UUID) -> int | None:
        return self.session.execute(
            select(BulkTimesheetModel.version).where(BulkTimesheetModel.id == record_id)
        ).scalar_one_or_none()

    # ------------------------------------------------------------------
    # Invoice numbers
    # ------------------------------------------------------------------

    def generate_invoice_number(self) -> str:
        """Next unused invoice number.  Not reserved."""
        return self._invoice_numbers.generate_candidate()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(
        self,
        client_id: UUID,
        position_id: UUID,
        week_start: date,
        week_end: date,
        workers: Sequence[WorkerTimesheetInput],
        actor: Actor,
        invoice_number: str | None = None,
        email_sent: bool = False,
    ) -> BulkTimesheet:
        """
        Compute and persist a new record at version 1.

        ``invoice_number`` may be omitted, in which case the next candidate
        is used.

        Raises:
            EmptyRecordError: No workers.
            InvalidInvoiceNumberError: Malformed invoice number.
            DuplicateInvoiceNumberError: Number already in use.
            ValidationError, RateConfigurationError: From the calculation.
        """
        if not workers:
            raise EmptyRecordError()

        with LogContext.bind(actor_id=actor.actor_id):
            if invoice_number is None:
                invoice_number = self._invoice_numbers.generate_candidate()
            else:
                invoice_number = self._invoice_numbers.normalize(invoice_number)
            self._invoice_numbers.ensure_unique(invoice_number)

            computed = compute_bulk(week_start, week_end, workers, self._net_pay_policy)
            ledger = self._ledger.initialize()
            now = self._clock.now()

            model = BulkTimesheetModel(
                id=uuid4(),
                client_id=client_id,
                position_id=position_id,
                invoice_number=invoice_number,
                email_sent=email_sent,
                version=ledger.version,
                created_at=now,
                updated_at=now,
                created_by_id=actor.actor_id,
                **_computed_columns(computed),
            )

            # A concurrent Create may have taken the number since the check
            try:
                with self.session.begin_nested():
                    self.session.add(model)
            except IntegrityError:
                if self._invoice_numbers.is_taken(invoice_number):
                    logger.warning(
                        "invoice_number_race_lost",
                        extra={"invoice_number": invoice_number},
                    )
                    raise DuplicateInvoiceNumberError(invoice_number)
                raise

            with LogContext.bind(record_id=model.id, invoice_number=invoice_number):
                self._auditor.record_bulk_timesheet_created(
                    record_id=model.id,
                    invoice_number=invoice_number,
                    totals=computed.totals,
                    actor_id=actor.actor_id,
                )
                self._stage(model.id, client_id, position_id, ACTION_CREATED, ledger.version)

                logger.info(
                    "bulk_timesheet_created",
                    extra={
                        "week_period": computed.week_period,
                        "number_of_jobseekers": computed.totals.number_of_jobseekers,
                        "total_client_bill": str(computed.totals.total_client_bill),
                    },
                )

            return self._selector.get(model.id)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def _updated_workers(
        self,
        model: BulkTimesheetModel,
        changes: BulkTimesheetChanges,
    ) -> list[AnyWorker]:
        if changes.workers is not None:
            workers: list[AnyWorker] = list(changes.workers)
        else:
            current = [worker_from_document(doc) for doc in model.worker_timesheets]
            by_id: dict[str, AnyWorker] = {w.worker_id: w for w in current}
            for change in changes.worker_changes:
                if change.worker_id not in by_id:
                    raise WorkerNotFoundError(str(model.id), change.worker_id)
                by_id[change.worker_id] = _apply_worker_change(
                    by_id[change.worker_id], change
                )
            workers = [by_id[w.worker_id] for w in current]

        if changes.changes_week:
            # Every stored entry must fit the new window
            workers = [_as_input(w) for w in workers]
        return workers

    @staticmethod
    def _changed_fields(changes: BulkTimesheetChanges) -> list[str]:
        fields = [
            name
            for name in ("client_id", "position_id", "week_start", "week_end", "email_sent")
            if getattr(changes, name) is not None
        ]
        if changes.workers is not None:
            fields.append("workers")
        if changes.worker_changes:
            fields.append("worker_changes")
        if changes.description is not None:
            fields.append("description")
        return fields

    def update(
        self,
        record_id: UUID,
        expected_version: int,
        changes: BulkTimesheetChanges,
        actor: Actor,
    ) -> BulkTimesheet:
        """
        Apply partial changes to a record the caller last saw at
        ``expected_version``.

        Every worker affected by the change is recomputed and the totals are
        rebuilt from all workers.  On success the record is at
        ``expected_version + 1`` with one new revision entry.

        Raises:
            RecordNotFoundError: Unknown record, or not visible to the actor.
            EmptyChangeSetError: Nothing to change.
            StaleVersionError: Another writer got there first.
            WorkerNotFoundError: A worker change names an unknown worker.
        """
        with LogContext.bind(actor_id=actor.actor_id, record_id=record_id):
            model = self._load(record_id, actor)

            if changes.is_empty():
                raise EmptyChangeSetError(str(record_id))
            if changes.workers is not None and changes.worker_changes:
                raise ValidationError(
                    "Replace the worker list or change individual workers, not both"
                )

            if model.version != expected_version:
                logger.warning(
                    "bulk_timesheet_update_conflict",
                    extra={
                        "expected_version": expected_version,
                        "current_version": model.version,
                    },
                )
                raise StaleVersionError(str(record_id), expected_version, model.version)

            client_id = changes.client_id or model.client_id
            position_id = changes.position_id or model.position_id
            week_start = changes.week_start or model.week_start_date
            week_end = changes.week_end or model.week_end_date
            email_sent = model.email_sent if changes.email_sent is None else changes.email_sent

            computed = compute_bulk(
                week_start,
                week_end,
                self._updated_workers(model, changes),
                self._net_pay_policy,
            )

            now = self._clock.now()
            new_version = expected_version + 1
            result = self.session.execute(
                update(BulkTimesheetModel)
                .where(
                    BulkTimesheetModel.id == record_id,
                    BulkTimesheetModel.version == expected_version,
                )
                .values(
                    client_id=client_id,
                    position_id=position_id,
                    email_sent=email_sent,
                    version=new_version,
                    updated_at=now,
                    updated_by_id=actor.actor_id,
                    **_computed_columns(computed),
                )
                .execution_options(synchronize_session=False)
            )

            if result.rowcount != 1:
                current_version = self._current_version(record_id)
                if current_version is None:
                    raise RecordNotFoundError(str(record_id))
                logger.warning(
                    "bulk_timesheet_update_conflict",
                    extra={
                        "expected_version": expected_version,
                        "current_version": current_version,
                    },
                )
                raise StaleVersionError(str(record_id), expected_version, current_version)

            recorded = self._ledger.record_revision(
                record_id=record_id,
                current_version=expected_version,
                actor_id=actor.actor_id,
                occurred_at=now,
                description=changes.description,
            )
            changed_fields = self._changed_fields(changes)
            self._auditor.record_bulk_timesheet_updated(
                record_id=record_id,
                invoice_number=model.invoice_number,
                version=recorded,
                totals=computed.totals,
                changed_fields=changed_fields,
                actor_id=actor.actor_id,
                description=changes.description,
            )
            self._stage(record_id, client_id, position_id, ACTION_UPDATED, recorded)

            logger.info(
                "bulk_timesheet_updated",
                extra={
                    "invoice_number": model.invoice_number,
                    "version": recorded,
                    "changed_fields": changed_fields,
                },
            )

            return self._selector.get(record_id)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(
        self,
        record_id: UUID,
        actor: Actor,
        expected_version: int | None = None,
    ) -> None:
        """
        Remove a record.  Its revision rows and audit events are kept.

        Raises:
            RecordNotFoundError: Unknown record, or not visible to the actor.
            AuthorizationError: Actor lacks the delete capability.
            StaleVersionError: ``expected_version`` given and out of date.
        """
        with LogContext.bind(actor_id=actor.actor_id, record_id=record_id):
            model = self._load(record_id, actor)

            if not can_delete(actor, model.created_by_id, self._delete_roles):
                logger.warning(
                    "bulk_timesheet_delete_denied",
                    extra={"role": actor.role.value},
                )
                raise AuthorizationError(
                    str(actor.actor_id), actor.role.value, "delete bulk timesheets"
                )

            version = model.version
            if expected_version is not None and version != expected_version:
                raise StaleVersionError(str(record_id), expected_version, version)

            snapshot = self._selector.get(record_id)
            result = self.session.execute(
                delete(BulkTimesheetModel)
                .where(
                    BulkTimesheetModel.id == record_id,
                    BulkTimesheetModel.version == version,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                current_version = self._current_version(record_id)
                if current_version is None:
                    raise RecordNotFoundError(str(record_id))
                raise StaleVersionError(str(record_id), version, current_version)
            self.session.expunge(model)

            self._auditor.record_bulk_timesheet_deleted(
                record_id=record_id,
                invoice_number=snapshot.invoice_number,
                version=version,
                totals=snapshot.totals,
                actor_id=actor.actor_id,
            )
            self._stage(
                record_id, snapshot.client_id, snapshot.position_id, ACTION_DELETED, version
            )

            logger.info(
                "bulk_timesheet_deleted",
                extra={"invoice_number": snapshot.invoice_number, "final_version": version},
            )

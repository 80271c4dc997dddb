"""
AuditorService -- tamper-evident audit trail for bulk timesheet lifecycle.

Responsibility:
    Creates hash-chained ``AuditEvent`` records for every create, update
    and delete of a bulk timesheet, and validates the chain on demand.
    Audit events are what preserve a record's history after it is deleted.

Architecture position:
    Kernel > Services -- imperative shell.  Called by
    ``BulkTimesheetService`` inside the same transaction as the change it
    records.

Invariants enforced:
    - Hash chain: each event's hash covers the previous event's hash.
    - Monotonic ``seq`` allocated through ``SequenceService``.  The counter
      row is locked before the previous hash is read, so concurrent writers
      cannot fork the chain.
    - Append-only: ``AuditEvent`` rows are protected by ORM listeners.

Failure modes:
    - ``AuditChainBrokenError`` from ``validate_chain()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.timesheet import BulkTotals
from billing_kernel.exceptions import AuditChainBrokenError
from billing_kernel.logging_config import get_logger
from billing_kernel.models.audit_event import AuditAction, AuditEvent
from billing_kernel.services.sequence_service import SequenceService
from billing_kernel.utils.hashing import hash_audit_event, hash_payload

logger = get_logger("services.auditor")

BULK_TIMESHEET_ENTITY = "BulkTimesheet"


@dataclass(frozen=True)
class AuditTraceEntry:
    seq: int
    action: str
    occurred_at: datetime
    actor_id: UUID
    payload: dict[str, Any]
    hash: str


@dataclass(frozen=True)
class AuditTrace:
    """Every audit event of one entity, oldest first."""

    entity_type: str
    entity_id: UUID
    entries: tuple[AuditTraceEntry, ...]

    @property
    def actions(self) -> tuple[str, ...]:
        return tuple(entry.action for entry in self.entries)


def _totals_payload(totals: BulkTotals) -> dict[str, str | int]:
    return {
        "total_hours": str(totals.total_hours),
        "total_jobseeker_pay": str(totals.total_jobseeker_pay),
        "total_client_bill": str(totals.total_client_bill),
        "net_pay": str(totals.net_pay),
        "number_of_jobseekers": totals.number_of_jobseekers,
    }


class AuditorService:
    """
    Records and validates the audit chain.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence_service = SequenceService(session)

    def _get_last_hash(self) -> str | None:
        last_event = self._session.execute(
            select(AuditEvent).order_by(AuditEvent.seq.desc()).limit(1)
        ).scalar_one_or_none()
        return last_event.hash if last_event else None

    def _create_audit_event(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        actor_id: UUID,
        payload: dict[str, Any],
    ) -> AuditEvent:
        seq = self._sequence_service.next_value(SequenceService.AUDIT_EVENT)
        prev_hash = self._get_last_hash()

        payload_hash = hash_payload(payload)
        event_hash = hash_audit_event(
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action.value,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
        )

        audit_event = AuditEvent(
            seq=seq,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action.value,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            payload=payload,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
            hash=event_hash,
        )
        self._session.add(audit_event)
        self._session.flush()

        logger.info(
            "audit_event_created",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "action": action.value,
                "seq": seq,
            },
        )
        return audit_event

    # Domain-specific recording methods

    def record_bulk_timesheet_created(
        self,
        record_id: UUID,
        invoice_number: str,
        totals: BulkTotals,
        actor_id: UUID,
    ) -> AuditEvent:
        return self._create_audit_event(
            entity_type=BULK_TIMESHEET_ENTITY,
            entity_id=record_id,
            action=AuditAction.BULK_TIMESHEET_CREATED,
            actor_id=actor_id,
            payload={
                "invoice_number": invoice_number,
                "version": 1,
                **_totals_payload(totals),
            },
        )

    def record_bulk_timesheet_updated(
        self,
        record_id: UUID,
        invoice_number: str,
        version: int,
        totals: BulkTotals,
        changed_fields: list[str],
        actor_id: UUID,
        description: str | None = None,
    ) -> AuditEvent:
        return self._create_audit_event(
            entity_type=BULK_TIMESHEET_ENTITY,
            entity_id=record_id,
            action=AuditAction.BULK_TIMESHEET_UPDATED,
            actor_id=actor_id,
            payload={
                "invoice_number": invoice_number,
                "version": version,
                "changed_fields": sorted(changed_fields),
                "description": description,
                **_totals_payload(totals),
            },
        )

    def record_bulk_timesheet_deleted(
        self,
        record_id: UUID,
        invoice_number: str,
        version: int,
        totals: BulkTotals,
        actor_id: UUID,
    ) -> AuditEvent:
        return self._create_audit_event(
            entity_type=BULK_TIMESHEET_ENTITY,
            entity_id=record_id,
            action=AuditAction.BULK_TIMESHEET_DELETED,
            actor_id=actor_id,
            payload={
                "invoice_number": invoice_number,
                "final_version": version,
                **_totals_payload(totals),
            },
        )

    def validate_chain(self) -> bool:
        """
        Validate the entire audit chain.

        Raises:
            AuditChainBrokenError: If any stored hash or link is wrong.
        """
        events = self._session.execute(
            select(AuditEvent).order_by(AuditEvent.seq)
        ).scalars().all()

        previous_hash: str | None = None
        for event in events:
            if event.prev_hash != previous_hash:
                self._chain_broken(event, previous_hash or "None", event.prev_hash or "None")

            recomputed = hash_audit_event(
                entity_type=event.entity_type,
                entity_id=str(event.entity_id),
                action=event.action,
                payload_hash=hash_payload(event.payload),
                prev_hash=event.prev_hash,
            )
            if event.hash != recomputed:
                self._chain_broken(event, recomputed, event.hash)
            previous_hash = event.hash

        logger.info("audit_chain_valid", extra={"event_count": len(events)})
        return True

    @staticmethod
    def _chain_broken(event: AuditEvent, expected: str, actual: str) -> None:
        logger.critical(
            "audit_chain_broken",
            extra={"seq": event.seq, "entity_id": str(event.entity_id)},
        )
        raise AuditChainBrokenError(str(event.id), expected, actual)

    def get_trace(self, record_id: UUID) -> AuditTrace:
        """All audit events of one bulk timesheet, in chain order."""
        events = self._session.execute(
            select(AuditEvent)
            .where(
                AuditEvent.entity_type == BULK_TIMESHEET_ENTITY,
                AuditEvent.entity_id == record_id,
            )
            .order_by(AuditEvent.seq)
        ).scalars().all()

        return AuditTrace(
            entity_type=BULK_TIMESHEET_ENTITY,
            entity_id=record_id,
            entries=tuple(
                AuditTraceEntry(
                    seq=event.seq,
                    action=event.action,
                    occurred_at=event.occurred_at,
                    actor_id=event.actor_id,
                    payload=event.payload or {},
                    hash=event.hash,
                )
                for event in events
            ),
        )

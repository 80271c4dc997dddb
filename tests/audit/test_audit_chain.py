"""
Tests for the hash-chained audit trail and the append-only ORM rules.
"""

import pytest
from sqlalchemy import select, update

from billing_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from billing_kernel.domain.timesheet import BulkTimesheetChanges
from billing_kernel.exceptions import AuditChainBrokenError, ImmutabilityViolationError
from billing_kernel.models.audit_event import AuditEvent
from billing_kernel.models.bulk_timesheet import BulkTimesheetModel
from billing_kernel.models.revision import RevisionRecordModel
from billing_kernel.services.auditor_service import AuditorService
from builders import make_worker


@pytest.fixture
def auditor(session, deterministic_clock) -> AuditorService:
    return AuditorService(session, deterministic_clock)


def _events(session):
    return session.execute(select(AuditEvent).order_by(AuditEvent.seq)).scalars().all()


class TestAuditChain:
    def test_empty_chain_is_valid(self, auditor):
        assert auditor.validate_chain() is True

    def test_chain_links_every_event(self, create_record, service, session, admin, auditor):
        first = create_record()
        second = create_record([make_worker("w-2")])
        service.update(first.id, 1, BulkTimesheetChanges(email_sent=True), admin)
        service.delete(second.id, admin)
        session.commit()

        events = _events(session)

        assert [e.seq for e in events] == [1, 2, 3, 4]
        assert events[0].prev_hash is None
        for previous, current in zip(events, events[1:]):
            assert current.prev_hash == previous.hash
        assert auditor.validate_chain() is True

    def test_tampered_payload_breaks_the_chain(self, create_record, session, auditor, captured_logs):
        record = create_record()
        create_record()
        # Core statements bypass the ORM listeners
        session.execute(
            update(AuditEvent)
            .where(AuditEvent.entity_id == record.id)
            .values(payload={"invoice_number": "999999"})
        )
        session.commit()
        session.expire_all()

        with pytest.raises(AuditChainBrokenError):
            auditor.validate_chain()

        assert any(r["message"] == "audit_chain_broken" for r in captured_logs())

    def test_trace_of_one_record(self, create_record, service, session, admin, auditor):
        record = create_record()
        create_record()
        service.update(
            record.id, 1, BulkTimesheetChanges(email_sent=True, description="sent"), admin
        )
        session.commit()

        trace = auditor.get_trace(record.id)

        assert trace.entity_id == record.id
        assert trace.actions == ("bulk_timesheet_created", "bulk_timesheet_updated")
        updated = trace.entries[1].payload
        assert updated["version"] == 2
        assert updated["changed_fields"] == ["description", "email_sent"]
        assert updated["description"] == "sent"
        assert updated["total_jobseeker_pay"] == "800.00"


class TestAppendOnly:
    def test_audit_event_cannot_be_modified(self, create_record, session):
        create_record()
        event = _events(session)[0]

        event.action = "something_else"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_audit_event_cannot_be_deleted(self, create_record, session):
        create_record()

        session.delete(_events(session)[0])
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_revision_cannot_be_modified(self, create_record, service, session, admin):
        record = create_record()
        service.update(record.id, 1, BulkTimesheetChanges(email_sent=True), admin)
        session.commit()
        revision = session.execute(select(RevisionRecordModel)).scalar_one()

        revision.description = "rewritten"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_revision_cannot_be_deleted(self, create_record, service, session, admin):
        record = create_record()
        service.update(record.id, 1, BulkTimesheetChanges(email_sent=True), admin)
        session.commit()

        session.delete(session.execute(select(RevisionRecordModel)).scalar_one())
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_invoice_number_cannot_change(self, create_record, session):
        record = create_record()
        model = session.get(BulkTimesheetModel, record.id)

        model.invoice_number = "000999"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_other_columns_may_change_through_the_orm(self, create_record, session):
        record = create_record()
        model = session.get(BulkTimesheetModel, record.id)

        model.email_sent = True
        session.flush()

    def test_listeners_can_be_lifted_and_restored(self, create_record, session):
        create_record()
        event = _events(session)[0]

        unregister_immutability_listeners()
        try:
            session.delete(event)
            session.flush()
        finally:
            register_immutability_listeners()

        assert _events(session) == []

"""ORM models for the billing kernel."""

from billing_kernel.models.audit_event import AuditAction, AuditEvent
from billing_kernel.models.bulk_timesheet import BulkTimesheetModel
from billing_kernel.models.revision import RevisionRecordModel
from billing_kernel.models.sequence_counter import SequenceCounter

__all__ = [
    "AuditAction",
    "AuditEvent",
    "BulkTimesheetModel",
    "RevisionRecordModel",
    "SequenceCounter",
]

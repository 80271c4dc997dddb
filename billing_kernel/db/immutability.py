"""
ORM-Level Immutability Enforcement.

===============================================================================
WHAT IS PROTECTED
===============================================================================

Entity                 | When Immutable          | Rule
-----------------------|-------------------------|------------------------------
RevisionRecordModel    | ALWAYS (from creation)  | History is append-only
AuditEvent             | ALWAYS (from creation)  | Audit trail is append-only
BulkTimesheetModel     | invoice_number only     | Externally visible identifier

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires mapper events before UPDATE/DELETE statements for ORM
objects reach the database:

    session.flush()
         |
         v
    [before_update] --> _check_*() --> ImmutabilityViolationError
    [before_delete] --> _check_*() -----------^
         |
         v
    SQL sent to database (only if checks pass)

Core-level statements (``update(Model)``) bypass mapper events.  The only
Core UPDATE in the kernel is BulkTimesheetService's version compare-and-swap,
which never touches invoice_number.

===============================================================================
USAGE
===============================================================================

    from billing_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # idempotent; create_tables() calls it

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect

from billing_kernel.exceptions import ImmutabilityViolationError
from billing_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_revision_update(mapper, connection, target):
    _block(
        "RevisionRecord", target, "UPDATE",
        "Revision history entries cannot be modified",
    )


def _check_revision_delete(mapper, connection, target):
    _block(
        "RevisionRecord", target, "DELETE",
        "Revision history entries cannot be removed",
    )


def _check_audit_event_update(mapper, connection, target):
    _block(
        "AuditEvent", target, "UPDATE",
        "Audit events are immutable and cannot be modified",
    )


def _check_audit_event_delete(mapper, connection, target):
    _block(
        "AuditEvent", target, "DELETE",
        "Audit events are immutable and cannot be deleted",
    )


def _check_invoice_number_unchanged(mapper, connection, target):
    """Reject any change to a persisted bulk timesheet's invoice number."""
    history = inspect(target).attrs.invoice_number.history
    if history.deleted:
        _block(
            "BulkTimesheet", target, "UPDATE",
            f"Invoice number {history.deleted[0]} is immutable after creation",
        )


def _listeners():
    from billing_kernel.models.audit_event import AuditEvent
    from billing_kernel.models.bulk_timesheet import BulkTimesheetModel
    from billing_kernel.models.revision import RevisionRecordModel

    return (
        (RevisionRecordModel, "before_update", _check_revision_update),
        (RevisionRecordModel, "before_delete", _check_revision_delete),
        (AuditEvent, "before_update", _check_audit_event_update),
        (AuditEvent, "before_delete", _check_audit_event_delete),
        (BulkTimesheetModel, "before_update", _check_invoice_number_unchanged),
    )


def register_immutability_listeners() -> None:
    """Register all immutability listeners.  Safe to call repeatedly."""
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)
    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners() -> None:
    """
    Remove immutability listeners.

    WARNING: Only use this in tests that must bypass the rules on purpose.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)

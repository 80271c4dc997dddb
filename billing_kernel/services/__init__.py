"""
Write-side kernel services.

Every service receives the caller's Session and flushes; none commits.
"""

from billing_kernel.services.auditor_service import AuditorService, AuditTrace
from billing_kernel.services.bulk_timesheet_service import BulkTimesheetService
from billing_kernel.services.change_notifier import ChangeNotice, ChangeNotifier
from billing_kernel.services.invoice_number_service import InvoiceNumberService
from billing_kernel.services.revision_ledger import RevisionLedger
from billing_kernel.services.sequence_service import SequenceService

__all__ = [
    "AuditTrace",
    "AuditorService",
    "BulkTimesheetService",
    "ChangeNotice",
    "ChangeNotifier",
    "InvoiceNumberService",
    "RevisionLedger",
    "SequenceService",
]

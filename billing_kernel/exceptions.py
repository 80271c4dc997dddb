"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Billing errors must be handled precisely. A caller that receives a stale
version has to reload and retry; a caller that sent a bad time entry has to
fix the input first. Parsing message strings to tell these apart is fragile,
so every error kind has:
  1. Its own exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        service.update(record_id, expected_version=3, changes=changes, actor=actor)
    except StaleVersionError as e:
        api_response(code=e.code, current_version=e.current_version)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from BillingKernelError:

    BillingKernelError (base)
    |
    +-- ValidationError
    |   +-- MalformedEntryError
    |   +-- NegativeHoursError
    |   +-- EntryOutsideWeekError
    |   +-- DuplicateEntryDateError
    |   +-- DuplicateWorkerError
    |   +-- InvalidWeekError
    |   +-- InvalidInvoiceNumberError
    |   +-- InvalidAdjustmentError
    |   +-- EmptyChangeSetError
    |
    +-- RateConfigurationError
    +-- EmptyRecordError
    +-- DuplicateInvoiceNumberError
    |
    +-- ConcurrencyError
    |   +-- StaleVersionError
    |
    +-- AuthorizationError
    +-- RecordNotFoundError
    +-- WorkerNotFoundError
    +-- ImmutabilityViolationError
    +-- AuditChainBrokenError

None of these are retried by the kernel. Retrying after a StaleVersionError
or DuplicateInvoiceNumberError is the caller's decision.
"""


class BillingKernelError(Exception):
    """Base exception for all billing kernel errors."""

    code: str = "BILLING_KERNEL_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.code)


# Validation exceptions


class ValidationError(BillingKernelError):
    """Malformed or out-of-range input data."""

    code: str = "VALIDATION_ERROR"


class MalformedEntryError(ValidationError):
    """A time entry cannot be read as (date, hours, overtime hours)."""

    code: str = "MALFORMED_ENTRY"

    def __init__(self, worker_id: str, entry_index: int, reason: str):
        self.worker_id = worker_id
        self.entry_index = entry_index
        self.reason = reason
        super().__init__(f"Entry {entry_index} for worker {worker_id}: {reason}")


class NegativeHoursError(ValidationError):
    """A time entry carries a negative hours value."""

    code: str = "NEGATIVE_HOURS"

    def __init__(self, worker_id: str, entry_index: int, field: str, value):
        self.worker_id = worker_id
        self.entry_index = entry_index
        self.field = field
        self.value = value
        super().__init__(
            f"Entry {entry_index} for worker {worker_id}: "
            f"{field} must not be negative (got {value})"
        )


class EntryOutsideWeekError(ValidationError):
    """A time entry date falls outside the record's week window."""

    code: str = "ENTRY_OUTSIDE_WEEK"

    def __init__(self, worker_id: str, entry_index: int, work_date, week_start, week_end):
        self.worker_id = worker_id
        self.entry_index = entry_index
        self.work_date = work_date
        self.week_start = week_start
        self.week_end = week_end
        super().__init__(
            f"Entry {entry_index} for worker {worker_id}: date {work_date} "
            f"is outside the week {week_start} to {week_end}"
        )


class DuplicateEntryDateError(ValidationError):
    """A worker has more than one entry for the same calendar date."""

    code: str = "DUPLICATE_ENTRY_DATE"

    def __init__(self, worker_id: str, entry_index: int, work_date):
        self.worker_id = worker_id
        self.entry_index = entry_index
        self.work_date = work_date
        super().__init__(
            f"Entry {entry_index} for worker {worker_id}: "
            f"date {work_date} already has an entry"
        )


class DuplicateWorkerError(ValidationError):
    """The same worker appears twice in one bulk timesheet."""

    code: str = "DUPLICATE_WORKER"

    def __init__(self, worker_id: str):
        self.worker_id = worker_id
        super().__init__(f"Worker {worker_id} appears more than once")


class InvalidWeekError(ValidationError):
    """Week bounds are inverted or span more than seven days."""

    code: str = "INVALID_WEEK"

    def __init__(self, week_start, week_end, reason: str):
        self.week_start = week_start
        self.week_end = week_end
        self.reason = reason
        super().__init__(f"Invalid week {week_start} to {week_end}: {reason}")


class InvalidInvoiceNumberError(ValidationError):
    """Invoice number is not in an accepted format."""

    code: str = "INVALID_INVOICE_NUMBER"

    def __init__(self, invoice_number: str, reason: str | None = None):
        self.invoice_number = invoice_number
        self.reason = reason or "must be digits, optionally prefixed with 'INV-'"
        shown = invoice_number if len(invoice_number) <= 40 else f"{invoice_number[:37]}..."
        super().__init__(f"Invoice number {shown!r} {self.reason}")


class InvalidAdjustmentError(ValidationError):
    """Bonus or deduction amount is negative or not a number."""

    code: str = "INVALID_ADJUSTMENT"

    def __init__(self, worker_id: str, field: str, value):
        self.worker_id = worker_id
        self.field = field
        self.value = value
        super().__init__(
            f"Worker {worker_id}: {field} must be a non-negative amount (got {value})"
        )


class EmptyChangeSetError(ValidationError):
    """An update request carries no changes."""

    code: str = "EMPTY_CHANGE_SET"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Update of bulk timesheet {record_id} contains no changes")


# Calculation exceptions


class RateConfigurationError(BillingKernelError):
    """A worker is missing a rate required by the hours it logged."""

    code: str = "RATE_CONFIGURATION_ERROR"

    def __init__(self, worker_id: str, rate_name: str, reason: str = "not configured"):
        self.worker_id = worker_id
        self.rate_name = rate_name
        self.reason = reason
        super().__init__(
            f"Worker {worker_id}: {rate_name} is {reason}; "
            f"fix the worker's rates and resubmit"
        )


class EmptyRecordError(BillingKernelError):
    """A bulk timesheet must contain at least one worker."""

    code: str = "EMPTY_RECORD"

    def __init__(self):
        super().__init__("A bulk timesheet must contain at least one worker")


# Record exceptions


class DuplicateInvoiceNumberError(BillingKernelError):
    """Invoice number is already used by another bulk timesheet."""

    code: str = "DUPLICATE_INVOICE_NUMBER"

    def __init__(self, invoice_number: str):
        self.invoice_number = invoice_number
        super().__init__(
            f"Invoice number {invoice_number} is already in use; "
            f"request a new number and retry"
        )


class RecordNotFoundError(BillingKernelError):
    """Bulk timesheet does not exist or is not visible to the actor."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Bulk timesheet {record_id} not found")


class WorkerNotFoundError(BillingKernelError):
    """A change references a worker that is not on the record."""

    code: str = "WORKER_NOT_FOUND"

    def __init__(self, record_id: str, worker_id: str):
        self.record_id = record_id
        self.worker_id = worker_id
        super().__init__(
            f"Worker {worker_id} is not part of bulk timesheet {record_id}"
        )


# Concurrency exceptions


class ConcurrencyError(BillingKernelError):
    """Base class for concurrency conflicts."""

    code: str = "CONCURRENCY_ERROR"


class StaleVersionError(ConcurrencyError):
    """The caller's expected version does not match the stored version."""

    code: str = "STALE_VERSION"

    def __init__(self, record_id: str, expected_version: int, current_version: int | None):
        self.record_id = record_id
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"This record was changed by someone else (you have version "
            f"{expected_version}, current is {current_version}); "
            f"please reload bulk timesheet {record_id} and retry"
        )


# Access exceptions


class AuthorizationError(BillingKernelError):
    """Actor lacks the capability for the operation."""

    code: str = "AUTHORIZATION_ERROR"

    def __init__(self, actor_id: str, role: str, operation: str):
        self.actor_id = actor_id
        self.role = role
        self.operation = operation
        super().__init__(
            f"Actor {actor_id} with role {role} is not allowed to {operation}"
        )


# Integrity exceptions


class ImmutabilityViolationError(BillingKernelError):
    """Attempted to modify an append-only or immutable value."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")


class AuditChainBrokenError(BillingKernelError):
    """Audit hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, audit_event_id: str, expected_hash: str, actual_hash: str):
        self.audit_event_id = audit_event_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Audit chain broken at {audit_event_id}: "
            f"expected {expected_hash}, found {actual_hash}"
        )

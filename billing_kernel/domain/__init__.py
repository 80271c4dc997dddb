"""
Pure domain layer.

Value objects and rules with NO dependencies on the ORM, the database,
or the system clock.  All domain objects are immutable.
"""

from billing_kernel.domain.actor import Actor, ActorRole, can_delete, can_view
from billing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from billing_kernel.domain.timesheet import (
    BulkTimesheet,
    BulkTimesheetChanges,
    BulkTotals,
    ComputedBulk,
    LedgerState,
    NetPayPolicy,
    RateConfiguration,
    RevisionRecord,
    TimeEntry,
    WorkerChange,
    WorkerRef,
    WorkerTimesheet,
    WorkerTimesheetInput,
)
from billing_kernel.domain.week import format_week_period, validate_week

__all__ = [
    "Actor",
    "ActorRole",
    "BulkTimesheet",
    "BulkTimesheetChanges",
    "BulkTotals",
    "Clock",
    "ComputedBulk",
    "DeterministicClock",
    "LedgerState",
    "NetPayPolicy",
    "RateConfiguration",
    "RevisionRecord",
    "SystemClock",
    "TimeEntry",
    "WorkerChange",
    "WorkerRef",
    "WorkerTimesheet",
    "WorkerTimesheetInput",
    "can_delete",
    "can_view",
    "format_week_period",
    "validate_week",
]

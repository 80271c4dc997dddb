"""Read-only query selectors returning frozen DTOs."""

from billing_kernel.selectors.base import BaseSelector
from billing_kernel.selectors.bulk_timesheet_selector import (
    BulkTimesheetSelector,
    Page,
)

__all__ = [
    "BaseSelector",
    "BulkTimesheetSelector",
    "Page",
]

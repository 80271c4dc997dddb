"""
InvoiceNumberService -- invoice number format, uniqueness and candidates.

Invoice numbers are stored as zero-padded digit strings (``000042``).  The
configured prefix (``INV-`` by default) is accepted on input and stripped.
The UNIQUE constraint on ``bulk_timesheets.invoice_number`` is the final
arbiter; ``ensure_unique`` only gives an early, friendly answer.

Candidates are never reserved: two callers may receive the same candidate
and the slower Create fails with ``DuplicateInvoiceNumberError``.
"""

import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from billing_kernel.exceptions import (
    DuplicateInvoiceNumberError,
    InvalidInvoiceNumberError,
)
from billing_kernel.logging_config import get_logger
from billing_kernel.models.bulk_timesheet import (
    INVOICE_NUMBER_MAX_LENGTH,
    BulkTimesheetModel,
)
from billing_kernel.selectors.bulk_timesheet_selector import BulkTimesheetSelector

logger = get_logger("services.invoice_number")

_DIGITS = re.compile(r"^[0-9]+$")


class InvoiceNumberService:
    """Formats, validates and proposes invoice numbers."""

    def __init__(self, session: Session, width: int = 6, prefix: str = "INV-"):
        self._session = session
        self._width = width
        self._prefix = prefix

    def _numeric_part(self, value: str) -> str:
        text = value.strip()
        if self._prefix and text.upper().startswith(self._prefix.upper()):
            text = text[len(self._prefix):]
        return text

    def _existing_numbers(self) -> set[int]:
        stored = BulkTimesheetSelector(self._session).existing_invoice_numbers()

        numbers: set[int] = set()
        for invoice_number in stored:
            digits = self._numeric_part(invoice_number)
            # Anything that is not a plain number cannot collide with a candidate
            if _DIGITS.match(digits):
                numbers.add(int(digits))
        return numbers

    def format(self, number: int) -> str:
        return str(number).zfill(self._width)

    def normalize(self, value: str) -> str:
        """
        Canonical stored form of an invoice number.

        ``INV-42``, ``42`` and ``000042`` all normalize to ``000042`` at the
        default width.

        Raises:
            InvalidInvoiceNumberError: If the value is not a positive number
                that fits the stored column.
        """
        if not isinstance(value, str):
            raise InvalidInvoiceNumberError(repr(value))

        digits = self._numeric_part(value)
        if not _DIGITS.match(digits):
            raise InvalidInvoiceNumberError(value)
        significant = digits.lstrip("0")
        if not significant:
            raise InvalidInvoiceNumberError(value)
        if len(significant) > INVOICE_NUMBER_MAX_LENGTH:
            raise InvalidInvoiceNumberError(
                value, f"has more than {INVOICE_NUMBER_MAX_LENGTH} digits"
            )
        return self.format(int(significant))

    def generate_candidate(self) -> str:
        """Lowest positive number not used by any existing record."""
        existing = self._existing_numbers()
        candidate = 1
        while candidate in existing:
            candidate += 1

        invoice_number = self.format(candidate)
        logger.info(
            "invoice_number_candidate_generated",
            extra={"invoice_number": invoice_number, "existing_count": len(existing)},
        )
        return invoice_number

    def is_taken(self, invoice_number: str) -> bool:
        return self._session.execute(
            select(BulkTimesheetModel.id).where(
                BulkTimesheetModel.invoice_number == invoice_number
            )
        ).first() is not None

    def ensure_unique(self, invoice_number: str) -> None:
        """
        Raises:
            DuplicateInvoiceNumberError: If a record already uses the number.
        """
        if self.is_taken(invoice_number):
            logger.warning(
                "invoice_number_duplicate",
                extra={"invoice_number": invoice_number},
            )
            raise DuplicateInvoiceNumberError(invoice_number)

"""
RevisionLedger -- version counter and append-only revision history.

A new record starts at version 1 with an empty history.  Every successful
update appends exactly one revision row carrying the version it produced,
so the history of a record at version N holds versions 2..N in order.

The version column itself lives on the bulk timesheet row and is advanced
by the lifecycle service's conditional update.  The ledger is only called
after that update has succeeded, so a rejected update leaves no revision
behind.  UNIQUE(record_id, version) is the backstop.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from billing_kernel.domain.timesheet import LedgerState
from billing_kernel.logging_config import get_logger
from billing_kernel.models.revision import RevisionRecordModel
from billing_kernel.services.base import BaseService

logger = get_logger("services.revision_ledger")

INITIAL_VERSION = 1


class RevisionLedger(BaseService[RevisionRecordModel]):
    """Writes and reads revision history rows."""

    def __init__(self, session: Session):
        super().__init__(session)

    def initialize(self) -> LedgerState:
        return LedgerState(version=INITIAL_VERSION, history=())

    def record_revision(
        self,
        record_id: UUID,
        current_version: int,
        actor_id: UUID,
        occurred_at: datetime,
        description: str | None = None,
    ) -> int:
        """
        Append the revision that took a record from ``current_version`` to
        ``current_version + 1``.

        Returns:
            The new version.
        """
        new_version = current_version + 1
        self.session.add(
            RevisionRecordModel(
                record_id=record_id,
                version=new_version,
                actor_id=actor_id,
                occurred_at=occurred_at,
                description=description,
            )
        )
        self.session.flush()

        logger.debug(
            "revision_recorded",
            extra={"record_id": str(record_id), "version": new_version},
        )
        return new_version


"""
Module: billing_kernel.models.revision
Responsibility: ORM persistence for the revision history of bulk timesheets.

One row per successful update.  Rows are append-only: the ORM listeners in
db/immutability.py reject UPDATE and DELETE.  There is no foreign key
to bulk_timesheets: history outlives a deleted record.

UNIQUE(record_id, version) backs the rule that each version is produced
exactly once.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base, UUIDString


class RevisionRecordModel(Base):
    """A single entry of a bulk timesheet's version history."""

    __tablename__ = "bulk_timesheet_revisions"

    __table_args__ = (
        UniqueConstraint("record_id", "version", name="uq_revision_record_version"),
    )

    record_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False, index=True)

    # The version this revision produced (always >= 2)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

"""
Concurrency tests: real threads, one session each, one shared database.

Writers that read the same version race to update it; exactly one must win
and every loser must get StaleVersionError.  Concurrent creates must never
share an invoice number or fork the audit chain.

Skip with: pytest -m "not slow_locks"
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import pytest
from sqlalchemy import func, select

from billing_kernel.db.engine import get_session_factory
from billing_kernel.domain.timesheet import BulkTimesheetChanges, WorkerChange
from billing_kernel.exceptions import DuplicateInvoiceNumberError, StaleVersionError
from billing_kernel.models.revision import RevisionRecordModel
from billing_kernel.selectors.bulk_timesheet_selector import BulkTimesheetSelector
from billing_kernel.services.auditor_service import AuditorService
from billing_kernel.services.bulk_timesheet_service import BulkTimesheetService
from builders import WEEK_END, WEEK_START, make_worker

pytestmark = pytest.mark.slow_locks

WRITERS = 6


def _run_in_threads(count, work):
    """Start ``count`` callables together; return what each returned."""
    barrier = Barrier(count)

    def _start(index):
        barrier.wait()
        return work(index)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(_start, range(count)))


def _update_at_version_one(record_id, actor):
    def _work(index):
        session = get_session_factory()()
        try:
            BulkTimesheetService(session).update(
                record_id,
                1,
                BulkTimesheetChanges(
                    worker_changes=(WorkerChange("w-1", bonus_amount=Decimal(index + 1)),),
                    description=f"writer {index}",
                ),
                actor,
            )
            session.commit()
            return "updated"
        except StaleVersionError:
            session.rollback()
            return "stale"
        finally:
            session.close()

    return _work


class TestConcurrentUpdates:
    def test_two_writers_one_wins(self, create_record, session, admin):
        record = create_record()

        outcomes = _run_in_threads(2, _update_at_version_one(record.id, admin))

        assert sorted(outcomes) == ["stale", "updated"]
        current = BulkTimesheetSelector(session).get(record.id)
        assert current.version == 2
        assert len(current.version_history) == 1

    def test_many_writers_one_wins(self, create_record, session, admin):
        record = create_record()

        outcomes = _run_in_threads(WRITERS, _update_at_version_one(record.id, admin))

        assert outcomes.count("updated") == 1
        assert outcomes.count("stale") == WRITERS - 1

        current = BulkTimesheetSelector(session).get(record.id)
        winner = current.version_history[0].description
        bonus = current.workers[0].bonus_amount
        # The stored totals belong to the winning writer
        assert winner == f"writer {int(bonus) - 1}"
        assert current.totals.total_bonus == bonus

        revisions = session.execute(
            select(func.count())
            .select_from(RevisionRecordModel)
            .where(RevisionRecordModel.record_id == record.id)
        ).scalar_one()
        assert revisions == 1
        assert AuditorService(session).validate_chain() is True


class TestConcurrentCreates:
    def _create(self, actor, client_id, position_id, invoice_number_for):
        def _work(index):
            session = get_session_factory()()
            try:
                record = BulkTimesheetService(session).create(
                    client_id=client_id,
                    position_id=position_id,
                    week_start=WEEK_START,
                    week_end=WEEK_END,
                    workers=[make_worker(f"w-{index}")],
                    actor=actor,
                    invoice_number=invoice_number_for(index),
                )
                session.commit()
                return record.invoice_number
            except DuplicateInvoiceNumberError:
                session.rollback()
                return None
            finally:
                session.close()

        return _work

    def test_same_invoice_number_only_once(self, engine, session, recruiter, client_id, position_id):
        outcomes = _run_in_threads(
            WRITERS,
            self._create(recruiter, client_id, position_id, lambda index: "INV-77"),
        )

        assert outcomes.count("000077") == 1
        assert outcomes.count(None) == WRITERS - 1
        assert BulkTimesheetSelector(session).list().total == 1

    def test_distinct_creates_keep_one_audit_chain(
        self, engine, session, recruiter, client_id, position_id
    ):
        outcomes = _run_in_threads(
            WRITERS,
            self._create(recruiter, client_id, position_id, lambda index: str(index + 1)),
        )

        assert sorted(outcomes) == [str(n).zfill(6) for n in range(1, WRITERS + 1)]
        assert AuditorService(session).validate_chain() is True

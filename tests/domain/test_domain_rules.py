"""
Tests for the pure domain rules: week bounds, access rules, value objects
and the stored worker document shape.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from billing_engines.calculator import compute_worker
from billing_kernel.domain.actor import Actor, ActorRole, can_delete, can_view
from billing_kernel.domain.clock import DeterministicClock
from billing_kernel.domain.documents import worker_from_document, worker_to_document
from billing_kernel.domain.timesheet import (
    BulkTimesheetChanges,
    RevisionRecord,
    TimeEntry,
    WorkerChange,
)
from billing_kernel.domain.week import format_week_period, validate_week
from billing_kernel.exceptions import InvalidWeekError
from builders import WEEK_END, WEEK_START, make_worker

DELETE_ROLES = frozenset({ActorRole.ADMIN, ActorRole.RECRUITER})


class TestWeek:
    def test_seven_day_week_is_valid(self):
        validate_week(WEEK_START, WEEK_END)

    def test_single_day_week_is_valid(self):
        validate_week(WEEK_START, WEEK_START)

    def test_end_before_start(self):
        with pytest.raises(InvalidWeekError) as exc_info:
            validate_week(WEEK_END, WEEK_START)

        assert "before" in exc_info.value.reason

    def test_eight_days_is_too_long(self):
        with pytest.raises(InvalidWeekError):
            validate_week(date(2024, 4, 7), date(2024, 4, 14))

    def test_label_spanning_years(self):
        assert format_week_period(date(2024, 12, 29), date(2025, 1, 4)) == (
            "Dec 29, 2024 - Jan 4, 2025"
        )


class TestAccess:
    def test_admin_and_recruiter_view_everything(self):
        owner = uuid4()

        assert can_view(Actor(uuid4(), ActorRole.ADMIN), owner)
        assert can_view(Actor(uuid4(), ActorRole.RECRUITER), owner)

    def test_jobseeker_views_own_records_only(self):
        owner = uuid4()

        assert can_view(Actor(owner, ActorRole.JOBSEEKER), owner)
        assert not can_view(Actor(uuid4(), ActorRole.JOBSEEKER), owner)

    def test_admin_deletes_anything(self):
        assert can_delete(Actor(uuid4(), ActorRole.ADMIN), uuid4(), DELETE_ROLES)

    def test_recruiter_deletes_own_records_only(self):
        recruiter_id = uuid4()
        recruiter = Actor(recruiter_id, ActorRole.RECRUITER)

        assert can_delete(recruiter, recruiter_id, DELETE_ROLES)
        assert not can_delete(recruiter, uuid4(), DELETE_ROLES)

    def test_jobseeker_never_deletes(self):
        jobseeker_id = uuid4()

        assert not can_delete(Actor(jobseeker_id, ActorRole.JOBSEEKER), jobseeker_id, DELETE_ROLES)

    def test_delete_roles_are_configurable(self):
        recruiter_id = uuid4()

        assert not can_delete(
            Actor(recruiter_id, ActorRole.RECRUITER),
            recruiter_id,
            frozenset({ActorRole.ADMIN}),
        )


class TestValueObjects:
    def test_time_entry_rejects_negative_hours(self):
        with pytest.raises(ValueError):
            TimeEntry(work_date=WEEK_START, hours=Decimal("-1"))

    def test_revision_record_starts_at_version_two(self):
        with pytest.raises(ValueError):
            RevisionRecord(version=1, actor_id=uuid4(), occurred_at=datetime.now(timezone.utc))

    def test_empty_changes(self):
        assert BulkTimesheetChanges().is_empty()
        assert not BulkTimesheetChanges(email_sent=False).is_empty()
        assert not BulkTimesheetChanges(description="note").is_empty()
        assert not BulkTimesheetChanges(worker_changes=(WorkerChange("w-1"),)).is_empty()

    def test_changes_week(self):
        assert BulkTimesheetChanges(week_end=WEEK_END).changes_week
        assert not BulkTimesheetChanges(email_sent=True).changes_week


class TestWorkerDocument:
    def test_document_round_trip_preserves_the_worker(self):
        worker = compute_worker(
            make_worker("w-1", hours_per_day=Decimal("7.5"), overtime_per_day=1, bonus=10),
            WEEK_START,
            WEEK_END,
        )

        doc = worker_to_document(worker)

        assert doc["entries"][0] == {
            "date": "2024-04-08",
            "hours": "7.50",
            "overtime_hours": "1.00",
        }
        assert doc["rates"]["overtime_enabled"] is True
        assert worker_from_document(doc) == worker


class TestClock:
    def test_deterministic_clock_advances(self):
        clock = DeterministicClock(datetime(2024, 4, 15, 9, 0, tzinfo=timezone.utc))

        first = clock.now()
        clock.advance(30)

        assert (clock.now() - first).total_seconds() == 30

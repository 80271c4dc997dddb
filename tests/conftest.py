"""
Pytest fixtures for the billing test suite.

Provides:
- A fresh SQLite database file per test (engine + tables + session)
- Deterministic clock, actors and worker builders
- Structured log capture

Every test gets its own database file under ``tmp_path``, so tests may
commit freely.  Concurrency tests open extra sessions from
``get_session_factory()`` against the same file.
"""

import json
import logging
from io import StringIO
from uuid import uuid4

import pytest

from billing_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from billing_kernel.domain.actor import Actor, ActorRole
from billing_kernel.domain.clock import DeterministicClock
from billing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from billing_kernel.services.bulk_timesheet_service import BulkTimesheetService
from billing_kernel.services.change_notifier import ChangeNotifier
from builders import WEEK_END, WEEK_START, make_worker


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture billing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.create(...)
            assert any(r["message"] == "bulk_timesheet_created" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("billing_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow_locks: mark test as potentially waiting for DB locks"
    )


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'billing.db'}"


@pytest.fixture
def engine(database_url):
    engine = init_engine_from_url(database_url, sqlite_busy_timeout=10.0)
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine):
    session = get_session()
    yield session
    session.rollback()
    session.close()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def admin() -> Actor:
    return Actor(actor_id=uuid4(), role=ActorRole.ADMIN)


@pytest.fixture
def recruiter() -> Actor:
    return Actor(actor_id=uuid4(), role=ActorRole.RECRUITER)


@pytest.fixture
def jobseeker() -> Actor:
    return Actor(actor_id=uuid4(), role=ActorRole.JOBSEEKER)


@pytest.fixture
def client_id():
    return uuid4()


@pytest.fixture
def position_id():
    return uuid4()


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def notices(notifier) -> list:
    """Every change notice dispatched by ``notifier``."""
    received: list = []
    unsubscribe = notifier.subscribe(received.append)
    yield received
    unsubscribe()


@pytest.fixture
def service(session, deterministic_clock, notifier) -> BulkTimesheetService:
    return BulkTimesheetService(session, clock=deterministic_clock, notifier=notifier)


@pytest.fixture
def create_record(service, recruiter, client_id, position_id):
    """Factory fixture: create a committed record with the given workers."""

    def _create(workers=None, actor=None, invoice_number=None, **kwargs):
        record = service.create(
            client_id=client_id,
            position_id=position_id,
            week_start=kwargs.pop("week_start", WEEK_START),
            week_end=kwargs.pop("week_end", WEEK_END),
            workers=workers if workers is not None else [make_worker("w-1")],
            actor=actor or recruiter,
            invoice_number=invoice_number,
            **kwargs,
        )
        service.session.commit()
        return record

    return _create

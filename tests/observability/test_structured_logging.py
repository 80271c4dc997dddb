"""
Tests for the JSON log formatter and LogContext propagation.
"""

import json
import logging
import sys
from decimal import Decimal
from uuid import uuid4

from billing_kernel.exceptions import StaleVersionError
from billing_kernel.logging_config import LogContext, StructuredFormatter, get_logger


def _format(record: logging.LogRecord) -> dict:
    return json.loads(StructuredFormatter().format(record))


def _record(message="event", **extra) -> logging.LogRecord:
    record = logging.LogRecord("billing_kernel.test", logging.INFO, __file__, 1, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatter:
    def test_one_json_object_per_record(self):
        payload = _format(_record("bulk_timesheet_created", total=Decimal("12.50")))

        assert payload["message"] == "bulk_timesheet_created"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "billing_kernel.test"
        assert payload["total"] == "12.50"
        assert "ts" in payload

    def test_context_fields_are_included(self):
        record_id = uuid4()

        with LogContext.bind(record_id=record_id, correlation_id="req-1"):
            payload = _format(_record())

        assert payload["record_id"] == str(record_id)
        assert payload["correlation_id"] == "req-1"

    def test_bind_restores_previous_values(self):
        LogContext.set(actor_id="outer")

        with LogContext.bind(actor_id="inner"):
            assert LogContext.get_all()["actor_id"] == "inner"

        assert LogContext.get_all()["actor_id"] == "outer"

    def test_exception_attributes_are_flattened(self):
        try:
            raise StaleVersionError("rec-1", 1, 2)
        except StaleVersionError:
            record = logging.LogRecord(
                "billing_kernel.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        payload = _format(record)

        assert payload["exc_type"] == "StaleVersionError"
        assert payload["exc_code"] == "STALE_VERSION"
        assert payload["exc_current_version"] == 2
        assert "traceback" in payload


class TestLoggerNamespace:
    def test_loggers_live_under_billing_kernel(self):
        assert get_logger("services.example").name == "billing_kernel.services.example"

    def test_service_logs_carry_the_actor(self, create_record, recruiter, captured_logs):
        create_record()

        created = [r for r in captured_logs() if r["message"] == "bulk_timesheet_created"]
        assert created[0]["actor_id"] == str(recruiter.actor_id)

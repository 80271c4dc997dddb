"""
JSON document shape of the per-worker breakdown.

``BulkTimesheetModel.worker_timesheets`` stores one document per worker.
Decimals are written as strings so that no precision is lost in the JSON
column; dates as ISO strings.  Reading a document back yields exactly the
``WorkerTimesheet`` that was written.

Document shape::

    {
      "worker": {"worker_id": ..., "assignment_id": ..., "display_name": ..., "email": ...},
      "entries": [{"date": "2024-04-08", "hours": "8.00", "overtime_hours": "0.00"}, ...],
      "rates": {"regular_pay_rate": "20.00", ..., "overtime_enabled": false,
                "overtime_threshold_hours": null},
      "bonus_amount": "0.00",
      "deduction_amount": "0.00",
      "total_regular_hours": "40.00",
      "total_overtime_hours": "0.00",
      "overtime_pay": "0.00",
      "worker_pay": "800.00",
      "client_bill": "1000.00"
    }
"""

from datetime import date
from decimal import Decimal
from typing import Any

from billing_kernel.domain.timesheet import (
    RateConfiguration,
    TimeEntry,
    WorkerRef,
    WorkerTimesheet,
)


def _dec(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _undec(value: str | None) -> Decimal | None:
    return None if value is None else Decimal(value)


def rates_to_document(rates: RateConfiguration) -> dict[str, Any]:
    return {
        "regular_pay_rate": _dec(rates.regular_pay_rate),
        "regular_bill_rate": _dec(rates.regular_bill_rate),
        "overtime_pay_rate": _dec(rates.overtime_pay_rate),
        "overtime_bill_rate": _dec(rates.overtime_bill_rate),
        "overtime_enabled": rates.overtime_enabled,
        "overtime_threshold_hours": _dec(rates.overtime_threshold_hours),
    }


def rates_from_document(doc: dict[str, Any]) -> RateConfiguration:
    return RateConfiguration(
        regular_pay_rate=_undec(doc.get("regular_pay_rate")),
        regular_bill_rate=_undec(doc.get("regular_bill_rate")),
        overtime_pay_rate=_undec(doc.get("overtime_pay_rate")),
        overtime_bill_rate=_undec(doc.get("overtime_bill_rate")),
        overtime_enabled=bool(doc.get("overtime_enabled", False)),
        overtime_threshold_hours=_undec(doc.get("overtime_threshold_hours")),
    )


def worker_to_document(worker: WorkerTimesheet) -> dict[str, Any]:
    """Serialize a computed worker timesheet for the JSON column."""
    return {
        "worker": {
            "worker_id": worker.worker.worker_id,
            "assignment_id": worker.worker.assignment_id,
            "display_name": worker.worker.display_name,
            "email": worker.worker.email,
        },
        "entries": [
            {
                "date": entry.work_date.isoformat(),
                "hours": str(entry.hours),
                "overtime_hours": str(entry.overtime_hours),
            }
            for entry in worker.entries
        ],
        "rates": rates_to_document(worker.rates),
        "bonus_amount": str(worker.bonus_amount),
        "deduction_amount": str(worker.deduction_amount),
        "total_regular_hours": str(worker.total_regular_hours),
        "total_overtime_hours": str(worker.total_overtime_hours),
        "overtime_pay": str(worker.overtime_pay),
        "worker_pay": str(worker.worker_pay),
        "client_bill": str(worker.client_bill),
    }


def worker_from_document(doc: dict[str, Any]) -> WorkerTimesheet:
    """Rebuild a computed worker timesheet from its stored document."""
    ref = doc["worker"]
    return WorkerTimesheet(
        worker=WorkerRef(
            worker_id=ref["worker_id"],
            assignment_id=ref.get("assignment_id"),
            display_name=ref.get("display_name"),
            email=ref.get("email"),
        ),
        entries=tuple(
            TimeEntry(
                work_date=date.fromisoformat(entry["date"]),
                hours=Decimal(entry["hours"]),
                overtime_hours=Decimal(entry["overtime_hours"]),
            )
            for entry in doc["entries"]
        ),
        rates=rates_from_document(doc["rates"]),
        bonus_amount=Decimal(doc["bonus_amount"]),
        deduction_amount=Decimal(doc["deduction_amount"]),
        total_regular_hours=Decimal(doc["total_regular_hours"]),
        total_overtime_hours=Decimal(doc["total_overtime_hours"]),
        overtime_pay=Decimal(doc["overtime_pay"]),
        worker_pay=Decimal(doc["worker_pay"]),
        client_bill=Decimal(doc["client_bill"]),
    )

"""Mapping of kernel exceptions to HTTP responses.

Every ``BillingKernelError`` becomes ``{"error": code, "message": text}``
plus the exception's structured attributes (``currentVersion``,
``invoiceNumber``...), so clients can act without parsing messages.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from billing_kernel.exceptions import (
    AuthorizationError,
    BillingKernelError,
    ConcurrencyError,
    DuplicateInvoiceNumberError,
    EmptyRecordError,
    RateConfigurationError,
    RecordNotFoundError,
    ValidationError,
    WorkerNotFoundError,
)
from billing_kernel.logging_config import get_logger

logger = get_logger("api.errors")

# First match wins
STATUS_BY_ERROR: tuple[tuple[type[BillingKernelError], int], ...] = (
    (ValidationError, 400),
    (EmptyRecordError, 400),
    (RateConfigurationError, 422),
    (DuplicateInvoiceNumberError, 409),
    (ConcurrencyError, 409),
    (AuthorizationError, 403),
    (RecordNotFoundError, 404),
    (WorkerNotFoundError, 404),
)


def status_for(exc: BillingKernelError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


def error_body(exc: BillingKernelError) -> dict:
    body = {"error": exc.code, "message": str(exc)}
    for key, value in vars(exc).items():
        if not key.startswith("_"):
            body[to_camel(key)] = value
    return jsonable_encoder(body)


async def billing_error_handler(request: Request, exc: BillingKernelError) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.info
    log(
        "request_rejected",
        extra={
            "path": request.url.path,
            "status_code": status_code,
            "error_code": exc.code,
        },
    )
    return JSONResponse(status_code=status_code, content=error_body(exc))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BillingKernelError, billing_error_handler)

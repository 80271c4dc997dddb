"""FastAPI application factory."""

from __future__ import annotations

from uuid import uuid4

from fastapi import FastAPI, Request

from billing_api.errors import install_error_handlers
from billing_api.routes import router
from billing_config import BillingConfig, get_active_config
from billing_kernel import __version__
from billing_kernel.db.engine import create_tables, init_engine_from_url
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.logging_config import LogContext, configure_logging, get_logger
from billing_kernel.services.change_notifier import ChangeNotifier

logger = get_logger("api.app")

CORRELATION_HEADER = "X-Request-Id"


def create_app(
    config: BillingConfig | None = None,
    notifier: ChangeNotifier | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """
    Build the API over the configured database.

    Initializes the engine and creates the schema.  ``notifier`` receives a notice for
    every committed create, update and delete.
    """
    configure_logging()
    config = config or get_active_config()

    init_engine_from_url(config.database_url)
    create_tables()

    app = FastAPI(title="Bulk Timesheet Billing", version=__version__)
    app.state.config = config
    app.state.notifier = notifier or ChangeNotifier()
    app.state.clock = clock or SystemClock()

    @app.middleware("http")
    async def bind_correlation_id(request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        with LogContext.bind(correlation_id=correlation_id):
            response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    install_error_handlers(app)
    app.include_router(router)

    logger.info(
        "api_started",
        extra={"config_checksum": config.checksum, "version": __version__},
    )
    return app

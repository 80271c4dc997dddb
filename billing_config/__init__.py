"""
billing_config -- single public entrypoint for billing configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration.  It reads the YAML file named by ``BILLING_CONFIG_PATH``
    (or the bundled ``defaults.yaml``) and applies the
    ``BILLING_DATABASE_URL`` override.

Architecture position:
    Configuration sits above ``billing_kernel``.  The kernel never imports
    this package; the API layer passes configured values into kernel
    services as constructor arguments.

Audit relevance:
    Every call emits a ``BILLING_CONFIG_TRACE`` log entry with the source
    path and checksum of the configuration in effect.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from billing_config.loader import load_config
from billing_config.schema import BillingConfig, InvoiceNumberConfig, PaginationConfig

_logger = logging.getLogger("billing_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

CONFIG_PATH_ENV = "BILLING_CONFIG_PATH"
DATABASE_URL_ENV = "BILLING_DATABASE_URL"


def get_active_config(config_path: Path | None = None) -> BillingConfig:
    """Load the configuration in effect.

    Precedence: explicit ``config_path``, then ``BILLING_CONFIG_PATH``, then
    the bundled defaults.  ``BILLING_DATABASE_URL`` overrides the database
    URL from any file.

    Raises:
        FileNotFoundError: The selected file does not exist.
        ValueError: The file contains invalid values.
    """
    path = config_path or Path(os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    config = load_config(path)

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        config = replace(config, database_url=database_url)

    _logger.info(
        "BILLING_CONFIG_TRACE",
        extra={
            "trace_type": "BILLING_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": config.checksum,
            "net_pay_policy": config.net_pay_policy.value,
            "database_url_override": bool(database_url),
        },
    )
    return config


__all__ = [
    "BillingConfig",
    "InvoiceNumberConfig",
    "PaginationConfig",
    "get_active_config",
]

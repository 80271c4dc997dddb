"""
Configuration Loader (``billing_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a frozen
``BillingConfig``.  Callers normally go through
``billing_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ValueError`` naming the offending key.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from billing_config.schema import BillingConfig, InvoiceNumberConfig, PaginationConfig
from billing_kernel.domain.actor import ActorRole
from billing_kernel.domain.timesheet import NetPayPolicy
from billing_kernel.models.bulk_timesheet import INVOICE_NUMBER_MAX_LENGTH


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _positive_int(section: dict[str, Any], key: str, default: int, path: str) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{path}.{key} must be a positive integer, got {value!r}")
    return value


def parse_net_pay_policy(value: Any) -> NetPayPolicy:
    try:
        return NetPayPolicy(value)
    except ValueError:
        allowed = ", ".join(p.value for p in NetPayPolicy)
        raise ValueError(
            f"calculation.net_pay_policy must be one of {allowed}, got {value!r}"
        ) from None


def parse_delete_roles(values: Any) -> frozenset[ActorRole]:
    if not isinstance(values, list) or not values:
        raise ValueError(f"access.delete_roles must be a non-empty list, got {values!r}")
    roles = set()
    for value in values:
        try:
            roles.add(ActorRole(value))
        except ValueError:
            raise ValueError(f"access.delete_roles has unknown role {value!r}") from None
    return frozenset(roles)


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the parsed YAML document."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_config(data: dict[str, Any]) -> BillingConfig:
    """
    Parse a ``BillingConfig`` from a dict.

    Absent sections and keys take the schema defaults.
    """
    calculation = data.get("calculation") or {}
    invoice = data.get("invoice_numbers") or {}
    pagination = data.get("pagination") or {}
    access = data.get("access") or {}
    defaults = BillingConfig()

    invoice_config = InvoiceNumberConfig(
        width=_positive_int(invoice, "width", defaults.invoice_numbers.width, "invoice_numbers"),
        prefix=str(invoice.get("prefix", defaults.invoice_numbers.prefix)),
    )
    if invoice_config.width > INVOICE_NUMBER_MAX_LENGTH:
        raise ValueError(
            f"invoice_numbers.width must be at most {INVOICE_NUMBER_MAX_LENGTH}, "
            f"got {invoice_config.width}"
        )
    pagination_config = PaginationConfig(
        default_page_size=_positive_int(
            pagination, "default_page_size",
            defaults.pagination.default_page_size, "pagination",
        ),
        max_page_size=_positive_int(
            pagination, "max_page_size",
            defaults.pagination.max_page_size, "pagination",
        ),
    )
    if pagination_config.default_page_size > pagination_config.max_page_size:
        raise ValueError("pagination.default_page_size exceeds pagination.max_page_size")

    return BillingConfig(
        database_url=str(data.get("database_url", defaults.database_url)),
        net_pay_policy=parse_net_pay_policy(
            calculation.get("net_pay_policy", defaults.net_pay_policy.value)
        ),
        invoice_numbers=invoice_config,
        pagination=pagination_config,
        delete_roles=(
            parse_delete_roles(access["delete_roles"])
            if "delete_roles" in access
            else defaults.delete_roles
        ),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> BillingConfig:
    """Load and parse one YAML configuration file."""
    return parse_config(load_yaml_file(path))

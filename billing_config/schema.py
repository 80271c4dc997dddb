"""
Billing configuration schema.

Frozen dataclasses parsed from YAML by ``billing_config.loader``.  Every
field has a default matching the bundled ``defaults.yaml``, so a partial
file only needs the keys it changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from billing_kernel.domain.actor import ActorRole
from billing_kernel.domain.timesheet import NetPayPolicy


@dataclass(frozen=True)
class InvoiceNumberConfig:
    """Format of generated invoice numbers."""

    width: int = 6
    # Prefix accepted (and stripped) on input, e.g. "INV-000123"
    prefix: str = "INV-"


@dataclass(frozen=True)
class PaginationConfig:
    default_page_size: int = 10
    max_page_size: int = 100


@dataclass(frozen=True)
class BillingConfig:
    """Runtime configuration for the billing kernel and API."""

    database_url: str = "sqlite:///billing.db"
    net_pay_policy: NetPayPolicy = NetPayPolicy.JOBSEEKER_PAY
    invoice_numbers: InvoiceNumberConfig = field(default_factory=InvoiceNumberConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    delete_roles: frozenset[ActorRole] = frozenset(
        {ActorRole.ADMIN, ActorRole.RECRUITER}
    )
    checksum: str = ""

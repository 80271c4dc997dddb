"""
Module: billing_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation pipeline.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  May only import
    billing_kernel.domain, billing_kernel.db.types and
    billing_kernel.exceptions.  MUST NOT import services, selectors or the
    API layer.

Invariants enforced:
    - Purity: engines never read the clock or the database.
    - Decimal-only arithmetic, rounded once per computation (half-up, 2 dp).
    - Determinism: identical inputs always produce identical outputs.
"""

from billing_engines.aggregator import aggregate, compute_net_pay
from billing_engines.calculator import calculate_worker, compute_worker, split_hours
from billing_engines.normalizer import normalize_entries
from billing_engines.pipeline import compute_bulk

__all__ = [
    "aggregate",
    "calculate_worker",
    "compute_bulk",
    "compute_net_pay",
    "compute_worker",
    "normalize_entries",
    "split_hours",
]

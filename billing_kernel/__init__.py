"""
Billing Kernel

Versioned bulk timesheet records for staffing billing:
- Pure pay/bill calculation pipeline (billing_engines)
- Optimistic-concurrency updates with an append-only revision history
- Unique invoice numbers
- Full auditability via hash chain
"""

__version__ = "0.1.0"

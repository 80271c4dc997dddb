"""HTTP surface of the bulk timesheet billing engine."""

from billing_api.app import create_app

__all__ = ["create_app"]

"""Request-scoped dependencies: the calling actor and the lifecycle service."""

from uuid import UUID

from fastapi import Header, HTTPException, Request
from sqlalchemy.orm import Session

from billing_config import BillingConfig
from billing_kernel.domain.actor import Actor, ActorRole
from billing_kernel.services.bulk_timesheet_service import BulkTimesheetService


def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    """The authenticated caller, as asserted by the upstream gateway."""
    if not x_actor_id or not x_actor_role:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        actor_id = UUID(x_actor_id)
        role = ActorRole(x_actor_role.lower())
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid actor headers")
    return Actor(actor_id=actor_id, role=role)


def get_config(request: Request) -> BillingConfig:
    return request.app.state.config


def build_service(request: Request, session: Session) -> BulkTimesheetService:
    config: BillingConfig = request.app.state.config
    return BulkTimesheetService(
        session,
        clock=request.app.state.clock,
        net_pay_policy=config.net_pay_policy,
        delete_roles=config.delete_roles,
        invoice_number_width=config.invoice_numbers.width,
        invoice_number_prefix=config.invoice_numbers.prefix,
        notifier=request.app.state.notifier,
    )

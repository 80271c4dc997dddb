"""
Actors and record access rules.

Identity and authentication are external; the kernel receives an already
authenticated ``Actor`` and decides what it may do with a record.

Rules
-----
* Any role may create a record.
* ``admin`` and ``recruiter`` may read and update every record; a
  ``jobseeker`` only records it created.  Records an actor cannot read are
  reported as not found.
* Delete needs a role listed in the configured delete roles.  A recruiter
  may delete only records it created; an admin may delete any.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ActorRole(str, Enum):
    ADMIN = "admin"
    RECRUITER = "recruiter"
    JOBSEEKER = "jobseeker"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a lifecycle operation."""

    actor_id: UUID
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


def can_view(actor: Actor, created_by_id: UUID) -> bool:
    """Whether the actor may read (and therefore update) a record."""
    if actor.role in (ActorRole.ADMIN, ActorRole.RECRUITER):
        return True
    return actor.actor_id == created_by_id


def can_delete(
    actor: Actor,
    created_by_id: UUID,
    delete_roles: frozenset[ActorRole],
) -> bool:
    """Whether the actor holds the delete capability for a record."""
    if actor.role not in delete_roles:
        return False
    if actor.is_admin:
        return True
    return actor.actor_id == created_by_id

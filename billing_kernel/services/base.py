"""
BaseService -- abstract base for kernel services.

Every write-side service receives a SQLAlchemy ``Session`` from the caller
and persists with ``session.flush()`` -- never ``session.commit()``.  The
caller (``session_scope()``, the API layer, or a test) owns commit and
rollback, which is what makes a create or update atomic: the record row,
its revision entry and its audit event land together or not at all.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from billing_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read models -- those belong in ``selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session

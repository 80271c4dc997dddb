"""
ChangeNotifier -- post-commit notices for cached views of bulk timesheets.

Cached lists and per-record views must be invalidated whenever a record is
created, updated or deleted.  The lifecycle service stages a
``ChangeNotice`` on its session; the notice is handed to listeners only
after the enclosing transaction commits.  A rollback discards staged
notices, so listeners never hear about a change that did not happen.

Listener exceptions are logged and swallowed: the change is already
committed and must not be reported as failed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
from uuid import UUID

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

from billing_kernel.logging_config import get_logger

logger = get_logger("services.change_notifier")

_PENDING_KEY = "billing_pending_notices"

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"
ACTION_DELETED = "deleted"


@dataclass(frozen=True)
class ChangeNotice:
    record_id: UUID
    client_id: UUID
    position_id: UUID
    action: str
    version: int


Listener = Callable[[ChangeNotice], None]


class ChangeNotifier:
    """Fan-out of committed changes to subscribed listeners."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        register_notice_dispatch()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Add a listener; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def stage(self, session: Session, notice: ChangeNotice) -> None:
        """Queue a notice until ``session`` commits."""
        session.info.setdefault(_PENDING_KEY, []).append((self, notice))

    def publish(self, notice: ChangeNotice) -> None:
        for listener in list(self._listeners):
            try:
                listener(notice)
            except Exception:
                logger.exception(
                    "change_listener_failed",
                    extra={
                        "record_id": str(notice.record_id),
                        "action": notice.action,
                        "version": notice.version,
                    },
                )


def _dispatch_after_commit(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, None)
    if not pending:
        return
    for notifier, notice in pending:
        logger.debug(
            "change_notice_dispatched",
            extra={"record_id": str(notice.record_id), "action": notice.action},
        )
        notifier.publish(notice)


def _discard_after_rollback(
    session: Session, previous_transaction: SessionTransaction
) -> None:
    # A rolled back SAVEPOINT leaves the outer transaction alive
    if previous_transaction.nested:
        return
    pending = session.info.pop(_PENDING_KEY, None)
    if pending:
        logger.debug("change_notices_discarded", extra={"count": len(pending)})


def _listeners() -> list[tuple[str, Callable]]:
    return [
        ("after_commit", _dispatch_after_commit),
        ("after_soft_rollback", _discard_after_rollback),
    ]


def register_notice_dispatch() -> None:
    """Attach the dispatch hooks to every Session (idempotent)."""
    for identifier, fn in _listeners():
        if not event.contains(Session, identifier, fn):
            event.listen(Session, identifier, fn)


def unregister_notice_dispatch() -> None:
    for identifier, fn in _listeners():
        if event.contains(Session, identifier, fn):
            event.remove(Session, identifier, fn)

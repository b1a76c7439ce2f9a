from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from uuid import UUID

from app.core.logging import get_audit_logger
from app.schemas.application import ApplicationStatus, Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransitionEvent:
    application_id: UUID
    application_number: str | None
    from_status: ApplicationStatus
    to_status: ApplicationStatus
    actor_id: UUID
    actor_role: Role
    remarks: str | None
    occurred_at: datetime
    version: int


Subscriber = Callable[[TransitionEvent], None]

_subscribers: list[Subscriber] = []


def subscribe(handler: Subscriber) -> Subscriber:
    if handler not in _subscribers:
        _subscribers.append(handler)
    return handler


def unsubscribe(handler: Subscriber) -> None:
    if handler in _subscribers:
        _subscribers.remove(handler)


def subscribers() -> tuple[Subscriber, ...]:
    return tuple(_subscribers)


def dispatch(event: TransitionEvent) -> None:
    """Deliver ``event`` to every subscriber.

    Runs after the transition is committed. A failing subscriber is logged and
    skipped; it never undoes or fails the transition.
    """
    for handler in list(_subscribers):
        try:
            handler(event)
        except Exception:
            logger.exception(
                "Transition subscriber %s failed for application %s",
                getattr(handler, "__name__", repr(handler)),
                event.application_id,
            )


def audit_transition(event: TransitionEvent) -> None:
    get_audit_logger().info(
        "Application status changed",
        extra={
            "event": "application.status_changed",
            "fields": {
                "application_id": str(event.application_id),
                "application_number": event.application_number,
                "from_status": event.from_status.value,
                "to_status": event.to_status.value,
                "changed_by": str(event.actor_id),
                "actor_role": event.actor_role.value,
                "remarks": event.remarks,
                "version": event.version,
            },
        },
    )


subscribe(audit_transition)

"""Per-request values copied onto every log record.

``RequestContextMiddleware`` clears the context and sets the request id at the
start of each request. ``deps.get_current_actor`` binds the actor once the
bearer token has been verified, so records logged before authentication carry
``"-"`` for both actor fields.
"""

from contextvars import ContextVar
from uuid import UUID

UNSET = "-"

_request_id: ContextVar[str] = ContextVar("request_id", default=UNSET)
_actor_id: ContextVar[str] = ContextVar("actor_id", default=UNSET)
_actor_role: ContextVar[str] = ContextVar("actor_role", default=UNSET)


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id)


def get_request_id() -> str:
    return _request_id.get()


def bind_actor(actor_id: UUID | str, role: str) -> None:
    _actor_id.set(str(actor_id))
    _actor_role.set(role)


def get_actor_id() -> str:
    return _actor_id.get()


def get_actor_role() -> str:
    return _actor_role.get()


def clear_context() -> None:
    for var in (_request_id, _actor_id, _actor_role):
        var.set(UNSET)

from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import bind_actor
from app.core.security import decode_token
from app.db.session import get_db
from app.schemas.application import Actor, Role
from app.services.application_lifecycle import ApplicationStore
from app.services.application_store import SqlAlchemyApplicationStore
from app.services.workflow_errors import AuthenticationRequired

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session(db: AsyncSession = Depends(get_db)) -> AsyncSession:
    return db


async def get_application_store(
    db: AsyncSession = Depends(get_db_session),
) -> ApplicationStore:
    return SqlAlchemyApplicationStore(db)


def actor_from_claims(payload: dict) -> Actor:
    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not role:
        raise AuthenticationRequired("Invalid token")
    try:
        return Actor(id=UUID(str(subject)), role=Role(str(role).upper()))
    except ValueError as exc:
        raise AuthenticationRequired("Invalid token") from exc


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    if credentials is None or not credentials.credentials:
        raise AuthenticationRequired()
    try:
        payload = decode_token(credentials.credentials)
    except ValueError as exc:
        raise AuthenticationRequired(str(exc)) from exc
    actor = actor_from_claims(payload)
    bind_actor(actor.id, actor.role.value)
    return actor

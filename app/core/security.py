from __future__ import annotations

from functools import lru_cache
from typing import Any

from jose import JWTError, jwt

from app.core.settings import settings


class JWTKeyError(RuntimeError):
    pass


@lru_cache(maxsize=1)
def _load_public_key() -> str:
    if settings.jwt_public_key:
        return settings.jwt_public_key
    if settings.jwt_public_key_path:
        return _read_key(settings.jwt_public_key_path)
    raise JWTKeyError("JWT public key not configured")


def _read_key(path: str) -> str:
    with open(path, "r", encoding="utf-8") as key_file:
        return key_file.read()


def decode_token(token: str) -> dict[str, Any]:
    """Verify ``token`` and return its claims; raises ``ValueError`` when invalid."""
    public_key = _load_public_key()
    try:
        return jwt.decode(token, public_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc

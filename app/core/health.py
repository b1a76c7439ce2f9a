from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

from app.core import permissions
from app.core.settings import settings
from app.db.session import engine
from app.schemas.application import ApplicationStatus
from app.services import transition_events

APP_VERSION = "0.1.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _check_db() -> dict[str, str]:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as exc:  # pragma: no cover - exercised in runtime
        return {"status": "error", "error": str(exc)}


def _check_workflow() -> dict[str, Any]:
    unmapped = [
        status.value
        for status in ApplicationStatus
        if status not in permissions.STATUS_PERMISSIONS
    ]
    check: dict[str, Any] = {
        "status": "ok" if not unmapped else "error",
        "statuses": len(permissions.STATUS_PERMISSIONS),
        "subscribers": len(transition_events.subscribers()),
    }
    if unmapped:
        check["unmapped"] = unmapped
    return check


async def live_payload() -> dict[str, str]:
    return {"status": "ok", "timestamp": _now()}


async def ready_payload() -> dict[str, Any]:
    checks = {
        "database": await _check_db(),
        "workflow": _check_workflow(),
    }
    ready = all(check.get("status") == "ok" for check in checks.values())
    return {
        "status": "ok" if ready else "degraded",
        "ready": ready,
        "environment": settings.environment,
        "version": APP_VERSION,
        "timestamp": _now(),
        "checks": checks,
    }

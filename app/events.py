import logging

from fastapi import FastAPI

from app.db.session import engine
from app.services import transition_events

logger = logging.getLogger(__name__)


def register_event_handlers(app: FastAPI) -> None:
    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info(
            "Application startup with %d transition subscriber(s)",
            len(transition_events.subscribers()),
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("Application shutdown")
        await engine.dispose()

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Optional

from app.core.context import get_actor_id, get_actor_role, get_request_id
from app.core.settings import settings

AUDIT_LOGGER = "app.audit"


class RequestContextFilter(logging.Filter):
    """Inject the request id and the bound actor into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.actor_id = get_actor_id()
        record.actor_role = get_actor_role()
        record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    ``extra={"event": ..., "fields": {...}}`` adds an event name and flattens
    the fields into the top-level object.
    """

    def __init__(self, stream_label: str = "transactional") -> None:
        super().__init__()
        self.stream_label = stream_label

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "stream": self.stream_label,
            "actor_id": getattr(record, "actor_id", "-"),
            "actor_role": getattr(record, "actor_role", "-"),
            "request_id": getattr(record, "request_id", "-"),
        }
        event = getattr(record, "event", None)
        if event is not None:
            payload["event"] = event
        fields = getattr(record, "fields", None)
        if fields:
            payload.update(fields)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _stream_handler(formatter: str, level: str) -> dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "level": level,
        "formatter": formatter,
        "filters": ["request_context"],
        "stream": "ext://sys.stdout",
    }


def configure_logging(level: Optional[str] = None) -> None:
    log_level = (level or settings.log_level).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "request_context": {"()": RequestContextFilter},
            },
            "formatters": {
                "json": {"()": JsonFormatter, "stream_label": "transactional"},
                "audit_json": {"()": JsonFormatter, "stream_label": "audit"},
            },
            "handlers": {
                "default": _stream_handler("json", log_level),
                "audit": _stream_handler("audit_json", "INFO"),
            },
            "loggers": {
                "": {"handlers": ["default"], "level": log_level, "propagate": False},
                AUDIT_LOGGER: {"handlers": ["audit"], "level": "INFO", "propagate": False},
                "uvicorn": {"handlers": ["default"], "level": log_level, "propagate": False},
                "uvicorn.access": {"handlers": ["default"], "level": "WARNING", "propagate": False},
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )
    logging.getLogger(__name__).info(
        "Logging configured for environment=%s revalidate_on_resubmit=%s",
        settings.environment,
        settings.revalidate_on_resubmit,
    )


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER)

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.services.workflow_errors import WorkflowError

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "unprocessable_entity",
}


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def _as_details(details: Any) -> dict:
    if details is None:
        return {}
    if isinstance(details, dict):
        return details
    if isinstance(details, list):
        return {"errors": details}
    return {"detail": str(details)}


def error_response(status_code: int, code: str, message: str, details: Any = None) -> JSONResponse:
    """Every error leaves the API in the same envelope, with ``data`` always null."""
    payload = {
        "code": code,
        "message": message,
        "data": None,
        "details": _as_details(details),
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, "http_error")
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("detail") or _default_message(exc.status_code)
        return error_response(
            exc.status_code, detail.get("code") or code, message, detail.get("details")
        )
    if isinstance(detail, str):
        return error_response(exc.status_code, code, detail, {"detail": detail})
    return error_response(exc.status_code, code, _default_message(exc.status_code), detail)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Validation failed"
    if errors:
        first = errors[0] or {}
        # Drop the request section (body/query/path) from the location
        loc_parts = [
            str(part) for part in first.get("loc") or [] if part not in {"body", "query", "path"}
        ]
        msg = first.get("msg") or message
        message = f"{'.'.join(loc_parts)}: {msg}" if loc_parts else str(msg)
    return error_response(422, "validation_error", message, {"errors": errors})


async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "internal_server_error", "Internal server error")


def register_exception_handlers(app) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(WorkflowError, workflow_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

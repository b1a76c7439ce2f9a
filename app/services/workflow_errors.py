from __future__ import annotations

from typing import Any


class WorkflowError(ValueError):
    """Base class for deterministic, caller-visible workflow failures."""

    code: str = "workflow_error"
    status_code: int = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class AuthenticationRequired(WorkflowError):
    code = "authentication_required"
    status_code = 401

    def __init__(self, message: str = "Authentication required", details=None) -> None:
        super().__init__(message, details)


class OwnershipViolation(WorkflowError):
    code = "ownership_violation"
    status_code = 403


class RoleNotPermitted(WorkflowError):
    code = "role_not_permitted"
    status_code = 403


class IllegalTransition(WorkflowError):
    code = "illegal_transition"
    status_code = 403


class Forbidden(WorkflowError):
    code = "forbidden"
    status_code = 403

    def __init__(self, message: str = "Forbidden", details=None) -> None:
        super().__init__(message, details)


class IncompleteApplication(WorkflowError):
    code = "incomplete_application"
    status_code = 400

    def __init__(self, errors: list[str]) -> None:
        super().__init__("Application is incomplete", {"errors": list(errors)})
        self.errors = list(errors)


class InvalidStateTransition(WorkflowError):
    code = "invalid_state_transition"
    status_code = 400


class ApplicationNotFound(WorkflowError):
    code = "not_found"
    status_code = 404

    def __init__(self, application_id) -> None:
        super().__init__(
            "Application not found", {"application_id": str(application_id)}
        )
        self.application_id = application_id


class ConcurrencyConflict(WorkflowError):
    code = "concurrency_conflict"
    status_code = 409

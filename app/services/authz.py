from __future__ import annotations

import logging

from app.core import permissions
from app.schemas.application import (
    Actor,
    ApplicationSnapshot,
    ApplicationStatus,
    Decision,
    DenialCode,
    WorkflowAction,
)
from app.services import ownership
from app.services.workflow_errors import (
    AuthenticationRequired,
    IllegalTransition,
    OwnershipViolation,
    RoleNotPermitted,
    WorkflowError,
)

logger = logging.getLogger(__name__)

_DENIAL_ERRORS: dict[DenialCode, type[WorkflowError]] = {
    DenialCode.AUTHENTICATION_REQUIRED: AuthenticationRequired,
    DenialCode.OWNERSHIP_VIOLATION: OwnershipViolation,
    DenialCode.ROLE_NOT_PERMITTED: RoleNotPermitted,
    DenialCode.ILLEGAL_TRANSITION: IllegalTransition,
}


def _status_label(status: ApplicationStatus | str) -> str:
    return status.value if isinstance(status, ApplicationStatus) else str(status)


def _check_view(actor: Actor, status: str, entry: permissions.PermissionEntry) -> Decision:
    if actor.role.is_privileged or actor.role in entry.view:
        return Decision.allow()
    return Decision.deny(
        DenialCode.ROLE_NOT_PERMITTED,
        f"Role {actor.role.value} cannot view applications in {status} status",
    )


def _check_edit(actor: Actor, status: str, entry: permissions.PermissionEntry) -> Decision:
    if actor.role in entry.edit:
        return Decision.allow()
    return Decision.deny(
        DenialCode.ROLE_NOT_PERMITTED,
        f"Role {actor.role.value} cannot edit applications in {status} status",
    )


def _check_transition(
    actor: Actor,
    status: str,
    entry: permissions.PermissionEntry,
    target_status: ApplicationStatus | None,
) -> Decision:
    rules = entry.rules_for(actor.role)
    if not rules:
        return Decision.deny(
            DenialCode.ROLE_NOT_PERMITTED,
            f"Role {actor.role.value} cannot transition applications from {status} status",
        )
    if target_status is not None and target_status not in entry.targets_for(actor.role):
        return Decision.deny(
            DenialCode.ILLEGAL_TRANSITION,
            f"Role {actor.role.value} cannot transition application from "
            f"{status} to {target_status.value}",
        )
    return Decision.allow()


def authorize(
    actor: Actor | None,
    action: WorkflowAction,
    application: ApplicationSnapshot,
    target_status: ApplicationStatus | None = None,
) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on ``application``.

    Ownership is checked first and is a hard gate; only then is the
    per-status permission entry consulted. Pure: no I/O, no mutation.
    """
    if actor is None:
        return Decision.deny(DenialCode.AUTHENTICATION_REQUIRED, "Authentication required")

    if not ownership.owns_or_is_privileged(actor, application):
        return Decision.deny(
            DenialCode.OWNERSHIP_VIOLATION, ownership.ownership_violation_message(actor)
        )

    entry = permissions.lookup(application.status)
    status = _status_label(application.status)
    action = WorkflowAction(action)
    if action == WorkflowAction.VIEW:
        return _check_view(actor, status, entry)
    if action == WorkflowAction.EDIT:
        return _check_edit(actor, status, entry)
    return _check_transition(actor, status, entry, target_status)


def evaluate(
    actor: Actor | None,
    action: WorkflowAction,
    application: ApplicationSnapshot,
    target_status: ApplicationStatus | None = None,
) -> Decision:
    """``authorize`` plus an INFO log line for every denial."""
    decision = authorize(actor, action, application, target_status)
    if not decision.allowed:
        logger.info(
            "Workflow access denied: application=%s action=%s code=%s",
            application.id,
            WorkflowAction(action).value,
            decision.code.value,
        )
    return decision


def require(
    actor: Actor | None,
    action: WorkflowAction,
    application: ApplicationSnapshot,
    target_status: ApplicationStatus | None = None,
) -> None:
    """Raise the matching ``WorkflowError`` when ``authorize`` denies."""
    decision = evaluate(actor, action, application, target_status)
    if decision.allowed:
        return
    error_cls = _DENIAL_ERRORS[decision.code]
    details = {
        "status": _status_label(application.status),
        "action": WorkflowAction(action).value,
    }
    if actor is not None:
        details["role"] = actor.role.value
    if target_status is not None:
        details["target_status"] = target_status.value
    raise error_cls(decision.message, details)


def permitted_targets(actor: Actor | None, application: ApplicationSnapshot) -> list[ApplicationStatus]:
    """Statuses ``actor`` may move ``application`` to, in workflow order."""
    if not authorize(actor, WorkflowAction.TRANSITION, application).allowed:
        return []
    targets = permissions.allowed_targets(application.status, actor.role)
    return [status for status in ApplicationStatus if status in targets]

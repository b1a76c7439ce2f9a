from __future__ import annotations

from app.schemas.application import ASSIGNABLE_ROLES, Actor, ApplicationSnapshot, Role


_ROLE_LABELS = {
    Role.OFFICER: "Officers",
    Role.COMMITTEE: "Committee members",
    Role.FIELD_VERIFIER: "Field verifiers",
    Role.DEALING_HAND: "Dealing hands",
}


def owns_or_is_privileged(actor: Actor, application: ApplicationSnapshot) -> bool:
    """Instance-level access check, evaluated before any status/role rule."""
    if actor.role.is_privileged:
        return True
    if actor.role == Role.OEM:
        return application.applicant_id == actor.id
    if actor.role in ASSIGNABLE_ROLES:
        # An unassigned application is open to every holder of the role.
        return application.assigned_officer_id is None or application.assigned_officer_id == actor.id
    return False


def ownership_violation_message(actor: Actor) -> str:
    prefix = "You do not have permission to access this application."
    if actor.role == Role.OEM:
        return f"{prefix} OEM users can only access their own applications."
    label = _ROLE_LABELS.get(actor.role)
    if label:
        return f"{prefix} {label} can only access applications assigned to them."
    return f"{prefix} Role {actor.role.value} has no instance-level access."

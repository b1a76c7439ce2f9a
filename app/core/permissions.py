"""Per-status workflow permissions.

Each application status maps to the roles that may VIEW it, the roles that may
EDIT it, and the transitions each role may perform from it. The table is
built once at import and is read-only; statuses missing from it resolve to
``DEFAULT_ENTRY``, which only lets privileged roles view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from app.schemas.application import ApplicationStatus, Role

S = ApplicationStatus


@dataclass(frozen=True, slots=True)
class TransitionRule:
    role: Role
    target_statuses: frozenset[ApplicationStatus]


@dataclass(frozen=True, slots=True)
class PermissionEntry:
    view: frozenset[Role] = field(default_factory=frozenset)
    edit: frozenset[Role] = field(default_factory=frozenset)
    transitions: tuple[TransitionRule, ...] = ()

    def rules_for(self, role: Role) -> tuple[TransitionRule, ...]:
        return tuple(rule for rule in self.transitions if rule.role == role)

    def targets_for(self, role: Role) -> frozenset[ApplicationStatus]:
        targets: set[ApplicationStatus] = set()
        for rule in self.rules_for(role):
            targets.update(rule.target_statuses)
        return frozenset(targets)


def _entry(
    view: Iterable[Role],
    edit: Iterable[Role] = (),
    transitions: Iterable[tuple[Role, Iterable[ApplicationStatus]]] = (),
) -> PermissionEntry:
    return PermissionEntry(
        view=frozenset(view),
        edit=frozenset(edit),
        transitions=tuple(
            TransitionRule(role=role, target_statuses=frozenset(targets))
            for role, targets in transitions
        ),
    )


DEFAULT_ENTRY = _entry(view=[Role.ADMIN, Role.SUPER_ADMIN])

_PUBLIC_VIEW = [Role.OEM, Role.OFFICER, Role.ADMIN, Role.SUPER_ADMIN]
_APPLICANT_VIEW = [Role.OEM, Role.ADMIN, Role.SUPER_ADMIN]
_FINAL_DECISIONS = [S.APPROVED, S.PROVISIONALLY_APPROVED, S.REJECTED]

_TABLE: dict[ApplicationStatus, PermissionEntry] = {
    S.DRAFT: _entry(
        view=_APPLICANT_VIEW,
        edit=[Role.OEM],
        transitions=[(Role.OEM, [S.SUBMITTED])],
    ),
    S.SUBMITTED: _entry(
        view=_PUBLIC_VIEW,
        transitions=[
            (Role.ADMIN, [S.UNDER_REVIEW]),
            (Role.SUPER_ADMIN, [S.UNDER_REVIEW]),
        ],
    ),
    S.UNDER_REVIEW: _entry(
        view=_PUBLIC_VIEW,
        edit=[Role.OFFICER],
        transitions=[
            (Role.OFFICER, [S.QUERIED, S.COMMITTEE_REVIEW]),
            (Role.ADMIN, [S.QUERIED, S.COMMITTEE_REVIEW, S.REJECTED]),
        ],
    ),
    S.QUERIED: _entry(
        view=_PUBLIC_VIEW,
        edit=[Role.OEM],
        transitions=[
            (Role.OEM, [S.RESUBMITTED]),
            (Role.OFFICER, [S.UNDER_REVIEW]),
        ],
    ),
    S.RESUBMITTED: _entry(
        view=_PUBLIC_VIEW,
        transitions=[
            (Role.OFFICER, [S.UNDER_REVIEW]),
            (Role.ADMIN, [S.UNDER_REVIEW]),
        ],
    ),
    S.COMMITTEE_REVIEW: _entry(
        view=[Role.OEM, Role.OFFICER, Role.COMMITTEE, Role.ADMIN, Role.SUPER_ADMIN],
        edit=[Role.COMMITTEE],
        transitions=[
            (Role.COMMITTEE, [S.FIELD_VERIFICATION, S.REJECTED]),
            (Role.ADMIN, [S.FIELD_VERIFICATION, S.REJECTED]),
        ],
    ),
    S.COMMITTEE_QUERIED: _entry(
        view=[Role.OEM, Role.OFFICER, Role.COMMITTEE, Role.ADMIN, Role.SUPER_ADMIN],
        edit=[Role.OEM],
        transitions=[
            (Role.OEM, [S.COMMITTEE_REVIEW]),
            (Role.ADMIN, [S.COMMITTEE_REVIEW]),
        ],
    ),
    S.FIELD_VERIFICATION: _entry(
        view=[Role.OEM, Role.OFFICER, Role.FIELD_VERIFIER, Role.ADMIN, Role.SUPER_ADMIN],
        edit=[Role.FIELD_VERIFIER],
        transitions=[
            (Role.FIELD_VERIFIER, [S.LAB_TESTING, S.FINAL_REVIEW]),
            (Role.ADMIN, [S.LAB_TESTING, S.FINAL_REVIEW]),
        ],
    ),
    S.LAB_TESTING: _entry(
        view=[Role.ADMIN, Role.SUPER_ADMIN, Role.FIELD_VERIFIER, Role.OFFICER],
        edit=[Role.FIELD_VERIFIER],
        transitions=[
            (Role.FIELD_VERIFIER, [S.FINAL_REVIEW]),
            (Role.ADMIN, [S.FINAL_REVIEW]),
        ],
    ),
    S.FINAL_REVIEW: _entry(
        view=_PUBLIC_VIEW,
        edit=[Role.ADMIN],
        transitions=[
            (Role.ADMIN, _FINAL_DECISIONS),
            (Role.SUPER_ADMIN, _FINAL_DECISIONS),
        ],
    ),
    S.APPROVED: _entry(
        view=_PUBLIC_VIEW,
        transitions=[
            (Role.ADMIN, [S.RENEWAL_PENDING, S.EXPIRED, S.SUSPENDED, S.BLACKLISTED]),
        ],
    ),
    S.PROVISIONALLY_APPROVED: _entry(
        view=_PUBLIC_VIEW,
        transitions=[(Role.ADMIN, [S.APPROVED, S.REJECTED, S.SUSPENDED])],
    ),
    S.REJECTED: _entry(view=_PUBLIC_VIEW),
    S.WITHDRAWN: _entry(view=_APPLICANT_VIEW),
    S.RENEWAL_PENDING: _entry(
        view=_APPLICANT_VIEW,
        transitions=[(Role.ADMIN, [S.APPROVED, S.EXPIRED])],
    ),
    S.EXPIRED: _entry(
        view=_APPLICANT_VIEW,
        transitions=[(Role.ADMIN, [S.RENEWAL_PENDING])],
    ),
    S.SUSPENDED: _entry(
        view=_APPLICANT_VIEW,
        transitions=[(Role.ADMIN, [S.APPROVED, S.BLACKLISTED])],
    ),
    S.BLACKLISTED: _entry(view=_APPLICANT_VIEW),
}

STATUS_PERMISSIONS: Mapping[ApplicationStatus, PermissionEntry] = MappingProxyType(_TABLE)

TERMINAL_STATUSES = frozenset({S.REJECTED, S.WITHDRAWN, S.BLACKLISTED})


def lookup(status: ApplicationStatus | str) -> PermissionEntry:
    """Return the permission entry for ``status``; unknown statuses get ``DEFAULT_ENTRY``."""
    try:
        key = ApplicationStatus(status)
    except ValueError:
        return DEFAULT_ENTRY
    return STATUS_PERMISSIONS.get(key, DEFAULT_ENTRY)


def allowed_targets(status: ApplicationStatus | str, role: Role) -> frozenset[ApplicationStatus]:
    return lookup(status).targets_for(role)


def is_terminal(status: ApplicationStatus | str) -> bool:
    return not lookup(status).transitions

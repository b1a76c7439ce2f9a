"""Application status transitions.

Every status change goes through ``_transition``: it plans the new status
together with its timestamp side effects and the history row, hands the plan
to the store as a single atomic commit, and only then notifies downstream
subscribers. Callers pass in a loaded snapshot and get back the committed
snapshot; the input snapshot is never mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Protocol
from uuid import UUID

from app.core.settings import settings
from app.schemas.application import (
    Actor,
    ApplicationSnapshot,
    ApplicationStatus,
    StatusHistoryEntry,
)
from app.services import completeness, transition_events
from app.services.workflow_errors import (
    ConcurrencyConflict,
    Forbidden,
    IncompleteApplication,
    InvalidStateTransition,
)

logger = logging.getLogger(__name__)

WITHDRAWABLE_STATUSES = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.QUERIED})

SUBMIT_REMARKS = "Application submitted by OEM"
RESUBMIT_REMARKS = "Application resubmitted after query response"
WITHDRAW_REMARKS = "Application withdrawn by OEM"


@dataclass(frozen=True, slots=True)
class TransitionPlan:
    application_id: UUID
    expected_status: ApplicationStatus
    expected_version: int
    new_status: ApplicationStatus
    side_effects: Mapping[str, Any]
    history: StatusHistoryEntry
    application: ApplicationSnapshot

    def applied(self) -> ApplicationSnapshot:
        """The snapshot as it reads once this plan has been committed."""
        return self.application.model_copy(
            update={
                "status": self.new_status,
                "version": self.expected_version + 1,
                **dict(self.side_effects),
            }
        )


class ApplicationStore(Protocol):
    async def load_for_authorization(self, application_id: UUID) -> ApplicationSnapshot: ...

    async def load_for_completeness(self, application_id: UUID) -> ApplicationSnapshot: ...

    async def commit_transition(self, plan: TransitionPlan) -> ApplicationSnapshot: ...

    async def list_history(self, application_id: UUID) -> list[StatusHistoryEntry]: ...


def _side_effects(
    to_status: ApplicationStatus, remarks: str | None, now: datetime
) -> dict[str, Any]:
    if to_status == ApplicationStatus.SUBMITTED:
        return {"submitted_at": now}
    if to_status == ApplicationStatus.APPROVED:
        return {"approved_at": now}
    if to_status == ApplicationStatus.REJECTED:
        return {"rejected_at": now, "rejection_reason": remarks}
    if to_status == ApplicationStatus.QUERIED:
        return {"last_queried_at": now}
    return {}


def plan_transition(
    application: ApplicationSnapshot,
    to_status: ApplicationStatus,
    actor: Actor,
    remarks: str | None = None,
    now: datetime | None = None,
) -> TransitionPlan:
    now = now or datetime.now(timezone.utc)
    to_status = ApplicationStatus(to_status)
    return TransitionPlan(
        application_id=application.id,
        expected_status=application.status,
        expected_version=application.version,
        new_status=to_status,
        side_effects=MappingProxyType(_side_effects(to_status, remarks, now)),
        history=StatusHistoryEntry(
            application_id=application.id,
            from_status=application.status,
            to_status=to_status,
            changed_by=actor.id,
            remarks=remarks,
            created_at=now,
        ),
        application=application,
    )


async def _transition(
    store: ApplicationStore,
    application: ApplicationSnapshot,
    to_status: ApplicationStatus,
    actor: Actor,
    remarks: str | None = None,
    now: datetime | None = None,
) -> ApplicationSnapshot:
    plan = plan_transition(application, to_status, actor, remarks, now)
    try:
        committed = await store.commit_transition(plan)
    except ConcurrencyConflict:
        logger.warning(
            "Concurrent status change detected: application=%s expected=%s/v%s target=%s",
            plan.application_id,
            plan.expected_status.value,
            plan.expected_version,
            plan.new_status.value,
        )
        raise

    logger.info(
        "Application %s moved %s -> %s",
        committed.id,
        plan.expected_status.value,
        plan.new_status.value,
    )
    transition_events.dispatch(
        transition_events.TransitionEvent(
            application_id=committed.id,
            application_number=committed.application_number,
            from_status=plan.expected_status,
            to_status=plan.new_status,
            actor_id=actor.id,
            actor_role=actor.role,
            remarks=remarks,
            occurred_at=plan.history.created_at,
            version=committed.version,
        )
    )
    return committed


def _require_applicant(application: ApplicationSnapshot, actor: Actor, verb: str) -> None:
    if application.applicant_id != actor.id:
        raise Forbidden(
            f"Only the applicant can {verb} this application",
            {"application_id": str(application.id)},
        )


def _require_complete(application: ApplicationSnapshot) -> None:
    errors = completeness.validate(application)
    if errors:
        logger.info(
            "Application %s failed completeness checks (%d issues)", application.id, len(errors)
        )
        raise IncompleteApplication(errors)


async def submit(
    store: ApplicationStore, application: ApplicationSnapshot, actor: Actor
) -> ApplicationSnapshot:
    _require_applicant(application, actor, "submit")
    if application.status != ApplicationStatus.DRAFT:
        raise InvalidStateTransition(
            "Only draft applications can be submitted",
            {"status": application.status.value},
        )
    _require_complete(application)
    return await _transition(store, application, ApplicationStatus.SUBMITTED, actor, SUBMIT_REMARKS)


async def resubmit(
    store: ApplicationStore, application: ApplicationSnapshot, actor: Actor
) -> ApplicationSnapshot:
    _require_applicant(application, actor, "resubmit")
    if application.status != ApplicationStatus.QUERIED:
        raise InvalidStateTransition(
            "Only queried applications can be resubmitted",
            {"status": application.status.value},
        )
    if settings.revalidate_on_resubmit:
        _require_complete(application)
    return await _transition(
        store, application, ApplicationStatus.RESUBMITTED, actor, RESUBMIT_REMARKS
    )


async def withdraw(
    store: ApplicationStore,
    application: ApplicationSnapshot,
    actor: Actor,
    reason: str | None = None,
) -> ApplicationSnapshot:
    _require_applicant(application, actor, "withdraw")
    if application.status not in WITHDRAWABLE_STATUSES:
        raise InvalidStateTransition(
            "Application cannot be withdrawn at this stage",
            {"status": application.status.value},
        )
    return await _transition(
        store, application, ApplicationStatus.WITHDRAWN, actor, reason or WITHDRAW_REMARKS
    )


async def change_status(
    store: ApplicationStore,
    application: ApplicationSnapshot,
    new_status: ApplicationStatus,
    actor: Actor,
    remarks: str | None = None,
) -> ApplicationSnapshot:
    """Move ``application`` to ``new_status`` without completeness checks.

    Whether ``actor`` may perform this particular move is decided by
    ``authz.require`` before calling in.
    """
    new_status = ApplicationStatus(new_status)
    if new_status == application.status:
        raise InvalidStateTransition(
            "Status is already set to this value", {"status": application.status.value}
        )
    return await _transition(store, application, new_status, actor, remarks)

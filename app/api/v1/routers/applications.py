from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from app.api import deps
from app.schemas.application import (
    Actor,
    ApplicationStatus,
    ApplicationStatusDTO,
    CompletenessReport,
    Decision,
    PermittedTransitionsResponse,
    StatusChangeRequest,
    StatusHistoryListResponse,
    WithdrawRequest,
    WorkflowAction,
)
from app.services import application_lifecycle, authz, completeness
from app.services.application_lifecycle import ApplicationStore

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("/{application_id}/access", response_model=Decision, summary="Evaluate workflow access")
async def check_access(
    application_id: UUID,
    action: WorkflowAction = Query(default=WorkflowAction.VIEW),
    target_status: ApplicationStatus | None = Query(default=None),
    actor: Actor = Depends(deps.get_current_actor),
    store: ApplicationStore = Depends(deps.get_application_store),
) -> Decision:
    application = await store.load_for_authorization(application_id)
    return authz.evaluate(actor, action, application, target_status)


@router.get(
    "/{application_id}/completeness",
    response_model=CompletenessReport,
    summary="List what is missing before submission",
)
async def check_completeness(
    application_id: UUID,
    actor: Actor = Depends(deps.get_current_actor),
    store: ApplicationStore = Depends(deps.get_application_store),
) -> CompletenessReport:
    application = await store.load_for_completeness(application_id)
    authz.require(actor, WorkflowAction.VIEW, application)
    errors = completeness.validate(application)
    return CompletenessReport(application_id=application.id, ready=not errors, errors=errors)


@router.get(
    "/{application_id}/transitions",
    response_model=PermittedTransitionsResponse,
    summary="Statuses the current user may move the application to",
)
async def list_permitted_transitions(
    application_id: UUID,
    actor: Actor = Depends(deps.get_current_actor),
    store: ApplicationStore = Depends(deps.get_application_store),
) -> PermittedTransitionsResponse:
    application = await store.load_for_authorization(application_id)
    authz.require(actor, WorkflowAction.VIEW, application)
    return PermittedTransitionsResponse(
        application_id=application.id,
        status=application.status,
        role=actor.role,
        targets=authz.permitted_targets(actor, application),
    )


@router.get(
    "/{application_id}/history",
    response_model=StatusHistoryListResponse,
    summary="Status history, oldest first",
)
async def list_status_history(
    application_id: UUID,
    actor: Actor = Depends(deps.get_current_actor),
    store: ApplicationStore = Depends(deps.get_application_store),
) -> StatusHistoryListResponse:
    application = await store.load_for_authorization(application_id)
    authz.require(actor, WorkflowAction.VIEW, application)
    items = await store.list_history(application_id)
    return StatusHistoryListResponse(application_id=application.id, total=len(items), items=items)


@router.post("/{application_id}/submit", response_model=ApplicationStatusDTO)
async def submit_application(
    application_id: UUID,
    actor: Actor = Depends(deps.get_current_actor),
    store: ApplicationStore = Depends(deps.get_application_store),
) -> ApplicationStatusDTO:
    application = await store.load_for_completeness(application_id)
    authz.require(actor, WorkflowAction.VIEW, application)
    committed = await application_lifecycle.submit(store, application, actor)
    return ApplicationStatusDTO.model_validate(committed)


@router.post("/{application_id}/resubmit", response_model=ApplicationStatusDTO)
async def resubmit_application(
    application_id: UUID,
    actor: Actor = Depends(deps.get_current_actor),
    store: ApplicationStore = Depends(deps.get_application_store),
) -> ApplicationStatusDTO:
    application = await store.load_for_completeness(application_id)
    authz.require(actor, WorkflowAction.VIEW, application)
    committed = await application_lifecycle.resubmit(store, application, actor)
    return ApplicationStatusDTO.model_validate(committed)


@router.post("/{application_id}/withdraw", response_model=ApplicationStatusDTO)
async def withdraw_application(
    application_id: UUID,
    payload: WithdrawRequest | None = Body(default=None),
    actor: Actor = Depends(deps.get_current_actor),
    store: ApplicationStore = Depends(deps.get_application_store),
) -> ApplicationStatusDTO:
    application = await store.load_for_authorization(application_id)
    authz.require(actor, WorkflowAction.VIEW, application)
    reason = payload.reason if payload else None
    committed = await application_lifecycle.withdraw(store, application, actor, reason)
    return ApplicationStatusDTO.model_validate(committed)


@router.patch("/{application_id}/status", response_model=ApplicationStatusDTO)
async def change_application_status(
    application_id: UUID,
    payload: StatusChangeRequest,
    actor: Actor = Depends(deps.get_current_actor),
    store: ApplicationStore = Depends(deps.get_application_store),
) -> ApplicationStatusDTO:
    application = await store.load_for_authorization(application_id)
    authz.require(actor, WorkflowAction.TRANSITION, application, payload.status)
    committed = await application_lifecycle.change_status(
        store, application, payload.status, actor, payload.remarks
    )
    return ApplicationStatusDTO.model_validate(committed)

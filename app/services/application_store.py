from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.application import Application
from app.models.application_status_history import ApplicationStatusHistory
from app.schemas.application import (
    ApcdSelection,
    ApplicationSnapshot,
    Attachment,
    ContactPerson,
    InstallationExperience,
    Payment,
    StaffRecord,
    StatusHistoryEntry,
)
from app.services.application_lifecycle import TransitionPlan
from app.services.workflow_errors import ApplicationNotFound, ConcurrencyConflict


_AGGREGATE_LOADERS = (
    selectinload(Application.contact_persons),
    selectinload(Application.apcd_selections),
    selectinload(Application.installation_experiences),
    selectinload(Application.staff),
    selectinload(Application.attachments),
    selectinload(Application.payments),
)


def _core_fields(row: Application) -> dict[str, Any]:
    return {
        "id": row.id,
        "application_number": row.application_number,
        "status": row.status,
        "applicant_id": row.applicant_id,
        "assigned_officer_id": row.assigned_officer_id,
        "version": row.version,
        "submitted_at": row.submitted_at,
        "approved_at": row.approved_at,
        "rejected_at": row.rejected_at,
        "rejection_reason": row.rejection_reason,
        "last_queried_at": row.last_queried_at,
    }


def _completeness_fields(row: Application) -> dict[str, Any]:
    return {
        "company_profile_id": row.oem_profile_id,
        "contact_persons": [ContactPerson.model_validate(item) for item in row.contact_persons],
        "turnover_year1": row.turnover_year1,
        "turnover_year2": row.turnover_year2,
        "turnover_year3": row.turnover_year3,
        "has_iso_9001": bool(row.has_iso_9001),
        "has_iso_14001": bool(row.has_iso_14001),
        "has_iso_45001": bool(row.has_iso_45001),
        "apcd_selections": [ApcdSelection.model_validate(item) for item in row.apcd_selections],
        "installation_experiences": [
            InstallationExperience.model_validate(item) for item in row.installation_experiences
        ],
        "staff": [StaffRecord.model_validate(item) for item in row.staff],
        "attachments": [Attachment.model_validate(item) for item in row.attachments],
        "payments": [Payment.model_validate(item) for item in row.payments],
        "declaration_accepted": bool(row.declaration_accepted),
    }


class SqlAlchemyApplicationStore:
    """Application repository over a request-scoped ``AsyncSession``."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get(self, application_id: UUID, *options) -> Application:
        stmt = (
            select(Application)
            .where(Application.id == application_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            raise ApplicationNotFound(application_id)
        return row

    async def load_for_authorization(self, application_id: UUID) -> ApplicationSnapshot:
        row = await self._get(application_id)
        return ApplicationSnapshot.model_validate(_core_fields(row))

    async def load_for_completeness(self, application_id: UUID) -> ApplicationSnapshot:
        row = await self._get(application_id, *_AGGREGATE_LOADERS)
        return ApplicationSnapshot.model_validate({**_core_fields(row), **_completeness_fields(row)})

    async def commit_transition(self, plan: TransitionPlan) -> ApplicationSnapshot:
        """Apply ``plan`` only if the row still has the expected status and version.

        The status update and the history insert share one transaction. The
        returned snapshot comes from the plan, so nothing is read after commit.
        """
        stmt = (
            update(Application)
            .where(
                Application.id == plan.application_id,
                Application.status == plan.expected_status.value,
                Application.version == plan.expected_version,
            )
            .values(
                status=plan.new_status.value,
                version=Application.version + 1,
                **dict(plan.side_effects),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            if result.rowcount != 1:
                raise ConcurrencyConflict(
                    "Application was modified by another request",
                    {
                        "application_id": str(plan.application_id),
                        "expected_status": plan.expected_status.value,
                        "expected_version": plan.expected_version,
                    },
                )
            history = plan.history
            self.db.add(
                ApplicationStatusHistory(
                    application_id=history.application_id,
                    from_status=history.from_status.value,
                    to_status=history.to_status.value,
                    changed_by=history.changed_by,
                    remarks=history.remarks,
                    created_at=history.created_at,
                )
            )
            await self.db.commit()
        except (ConcurrencyConflict, SQLAlchemyError):
            await self.db.rollback()
            raise
        return plan.applied()

    async def list_history(self, application_id: UUID) -> list[StatusHistoryEntry]:
        stmt = (
            select(ApplicationStatusHistory)
            .where(ApplicationStatusHistory.application_id == application_id)
            .order_by(ApplicationStatusHistory.created_at.asc())
        )
        result = await self.db.execute(stmt)
        return [StatusHistoryEntry.model_validate(row) for row in result.scalars().all()]

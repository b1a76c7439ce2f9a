from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    OEM = "OEM"
    OFFICER = "OFFICER"
    COMMITTEE = "COMMITTEE"
    FIELD_VERIFIER = "FIELD_VERIFIER"
    DEALING_HAND = "DEALING_HAND"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"

    @property
    def is_privileged(self) -> bool:
        return self in PRIVILEGED_ROLES


PRIVILEGED_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

# Roles whose access is scoped by Application.assigned_officer_id.
ASSIGNABLE_ROLES = frozenset(
    {Role.OFFICER, Role.COMMITTEE, Role.FIELD_VERIFIER, Role.DEALING_HAND}
)


class ApplicationStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    QUERIED = "QUERIED"
    RESUBMITTED = "RESUBMITTED"
    COMMITTEE_REVIEW = "COMMITTEE_REVIEW"
    COMMITTEE_QUERIED = "COMMITTEE_QUERIED"
    FIELD_VERIFICATION = "FIELD_VERIFICATION"
    LAB_TESTING = "LAB_TESTING"
    FINAL_REVIEW = "FINAL_REVIEW"
    APPROVED = "APPROVED"
    PROVISIONALLY_APPROVED = "PROVISIONALLY_APPROVED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"
    RENEWAL_PENDING = "RENEWAL_PENDING"
    EXPIRED = "EXPIRED"
    SUSPENDED = "SUSPENDED"
    BLACKLISTED = "BLACKLISTED"


class WorkflowAction(str, Enum):
    VIEW = "VIEW"
    EDIT = "EDIT"
    TRANSITION = "TRANSITION"


class DocumentType(str, Enum):
    COMPANY_REGISTRATION = "COMPANY_REGISTRATION"
    GST_CERTIFICATE = "GST_CERTIFICATE"
    PAN_CARD = "PAN_CARD"
    PAYMENT_PROOF = "PAYMENT_PROOF"
    SERVICE_SUPPORT_UNDERTAKING = "SERVICE_SUPPORT_UNDERTAKING"
    NON_BLACKLISTING_DECLARATION = "NON_BLACKLISTING_DECLARATION"
    TURNOVER_CERTIFICATE = "TURNOVER_CERTIFICATE"
    ISO_CERTIFICATION = "ISO_CERTIFICATION"
    PRODUCT_DATASHEET = "PRODUCT_DATASHEET"
    CLIENT_PERFORMANCE_CERT = "CLIENT_PERFORMANCE_CERT"
    TEST_CERTIFICATE = "TEST_CERTIFICATE"
    DESIGN_CALCULATIONS = "DESIGN_CALCULATIONS"
    MATERIAL_CONSTRUCTION_CERT = "MATERIAL_CONSTRUCTION_CERT"
    WARRANTY_DOCUMENT = "WARRANTY_DOCUMENT"
    BANK_SOLVENCY_CERT = "BANK_SOLVENCY_CERT"
    INSTALLATION_EXPERIENCE = "INSTALLATION_EXPERIENCE"
    GA_DRAWING = "GA_DRAWING"
    PROCESS_FLOW_DIAGRAM = "PROCESS_FLOW_DIAGRAM"
    CONSENT_TO_OPERATE = "CONSENT_TO_OPERATE"
    GEO_TAGGED_PHOTOS = "GEO_TAGGED_PHOTOS"
    TECHNICAL_CATALOGUE = "TECHNICAL_CATALOGUE"
    ORG_CHART = "ORG_CHART"
    STAFF_QUALIFICATION_PROOF = "STAFF_QUALIFICATION_PROOF"
    GST_FILING_PROOF = "GST_FILING_PROOF"
    NO_LEGAL_DISPUTES_AFFIDAVIT = "NO_LEGAL_DISPUTES_AFFIDAVIT"
    COMPLAINT_HANDLING_POLICY = "COMPLAINT_HANDLING_POLICY"
    ESCALATION_MECHANISM = "ESCALATION_MECHANISM"
    MAKE_IN_INDIA_CERT = "MAKE_IN_INDIA_CERT"
    STARTUP_RECOGNITION = "STARTUP_RECOGNITION"
    UDYAM_CERTIFICATE = "UDYAM_CERTIFICATE"
    BANK_ACCOUNT_DETAILS = "BANK_ACCOUNT_DETAILS"
    FIELD_VERIFICATION_FORMAT = "FIELD_VERIFICATION_FORMAT"
    GLOBAL_SUPPLY_DOCS = "GLOBAL_SUPPLY_DOCS"
    FIELD_REPORT = "FIELD_REPORT"
    FIELD_PHOTOS = "FIELD_PHOTOS"
    LAB_TEST_REPORT = "LAB_TEST_REPORT"
    OTHER = "OTHER"


class PaymentType(str, Enum):
    APPLICATION_FEE = "APPLICATION_FEE"
    EMPANELMENT_FEE = "EMPANELMENT_FEE"
    FIELD_VERIFICATION = "FIELD_VERIFICATION"
    EMISSION_TESTING = "EMISSION_TESTING"
    ANNUAL_RENEWAL = "ANNUAL_RENEWAL"
    SURVEILLANCE_VISIT = "SURVEILLANCE_VISIT"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    INITIATED = "INITIATED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    VERIFICATION_PENDING = "VERIFICATION_PENDING"
    VERIFIED = "VERIFIED"


SETTLED_PAYMENT_STATUSES = frozenset({PaymentStatus.COMPLETED, PaymentStatus.VERIFIED})


class Actor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    role: Role


# ---------------------------------------------------------------------------
# Application snapshot
# ---------------------------------------------------------------------------


class ContactPerson(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    name: str | None = None


class ApcdSelection(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    apcd_type_id: UUID | None = None
    seeking_empanelment: bool = False


class InstallationExperience(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    industry_name: str | None = None


class StaffRecord(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    qualification: str = ""


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    document_type: DocumentType
    has_valid_geo_tag: bool = False


class Payment(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    payment_type: PaymentType
    status: PaymentStatus


class ApplicationSnapshot(BaseModel):
    """Immutable view of one application, as loaded for a single request.

    The authorization path only needs ``status``, ``applicant_id`` and
    ``assigned_officer_id``; the nested aggregates are populated when the
    snapshot is loaded for completeness checks.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    application_number: str | None = None
    status: ApplicationStatus
    applicant_id: UUID
    assigned_officer_id: UUID | None = None
    version: int = 1

    company_profile_id: UUID | None = None
    contact_persons: tuple[ContactPerson, ...] = ()
    turnover_year1: Decimal | None = None
    turnover_year2: Decimal | None = None
    turnover_year3: Decimal | None = None
    has_iso_9001: bool = False
    has_iso_14001: bool = False
    has_iso_45001: bool = False
    apcd_selections: tuple[ApcdSelection, ...] = ()
    installation_experiences: tuple[InstallationExperience, ...] = ()
    staff: tuple[StaffRecord, ...] = ()
    attachments: tuple[Attachment, ...] = ()
    payments: tuple[Payment, ...] = ()
    declaration_accepted: bool = False

    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    last_queried_at: datetime | None = None


class StatusHistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    application_id: UUID
    from_status: ApplicationStatus
    to_status: ApplicationStatus
    changed_by: UUID
    remarks: str | None = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Authorization decisions
# ---------------------------------------------------------------------------


class DenialCode(str, Enum):
    AUTHENTICATION_REQUIRED = "authentication_required"
    OWNERSHIP_VIOLATION = "ownership_violation"
    ROLE_NOT_PERMITTED = "role_not_permitted"
    ILLEGAL_TRANSITION = "illegal_transition"


class Decision(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    code: DenialCode | None = None
    message: str | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, code: DenialCode, message: str) -> "Decision":
        return cls(allowed=False, code=code, message=message)


# ---------------------------------------------------------------------------
# Request / response payloads
# ---------------------------------------------------------------------------


class StatusChangeRequest(BaseModel):
    status: ApplicationStatus
    remarks: str | None = Field(default=None, max_length=2000)


class WithdrawRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


class CompletenessReport(BaseModel):
    application_id: UUID
    ready: bool
    errors: list[str] = Field(default_factory=list)


class PermittedTransitionsResponse(BaseModel):
    application_id: UUID
    status: ApplicationStatus
    role: Role
    targets: list[ApplicationStatus] = Field(default_factory=list)


class ApplicationStatusDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_number: str | None = None
    status: ApplicationStatus
    version: int
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    last_queried_at: datetime | None = None


class StatusHistoryListResponse(BaseModel):
    application_id: UUID
    total: int
    items: list[StatusHistoryEntry] = Field(default_factory=list)

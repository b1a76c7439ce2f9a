"""Submission completeness checks.

``validate`` runs every rule against one loaded snapshot and collects the
messages of the rules that fail, so the applicant sees everything that is
missing at once. An empty list means the application may leave DRAFT.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.core.settings import Settings, settings as app_settings
from app.schemas.application import (
    SETTLED_PAYMENT_STATUSES,
    ApplicationSnapshot,
    DocumentType,
    PaymentType,
)


@dataclass(frozen=True, slots=True)
class DocumentRequirement:
    type: DocumentType
    label: str


MANDATORY_DOCUMENTS: tuple[DocumentRequirement, ...] = (
    DocumentRequirement(DocumentType.COMPANY_REGISTRATION, "Company Registration Certificate"),
    DocumentRequirement(DocumentType.GST_CERTIFICATE, "GST Registration Certificate"),
    DocumentRequirement(DocumentType.PAN_CARD, "PAN Card"),
    DocumentRequirement(DocumentType.PAYMENT_PROOF, "Proof of Online Payment"),
    DocumentRequirement(DocumentType.SERVICE_SUPPORT_UNDERTAKING, "Undertaking for Service Support"),
    DocumentRequirement(DocumentType.NON_BLACKLISTING_DECLARATION, "Non-Blacklisting Declaration"),
    DocumentRequirement(DocumentType.TURNOVER_CERTIFICATE, "Year-wise Turnover Certificate"),
    DocumentRequirement(DocumentType.ISO_CERTIFICATION, "Manufacturing Plant Certifications"),
    DocumentRequirement(DocumentType.PRODUCT_DATASHEET, "Product Datasheets"),
    DocumentRequirement(DocumentType.CLIENT_PERFORMANCE_CERT, "Client Performance Certificates"),
    DocumentRequirement(DocumentType.TEST_CERTIFICATE, "Test Certificates of APCDs"),
    DocumentRequirement(DocumentType.DESIGN_CALCULATIONS, "Design Calculations"),
    DocumentRequirement(
        DocumentType.MATERIAL_CONSTRUCTION_CERT, "Material of Construction Certificates"
    ),
    DocumentRequirement(DocumentType.WARRANTY_DOCUMENT, "Warranty Documents"),
    DocumentRequirement(DocumentType.BANK_SOLVENCY_CERT, "Bank Solvency Certificate"),
    DocumentRequirement(DocumentType.INSTALLATION_EXPERIENCE, "Experience in Installation of APCDs"),
    DocumentRequirement(DocumentType.CONSENT_TO_OPERATE, "Consent to Operate Certificate"),
    DocumentRequirement(DocumentType.GEO_TAGGED_PHOTOS, "Geo-tagged Photographs"),
    DocumentRequirement(DocumentType.TECHNICAL_CATALOGUE, "Technical Catalogues / Brochures"),
    DocumentRequirement(DocumentType.ORG_CHART, "Organizational Chart & Staffing Details"),
    DocumentRequirement(
        DocumentType.STAFF_QUALIFICATION_PROOF, "Names, Qualifications, Roles & Experience Proof"
    ),
    DocumentRequirement(DocumentType.GST_FILING_PROOF, "GST Filing Proofs"),
    DocumentRequirement(DocumentType.NO_LEGAL_DISPUTES_AFFIDAVIT, "No Ongoing Legal Disputes"),
    DocumentRequirement(
        DocumentType.COMPLAINT_HANDLING_POLICY, "Documented Complaint-Handling Policy"
    ),
    DocumentRequirement(
        DocumentType.ESCALATION_MECHANISM, "Escalation Mechanism & Corrective Actions"
    ),
)

_DOCUMENT_LABELS = {requirement.type: requirement.label for requirement in MANDATORY_DOCUMENTS}


@dataclass(frozen=True, slots=True)
class CompletenessRules:
    mandatory_documents: tuple[DocumentRequirement, ...] = MANDATORY_DOCUMENTS
    engineer_keywords: tuple[str, ...] = ("b.tech", "m.tech")
    min_engineers: int = 2
    min_geo_tagged_photos: int = 2
    experiences_per_apcd: int = 3
    geo_photo_type: DocumentType = field(default=DocumentType.GEO_TAGGED_PHOTOS)


def _mandatory_documents_from(values: list[str] | None) -> tuple[DocumentRequirement, ...]:
    if values is None:
        return MANDATORY_DOCUMENTS
    documents: list[DocumentRequirement] = []
    for value in values:
        doc_type = DocumentType(value.strip().upper())
        label = _DOCUMENT_LABELS.get(doc_type, doc_type.value.replace("_", " ").title())
        documents.append(DocumentRequirement(doc_type, label))
    return tuple(documents)


def rules_from_settings(config: Settings | None = None) -> CompletenessRules:
    config = config or app_settings
    return CompletenessRules(
        mandatory_documents=_mandatory_documents_from(config.mandatory_document_types),
        engineer_keywords=tuple(keyword.lower() for keyword in config.engineer_qualification_keywords),
        min_engineers=config.min_engineers,
        min_geo_tagged_photos=config.min_geo_tagged_photos,
        experiences_per_apcd=config.experiences_per_apcd,
    )


_KEYWORD_LABELS = {"b.tech": "B.Tech", "m.tech": "M.Tech"}


def _qualification_label(keywords: tuple[str, ...]) -> str:
    return "/".join(_KEYWORD_LABELS.get(keyword, keyword) for keyword in keywords)


def _is_engineer(qualification: str | None, keywords: tuple[str, ...]) -> bool:
    lowered = (qualification or "").lower()
    return any(keyword in lowered for keyword in keywords)


def validate(
    application: ApplicationSnapshot, rules: CompletenessRules | None = None
) -> list[str]:
    rules = rules or rules_from_settings()
    errors: list[str] = []

    if application.company_profile_id is None:
        errors.append("Company profile (Fields 1-14) must be completed")

    if not application.contact_persons:
        errors.append("At least one contact person is required (Field 15 or 16)")

    turnovers = (application.turnover_year1, application.turnover_year2, application.turnover_year3)
    if any(value is None for value in turnovers):
        errors.append("Year-wise turnover for last 3 years is required (Field 17)")

    if not (application.has_iso_9001 or application.has_iso_14001 or application.has_iso_45001):
        errors.append("At least one ISO certification is required (Field 19)")

    empanelment_apcds = [apcd for apcd in application.apcd_selections if apcd.seeking_empanelment]
    if not empanelment_apcds:
        errors.append("At least one APCD must be selected for empanelment (Field 22)")

    required_experiences = len(empanelment_apcds) * rules.experiences_per_apcd
    found_experiences = len(application.installation_experiences)
    if found_experiences < required_experiences:
        errors.append(
            f"At least {required_experiences} installation experiences required "
            f"({rules.experiences_per_apcd} per APCD type). Found: {found_experiences}"
        )

    engineers = [
        member for member in application.staff if _is_engineer(member.qualification, rules.engineer_keywords)
    ]
    if len(engineers) < rules.min_engineers:
        errors.append(
            f"At least {rules.min_engineers} engineers with "
            f"{_qualification_label(rules.engineer_keywords)} qualification required (Annexure 7)"
        )

    uploaded_types = {attachment.document_type for attachment in application.attachments}
    for requirement in rules.mandatory_documents:
        if requirement.type not in uploaded_types:
            errors.append(f"Missing mandatory document: {requirement.label}")

    geo_photos = [
        attachment
        for attachment in application.attachments
        if attachment.document_type == rules.geo_photo_type
    ]
    if len(geo_photos) < rules.min_geo_tagged_photos:
        errors.append(
            f"At least {rules.min_geo_tagged_photos} geo-tagged photographs are required (Field 19)"
        )
    invalid_geo_photos = [photo for photo in geo_photos if not photo.has_valid_geo_tag]
    if invalid_geo_photos:
        errors.append(f"{len(invalid_geo_photos)} photo(s) are missing valid GPS geo-tag data")

    has_application_fee = any(
        payment.payment_type == PaymentType.APPLICATION_FEE
        and payment.status in SETTLED_PAYMENT_STATUSES
        for payment in application.payments
    )
    if not has_application_fee:
        errors.append("Application processing fee payment is required (Field 25)")

    if not application.declaration_accepted:
        errors.append("Declaration must be accepted")

    return errors

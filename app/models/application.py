import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.schemas.application import ApplicationStatus

_STATUS_VALUES = ", ".join(f"'{status.value}'" for status in ApplicationStatus)


class Application(Base):
    __tablename__ = "applications"
    __allow_unmapped__ = True
    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_application_status"),
        CheckConstraint("version >= 1", name="ck_application_version_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_number = Column(String(50), nullable=True, unique=True)
    applicant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    oem_profile_id = Column(
        UUID(as_uuid=True),
        ForeignKey("oem_profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assigned_officer_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    status = Column(String(30), nullable=False, default=ApplicationStatus.DRAFT.value, index=True)
    version = Column(Integer, nullable=False, default=1)

    turnover_year1 = Column(Numeric(18, 2), nullable=True)
    turnover_year2 = Column(Numeric(18, 2), nullable=True)
    turnover_year3 = Column(Numeric(18, 2), nullable=True)
    has_iso_9001 = Column(Boolean, nullable=False, default=False)
    has_iso_14001 = Column(Boolean, nullable=False, default=False)
    has_iso_45001 = Column(Boolean, nullable=False, default=False)
    declaration_accepted = Column(Boolean, nullable=False, default=False)

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    last_queried_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    oem_profile = relationship("OemProfile", lazy="noload")
    contact_persons = relationship("ContactPerson", lazy="noload")
    apcd_selections = relationship("ApplicationApcd", lazy="noload")
    installation_experiences = relationship("InstallationExperience", lazy="noload")
    staff = relationship("StaffDetail", lazy="noload")
    attachments = relationship("Attachment", lazy="noload")
    payments = relationship("Payment", lazy="noload")


class OemProfile(Base):
    __tablename__ = "oem_profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, unique=True)
    company_name = Column(String(255), nullable=False)
    gst_registration_no = Column(String(20), nullable=True)
    pan_no = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ContactPerson(Base):
    __tablename__ = "contact_persons"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    contact_type = Column(String(30), nullable=False, default="COMMERCIAL")
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    mobile_no = Column(String(20), nullable=True)


class ApplicationApcd(Base):
    __tablename__ = "application_apcds"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    apcd_type_id = Column(UUID(as_uuid=True), nullable=True)
    is_manufactured = Column(Boolean, nullable=False, default=False)
    seeking_empanelment = Column(Boolean, nullable=False, default=False)


class InstallationExperience(Base):
    __tablename__ = "installation_experiences"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    industry_name = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    apcd_type = Column(String(100), nullable=True)


class StaffDetail(Base):
    __tablename__ = "staff_details"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=True)
    designation = Column(String(255), nullable=True)
    qualification = Column(String(255), nullable=False, default="")
    experience_years = Column(Integer, nullable=True)


class Attachment(Base):
    __tablename__ = "attachments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_type = Column(String(50), nullable=False)
    original_name = Column(String(255), nullable=True)
    has_valid_geo_tag = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Payment(Base):
    __tablename__ = "payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    payment_type = Column(String(30), nullable=False)
    status = Column(String(30), nullable=False, default="PENDING")
    total_amount = Column(Numeric(18, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

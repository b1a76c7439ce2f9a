import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class ApplicationStatusHistory(Base):
    """Append-only log of status changes; rows are never updated or deleted."""

    __tablename__ = "application_status_history"
    __table_args__ = (
        Index("ix_application_status_history_app_created", "application_id", "created_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    from_status = Column(String(30), nullable=False)
    to_status = Column(String(30), nullable=False)
    changed_by = Column(UUID(as_uuid=True), nullable=False)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class JobStatus:
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    DELETED = "DELETED"

    ALL = (SCHEDULED, IN_PROGRESS, COMPLETED, CANCELED, DELETED)


class JobPriority:
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    ALL = (HIGH, MEDIUM, LOW)


class Job(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "jobs"
    __table_args__ = (
        Index("ix_jobs_coordinates", "latitude", "longitude"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    job_id_string: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)

    category_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    category_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    service_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    service_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    personal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_mobile_no: Mapped[str | None] = mapped_column(String(32), nullable=True)
    about_company: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Job site
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    company_address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    company_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    company_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    priority: Mapped[str] = mapped_column(String(16), nullable=False)  # HIGH | MEDIUM | LOW
    procedure: Mapped[str | None] = mapped_column(Text, nullable=True)
    door_tag: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    status: Mapped[str] = mapped_column(String(32), default=JobStatus.SCHEDULED, index=True)
    # Pending deferred transition to IN_PROGRESS; at most one at a time
    schedule: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

from __future__ import annotations

import uuid

from sqlalchemy import Float, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class RequestStatus:
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    DELETED = "DELETED"

    ALL = (PENDING, IN_PROGRESS, APPROVED, REJECTED, DELETED)
    ACTIVE = (PENDING, IN_PROGRESS, REJECTED)
    COMPLETED = (APPROVED,)


class ServiceRequest(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "service_requests"
    __table_args__ = (
        Index("ix_service_requests_coordinates", "latitude", "longitude"),
    )

    request_id_string: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)

    service_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    category_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)
    category_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    issue_type_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sub_issue_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    estimated_days: Mapped[str | None] = mapped_column(String(32), nullable=True)
    amount: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reject_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    media: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    media_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    chat_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    status: Mapped[str] = mapped_column(String(32), default=RequestStatus.PENDING, index=True)

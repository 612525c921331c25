from __future__ import annotations

import uuid

from sqlalchemy import Float, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class ReportStatus:
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    DELETED = "DELETED"

    ALL = (PENDING, COMPLETED, DELETED)


class DamageReport(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "damage_reports"

    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_mobile: Mapped[str | None] = mapped_column(String(32), nullable=True)

    type: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # [{"media": url, "mediaType": "image" | "video"}]
    media: Mapped[list | None] = mapped_column(JSONB, nullable=True)

    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    chat_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default=ReportStatus.PENDING, index=True)

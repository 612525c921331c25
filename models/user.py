from __future__ import annotations

from sqlalchemy import Boolean, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class UserStatus:
    BLOCKED = "BLOCKED"
    UN_BLOCKED = "UN_BLOCKED"
    DELETED = "DELETED"

    ALL = (BLOCKED, UN_BLOCKED, DELETED)


class User(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "users"

    name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    country_code: Mapped[str | None] = mapped_column(String(8), nullable=True)
    mobile_no: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    full_mobile_no: Mapped[str | None] = mapped_column(String(40), nullable=True)
    profile_picture: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    user_type: Mapped[str] = mapped_column(String(32), default="USER")
    is_profile_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    blocked_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)

    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    status: Mapped[str] = mapped_column(String(32), default=UserStatus.UN_BLOCKED, index=True)

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDPrimaryKey


class TaskStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class Task(Base, UUIDPrimaryKey, TimestampMixin):
    """A delayed unit of work living in a named queue."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_claim", "queue_name", "status", "priority", "run_after"),
    )

    queue_name: Mapped[str] = mapped_column(String(128), nullable=False)

    # pending | processing | complete | failed
    status: Mapped[str] = mapped_column(String(32), default=TaskStatus.PENDING)
    payload: Mapped[dict] = mapped_column(JSONB, default=dict)
    result: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    # lower runs first
    priority: Mapped[int] = mapped_column(Integer, default=1)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, default=1)
    remove_on_complete: Mapped[bool] = mapped_column(Boolean, default=True)
    locked_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    run_after: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    trace_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), default=uuid.uuid4, nullable=False)

    @property
    def attempts_remaining(self) -> int:
        return max((self.max_attempts or 0) - (self.attempts or 0), 0)

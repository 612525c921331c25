# api/app/schemas/damage_report.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class MediaItem(BaseModel):
    media: str
    mediaType: Literal["image", "video"] = "image"


class DamageReportCreate(BaseModel):
    user_id: uuid.UUID
    user_name: str
    user_email: str
    user_mobile: str | None = None
    type: str
    description: str | None = None
    media: list[MediaItem] = []
    address: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    chat_id: uuid.UUID | None = None


class DamageReportUpdate(BaseModel):
    id: uuid.UUID
    type: str | None = None
    description: str | None = None
    media: list[MediaItem] | None = None
    status: Literal["PENDING", "COMPLETED", "DELETED"] | None = None

    @field_validator("type", "status")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class DamageReportResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    user_email: str
    user_mobile: str | None
    type: str
    description: str | None
    media: list[dict] | None
    address: str | None
    latitude: float | None
    longitude: float | None
    chat_id: uuid.UUID | None
    status: str
    created_at: datetime | None

    class Config:
        from_attributes = True

# api/app/schemas/service_request.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Status = Literal["PENDING", "IN_PROGRESS", "APPROVED", "REJECTED", "DELETED"]


class ServiceRequestCreate(BaseModel):
    user_id: uuid.UUID
    user_name: str
    service_type: str | None = None
    category_id: uuid.UUID | None = None
    category_name: str | None = None
    issue_type_name: str | None = None
    sub_issue_name: str | None = None
    name: str | None = None
    description: str | None = None
    address: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    media: str | None = None
    media_type: str | None = None
    chat_id: uuid.UUID | None = None


class ServiceRequestUpdate(BaseModel):
    id: uuid.UUID
    description: str | None = None
    address: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    estimated_days: str | None = None
    amount: float | None = Field(default=None, ge=0)
    notes: str | None = None
    reject_reason: str | None = None
    status: Status | None = None

    @field_validator("status")
    @classmethod
    def status_not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ServiceRequestResponse(BaseModel):
    id: uuid.UUID
    request_id_string: str
    user_id: uuid.UUID
    user_name: str
    service_type: str | None
    category_id: uuid.UUID | None
    category_name: str | None
    issue_type_name: str | None
    sub_issue_name: str | None
    name: str | None
    description: str | None
    address: str | None
    latitude: float | None
    longitude: float | None
    estimated_days: str | None
    amount: float | None
    notes: str | None
    reject_reason: str | None
    media: str | None
    media_type: str | None
    chat_id: uuid.UUID | None
    status: str
    created_at: datetime | None

    class Config:
        from_attributes = True

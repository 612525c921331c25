# api/app/schemas/job.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Priority = Literal["HIGH", "MEDIUM", "LOW"]
Status = Literal["SCHEDULED", "IN_PROGRESS", "COMPLETED", "CANCELED", "DELETED"]


class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    category_id: uuid.UUID
    category_name: str | None = None
    service_id: uuid.UUID | None = None
    service_name: str | None = None
    personal_name: str
    email: str | None = None
    full_mobile_no: str | None = None
    about_company: str | None = None
    address: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    company_address: str | None = None
    company_latitude: float | None = Field(default=None, ge=-90, le=90)
    company_longitude: float | None = Field(default=None, ge=-180, le=180)
    priority: Priority = "MEDIUM"
    procedure: str | None = None


class JobUpdate(BaseModel):
    id: uuid.UUID
    title: str | None = Field(default=None, min_length=1, max_length=255)
    category_id: uuid.UUID | None = None
    category_name: str | None = None
    service_id: uuid.UUID | None = None
    service_name: str | None = None
    personal_name: str | None = None
    email: str | None = None
    full_mobile_no: str | None = None
    about_company: str | None = None
    address: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    company_address: str | None = None
    company_latitude: float | None = Field(default=None, ge=-90, le=90)
    company_longitude: float | None = Field(default=None, ge=-180, le=180)
    priority: Priority | None = None
    procedure: str | None = None
    status: Status | None = None

    @field_validator("title", "category_id", "personal_name", "priority", "status")
    @classmethod
    def not_null(cls, value):
        # omit a field to leave it unchanged; these columns never hold null
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class JobResponse(BaseModel):
    id: uuid.UUID
    job_id_string: str | None
    title: str
    category_id: uuid.UUID
    category_name: str | None
    service_id: uuid.UUID | None
    service_name: str | None
    personal_name: str
    email: str | None
    full_mobile_no: str | None
    about_company: str | None
    address: str | None
    latitude: float | None
    longitude: float | None
    company_address: str | None
    company_latitude: float | None
    company_longitude: float | None
    priority: str
    procedure: str | None
    door_tag: str | None
    status: str
    schedule: datetime | None
    completed_at: datetime | None
    created_at: datetime | None

    class Config:
        from_attributes = True


class JobDropdownItem(BaseModel):
    id: uuid.UUID
    title: str
    job_id_string: str | None

    class Config:
        from_attributes = True


class JobImportRequest(BaseModel):
    jobs: list[JobCreate] = Field(min_length=1)


class JobScheduleRequest(BaseModel):
    job_id: uuid.UUID = Field(alias="jobId")
    schedule: datetime

    model_config = {"populate_by_name": True}

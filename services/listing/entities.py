"""
Entity kinds the listing engine can page over.

Each kind is bound to its table, the columns a listing may return, the text
columns free-text search looks at, and the public sort keys it accepts.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass

from models.base import Base
from models.damage_report import DamageReport
from models.job import Job
from models.service_request import ServiceRequest
from models.user import User


class EntityKind(str, enum.Enum):
    JOB = "job"
    SERVICE_REQUEST = "service_request"
    DAMAGE_REPORT = "damage_report"
    USER = "user"


@dataclass(frozen=True)
class EntitySpec:
    kind: EntityKind
    model: type[Base]
    projection: tuple[str, ...]
    search_fields: tuple[str, ...]
    # public sortBy value -> column
    sort_fields: dict[str, str]
    filter_fields: frozenset[str] = frozenset()
    # stripped from the front of a search key before matching
    search_prefixes: tuple[str, ...] = ()
    created_field: str = "created_at"
    status_field: str = "status"
    latitude_field: str = "latitude"
    longitude_field: str = "longitude"

    def sort_column(self, sort_by: str) -> str | None:
        return self.sort_fields.get(sort_by)


ENTITY_SPECS: dict[EntityKind, EntitySpec] = {
    EntityKind.JOB: EntitySpec(
        kind=EntityKind.JOB,
        model=Job,
        projection=(
            "id",
            "title",
            "category_name",
            "category_id",
            "personal_name",
            "address",
            "latitude",
            "longitude",
            "company_address",
            "company_latitude",
            "company_longitude",
            "email",
            "full_mobile_no",
            "about_company",
            "priority",
            "procedure",
            "created_at",
            "job_id_string",
            "status",
            "schedule",
            "door_tag",
        ),
        search_fields=("title", "address"),
        sort_fields={
            "created": "created_at",
            "title": "title",
            "priority": "priority",
            "status": "status",
            "schedule": "schedule",
        },
        filter_fields=frozenset({"category_id", "priority"}),
    ),
    EntityKind.SERVICE_REQUEST: EntitySpec(
        kind=EntityKind.SERVICE_REQUEST,
        model=ServiceRequest,
        projection=(
            "id",
            "name",
            "request_id_string",
            "user_id",
            "user_name",
            "service_type",
            "category_name",
            "category_id",
            "issue_type_name",
            "sub_issue_name",
            "address",
            "latitude",
            "longitude",
            "description",
            "created_at",
            "estimated_days",
            "amount",
            "notes",
            "status",
            "media",
            "media_type",
            "reject_reason",
        ),
        search_fields=("user_name", "address"),
        sort_fields={
            "created": "created_at",
            "userName": "user_name",
            "status": "status",
            "amount": "amount",
        },
        filter_fields=frozenset({"user_id", "category_id"}),
    ),
    EntityKind.DAMAGE_REPORT: EntitySpec(
        kind=EntityKind.DAMAGE_REPORT,
        model=DamageReport,
        projection=(
            "id",
            "type",
            "user_id",
            "user_name",
            "user_email",
            "user_mobile",
            "address",
            "latitude",
            "longitude",
            "description",
            "created_at",
            "chat_id",
            "status",
            "media",
        ),
        search_fields=("user_name", "description"),
        sort_fields={
            "created": "created_at",
            "userName": "user_name",
            "status": "status",
            "type": "type",
        },
        filter_fields=frozenset({"user_id", "type"}),
    ),
    EntityKind.USER: EntitySpec(
        kind=EntityKind.USER,
        model=User,
        projection=(
            "id",
            "name",
            "email",
            "status",
            "created_at",
            "profile_picture",
            "user_type",
            "mobile_no",
            "country_code",
            "address",
            "latitude",
            "longitude",
            "blocked_reason",
        ),
        search_fields=("name", "mobile_no", "email"),
        sort_fields={
            "created": "created_at",
            "name": "name",
            "email": "email",
            "status": "status",
        },
        filter_fields=frozenset({"user_type", "is_profile_completed"}),
        search_prefixes=("+1",),
    ),
}


def get_entity_spec(kind: EntityKind) -> EntitySpec:
    return ENTITY_SPECS[kind]

from __future__ import annotations

import logging
import random
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.service_request import RequestStatus, ServiceRequest
from services.errors import NotFoundError
from services.events import emit_event

logger = logging.getLogger(__name__)

REQUEST_UPDATED = "request_updated"


def generate_request_id_string() -> str:
    return f"RQ{random.randint(0, 999_999):06d}"


def request_event_payload(request: ServiceRequest) -> dict[str, Any]:
    payload: dict[str, Any] = {"requestId": str(request.id), "status": request.status}
    if request.chat_id is not None:
        payload["chatId"] = str(request.chat_id)
    return payload


def status_preset(is_completed: bool | None, is_active: bool | None) -> tuple[str, ...] | None:
    """`isCompleted` / `isActive` listing flags as a status set."""
    if is_completed:
        return RequestStatus.COMPLETED
    if is_active:
        return RequestStatus.ACTIVE
    return None


async def create_request(db: AsyncSession, data: dict[str, Any]) -> ServiceRequest:
    request = ServiceRequest(
        id=uuid.uuid4(),
        request_id_string=generate_request_id_string(),
        status=RequestStatus.PENDING,
        **data,
    )
    db.add(request)
    await db.flush()
    logger.info("Created service request %s (%s)", request.id, request.request_id_string)
    return request


async def get_request(db: AsyncSession, request_id: uuid.UUID) -> ServiceRequest:
    request = await db.get(ServiceRequest, request_id)
    if request is None:
        raise NotFoundError("Service request", request_id, code="REQUEST_NOT_FOUND")
    return request


async def update_request(db: AsyncSession, request_id: uuid.UUID, changes: dict[str, Any]) -> ServiceRequest:
    request = await get_request(db, request_id)
    previous_status = request.status

    for name, value in changes.items():
        setattr(request, name, value)

    if request.status != previous_status:
        await emit_event(db, REQUEST_UPDATED, "service_request", request.id, request_event_payload(request))

    await db.flush()
    return request


async def request_ids_by_category(db: AsyncSession, category_id: uuid.UUID) -> list[uuid.UUID]:
    stmt = select(ServiceRequest.id).where(
        ServiceRequest.category_id == category_id,
        ServiceRequest.status != RequestStatus.DELETED,
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())

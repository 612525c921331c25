# api/app/routes/service_requests.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.config import Settings, get_settings
from api.app.dependencies import (
    ListingParams,
    get_aggregation_engine,
    get_listing_params,
    get_session,
    split_csv_uuids,
)
from api.app.schemas.listing import PageResponse
from api.app.schemas.service_request import (
    ServiceRequestCreate,
    ServiceRequestResponse,
    ServiceRequestUpdate,
)
from services import service_requests as request_service
from services.listing.engine import AggregationEngine
from services.listing.entities import EntityKind

router = APIRouter(prefix="/requests", tags=["service-requests"])


@router.post("", response_model=ServiceRequestResponse, status_code=201)
async def create_request(body: ServiceRequestCreate, db: AsyncSession = Depends(get_session)):
    request = await request_service.create_request(db, body.model_dump())
    return ServiceRequestResponse.model_validate(request)


@router.put("", response_model=ServiceRequestResponse)
async def update_request(body: ServiceRequestUpdate, db: AsyncSession = Depends(get_session)):
    changes = body.model_dump(exclude_unset=True, exclude={"id"})
    request = await request_service.update_request(db, body.id, changes)
    return ServiceRequestResponse.model_validate(request)


@router.get("", response_model=ServiceRequestResponse)
async def get_request(
    request_id: uuid.UUID = Query(..., alias="requestId"),
    db: AsyncSession = Depends(get_session),
):
    request = await request_service.get_request(db, request_id)
    return ServiceRequestResponse.model_validate(request)


@router.get("/list", response_model=PageResponse)
async def list_requests(
    params: ListingParams = Depends(get_listing_params),
    user_id: uuid.UUID | None = Query(None, alias="userId"),
    service_category: list[str] | None = Query(None, alias="serviceCategory"),
    is_completed: bool | None = Query(None, alias="isCompleted"),
    is_active: bool | None = Query(None, alias="isActive"),
    engine: AggregationEngine = Depends(get_aggregation_engine),
    settings: Settings = Depends(get_settings),
):
    query = params.to_query(
        EntityKind.SERVICE_REQUEST,
        filters={
            "user_id": user_id,
            "category_id": split_csv_uuids(service_category, "serviceCategory"),
        },
        status=request_service.status_preset(is_completed, is_active),
        max_distance_m=settings.request_geo_max_distance_m,
    )
    page = await engine.paginate(EntityKind.SERVICE_REQUEST, query)
    return PageResponse(**page.to_dict())


@router.get("/by-category/{category_id}", response_model=list[uuid.UUID])
async def request_ids_by_category(category_id: uuid.UUID, db: AsyncSession = Depends(get_session)):
    return await request_service.request_ids_by_category(db, category_id)

# api/app/routes/damage_reports.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.dependencies import (
    ListingParams,
    get_aggregation_engine,
    get_listing_params,
    get_session,
    split_csv,
)
from api.app.schemas.damage_report import DamageReportCreate, DamageReportResponse, DamageReportUpdate
from api.app.schemas.listing import PageResponse
from services import damage_reports as report_service
from services.listing.engine import AggregationEngine
from services.listing.entities import EntityKind

router = APIRouter(prefix="/damage-reports", tags=["damage-reports"])


@router.post("", response_model=DamageReportResponse, status_code=201)
async def create_report(body: DamageReportCreate, db: AsyncSession = Depends(get_session)):
    report = await report_service.create_report(db, body.model_dump())
    return DamageReportResponse.model_validate(report)


@router.put("", response_model=DamageReportResponse)
async def update_report(body: DamageReportUpdate, db: AsyncSession = Depends(get_session)):
    changes = body.model_dump(exclude_unset=True, exclude={"id"})
    report = await report_service.update_report(db, body.id, changes)
    return DamageReportResponse.model_validate(report)


@router.get("", response_model=DamageReportResponse)
async def get_report(
    report_id: uuid.UUID = Query(..., alias="reportId"),
    db: AsyncSession = Depends(get_session),
):
    report = await report_service.get_report(db, report_id)
    return DamageReportResponse.model_validate(report)


@router.get("/list", response_model=PageResponse)
async def list_reports(
    params: ListingParams = Depends(get_listing_params),
    user_id: uuid.UUID | None = Query(None, alias="userId"),
    report_type: list[str] | None = Query(None, alias="type"),
    engine: AggregationEngine = Depends(get_aggregation_engine),
):
    query = params.to_query(
        EntityKind.DAMAGE_REPORT,
        filters={"user_id": user_id, "type": split_csv(report_type)},
    )
    page = await engine.paginate(EntityKind.DAMAGE_REPORT, query)
    return PageResponse(**page.to_dict())

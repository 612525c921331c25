# api/app/routes/jobs.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.config import Settings, get_settings
from api.app.dependencies import (
    ListingParams,
    get_aggregation_engine,
    get_listing_params,
    get_scheduler,
    get_session,
    split_csv,
    split_csv_uuids,
)
from api.app.schemas.job import (
    JobCreate,
    JobDropdownItem,
    JobImportRequest,
    JobResponse,
    JobScheduleRequest,
    JobUpdate,
)
from api.app.schemas.listing import PageResponse
from services import jobs as job_service
from services.listing.engine import AggregationEngine
from services.listing.entities import EntityKind
from services.scheduler import JobScheduler

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    body: JobCreate,
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    job = await job_service.create_job(db, body.model_dump(), deeplink_url=settings.deeplink_url)
    return JobResponse.model_validate(job)


@router.put("", response_model=JobResponse)
async def update_job(body: JobUpdate, db: AsyncSession = Depends(get_session)):
    changes = body.model_dump(exclude_unset=True, exclude={"id"})
    job = await job_service.update_job(db, body.id, changes)
    return JobResponse.model_validate(job)


@router.get("", response_model=JobResponse)
async def get_job(
    job_ref: str = Query(..., alias="jobId", description="UUID or job id string"),
    db: AsyncSession = Depends(get_session),
):
    job = await job_service.get_job(db, job_ref)
    return JobResponse.model_validate(job)


@router.get("/list", response_model=PageResponse)
async def list_jobs(
    params: ListingParams = Depends(get_listing_params),
    service_category: list[str] | None = Query(None, alias="serviceCategory"),
    priority: list[str] | None = Query(None),
    engine: AggregationEngine = Depends(get_aggregation_engine),
    settings: Settings = Depends(get_settings),
):
    query = params.to_query(
        EntityKind.JOB,
        filters={
            "category_id": split_csv_uuids(service_category, "serviceCategory"),
            "priority": split_csv(priority),
        },
        max_distance_m=settings.job_geo_max_distance_m,
    )
    page = await engine.paginate(EntityKind.JOB, query)
    return PageResponse(**page.to_dict())


@router.get("/dropdown", response_model=list[JobDropdownItem])
async def job_dropdown(db: AsyncSession = Depends(get_session)):
    jobs = await job_service.job_dropdown(db)
    return [JobDropdownItem.model_validate(job) for job in jobs]


@router.get("/by-category/{category_id}", response_model=list[uuid.UUID])
async def job_ids_by_category(category_id: uuid.UUID, db: AsyncSession = Depends(get_session)):
    return await job_service.job_ids_by_category(db, category_id)


@router.post("/import", response_model=list[JobResponse], status_code=201)
async def import_jobs(
    body: JobImportRequest,
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    rows = [item.model_dump() for item in body.jobs]
    jobs = await job_service.import_jobs(db, rows, deeplink_url=settings.deeplink_url)
    return [JobResponse.model_validate(job) for job in jobs]


@router.post("/schedule", response_model=JobResponse)
async def schedule_job(
    body: JobScheduleRequest,
    request: Request,
    scheduler: JobScheduler = Depends(get_scheduler),
):
    trace_id = getattr(request.state, "trace_id", None)
    job = await scheduler.schedule(body.job_id, body.schedule, trace_id=trace_id)
    return JobResponse.model_validate(job)

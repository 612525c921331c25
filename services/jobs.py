"""
Job records: create, read, update, and the small lookups the admin panel uses.

Listing goes through the aggregation engine; scheduling through
`services.scheduler`.
"""
from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.job import Job, JobStatus
from services.errors import ConflictError, NotFoundError
from services.events import emit_event

logger = logging.getLogger(__name__)

JOB_UPDATED = "job_updated"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_job_id_string() -> str:
    return f"CB{random.randint(0, 999_999):06d}"


def job_event_payload(job: Job) -> dict[str, Any]:
    return {"jobId": str(job.id), "status": job.status}


async def find_duplicate_job(
    db: AsyncSession,
    title: str | None,
    address: str | None,
    exclude_id: uuid.UUID | None = None,
) -> Job | None:
    """A live job with the same title and site address, if any."""
    stmt = select(Job).where(Job.status != JobStatus.DELETED)
    if title is not None:
        stmt = stmt.where(Job.title == title)
    if address is not None:
        stmt = stmt.where(Job.address == address)
    if exclude_id is not None:
        stmt = stmt.where(Job.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none()


async def create_job(db: AsyncSession, data: dict[str, Any], *, deeplink_url: str = "") -> Job:
    if await find_duplicate_job(db, data.get("title"), data.get("address")):
        raise ConflictError("Job already exists", code="JOB_ALREADY_EXISTS")

    job_id_string = generate_job_id_string()
    job = Job(
        id=uuid.uuid4(),
        status=JobStatus.SCHEDULED,
        job_id_string=job_id_string,
        door_tag=f"{deeplink_url}jobId={job_id_string}",
        **data,
    )
    db.add(job)
    await db.flush()

    logger.info("Created job %s (%s)", job.id, job.job_id_string)
    return job


async def get_job(db: AsyncSession, job_ref: str | uuid.UUID) -> Job:
    """Fetch by UUID or by the human-facing `job_id_string`."""
    job: Job | None
    try:
        job_uuid = job_ref if isinstance(job_ref, uuid.UUID) else uuid.UUID(str(job_ref))
    except ValueError:
        result = await db.execute(select(Job).where(Job.job_id_string == str(job_ref)))
        job = result.scalar_one_or_none()
    else:
        job = await db.get(Job, job_uuid)

    if job is None:
        raise NotFoundError("Job", job_ref, code="JOB_NOT_FOUND")
    return job


async def update_job(
    db: AsyncSession,
    job_id: uuid.UUID,
    changes: dict[str, Any],
    *,
    now: datetime | None = None,
) -> Job:
    job = await get_job(db, job_id)
    new_status = changes.get("status")
    previous_status = job.status

    # Re-opening a job disarms any pending deferred transition.
    if new_status == JobStatus.SCHEDULED and job.status != JobStatus.SCHEDULED:
        if job.schedule is not None:
            logger.info("Clearing schedule %s of job %s", job.schedule.isoformat(), job.id)
        job.schedule = None

    title_changed = "title" in changes and changes["title"] != job.title
    address_changed = "address" in changes and changes["address"] != job.address
    if title_changed or address_changed:
        duplicate = await find_duplicate_job(
            db,
            changes.get("title", job.title),
            changes.get("address", job.address),
            exclude_id=job.id,
        )
        if duplicate is not None:
            raise ConflictError("Job already exists", code="JOB_ALREADY_EXISTS")

    if new_status == JobStatus.COMPLETED and job.status != JobStatus.COMPLETED:
        job.completed_at = now or utcnow()

    for name, value in changes.items():
        setattr(job, name, value)

    if job.status != previous_status:
        await emit_event(db, JOB_UPDATED, "job", job.id, job_event_payload(job))

    await db.flush()
    return job


async def job_dropdown(db: AsyncSession) -> list[Job]:
    """SCHEDULED jobs that have no pending deferred transition yet."""
    stmt = (
        select(Job)
        .where(Job.status == JobStatus.SCHEDULED, Job.schedule.is_(None))
        .order_by(Job.created_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def job_ids_by_category(db: AsyncSession, category_id: uuid.UUID) -> list[uuid.UUID]:
    stmt = select(Job.id).where(Job.category_id == category_id, Job.status != JobStatus.DELETED)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def import_jobs(db: AsyncSession, rows: list[dict[str, Any]], *, deeplink_url: str = "") -> list[Job]:
    jobs = []
    for data in rows:
        job_id_string = generate_job_id_string()
        jobs.append(
            Job(
                id=uuid.uuid4(),
                status=JobStatus.SCHEDULED,
                job_id_string=job_id_string,
                door_tag=f"{deeplink_url}jobId={job_id_string}",
                **data,
            )
        )
    db.add_all(jobs)
    await db.flush()
    logger.info("Imported %d jobs", len(jobs))
    return jobs

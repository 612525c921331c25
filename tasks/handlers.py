"""
Task handlers, keyed by queue name.

Handlers receive the worker's session and the task payload, and return a small
result dict. Raising makes the queue retry the task.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from models.job import Job, JobStatus
from services.events import emit_event
from services.jobs import JOB_UPDATED, job_event_payload
from services.scheduler import as_utc

logger = logging.getLogger(__name__)

Handler = Callable[[AsyncSession, dict], Awaitable[dict[str, Any]]]


async def handle_scheduled_transition(db: AsyncSession, payload: dict) -> dict[str, Any]:
    """
    Applies a deferred job transition.

    Idempotent: a job already in the target status is left alone, and a task
    whose schedule no longer matches the job's (re-opened or re-scheduled job)
    is dropped.
    """
    job_id = uuid.UUID(payload["job_id"])
    target_status = payload.get("target_status", JobStatus.IN_PROGRESS)
    trace_id = payload.get("trace_id")

    job = await db.get(Job, job_id, with_for_update=True)
    if job is None:
        logger.warning("Scheduled job %s no longer exists trace=%s", job_id, trace_id)
        return {"job_id": str(job_id), "skipped": "not_found"}

    expected = payload.get("schedule")
    if expected is not None:
        expected_at = as_utc(datetime.fromisoformat(expected))
        if job.schedule is None or as_utc(job.schedule) != expected_at:
            logger.info(
                "Stale schedule for job %s (task=%s, job=%s) trace=%s",
                job_id,
                expected,
                job.schedule.isoformat() if job.schedule else None,
                trace_id,
            )
            return {"job_id": str(job_id), "skipped": "stale"}

    if job.status == target_status:
        return {"job_id": str(job_id), "skipped": "already_applied"}

    previous = job.status
    job.status = target_status
    await emit_event(db, JOB_UPDATED, "job", job.id, job_event_payload(job))
    await db.flush()

    logger.info("Job %s %s -> %s trace=%s", job_id, previous, target_status, trace_id)
    return {"job_id": str(job_id), "from": previous, "to": target_status}


def build_handlers(jobs_queue_name: str) -> dict[str, Handler]:
    return {jobs_queue_name: handle_scheduled_transition}

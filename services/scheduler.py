"""
Deferred job transitions.

`JobScheduler.schedule` arms a single delayed task that moves a SCHEDULED job
to IN_PROGRESS at the requested instant. The task is enqueued before the job's
`schedule` is written, so a broker failure leaves the job untouched.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.job import Job, JobStatus
from services.errors import AlreadyScheduledError, InvalidScheduleTimeError, NotFoundError
from services.events import emit_event
from services.jobs import JOB_UPDATED, job_event_payload
from tasks.queue import TaskQueueClient, utcnow

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_NAME = "job-schedules"


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def build_transition_payload(job_id: uuid.UUID, schedule_at: datetime, trace_id: str | None = None) -> dict:
    payload = {
        "job_id": str(job_id),
        "target_status": JobStatus.IN_PROGRESS,
        "schedule": schedule_at.isoformat(),
    }
    if trace_id:
        payload["trace_id"] = trace_id
    return payload


class JobScheduler:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        queues: TaskQueueClient,
        *,
        queue_name: str = DEFAULT_QUEUE_NAME,
        max_attempts: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._queues = queues
        self.queue_name = queue_name
        self._max_attempts = max_attempts
        self._clock = clock

    async def schedule(self, job_id: uuid.UUID, schedule_at: datetime, *, trace_id: str | None = None) -> Job:
        schedule_at = as_utc(schedule_at)

        async with self._session_factory() as db:
            # Row lock keeps two concurrent requests from arming the same job twice.
            job = await db.get(Job, job_id, with_for_update=True)
            if job is None:
                raise NotFoundError("Job", job_id, code="JOB_NOT_FOUND")

            if job.schedule is not None:
                raise AlreadyScheduledError(
                    "Job schedule already set",
                    details={"job_id": str(job_id), "schedule": job.schedule.isoformat()},
                )

            now = self._clock()
            if schedule_at <= now:
                raise InvalidScheduleTimeError(
                    "Schedule time must be in the future",
                    details={"schedule": schedule_at.isoformat(), "now": now.isoformat()},
                )

            delay_ms = max(int((schedule_at - now).total_seconds() * 1000), 0)
            task = await self._queues.enqueue(
                self.queue_name,
                build_transition_payload(job.id, schedule_at, trace_id),
                delay_ms=delay_ms,
                max_attempts=self._max_attempts,
            )

            job.schedule = schedule_at
            await emit_event(db, JOB_UPDATED, "job", job.id, job_event_payload(job))
            await db.commit()

        logger.info(
            "Scheduled job %s -> %s at %s (delay=%dms task=%s)",
            job_id,
            JobStatus.IN_PROGRESS,
            schedule_at.isoformat(),
            delay_ms,
            task.id,
        )
        return job

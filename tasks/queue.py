# tasks/queue.py
"""
Named, durable, delay-capable task queues backed by the `tasks` table.

A queue is only a name: every task row carries its `queue_name`, becomes
claimable once `run_after` has passed, and is retried with exponential
backoff until `max_attempts` is exhausted.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.task import Task, TaskStatus
from services.errors import BrokerUnavailableError

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 60
DEFAULT_PRIORITY = 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QueueHandle:
    """One logical queue. Obtain through `TaskQueueClient.get_queue`."""

    def __init__(
        self,
        name: str,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        lock_timeout_seconds: int = LOCK_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.name = name
        self._session_factory = session_factory
        self._lock_timeout = timedelta(seconds=lock_timeout_seconds)
        self._clock = clock

    async def add(
        self,
        payload: dict,
        *,
        delay_ms: int = 0,
        max_attempts: int = 1,
        priority: int = DEFAULT_PRIORITY,
        remove_on_complete: bool = True,
    ) -> Task:
        """Persist a task that becomes due `delay_ms` from now. Commits on its own."""
        task = Task(
            id=uuid.uuid4(),
            queue_name=self.name,
            payload=payload,
            status=TaskStatus.PENDING,
            priority=priority,
            attempts=0,
            max_attempts=max(max_attempts, 1),
            remove_on_complete=remove_on_complete,
            run_after=self._clock() + timedelta(milliseconds=max(delay_ms, 0)),
            trace_id=uuid.uuid4(),
        )
        async with self._session_factory() as db:
            db.add(task)
            await db.commit()

        logger.info(
            "Enqueued task %s on %s due=%s attempts=%d trace=%s",
            task.id,
            self.name,
            task.run_after.isoformat(),
            task.max_attempts,
            task.trace_id,
        )
        return task

    async def claim(self, db: AsyncSession, worker_id: str) -> Task | None:
        """
        Claims the next due task of this queue.
        Also recovers stale processing tasks whose worker died.
        """

        now = self._clock()
        stale_cutoff = now - self._lock_timeout

        # A worker died holding the last attempt: nothing left to reclaim.
        exhausted = await db.execute(
            update(Task)
            .where(
                Task.queue_name == self.name,
                Task.status == TaskStatus.PROCESSING,
                Task.locked_at <= stale_cutoff,
                Task.attempts >= Task.max_attempts,
            )
            .values(
                status=TaskStatus.FAILED,
                error="Lock expired on the final attempt",
                locked_by=None,
                locked_at=None,
            )
            .returning(Task.id)
        )
        for task_id in exhausted.scalars().all():
            logger.error("Task %s on %s failed: worker lost on final attempt", task_id, self.name)

        stmt = (
            select(Task)
            .where(
                Task.queue_name == self.name,
                or_(
                    # Due pending tasks
                    and_(
                        Task.status == TaskStatus.PENDING,
                        Task.run_after <= now,
                    ),
                    # Stale locked tasks
                    and_(
                        Task.status == TaskStatus.PROCESSING,
                        Task.locked_at <= stale_cutoff,
                        Task.attempts < Task.max_attempts,
                    ),
                ),
            )
            .order_by(Task.priority.asc(), Task.run_after.asc(), Task.created_at.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )

        result = await db.execute(stmt)
        task = result.scalar_one_or_none()

        if task is None:
            return None

        task.status = TaskStatus.PROCESSING
        task.locked_by = worker_id
        task.locked_at = now
        task.attempts += 1

        await db.flush()

        logger.info(
            "Worker %s claimed task %s on %s attempt=%d/%d trace=%s",
            worker_id,
            task.id,
            self.name,
            task.attempts,
            task.max_attempts,
            task.trace_id,
        )
        return task

    async def complete(self, db: AsyncSession, task: Task, result: dict | None = None) -> None:
        """Acknowledges a task: removes it, or keeps it as `complete` when asked to."""
        if task.remove_on_complete:
            await db.execute(delete(Task).where(Task.id == task.id))
        else:
            await db.execute(
                update(Task)
                .where(Task.id == task.id)
                .values(
                    status=TaskStatus.COMPLETE,
                    result=result or {},
                    locked_by=None,
                    locked_at=None,
                )
            )

        logger.info("Task %s on %s completed", task.id, self.name)

    async def fail(self, db: AsyncSession, task: Task, error: str) -> None:
        """
        Schedules a retry with backoff or marks the task permanently failed.
        No sleeping here.
        """

        now = self._clock()

        task.error = error
        task.locked_by = None
        task.locked_at = None

        if task.attempts < task.max_attempts:
            backoff_seconds = 2 ** task.attempts
            task.status = TaskStatus.PENDING
            task.run_after = now + timedelta(seconds=backoff_seconds)

            logger.warning(
                "Task %s retry %d/%d in %ds trace=%s",
                task.id,
                task.attempts,
                task.max_attempts,
                backoff_seconds,
                task.trace_id,
            )
        else:
            task.status = TaskStatus.FAILED

            logger.error(
                "Task %s on %s permanently failed after %d attempts trace=%s",
                task.id,
                self.name,
                task.attempts,
                task.trace_id,
            )

        # The task may have been loaded by another session; write by id.
        await db.execute(
            update(Task)
            .where(Task.id == task.id)
            .values(
                status=task.status,
                run_after=task.run_after,
                error=error,
                locked_by=None,
                locked_at=None,
            )
        )


class TaskQueueClient:
    """Registry of queue handles, created lazily and cached by name."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        lock_timeout_seconds: int = LOCK_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._lock_timeout_seconds = lock_timeout_seconds
        self._clock = clock
        self._queues: dict[str, QueueHandle] = {}

    def get_queue(self, name: str) -> QueueHandle:
        queue = self._queues.get(name)
        if queue is None:
            queue = QueueHandle(
                name,
                self._session_factory,
                lock_timeout_seconds=self._lock_timeout_seconds,
                clock=self._clock,
            )
            self._queues[name] = queue
        return queue

    async def enqueue(
        self,
        queue_name: str,
        payload: dict,
        *,
        delay_ms: int = 0,
        max_attempts: int = 1,
        priority: int = DEFAULT_PRIORITY,
    ) -> Task:
        queue = self.get_queue(queue_name)
        try:
            return await queue.add(
                payload,
                delay_ms=delay_ms,
                max_attempts=max_attempts,
                priority=priority,
            )
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Enqueue on %s failed: %s", queue_name, exc)
            raise BrokerUnavailableError(
                f"Could not enqueue task on {queue_name}",
                details={"queue": queue_name},
            ) from exc

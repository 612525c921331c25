# tests/test_task_queue.py
"""
Tests for the delayed task queue.

These tests verify the queue interface without requiring a real database.
For full integration tests, use a PostgreSQL test container.
"""
from __future__ import annotations

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError
from sqlalchemy.sql.dml import Delete, Update

from fakes import FakeSessionFactory
from models.task import Task, TaskStatus
from services.errors import BrokerUnavailableError
from tasks.queue import QueueHandle, TaskQueueClient


def _make_task(**kwargs) -> Task:
    defaults = dict(
        id=uuid.uuid4(),
        queue_name="job-schedules",
        status=TaskStatus.PROCESSING,
        payload={"job_id": str(uuid.uuid4())},
        attempts=1,
        max_attempts=3,
        remove_on_complete=True,
        trace_id=uuid.uuid4(),
    )
    defaults.update(kwargs)
    return Task(**defaults)


def _mock_db(returning: Task | None = None) -> AsyncMock:
    db = AsyncMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = returning
    db.execute.return_value = result
    db.add = MagicMock()
    return db


def test_task_attempts_remaining():
    assert _make_task(attempts=1, max_attempts=3).attempts_remaining == 2
    assert _make_task(attempts=5, max_attempts=3).attempts_remaining == 0


def test_get_queue_is_cached_per_name(session_factory):
    client = TaskQueueClient(session_factory)

    first = client.get_queue("job-schedules")
    assert client.get_queue("job-schedules") is first
    assert client.get_queue("other") is not first
    assert first.name == "job-schedules"


@pytest.mark.asyncio
async def test_enqueue_persists_delayed_task(session_factory, clock):
    client = TaskQueueClient(session_factory, clock=clock)

    task = await client.enqueue("job-schedules", {"job_id": "j-1"}, delay_ms=90_000, max_attempts=3)

    stored = session_factory.db.of_type(Task)
    assert stored == [task]
    assert task.status == TaskStatus.PENDING
    assert task.run_after == clock.now + timedelta(seconds=90)
    assert task.max_attempts == 3
    assert task.attempts == 0
    assert task.priority == 1
    assert task.remove_on_complete is True


@pytest.mark.asyncio
async def test_enqueue_negative_delay_is_due_now(session_factory, clock):
    client = TaskQueueClient(session_factory, clock=clock)
    task = await client.enqueue("job-schedules", {}, delay_ms=-500)
    assert task.run_after == clock.now


@pytest.mark.asyncio
async def test_broker_failure_surfaces_to_caller(clock):
    factory = FakeSessionFactory()
    factory.db.fail_commit = OperationalError("INSERT INTO tasks", {}, ConnectionError("refused"))
    client = TaskQueueClient(factory, clock=clock)

    with pytest.raises(BrokerUnavailableError) as excinfo:
        await client.enqueue("job-schedules", {"job_id": "j-1"})

    assert excinfo.value.code == "BROKER_UNAVAILABLE"
    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert factory.db.of_type(Task) == []


@pytest.mark.asyncio
async def test_claim_uses_skip_locked_and_marks_processing(session_factory, clock):
    task = _make_task(status=TaskStatus.PENDING, attempts=0)
    db = _mock_db(returning=task)
    queue = QueueHandle("job-schedules", session_factory, clock=clock)

    claimed = await queue.claim(db, "worker-1")

    stmt = db.execute.await_args.args[0]
    sql = str(stmt.compile(dialect=postgresql.dialect())).upper()
    assert "FOR UPDATE SKIP LOCKED" in sql
    assert "ORDER BY TASKS.PRIORITY ASC, TASKS.RUN_AFTER ASC" in sql

    assert claimed is task
    assert task.status == TaskStatus.PROCESSING
    assert task.locked_by == "worker-1"
    assert task.locked_at == clock.now
    assert task.attempts == 1


@pytest.mark.asyncio
async def test_claim_returns_none_when_nothing_due(session_factory, clock):
    queue = QueueHandle("job-schedules", session_factory, clock=clock)
    assert await queue.claim(_mock_db(returning=None), "worker-1") is None


@pytest.mark.asyncio
async def test_fail_schedules_retry_with_backoff(session_factory, clock):
    task = _make_task(attempts=2, max_attempts=3)
    db = _mock_db()
    queue = QueueHandle("job-schedules", session_factory, clock=clock)

    await queue.fail(db, task, "boom")

    assert task.status == TaskStatus.PENDING
    assert task.run_after == clock.now + timedelta(seconds=4)
    assert task.locked_by is None
    assert task.error == "boom"
    assert isinstance(db.execute.await_args.args[0], Update)


@pytest.mark.asyncio
async def test_fail_is_terminal_after_max_attempts(session_factory, clock):
    task = _make_task(attempts=3, max_attempts=3)
    queue = QueueHandle("job-schedules", session_factory, clock=clock)

    await queue.fail(_mock_db(), task, "boom")

    assert task.status == TaskStatus.FAILED
    assert task.attempts_remaining == 0


@pytest.mark.asyncio
async def test_complete_removes_task_by_default(session_factory):
    db = _mock_db()
    queue = QueueHandle("job-schedules", session_factory)

    await queue.complete(db, _make_task(), {"ok": True})

    assert isinstance(db.execute.await_args.args[0], Delete)


@pytest.mark.asyncio
async def test_complete_keeps_task_when_asked(session_factory):
    db = _mock_db()
    queue = QueueHandle("job-schedules", session_factory)

    await queue.complete(db, _make_task(remove_on_complete=False), {"ok": True})

    assert isinstance(db.execute.await_args.args[0], Update)


@pytest.mark.asyncio
async def test_claim_fails_stale_tasks_on_their_last_attempt(session_factory, clock):
    db = _mock_db(returning=None)
    queue = QueueHandle("job-schedules", session_factory, clock=clock)

    await queue.claim(db, "worker-1")

    sweep, claim = (call.args[0] for call in db.execute.await_args_list)
    assert isinstance(sweep, Update)
    sweep_sql = str(sweep.compile(dialect=postgresql.dialect())).upper()
    assert "TASKS.ATTEMPTS >= TASKS.MAX_ATTEMPTS" in sweep_sql
    assert sweep.compile(dialect=postgresql.dialect()).params["status"] == TaskStatus.FAILED

    claim_sql = str(claim.compile(dialect=postgresql.dialect())).upper()
    assert "TASKS.ATTEMPTS < TASKS.MAX_ATTEMPTS" in claim_sql

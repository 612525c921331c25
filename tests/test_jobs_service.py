# tests/test_jobs_service.py
from __future__ import annotations

import re
import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from models.event import Event
from models.job import Job, JobStatus
from services import jobs as job_service
from services.errors import ConflictError, NotFoundError


def _job_data(**overrides) -> dict:
    data = dict(
        title="Install ceiling fan",
        category_id=uuid.uuid4(),
        personal_name="Ana Lopez",
        address="5 Elm Ave",
        latitude=34.05,
        longitude=-118.24,
        priority="HIGH",
    )
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_create_job_assigns_id_string_and_door_tag(session_factory):
    with patch.object(job_service, "find_duplicate_job", AsyncMock(return_value=None)):
        async with session_factory() as db:
            job = await job_service.create_job(db, _job_data(), deeplink_url="https://app.test/job?")
            await db.commit()

    assert re.fullmatch(r"CB\d{6}", job.job_id_string)
    assert job.door_tag == f"https://app.test/job?jobId={job.job_id_string}"
    assert job.status == JobStatus.SCHEDULED
    assert job.schedule is None
    assert session_factory.db.of_type(Job) == [job]


@pytest.mark.asyncio
async def test_create_duplicate_job_conflicts(session_factory, make_job):
    existing = make_job()
    with patch.object(job_service, "find_duplicate_job", AsyncMock(return_value=existing)):
        async with session_factory() as db:
            with pytest.raises(ConflictError) as excinfo:
                await job_service.create_job(db, _job_data())

    assert excinfo.value.code == "JOB_ALREADY_EXISTS"
    assert session_factory.db.of_type(Job) == []


@pytest.mark.asyncio
async def test_get_job_by_uuid(session_factory, stored_job):
    async with session_factory() as db:
        assert await job_service.get_job(db, str(stored_job.id)) is stored_job


@pytest.mark.asyncio
async def test_get_missing_job(session_factory):
    async with session_factory() as db:
        with pytest.raises(NotFoundError) as excinfo:
            await job_service.get_job(db, uuid.uuid4())
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_forcing_back_to_scheduled_clears_schedule(session_factory, clock, make_job):
    job = session_factory.db.put(
        make_job(status=JobStatus.IN_PROGRESS, schedule=clock.now + timedelta(hours=1))
    )

    async with session_factory() as db:
        await job_service.update_job(db, job.id, {"status": JobStatus.SCHEDULED})
        await db.commit()

    assert job.status == JobStatus.SCHEDULED
    assert job.schedule is None
    [event] = session_factory.db.of_type(Event)
    assert event.payload == {"jobId": str(job.id), "status": JobStatus.SCHEDULED}


@pytest.mark.asyncio
async def test_unrelated_update_keeps_schedule(session_factory, clock, make_job):
    at = clock.now + timedelta(hours=1)
    job = session_factory.db.put(make_job(schedule=at))

    async with session_factory() as db:
        await job_service.update_job(db, job.id, {"procedure": "Bring a ladder", "status": JobStatus.SCHEDULED})
        await db.commit()

    assert job.schedule == at
    assert job.procedure == "Bring a ladder"
    assert session_factory.db.of_type(Event) == []


@pytest.mark.asyncio
async def test_completing_a_job_stamps_completed_at(session_factory, clock, make_job):
    job = session_factory.db.put(make_job(status=JobStatus.IN_PROGRESS))

    async with session_factory() as db:
        await job_service.update_job(db, job.id, {"status": JobStatus.COMPLETED}, now=clock.now)

    assert job.completed_at == clock.now


@pytest.mark.asyncio
async def test_renaming_onto_existing_job_conflicts(session_factory, make_job):
    job = session_factory.db.put(make_job(title="Old title"))
    duplicate = AsyncMock(return_value=make_job(title="Taken"))

    with patch.object(job_service, "find_duplicate_job", duplicate):
        async with session_factory() as db:
            with pytest.raises(ConflictError):
                await job_service.update_job(db, job.id, {"title": "Taken"})

    assert job.title == "Old title"
    duplicate.assert_awaited_once_with(db, "Taken", job.address, exclude_id=job.id)


@pytest.mark.asyncio
async def test_import_jobs(session_factory):
    async with session_factory() as db:
        jobs = await job_service.import_jobs(db, [_job_data(), _job_data(title="Paint fence")])
        await db.commit()

    assert len(session_factory.db.of_type(Job)) == 2
    assert all(j.status == JobStatus.SCHEDULED for j in jobs)

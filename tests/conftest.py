# tests/conftest.py
from __future__ import annotations

import uuid

import pytest

from fakes import FakeClock, FakeSessionFactory
from models.job import Job, JobPriority, JobStatus


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def make_job():
    def _make_job(**kwargs) -> Job:
        defaults = dict(
            id=uuid.uuid4(),
            title="Replace kitchen faucet",
            job_id_string="CB123456",
            category_id=uuid.uuid4(),
            personal_name="Sam Rivera",
            address="12 Harbor St",
            latitude=40.0,
            longitude=-74.0,
            priority=JobPriority.MEDIUM,
            status=JobStatus.SCHEDULED,
            schedule=None,
        )
        defaults.update(kwargs)
        return Job(**defaults)

    return _make_job


@pytest.fixture
def stored_job(session_factory, make_job) -> Job:
    return session_factory.db.put(make_job())

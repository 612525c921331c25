# tests/test_api.py
"""
HTTP surface: error mapping and listing parameters, with the app context
replaced by dependency overrides (the lifespan never runs).
"""
from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.app.dependencies import get_aggregation_engine, get_scheduler, get_session
from api.app.main import app
from services.errors import AlreadyScheduledError, BrokerUnavailableError, InvalidScheduleTimeError
from services.listing.entities import EntityKind
from services.listing.executor import Page
from services.listing.pipeline import SortSpec


@pytest.fixture
def engine():
    engine = AsyncMock()
    engine.paginate.return_value = Page(
        data=[{"id": "a1", "title": "Fix sink"}],
        total=1,
        page_no=1,
        limit=10,
        total_page=1,
        next_hit=0,
    )
    return engine


@pytest.fixture
def scheduler():
    return AsyncMock()


@pytest.fixture
def client(engine, scheduler):
    app.dependency_overrides[get_aggregation_engine] = lambda: engine
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Trace-Id"]


def test_trace_id_is_echoed(client):
    response = client.get("/health", headers={"X-Trace-Id": "abc123"})
    assert response.headers["X-Trace-Id"] == "abc123"


def test_job_listing_returns_page_envelope(client, engine):
    response = client.get("/v1/jobs/list", params={"pageNo": 1, "limit": 10, "sortBy": "title", "sortOrder": 1})

    assert response.status_code == 200
    assert response.json() == {
        "data": [{"id": "a1", "title": "Fix sink"}],
        "total": 1,
        "pageNo": 1,
        "totalPage": 1,
        "nextHit": 0,
        "limit": 10,
    }
    kind, query = engine.paginate.await_args.args
    assert kind is EntityKind.JOB
    assert query.sort == SortSpec("title", "asc")


def test_invalid_sort_field_is_rejected(client, engine):
    response = client.get("/v1/jobs/list", params={"sortBy": "password"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_SORT_FIELD"
    engine.paginate.assert_not_awaited()


def test_comma_joined_status_is_split(client, engine):
    client.get("/v1/jobs/list", params={"status": "SCHEDULED, IN_PROGRESS"})

    _, query = engine.paginate.await_args.args
    assert tuple(query.status) == ("SCHEDULED", "IN_PROGRESS")


@pytest.mark.parametrize("joined", [True, False])
def test_service_category_accepts_joined_and_repeated_ids(client, engine, joined):
    first, second = uuid.uuid4(), uuid.uuid4()
    if joined:
        params = [("serviceCategory", f"{first},{second}"), ("priority", "HIGH,LOW")]
    else:
        params = [
            ("serviceCategory", str(first)),
            ("serviceCategory", str(second)),
            ("priority", "HIGH"),
            ("priority", "LOW"),
        ]

    response = client.get("/v1/jobs/list", params=params)

    assert response.status_code == 200
    _, query = engine.paginate.await_args.args
    assert query.filters["category_id"] == [first, second]
    assert query.filters["priority"] == ["HIGH", "LOW"]


def test_request_listing_splits_service_category(client, engine):
    first, second = uuid.uuid4(), uuid.uuid4()
    client.get("/v1/requests/list", params={"serviceCategory": f"{first},{second}"})

    _, query = engine.paginate.await_args.args
    assert query.filters["category_id"] == [first, second]


def test_malformed_service_category_is_rejected(client, engine):
    response = client.get("/v1/jobs/list", params={"serviceCategory": "not-a-uuid,also-bad"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FILTER"
    engine.paginate.assert_not_awaited()


def test_job_listing_geo_uses_job_radius(client, engine):
    client.get("/v1/jobs/list", params={"coordinatesLatitude": 40.7, "coordinatesLongitude": -74.0})

    _, query = engine.paginate.await_args.args
    assert query.geo.max_distance_m == 50_000


def test_request_listing_active_preset(client, engine):
    user_id = uuid.uuid4()
    client.get("/v1/requests/list", params={"isActive": "true", "userId": str(user_id)})

    kind, query = engine.paginate.await_args.args
    assert kind is EntityKind.SERVICE_REQUEST
    assert tuple(query.status) == ("PENDING", "IN_PROGRESS", "REJECTED")
    assert query.filters["user_id"] == user_id


def test_user_listing_passes_search_key(client, engine):
    client.get("/v1/users/list", params={"searchKey": "+1555"})

    kind, query = engine.paginate.await_args.args
    assert kind is EntityKind.USER
    assert query.search_key == "+1555"


@pytest.mark.parametrize(
    "error, status, code",
    [
        (AlreadyScheduledError("Job schedule already set"), 409, "ALREADY_SCHEDULED"),
        (InvalidScheduleTimeError("Schedule time must be in the future"), 400, "INVALID_SCHEDULE_TIME"),
        (BrokerUnavailableError("Could not enqueue task"), 503, "BROKER_UNAVAILABLE"),
    ],
)
def test_schedule_errors_map_to_http(client, scheduler, error, status, code):
    scheduler.schedule.side_effect = error

    response = client.post(
        "/v1/jobs/schedule",
        json={"jobId": str(uuid.uuid4()), "schedule": "2030-01-01T10:00:00Z"},
    )

    assert response.status_code == status
    assert response.json()["code"] == code
    assert response.json()["message"] == error.message


def test_schedule_requires_job_id(client, scheduler):
    response = client.post("/v1/jobs/schedule", json={"schedule": "2030-01-01T10:00:00Z"})
    assert response.status_code == 422
    scheduler.schedule.assert_not_awaited()


@pytest.mark.parametrize(
    "path, body",
    [
        ("/v1/jobs", {"title": None}),
        ("/v1/jobs", {"personal_name": None}),
        ("/v1/jobs", {"priority": None}),
        ("/v1/jobs", {"status": None}),
        ("/v1/requests", {"status": None}),
        ("/v1/damage-reports", {"type": None}),
    ],
)
def test_update_rejects_null_for_required_fields(client, path, body):
    session = AsyncMock()

    async def _session():
        yield session

    app.dependency_overrides[get_session] = _session

    response = client.put(path, json={"id": str(uuid.uuid4()), **body})

    assert response.status_code == 422
    session.commit.assert_not_awaited()

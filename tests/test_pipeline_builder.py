# tests/test_pipeline_builder.py
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from services.listing.entities import EntityKind, get_entity_spec
from services.listing.pipeline import (
    DISTANCE_FIELD,
    Between,
    Eq,
    GeoNear,
    GeoPoint,
    In,
    Limit,
    ListingQuery,
    Match,
    NotEq,
    Project,
    Skip,
    Sort,
    SortSpec,
    TextSearch,
    build_pipeline,
    clamp_limit,
    clamp_page_no,
    escape_like,
)

JOBS = get_entity_spec(EntityKind.JOB)
USERS = get_entity_spec(EntityKind.USER)


def _match(stages) -> Match:
    return next(s for s in stages if isinstance(s, Match))


@pytest.mark.parametrize(
    "limit, expected",
    [(None, 10), (0, 1), (-3, 1), (1, 1), (25, 25), (100, 100), (500, 100)],
)
def test_clamp_limit(limit, expected):
    assert clamp_limit(limit) == expected


@pytest.mark.parametrize("page_no, expected", [(None, 1), (0, 1), (-5, 1), (1, 1), (7, 7)])
def test_clamp_page_no(page_no, expected):
    assert clamp_page_no(page_no) == expected


def test_escape_like_neutralises_metacharacters():
    assert escape_like("50%_off") == "50\\%\\_off"
    assert escape_like("a\\b") == "a\\\\b"
    assert escape_like("plain") == "plain"


def test_stage_order_without_geo():
    stages = build_pipeline(JOBS, ListingQuery())
    assert [type(s) for s in stages] == [Match, Sort, Skip, Limit, Project]


def test_stage_order_with_geo_puts_geo_first_and_projects_distance():
    query = ListingQuery(geo=GeoPoint(latitude=40.7, longitude=-74.0, max_distance_m=50_000))
    stages = build_pipeline(JOBS, query)

    assert isinstance(stages[0], GeoNear)
    assert stages[0].max_distance_m == 50_000
    assert [type(s) for s in stages[1:]] == [Match, Sort, Skip, Limit, Project]
    assert DISTANCE_FIELD in stages[-1].fields


def test_skip_and_overfetch_limit():
    stages = build_pipeline(JOBS, ListingQuery(page_no=3, limit=10))
    assert Skip(20) in stages
    assert Limit(11) in stages


def test_out_of_range_inputs_are_clamped_before_building():
    stages = build_pipeline(JOBS, ListingQuery(page_no=0, limit=1000))
    assert Skip(0) in stages
    assert Limit(101) in stages


def test_default_sort_is_created_descending():
    stages = build_pipeline(JOBS, ListingQuery())
    assert Sort((("created_at", "desc"),)) in stages


def test_explicit_sort():
    stages = build_pipeline(JOBS, ListingQuery(sort=SortSpec("title", "asc")))
    assert Sort((("title", "asc"),)) in stages


def test_status_defaults_to_not_deleted():
    predicates = _match(build_pipeline(JOBS, ListingQuery())).predicates
    assert NotEq("status", "DELETED") in predicates


def test_explicit_status_set_replaces_default():
    query = ListingQuery(status=["SCHEDULED", "IN_PROGRESS"])
    predicates = _match(build_pipeline(JOBS, query)).predicates

    assert In("status", ("SCHEDULED", "IN_PROGRESS")) in predicates
    assert not any(isinstance(p, NotEq) for p in predicates)


def test_search_is_escaped_and_spans_entity_text_fields():
    predicates = _match(build_pipeline(JOBS, ListingQuery(search_key="  100% "))).predicates
    search = next(p for p in predicates if isinstance(p, TextSearch))

    assert search.fields == ("title", "address")
    assert search.pattern == "%100\\%%"


def test_blank_search_adds_nothing():
    predicates = _match(build_pipeline(JOBS, ListingQuery(search_key="   "))).predicates
    assert not any(isinstance(p, TextSearch) for p in predicates)


def test_user_search_strips_country_prefix():
    predicates = _match(build_pipeline(USERS, ListingQuery(search_key="+15551234"))).predicates
    search = next(p for p in predicates if isinstance(p, TextSearch))
    assert search.pattern == "%5551234%"


def test_date_bounds_are_independent():
    start = datetime(2030, 1, 1, tzinfo=timezone.utc)
    end = datetime(2030, 2, 1, tzinfo=timezone.utc)

    both = _match(build_pipeline(JOBS, ListingQuery(from_date=start, to_date=end))).predicates
    only_from = _match(build_pipeline(JOBS, ListingQuery(from_date=start))).predicates

    assert Between("created_at", gte=start, lte=end) in both
    assert Between("created_at", gte=start, lte=None) in only_from


def test_filters_become_equality_or_membership():
    query = ListingQuery(filters={"priority": ["HIGH", "LOW"], "category_id": "c-1"})
    predicates = _match(build_pipeline(JOBS, query)).predicates

    assert In("priority", ("HIGH", "LOW")) in predicates
    assert Eq("category_id", "c-1") in predicates


def test_unknown_and_empty_filters_are_ignored():
    query = ListingQuery(filters={"password": "x", "priority": [], "category_id": None})
    predicates = _match(build_pipeline(JOBS, query)).predicates
    assert predicates == (NotEq("status", "DELETED"),)


def test_projection_is_entity_allow_list():
    stages = build_pipeline(JOBS, ListingQuery())
    assert stages[-1] == Project(JOBS.projection)

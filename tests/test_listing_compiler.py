# tests/test_listing_compiler.py
"""
SQL generated for listing pipelines, checked against the PostgreSQL dialect
without a live database.
"""
from __future__ import annotations

import pytest
from sqlalchemy.dialects import postgresql

from services.listing.compiler import compile_pipeline
from services.listing.entities import EntityKind, get_entity_spec
from services.listing.executor import count_pipeline
from services.listing.pipeline import (
    GeoPoint,
    In,
    ListingQuery,
    Match,
    Sort,
    SortSpec,
    Stage,
    build_pipeline,
)

JOBS = get_entity_spec(EntityKind.JOB)


def _sql(stages: list[Stage]) -> str:
    stmt = compile_pipeline(JOBS, stages)
    return str(stmt.compile(dialect=postgresql.dialect())).upper()


def test_data_query_orders_pages_and_overfetches():
    sql = _sql(build_pipeline(JOBS, ListingQuery(page_no=2, limit=10)))

    assert "FROM JOBS" in sql
    assert "JOBS.STATUS !=" in sql
    assert "ORDER BY JOBS.CREATED_AT DESC, JOBS.ID ASC" in sql
    assert "LIMIT" in sql
    assert "OFFSET" in sql


def test_first_page_has_no_offset():
    sql = _sql(build_pipeline(JOBS, ListingQuery(page_no=1, limit=10)))
    assert "OFFSET" not in sql


def test_projection_limits_selected_columns():
    sql = _sql(build_pipeline(JOBS, ListingQuery()))
    select_list = sql.split("FROM")[0]

    assert "JOBS.TITLE" in select_list
    assert "JOBS.SERVICE_ID" not in select_list
    assert "JOBS.UPDATED_AT" not in select_list


def test_search_uses_case_insensitive_like_on_each_field():
    sql = _sql(build_pipeline(JOBS, ListingQuery(search_key="leak")))

    assert "JOBS.TITLE ILIKE" in sql
    assert "JOBS.ADDRESS ILIKE" in sql
    assert " OR " in sql


def test_membership_filter_renders_in():
    sql = _sql(build_pipeline(JOBS, ListingQuery(status=["SCHEDULED", "COMPLETED"])))
    assert "JOBS.STATUS IN" in sql


def test_count_query_wraps_filters_without_paging():
    stages = build_pipeline(JOBS, ListingQuery(page_no=4, limit=10, search_key="leak"))
    sql = _sql(count_pipeline(stages))

    assert sql.startswith("SELECT COUNT(*) AS TOTAL")
    assert "ILIKE" in sql
    assert "LIMIT" not in sql
    assert "OFFSET" not in sql


def test_geo_adds_distance_bound_and_nearest_first_order():
    query = ListingQuery(
        geo=GeoPoint(latitude=40.7, longitude=-74.0, max_distance_m=50_000),
        sort=SortSpec("title", "asc"),
    )
    sql = _sql(build_pipeline(JOBS, query))
    order_by = sql.split("ORDER BY")[1]

    assert "ACOS" in sql
    assert "AS DISTANCE" in sql
    assert "JOBS.LATITUDE IS NOT NULL" in sql
    # distance first, then the requested sort, then the id tie-breaker
    assert order_by.index("ACOS") < order_by.index("JOBS.TITLE ASC") < order_by.index("JOBS.ID ASC")


def test_empty_membership_matches_nothing():
    sql = _sql([Match((In("status", ()),)), Sort((("created_at", "desc"),))])
    assert "FALSE" in sql


def test_unknown_stage_is_rejected():
    with pytest.raises(TypeError):
        compile_pipeline(JOBS, [object()])

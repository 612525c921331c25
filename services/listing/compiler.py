"""
Compiles a listing pipeline into a SQLAlchemy `Select` for PostgreSQL.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Table, false, func, or_, select
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.selectable import Select

from services.listing.entities import EntitySpec
from services.listing.pipeline import (
    Between,
    Count,
    Eq,
    GeoNear,
    In,
    Limit,
    Match,
    NotEq,
    Predicate,
    Project,
    Skip,
    Sort,
    Stage,
    TextSearch,
)

EARTH_RADIUS_M = 6_371_000.0
LIKE_ESCAPE = "\\"


def distance_expression(table: Table, entity: EntitySpec, latitude: float, longitude: float) -> ColumnElement[Any]:
    """Great-circle distance in metres (spherical law of cosines)."""
    lat = table.c[entity.latitude_field]
    lng = table.c[entity.longitude_field]
    cosine = (
        func.cos(func.radians(latitude))
        * func.cos(func.radians(lat))
        * func.cos(func.radians(lng) - func.radians(longitude))
        + func.sin(func.radians(latitude)) * func.sin(func.radians(lat))
    )
    # rounding can push the cosine just past ±1
    return EARTH_RADIUS_M * func.acos(func.least(1.0, func.greatest(-1.0, cosine)))


def compile_predicate(table: Table, predicate: Predicate) -> ColumnElement[bool]:
    if isinstance(predicate, Eq):
        return table.c[predicate.field] == predicate.value
    if isinstance(predicate, NotEq):
        return table.c[predicate.field] != predicate.value
    if isinstance(predicate, In):
        if not predicate.values:
            return false()
        return table.c[predicate.field].in_(predicate.values)
    if isinstance(predicate, Between):
        column = table.c[predicate.field]
        if predicate.gte is not None and predicate.lte is not None:
            return column.between(predicate.gte, predicate.lte)
        if predicate.gte is not None:
            return column >= predicate.gte
        return column <= predicate.lte
    if isinstance(predicate, TextSearch):
        return or_(
            *(table.c[name].ilike(predicate.pattern, escape=LIKE_ESCAPE) for name in predicate.fields)
        )
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def compile_pipeline(entity: EntitySpec, stages: Sequence[Stage]) -> Select[Any]:
    table: Table = entity.model.__table__

    conditions: list[ColumnElement[bool]] = []
    order_by: list[ColumnElement[Any]] = []
    distance: ColumnElement[Any] | None = None
    distance_field = None
    offset: int | None = None
    limit: int | None = None
    projection: tuple[str, ...] | None = None
    count: Count | None = None

    for stage in stages:
        if isinstance(stage, GeoNear):
            distance = distance_expression(table, entity, stage.latitude, stage.longitude)
            distance_field = stage.distance_field
            conditions.append(table.c[entity.latitude_field].is_not(None))
            conditions.append(table.c[entity.longitude_field].is_not(None))
            conditions.append(distance <= stage.max_distance_m)
            # nearest first, later sort keys break ties
            order_by.append(distance.asc())
        elif isinstance(stage, Match):
            conditions.extend(compile_predicate(table, p) for p in stage.predicates)
        elif isinstance(stage, Sort):
            for name, direction in stage.keys:
                column = table.c[name]
                order_by.append(column.asc() if direction == "asc" else column.desc())
        elif isinstance(stage, Skip):
            offset = stage.count
        elif isinstance(stage, Limit):
            limit = stage.count
        elif isinstance(stage, Project):
            projection = stage.fields
        elif isinstance(stage, Count):
            count = stage
        else:
            raise TypeError(f"Unsupported stage: {stage!r}")

    if count is not None:
        inner = select(table.c.id).where(*conditions)
        if offset:
            inner = inner.offset(offset)
        if limit is not None:
            inner = inner.limit(limit)
        return select(func.count().label(count.field)).select_from(inner.subquery())

    if projection is None:
        columns: list[ColumnElement[Any]] = list(table.c)
        if distance is not None:
            columns.append(distance.label(distance_field))
    else:
        columns = []
        for name in projection:
            if distance is not None and name == distance_field:
                columns.append(distance.label(distance_field))
            elif name in table.c:
                columns.append(table.c[name])

    stmt = select(*columns).where(*conditions)
    if order_by:
        stmt = stmt.order_by(*order_by, table.c.id.asc())
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt

# api/app/dependencies.py
from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_db
from services.context import AppContext
from services.errors import InvalidQueryError
from services.listing.engine import AggregationEngine
from services.listing.entities import EntityKind, get_entity_spec
from services.listing.pipeline import GeoPoint, ListingQuery, SortSpec
from services.scheduler import JobScheduler


def get_context(request: Request) -> AppContext:
    return request.app.state.ctx


async def get_session(ctx: AppContext = Depends(get_context)) -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db(ctx.session_factory):
        yield session


def get_aggregation_engine(ctx: AppContext = Depends(get_context)) -> AggregationEngine:
    return ctx.listings


def get_scheduler(ctx: AppContext = Depends(get_context)) -> JobScheduler:
    return ctx.scheduler


def split_csv(values: list[str] | None) -> list[str] | None:
    """Flatten repeated and comma-joined query values: `?a=x,y&a=z` -> [x, y, z]."""
    if not values:
        return None
    parts = [part.strip() for value in values for part in value.split(",")]
    return [part for part in parts if part] or None


def split_csv_uuids(values: list[str] | None, param: str) -> list[uuid.UUID] | None:
    parts = split_csv(values)
    if parts is None:
        return None
    try:
        return [uuid.UUID(part) for part in parts]
    except ValueError as exc:
        raise InvalidQueryError(
            f"Invalid {param}: expected comma-separated ids",
            code="INVALID_FILTER",
            details={"param": param},
        ) from exc


@dataclass
class ListingParams:
    """Query-string parameters every list endpoint accepts."""

    page_no: int | None = 1
    limit: int | None = None
    search_key: str | None = None
    sort_by: str | None = None
    # 1 ascending, -1 descending
    sort_order: int = -1
    from_date: datetime | None = None
    to_date: datetime | None = None
    status: list[str] | None = None
    latitude: float | None = None
    longitude: float | None = None

    def to_query(
        self,
        kind: EntityKind,
        *,
        filters: dict | None = None,
        status: tuple[str, ...] | None = None,
        max_distance_m: float | None = None,
    ) -> ListingQuery:
        """Resolve public names against the entity; unknown `sortBy` is a 400."""
        entity = get_entity_spec(kind)

        sort = None
        if self.sort_by:
            column = entity.sort_column(self.sort_by)
            if column is None:
                raise InvalidQueryError(
                    f"Invalid sortBy: {self.sort_by}",
                    details={"allowed": sorted(entity.sort_fields)},
                )
            sort = SortSpec(column, "asc" if self.sort_order == 1 else "desc")

        geo = None
        if max_distance_m and self.latitude is not None and self.longitude is not None:
            geo = GeoPoint(self.latitude, self.longitude, max_distance_m)

        return ListingQuery(
            page_no=self.page_no,
            limit=self.limit,
            search_key=self.search_key,
            status=status or self.status,
            from_date=self.from_date,
            to_date=self.to_date,
            geo=geo,
            sort=sort,
            filters=filters or {},
        )


def get_listing_params(
    page_no: int | None = Query(1, alias="pageNo"),
    limit: int | None = Query(None),
    search_key: str | None = Query(None, alias="searchKey"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_order: int = Query(-1, alias="sortOrder"),
    from_date: datetime | None = Query(None, alias="fromDate"),
    to_date: datetime | None = Query(None, alias="toDate"),
    status: list[str] | None = Query(None),
    latitude: float | None = Query(None, alias="coordinatesLatitude", ge=-90, le=90),
    longitude: float | None = Query(None, alias="coordinatesLongitude", ge=-180, le=180),
) -> ListingParams:
    return ListingParams(
        page_no=page_no,
        limit=limit,
        search_key=search_key,
        sort_by=sort_by,
        sort_order=sort_order,
        from_date=from_date,
        to_date=to_date,
        status=split_csv(status),
        latitude=latitude,
        longitude=longitude,
    )

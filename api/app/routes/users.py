# api/app/routes/users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from api.app.dependencies import ListingParams, get_aggregation_engine, get_listing_params
from api.app.schemas.listing import PageResponse
from services.listing.engine import AggregationEngine
from services.listing.entities import EntityKind

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/list", response_model=PageResponse)
async def list_users(
    params: ListingParams = Depends(get_listing_params),
    user_type: str | None = Query(None, alias="userType"),
    engine: AggregationEngine = Depends(get_aggregation_engine),
):
    query = params.to_query(EntityKind.USER, filters={"user_type": user_type})
    page = await engine.paginate(EntityKind.USER, query)
    return PageResponse(**page.to_dict())

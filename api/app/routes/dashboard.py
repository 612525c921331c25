# api/app/routes/dashboard.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.app.dependencies import get_session
from api.app.schemas.dashboard import DashboardResponse
from services.dashboard import get_dashboard

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    from_date: datetime | None = Query(None, alias="fromDate"),
    to_date: datetime | None = Query(None, alias="toDate"),
    db: AsyncSession = Depends(get_session),
):
    counts = await get_dashboard(db, from_date, to_date)
    return DashboardResponse(**counts)

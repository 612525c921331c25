# api/app/schemas/dashboard.py
from __future__ import annotations

from pydantic import BaseModel


class DashboardResponse(BaseModel):
    total_jobs: int = 0
    active_jobs: int = 0
    completed_jobs: int = 0
    cancelled_jobs: int = 0
    total_users: int = 0
    active_users: int = 0
    blocked_users: int = 0

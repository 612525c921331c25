"""
Admin dashboard counters.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.job import Job, JobStatus
from models.user import User, UserStatus


def _created_between(model, from_date: datetime | None, to_date: datetime | None) -> list:
    conditions = []
    if from_date is not None:
        conditions.append(model.created_at >= from_date)
    if to_date is not None:
        conditions.append(model.created_at <= to_date)
    return conditions


async def get_dashboard(
    db: AsyncSession,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> dict[str, int]:
    job_window = _created_between(Job, from_date, to_date)
    user_window = _created_between(User, from_date, to_date)

    def count_where(condition):
        return func.count().filter(condition)

    jobs_stmt = select(
        count_where(Job.status != JobStatus.DELETED).label("total_jobs"),
        count_where(Job.status.in_((JobStatus.SCHEDULED, JobStatus.IN_PROGRESS))).label("active_jobs"),
        count_where(Job.status == JobStatus.COMPLETED).label("completed_jobs"),
        count_where(Job.status == JobStatus.CANCELED).label("cancelled_jobs"),
    ).where(*job_window)

    users_stmt = select(
        count_where(User.status != UserStatus.DELETED).label("total_users"),
        count_where(User.status == UserStatus.UN_BLOCKED).label("active_users"),
        count_where(User.status == UserStatus.BLOCKED).label("blocked_users"),
    ).where(*user_window)

    jobs = (await db.execute(jobs_stmt)).mappings().one()
    users = (await db.execute(users_stmt)).mappings().one()

    return {**{k: int(v or 0) for k, v in jobs.items()}, **{k: int(v or 0) for k, v in users.items()}}

"""
Process-wide dependencies, built once at startup and torn down at shutdown.

Both the API (lifespan) and the worker (`run_loop`) construct one `AppContext`
and pass its members down explicitly.
"""
from __future__ import annotations

import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from api.app.config import Settings
from db.engine import build_engine
from db.session import build_session_factory
from services.listing.engine import AggregationEngine
from services.listing.store import SqlPipelineStore
from services.scheduler import JobScheduler
from tasks.queue import TaskQueueClient

logger = logging.getLogger(__name__)


class AppContext:
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    queues: TaskQueueClient
    listings: AggregationEngine
    scheduler: JobScheduler
    http: httpx.AsyncClient

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._initialized = False

    async def init(self) -> None:
        if self._initialized:
            return
        settings = self.settings

        self.engine = build_engine(settings)
        self.session_factory = build_session_factory(self.engine)
        self.queues = TaskQueueClient(
            self.session_factory,
            lock_timeout_seconds=settings.task_lock_timeout_seconds,
        )
        self.listings = AggregationEngine(
            SqlPipelineStore(self.session_factory),
            default_limit=settings.listing_default_limit,
            max_limit=settings.listing_max_limit,
        )
        self.scheduler = JobScheduler(
            self.session_factory,
            self.queues,
            queue_name=settings.jobs_queue_name,
            max_attempts=settings.schedule_max_attempts,
        )
        self.http = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

        self._initialized = True
        logger.info("App context initialized (queue=%s)", settings.jobs_queue_name)

    async def close(self) -> None:
        if not self._initialized:
            return
        await self.http.aclose()
        await self.engine.dispose()
        self._initialized = False
        logger.info("App context closed")

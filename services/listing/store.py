from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.listing.compiler import compile_pipeline
from services.listing.entities import EntitySpec
from services.listing.pipeline import Stage

logger = logging.getLogger(__name__)


class PipelineStore(Protocol):
    """Storage boundary the page executor runs pipelines against."""

    async def aggregate(self, entity: EntitySpec, stages: Sequence[Stage]) -> list[dict[str, Any]]: ...

    async def count(self, entity: EntitySpec, stages: Sequence[Stage]) -> int: ...


class SqlPipelineStore:
    """Runs pipelines on PostgreSQL. Every call uses its own session so calls can overlap."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def aggregate(self, entity: EntitySpec, stages: Sequence[Stage]) -> list[dict[str, Any]]:
        stmt = compile_pipeline(entity, stages)
        async with self._session_factory() as db:
            result = await db.execute(stmt)
            rows = [dict(row) for row in result.mappings().all()]
        logger.debug("%s pipeline returned %d rows", entity.kind.value, len(rows))
        return rows

    async def count(self, entity: EntitySpec, stages: Sequence[Stage]) -> int:
        stmt = compile_pipeline(entity, stages)
        async with self._session_factory() as db:
            total = (await db.execute(stmt)).scalar_one_or_none()
        return int(total or 0)

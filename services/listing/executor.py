"""
Runs a listing pipeline and assembles the page envelope.

The data pass and the count pass are independent queries issued
concurrently; under concurrent writes they may see slightly different data.
"""
from __future__ import annotations

import asyncio
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from services.listing.entities import EntitySpec
from services.listing.pipeline import Count, Skip, Stage
from services.listing.store import PipelineStore

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    data: list[T] = field(default_factory=list)
    total: int = 0
    page_no: int = 1
    limit: int = 0
    total_page: int = 0
    next_hit: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "total": self.total,
            "page_no": self.page_no,
            "total_page": self.total_page,
            "next_hit": self.next_hit,
            "limit": self.limit,
        }


def count_pipeline(stages: Sequence[Stage]) -> list[Stage]:
    """The pipeline up to (not including) the first Skip, followed by a Count."""
    for index, stage in enumerate(stages):
        if isinstance(stage, Skip):
            return [*stages[:index], Count()]
    return [*stages, Count()]


async def execute_page(
    store: PipelineStore,
    entity: EntitySpec,
    stages: Sequence[Stage],
    *,
    page_no: int,
    limit: int,
    want_total_count: bool,
) -> Page[dict[str, Any]]:
    if want_total_count:
        rows, total = await asyncio.gather(
            store.aggregate(entity, stages),
            store.count(entity, count_pipeline(stages)),
        )
    else:
        rows = await store.aggregate(entity, stages)
        total = 0

    next_hit = 0
    if len(rows) > limit:
        next_hit = page_no + 1
        rows = rows[:limit]

    total_page = math.ceil(total / limit) if want_total_count and limit > 0 else 0

    return Page(
        data=list(rows),
        total=total,
        page_no=page_no,
        limit=limit,
        total_page=total_page,
        next_hit=next_hit,
    )

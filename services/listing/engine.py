from __future__ import annotations

import logging
from typing import Any

from services.listing.entities import EntityKind, get_entity_spec
from services.listing.executor import Page, execute_page
from services.listing.pipeline import DEFAULT_LIMIT, MAX_LIMIT, ListingQuery, build_pipeline
from services.listing.store import PipelineStore

logger = logging.getLogger(__name__)


class AggregationEngine:
    """The one listing primitive every "list X" endpoint goes through."""

    def __init__(
        self,
        store: PipelineStore,
        *,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        self._store = store
        self._default_limit = default_limit
        self._max_limit = max_limit

    async def paginate(self, kind: EntityKind, query: ListingQuery) -> Page[dict[str, Any]]:
        entity = get_entity_spec(kind)
        query = query.normalized(default_limit=self._default_limit, max_limit=self._max_limit)
        stages = build_pipeline(
            entity,
            query,
            default_limit=self._default_limit,
            max_limit=self._max_limit,
        )

        page = await execute_page(
            self._store,
            entity,
            stages,
            page_no=query.page_no,
            limit=query.limit,
            want_total_count=query.want_total_count,
        )

        logger.info(
            "Listed %s page=%d limit=%d rows=%d total=%d next=%d",
            kind.value,
            page.page_no,
            page.limit,
            len(page.data),
            page.total,
            page.next_hit,
        )
        return page

"""
Listing query -> ordered pipeline of stages.

Stage order is fixed and callers may rely on it:

    [GeoNear] -> Match -> Sort -> Skip -> Limit -> Project

`Skip`/`Limit` over-fetch one row (`limit + 1`) so the executor can tell
whether a next page exists without a count query. Building never fails:
missing or empty inputs fall back to defaults.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Literal, Union

from services.listing.entities import EntitySpec

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

DELETED = "DELETED"
DISTANCE_FIELD = "distance"

SortDirection = Literal["asc", "desc"]


# ─────────────────────────────────────────────
# Query
# ─────────────────────────────────────────────

@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float
    max_distance_m: float


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: SortDirection = "desc"


@dataclass(frozen=True)
class ListingQuery:
    page_no: int | None = 1
    limit: int | None = DEFAULT_LIMIT
    search_key: str | None = None
    status: Sequence[str] | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    geo: GeoPoint | None = None
    sort: SortSpec | None = None
    # column -> value (equality) or list/tuple/set (membership)
    filters: dict[str, Any] = field(default_factory=dict)
    want_total_count: bool = True

    def normalized(self, *, default_limit: int = DEFAULT_LIMIT, max_limit: int = MAX_LIMIT) -> ListingQuery:
        return replace(
            self,
            page_no=clamp_page_no(self.page_no),
            limit=clamp_limit(self.limit, default=default_limit, maximum=max_limit),
        )


def clamp_limit(limit: int | None, *, default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    if limit is None:
        return default
    return max(1, min(int(limit), maximum))


def clamp_page_no(page_no: int | None) -> int:
    if page_no is None:
        return 1
    return max(1, int(page_no))


def escape_like(term: str, escape: str = "\\") -> str:
    """Escape LIKE metacharacters so user input only ever matches literally."""
    return (
        term.replace(escape, escape * 2)
        .replace("%", f"{escape}%")
        .replace("_", f"{escape}_")
    )


# ─────────────────────────────────────────────
# Predicates
# ─────────────────────────────────────────────

@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class NotEq:
    field: str
    value: Any


@dataclass(frozen=True)
class In:
    field: str
    values: tuple


@dataclass(frozen=True)
class Between:
    """Inclusive range; either bound may be open."""

    field: str
    gte: Any = None
    lte: Any = None


@dataclass(frozen=True)
class TextSearch:
    """Case-insensitive substring match on any of `fields`. `pattern` is already escaped."""

    fields: tuple[str, ...]
    pattern: str


Predicate = Union[Eq, NotEq, In, Between, TextSearch]


# ─────────────────────────────────────────────
# Stages
# ─────────────────────────────────────────────

@dataclass(frozen=True)
class GeoNear:
    latitude: float
    longitude: float
    max_distance_m: float
    distance_field: str = DISTANCE_FIELD


@dataclass(frozen=True)
class Match:
    predicates: tuple[Predicate, ...]


@dataclass(frozen=True)
class Sort:
    keys: tuple[tuple[str, SortDirection], ...]


@dataclass(frozen=True)
class Skip:
    count: int


@dataclass(frozen=True)
class Limit:
    count: int


@dataclass(frozen=True)
class Project:
    fields: tuple[str, ...]


@dataclass(frozen=True)
class Count:
    field: str = "total"


Stage = Union[GeoNear, Match, Sort, Skip, Limit, Project, Count]


# ─────────────────────────────────────────────
# Builder
# ─────────────────────────────────────────────

def build_predicates(entity: EntitySpec, query: ListingQuery) -> list[Predicate]:
    predicates: list[Predicate] = []

    for name, value in query.filters.items():
        if name not in entity.filter_fields:
            logger.debug("Ignoring unknown %s filter %r", entity.kind.value, name)
            continue
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            if value:
                predicates.append(In(name, tuple(value)))
        else:
            predicates.append(Eq(name, value))

    if query.status:
        predicates.append(In(entity.status_field, tuple(query.status)))
    else:
        predicates.append(NotEq(entity.status_field, DELETED))

    search_key = (query.search_key or "").strip()
    for prefix in entity.search_prefixes:
        if search_key.startswith(prefix):
            search_key = search_key[len(prefix):].strip()
    if search_key:
        predicates.append(TextSearch(entity.search_fields, f"%{escape_like(search_key)}%"))

    if query.from_date is not None or query.to_date is not None:
        predicates.append(Between(entity.created_field, gte=query.from_date, lte=query.to_date))

    return predicates


def build_pipeline(
    entity: EntitySpec,
    query: ListingQuery,
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> list[Stage]:
    query = query.normalized(default_limit=default_limit, max_limit=max_limit)
    stages: list[Stage] = []

    if query.geo is not None:
        stages.append(
            GeoNear(
                latitude=query.geo.latitude,
                longitude=query.geo.longitude,
                max_distance_m=query.geo.max_distance_m,
            )
        )

    stages.append(Match(tuple(build_predicates(entity, query))))

    if query.sort is not None:
        stages.append(Sort(((query.sort.field, query.sort.direction),)))
    else:
        stages.append(Sort(((entity.created_field, "desc"),)))

    stages.append(Skip(query.limit * (query.page_no - 1)))
    stages.append(Limit(query.limit + 1))

    projection = entity.projection
    if query.geo is not None:
        projection = projection + (DISTANCE_FIELD,)
    stages.append(Project(projection))

    return stages

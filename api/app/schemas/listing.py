# api/app/schemas/listing.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PageResponse(BaseModel):
    """List envelope; serialized with the same camelCase names the list endpoints accept."""

    data: list[dict[str, Any]]
    total: int
    page_no: int = Field(alias="pageNo")
    total_page: int = Field(alias="totalPage")
    next_hit: int = Field(alias="nextHit")
    limit: int

    model_config = {"populate_by_name": True}

# This file defines schema pieces shared by the list endpoints.
# It exists so the pagination block has the same contract on every collection.

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PaginationMetadata(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)


class ListResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: list[dict[str, Any]]
    pagination: PaginationMetadata

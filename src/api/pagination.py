# This file handles pagination and search parsing for list endpoints.
# It exists so every router uses the same deterministic rules for page size and search terms.
# The helpers validate user input and produce stable offset/limit behavior.
# Centralizing this logic keeps endpoint code small and avoids inconsistent query semantics.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PaginationSpec:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def normalize_pagination(
    *,
    page: int,
    limit: int | None,
    default_page_size: int,
    max_page_size: int,
) -> PaginationSpec:
    """Validate page/limit values; oversized limits are clamped to the maximum."""

    resolved_page_size = limit if limit is not None else default_page_size
    if page < 1:
        raise ValueError("page must be >= 1")
    if resolved_page_size < 1:
        raise ValueError("limit must be >= 1")
    return PaginationSpec(page=page, page_size=min(resolved_page_size, max_page_size))


def normalize_search(search: str | None, *, max_length: int) -> str | None:
    """Strip a free-text search term; blank terms mean no filter."""

    if search is None:
        return None
    value = search.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValueError(f"search must be at most {max_length} characters")
    return value


# MySQL and SQLite disagree on backslash escaping inside literals, so use '!'.
LIKE_ESCAPE_SQL = "ESCAPE '!'"


def like_pattern(term: str) -> str:
    """Wrap a term for a substring LIKE match, escaping wildcard characters."""

    escaped = term.replace("!", "!!").replace("%", "!%").replace("_", "!_")
    return f"%{escaped}%"


def compute_total_pages(*, total_count: int, page_size: int) -> int:
    """Compute deterministic total page count."""

    if total_count <= 0:
        return 0
    return ((total_count - 1) // page_size) + 1


def build_pagination_metadata(*, pagination: PaginationSpec, total_count: int) -> dict[str, Any]:
    return {
        "page": pagination.page,
        "limit": pagination.page_size,
        "total": total_count,
        "total_pages": compute_total_pages(total_count=total_count, page_size=pagination.page_size),
    }

# This test file validates pagination and search normalization shared by list endpoints.
# It exists to ensure page math is deterministic and user text never becomes a LIKE wildcard.

from __future__ import annotations

import pytest

from src.api.pagination import (
    PaginationSpec,
    build_pagination_metadata,
    compute_total_pages,
    like_pattern,
    normalize_pagination,
    normalize_search,
)


def test_default_page_size_applies_when_limit_missing() -> None:
    pagination = normalize_pagination(page=3, limit=None, default_page_size=10, max_page_size=100)

    assert pagination == PaginationSpec(page=3, page_size=10)
    assert pagination.offset == 20


def test_oversized_limit_is_clamped() -> None:
    pagination = normalize_pagination(page=1, limit=500, default_page_size=10, max_page_size=100)

    assert pagination.page_size == 100


@pytest.mark.parametrize(("page", "limit"), [(0, 10), (1, 0)])
def test_non_positive_values_are_rejected(page: int, limit: int) -> None:
    with pytest.raises(ValueError):
        normalize_pagination(page=page, limit=limit, default_page_size=10, max_page_size=100)


def test_total_pages() -> None:
    assert compute_total_pages(total_count=0, page_size=10) == 0
    assert compute_total_pages(total_count=10, page_size=10) == 1
    assert compute_total_pages(total_count=11, page_size=10) == 2


def test_pagination_metadata_shape() -> None:
    metadata = build_pagination_metadata(pagination=PaginationSpec(page=2, page_size=5), total_count=12)

    assert metadata == {"page": 2, "limit": 5, "total": 12, "total_pages": 3}


def test_search_is_stripped_and_blank_means_no_filter() -> None:
    assert normalize_search("  aceite ", max_length=100) == "aceite"
    assert normalize_search("   ", max_length=100) is None
    assert normalize_search(None, max_length=100) is None
    with pytest.raises(ValueError):
        normalize_search("x" * 101, max_length=100)


def test_like_pattern_escapes_wildcards() -> None:
    assert like_pattern("10%") == "%10!%%"
    assert like_pattern("a_b") == "%a!_b%"
    assert like_pattern("hola!") == "%hola!!%"

"""Page/size normalization and the paginated result envelope.

Callers may pass any integers; the core clamps them here rather than
rejecting them. The HTTP layer applies its own, stricter cap before the
values reach the service, and the service re-clamps independently.
"""

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

SORT_OLDEST = "oldest"

# Largest OFFSET PostgreSQL accepts (bigint)
MAX_OFFSET = 2**63 - 1


def normalize_page(page: int | None) -> int:
    """One-based page number, never below 1."""
    if page is None:
        return DEFAULT_PAGE
    return max(1, page)


def normalize_size(size: int | None, max_size: int = MAX_PAGE_SIZE) -> int:
    """Page size clamped to ``[1, max_size]``."""
    if size is None:
        return min(DEFAULT_PAGE_SIZE, max_size)
    return max(1, min(size, max_size))


def is_ascending(sort_order: str | None) -> bool:
    """True only for ``"oldest"`` (any case); everything else sorts newest first."""
    return sort_order is not None and sort_order.strip().lower() == SORT_OLDEST


def total_pages(total_items: int, page_size: int) -> int:
    if total_items <= 0:
        return 0
    return math.ceil(total_items / page_size)


def offset_for(page: int, size: int) -> int:
    """Rows to skip for a one-based page, capped at ``MAX_OFFSET``."""
    return min((page - 1) * size, MAX_OFFSET)


@dataclass
class Page(Generic[T]):
    """One page of results plus the totals needed to navigate the rest."""

    items: list[T] = field(default_factory=list)
    current_page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    total_items: int = 0

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_items, self.page_size)

"""Pagination of filtered records."""

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import pandas as pd
import polars as pl

from ..core.definitions import FieldGetter
from .frames import records_to_frame


def page_count(total_items: int, page_size: int) -> int:
    """
    Number of pages needed for total_items.

    An empty collection still has one (empty) page.
    """
    return max(math.ceil(total_items / page_size), 1)


def clamp_page(requested_page: Any, total_pages: int) -> int:
    """Clamp a requested 1-based page number into [1, max(total_pages, 1)]."""
    try:
        requested = int(requested_page)
    except (TypeError, ValueError):
        requested = 1
    return min(max(requested, 1), max(total_pages, 1))


@dataclass(frozen=True)
class Page:
    """
    One page of a filtered record collection.

    Attributes:
        items: Records on this page
        page_index: 1-based page number
        page_size: Maximum number of records per page
        total_items: Number of records across all pages
        total_pages: Number of pages, at least 1
    """

    items: Tuple[Any, ...]
    page_index: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def first_item(self) -> int:
        """1-based position of the first record on this page (0 if empty)."""
        if not self.items:
            return 0
        return (self.page_index - 1) * self.page_size + 1

    @property
    def last_item(self) -> int:
        """1-based position of the last record on this page (0 if empty)."""
        if not self.items:
            return 0
        return self.first_item + len(self.items) - 1

    @property
    def has_previous(self) -> bool:
        return self.page_index > 1

    @property
    def has_next(self) -> bool:
        return self.page_index < self.total_pages

    def to_dict(self) -> Dict[str, int]:
        """Pagination metadata without the records."""
        return {
            "page": self.page_index,
            "page_size": self.page_size,
            "total_rows": self.total_items,
            "total_pages": self.total_pages,
        }

    def to_polars(self, columns: Optional[Mapping[str, FieldGetter]] = None) -> pl.DataFrame:
        """Records of this page as a polars DataFrame."""
        return records_to_frame(self.items, columns)

    def to_pandas(self, columns: Optional[Mapping[str, FieldGetter]] = None) -> pd.DataFrame:
        """Records of this page as a pandas DataFrame, for st.dataframe."""
        return self.to_polars(columns).to_pandas()


def empty_page(page_size: int) -> Page:
    """Page shown when there is nothing to display ("page 1 of 1")."""
    return Page(items=(), page_index=1, page_size=page_size, total_items=0, total_pages=1)


def paginate(filtered: Sequence[Any], page_size: int, requested_page: Any = 1) -> Page:
    """
    Slice filtered records into the requested page.

    Args:
        filtered: Filtered records in display order
        page_size: Records per page, at least 1
        requested_page: 1-based page number; clamped into the valid range

    Returns:
        Page with the records and pagination bookkeeping

    Raises:
        ValueError: If page_size is less than 1
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    total_items = len(filtered)
    total_pages = page_count(total_items, page_size)
    page_index = clamp_page(requested_page, total_pages)
    start = (page_index - 1) * page_size

    return Page(
        items=tuple(filtered[start : start + page_size]),
        page_index=page_index,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
    )

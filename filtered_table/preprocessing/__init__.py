"""Preprocessing utilities for filtering, pagination and frame conversion."""

from .filtering import active_filters, evaluate, evaluate_filters
from .frames import records_from_frame, records_to_frame
from .pagination import Page, empty_page, page_count, paginate
from .predicates import matches

__all__ = [
    "active_filters",
    "evaluate",
    "evaluate_filters",
    "records_from_frame",
    "records_to_frame",
    "Page",
    "empty_page",
    "page_count",
    "paginate",
    "matches",
]

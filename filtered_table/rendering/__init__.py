"""Rendering utilities for showing table views in Streamlit."""

from .bridge import (
    clear_table_controller,
    get_table_controller,
    render_filters_header,
    render_table_page,
)

__all__ = [
    "get_table_controller",
    "clear_table_controller",
    "render_filters_header",
    "render_table_page",
]

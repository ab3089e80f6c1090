"""Bridge between TableViewController and Streamlit widgets."""

from datetime import date
from typing import Any, Callable, Dict, Mapping, Optional

import streamlit as st

from ..components.table import TableViewController, ViewState
from ..core.definitions import (
    FieldGetter,
    FilterInputType,
    MaterializedFilter,
    YearMonth,
    is_empty_selection,
)

# Prefix for controllers kept in session_state
_CONTROLLER_KEY_PREFIX = "_ft_controller_"


def get_table_controller(
    session_key: str,
    factory: Optional[Callable[[], TableViewController]] = None,
    **kwargs,
) -> TableViewController:
    """
    Get the controller stored for this session, creating it on first use.

    Each Streamlit session gets its own controller; nothing is shared
    between sessions.

    Args:
        session_key: Name of the table within the session
        factory: Optional callable building the controller. If omitted,
            TableViewController(**kwargs) is used.
        **kwargs: Arguments for TableViewController when no factory is given

    Returns:
        The session's controller for session_key
    """
    key = f"{_CONTROLLER_KEY_PREFIX}{session_key}"
    if key not in st.session_state:
        st.session_state[key] = factory() if factory is not None else TableViewController(**kwargs)
    return st.session_state[key]


def clear_table_controller(session_key: str) -> None:
    """Drop the controller stored for session_key, if any."""
    key = f"{_CONTROLLER_KEY_PREFIX}{session_key}"
    if key in st.session_state:
        del st.session_state[key]


def _option_labels(flt: MaterializedFilter) -> Dict[Any, str]:
    return {option.value: option.label for option in flt.input.options}


def _widget_key(key: str, index: int, flt: MaterializedFilter) -> str:
    return f"{key}_filter_{index}_{flt.kind.value}_{flt.label}"


def _render_filter_input(flt: MaterializedFilter, widget_key: str) -> Any:
    """
    Render the widget for one filter.

    Returns:
        The selection currently shown by the widget, in the filter's
        selection type
    """
    kind = flt.kind
    selected = flt.selected_value

    if kind == FilterInputType.FREE_TEXT:
        value = st.text_input(flt.label, value=selected or "", key=widget_key)
        return value or None

    if kind == FilterInputType.MULTISELECT:
        labels = _option_labels(flt)
        value = st.multiselect(
            flt.label,
            options=list(labels),
            default=list(selected or ()),
            format_func=lambda v: labels.get(v, str(v)),
            key=widget_key,
        )
        return tuple(value)

    if kind in (FilterInputType.DROPDOWN, FilterInputType.DEVICE_TYPE):
        labels = _option_labels(flt)
        options = [None] + list(labels)
        index = options.index(selected) if selected in options else 0
        return st.selectbox(
            flt.label,
            options=options,
            index=index,
            format_func=lambda v: "Any" if v is None else labels.get(v, str(v)),
            key=widget_key,
        )

    if kind == FilterInputType.SLIDER:
        return st.number_input(
            flt.label,
            min_value=float(flt.input.min),
            max_value=float(flt.input.max),
            value=float(selected) if selected is not None else None,
            key=widget_key,
        )

    if kind == FilterInputType.YEAR_MONTH:
        current = date(selected.year, selected.month, 1) if selected is not None else None
        value = st.date_input(flt.label, value=current, key=widget_key)
        return YearMonth.parse(value) if value else None

    raise ValueError(f"No widget for input kind '{kind}'")


def _route_change(
    controller: TableViewController, flt: MaterializedFilter, value: Any
) -> bool:
    if value == flt.selected_value:
        return False
    if is_empty_selection(value) and not flt.is_active:
        return False
    controller.on_filter_value_changed(flt, value)
    return True


def render_filters_header(controller: TableViewController, key: str = "table") -> bool:
    """
    Render the search box and the standard filter menu.

    Renders nothing while the controller has no filters. The search filter
    sits above a collapsible "Filter" menu holding the standard filters.

    Args:
        controller: The table's controller
        key: Prefix for widget keys, unique per table on the page

    Returns:
        True if any selection was changed during this render
    """
    view = controller.get_view()
    if view.state is ViewState.UNINITIALIZED or not view.filters:
        return False

    changed = False
    positions = {id(flt): index for index, flt in enumerate(view.filters)}

    search = view.search_filter
    if search is not None:
        value = _render_filter_input(search, _widget_key(key, positions[id(search)], search))
        changed |= _route_change(controller, search, value)

    standard = view.standard_filters
    if standard:
        title = "Filter"
        if view.active_filter_count:
            title = f"Filter ({view.active_filter_count} active)"
        with st.expander(title, expanded=False):
            for flt in standard:
                # Re-read so changes made earlier in this render are not lost
                current = controller.filters[positions[id(flt)]]
                value = _render_filter_input(current, _widget_key(key, positions[id(flt)], current))
                changed |= _route_change(controller, current, value)

            if st.button("Clear filters", key=f"{key}_clear_filters"):
                controller.clear_filters()
                changed = True

    return changed


def render_table_page(
    controller: TableViewController,
    key: str = "table",
    columns: Optional[Mapping[str, FieldGetter]] = None,
) -> None:
    """
    Render the current page of records with page navigation.

    Args:
        controller: The table's controller
        key: Prefix for widget keys, unique per table on the page
        columns: Optional mapping of column title to field for display.
            Needed when records are not mappings or dataclasses.
    """
    page = controller.get_view().page

    st.dataframe(page.to_pandas(columns), hide_index=True)

    requested = st.number_input(
        "Page",
        min_value=1,
        max_value=page.total_pages,
        value=page.page_index,
        step=1,
        key=f"{key}_page",
    )
    if requested != page.page_index:
        controller.on_page_requested(int(requested))
        page = controller.get_view().page

    st.caption(
        f"Page {page.page_index} of {page.total_pages} "
        f"({page.first_item}-{page.last_item} of {page.total_items})"
    )

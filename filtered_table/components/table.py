"""Filtered, paginated table view controller."""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, List, Optional, Sequence, Tuple

from ..config import TableConfig
from ..core.definitions import FilterDefinition, MaterializedFilter
from ..core.reconcile import NO_CHANGE, reconcile
from ..core.state import FilterStateStore, index_of, partition, reseed, set_value
from ..logging_config import get_logger
from ..preprocessing.filtering import evaluate
from ..preprocessing.frames import records_from_frame
from ..preprocessing.pagination import Page, clamp_page, empty_page, page_count, paginate

logger = get_logger("table")


class ViewState(str, Enum):
    """Lifecycle of a TableViewController."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


@dataclass(frozen=True)
class TableView:
    """Read-only snapshot handed to the presentation layer."""

    page: Page
    filters: Tuple[MaterializedFilter, ...]
    state: ViewState

    @property
    def total_count(self) -> int:
        return self.page.total_items

    @property
    def page_count(self) -> int:
        return self.page.total_pages

    @property
    def search_filter(self) -> Optional[MaterializedFilter]:
        return partition(self.filters).search

    @property
    def standard_filters(self) -> Tuple[MaterializedFilter, ...]:
        return partition(self.filters).standard

    @property
    def active_filter_count(self) -> int:
        return sum(1 for flt in self.filters if flt.is_active)


ViewListener = Callable[[TableView], None]


class TableViewController:
    """
    Keeps filter definitions, selections, records and page position in sync.

    The controller starts out uninitialized and exposes an empty page. The
    first set of definitions that yields at least one filter makes it ready;
    from then on every event recomputes the filtered records and the visible
    page, and listeners are notified with a fresh TableView.

    Events are processed one at a time. Entry points called from inside a
    listener are queued and run once the current event has finished, so a
    listener never observes a half-applied change. A queued event that
    fails when it runs is logged and dropped; the caller whose event is
    being processed does not see its error. An event that fails leaves
    filters, records and page untouched.

    Example:
        controller = TableViewController(definitions, records, page_size=10)
        controller.subscribe(lambda view: print(view.page.to_dict()))
        search = controller.get_view().search_filter
        controller.on_filter_value_changed(search, "Biomass")
    """

    def __init__(
        self,
        definitions: Optional[Sequence[FilterDefinition]] = None,
        records: Any = None,
        page_size: Optional[int] = None,
    ):
        """
        Initialize the controller.

        Args:
            definitions: Initial filter definitions. May be omitted and
                supplied later through on_definitions_changed().
            records: Initial records: a sequence, or a polars/pandas frame
            page_size: Records per page. Defaults to TableConfig().page_size.
        """
        if page_size is None:
            page_size = TableConfig().page_size
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")

        self._page_size = page_size
        self._store = FilterStateStore()
        self._state = ViewState.UNINITIALIZED
        self._records: List[Any] = records_from_frame(records)
        self._filtered: List[Any] = []
        self._page_index = 1
        self._listeners: List[ViewListener] = []
        self._pending: Deque[Tuple[Callable[..., bool], tuple]] = deque()
        self._dispatching = False

        if definitions:
            self._apply_definitions(definitions)

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def filters(self) -> Tuple[MaterializedFilter, ...]:
        return self._store.filters

    @property
    def records(self) -> Tuple[Any, ...]:
        return tuple(self._records)

    @property
    def revision(self) -> int:
        """Revision of the filter selections."""
        return self._store.revision

    def get_view(self) -> TableView:
        """Get a snapshot of the current page and filters."""
        if self._state is ViewState.UNINITIALIZED:
            page = empty_page(self._page_size)
        else:
            page = paginate(self._filtered, self._page_size, self._page_index)
        return TableView(page=page, filters=self._store.filters, state=self._state)

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        """
        Register a listener called with a new TableView after every change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def find_filter(self, label: str) -> MaterializedFilter:
        """
        Get the current filter with the given label.

        Raises:
            IdentityNotFoundError: If no filter has that label
        """
        return self._store.find(label)

    # Event entry points

    def on_definitions_changed(self, definitions: Optional[Sequence[FilterDefinition]]) -> None:
        """Reconcile a (possibly unchanged) list of definitions from the caller."""
        self._dispatch(self._apply_definitions, definitions)

    def on_filter_value_changed(self, filter_ref: MaterializedFilter, value: Any) -> None:
        """
        Change the selection of one filter and go back to page 1.

        Raises:
            IdentityNotFoundError: If filter_ref is not a current filter
            TypeError, ValueError: If value is not a valid selection for the filter
        """
        # Checked here so a bad call from a listener fails in the listener
        index_of(self._store.filters, filter_ref)
        filter_ref.input.coerce_selection(value)
        self._dispatch(self._apply_filter_value, filter_ref, value)

    def on_records_changed(self, records: Any) -> None:
        """Replace the backing records, keeping selections."""
        self._dispatch(self._apply_records, records)

    def on_page_requested(self, page: int) -> None:
        """Move to another page of the current filtered records."""
        self._dispatch(self._apply_page, page)

    def clear_filters(self) -> None:
        """Put every filter back to its initial selection and go back to page 1."""
        self._dispatch(self._apply_clear)

    # Event handlers; each returns True if the view changed. Nothing is
    # committed until the new filtered records have been computed.

    def _apply_definitions(self, definitions: Optional[Sequence[FilterDefinition]]) -> bool:
        result = reconcile(definitions, self._store.filters)
        if result is NO_CHANGE:
            return False

        filtered = self._evaluate(result, self._records)
        self._store.replace_all(result)
        self._filtered = filtered
        self._page_index = 1
        if self._state is ViewState.UNINITIALIZED:
            self._state = ViewState.READY
            logger.debug("Table view ready with %d filters", len(result))
        return True

    def _apply_filter_value(self, filter_ref: MaterializedFilter, value: Any) -> bool:
        filters = set_value(self._store.filters, filter_ref, value)
        filtered = self._evaluate(filters, self._records)
        self._store.replace_all(filters)
        self._filtered = filtered
        self._page_index = 1
        logger.debug("Filter '%s' set to %r", filter_ref.label, value)
        return True

    def _apply_records(self, records: Any) -> bool:
        records = records_from_frame(records)
        if self._state is ViewState.UNINITIALIZED:
            self._records = records
            return True

        filtered = self._evaluate(self._store.filters, records)
        previous_count = len(self._filtered)
        self._records = records
        self._filtered = filtered
        if len(filtered) != previous_count:
            self._page_index = 1
        else:
            self._page_index = clamp_page(
                self._page_index, page_count(len(filtered), self._page_size)
            )
        return True

    def _apply_page(self, page: int) -> bool:
        if self._state is ViewState.UNINITIALIZED:
            return False
        total_pages = page_count(len(self._filtered), self._page_size)
        new_index = clamp_page(page, total_pages)
        if new_index == self._page_index:
            return False
        self._page_index = new_index
        return True

    def _apply_clear(self) -> bool:
        if not self._store.filters:
            return False
        filters = reseed(self._store.filters)
        filtered = self._evaluate(filters, self._records)
        self._store.replace_all(filters)
        self._filtered = filtered
        self._page_index = 1
        return True

    @staticmethod
    def _evaluate(filters: Sequence[MaterializedFilter], records: List[Any]) -> List[Any]:
        search, standard = partition(filters)
        return evaluate(records, search, standard)

    def _dispatch(self, handler: Callable[..., bool], *args: Any) -> None:
        if self._dispatching:
            # Called from a listener: run once the current event is done
            self._pending.append((handler, args))
            return

        self._dispatching = True
        try:
            if handler(*args):
                self._emit()
            self._drain()
        finally:
            self._pending.clear()
            self._dispatching = False

    def _drain(self) -> None:
        """Run events queued by listeners. Their failures are logged, not raised."""
        while self._pending:
            handler, args = self._pending.popleft()
            try:
                changed = handler(*args)
            except Exception:
                # The listener that queued the event has already returned
                logger.exception("Dropped queued event %s", handler.__name__)
                continue
            if changed:
                self._emit()

    def _emit(self) -> None:
        view = self.get_view()
        for listener in list(self._listeners):
            listener(view)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"state={self._state.value}, "
            f"filters={[flt.label for flt in self._store.filters]}, "
            f"records={len(self._records)}, "
            f"page={self._page_index}, "
            f"page_size={self._page_size})"
        )

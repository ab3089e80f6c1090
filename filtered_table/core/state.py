"""Selection state for the materialized filters of one table."""

from typing import Any, NamedTuple, Optional, Sequence, Tuple

from ..logging_config import get_logger
from .definitions import MaterializedFilter
from .errors import IdentityNotFoundError

logger = get_logger("state")


class FilterPartition(NamedTuple):
    """The search filter (if any) and the remaining standard filters."""

    search: Optional[MaterializedFilter]
    standard: Tuple[MaterializedFilter, ...]


def index_of(filters: Sequence[MaterializedFilter], target: MaterializedFilter) -> int:
    """
    Find a filter by identity.

    Raises:
        IdentityNotFoundError: If target is not one of filters
    """
    for index, flt in enumerate(filters):
        if flt is target:
            return index
    raise IdentityNotFoundError(
        f"Filter {target!r} is not part of the current filter set. "
        f"Use the filters from the latest view."
    )


def set_value(
    filters: Sequence[MaterializedFilter], target: MaterializedFilter, new_value: Any
) -> Tuple[MaterializedFilter, ...]:
    """
    Replace the selection of one filter.

    Args:
        filters: Current filter sequence
        target: Filter to update, located by identity
        new_value: New selection, validated by the filter's input kind

    Returns:
        A new sequence with the target replaced and everything else in place

    Raises:
        IdentityNotFoundError: If target is not one of filters
    """
    index = index_of(filters, target)
    updated = target.with_value(new_value)
    return tuple(filters[:index]) + (updated,) + tuple(filters[index + 1 :])


def reseed(filters: Sequence[MaterializedFilter]) -> Tuple[MaterializedFilter, ...]:
    """Fresh filters for the same definitions, each with its initial selection."""
    return tuple(MaterializedFilter.seed(flt.definition) for flt in filters)


def partition(filters: Sequence[MaterializedFilter]) -> FilterPartition:
    """
    Split filters into the search filter and the standard filters.

    The first filter marked as search wins; any later ones are treated as
    standard filters. Order of standard filters is preserved.
    """
    search = None
    standard = []
    for flt in filters:
        if flt.search and search is None:
            search = flt
        else:
            standard.append(flt)
    return FilterPartition(search=search, standard=tuple(standard))


class FilterStateStore:
    """
    Holds the current materialized filters of a table.

    Features:
        - Immutable replacement: every update produces a new tuple
        - Revision counter, incremented on every change
        - Identity-based updates of single filters

    Filters are never mutated in place, so a tuple obtained from `filters`
    stays a consistent snapshot after later updates.
    """

    def __init__(self, filters: Sequence[MaterializedFilter] = ()):
        self._filters: Tuple[MaterializedFilter, ...] = tuple(filters)
        self._revision = 0

    @property
    def filters(self) -> Tuple[MaterializedFilter, ...]:
        return self._filters

    @property
    def revision(self) -> int:
        """Number of changes applied to this store."""
        return self._revision

    def __len__(self) -> int:
        return len(self._filters)

    def replace_all(self, filters: Sequence[MaterializedFilter]) -> None:
        """Replace the whole filter set, e.g. after a reconciliation."""
        self._filters = tuple(filters)
        self._revision += 1

    def set_value(self, target: MaterializedFilter, value: Any) -> MaterializedFilter:
        """
        Replace the selection of one filter.

        Args:
            target: The filter to update, as found in `filters`
            value: New selection

        Returns:
            The replacement filter

        Raises:
            IdentityNotFoundError: If target is not in the store. The store
                is left unmodified.
        """
        index = index_of(self._filters, target)
        replacement = target.with_value(value)
        self._filters = self._filters[:index] + (replacement,) + self._filters[index + 1 :]
        self._revision += 1
        logger.debug("Filter '%s' set to %r", target.label, replacement.selected_value)
        return replacement

    def find(self, label: str) -> MaterializedFilter:
        """
        Get the current filter with the given label.

        Raises:
            IdentityNotFoundError: If no filter has that label
        """
        for flt in self._filters:
            if flt.label == label:
                return flt
        available = [flt.label for flt in self._filters]
        raise IdentityNotFoundError(
            f"No filter labelled '{label}'. Available filters: {available}"
        )

    def reset(self) -> None:
        """Put every filter back to its initial selection."""
        self._filters = reseed(self._filters)
        self._revision += 1

    def partition(self) -> FilterPartition:
        return partition(self._filters)

    def __repr__(self) -> str:
        return f"FilterStateStore(revision={self._revision}, filters={list(self._filters)})"

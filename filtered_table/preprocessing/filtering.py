"""Record filtering for the search filter and the standard filters."""

from typing import Any, List, Optional, Sequence

import numpy as np

from ..core.definitions import MaterializedFilter
from ..core.errors import MalformedSliderRuleError
from ..core.registry import get_predicate
from ..core.state import partition
from ..logging_config import get_logger
from .predicates import validate_filter

logger = get_logger("filtering")


def active_filters(
    search: Optional[MaterializedFilter],
    standard: Sequence[MaterializedFilter],
) -> List[MaterializedFilter]:
    """
    Collect the filters that constrain records.

    Filters with an empty selection are dropped, as are filters whose
    configuration cannot be evaluated (logged, then skipped).

    Args:
        search: The search filter, if any
        standard: The standard filters in definition order

    Returns:
        Active filters, search filter first
    """
    candidates = ([search] if search is not None else []) + list(standard)
    active = []
    for flt in candidates:
        if not flt.is_active:
            continue
        try:
            validate_filter(flt)
        except MalformedSliderRuleError as e:
            logger.warning("%s", e)
            continue
        active.append(flt)
    return active


def evaluate(
    records: Sequence[Any],
    search: Optional[MaterializedFilter],
    standard: Sequence[MaterializedFilter],
) -> List[Any]:
    """
    Filter records by the search filter and every active standard filter.

    A record is kept iff every active filter admits it. Records keep their
    input order. Each filter is only evaluated for records that passed the
    filters before it.

    Args:
        records: Backing record collection
        search: The search filter, if any
        standard: The standard filters

    Returns:
        List of the records that pass all active filters
    """
    records = list(records)
    filters = active_filters(search, standard)
    if not filters or not records:
        return records

    keep = np.ones(len(records), dtype=bool)
    for flt in filters:
        predicate = get_predicate(flt.kind)
        candidates = np.flatnonzero(keep)
        if candidates.size == 0:
            break
        passed = np.fromiter(
            (predicate(flt, records[i]) for i in candidates),
            dtype=bool,
            count=candidates.size,
        )
        keep[candidates[~passed]] = False

    logger.debug(
        "Filtered %d records to %d with %d active filters",
        len(records),
        int(keep.sum()),
        len(filters),
    )
    return [records[i] for i in np.flatnonzero(keep)]


def evaluate_filters(
    records: Sequence[Any], filters: Sequence[MaterializedFilter]
) -> List[Any]:
    """Partition filters into search/standard and evaluate them against records."""
    search, standard = partition(filters)
    return evaluate(records, search, standard)

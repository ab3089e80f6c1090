"""Reconciliation of caller-supplied filter definitions with materialized state."""

import warnings
from typing import Iterable, List, Optional, Sequence, Union

from ..logging_config import get_logger
from .definitions import FilterDefinition, MaterializedFilter
from .errors import MultipleSearchFiltersWarning

logger = get_logger("reconcile")


class _NoChange:
    """Sentinel returned by reconcile() when no re-seed is needed."""

    _instance: Optional["_NoChange"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_CHANGE"


NO_CHANGE = _NoChange()


def definitions_of(materialized: Iterable[MaterializedFilter]) -> List[FilterDefinition]:
    """Project materialized filters back to their definitions, dropping selections."""
    return [flt.definition for flt in materialized]


def definitions_equal(
    incoming: Sequence[FilterDefinition], current: Sequence[MaterializedFilter]
) -> bool:
    """
    Compare incoming definitions with the definitions behind current filters.

    Order matters; the live selection values are ignored.
    """
    return list(incoming) == definitions_of(current)


def _warn_on_multiple_search(definitions: Sequence[FilterDefinition]) -> None:
    search_labels = [d.label for d in definitions if d.search]
    if len(search_labels) > 1:
        message = (
            f"{len(search_labels)} filter definitions are marked as search "
            f"({search_labels}); using '{search_labels[0]}', the rest are "
            f"treated as standard filters."
        )
        logger.warning(message)
        warnings.warn(message, MultipleSearchFiltersWarning, stacklevel=3)


def reconcile(
    incoming: Optional[Sequence[FilterDefinition]],
    current: Sequence[MaterializedFilter],
) -> Union[List[MaterializedFilter], _NoChange]:
    """
    Align materialized filter state with a new list of definitions.

    Returns NO_CHANGE if incoming is empty/None or structurally equal to the
    definitions already materialized, so re-renders that pass a fresh list
    with the same content keep the user's selections. Otherwise every
    definition is materialized with its initial selection; previous
    selections are not carried over.

    Args:
        incoming: Definitions supplied by the caller
        current: Currently materialized filters

    Returns:
        New list of MaterializedFilter, or NO_CHANGE
    """
    if not incoming:
        return NO_CHANGE

    incoming = list(incoming)
    if definitions_equal(incoming, current):
        logger.debug("Definitions unchanged (%d filters), keeping selections", len(incoming))
        return NO_CHANGE

    _warn_on_multiple_search(incoming)

    materialized = [MaterializedFilter.seed(definition) for definition in incoming]
    logger.debug(
        "Re-seeded %d filters: %s", len(materialized), [flt.label for flt in materialized]
    )
    return materialized

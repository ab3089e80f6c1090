"""Lookup table from filter input kind to the function that matches records."""

from typing import TYPE_CHECKING, Any, Callable, Dict

from .definitions import FilterInputType

if TYPE_CHECKING:
    from .definitions import MaterializedFilter

Predicate = Callable[["MaterializedFilter", Any], bool]

_PREDICATES: Dict[FilterInputType, Predicate] = {}


def register_predicate(kind: FilterInputType):
    """
    Mark a function as the record matcher for one input kind.

    Each kind takes exactly one matcher; a second one for the same kind is
    a ValueError at import time.

    Example:
        @register_predicate(FilterInputType.DROPDOWN)
        def dropdown_matches(flt, record):
            ...
    """

    def decorator(func: Predicate) -> Predicate:
        existing = _PREDICATES.get(kind)
        if existing is not None:
            raise ValueError(
                f"{func.__name__} cannot handle '{kind.value}' filters: "
                f"{existing.__name__} is already registered for them"
            )
        _PREDICATES[kind] = func
        return func

    return decorator


def get_predicate(kind: FilterInputType) -> Predicate:
    """Matcher for an input kind. Raises KeyError for kinds without one."""
    try:
        return _PREDICATES[kind]
    except KeyError:
        known = sorted(k.value for k in _PREDICATES)
        raise KeyError(f"No predicate registered for input kind {kind!r} (known: {known})") from None

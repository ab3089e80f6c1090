"""Match functions for each filter input kind.

Each predicate takes an active MaterializedFilter and a record and returns
whether the record is admitted. Predicates are registered per input kind;
use matches() to test a record against any filter, active or not.
"""

from typing import Any, FrozenSet

import pandas as pd

from ..core.definitions import (
    FilterInputType,
    FilterRule,
    MaterializedFilter,
    YearMonth,
)
from ..core.errors import MalformedSliderRuleError
from ..core.registry import get_predicate, register_predicate


def _is_missing(value: Any) -> bool:
    """True for None, NaN and NaT field values."""
    if value is None:
        return True
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _as_text(value: Any) -> str:
    if _is_missing(value):
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(_as_text(part) for part in value)
    return str(value)


def _tokens(value: Any, separator: Any) -> FrozenSet[Any]:
    if _is_missing(value):
        return frozenset()
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(value)
    if isinstance(value, str) and separator:
        return frozenset(token.strip() for token in value.split(separator) if token.strip())
    return frozenset([value])


def _compare(field_value: Any, selected: Any, rule: FilterRule) -> bool:
    if rule == FilterRule.FROM:
        return field_value >= selected
    if rule == FilterRule.TO:
        return field_value <= selected
    return field_value == selected


@register_predicate(FilterInputType.FREE_TEXT)
def text_matches(flt: MaterializedFilter, record: Any) -> bool:
    """Case-insensitive substring match of the selection in the field text."""
    needle = flt.selected_value.strip().casefold()
    return needle in _as_text(flt.get_value(record)).casefold()


@register_predicate(FilterInputType.MULTISELECT)
def multiselect_matches(flt: MaterializedFilter, record: Any) -> bool:
    """Admit records whose field (or its separated tokens) hits any selected option."""
    tokens = _tokens(flt.get_value(record), flt.input.separator)
    return not tokens.isdisjoint(flt.selected_value)


@register_predicate(FilterInputType.DROPDOWN)
def dropdown_matches(flt: MaterializedFilter, record: Any) -> bool:
    value = flt.get_value(record)
    if _is_missing(value):
        return False
    return value == flt.selected_value


@register_predicate(FilterInputType.DEVICE_TYPE)
def device_type_matches(flt: MaterializedFilter, record: Any) -> bool:
    """
    Match a device type, including its sub-types.

    Selecting "Gaseous" admits "Gaseous" and "Gaseous;Agricultural gas".
    """
    value = flt.get_value(record)
    if _is_missing(value):
        return False
    value = str(value)
    selected = flt.selected_value
    return value == selected or value.startswith(selected + flt.input.separator)


@register_predicate(FilterInputType.SLIDER)
def slider_matches(flt: MaterializedFilter, record: Any) -> bool:
    """
    Compare a numeric field with the selection using the filter's rule.

    Field values that cannot be compared with a number never match.

    Raises:
        MalformedSliderRuleError: If the filter has no rule configured
    """
    rule = flt.input.filter_rule
    if rule is None:
        raise MalformedSliderRuleError(flt.label)
    value = flt.get_value(record)
    if _is_missing(value):
        return False
    try:
        return bool(_compare(value, flt.selected_value, rule))
    except TypeError:
        # Non-numeric field values such as "n/a"
        return False


@register_predicate(FilterInputType.YEAR_MONTH)
def year_month_matches(flt: MaterializedFilter, record: Any) -> bool:
    """Compare the field's calendar month with the selected month."""
    value = flt.get_value(record)
    if _is_missing(value):
        return False
    try:
        month = YearMonth.parse(value)
    except ValueError:
        return False
    return _compare(month, flt.selected_value, flt.input.filter_rule or FilterRule.EQUAL)


def validate_filter(flt: MaterializedFilter) -> None:
    """
    Check that a filter's configuration allows it to be evaluated.

    Raises:
        MalformedSliderRuleError: For slider filters without a rule
    """
    if flt.kind == FilterInputType.SLIDER and flt.input.filter_rule is None:
        raise MalformedSliderRuleError(flt.label)


def matches(flt: MaterializedFilter, record: Any) -> bool:
    """
    Test whether a record is admitted by a filter.

    Filters with an empty selection place no constraint and admit every
    record.
    """
    if not flt.is_active:
        return True
    return get_predicate(flt.kind)(flt, record)

"""Core infrastructure for filtered_table."""

from .definitions import (
    AvailableOption,
    DeviceTypeInput,
    DropdownInput,
    FilterDefinition,
    FilterInput,
    FilterInputType,
    FilterRule,
    FreeTextInput,
    MaterializedFilter,
    MultiselectInput,
    SliderInput,
    YearMonth,
    YearMonthInput,
)
from .errors import (
    FilterTableError,
    IdentityNotFoundError,
    MalformedSliderRuleError,
    MultipleSearchFiltersWarning,
)
from .reconcile import NO_CHANGE, reconcile
from .registry import get_predicate, register_predicate
from .state import FilterPartition, FilterStateStore, partition, set_value

__all__ = [
    "AvailableOption",
    "DeviceTypeInput",
    "DropdownInput",
    "FilterDefinition",
    "FilterInput",
    "FilterInputType",
    "FilterRule",
    "FreeTextInput",
    "MaterializedFilter",
    "MultiselectInput",
    "SliderInput",
    "YearMonth",
    "YearMonthInput",
    "FilterTableError",
    "IdentityNotFoundError",
    "MalformedSliderRuleError",
    "MultipleSearchFiltersWarning",
    "NO_CHANGE",
    "reconcile",
    "get_predicate",
    "register_predicate",
    "FilterPartition",
    "FilterStateStore",
    "partition",
    "set_value",
]

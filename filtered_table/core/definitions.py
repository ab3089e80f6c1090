"""Filter definitions, input kinds and materialized filter state.

A FilterDefinition is what the caller supplies: which record field a filter
reads, how it is labelled and which kind of input it uses. A
MaterializedFilter pairs a definition with the live selection the user has
entered. Each input kind is its own frozen dataclass that knows its seed
selection and how to validate a new one.
"""

import numbers
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, NamedTuple, Optional, Tuple, Union

import pandas as pd

FieldGetter = Union[str, Callable[[Any], Any]]


class FilterInputType(str, Enum):
    """Kinds of filter inputs, using their wire names."""

    DEVICE_TYPE = "deviceType"
    FREE_TEXT = "string"
    MULTISELECT = "multiselect"
    DROPDOWN = "dropdown"
    SLIDER = "slider"
    YEAR_MONTH = "yearMonth"


class FilterRule(str, Enum):
    """Comparison rule for slider and year-month filters."""

    EQUAL = "FILTER_RULES::EQUAL"
    FROM = "FILTER_RULES::FROM"
    TO = "FILTER_RULES::TO"


class YearMonth(NamedTuple):
    """A calendar month. Tuple ordering gives chronological ordering."""

    year: int
    month: int

    @classmethod
    def parse(cls, value: Any) -> "YearMonth":
        """
        Convert a value to a YearMonth.

        Accepts YearMonth, (year, month) tuples, date/datetime/Timestamp
        objects, ISO strings ("2020-05" or "2020-05-17") and unix timestamps
        in seconds.

        Raises:
            ValueError: If the value cannot be interpreted as a month
        """
        if isinstance(value, YearMonth):
            return value
        if isinstance(value, tuple) and len(value) == 2:
            year, month = int(value[0]), int(value[1])
        elif isinstance(value, bool):
            raise ValueError(f"Cannot interpret {value!r} as a year-month")
        else:
            try:
                if isinstance(value, numbers.Real):
                    ts = pd.Timestamp(value, unit="s")
                else:
                    ts = pd.Timestamp(value)
            except (TypeError, ValueError, OverflowError) as e:
                raise ValueError(f"Cannot interpret {value!r} as a year-month") from e
            if pd.isna(ts):
                raise ValueError(f"Cannot interpret {value!r} as a year-month")
            year, month = ts.year, ts.month

        if not 1 <= month <= 12:
            raise ValueError(f"Month out of range in {value!r}")
        return cls(year, month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class AvailableOption:
    """One selectable option of a multiselect, dropdown or device type input."""

    label: str
    value: Any


def _normalize_options(options: Any) -> Tuple[AvailableOption, ...]:
    normalized = []
    for option in options or ():
        if isinstance(option, AvailableOption):
            normalized.append(option)
        elif isinstance(option, Mapping):
            normalized.append(AvailableOption(label=option["label"], value=option["value"]))
        else:
            normalized.append(AvailableOption(label=str(option), value=option))
    return tuple(normalized)


def _coerce_rule(rule: Any) -> Optional[FilterRule]:
    if rule is None or isinstance(rule, FilterRule):
        return rule
    try:
        return FilterRule(rule)
    except ValueError:
        pass
    try:
        return FilterRule[str(rule).upper()]
    except KeyError:
        raise ValueError(f"Unknown filter rule: {rule!r}") from None


def is_empty_selection(value: Any) -> bool:
    """
    Check whether a selection places no constraint on records.

    None, blank strings and empty collections are empty. Numbers (including
    0) are never empty.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (tuple, list, set, frozenset)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class FilterInput:
    """Base class for the input kind of a filter definition."""

    type: ClassVar[FilterInputType]

    def initial_selection(self) -> Any:
        """Selection a freshly materialized filter starts with."""
        return None

    def coerce_selection(self, value: Any) -> Any:
        """
        Validate a new selection and convert it to this kind's selection type.

        Raises:
            TypeError: If the value has the wrong type for this input kind
        """
        return value

    @property
    def options(self) -> Tuple[AvailableOption, ...]:
        return getattr(self, "available_options", ())


def _coerce_text(value: Any, kind: FilterInputType) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{kind.value} selection must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class FreeTextInput(FilterInput):
    """Substring match on the text of a field."""

    type: ClassVar[FilterInputType] = FilterInputType.FREE_TEXT

    def coerce_selection(self, value: Any) -> Optional[str]:
        return _coerce_text(value, self.type)


@dataclass(frozen=True)
class DeviceTypeInput(FilterInput):
    """Device type taxonomy, with levels joined by a separator."""

    type: ClassVar[FilterInputType] = FilterInputType.DEVICE_TYPE

    available_options: Tuple[AvailableOption, ...] = ()
    separator: str = ";"

    def __post_init__(self):
        object.__setattr__(self, "available_options", _normalize_options(self.available_options))

    def coerce_selection(self, value: Any) -> Optional[str]:
        return _coerce_text(value, self.type)


@dataclass(frozen=True)
class MultiselectInput(FilterInput):
    """
    Set-membership filter.

    Attributes:
        available_options: Options offered to the user
        default_options: Values selected when the filter is materialized
        separator: If set, string field values are split on it into tokens
    """

    type: ClassVar[FilterInputType] = FilterInputType.MULTISELECT

    available_options: Tuple[AvailableOption, ...] = ()
    default_options: Tuple[Any, ...] = ()
    separator: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "available_options", _normalize_options(self.available_options))
        object.__setattr__(self, "default_options", tuple(self.default_options or ()))

    def initial_selection(self) -> Tuple[Any, ...]:
        return self.default_options

    def coerce_selection(self, value: Any) -> Tuple[Any, ...]:
        if value is None:
            return ()
        if isinstance(value, str) or not isinstance(value, (tuple, list, set, frozenset)):
            raise TypeError(
                f"multiselect selection must be a list of values, got {type(value).__name__}"
            )
        return tuple(value)


@dataclass(frozen=True)
class DropdownInput(FilterInput):
    """Single choice among options, matched by equality."""

    type: ClassVar[FilterInputType] = FilterInputType.DROPDOWN

    available_options: Tuple[AvailableOption, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "available_options", _normalize_options(self.available_options))


@dataclass(frozen=True)
class SliderInput(FilterInput):
    """Numeric filter compared against the field with a FilterRule."""

    type: ClassVar[FilterInputType] = FilterInputType.SLIDER

    min: float = 0
    max: float = 100
    filter_rule: Optional[FilterRule] = None

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"Slider min ({self.min}) must not exceed max ({self.max})")
        object.__setattr__(self, "filter_rule", _coerce_rule(self.filter_rule))

    def coerce_selection(self, value: Any) -> Optional[float]:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise TypeError(f"slider selection must be a number, got {type(value).__name__}")
        return value


@dataclass(frozen=True)
class YearMonthInput(FilterInput):
    """Calendar month filter, compared at month granularity."""

    type: ClassVar[FilterInputType] = FilterInputType.YEAR_MONTH

    filter_rule: Optional[FilterRule] = FilterRule.EQUAL

    def __post_init__(self):
        object.__setattr__(self, "filter_rule", _coerce_rule(self.filter_rule))

    def coerce_selection(self, value: Any) -> Optional[YearMonth]:
        if value is None:
            return None
        return YearMonth.parse(value)


_INPUT_CLASSES: Dict[FilterInputType, type] = {
    cls.type: cls
    for cls in (
        FreeTextInput,
        DeviceTypeInput,
        MultiselectInput,
        DropdownInput,
        SliderInput,
        YearMonthInput,
    )
}


def input_from_dict(config: Mapping) -> FilterInput:
    """
    Build a FilterInput from a config dict.

    Example:
        input_from_dict({"type": "slider", "min": 0, "max": 10, "filter_rule": "FROM"})
    """
    params = dict(config)
    kind = FilterInputType(params.pop("type"))
    return _INPUT_CLASSES[kind](**params)


def resolve_field(getter: FieldGetter, record: Any) -> Any:
    """
    Read a field value from a record.

    Args:
        getter: A callable taking the record, or a dotted key path such as
            "organization.name" resolved through mappings and attributes
        record: The record to read from

    Returns:
        The field value, or None if any step of a key path is missing
    """
    if callable(getter):
        return getter(record)

    value = record
    for part in getter.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


@dataclass(frozen=True)
class FilterDefinition:
    """
    Caller-supplied description of one filterable or searchable column.

    Definitions are compared structurally. A string field path compares by
    value, a callable field by identity.
    """

    field: FieldGetter
    label: str
    input: FilterInput
    search: bool = False

    @property
    def kind(self) -> FilterInputType:
        return self.input.type

    def get_value(self, record: Any) -> Any:
        """Read this definition's field from a record."""
        return resolve_field(self.field, record)

    @classmethod
    def from_dict(cls, data: Mapping) -> "FilterDefinition":
        """Create a definition from a config dict with a key-path field."""
        return cls(
            field=data["field"],
            label=data["label"],
            input=input_from_dict(data["input"]),
            search=bool(data.get("search", False)),
        )


@dataclass(frozen=True, eq=False)
class MaterializedFilter:
    """
    A definition plus the user's current selection.

    Materialized filters compare by identity: two filters built from equal
    definitions are still different filters. Selections are never changed in
    place; with_value() returns a replacement.
    """

    definition: FilterDefinition
    selected_value: Any = None

    @classmethod
    def seed(cls, definition: FilterDefinition) -> "MaterializedFilter":
        """Materialize a definition with its initial selection."""
        return cls(definition=definition, selected_value=definition.input.initial_selection())

    @property
    def label(self) -> str:
        return self.definition.label

    @property
    def input(self) -> FilterInput:
        return self.definition.input

    @property
    def kind(self) -> FilterInputType:
        return self.definition.kind

    @property
    def search(self) -> bool:
        return self.definition.search

    @property
    def is_active(self) -> bool:
        """True if the selection constrains records."""
        return not is_empty_selection(self.selected_value)

    def get_value(self, record: Any) -> Any:
        return self.definition.get_value(record)

    def with_value(self, value: Any) -> "MaterializedFilter":
        """Return a copy of this filter holding a new, validated selection."""
        return replace(self, selected_value=self.input.coerce_selection(value))

    def __repr__(self) -> str:
        return (
            f"MaterializedFilter(label='{self.label}', kind={self.kind.value}, "
            f"selected_value={self.selected_value!r})"
        )

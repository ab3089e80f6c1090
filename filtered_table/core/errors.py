"""Error and warning types for filter state handling.

This module provides the failure kinds surfaced by the filter pipeline:
- IdentityNotFoundError: a filter reference is not part of the current set
- MalformedSliderRuleError: a slider filter has no comparison rule
- MultipleSearchFiltersWarning: more than one definition claims to be search
"""


class FilterTableError(Exception):
    """Base class for errors raised by filtered_table."""

    pass


class IdentityNotFoundError(FilterTableError, LookupError):
    """Raised when a filter reference is not present in the current filter set.

    This happens when a caller holds on to a MaterializedFilter from before a
    reconciliation (or from before its own value was replaced) and tries to
    update it. The filter set is left untouched.

    To resolve, read the filters again from the latest view snapshot and
    use the reference found there.
    """

    pass


class MalformedSliderRuleError(FilterTableError, ValueError):
    """Raised when a slider filter is evaluated without a comparison rule.

    The evaluator catches this error and treats the filter as skipped, the
    same way an empty selection contributes no constraint.
    """

    def __init__(self, label: str):
        super().__init__(
            f"Slider filter '{label}' has no filter_rule (expected one of "
            f"EQUAL, FROM, TO); the filter is skipped."
        )
        self.label = label


class MultipleSearchFiltersWarning(UserWarning):
    """Issued when more than one filter definition is marked as search.

    The first search definition wins; the others are treated as standard
    filters.
    """

    pass

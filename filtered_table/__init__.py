"""
Filtered Table - filter state and pagination for tabular records.

This package keeps independently configured filters (search, multiselect,
dropdown, device type, slider, year-month) in sync with caller-supplied
definitions, applies them to a record collection and serves the result one
page at a time, with a Streamlit bridge for presentation.
"""

from .components.table import TableView, TableViewController, ViewState
from .config import TableConfig
from .core.definitions import (
    AvailableOption,
    DeviceTypeInput,
    DropdownInput,
    FilterDefinition,
    FilterInputType,
    FilterRule,
    FreeTextInput,
    MaterializedFilter,
    MultiselectInput,
    SliderInput,
    YearMonth,
    YearMonthInput,
)
from .core.errors import (
    FilterTableError,
    IdentityNotFoundError,
    MalformedSliderRuleError,
    MultipleSearchFiltersWarning,
)
from .core.reconcile import NO_CHANGE, reconcile
from .core.state import FilterStateStore, partition, set_value
from .logging_config import get_logger, setup_logging
from .preprocessing.filtering import evaluate
from .preprocessing.frames import records_from_frame, records_to_frame
from .preprocessing.pagination import Page, paginate
from .preprocessing.predicates import matches
from .rendering.bridge import (
    clear_table_controller,
    get_table_controller,
    render_filters_header,
    render_table_page,
)

__version__ = "0.1.0"

__all__ = [
    # Components
    "TableView",
    "TableViewController",
    "ViewState",
    # Definitions
    "AvailableOption",
    "DeviceTypeInput",
    "DropdownInput",
    "FilterDefinition",
    "FilterInputType",
    "FilterRule",
    "FreeTextInput",
    "MaterializedFilter",
    "MultiselectInput",
    "SliderInput",
    "YearMonth",
    "YearMonthInput",
    # Errors
    "FilterTableError",
    "IdentityNotFoundError",
    "MalformedSliderRuleError",
    "MultipleSearchFiltersWarning",
    # Core
    "NO_CHANGE",
    "reconcile",
    "FilterStateStore",
    "partition",
    "set_value",
    "evaluate",
    "matches",
    "Page",
    "paginate",
    # Utilities
    "TableConfig",
    "get_logger",
    "setup_logging",
    "records_from_frame",
    "records_to_frame",
    # Rendering
    "get_table_controller",
    "clear_table_controller",
    "render_filters_header",
    "render_table_page",
]

"""Table view components."""

from .table import TableView, TableViewController, ViewState

__all__ = [
    "TableView",
    "TableViewController",
    "ViewState",
]

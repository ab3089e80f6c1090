"""Conversion between record collections and data frames."""

import dataclasses
from collections.abc import Mapping as MappingABC
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd
import polars as pl

from ..core.definitions import FieldGetter, resolve_field


def records_from_frame(data: Any) -> List[Any]:
    """
    Turn a record source into a list of records.

    Args:
        data: polars DataFrame/LazyFrame, pandas DataFrame, or any iterable
            of records

    Returns:
        List of records; frame rows become dicts keyed by column name
    """
    if data is None:
        return []
    if isinstance(data, pl.LazyFrame):
        data = data.collect()
    if isinstance(data, pl.DataFrame):
        return data.to_dicts()
    if isinstance(data, pd.DataFrame):
        return data.to_dict(orient="records")
    return list(data)


def _as_row(record: Any) -> Mapping[str, Any]:
    if isinstance(record, MappingABC):
        return record
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.asdict(record)
    raise TypeError(
        f"Cannot build a row from {type(record).__name__}; "
        f"pass a columns mapping of column name to field."
    )


def records_to_frame(
    records: Iterable[Any],
    columns: Optional[Mapping[str, FieldGetter]] = None,
) -> pl.DataFrame:
    """
    Build a polars DataFrame from records.

    Args:
        records: Records to convert
        columns: Optional mapping of column name to field (key path or
            callable). Required for records that are neither mappings nor
            dataclass instances.

    Returns:
        DataFrame with one row per record
    """
    records = list(records)

    if columns is not None:
        return pl.DataFrame(
            {
                name: [resolve_field(getter, record) for record in records]
                for name, getter in columns.items()
            },
            strict=False,
        )

    if not records:
        return pl.DataFrame()

    return pl.from_dicts([dict(_as_row(record)) for record in records], infer_schema_length=None)

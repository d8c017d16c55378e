"""
Column layout of tabular price files.

A price history file holds one row per symbol per trading day. Only
symbol, date and close are mandatory; the remaining OHLCV columns are
filled with their default when absent or empty.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import pandas as pd


@dataclass(frozen=True)
class ColumnSchema:
    """
    One column of a tabular file.

    Attributes:
        name: Column header
        dtype: pandas dtype the column is read as
        default: Fill value for an optional column; None marks the column
            as required
    """
    name: str
    dtype: str
    default: Optional[float] = None

    @property
    def required(self) -> bool:
        return self.default is None


@dataclass(frozen=True)
class FileSchema:
    """Ordered set of columns making up one kind of file."""
    name: str
    description: str
    columns: tuple[ColumnSchema, ...]

    @property
    def required_columns(self) -> list[str]:
        return [c.name for c in self.columns if c.required]

    @property
    def optional_columns(self) -> list[str]:
        return [c.name for c in self.columns if not c.required]

    @property
    def all_columns(self) -> list[str]:
        return [c.name for c in self.columns]

    def missing_columns(self, present: Iterable[str]) -> list[str]:
        """Required columns not found among ``present``."""
        present = set(present)
        return [name for name in self.required_columns if name not in present]

    def fill_defaults(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Copy of ``df`` with every optional column present and non-null.

        Args:
            df: Frame already holding the required columns

        Returns:
            New DataFrame; the input is left untouched
        """
        df = df.copy()
        for column in self.columns:
            if column.required:
                continue
            if column.name not in df.columns:
                df[column.name] = column.default
            else:
                df[column.name] = df[column.name].fillna(column.default)
        return df


PRICE_HISTORY_SCHEMA = FileSchema(
    name="price_history",
    description="Daily OHLC and volume by symbol",
    columns=(
        ColumnSchema(name="symbol", dtype="str"),
        ColumnSchema(name="date", dtype="datetime64[ns]"),
        ColumnSchema(name="open", dtype="float64", default=0.0),
        ColumnSchema(name="high", dtype="float64", default=0.0),
        ColumnSchema(name="low", dtype="float64", default=0.0),
        ColumnSchema(name="close", dtype="float64"),
        ColumnSchema(name="volume", dtype="float64", default=0.0),
    ),
)

"""
Data loading and saving functions for CSV/Parquet files.

Handles ingestion of daily price histories and output of performance
reports.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd

from stockfolio.data.schemas import PRICE_HISTORY_SCHEMA, FileSchema
from stockfolio.models import PriceRecord
from stockfolio.portfolio.pricing import PriceIndex
from stockfolio.reporting.timeseries import samples_to_frame


class DataLoadError(Exception):
    """Raised when data cannot be loaded or is invalid."""
    pass


def load_price_history(
    file_path: str | Path,
    symbols: Optional[list[str]] = None,
) -> PriceIndex:
    """
    Load daily price history from a CSV or Parquet file.

    Args:
        file_path: Path to file with columns: symbol, date, close
                   (optional: open, high, low, volume)
        symbols: Optional list of symbols to filter to

    Returns:
        PriceIndex over every symbol in the file

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_table(file_path, PRICE_HISTORY_SCHEMA)

    try:
        df["date"] = pd.to_datetime(df["date"]).dt.date
    except (ValueError, TypeError) as e:
        raise DataLoadError(f"Invalid dates in {file_path}: {e}")
    df["symbol"] = df["symbol"].astype(str).str.upper().str.strip()

    if symbols:
        symbols_upper = [s.upper().strip() for s in symbols]
        df = df[df["symbol"].isin(symbols_upper)]

    return PriceIndex(records_from_frame(df))


def records_from_frame(df: pd.DataFrame) -> dict[str, list[PriceRecord]]:
    """
    Convert a price DataFrame into PriceRecords grouped by symbol.

    Row order is preserved within each symbol. Missing optional columns
    (open, high, low, volume) default to 0.

    Args:
        df: DataFrame with symbol, date (datetime.date) and close columns

    Returns:
        Dictionary mapping symbol to its records
    """
    df = PRICE_HISTORY_SCHEMA.fill_defaults(df)

    records: dict[str, list[PriceRecord]] = {}
    for _, row in df.iterrows():
        records.setdefault(str(row["symbol"]), []).append(
            PriceRecord(
                date=row["date"],
                open=Decimal(str(row["open"])),
                high=Decimal(str(row["high"])),
                low=Decimal(str(row["low"])),
                close=Decimal(str(row["close"])),
                volume=Decimal(str(row["volume"])),
            )
        )

    return records


def frame_from_records(records: dict[str, list[PriceRecord]]) -> pd.DataFrame:
    """Inverse of records_from_frame."""
    rows = [
        {
            "symbol": symbol,
            "date": record.date.isoformat(),
            "open": float(record.open),
            "high": float(record.high),
            "low": float(record.low),
            "close": float(record.close),
            "volume": float(record.volume),
        }
        for symbol, symbol_records in records.items()
        for record in symbol_records
    ]
    return pd.DataFrame(rows, columns=PRICE_HISTORY_SCHEMA.all_columns)


def save_price_history(
    prices: PriceIndex,
    output_path: str | Path,
) -> Path:
    """
    Save a price index to CSV.

    Args:
        prices: Price index to write
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = frame_from_records({s: prices.history(s) for s in prices.symbols()})
    df.to_csv(output_path, index=False)

    return output_path


def save_performance(
    samples: list[tuple[date, Decimal]],
    output_path: str | Path,
) -> Path:
    """
    Save sampled portfolio values to CSV.

    Args:
        samples: (date, value) pairs
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    samples_to_frame(samples).to_csv(output_path, index=False)

    return output_path


def _load_table(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV or Parquet file and validate against schema.

    Args:
        file_path: Path to file
        schema: Expected file schema

    Returns:
        Loaded DataFrame

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    if file_path.suffix.lower() == ".parquet":
        try:
            df = pd.read_parquet(file_path)
        except Exception as e:
            raise DataLoadError(f"Failed to load parquet file {file_path}: {e}")
    else:
        try:
            df = pd.read_csv(file_path)
        except Exception as e:
            raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    missing = schema.missing_columns(df.columns)
    if missing:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df

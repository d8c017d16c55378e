"""
Caching layer for price providers.

Provides file-based caching of price histories to ensure:
- Reproducibility across valuations
- Reduced API calls to data providers
- Faster subsequent runs (a range valuation performs one lookup per
  symbol per date)
"""

import logging
import shutil
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

from stockfolio.data.loaders import frame_from_records, records_from_frame
from stockfolio.data.providers.base import PriceProvider
from stockfolio.models import PriceRecord

logger = logging.getLogger(__name__)


class FileCache:
    """
    File-based cache for price histories.

    Stores one CSV file per symbol and date range.
    """

    def __init__(self, cache_dir: str | Path = "data/cache"):
        """
        Initialize the file cache.

        Args:
            cache_dir: Directory to store cached data
        """
        self.cache_dir = Path(cache_dir)
        self.prices_dir = self.cache_dir / "prices"
        self.prices_dir.mkdir(parents=True, exist_ok=True)

    def _cache_file(self, symbol: str, start_date: date, end_date: date) -> Path:
        return self.prices_dir / f"{symbol.upper()}_{start_date}_{end_date}.csv"

    def get_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> Optional[list[PriceRecord]]:
        """
        Get cached price history if available.

        Args:
            symbol: Ticker symbol
            start_date: Start date
            end_date: End date

        Returns:
            Cached records or None if not cached (or unreadable)
        """
        cache_file = self._cache_file(symbol, start_date, end_date)
        if not cache_file.exists():
            return None

        try:
            df = pd.read_csv(cache_file)
            df["date"] = pd.to_datetime(df["date"]).dt.date
        except (OSError, ValueError, KeyError, pd.errors.ParserError) as e:
            logger.warning("Ignoring corrupt cache file %s: %s", cache_file, e)
            return None

        df["symbol"] = symbol.upper()
        return records_from_frame(df).get(symbol.upper(), [])

    def save_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
        records: list[PriceRecord],
    ) -> None:
        """
        Save price history to cache.

        Write failures are logged and otherwise ignored; the fetched data is
        still returned to the caller.
        """
        cache_file = self._cache_file(symbol, start_date, end_date)
        try:
            frame_from_records({symbol.upper(): records}).to_csv(cache_file, index=False)
        except OSError as e:
            logger.warning("Could not write cache file %s: %s", cache_file, e)

    def clear(self) -> None:
        """Clear all cached data."""
        if self.prices_dir.exists():
            shutil.rmtree(self.prices_dir)
        self.prices_dir.mkdir(parents=True, exist_ok=True)


class CachedPriceProvider(PriceProvider):
    """
    Wrapper that adds caching to any PriceProvider.

    Checks cache before calling underlying provider,
    and saves results to cache after fetching.
    """

    def __init__(
        self,
        provider: PriceProvider,
        cache: Optional[FileCache] = None,
    ):
        """
        Initialize cached provider.

        Args:
            provider: Underlying price provider
            cache: File cache instance (creates default if None)
        """
        self._provider = provider
        self._cache = cache or FileCache()

    @property
    def name(self) -> str:
        return f"Cached({self._provider.name})"

    def get_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[PriceRecord]:
        """
        Get price history with caching.

        Checks cache first, falls back to provider if not cached.
        """
        cached = self._cache.get_history(symbol, start_date, end_date)
        if cached is not None:
            return cached

        records = self._provider.get_history(symbol, start_date, end_date)
        self._cache.save_history(symbol, start_date, end_date, records)

        return records

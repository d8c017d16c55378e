"""
Abstract base class for price history providers.

Defines the interface that all price providers must implement, enabling
pluggable sources of daily OHLC data for valuation.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date

from stockfolio.models import PriceRecord
from stockfolio.portfolio.pricing import PriceIndex

logger = logging.getLogger(__name__)


class DataProviderError(Exception):
    """Raised when a data provider encounters an error."""
    pass


class PriceProvider(ABC):
    """
    Abstract base class for daily price history providers.

    Implementations fetch one symbol at a time; build_index assembles the
    results into the PriceIndex consumed by valuation. Providers own any
    retry/backoff policy; the valuation core never retries.
    """

    @abstractmethod
    def get_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[PriceRecord]:
        """
        Fetch daily price records for a symbol.

        Args:
            symbol: Ticker symbol
            start_date: Start date (inclusive)
            end_date: End date (inclusive)

        Returns:
            Price records, in any order

        Raises:
            DataProviderError: If data cannot be fetched
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this data provider."""
        pass

    def build_index(
        self,
        symbols: list[str],
        start_date: date,
        end_date: date,
    ) -> PriceIndex:
        """
        Fetch history for several symbols into a PriceIndex.

        Symbols whose fetch fails are left out of the index, so valuation
        treats them as having no price history.

        Args:
            symbols: Ticker symbols
            start_date: Start date (inclusive)
            end_date: End date (inclusive)

        Returns:
            PriceIndex over the symbols that were fetched
        """
        history = {}
        for symbol in sorted({s.upper().strip() for s in symbols}):
            try:
                history[symbol] = self.get_history(symbol, start_date, end_date)
            except DataProviderError as e:
                logger.warning("%s: no price history for %s: %s", self.name, symbol, e)
        return PriceIndex(history)

"""
Price providers for daily market data.

Provides a pluggable interface for fetching daily price histories with
built-in caching for reproducibility.
"""

from stockfolio.data.providers.base import PriceProvider, DataProviderError
from stockfolio.data.providers.cache import CachedPriceProvider, FileCache
from stockfolio.data.providers.eodhd_provider import EODHDProvider, get_eodhd_provider

__all__ = [
    "PriceProvider",
    "DataProviderError",
    "CachedPriceProvider",
    "FileCache",
    "EODHDProvider",
    "get_eodhd_provider",
]

"""
Data module for stockfolio.

Provides loading of daily price histories from CSV/Parquet files and
flat text persistence of portfolios.
"""

from stockfolio.data.loaders import (
    DataLoadError,
    load_price_history,
    save_price_history,
    save_performance,
)
from stockfolio.data.persistence import (
    dumps_portfolio,
    loads_portfolio,
    load_portfolio,
    save_portfolio,
)
from stockfolio.data.schemas import PRICE_HISTORY_SCHEMA

__all__ = [
    "DataLoadError",
    "load_price_history",
    "save_price_history",
    "save_performance",
    "dumps_portfolio",
    "loads_portfolio",
    "load_portfolio",
    "save_portfolio",
    "PRICE_HISTORY_SCHEMA",
]

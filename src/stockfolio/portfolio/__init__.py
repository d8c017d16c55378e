"""
Portfolio management module for stockfolio.

Provides lot-level holdings, point-in-time price lookup, valuation,
rebalancing, and the Portfolio that ties them together.
"""

from stockfolio.portfolio.tickers import is_valid_ticker, normalize_symbol
from stockfolio.portfolio.holdings import Holdings
from stockfolio.portfolio.pricing import PriceIndex
from stockfolio.portfolio.valuation import (
    total_value,
    composition,
    distribution,
    value_weights,
)
from stockfolio.portfolio.rebalance import rebalance, validate_weights
from stockfolio.portfolio.portfolio import Portfolio

__all__ = [
    "is_valid_ticker",
    "normalize_symbol",
    "Holdings",
    "PriceIndex",
    "total_value",
    "composition",
    "distribution",
    "value_weights",
    "rebalance",
    "validate_weights",
    "Portfolio",
]

"""
stockfolio - lot-based stock portfolio tracker.

Models a single named portfolio of stock lots: buy and sell shares, value the
portfolio at any date against a daily price history, break it down by
composition and value, rebalance it to target weights, and chart its
performance over time.
"""

__version__ = "0.1.0"
__author__ = "stockfolio contributors"

from stockfolio.portfolio.portfolio import Portfolio

__all__ = ["Portfolio", "__version__"]

"""
Exceptions raised by the portfolio core.

All errors are local and synchronous: they surface to the caller
immediately and are never retried. Operations that raise them leave the
portfolio exactly as it was before the call.
"""

from datetime import date
from decimal import Decimal
from typing import Optional


class PortfolioError(Exception):
    """Base class for portfolio domain errors."""
    pass


class InvalidQuantity(PortfolioError):
    """Raised when a buy or sell quantity is not a positive finite number."""

    def __init__(self, quantity: Decimal):
        self.quantity = quantity
        super().__init__(f"Quantity must be positive and finite, got {quantity}")


class InvalidTicker(PortfolioError):
    """Raised when a symbol fails ticker syntax validation."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Invalid stock ticker: {symbol!r}")


class SymbolNotHeld(PortfolioError):
    """Raised when an operation references a symbol with no lots."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Stock not found in portfolio: {symbol}")


class InsufficientShares(PortfolioError):
    """Raised when a sale exceeds the shares held on or before its date."""

    def __init__(self, symbol: str, requested: Decimal, available: Decimal):
        self.symbol = symbol
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough shares of {symbol} to sell: "
            f"requested {requested}, available {available}"
        )


class WeightsNotNormalized(PortfolioError):
    """Raised when rebalance weights do not sum to 1."""

    def __init__(self, total: Decimal):
        self.total = total
        super().__init__(f"Weights must add up to 1.0 (100%), got {total}")


class DuplicateWeight(PortfolioError):
    """Raised when two weights name the same symbol once normalized."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Weight given more than once for {symbol}")


class PriceLookupError(PortfolioError):
    """Base class for missing price data."""

    def __init__(self, message: str, symbol: str, on_date: Optional[date] = None):
        self.symbol = symbol
        self.date = on_date
        super().__init__(message)


class NoDataForSymbol(PriceLookupError):
    """Raised when a symbol has no price history at all."""

    def __init__(self, symbol: str):
        super().__init__(f"No data available for the symbol: {symbol}", symbol)


class NoDataOnDate(PriceLookupError):
    """Raised when a symbol has history but no record on the requested date."""

    def __init__(self, symbol: str, on_date: date):
        super().__init__(
            f"No data available for the symbol: {symbol} on date: {on_date}",
            symbol,
            on_date,
        )


class NegativeRebalanceQuantity(PortfolioError):
    """Raised when a rebalance would produce a negative position."""

    def __init__(self, symbol: str, quantity: Decimal):
        self.symbol = symbol
        self.quantity = quantity
        super().__init__(
            f"Rebalancing would result in a negative quantity for symbol: {symbol}"
        )


class MalformedPersistedState(PortfolioError):
    """Raised when a saved portfolio cannot be parsed."""
    pass

"""
Portfolio valuation as of a date.

Values holdings against a PriceIndex: total value, share composition and
the per-symbol distribution of value.

total_value tolerates missing prices (partial valuation), while
distribution demands an exact-date price for every held symbol.
"""

import logging
from datetime import date
from decimal import Decimal

from stockfolio.portfolio.holdings import Holdings
from stockfolio.portfolio.pricing import PriceIndex

logger = logging.getLogger(__name__)


def total_value(
    holdings: Holdings,
    on_date: date,
    prices: PriceIndex,
) -> Decimal:
    """
    Calculate the total value of holdings on a date.

    Each symbol with a positive as-of quantity is priced at its latest close
    on or before the date. Symbols without such a price contribute nothing.

    Args:
        holdings: Holdings to value
        on_date: Valuation date
        prices: Price history index

    Returns:
        Total market value
    """
    total = Decimal("0")

    for symbol in holdings.symbols():
        quantity = holdings.as_of_quantity(symbol, on_date)
        if quantity <= 0:
            continue

        close = prices.close_at_or_before(symbol, on_date)
        if close is None:
            logger.debug("No price for %s on or before %s, skipping", symbol, on_date)
            continue

        total += quantity * close

    return total


def composition(holdings: Holdings, on_date: date) -> dict[str, Decimal]:
    """
    Share count per symbol as of a date.

    Args:
        holdings: Holdings to inspect
        on_date: Point in time

    Returns:
        Dictionary mapping symbol to as-of quantity, omitting symbols with
        no shares on that date
    """
    result = {}
    for symbol in holdings.symbols():
        quantity = holdings.as_of_quantity(symbol, on_date)
        if quantity > 0:
            result[symbol] = quantity
    return result


def distribution(
    holdings: Holdings,
    on_date: date,
    prices: PriceIndex,
) -> dict[str, Decimal]:
    """
    Value held in each symbol on a date.

    Every held symbol is priced at its close on exactly that date.

    Args:
        holdings: Holdings to value
        on_date: Valuation date
        prices: Price history index

    Returns:
        Dictionary mapping symbol to as-of quantity * close

    Raises:
        NoDataForSymbol: If a held symbol has no price history
        NoDataOnDate: If a held symbol has no record dated on_date
    """
    result = {}
    for symbol in holdings.symbols():
        quantity = holdings.as_of_quantity(symbol, on_date)
        result[symbol] = quantity * prices.exact_close(symbol, on_date)
    return result


def value_weights(
    holdings: Holdings,
    on_date: date,
    prices: PriceIndex,
) -> dict[str, Decimal]:
    """
    Current weight of each symbol in the portfolio's value.

    Returns:
        Dictionary mapping symbol to weight (0-1); empty if the portfolio
        has no value on that date

    Raises:
        NoDataForSymbol, NoDataOnDate: As for distribution()
    """
    values = distribution(holdings, on_date, prices)
    total = sum(values.values(), Decimal("0"))
    if total == Decimal("0"):
        return {}
    return {symbol: value / total for symbol, value in values.items()}

"""
Rebalancing holdings to target weights.

Rebalancing replaces every held symbol's lots with a single lot sized so
that the symbol carries its target share of the portfolio's current total
value. Weights for symbols that are not held are ignored: a rebalance
never opens new positions.
"""

import decimal
import logging
from datetime import date
from decimal import Decimal
from typing import Mapping

from stockfolio.errors import (
    DuplicateWeight,
    NegativeRebalanceQuantity,
    NoDataOnDate,
    WeightsNotNormalized,
)
from stockfolio.models import Lot
from stockfolio.portfolio.holdings import Holdings
from stockfolio.portfolio.pricing import PriceIndex
from stockfolio.portfolio.tickers import normalize_symbol
from stockfolio.portfolio.valuation import total_value

logger = logging.getLogger(__name__)

WEIGHT_SUM_TOLERANCE = Decimal("0.0001")


def _finite_weight(value) -> Decimal:
    try:
        weight = Decimal(str(value))
    except decimal.InvalidOperation:
        raise WeightsNotNormalized(value)
    if not weight.is_finite():
        raise WeightsNotNormalized(weight)
    return weight


def normalize_weights(weights: Mapping[str, Decimal]) -> dict[str, Decimal]:
    """
    Uppercase symbols and coerce weights to Decimal.

    Raises:
        DuplicateWeight: If two keys normalize to the same symbol
        WeightsNotNormalized: If a weight is not a finite number
    """
    normalized: dict[str, Decimal] = {}
    for symbol, weight in weights.items():
        symbol = normalize_symbol(symbol)
        if symbol in normalized:
            raise DuplicateWeight(symbol)
        normalized[symbol] = _finite_weight(weight)
    return normalized


def validate_weights(
    weights: Mapping[str, Decimal],
    tolerance: Decimal = WEIGHT_SUM_TOLERANCE,
) -> Decimal:
    """
    Check that weights sum to 1 within a tolerance.

    Returns:
        The weight sum

    Raises:
        WeightsNotNormalized: If a weight is not finite or |sum - 1| exceeds
            the tolerance
    """
    total = sum((_finite_weight(w) for w in weights.values()), Decimal("0"))
    if abs(total - Decimal("1")) > tolerance:
        raise WeightsNotNormalized(total)
    return total


def rebalance(
    holdings: Holdings,
    on_date: date,
    prices: PriceIndex,
    weights: Mapping[str, Decimal],
    tolerance: Decimal = WEIGHT_SUM_TOLERANCE,
) -> Holdings:
    """
    Build the rebalanced replacement for a set of holdings.

    The input holdings are not modified; the caller swaps the result in.
    Every symbol is validated before the replacement is returned, so a
    failure leaves nothing half-applied.

    Args:
        holdings: Current (pre-rebalance) holdings
        on_date: Rebalance date
        prices: Price history index
        weights: Target weight per symbol, summing to 1
        tolerance: Allowed distance of the weight sum from 1

    Returns:
        New Holdings with exactly one lot per held symbol

    Raises:
        DuplicateWeight: If a symbol is weighted more than once
        WeightsNotNormalized: If the weights are not finite or do not sum to 1
        NoDataForSymbol: If a held symbol has no price history
        NoDataOnDate: If a held symbol has no usable close on on_date
        NegativeRebalanceQuantity: If a target quantity would be negative
    """
    weights = normalize_weights(weights)
    validate_weights(weights, tolerance)

    portfolio_value = total_value(holdings, on_date, prices)

    replacement: dict[str, list[Lot]] = {}
    for symbol in holdings.symbols():
        close = prices.exact_close(symbol, on_date)
        if close == Decimal("0"):
            # A zero close cannot size a position.
            raise NoDataOnDate(symbol, on_date)

        intended_value = portfolio_value * weights.get(symbol, Decimal("0"))
        new_quantity = intended_value / close
        if new_quantity < 0:
            raise NegativeRebalanceQuantity(symbol, new_quantity)

        replacement[symbol] = [Lot(date=on_date, quantity=new_quantity, close_price=close)]

    ignored = sorted(set(weights) - set(replacement))
    if ignored:
        logger.info("Ignoring weights for symbols not held: %s", ", ".join(ignored))

    return Holdings(replacement)

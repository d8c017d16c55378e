"""
The Portfolio: a named, exclusively owned set of holdings.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from stockfolio.logging.decision_log import DecisionLogger
from stockfolio.models import ActionType, Lot
from stockfolio.portfolio.holdings import Holdings
from stockfolio.portfolio.pricing import PriceIndex
from stockfolio.portfolio.rebalance import WEIGHT_SUM_TOLERANCE
from stockfolio.portfolio.rebalance import rebalance as rebalance_holdings
from stockfolio.portfolio.tickers import normalize_symbol
from stockfolio.portfolio import valuation
from stockfolio.reporting.chart import (
    DEFAULT_MAX_ROWS,
    DEFAULT_WIDTH,
    PerformanceChart,
    chart,
)
from stockfolio.reporting.timeseries import sample

logger = logging.getLogger(__name__)


class Portfolio:
    """
    A named portfolio of lot-based stock holdings.

    The portfolio owns its holdings: the ``holdings`` property returns an
    independent copy, and seeding holdings copies them in. buy, sell and
    rebalance are the only operations that mutate state; a failed call
    leaves the portfolio exactly as it was.
    """

    def __init__(
        self,
        name: str,
        holdings: Optional[Mapping[str, Iterable[Lot]] | Holdings] = None,
        decision_logger: Optional[DecisionLogger] = None,
    ):
        self._name = name
        if isinstance(holdings, Holdings):
            self._holdings = holdings.copy()
        else:
            self._holdings = Holdings(holdings)
        self._decision_logger = decision_logger

    @property
    def name(self) -> str:
        return self._name

    @property
    def holdings(self) -> Holdings:
        """Snapshot of the holdings; changes to it do not affect the portfolio."""
        return self._holdings.copy()

    def __repr__(self) -> str:
        return f"Portfolio(name={self._name!r}, symbols={self._holdings.symbols()})"

    def attach_decision_logger(self, decision_logger: Optional[DecisionLogger]) -> None:
        self._decision_logger = decision_logger

    def _audit(self, action_type: ActionType, details: dict) -> None:
        if self._decision_logger is None:
            return
        self._decision_logger.record(action_type, self._name, **details)

    def buy(self, symbol: str, quantity: Decimal, on_date: date) -> None:
        """
        Buy shares of a symbol on a date.

        Raises:
            InvalidQuantity: If quantity is not a positive finite number
            InvalidTicker: If the symbol is not a valid ticker
        """
        symbol = normalize_symbol(symbol)
        lot = self._holdings.buy(symbol, quantity, on_date)
        logger.info("%s: bought %s %s on %s", self._name, lot.quantity, symbol, on_date)
        self._audit(ActionType.SHARES_BOUGHT, {
            "symbol": symbol,
            "quantity": str(lot.quantity),
            "date": on_date.isoformat(),
        })

    def sell(self, symbol: str, quantity: Decimal, on_date: date) -> None:
        """
        Sell shares of a symbol on a date.

        Raises:
            InvalidQuantity: If quantity is not a positive finite number
            SymbolNotHeld: If the symbol is not held
            InsufficientShares: If fewer shares are held on that date
        """
        symbol = normalize_symbol(symbol)
        self._holdings.sell(symbol, quantity, on_date)
        logger.info("%s: sold %s %s on %s", self._name, quantity, symbol, on_date)
        self._audit(ActionType.SHARES_SOLD, {
            "symbol": symbol,
            "quantity": str(quantity),
            "date": on_date.isoformat(),
        })

    def total_value(self, on_date: date, prices: PriceIndex) -> Decimal:
        return valuation.total_value(self._holdings, on_date, prices)

    def composition(self, on_date: date) -> dict[str, Decimal]:
        return valuation.composition(self._holdings, on_date)

    def distribution(self, on_date: date, prices: PriceIndex) -> dict[str, Decimal]:
        return valuation.distribution(self._holdings, on_date, prices)

    def value_weights(self, on_date: date, prices: PriceIndex) -> dict[str, Decimal]:
        return valuation.value_weights(self._holdings, on_date, prices)

    def rebalance(
        self,
        on_date: date,
        prices: PriceIndex,
        weights: Mapping[str, Decimal],
        tolerance: Decimal = WEIGHT_SUM_TOLERANCE,
    ) -> None:
        """
        Rebalance every held symbol to its target weight.

        The replacement holdings are built and validated in full before
        being swapped in, so the old holdings are discarded atomically.

        Raises:
            DuplicateWeight, WeightsNotNormalized, NoDataForSymbol, NoDataOnDate,
            NegativeRebalanceQuantity
        """
        before = valuation.total_value(self._holdings, on_date, prices)
        replacement = rebalance_holdings(self._holdings, on_date, prices, weights, tolerance)
        self._holdings = replacement

        logger.info(
            "%s: rebalanced %d positions on %s (value %s)",
            self._name, len(replacement), on_date, before,
        )
        self._audit(ActionType.PORTFOLIO_REBALANCED, {
            "date": on_date.isoformat(),
            "total_value": str(before),
            "weights": {s: str(w) for s, w in weights.items()},
            "quantities": {
                s: str(lots[0].quantity) for s, lots in replacement.items()
            },
        })

    def values_over_time(
        self,
        start_date: date,
        end_date: date,
        prices: PriceIndex,
    ) -> list[tuple[date, Decimal]]:
        """Total value sampled once per calendar month."""
        return sample(self._holdings, start_date, end_date, prices)

    def performance_chart(
        self,
        start_date: date,
        end_date: date,
        prices: PriceIndex,
        max_rows: int = DEFAULT_MAX_ROWS,
        width: int = DEFAULT_WIDTH,
    ) -> PerformanceChart:
        return chart(self._holdings, start_date, end_date, prices, max_rows, width)

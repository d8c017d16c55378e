"""
Tests for the Portfolio facade.
"""

import logging
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from stockfolio.data import dumps_portfolio, loads_portfolio
from stockfolio.errors import InsufficientShares, InvalidQuantity, NoDataOnDate
from stockfolio.logging import DecisionLogger
from stockfolio.models import ActionType
from stockfolio.portfolio import Holdings, Portfolio


class TestOwnership:
    """The portfolio never shares its holdings with callers."""

    def test_holdings_property_is_a_snapshot(self, aapl_portfolio):
        snapshot = aapl_portfolio.holdings
        snapshot.sell("AAPL", Decimal("15"), date(2023, 3, 1))

        assert aapl_portfolio.composition(date(2023, 3, 1)) == {"AAPL": Decimal("15")}

    def test_seed_holdings_are_copied(self, aapl_holdings):
        portfolio = Portfolio("growth", aapl_holdings)
        aapl_holdings.buy("MSFT", Decimal("1"), date(2023, 1, 1))

        assert portfolio.holdings.symbols() == ["AAPL"]

    def test_seed_from_mapping(self, aapl_holdings):
        portfolio = Portfolio("growth", aapl_holdings.to_dict())

        assert portfolio.holdings == aapl_holdings


class TestTrading:
    """Tests for buy/sell through the facade."""

    def test_scenario(self, aapl_prices):
        portfolio = Portfolio("growth")
        portfolio.buy("AAPL", Decimal("10"), date(2023, 1, 1))
        portfolio.buy("AAPL", Decimal("5"), date(2023, 2, 1))

        assert portfolio.total_value(date(2023, 1, 15), aapl_prices) == Decimal("1500")
        assert portfolio.total_value(date(2023, 2, 15), aapl_prices) == Decimal("2400")
        assert portfolio.composition(date(2023, 1, 15)) == {"AAPL": Decimal("10")}

    def test_failed_sell_leaves_portfolio_unchanged(self, aapl_portfolio):
        before = aapl_portfolio.holdings

        with pytest.raises(InsufficientShares):
            aapl_portfolio.sell("AAPL", Decimal("16"), date(2023, 3, 1))

        assert aapl_portfolio.holdings == before

    def test_infinite_buy_rejected_so_saved_state_reloads(self, aapl_portfolio):
        with pytest.raises(InvalidQuantity):
            aapl_portfolio.buy("AAPL", float("inf"), date(2023, 3, 1))

        reloaded = loads_portfolio(dumps_portfolio(aapl_portfolio))
        assert reloaded.composition(date(2023, 3, 1)) == {"AAPL": Decimal("15")}


class TestRebalance:
    """Tests for Portfolio.rebalance."""

    def test_swaps_in_new_holdings(self, two_symbol_portfolio, two_symbol_prices):
        two_symbol_portfolio.rebalance(
            date(2023, 3, 1),
            two_symbol_prices,
            {"AAPL": Decimal("0.25"), "MSFT": Decimal("0.75")},
        )

        assert two_symbol_portfolio.composition(date(2023, 3, 1)) == {
            "AAPL": Decimal("5"),
            "MSFT": Decimal("7.5"),
        }

    def test_failed_rebalance_is_atomic(self, aapl_portfolio, aapl_prices):
        before = aapl_portfolio.holdings

        with pytest.raises(NoDataOnDate):
            aapl_portfolio.rebalance(date(2023, 2, 15), aapl_prices, {"AAPL": Decimal("1")})

        assert aapl_portfolio.holdings == before


class TestAudit:
    """Mutations are recorded in the decision log."""

    def test_buy_sell_rebalance_logged(self, tmp_path, two_symbol_prices):
        decision_logger = DecisionLogger(tmp_path / "log.jsonl")
        portfolio = Portfolio("audited", decision_logger=decision_logger)

        portfolio.buy("aapl", Decimal("10"), date(2023, 3, 1))
        portfolio.sell("AAPL", Decimal("4"), date(2023, 3, 1))
        portfolio.rebalance(date(2023, 3, 1), two_symbol_prices, {"AAPL": Decimal("1")})

        entries = decision_logger.filter_by_portfolio("audited")
        assert [e.action_type for e in entries] == [
            ActionType.SHARES_BOUGHT,
            ActionType.SHARES_SOLD,
            ActionType.PORTFOLIO_REBALANCED,
        ]
        assert entries[0].details == {
            "symbol": "AAPL",
            "quantity": "10",
            "date": "2023-03-01",
        }
        assert entries[2].details["total_value"] == "600"

    def test_failed_operation_not_logged(self, aapl_portfolio):
        decision_logger = MagicMock()
        aapl_portfolio.attach_decision_logger(decision_logger)

        with pytest.raises(InsufficientShares):
            aapl_portfolio.sell("AAPL", Decimal("100"), date(2023, 3, 1))

        decision_logger.record.assert_not_called()

    def test_log_and_audit_record_same_symbol(self, tmp_path, caplog):
        decision_logger = DecisionLogger(tmp_path / "log.jsonl")
        portfolio = Portfolio("audited", decision_logger=decision_logger)

        with caplog.at_level(logging.INFO, logger="stockfolio.portfolio.portfolio"):
            portfolio.buy(" aapl ", Decimal("3"), date(2023, 3, 1))
            portfolio.sell("aapl", Decimal("1"), date(2023, 3, 1))

        assert "bought 3 AAPL on 2023-03-01" in caplog.text
        assert "sold 1 AAPL on 2023-03-01" in caplog.text
        assert [e.details["symbol"] for e in decision_logger.read_log()] == ["AAPL", "AAPL"]


class TestReporting:
    """Tests for the reporting shortcuts."""

    def test_values_over_time(self, aapl_portfolio, aapl_prices):
        samples = aapl_portfolio.values_over_time(
            date(2023, 1, 15), date(2023, 2, 15), aapl_prices
        )

        assert samples == [
            (date(2023, 1, 15), Decimal("1500")),
            (date(2023, 2, 15), Decimal("2400")),
        ]

    def test_performance_chart(self, aapl_portfolio, aapl_prices):
        performance = aapl_portfolio.performance_chart(
            date(2023, 1, 1), date(2023, 1, 5), aapl_prices, width=10
        )

        assert len(performance.rows) == 5
        assert all(row.glyphs == 10 for row in performance.rows)

    def test_empty_portfolio_has_no_holdings(self):
        portfolio = Portfolio("empty")

        assert portfolio.holdings == Holdings()
        assert portfolio.name == "empty"

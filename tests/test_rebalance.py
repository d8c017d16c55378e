"""
Tests for rebalancing holdings to target weights.
"""

from datetime import date
from decimal import Decimal

import pytest

from stockfolio.errors import (
    DuplicateWeight,
    NegativeRebalanceQuantity,
    NoDataForSymbol,
    NoDataOnDate,
    WeightsNotNormalized,
)
from stockfolio.models import Lot
from stockfolio.portfolio import PriceIndex, rebalance, total_value, validate_weights
from stockfolio.portfolio.rebalance import normalize_weights


REBALANCE_DATE = date(2023, 3, 1)


class TestValidateWeights:
    """Tests for the weight-sum check."""

    @pytest.mark.parametrize("weights", [
        {"AAPL": Decimal("0.5"), "MSFT": Decimal("0.49")},
        {"AAPL": Decimal("0.5"), "MSFT": Decimal("0.51")},
        {},
    ])
    def test_rejects_weights_not_summing_to_one(self, weights):
        with pytest.raises(WeightsNotNormalized):
            validate_weights(weights)

    def test_accepts_sum_within_tolerance(self):
        total = validate_weights({"AAPL": Decimal("0.49995"), "MSFT": Decimal("0.5")})

        assert total == Decimal("0.99995")

    def test_custom_tolerance(self):
        weights = {"AAPL": Decimal("0.99")}

        assert validate_weights(weights, tolerance=Decimal("0.02")) == Decimal("0.99")

    @pytest.mark.parametrize("weights", [
        {"AAPL": float("nan")},
        {"AAPL": Decimal("Infinity"), "MSFT": Decimal("-Infinity")},
        {"AAPL": "half"},
    ])
    def test_rejects_non_finite_weights(self, weights):
        with pytest.raises(WeightsNotNormalized):
            validate_weights(weights)


class TestNormalizeWeights:
    """Tests for weight key and value normalization."""

    def test_uppercases_and_coerces(self):
        assert normalize_weights({" aapl ": 0.25, "MSFT": "0.75"}) == {
            "AAPL": Decimal("0.25"),
            "MSFT": Decimal("0.75"),
        }

    def test_case_variants_of_one_symbol_are_rejected(self):
        with pytest.raises(DuplicateWeight) as exc_info:
            normalize_weights({"aapl": Decimal("0.5"), "AAPL": Decimal("0.5")})

        assert exc_info.value.symbol == "AAPL"


class TestRebalance:
    """Tests for rebalance."""

    def test_weights_for_unheld_symbols_are_ignored(self, aapl_holdings, aapl_prices):
        """Only held symbols are rebalanced; no new positions are opened."""
        on_date = date(2023, 2, 1)

        result = rebalance(
            aapl_holdings,
            on_date,
            aapl_prices,
            {"AAPL": Decimal("0.5"), "MSFT": Decimal("0.5")},
        )

        assert result.symbols() == ["AAPL"]
        assert result.lots("AAPL") == [
            Lot(date=on_date, quantity=Decimal("7.5"), close_price=Decimal("160")),
        ]

    def test_one_lot_per_symbol_at_target_weight(
        self, two_symbol_portfolio, two_symbol_prices
    ):
        result = rebalance(
            two_symbol_portfolio.holdings,
            REBALANCE_DATE,
            two_symbol_prices,
            {"AAPL": Decimal("0.25"), "MSFT": Decimal("0.75")},
        )

        assert result.lots("AAPL") == [
            Lot(date=REBALANCE_DATE, quantity=Decimal("5"), close_price=Decimal("100")),
        ]
        assert result.lots("MSFT") == [
            Lot(date=REBALANCE_DATE, quantity=Decimal("7.5"), close_price=Decimal("200")),
        ]

    def test_preserves_total_value(self, two_symbol_portfolio, two_symbol_prices):
        holdings = two_symbol_portfolio.holdings
        before = total_value(holdings, REBALANCE_DATE, two_symbol_prices)
        one_third = Decimal("1") / Decimal("3")

        result = rebalance(
            holdings,
            REBALANCE_DATE,
            two_symbol_prices,
            {"AAPL": one_third, "MSFT": Decimal("1") - one_third},
        )

        after = total_value(result, REBALANCE_DATE, two_symbol_prices)
        assert abs(after - before) / before < Decimal("1e-9")

    def test_does_not_modify_input(self, two_symbol_portfolio, two_symbol_prices):
        holdings = two_symbol_portfolio.holdings
        snapshot = holdings.copy()

        rebalance(
            holdings,
            REBALANCE_DATE,
            two_symbol_prices,
            {"AAPL": Decimal("1")},
        )

        assert holdings == snapshot

    def test_missing_weight_keeps_zero_quantity_lot(
        self, two_symbol_portfolio, two_symbol_prices
    ):
        result = rebalance(
            two_symbol_portfolio.holdings,
            REBALANCE_DATE,
            two_symbol_prices,
            {"aapl": Decimal("1")},
        )

        assert result.lots("AAPL")[0].quantity == Decimal("20")
        assert result.lots("MSFT") == [
            Lot(date=REBALANCE_DATE, quantity=Decimal("0"), close_price=Decimal("200")),
        ]

    def test_negative_weight(self, two_symbol_portfolio, two_symbol_prices):
        with pytest.raises(NegativeRebalanceQuantity) as exc_info:
            rebalance(
                two_symbol_portfolio.holdings,
                REBALANCE_DATE,
                two_symbol_prices,
                {"AAPL": Decimal("1.5"), "MSFT": Decimal("-0.5")},
            )

        assert exc_info.value.symbol == "MSFT"

    def test_requires_exact_date_price(self, aapl_holdings, aapl_prices):
        with pytest.raises(NoDataOnDate):
            rebalance(aapl_holdings, date(2023, 2, 15), aapl_prices, {"AAPL": Decimal("1")})

    def test_requires_price_for_every_held_symbol(self, aapl_holdings, aapl_prices):
        aapl_holdings.buy("MSFT", Decimal("1"), date(2023, 1, 1))

        with pytest.raises(NoDataForSymbol):
            rebalance(aapl_holdings, date(2023, 2, 1), aapl_prices, {"AAPL": Decimal("1")})

    def test_zero_close_cannot_size_position(self, aapl_holdings):
        prices = PriceIndex.from_closes({"AAPL": {date(2023, 2, 1): Decimal("0")}})

        with pytest.raises(NoDataOnDate):
            rebalance(aapl_holdings, date(2023, 2, 1), prices, {"AAPL": Decimal("1")})

    def test_rejects_unnormalized_weights(self, aapl_holdings, aapl_prices):
        with pytest.raises(WeightsNotNormalized):
            rebalance(aapl_holdings, date(2023, 2, 1), aapl_prices, {"AAPL": Decimal("0.9")})

    def test_rejects_nan_weight_without_changes(self, aapl_holdings, aapl_prices):
        before = aapl_holdings.to_dict()

        with pytest.raises(WeightsNotNormalized):
            rebalance(aapl_holdings, date(2023, 2, 1), aapl_prices, {"AAPL": float("nan")})

        assert aapl_holdings.to_dict() == before

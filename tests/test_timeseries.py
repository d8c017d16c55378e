"""
Tests for monthly value sampling.
"""

from datetime import date
from decimal import Decimal

import pytest

from stockfolio.reporting import sample, samples_to_frame
from stockfolio.reporting.timeseries import add_month


class TestAddMonth:
    """Calendar-month stepping clamps to the end of short months."""

    @pytest.mark.parametrize("day,expected", [
        (date(2023, 1, 15), date(2023, 2, 15)),
        (date(2023, 1, 31), date(2023, 2, 28)),
        (date(2024, 1, 31), date(2024, 2, 29)),
        (date(2023, 2, 28), date(2023, 3, 28)),
        (date(2023, 12, 31), date(2024, 1, 31)),
    ])
    def test_add_month(self, day, expected):
        assert add_month(day) == expected


class TestSample:
    """Tests for sample."""

    def test_monthly_values(self, aapl_holdings, aapl_prices):
        samples = sample(aapl_holdings, date(2023, 1, 15), date(2023, 3, 15), aapl_prices)

        assert samples == [
            (date(2023, 1, 15), Decimal("1500")),
            (date(2023, 2, 15), Decimal("2400")),
            (date(2023, 3, 15), Decimal("2400")),
        ]

    def test_end_date_inclusive_only_on_step(self, aapl_holdings, aapl_prices):
        samples = sample(aapl_holdings, date(2023, 1, 15), date(2023, 2, 14), aapl_prices)

        assert [d for d, _ in samples] == [date(2023, 1, 15)]

    def test_steps_from_previous_sample(self, aapl_holdings, aapl_prices):
        """Once clamped to the 28th, later samples stay on the 28th."""
        samples = sample(aapl_holdings, date(2023, 1, 31), date(2023, 4, 30), aapl_prices)

        assert [d for d, _ in samples] == [
            date(2023, 1, 31),
            date(2023, 2, 28),
            date(2023, 3, 28),
            date(2023, 4, 28),
        ]

    def test_end_before_start(self, aapl_holdings, aapl_prices):
        assert sample(aapl_holdings, date(2023, 3, 1), date(2023, 1, 1), aapl_prices) == []


class TestSamplesToFrame:

    def test_columns(self):
        df = samples_to_frame([
            (date(2023, 1, 15), Decimal("1500")),
            (date(2023, 2, 15), Decimal("2400.50")),
        ])

        assert list(df.columns) == ["date", "value"]
        assert df["date"].tolist() == ["2023-01-15", "2023-02-15"]
        assert df["value"].tolist() == [1500.0, 2400.5]

    def test_empty(self):
        df = samples_to_frame([])

        assert df.empty
        assert list(df.columns) == ["date", "value"]

"""
Pytest fixtures for the stockfolio tests.

Provides common portfolios, price histories and configuration used across
test modules.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from stockfolio.data.providers import DataProviderError, PriceProvider
from stockfolio.models import AppConfig, PriceRecord
from stockfolio.portfolio import Holdings, Portfolio, PriceIndex


@pytest.fixture
def aapl_prices() -> PriceIndex:
    """AAPL closing at 150 on 2023-01-01 and 160 on 2023-02-01."""
    return PriceIndex.from_closes({
        "AAPL": {
            date(2023, 1, 1): Decimal("150"),
            date(2023, 2, 1): Decimal("160"),
        },
    })


@pytest.fixture
def aapl_holdings() -> Holdings:
    """10 AAPL bought 2023-01-01 and 5 more on 2023-02-01."""
    holdings = Holdings()
    holdings.buy("AAPL", Decimal("10"), date(2023, 1, 1))
    holdings.buy("AAPL", Decimal("5"), date(2023, 2, 1))
    return holdings


@pytest.fixture
def aapl_portfolio(aapl_holdings) -> Portfolio:
    """Portfolio named 'growth' holding the AAPL lots."""
    return Portfolio("growth", aapl_holdings)


@pytest.fixture
def two_symbol_prices() -> PriceIndex:
    """AAPL at 100 and MSFT at 200 on 2023-03-01."""
    return PriceIndex.from_closes({
        "AAPL": {date(2023, 3, 1): Decimal("100")},
        "MSFT": {date(2023, 3, 1): Decimal("200")},
    })


@pytest.fixture
def two_symbol_portfolio() -> Portfolio:
    """10 AAPL and 5 MSFT bought 2023-03-01 (1000 each at the fixture prices)."""
    portfolio = Portfolio("balanced")
    portfolio.buy("AAPL", Decimal("10"), date(2023, 3, 1))
    portfolio.buy("MSFT", Decimal("5"), date(2023, 3, 1))
    return portfolio


@pytest.fixture
def sample_price_records() -> list[PriceRecord]:
    """Full OHLCV records for AAPL."""
    return [
        PriceRecord(
            date=date(2024, 1, 2),
            open=Decimal("187.15"),
            high=Decimal("188.44"),
            low=Decimal("183.89"),
            close=Decimal("185.64"),
            volume=Decimal("82488700"),
        ),
        PriceRecord(
            date=date(2024, 1, 3),
            open=Decimal("184.22"),
            high=Decimal("185.88"),
            low=Decimal("183.43"),
            close=Decimal("184.25"),
            volume=Decimal("58414500"),
        ),
    ]


@pytest.fixture
def sample_eodhd_response() -> list[dict]:
    """EODHD end-of-day JSON rows for AAPL."""
    return [
        {
            "date": "2024-01-02",
            "open": 187.15,
            "high": 188.44,
            "low": 183.89,
            "close": 185.64,
            "adjusted_close": 185.2,
            "volume": 82488700,
        },
        {
            "date": "2024-01-03",
            "open": 184.22,
            "high": 185.88,
            "low": 183.43,
            "close": 184.25,
            "adjusted_close": 183.81,
            "volume": 58414500,
        },
    ]


@pytest.fixture
def price_history_csv(tmp_path) -> Path:
    """CSV price history with AAPL and MSFT, deliberately unsorted."""
    path = tmp_path / "prices.csv"
    path.write_text(
        "symbol,date,close\n"
        "AAPL,2023-02-01,160.0\n"
        "AAPL,2023-01-01,150.0\n"
        "MSFT,2023-02-01,250.0\n"
    )
    return path


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Configuration keeping every file under tmp_path."""
    return AppConfig(
        portfolio_dir=tmp_path / "portfolios",
        cache_dir=tmp_path / "cache",
        log_path=tmp_path / "logs" / "decision_log.jsonl",
    )


@pytest.fixture
def config_file(tmp_path, app_config) -> Path:
    """YAML file for app_config."""
    path = tmp_path / "stockfolio.yaml"
    path.write_text(yaml.safe_dump({
        "portfolio_dir": str(app_config.portfolio_dir),
        "cache_dir": str(app_config.cache_dir),
        "log_path": str(app_config.log_path),
    }))
    return path


class StaticProvider(PriceProvider):
    """Provider serving fixed records, failing for unknown symbols."""

    def __init__(self, history: dict[str, list[PriceRecord]]):
        self._history = history
        self.calls = []

    @property
    def name(self) -> str:
        return "Static"

    def get_history(self, symbol, start_date, end_date):
        self.calls.append((symbol, start_date, end_date))
        if symbol not in self._history:
            raise DataProviderError(f"Unknown symbol {symbol}")
        return self._history[symbol]


@pytest.fixture
def static_provider_cls() -> type[StaticProvider]:
    """In-memory PriceProvider class for provider and cache tests."""
    return StaticProvider

"""
Core data models for stockfolio.

This module defines the fundamental data structures used throughout the system:
lots, daily price records, audit log entries and application configuration.
All monetary and share quantities use Decimal for precision.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Optional


class ActionType(Enum):
    """Types of logged actions for the decision log."""
    PORTFOLIO_CREATED = "PORTFOLIO_CREATED"
    SHARES_BOUGHT = "SHARES_BOUGHT"
    SHARES_SOLD = "SHARES_SOLD"
    PORTFOLIO_REBALANCED = "PORTFOLIO_REBALANCED"
    PORTFOLIO_SAVED = "PORTFOLIO_SAVED"
    PORTFOLIO_LOADED = "PORTFOLIO_LOADED"
    CONFIG_LOADED = "CONFIG_LOADED"


@dataclass(frozen=True)
class Lot:
    """
    A quantity of one symbol acquired on one date.

    The symbol is not stored on the lot; holdings key lots by symbol.
    Lots are immutable: reducing a lot produces a new one.

    Attributes:
        date: Acquisition date
        quantity: Number of shares (fractional allowed)
        close_price: Closing price recorded with the lot (0 until a
            rebalance prices it)
    """
    date: date
    quantity: Decimal
    close_price: Decimal = Decimal("0")

    def with_quantity(self, quantity: Decimal) -> "Lot":
        """Return a copy of this lot holding a different quantity."""
        return replace(self, quantity=quantity)


@dataclass(frozen=True)
class PriceRecord:
    """
    Daily OHLC + volume record for a symbol.

    Attributes:
        date: Trading date
        open: Opening price
        high: Intraday high
        low: Intraday low
        close: Closing price
        volume: Shares traded
    """
    date: date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = Decimal("0")

    @classmethod
    def from_close(cls, record_date: date, close: Decimal) -> "PriceRecord":
        """Build a record where only the close is known."""
        return cls(
            date=record_date,
            open=close,
            high=close,
            low=close,
            close=close,
        )


@dataclass
class DecisionLogEntry:
    """
    Entry for the append-only decision log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        portfolio_name: Portfolio involved (if applicable)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    portfolio_name: Optional[str]
    details: dict

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        portfolio_name: Optional[str],
        details: dict,
    ) -> "DecisionLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=datetime.now(),
            action_type=action_type,
            portfolio_name=portfolio_name,
            details=details,
        )


@dataclass
class AppConfig:
    """
    Application configuration loaded from YAML.

    Attributes:
        portfolio_dir: Directory holding saved portfolio files
        cache_dir: Directory for cached price history
        log_path: Path of the JSONL decision log
        rebalance_tolerance: Allowed distance of the weight sum from 1
        chart_max_rows: Maximum rows printed by the performance chart
        chart_width: Glyphs used by the largest chart row
    """
    portfolio_dir: Path = field(default_factory=lambda: Path("portfolios"))
    cache_dir: Path = field(default_factory=lambda: Path("data/cache"))
    log_path: Path = field(default_factory=lambda: Path("output/decision_log.jsonl"))
    rebalance_tolerance: Decimal = Decimal("0.0001")
    chart_max_rows: int = 30
    chart_width: int = 50

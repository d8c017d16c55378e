"""
Flat text persistence for portfolios.

Format:
    line 1: portfolio name
    then one line per lot, in holdings iteration order:
        SYMBOL=QUANTITY,DATE

Prices are never written; lots are loaded back with a zero close price and
re-priced from the price history on demand.
"""

import decimal
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path

from stockfolio.errors import MalformedPersistedState
from stockfolio.models import Lot
from stockfolio.portfolio.portfolio import Portfolio
from stockfolio.portfolio.tickers import normalize_symbol

logger = logging.getLogger(__name__)


def dumps_portfolio(portfolio: Portfolio) -> str:
    """Serialize a portfolio to the flat text format."""
    lines = [portfolio.name]
    for symbol, lots in portfolio.holdings.items():
        for lot in lots:
            lines.append(f"{symbol}={lot.quantity},{lot.date.isoformat()}")
    return "\n".join(lines) + "\n"


def loads_portfolio(text: str) -> Portfolio:
    """
    Parse a portfolio from the flat text format.

    Args:
        text: Serialized portfolio

    Returns:
        Portfolio with zero-priced lots

    Raises:
        MalformedPersistedState: If the name is missing or a lot line is invalid
    """
    lines = text.splitlines()
    if not lines or not lines[0].strip():
        raise MalformedPersistedState("Invalid portfolio file: missing name")

    name = lines[0].strip()
    lots: dict[str, list[Lot]] = {}

    for line_no, line in enumerate(lines[1:], start=2):
        line = line.strip()
        if not line:
            continue
        symbol, lot = _parse_lot_line(line, line_no)
        lots.setdefault(symbol, []).append(lot)

    return Portfolio(name, lots)


def _parse_lot_line(line: str, line_no: int) -> tuple[str, Lot]:
    """Parse one SYMBOL=QUANTITY,DATE line."""
    symbol, sep, rest = line.partition("=")
    if not sep or not symbol.strip():
        raise MalformedPersistedState(f"Line {line_no}: expected SYMBOL=QUANTITY,DATE, got {line!r}")

    quantity_str, sep, date_str = rest.partition(",")
    if not sep:
        raise MalformedPersistedState(f"Line {line_no}: expected QUANTITY,DATE, got {rest!r}")

    try:
        quantity = Decimal(quantity_str.strip())
    except decimal.InvalidOperation:
        raise MalformedPersistedState(f"Line {line_no}: invalid quantity {quantity_str!r}")
    if not quantity.is_finite() or quantity < 0:
        raise MalformedPersistedState(f"Line {line_no}: invalid quantity {quantity_str!r}")

    try:
        lot_date = date.fromisoformat(date_str.strip())
    except ValueError:
        raise MalformedPersistedState(f"Line {line_no}: invalid date {date_str!r}")

    return normalize_symbol(symbol), Lot(date=lot_date, quantity=quantity)


def save_portfolio(portfolio: Portfolio, file_path: str | Path) -> Path:
    """
    Save a portfolio to a text file.

    Args:
        portfolio: Portfolio to save
        file_path: Destination file

    Returns:
        Path to the saved file
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(dumps_portfolio(portfolio))
    logger.debug("Saved portfolio %s to %s", portfolio.name, file_path)
    return file_path


def load_portfolio(file_path: str | Path) -> Portfolio:
    """
    Load a portfolio from a text file.

    Raises:
        MalformedPersistedState: If the file is missing, unreadable or invalid
    """
    file_path = Path(file_path)
    try:
        text = file_path.read_text()
    except OSError as e:
        raise MalformedPersistedState(f"Error loading portfolio: {e}") from e

    portfolio = loads_portfolio(text)
    logger.debug("Loaded portfolio %s from %s", portfolio.name, file_path)
    return portfolio

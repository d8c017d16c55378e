"""
Lot-level holdings for a single portfolio.

Holdings map each symbol to the ordered list of lots acquired for it.
Lists keep insertion order, not date order; anything that needs
chronological semantics filters by date instead of assuming sortedness.
"""

import decimal
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, Mapping, Optional

from stockfolio.errors import (
    InsufficientShares,
    InvalidQuantity,
    InvalidTicker,
    SymbolNotHeld,
)
from stockfolio.models import Lot
from stockfolio.portfolio.tickers import is_valid_ticker, normalize_symbol


def _positive_quantity(value) -> Decimal:
    try:
        quantity = Decimal(str(value))
    except decimal.InvalidOperation:
        raise InvalidQuantity(value)
    if not quantity.is_finite() or quantity <= 0:
        raise InvalidQuantity(quantity)
    return quantity


class Holdings:
    """
    Mapping from symbol to an ordered list of lots.

    Every symbol present maps to a non-empty list. Accessors hand out
    copies, so callers can never alias the internal lists.
    """

    def __init__(self, lots: Optional[Mapping[str, Iterable[Lot]]] = None):
        self._lots: dict[str, list[Lot]] = {}
        for symbol, symbol_lots in (lots or {}).items():
            symbol_lots = list(symbol_lots)
            if symbol_lots:
                self._lots.setdefault(normalize_symbol(symbol), []).extend(symbol_lots)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and normalize_symbol(symbol) in self._lots

    def __len__(self) -> int:
        return len(self._lots)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._lots))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Holdings):
            return NotImplemented
        return self._lots == other._lots

    def __repr__(self) -> str:
        return f"Holdings({self._lots!r})"

    def symbols(self) -> list[str]:
        """Held symbols in insertion order."""
        return list(self._lots)

    def lots(self, symbol: str) -> list[Lot]:
        """Copy of the lots held for a symbol (empty if not held)."""
        return list(self._lots.get(normalize_symbol(symbol), []))

    def items(self) -> list[tuple[str, list[Lot]]]:
        """(symbol, lots) pairs in insertion order, as copies."""
        return [(symbol, list(lots)) for symbol, lots in self._lots.items()]

    def to_dict(self) -> dict[str, list[Lot]]:
        """Independent dict snapshot of the holdings."""
        return {symbol: list(lots) for symbol, lots in self._lots.items()}

    def copy(self) -> "Holdings":
        """Independent copy. Lots are immutable, so copying the lists suffices."""
        return Holdings(self._lots)

    def as_of_quantity(self, symbol: str, on_date: date) -> Decimal:
        """
        Total shares of a symbol held as of a date.

        Sums every lot dated on or before the date.

        Args:
            symbol: Ticker symbol
            on_date: Point in time

        Returns:
            Share count (0 if the symbol is not held)
        """
        return sum(
            (lot.quantity for lot in self._lots.get(normalize_symbol(symbol), [])
             if lot.date <= on_date),
            Decimal("0"),
        )

    def buy(self, symbol: str, quantity: Decimal, on_date: date) -> Lot:
        """
        Append a new lot for a symbol.

        Prices are not stored at buy time; they are resolved from the price
        history when the portfolio is valued.

        Args:
            symbol: Ticker symbol (case-insensitive)
            quantity: Shares bought, must be positive
            on_date: Acquisition date

        Returns:
            The lot that was appended

        Raises:
            InvalidQuantity: If quantity is not a positive finite number
            InvalidTicker: If the symbol is not a valid ticker
        """
        quantity = _positive_quantity(quantity)

        symbol = normalize_symbol(symbol)
        if not is_valid_ticker(symbol):
            raise InvalidTicker(symbol)

        lot = Lot(date=on_date, quantity=quantity)
        self._lots.setdefault(symbol, []).append(lot)
        return lot

    def sell(self, symbol: str, quantity: Decimal, on_date: date) -> None:
        """
        Remove shares of a symbol as of a date.

        Lots are consumed in list order among those dated on or before the
        sale date; later lots are never touched. A lot larger than what is
        left to sell is reduced, any other eligible lot is removed.

        Feasibility is checked before anything changes, so a failed sale
        leaves the holdings untouched.

        Args:
            symbol: Ticker symbol (case-insensitive)
            quantity: Shares sold, must be positive
            on_date: Sale date

        Raises:
            InvalidQuantity: If quantity is not a positive finite number
            SymbolNotHeld: If the symbol has no lots
            InsufficientShares: If eligible lots hold fewer shares than requested
        """
        quantity = _positive_quantity(quantity)

        symbol = normalize_symbol(symbol)
        current = self._lots.get(symbol)
        if current is None:
            raise SymbolNotHeld(symbol)

        available = self.as_of_quantity(symbol, on_date)
        if available < quantity:
            raise InsufficientShares(symbol, quantity, available)

        remaining = quantity
        kept: list[Lot] = []
        for lot in current:
            if remaining > 0 and lot.date <= on_date:
                if lot.quantity > remaining:
                    kept.append(lot.with_quantity(lot.quantity - remaining))
                    remaining = Decimal("0")
                else:
                    remaining -= lot.quantity
            else:
                kept.append(lot)

        if kept:
            self._lots[symbol] = kept
        else:
            del self._lots[symbol]

"""
Point-in-time price lookup over daily price histories.

Two lookup rules are supported and deliberately kept distinct:

- at-or-before: the latest known record no later than the query date
  (used for total value, tolerates gaps such as weekends);
- exact: a record dated precisely on the query date (used for value
  distribution and rebalancing, which demand complete data).
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from stockfolio.errors import NoDataForSymbol, NoDataOnDate
from stockfolio.models import PriceRecord
from stockfolio.portfolio.tickers import normalize_symbol


class PriceIndex:
    """
    Read-only index of daily price records by symbol.

    Records are sorted by date on construction with a stable sort, so
    providers may hand them over in any order; records sharing a date keep
    their input order.
    """

    def __init__(self, history: Optional[Mapping[str, Iterable[PriceRecord]]] = None):
        self._history: dict[str, tuple[PriceRecord, ...]] = {}
        for symbol, records in (history or {}).items():
            ordered = sorted(records, key=lambda r: r.date)
            self._history[normalize_symbol(symbol)] = tuple(ordered)

    @classmethod
    def from_records(cls, history: Mapping[str, Iterable[PriceRecord]]) -> "PriceIndex":
        """Build an index from symbol -> records, in any order."""
        return cls(history)

    @classmethod
    def from_closes(cls, closes: Mapping[str, Mapping[date, Decimal]]) -> "PriceIndex":
        """Build an index from symbol -> {date: close} mappings."""
        return cls({
            symbol: [PriceRecord.from_close(d, Decimal(str(c))) for d, c in by_date.items()]
            for symbol, by_date in closes.items()
        })

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and self.has_history(symbol)

    def __repr__(self) -> str:
        return f"PriceIndex(symbols={self.symbols()})"

    def symbols(self) -> list[str]:
        return list(self._history)

    def history(self, symbol: str) -> list[PriceRecord]:
        """Date-ordered records for a symbol (empty if unknown)."""
        return list(self._history.get(normalize_symbol(symbol), ()))

    def has_history(self, symbol: str) -> bool:
        return bool(self._history.get(normalize_symbol(symbol)))

    def record_at_or_before(self, symbol: str, on_date: date) -> Optional[PriceRecord]:
        """
        Latest record dated on or before a date.

        Keeps the last record encountered with record.date <= on_date.

        Returns:
            The record, or None if the symbol has no history or all of it
            is later than on_date
        """
        found = None
        for record in self._history.get(normalize_symbol(symbol), ()):
            if record.date > on_date:
                break
            found = record
        return found

    def close_at_or_before(self, symbol: str, on_date: date) -> Optional[Decimal]:
        record = self.record_at_or_before(symbol, on_date)
        return record.close if record is not None else None

    def exact_record(self, symbol: str, on_date: date) -> PriceRecord:
        """
        Record dated exactly on a date, with no fallback to earlier dates.

        Raises:
            NoDataForSymbol: If the symbol has no history at all
            NoDataOnDate: If history exists but nothing is dated on_date
        """
        symbol = normalize_symbol(symbol)
        records = self._history.get(symbol)
        if not records:
            raise NoDataForSymbol(symbol)

        for record in records:
            if record.date == on_date:
                return record

        raise NoDataOnDate(symbol, on_date)

    def exact_close(self, symbol: str, on_date: date) -> Decimal:
        return self.exact_record(symbol, on_date).close

"""
Portfolio value sampled over a date range.
"""

from datetime import date
from decimal import Decimal

import pandas as pd

from stockfolio.portfolio.holdings import Holdings
from stockfolio.portfolio.pricing import PriceIndex
from stockfolio.portfolio.valuation import total_value


def add_month(day: date) -> date:
    """
    Add one calendar month, clamping to the end of shorter months.

    Jan 31 becomes Feb 28 (or 29); stepping again from there gives Mar 28.
    """
    return (pd.Timestamp(day) + pd.DateOffset(months=1)).date()


def sample(
    holdings: Holdings,
    start_date: date,
    end_date: date,
    prices: PriceIndex,
) -> list[tuple[date, Decimal]]:
    """
    Total portfolio value once per calendar month.

    Starts at start_date and adds one calendar month to the previous sample
    date until end_date is passed.

    Args:
        holdings: Holdings to value
        start_date: First sample date
        end_date: Last possible sample date (inclusive)
        prices: Price history index

    Returns:
        Ordered (date, value) pairs; empty if end_date < start_date
    """
    samples = []
    current = start_date
    while current <= end_date:
        samples.append((current, total_value(holdings, current, prices)))
        current = add_month(current)
    return samples


def samples_to_frame(samples: list[tuple[date, Decimal]]) -> pd.DataFrame:
    """Tabulate samples as a DataFrame with date and value columns."""
    return pd.DataFrame(
        [{"date": d.isoformat(), "value": float(v)} for d, v in samples],
        columns=["date", "value"],
    )

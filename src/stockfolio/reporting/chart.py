"""
Text performance chart for a portfolio.

The chart samples total value on a day-granularity grid: every day for
spans up to 30 days, otherwise every ceil(days / 30) days. At most
``max_rows`` rows are kept and each row is a bar of glyphs proportional to
the value, with the largest sampled value drawn ``width`` glyphs long.
"""

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from stockfolio.portfolio.holdings import Holdings
from stockfolio.portfolio.pricing import PriceIndex
from stockfolio.portfolio.valuation import total_value

DEFAULT_MAX_ROWS = 30
DEFAULT_WIDTH = 50
GLYPH = "*"


@dataclass
class ChartRow:
    """One sampled date of the chart."""
    date: date
    value: Decimal
    glyphs: int


@dataclass
class PerformanceChart:
    """
    Sampled portfolio values ready for rendering.

    Attributes:
        start_date: First date of the requested range
        end_date: Last date of the requested range
        interval: Days between samples
        scale: Value represented by one glyph
        rows: Printed rows (capped)
    """
    start_date: date
    end_date: date
    interval: int
    scale: Decimal
    rows: list[ChartRow] = field(default_factory=list)


def chart_interval(start_date: date, end_date: date) -> int:
    """Days between chart samples for a date range."""
    total_days = (end_date - start_date).days
    if total_days <= 30:
        return 1
    return math.ceil(total_days / 30)


def chart(
    holdings: Holdings,
    start_date: date,
    end_date: date,
    prices: PriceIndex,
    max_rows: int = DEFAULT_MAX_ROWS,
    width: int = DEFAULT_WIDTH,
) -> PerformanceChart:
    """
    Sample portfolio value for a performance chart.

    The scale is taken from the maximum over every walked sample, including
    samples past the row cap, which are then dropped.

    Args:
        holdings: Holdings to value
        start_date: First sample date
        end_date: Last possible sample date (inclusive)
        prices: Price history index
        max_rows: Maximum number of rows kept
        width: Glyph count of the largest value

    Returns:
        PerformanceChart with at most max_rows rows
    """
    interval = chart_interval(start_date, end_date)

    sampled: list[tuple[date, Decimal]] = []
    current = start_date
    while current <= end_date:
        sampled.append((current, total_value(holdings, current, prices)))
        current += timedelta(days=interval)

    max_value = max((value for _, value in sampled), default=Decimal("0"))
    scale = max_value / Decimal(width)
    if scale == Decimal("0"):
        scale = Decimal("1")

    rows = [
        ChartRow(date=d, value=value, glyphs=int(value / scale))
        for d, value in sampled[:max_rows]
    ]

    return PerformanceChart(
        start_date=start_date,
        end_date=end_date,
        interval=interval,
        scale=scale,
        rows=rows,
    )


def render_chart(portfolio_name: str, performance: PerformanceChart, glyph: str = GLYPH) -> str:
    """Format a chart as printable text."""
    lines = [
        f"Performance of portfolio {portfolio_name} from "
        f"{performance.start_date} to {performance.end_date}",
        "",
    ]
    for row in performance.rows:
        lines.append(f"{row.date}: {glyph * row.glyphs}")
    lines.append("")
    lines.append(f"Scale: {glyph} = ${performance.scale:,.2f}")
    return "\n".join(lines)

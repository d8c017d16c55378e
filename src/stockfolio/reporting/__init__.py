"""
Reporting module for stockfolio.

Samples portfolio value over time and renders the text performance chart.
"""

from stockfolio.reporting.timeseries import sample, samples_to_frame
from stockfolio.reporting.chart import (
    ChartRow,
    PerformanceChart,
    chart,
    chart_interval,
    render_chart,
)

__all__ = [
    "sample",
    "samples_to_frame",
    "ChartRow",
    "PerformanceChart",
    "chart",
    "chart_interval",
    "render_chart",
]

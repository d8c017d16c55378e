"""
Command-line interface for stockfolio.

Provides commands for:
- create: Create an empty portfolio
- buy / sell: Add or remove shares as of a date
- value: Total portfolio value on a date
- composition: Shares held per symbol on a date
- distribution: Value held per symbol on a date
- rebalance: Retarget holdings to weights
- performance: Monthly value over a date range
- chart: Text performance chart over a date range
"""

import decimal
import logging
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import NoReturn, Optional

import click

from stockfolio import __version__
from stockfolio.config import ConfigurationError, load_app_config, parse_date
from stockfolio.data import (
    DataLoadError,
    load_portfolio,
    load_price_history,
    save_performance,
    save_portfolio,
)
from stockfolio.data.providers import DataProviderError, get_eodhd_provider
from stockfolio.errors import PortfolioError
from stockfolio.logging import DecisionLogger, get_logger
from stockfolio.models import AppConfig
from stockfolio.portfolio import Portfolio, PriceIndex
from stockfolio.portfolio.tickers import normalize_symbol
from stockfolio.reporting import render_chart

# Extra history fetched before the first date so at-or-before lookups
# can fall back across weekends and holidays.
PRICE_LOOKBACK_DAYS = 7


class DecimalType(click.ParamType):
    """Click parameter type producing Decimal values."""

    name = "decimal"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            result = Decimal(str(value))
        except decimal.InvalidOperation:
            self.fail(f"{value!r} is not a valid number", param, ctx)
        if not result.is_finite():
            self.fail(f"{value!r} is not a valid number", param, ctx)
        return result


DECIMAL = DecimalType()


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _parse_date(value: str, field_name: str = "date") -> date:
    try:
        return parse_date(value, field_name)
    except ConfigurationError as e:
        _fail(str(e))


def _parse_weights(raw_weights: tuple[str, ...]) -> dict[str, Decimal]:
    weights: dict[str, Decimal] = {}
    for raw in raw_weights:
        symbol, sep, weight = raw.partition("=")
        if not sep or not symbol.strip():
            _fail(f"Invalid weight {raw!r}. Use SYMBOL=WEIGHT.")
        symbol = normalize_symbol(symbol)
        if symbol in weights:
            _fail(f"Weight given more than once for {symbol}")
        try:
            value = Decimal(weight.strip())
        except decimal.InvalidOperation:
            _fail(f"Invalid weight {raw!r}. Use SYMBOL=WEIGHT.")
        if not value.is_finite():
            _fail(f"Invalid weight {raw!r}. Use SYMBOL=WEIGHT.")
        weights[symbol] = value
    return weights


def _config(ctx: click.Context) -> AppConfig:
    return ctx.obj["config"]


def _decision_logger(ctx: click.Context) -> DecisionLogger:
    return ctx.obj["decision_logger"]


def _portfolio_path(ctx: click.Context, name: str) -> Path:
    return _config(ctx).portfolio_dir / f"{name}.txt"


def _load(ctx: click.Context, name: str) -> Portfolio:
    path = _portfolio_path(ctx, name)
    if not path.exists():
        _fail(f"Portfolio not found: {name} ({path})")

    try:
        portfolio = load_portfolio(path)
    except PortfolioError as e:
        _fail(str(e))

    decision_logger = _decision_logger(ctx)
    portfolio.attach_decision_logger(decision_logger)
    decision_logger.log_portfolio_loaded(portfolio.name, path, portfolio.holdings.symbols())
    return portfolio


def _save(ctx: click.Context, portfolio: Portfolio) -> Path:
    path = save_portfolio(portfolio, _portfolio_path(ctx, portfolio.name))
    num_lots = sum(len(lots) for _, lots in portfolio.holdings.items())
    _decision_logger(ctx).log_portfolio_saved(portfolio.name, path, num_lots)
    return path


def _price_index(
    ctx: click.Context,
    portfolio: Portfolio,
    prices: Optional[str],
    start_date: date,
    end_date: date,
) -> PriceIndex:
    """Load prices from a file, or fetch them for the portfolio's symbols."""
    if prices:
        try:
            return load_price_history(prices)
        except DataLoadError as e:
            _fail(f"Could not load prices: {e}")

    holdings = portfolio.holdings
    lot_dates = [lot.date for _, lots in holdings.items() for lot in lots]
    fetch_start = min(lot_dates + [start_date]) - timedelta(days=PRICE_LOOKBACK_DAYS)

    try:
        provider = get_eodhd_provider(cache_dir=str(_config(ctx).cache_dir))
        return provider.build_index(holdings.symbols(), fetch_start, end_date)
    except (DataProviderError, ConfigurationError) as e:
        _fail(f"Could not fetch prices: {e}")


def _format_money(value: Decimal) -> str:
    return f"${value:,.2f}"


@click.group()
@click.version_option(version=__version__, prog_name="stockfolio")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    default=None,
    help="Path to stockfolio configuration YAML file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool):
    """
    Lot-based stock portfolio tracker.

    Buy and sell shares, value a portfolio on any date, rebalance it to
    target weights and chart its performance.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        app_config = load_app_config(config)
    except ConfigurationError as e:
        _fail(f"Could not load config: {e}")

    decision_logger = get_logger(app_config.log_path)
    decision_logger.log_config_loaded(app_config, config)

    ctx.ensure_object(dict)
    ctx.obj["config"] = app_config
    ctx.obj["decision_logger"] = decision_logger


@main.command()
@click.argument("name")
@click.pass_context
def create(ctx: click.Context, name: str):
    """Create an empty portfolio called NAME."""
    path = _portfolio_path(ctx, name)
    if path.exists():
        _fail(f"Portfolio already exists: {name} ({path})")

    portfolio = Portfolio(name, decision_logger=_decision_logger(ctx))
    _decision_logger(ctx).log_portfolio_created(name)
    _save(ctx, portfolio)
    click.echo(f"Created portfolio {name}: {path}")


@main.command()
@click.argument("name")
@click.argument("symbol")
@click.argument("quantity", type=DECIMAL)
@click.option("--date", "-d", "on_date", required=True, help="Purchase date (YYYY-MM-DD)")
@click.pass_context
def buy(ctx: click.Context, name: str, symbol: str, quantity: Decimal, on_date: str):
    """Buy QUANTITY shares of SYMBOL in portfolio NAME."""
    purchase_date = _parse_date(on_date)
    portfolio = _load(ctx, name)

    try:
        portfolio.buy(symbol, quantity, purchase_date)
    except PortfolioError as e:
        _fail(str(e))

    _save(ctx, portfolio)
    click.echo(f"Bought {quantity} {symbol.upper()} on {purchase_date}")


@main.command()
@click.argument("name")
@click.argument("symbol")
@click.argument("quantity", type=DECIMAL)
@click.option("--date", "-d", "on_date", required=True, help="Sale date (YYYY-MM-DD)")
@click.pass_context
def sell(ctx: click.Context, name: str, symbol: str, quantity: Decimal, on_date: str):
    """Sell QUANTITY shares of SYMBOL from portfolio NAME."""
    sale_date = _parse_date(on_date)
    portfolio = _load(ctx, name)

    try:
        portfolio.sell(symbol, quantity, sale_date)
    except PortfolioError as e:
        _fail(str(e))

    _save(ctx, portfolio)
    click.echo(f"Sold {quantity} {symbol.upper()} on {sale_date}")


@main.command()
@click.argument("name")
@click.option("--date", "-d", "on_date", required=True, help="Valuation date (YYYY-MM-DD)")
@click.option(
    "--prices", "-p",
    type=click.Path(exists=True),
    default=None,
    help="Price history CSV/Parquet file (defaults to fetching from EODHD)",
)
@click.pass_context
def value(ctx: click.Context, name: str, on_date: str, prices: Optional[str]):
    """Total value of portfolio NAME on a date."""
    valuation_date = _parse_date(on_date)
    portfolio = _load(ctx, name)
    price_index = _price_index(ctx, portfolio, prices, valuation_date, valuation_date)

    total = portfolio.total_value(valuation_date, price_index)
    click.echo(f"Value of {name} on {valuation_date}: {_format_money(total)}")


@main.command()
@click.argument("name")
@click.option("--date", "-d", "on_date", required=True, help="Date (YYYY-MM-DD)")
@click.pass_context
def composition(ctx: click.Context, name: str, on_date: str):
    """Shares held per symbol in portfolio NAME on a date."""
    as_of = _parse_date(on_date)
    portfolio = _load(ctx, name)

    holdings = portfolio.composition(as_of)
    if not holdings:
        click.echo(f"{name} holds no shares on {as_of}")
        return

    click.echo(f"Composition of {name} on {as_of}:")
    for symbol, quantity in holdings.items():
        click.echo(f"  {symbol}: {quantity}")


@main.command()
@click.argument("name")
@click.option("--date", "-d", "on_date", required=True, help="Date (YYYY-MM-DD)")
@click.option(
    "--prices", "-p",
    type=click.Path(exists=True),
    default=None,
    help="Price history CSV/Parquet file (defaults to fetching from EODHD)",
)
@click.pass_context
def distribution(ctx: click.Context, name: str, on_date: str, prices: Optional[str]):
    """Value held per symbol in portfolio NAME on a date."""
    as_of = _parse_date(on_date)
    portfolio = _load(ctx, name)
    price_index = _price_index(ctx, portfolio, prices, as_of, as_of)

    try:
        values = portfolio.distribution(as_of, price_index)
    except PortfolioError as e:
        _fail(str(e))

    click.echo(f"Distribution of value in {name} on {as_of}:")
    for symbol, symbol_value in values.items():
        click.echo(f"  {symbol}: {_format_money(symbol_value)}")


@main.command()
@click.argument("name")
@click.option("--date", "-d", "on_date", required=True, help="Rebalance date (YYYY-MM-DD)")
@click.option(
    "--weight", "-w", "raw_weights",
    multiple=True,
    required=True,
    help="Target weight as SYMBOL=WEIGHT (repeatable, weights sum to 1)",
)
@click.option(
    "--prices", "-p",
    type=click.Path(exists=True),
    default=None,
    help="Price history CSV/Parquet file (defaults to fetching from EODHD)",
)
@click.pass_context
def rebalance(
    ctx: click.Context,
    name: str,
    on_date: str,
    raw_weights: tuple[str, ...],
    prices: Optional[str],
):
    """Rebalance portfolio NAME to target weights."""
    rebalance_date = _parse_date(on_date)
    weights = _parse_weights(raw_weights)
    portfolio = _load(ctx, name)
    price_index = _price_index(ctx, portfolio, prices, rebalance_date, rebalance_date)

    try:
        portfolio.rebalance(
            rebalance_date,
            price_index,
            weights,
            tolerance=_config(ctx).rebalance_tolerance,
        )
    except PortfolioError as e:
        _fail(str(e))

    _save(ctx, portfolio)
    click.echo(f"Rebalanced {name} on {rebalance_date}:")
    for symbol, quantity in portfolio.composition(rebalance_date).items():
        click.echo(f"  {symbol}: {quantity}")


@main.command()
@click.argument("name")
@click.option("--start", "-s", "start", required=True, help="Start date (YYYY-MM-DD)")
@click.option("--end", "-e", "end", required=True, help="End date (YYYY-MM-DD)")
@click.option(
    "--prices", "-p",
    type=click.Path(exists=True),
    default=None,
    help="Price history CSV/Parquet file (defaults to fetching from EODHD)",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Also write the samples to this CSV file",
)
@click.pass_context
def performance(
    ctx: click.Context,
    name: str,
    start: str,
    end: str,
    prices: Optional[str],
    output: Optional[str],
):
    """Monthly value of portfolio NAME between two dates."""
    start_date = _parse_date(start, "start")
    end_date = _parse_date(end, "end")
    portfolio = _load(ctx, name)
    price_index = _price_index(ctx, portfolio, prices, start_date, end_date)

    samples = portfolio.values_over_time(start_date, end_date, price_index)
    for sample_date, sample_value in samples:
        click.echo(f"{sample_date}: {_format_money(sample_value)}")

    if output:
        path = save_performance(samples, output)
        click.echo(f"Samples saved: {path}")


@main.command()
@click.argument("name")
@click.option("--start", "-s", "start", required=True, help="Start date (YYYY-MM-DD)")
@click.option("--end", "-e", "end", required=True, help="End date (YYYY-MM-DD)")
@click.option(
    "--prices", "-p",
    type=click.Path(exists=True),
    default=None,
    help="Price history CSV/Parquet file (defaults to fetching from EODHD)",
)
@click.pass_context
def chart(ctx: click.Context, name: str, start: str, end: str, prices: Optional[str]):
    """Text performance chart of portfolio NAME between two dates."""
    start_date = _parse_date(start, "start")
    end_date = _parse_date(end, "end")
    portfolio = _load(ctx, name)
    price_index = _price_index(ctx, portfolio, prices, start_date, end_date)

    config = _config(ctx)
    performance_chart = portfolio.performance_chart(
        start_date,
        end_date,
        price_index,
        max_rows=config.chart_max_rows,
        width=config.chart_width,
    )
    click.echo(render_chart(name, performance_chart))


if __name__ == "__main__":
    main()

"""CLI entry point for the trading journal."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

from .analytics import TradeAnalytics
from .core.enums import ExportFormat
from .core.errors import TradingJournalError
from .observability.logger import get_logger, setup_logging


def _common(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every report command."""
    options = [
        click.argument("trades_file", type=click.Path(exists=True, dir_okay=False)),
        click.option("--pairing-method", default=None, help="FIFO or LIFO (default from config)"),
        click.option("--start", default=None, help="Start date, inclusive (YYYY-MM-DD)"),
        click.option("--end", default=None, help="End date, inclusive (YYYY-MM-DD)"),
        click.option(
            "--format", "fmt",
            type=click.Choice([f.value for f in ExportFormat]),
            default=ExportFormat.JSON.value,
            help="Output format",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _analytics(ctx: click.Context, trades_file: str) -> TradeAnalytics:
    from .journal.loader import load_trades

    try:
        trades = load_trades(trades_file)
    except TradingJournalError as exc:
        raise click.ClickException(str(exc)) from exc
    return TradeAnalytics(trades, ctx.obj["settings"])


def _emit(result: Any, fmt: str) -> None:
    from .journal.export import ReportExporter

    click.echo(ReportExporter().render(result, fmt))


@click.group()
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--log-level", default=None, help="Override log level")
@click.option("--log-format", default=None, type=click.Choice(["json", "console"]))
@click.pass_context
def main(ctx: click.Context, config: str | None, log_level: str | None, log_format: str | None) -> None:
    """Trade matching and performance analytics."""
    from .core.config import load_settings

    overrides: dict = {}
    if log_level:
        overrides.setdefault("observability", {})["log_level"] = log_level
    if log_format:
        overrides.setdefault("observability", {})["log_format"] = log_format

    try:
        settings = load_settings(config, overrides)
    except TradingJournalError as exc:
        raise click.ClickException(str(exc)) from exc

    setup_logging(settings.observability.log_level, settings.observability.log_format)
    get_logger(__name__).debug("cli_started", config=config)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@main.command()
@_common
@click.option("--open", "show_open", is_flag=True, help="Print open lots instead of pairs")
@click.pass_context
def pairs(ctx, trades_file, pairing_method, start, end, fmt, show_open) -> None:
    """Realized entry/exit pairs (or open lots)."""
    from .core.models import DateRange, filter_pairs

    matched, open_trades = _analytics(ctx, trades_file).paired_trades(pairing_method)
    if show_open:
        _emit(open_trades, fmt)
    else:
        _emit(filter_pairs(matched, DateRange(start=start, end=end)), fmt)


@main.command()
@_common
@click.pass_context
def positions(ctx, trades_file, pairing_method, start, end, fmt) -> None:
    """Position lifecycles, newest first."""
    _emit(_analytics(ctx, trades_file).position_groups(pairing_method, start, end), fmt)


@main.command()
@_common
@click.pass_context
def metrics(ctx, trades_file, pairing_method, start, end, fmt) -> None:
    """Portfolio summary statistics."""
    _emit(_analytics(ctx, trades_file).metrics(pairing_method, start, end), fmt)


@main.command()
@_common
@click.pass_context
def equity(ctx, trades_file, pairing_method, start, end, fmt) -> None:
    """Daily equity curve with drawdown figures."""
    curve = _analytics(ctx, trades_file).equity_curve(pairing_method, start, end)
    _emit(curve if fmt == ExportFormat.JSON.value else curve.equity_points, fmt)


@main.command()
@_common
@click.option("--concentration-pct", default=None, type=float, help="Top share of trades, 5-30")
@click.pass_context
def distribution(ctx, trades_file, pairing_method, start, end, fmt, concentration_pct) -> None:
    """P&L histogram, concentration and stability insights."""
    data = _analytics(ctx, trades_file).distribution(
        pairing_method, start, end, concentration_pct
    )
    _emit(data if fmt == ExportFormat.JSON.value else data.histogram, fmt)


@main.command()
@_common
@click.pass_context
def tilt(ctx, trades_file, pairing_method, start, end, fmt) -> None:
    """Behavioural tilt score and coaching."""
    stats = _analytics(ctx, trades_file).tilt(pairing_method, start, end)
    _emit(stats if fmt == ExportFormat.JSON.value else stats.streak_stats, fmt)


@main.command()
@_common
@click.pass_context
def evaluation(ctx, trades_file, pairing_method, start, end, fmt) -> None:
    """Weekday, day, hour, symbol and strategy breakdowns."""
    report = _analytics(ctx, trades_file).evaluation(pairing_method, start, end)
    _emit(report if fmt == ExportFormat.JSON.value else report.symbol_performance, fmt)


@main.command()
@_common
@click.pass_context
def symbols(ctx, trades_file, pairing_method, start, end, fmt) -> None:
    """Realized P&L and open quantity per underlying."""
    _emit(_analytics(ctx, trades_file).symbol_pnl(pairing_method, start, end), fmt)


@main.command()
@_common
@click.pass_context
def daily(ctx, trades_file, pairing_method, start, end, fmt) -> None:
    """Net P&L per exit date, newest first."""
    from .core.models import DateRange

    date_range = DateRange(start=start, end=end)
    days = _analytics(ctx, trades_file).daily_pnl(pairing_method)
    _emit([d for d in days if date_range.contains(d.date)], fmt)


if __name__ == "__main__":
    main()

"""Summary statistics over matched pairs and position groups.

Trades are counted as pairs, not fills: a position closed in three
partial exits contributes three pairs to win/loss counts and streaks,
but only one figure to ``largest_win``/``largest_loss``, which are taken
from position-group totals.

Usage::

    pairs, _ = match_trades(trades)
    groups = group_positions(trades, pairs)
    metrics = compute_metrics(pairs, groups, DateRange(start="2024-01-01"))
    print(metrics.win_rate, metrics.expectancy, metrics.max_drawdown)
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
from pydantic import BaseModel, Field

from ..core.models import DateRange, PairedTrade, PositionGroup, Trade, filter_pairs
from ..core.timestamps import date_part, parse_timestamp
from .symbols import underlying_symbol

logger = logging.getLogger(__name__)


class SymbolBreakdown(BaseModel):
    symbol: str
    trade_count: int
    profit_loss: float


class DailyPnL(BaseModel):
    date: str
    profit_loss: float
    trade_count: int


class Metrics(BaseModel):
    """Portfolio summary for one query."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    average_profit: float = 0.0
    average_loss: float = 0.0  # Magnitude
    total_profit_loss: float = 0.0
    total_fees: float = 0.0
    net_profit: float = 0.0
    average_trade: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0  # Negative or zero
    largest_win_group_id: int | None = None
    largest_loss_group_id: int | None = None
    profit_factor: float = 0.0
    risk_reward_ratio: float = 0.0
    expectancy: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    consecutive_wins: int = 0
    consecutive_losses: int = 0
    current_win_streak: int = 0
    current_loss_streak: int = 0
    average_holding_time_seconds: float = 0.0
    average_gain_pct: float = 0.0
    average_loss_pct: float = 0.0
    largest_win_pct: float = 0.0
    largest_loss_pct: float = 0.0
    total_volume: float = 0.0
    best_day: float = 0.0
    best_day_date: str | None = None
    worst_day: float = 0.0
    worst_day_date: str | None = None
    trades_per_day: float = 0.0

    # Pairs with an attributed strategy only
    strategy_win_rate: float = 0.0
    strategy_winning_trades: int = 0
    strategy_losing_trades: int = 0
    strategy_profit_loss: float = 0.0
    strategy_consecutive_wins: int = 0
    strategy_consecutive_losses: int = 0

    trades_by_symbol: list[SymbolBreakdown] = Field(default_factory=list)


# ------------------------------------------------------------------ #
# Helpers                                                              #
# ------------------------------------------------------------------ #

def finite(value: float) -> float:
    """Replace NaN/inf with 0 before a value leaves the engine."""
    return value if math.isfinite(value) else 0.0


def safe_ratio(numerator: float, denominator: float) -> float:
    """``numerator / denominator``, or 0 when undefined or infinite."""
    if denominator == 0:
        return 0.0
    return finite(numerator / denominator)


@dataclass
class _Streaks:
    """Max and trailing win/loss runs over a P&L sequence."""

    max_wins: int = 0
    max_losses: int = 0
    current_wins: int = 0
    current_losses: int = 0

    def record(self, pnl: float) -> None:
        if pnl > 0:
            self.current_wins += 1
            self.current_losses = 0
            self.max_wins = max(self.max_wins, self.current_wins)
        elif pnl < 0:
            self.current_losses += 1
            self.current_wins = 0
            self.max_losses = max(self.max_losses, self.current_losses)


def _by_exit(pairs: Iterable[PairedTrade]) -> list[PairedTrade]:
    return sorted(pairs, key=lambda p: p.exit_timestamp)


def holding_seconds(pair: PairedTrade) -> int | None:
    """Whole seconds held, or None if unparseable or negative."""
    entry = parse_timestamp(pair.entry_timestamp)
    exit_ = parse_timestamp(pair.exit_timestamp)
    if entry is None or exit_ is None:
        return None
    seconds = int((exit_ - entry).total_seconds())
    return seconds if seconds >= 0 else None


def daily_pnl(
    pairs: Iterable[PairedTrade],
    trades: Iterable[Trade] | None = None,
) -> list[DailyPnL]:
    """Net P&L per exit date, newest first.

    ``trade_count`` counts filled trades on that date when ``trades`` is
    given, otherwise the pairs closed that day.
    """
    pnl: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)

    for pair in pairs:
        day = date_part(pair.exit_timestamp)
        pnl[day] += pair.net_profit_loss
        if trades is None:
            counts[day] += 1

    if trades is not None:
        for trade in trades:
            if trade.is_filled:
                day = date_part(trade.timestamp)
                counts[day] += 1
                pnl.setdefault(day, 0.0)

    return [
        DailyPnL(date=day, profit_loss=pnl[day], trade_count=counts.get(day, 0))
        for day in sorted(pnl, reverse=True)
    ]


def _max_drawdown(groups: Sequence[PositionGroup]) -> float:
    ordered = sorted(groups, key=lambda g: g.entry_trade.timestamp)
    if not ordered:
        return 0.0
    equity = np.cumsum([g.total_pnl for g in ordered])
    peaks = np.maximum.accumulate(np.concatenate(([0.0], equity)))[1:]
    return float(np.max(peaks - equity))


def _symbol_breakdown(pairs: Sequence[PairedTrade]) -> list[SymbolBreakdown]:
    counts: dict[str, int] = defaultdict(int)
    pnl: dict[str, float] = defaultdict(float)
    for pair in pairs:
        symbol = underlying_symbol(pair.symbol)
        counts[symbol] += 1
        pnl[symbol] += pair.net_profit_loss
    return [
        SymbolBreakdown(symbol=s, trade_count=counts[s], profit_loss=pnl[s])
        for s in sorted(counts)
    ]


# ------------------------------------------------------------------ #
# Aggregation                                                          #
# ------------------------------------------------------------------ #

def compute_metrics(
    pairs: Iterable[PairedTrade],
    position_groups: Iterable[PositionGroup],
    date_range: DateRange | None = None,
) -> Metrics:
    """Compute the portfolio summary.

    Parameters
    ----------
    pairs : Iterable[PairedTrade]
        Matcher output; filtered by exit timestamp.
    position_groups : Iterable[PositionGroup]
        Grouper output; filtered by entry timestamp.
    date_range : DateRange | None
        Inclusive range.  ``None`` keeps everything.

    Returns
    -------
    Metrics
        All-zero for empty input.  Every float is finite.
    """
    scoped = _by_exit(filter_pairs(list(pairs), date_range))
    groups = [
        g for g in position_groups
        if date_range is None or date_range.contains(g.entry_trade.timestamp)
    ]

    m = Metrics()
    n = len(scoped)
    m.total_trades = n

    # Position-level extremes
    for group in groups:
        if group.total_pnl > m.largest_win:
            m.largest_win = group.total_pnl
            m.largest_win_group_id = group.entry_trade.id
        if group.total_pnl < m.largest_loss:
            m.largest_loss = group.total_pnl
            m.largest_loss_group_id = group.entry_trade.id
    m.max_drawdown = _max_drawdown(groups)
    m.total_volume = sum(
        t.quantity * t.price for g in groups for t in g.position_trades
    )

    if n == 0:
        return m

    pnl = np.array([p.net_profit_loss for p in scoped])
    wins = pnl[pnl > 0]
    losses = pnl[pnl < 0]

    m.winning_trades = int(wins.size)
    m.losing_trades = int(losses.size)
    m.win_rate = m.winning_trades / n
    loss_rate = m.losing_trades / n

    gross_profit = float(np.sum(wins)) if wins.size else 0.0
    gross_loss = abs(float(np.sum(losses))) if losses.size else 0.0
    m.average_profit = gross_profit / wins.size if wins.size else 0.0
    m.average_loss = gross_loss / losses.size if losses.size else 0.0

    m.total_profit_loss = float(np.sum(pnl))
    m.net_profit = m.total_profit_loss
    m.average_trade = m.total_profit_loss / n
    m.total_fees = sum(p.total_fees for p in scoped)

    m.profit_factor = safe_ratio(gross_profit, gross_loss)
    m.risk_reward_ratio = safe_ratio(m.average_profit, m.average_loss)
    m.expectancy = m.win_rate * m.average_profit - loss_rate * m.average_loss

    if n > 1:
        std = float(np.std(pnl, ddof=1))
        m.sharpe_ratio = safe_ratio(float(np.mean(pnl)), std)

    streaks = _Streaks()
    for value in pnl:
        streaks.record(float(value))
    m.consecutive_wins = streaks.max_wins
    m.consecutive_losses = streaks.max_losses
    m.current_win_streak = streaks.current_wins
    m.current_loss_streak = streaks.current_losses

    held = [s for s in (holding_seconds(p) for p in scoped) if s is not None]
    if held:
        m.average_holding_time_seconds = sum(held) / len(held)

    _price_move_stats(m, scoped)
    _strategy_stats(m, scoped)
    _daily_stats(m, scoped, groups, date_range)
    m.trades_by_symbol = _symbol_breakdown(scoped)

    logger.debug(
        "Metrics over %d pairs: win_rate=%.4f pnl=%.2f",
        n, m.win_rate, m.total_profit_loss,
    )
    return _finalize(m)


def _price_move_stats(m: Metrics, pairs: Sequence[PairedTrade]) -> None:
    """Percent move from entry to exit price, split by P&L outcome."""
    gains: list[float] = []
    losses: list[float] = []
    for pair in pairs:
        if pair.entry_price <= 0:
            continue
        pct = (pair.exit_price - pair.entry_price) / pair.entry_price * 100
        if pair.net_profit_loss > 0:
            gains.append(pct)
            m.largest_win_pct = max(m.largest_win_pct, pct)
        elif pair.net_profit_loss < 0:
            losses.append(pct)
            m.largest_loss_pct = min(m.largest_loss_pct, pct)
    if gains:
        m.average_gain_pct = sum(gains) / len(gains)
    if losses:
        m.average_loss_pct = sum(losses) / len(losses)


def _strategy_stats(m: Metrics, pairs: Sequence[PairedTrade]) -> None:
    tagged = [p for p in pairs if p.strategy_id is not None]
    streaks = _Streaks()
    for pair in tagged:
        pnl = pair.net_profit_loss
        m.strategy_profit_loss += pnl
        if pnl > 0:
            m.strategy_winning_trades += 1
        elif pnl < 0:
            m.strategy_losing_trades += 1
        streaks.record(pnl)
    m.strategy_consecutive_wins = streaks.max_wins
    m.strategy_consecutive_losses = streaks.max_losses
    decided = m.strategy_winning_trades + m.strategy_losing_trades
    m.strategy_win_rate = safe_ratio(m.strategy_winning_trades, decided)


def _daily_stats(
    m: Metrics,
    pairs: Sequence[PairedTrade],
    groups: Sequence[PositionGroup],
    date_range: DateRange | None,
) -> None:
    fills = [t for g in groups for t in g.position_trades]
    days = [
        d for d in daily_pnl(pairs, fills)
        if date_range is None or date_range.contains(d.date)
    ]
    if not days:
        return
    # Oldest first so ties resolve to the earliest date
    chronological = days[::-1]
    best = max(chronological, key=lambda d: d.profit_loss)
    worst = min(chronological, key=lambda d: d.profit_loss)
    m.best_day, m.best_day_date = best.profit_loss, best.date
    m.worst_day, m.worst_day_date = worst.profit_loss, worst.date
    m.trades_per_day = len(pairs) / len(days)


def _finalize(m: Metrics) -> Metrics:
    for name, info in Metrics.model_fields.items():
        if info.annotation is float:
            setattr(m, name, finite(getattr(m, name)))
    return m

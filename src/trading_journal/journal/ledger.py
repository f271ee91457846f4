"""Ledger views over matcher output: per symbol, per trade, per strategy.

Usage::

    pairs, open_trades = match_trades(trades)
    rows = symbol_pnl(pairs, open_trades)
    latest = recent_trades(pairs, limit=5)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from pydantic import BaseModel, Field

from ..core.enums import SymbolConvention
from ..core.models import DateRange, PairedTrade, PositionGroup, Trade, filter_pairs
from .evaluation import strategy_label
from .metrics import safe_ratio
from .positions import position_strategy_map, resolve_strategy
from .symbols import underlying_symbol

logger = logging.getLogger(__name__)


class SymbolPnL(BaseModel):
    symbol: str
    closed_positions: int = 0
    open_position_qty: float = 0.0
    total_gross_pnl: float = 0.0
    total_net_pnl: float = 0.0
    total_fees: float = 0.0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0


class TradeWithPairing(BaseModel):
    trade: Trade
    entry_pairs: list[PairedTrade] = Field(default_factory=list)
    exit_pairs: list[PairedTrade] = Field(default_factory=list)


class RecentTrade(BaseModel):
    symbol: str
    entry_timestamp: str
    exit_timestamp: str
    quantity: float
    entry_price: float
    exit_price: float
    net_profit_loss: float
    strategy_name: str | None = None


class StrategyPerformance(BaseModel):
    strategy_id: int | None = None
    strategy_name: str
    trade_count: int = 0
    total_volume: float = 0.0
    estimated_pnl: float = 0.0


@dataclass
class _SymbolAccumulator:
    closed: int = 0
    open_qty: float = 0.0
    gross: float = 0.0
    net: float = 0.0
    fees: float = 0.0
    wins: int = 0
    losses: int = 0

    def record(self, pair: PairedTrade) -> None:
        self.closed += 1
        self.gross += pair.gross_profit_loss
        self.net += pair.net_profit_loss
        self.fees += pair.total_fees
        if pair.net_profit_loss > 0:
            self.wins += 1
        elif pair.net_profit_loss < 0:
            self.losses += 1


def symbol_pnl(
    pairs: Iterable[PairedTrade],
    open_trades: Iterable[Trade] = (),
    date_range: DateRange | None = None,
    convention: SymbolConvention = SymbolConvention.FIRST_DIGIT,
) -> list[SymbolPnL]:
    """Realized P&L and open exposure per underlying symbol.

    ``open_position_qty`` is the absolute net signed quantity of the
    open remainders, so a long and a short in the same underlying offset.
    Rows are sorted by net P&L, best first.
    """
    buckets: dict[str, _SymbolAccumulator] = defaultdict(_SymbolAccumulator)
    for pair in filter_pairs(list(pairs), date_range):
        buckets[underlying_symbol(pair.symbol, convention)].record(pair)
    for trade in open_trades:
        buckets[underlying_symbol(trade.symbol, convention)].open_qty += trade.signed_quantity

    rows = [
        SymbolPnL(
            symbol=symbol,
            closed_positions=acc.closed,
            open_position_qty=abs(acc.open_qty),
            total_gross_pnl=acc.gross,
            total_net_pnl=acc.net,
            total_fees=acc.fees,
            winning_trades=acc.wins,
            losing_trades=acc.losses,
            win_rate=safe_ratio(acc.wins, acc.wins + acc.losses),
        )
        for symbol, acc in buckets.items()
    ]
    rows.sort(key=lambda r: (-r.total_net_pnl, r.symbol))
    return rows


def trades_with_pairing(
    trades: Iterable[Trade],
    pairs: Iterable[PairedTrade],
    date_range: DateRange | None = None,
) -> list[TradeWithPairing]:
    """Each trade with the pairs it opened and the pairs it closed, newest first."""
    scoped = filter_pairs(list(pairs), date_range)
    as_entry: dict[int, list[PairedTrade]] = defaultdict(list)
    as_exit: dict[int, list[PairedTrade]] = defaultdict(list)
    for pair in scoped:
        as_entry[pair.entry_trade_id].append(pair)
        as_exit[pair.exit_trade_id].append(pair)

    selected = [
        t for t in trades
        if date_range is None or date_range.contains(t.timestamp)
    ]
    selected.sort(key=lambda t: (t.timestamp, t.id), reverse=True)
    return [
        TradeWithPairing(
            trade=t,
            entry_pairs=as_entry.get(t.id, []),
            exit_pairs=as_exit.get(t.id, []),
        )
        for t in selected
    ]


def recent_trades(
    pairs: Iterable[PairedTrade],
    limit: int = 5,
    date_range: DateRange | None = None,
    strategy_names: Mapping[int, str] | None = None,
) -> list[RecentTrade]:
    """The ``limit`` most recently closed pairs, newest first."""
    names = strategy_names or {}
    latest = sorted(
        filter_pairs(list(pairs), date_range),
        key=lambda p: p.exit_timestamp,
        reverse=True,
    )[: max(limit, 0)]
    return [
        RecentTrade(
            symbol=p.symbol,
            entry_timestamp=p.entry_timestamp,
            exit_timestamp=p.exit_timestamp,
            quantity=p.quantity,
            entry_price=p.entry_price,
            exit_price=p.exit_price,
            net_profit_loss=p.net_profit_loss,
            strategy_name=(
                strategy_label(p.strategy_id, names) if p.strategy_id is not None else None
            ),
        )
        for p in latest
    ]


def _attributed(
    pairs: Iterable[PairedTrade],
    position_groups: Iterable[PositionGroup],
    trades: Iterable[Trade],
    date_range: DateRange | None,
) -> list[tuple[int | None, PairedTrade]]:
    strategy_map = position_strategy_map(position_groups)
    trades_by_id = {t.id: t for t in trades}
    return [
        (resolve_strategy(p, strategy_map, trades_by_id), p)
        for p in filter_pairs(list(pairs), date_range)
    ]


def strategy_performance(
    pairs: Iterable[PairedTrade],
    position_groups: Iterable[PositionGroup] = (),
    trades: Iterable[Trade] = (),
    date_range: DateRange | None = None,
    strategy_names: Mapping[int, str] | None = None,
) -> list[StrategyPerformance]:
    """Pair count, entry volume and net P&L per attributed strategy.

    Sorted by pair count, busiest first.
    """
    names = strategy_names or {}
    rows: dict[int | None, StrategyPerformance] = {}
    for strategy_id, pair in _attributed(pairs, position_groups, trades, date_range):
        row = rows.get(strategy_id)
        if row is None:
            row = rows[strategy_id] = StrategyPerformance(
                strategy_id=strategy_id,
                strategy_name=strategy_label(strategy_id, names),
            )
        row.trade_count += 1
        row.total_volume += pair.quantity * pair.entry_price
        row.estimated_pnl += pair.net_profit_loss

    return sorted(
        rows.values(),
        key=lambda r: (-r.trade_count, r.strategy_name, r.strategy_id or 0),
    )


def pairs_for_strategy(
    pairs: Iterable[PairedTrade],
    position_groups: Iterable[PositionGroup],
    strategy_id: int | None,
    trades: Iterable[Trade] = (),
    date_range: DateRange | None = None,
) -> list[PairedTrade]:
    """Pairs attributed to ``strategy_id``; ``None`` selects unassigned pairs."""
    return [
        pair
        for sid, pair in _attributed(pairs, position_groups, trades, date_range)
        if sid == strategy_id
    ]

"""Calendar, symbol and strategy breakdowns of realized P&L.

Buckets closed pairs by the weekday, day of month and hour of their
exit, by underlying symbol and by attributed strategy.  Answers
questions like "am I worse on Mondays?" or "which setup carries the
account?".

Usage::

    report = compute_evaluation(pairs, groups, strategy_names={1: "Breakout"})
    monday = report.weekday_performance[0]
    print(monday.win_rate, monday.profit_factor)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from pydantic import BaseModel, Field

from ..core.enums import SymbolConvention
from ..core.models import DateRange, PairedTrade, PositionGroup, Trade, filter_pairs
from ..core.timestamps import parse_timestamp
from .metrics import safe_ratio
from .positions import position_strategy_map, resolve_strategy
from .symbols import underlying_symbol

logger = logging.getLogger(__name__)

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

UNKNOWN_STRATEGY = "Unknown"
UNASSIGNED_STRATEGY = "Unassigned"


class RiskStats(BaseModel):
    """Shared outcome statistics of one bucket."""

    trade_count: int = 0
    total_pnl: float = 0.0
    win_rate: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0  # Magnitude
    payoff_ratio: float = 0.0
    profit_factor: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0


class WeekdayPerformance(RiskStats):
    weekday: int  # 0=Monday
    weekday_name: str


class DayOfMonthPerformance(RiskStats):
    day: int  # 1-31


class TimeOfDayPerformance(RiskStats):
    hour: int  # 0-23
    hour_label: str  # "09:00-09:59"


class SymbolPerformance(RiskStats):
    symbol: str
    average_pnl: float = 0.0


class StrategyPerformanceDetail(RiskStats):
    strategy_id: int | None = None
    strategy_name: str
    average_pnl: float = 0.0


class EvaluationMetrics(BaseModel):
    weekday_performance: list[WeekdayPerformance] = Field(default_factory=list)
    day_of_month_performance: list[DayOfMonthPerformance] = Field(default_factory=list)
    time_of_day_performance: list[TimeOfDayPerformance] = Field(default_factory=list)
    symbol_performance: list[SymbolPerformance] = Field(default_factory=list)
    strategy_performance: list[StrategyPerformanceDetail] = Field(default_factory=list)


@dataclass
class _BucketStats:
    """Accumulator for one bucket."""

    trades: int = 0
    wins: int = 0
    losses: int = 0
    total_pnl: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0

    def record(self, pnl: float) -> None:
        self.trades += 1
        self.total_pnl += pnl
        if pnl > 0:
            self.wins += 1
            self.gross_profit += pnl
        elif pnl < 0:
            self.losses += 1
            self.gross_loss += abs(pnl)

    def to_fields(self) -> dict[str, float | int]:
        average_win = safe_ratio(self.gross_profit, self.wins)
        average_loss = safe_ratio(self.gross_loss, self.losses)
        return {
            "trade_count": self.trades,
            "total_pnl": self.total_pnl,
            "win_rate": safe_ratio(self.wins, self.trades),
            "average_win": average_win,
            "average_loss": average_loss,
            "payoff_ratio": safe_ratio(average_win, average_loss),
            "profit_factor": safe_ratio(self.gross_profit, self.gross_loss),
            "gross_profit": self.gross_profit,
            "gross_loss": self.gross_loss,
        }

    @property
    def average_pnl(self) -> float:
        return safe_ratio(self.total_pnl, self.trades)


def strategy_label(strategy_id: int | None, names: Mapping[int, str]) -> str:
    if strategy_id is None:
        return UNASSIGNED_STRATEGY
    return names.get(strategy_id, UNKNOWN_STRATEGY)


def compute_evaluation(
    pairs: Iterable[PairedTrade],
    position_groups: Iterable[PositionGroup] = (),
    date_range: DateRange | None = None,
    strategy_names: Mapping[int, str] | None = None,
    trades: Iterable[Trade] = (),
    convention: SymbolConvention = SymbolConvention.FIRST_DIGIT,
) -> EvaluationMetrics:
    """Break realized P&L down by calendar, symbol and strategy.

    Parameters
    ----------
    pairs : Iterable[PairedTrade]
        Matcher output, filtered by exit timestamp.
    position_groups : Iterable[PositionGroup]
        Used to attribute pairs to their position's entry strategy.
    date_range : DateRange | None
        Inclusive range.  ``None`` keeps everything.
    strategy_names : Mapping[int, str] | None
        Display names by strategy id.
    trades : Iterable[Trade]
        Raw fills, consulted for entry-trade strategies.
    convention : SymbolConvention
        How option symbols are reduced to their underlying.

    Returns
    -------
    EvaluationMetrics
        Calendar breakdowns always have every bucket (7 weekdays, 31
        days, 24 hours).  Symbol and strategy rows are sorted by total
        P&L, best first.
    """
    scoped = filter_pairs(list(pairs), date_range)
    names = strategy_names or {}
    strategy_map = position_strategy_map(position_groups)
    trades_by_id = {t.id: t for t in trades}

    weekdays: dict[int, _BucketStats] = defaultdict(_BucketStats)
    days: dict[int, _BucketStats] = defaultdict(_BucketStats)
    hours: dict[int, _BucketStats] = defaultdict(_BucketStats)
    symbols: dict[str, _BucketStats] = defaultdict(_BucketStats)
    strategies: dict[int | None, _BucketStats] = defaultdict(_BucketStats)

    for pair in scoped:
        pnl = pair.net_profit_loss
        exit_time = parse_timestamp(pair.exit_timestamp)
        if exit_time is not None:
            weekdays[exit_time.weekday()].record(pnl)
            days[exit_time.day].record(pnl)
            hours[exit_time.hour].record(pnl)
        symbols[underlying_symbol(pair.symbol, convention)].record(pnl)
        strategies[resolve_strategy(pair, strategy_map, trades_by_id)].record(pnl)

    report = EvaluationMetrics(
        weekday_performance=[
            WeekdayPerformance(weekday=d, weekday_name=DAY_NAMES[d], **weekdays[d].to_fields())
            for d in range(7)
        ],
        day_of_month_performance=[
            DayOfMonthPerformance(day=d, **days[d].to_fields()) for d in range(1, 32)
        ],
        time_of_day_performance=[
            TimeOfDayPerformance(
                hour=h, hour_label=f"{h:02d}:00-{h:02d}:59", **hours[h].to_fields()
            )
            for h in range(24)
        ],
        symbol_performance=sorted(
            (
                SymbolPerformance(symbol=s, average_pnl=b.average_pnl, **b.to_fields())
                for s, b in symbols.items()
            ),
            key=lambda r: (-r.total_pnl, r.symbol),
        ),
        strategy_performance=sorted(
            (
                StrategyPerformanceDetail(
                    strategy_id=sid,
                    strategy_name=strategy_label(sid, names),
                    average_pnl=b.average_pnl,
                    **b.to_fields(),
                )
                for sid, b in strategies.items()
            ),
            key=lambda r: (-r.total_pnl, r.strategy_name, r.strategy_id or 0),
        ),
    )
    logger.debug(
        "Evaluation over %d pairs: %d symbols, %d strategies",
        len(scoped), len(symbols), len(strategies),
    )
    return report

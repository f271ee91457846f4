"""Trade matching and performance analytics for a single trading account."""

from .analytics import TradeAnalytics
from .core.enums import PairingMethod, Side, SymbolConvention
from .core.models import DateRange, PairedTrade, PositionGroup, Trade
from .journal import (
    compute_distribution,
    compute_equity_curve,
    compute_evaluation,
    compute_metrics,
    compute_tilt,
    daily_pnl,
    group_positions,
    match_trades,
    pairs_for_strategy,
    recent_trades,
    strategy_performance,
    symbol_pnl,
    trades_with_pairing,
)

__version__ = "0.1.0"

__all__ = [
    "TradeAnalytics",
    "PairingMethod",
    "Side",
    "SymbolConvention",
    "DateRange",
    "PairedTrade",
    "PositionGroup",
    "Trade",
    "match_trades",
    "group_positions",
    "compute_metrics",
    "compute_equity_curve",
    "compute_distribution",
    "compute_tilt",
    "compute_evaluation",
    "daily_pnl",
    "symbol_pnl",
    "trades_with_pairing",
    "recent_trades",
    "strategy_performance",
    "pairs_for_strategy",
]

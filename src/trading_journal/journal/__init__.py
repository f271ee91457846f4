"""Trade Journal analytics: from raw fills to realized performance.

Every component is a pure function of the matcher's output; nothing is
cached between calls.

Key components
--------------
**Matching & positions**

TradeMatcher          FIFO/LIFO lot matcher producing realized pairs
group_positions       Position lifecycles from open to flat

**Aggregates**

compute_metrics       Win rate, expectancy, drawdown, holding time
compute_equity_curve  Daily equity with drawdown/surge/streak flags
compute_distribution  P&L histogram, concentration and stability
compute_tilt          Performance after losses and coaching text
compute_evaluation    Weekday, day, hour, symbol and strategy breakdowns

**Ledger & I/O**

symbol_pnl            Realized P&L and open exposure per underlying
load_trades           CSV/JSON trade file loader
ReportExporter        JSON/CSV report rendering
"""

from .distribution import DistributionData, compute_distribution
from .equity import EquityCurveData, compute_equity_curve
from .evaluation import EvaluationMetrics, compute_evaluation
from .export import ReportExporter
from .ledger import (
    pairs_for_strategy,
    recent_trades,
    strategy_performance,
    symbol_pnl,
    trades_with_pairing,
)
from .loader import load_trades
from .matcher import QTY_EPSILON, TradeMatcher, match_trades
from .metrics import Metrics, compute_metrics, daily_pnl
from .positions import group_positions
from .symbols import is_option, underlying_symbol
from .tilt import TiltStats, compute_tilt

__all__ = [
    "QTY_EPSILON",
    "TradeMatcher",
    "match_trades",
    "group_positions",
    "Metrics",
    "compute_metrics",
    "daily_pnl",
    "EquityCurveData",
    "compute_equity_curve",
    "DistributionData",
    "compute_distribution",
    "TiltStats",
    "compute_tilt",
    "EvaluationMetrics",
    "compute_evaluation",
    "symbol_pnl",
    "trades_with_pairing",
    "recent_trades",
    "strategy_performance",
    "pairs_for_strategy",
    "is_option",
    "underlying_symbol",
    "load_trades",
    "ReportExporter",
]

"""Query facade over a fixed set of trade fills.

``TradeAnalytics`` mirrors the command surface an application exposes to
its UI: each query takes an optional pairing method and date range,
re-runs the matcher over the full trade list and hands the result to one
analyzer.  Nothing is cached between queries, so the answer always
reflects exactly the trades and policy passed in.

Usage::

    analytics = TradeAnalytics(load_trades("fills.csv"), settings)
    metrics = analytics.metrics(pairing_method="LIFO", start="2024-01-01")
    curve = analytics.equity_curve()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from .core.config import Settings
from .core.enums import PairingMethod
from .core.models import DateRange, PairedTrade, PositionGroup, Trade
from .journal.distribution import DistributionData, compute_distribution
from .journal.equity import EquityCurveData, compute_equity_curve
from .journal.evaluation import EvaluationMetrics, compute_evaluation
from .journal.ledger import (
    RecentTrade,
    StrategyPerformance,
    SymbolPnL,
    TradeWithPairing,
    pairs_for_strategy,
    recent_trades,
    strategy_performance,
    symbol_pnl,
    trades_with_pairing,
)
from .journal.matcher import match_trades
from .journal.metrics import DailyPnL, Metrics, compute_metrics, daily_pnl
from .journal.positions import group_positions
from .journal.tilt import TiltStats, compute_tilt
from .observability.logger import new_run_id
from .observability.metrics import QUERIES_TOTAL, QUERY_SECONDS, record_match

logger = logging.getLogger(__name__)


class TradeAnalytics:
    """Stateless analytics queries over ``trades``.

    Parameters
    ----------
    trades : Iterable[Trade]
        All fills of one account.  Copied; never mutated.
    settings : Settings | None
        Supplies defaults for pairing method, date range, concentration
        percentage, symbol convention and strategy names.
    """

    def __init__(self, trades: Iterable[Trade], settings: Settings | None = None) -> None:
        self._trades: tuple[Trade, ...] = tuple(trades)
        self._settings = settings or Settings()

    @property
    def trades(self) -> tuple[Trade, ...]:
        return self._trades

    # ------------------------------------------------------------------ #
    # Plumbing                                                             #
    # ------------------------------------------------------------------ #

    @contextmanager
    def _query(self, name: str) -> Iterator[None]:
        run_id = new_run_id()
        QUERIES_TOTAL.labels(query=name).inc()
        started = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - started
            QUERY_SECONDS.labels(query=name).observe(elapsed)
            logger.info("Query %s finished in %.4fs (run %s)", name, elapsed, run_id)

    def _method(self, pairing_method: PairingMethod | str | None) -> PairingMethod:
        if pairing_method is None:
            return self._settings.analytics.pairing_method
        return PairingMethod.resolve(pairing_method)

    def _range(self, start: str | None, end: str | None) -> DateRange:
        defaults = self._settings.analytics
        return DateRange(
            start=start if start is not None else defaults.start_date,
            end=end if end is not None else defaults.end_date,
        )

    def _match(
        self, method: PairingMethod, trades: Iterable[Trade] | None = None
    ) -> tuple[list[PairedTrade], list[Trade]]:
        pairs, open_trades = match_trades(self._trades if trades is None else trades, method)
        record_match(method.value, len(pairs), len(open_trades))
        return pairs, open_trades

    def _groups(self, method: PairingMethod, date_range: DateRange) -> list[PositionGroup]:
        # Position views only see fills inside the range
        scoped = [t for t in self._trades if date_range.contains(t.timestamp)]
        pairs, _ = self._match(method, scoped)
        return group_positions(scoped, pairs)

    @property
    def _names(self) -> dict[int, str]:
        return self._settings.analytics.strategy_names

    # ------------------------------------------------------------------ #
    # Queries                                                              #
    # ------------------------------------------------------------------ #

    def paired_trades(
        self, pairing_method: PairingMethod | str | None = None
    ) -> tuple[list[PairedTrade], list[Trade]]:
        """Realized pairs and open-lot remainders over all trades."""
        with self._query("paired_trades"):
            return self._match(self._method(pairing_method))

    def position_groups(
        self,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[PositionGroup]:
        with self._query("position_groups"):
            return self._groups(self._method(pairing_method), self._range(start, end))

    def metrics(
        self,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> Metrics:
        with self._query("metrics"):
            method = self._method(pairing_method)
            date_range = self._range(start, end)
            pairs, _ = self._match(method)
            return compute_metrics(pairs, self._groups(method, date_range), date_range)

    def equity_curve(
        self,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> EquityCurveData:
        with self._query("equity_curve"):
            pairs, _ = self._match(self._method(pairing_method))
            return compute_equity_curve(pairs, self._range(start, end))

    def distribution(
        self,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
        concentration_pct: float | None = None,
    ) -> DistributionData:
        with self._query("distribution"):
            pairs, _ = self._match(self._method(pairing_method))
            pct = (
                concentration_pct if concentration_pct is not None
                else self._settings.analytics.concentration_pct
            )
            return compute_distribution(pairs, self._range(start, end), pct)

    def tilt(
        self,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> TiltStats:
        with self._query("tilt"):
            pairs, _ = self._match(self._method(pairing_method))
            return compute_tilt(pairs, self._range(start, end))

    def evaluation(
        self,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> EvaluationMetrics:
        with self._query("evaluation"):
            method = self._method(pairing_method)
            date_range = self._range(start, end)
            pairs, _ = self._match(method)
            return compute_evaluation(
                pairs,
                self._groups(method, date_range),
                date_range,
                strategy_names=self._names,
                trades=self._trades,
                convention=self._settings.analytics.symbol_convention,
            )

    def symbol_pnl(
        self,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[SymbolPnL]:
        with self._query("symbol_pnl"):
            pairs, open_trades = self._match(self._method(pairing_method))
            return symbol_pnl(
                pairs,
                open_trades,
                self._range(start, end),
                convention=self._settings.analytics.symbol_convention,
            )

    def daily_pnl(self, pairing_method: PairingMethod | str | None = None) -> list[DailyPnL]:
        with self._query("daily_pnl"):
            pairs, _ = self._match(self._method(pairing_method))
            return daily_pnl(pairs, self._trades)

    def trades_with_pairing(
        self,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[TradeWithPairing]:
        with self._query("trades_with_pairing"):
            pairs, _ = self._match(self._method(pairing_method))
            return trades_with_pairing(self._trades, pairs, self._range(start, end))

    def recent_trades(
        self,
        limit: int | None = None,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[RecentTrade]:
        with self._query("recent_trades"):
            pairs, _ = self._match(self._method(pairing_method))
            return recent_trades(
                pairs,
                limit if limit is not None else self._settings.analytics.recent_trades_limit,
                self._range(start, end),
                strategy_names=self._names,
            )

    def strategy_performance(
        self,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[StrategyPerformance]:
        with self._query("strategy_performance"):
            method = self._method(pairing_method)
            date_range = self._range(start, end)
            pairs, _ = self._match(method)
            return strategy_performance(
                pairs,
                self._groups(method, date_range),
                self._trades,
                date_range,
                strategy_names=self._names,
            )

    def pairs_for_strategy(
        self,
        strategy_id: int | None,
        pairing_method: PairingMethod | str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[PairedTrade]:
        with self._query("pairs_for_strategy"):
            method = self._method(pairing_method)
            date_range = self._range(start, end)
            pairs, _ = self._match(method)
            return pairs_for_strategy(
                pairs,
                self._groups(method, date_range),
                strategy_id,
                self._trades,
                date_range,
            )

"""Daily equity curve with drawdown, surge and streak annotations.

Pairs are summed into net P&L per exit date and walked oldest to
newest.  The walk records cumulative equity, the running peak and the
drawdown from it, and collects date ranges for the deepest drawdown,
the longest drawdown, the best surge and every winning/losing day
streak.  A second pass back-annotates each point with flags from those
ranges, so a point is flagged by where the final ranges ended up rather
than by what was known on that day.

Usage::

    curve = compute_equity_curve(pairs)
    for point in curve.equity_points:
        print(point.date, point.cumulative_pnl, point.is_max_drawdown)
    print(curve.drawdown_metrics.longest_drawdown_days)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from ..core.models import DateRange, PairedTrade, filter_pairs
from ..core.timestamps import date_part
from .metrics import finite

logger = logging.getLogger(__name__)


class EquityPoint(BaseModel):
    date: str
    cumulative_pnl: float
    daily_pnl: float
    peak_equity: float
    drawdown: float
    drawdown_pct: float
    is_winning_streak: bool = False
    is_losing_streak: bool = False
    is_max_drawdown: bool = False
    is_best_surge: bool = False


class DrawdownMetrics(BaseModel):
    max_drawdown: float = 0.0
    max_drawdown_pct: float = 0.0
    max_drawdown_start: str | None = None
    max_drawdown_end: str | None = None
    avg_drawdown: float = 0.0
    longest_drawdown_days: int = 0
    longest_drawdown_start: str | None = None
    longest_drawdown_end: str | None = None


class EquityCurveData(BaseModel):
    equity_points: list[EquityPoint] = Field(default_factory=list)
    drawdown_metrics: DrawdownMetrics = Field(default_factory=DrawdownMetrics)
    best_surge_start: str | None = None
    best_surge_end: str | None = None
    best_surge_value: float = 0.0


DateSpan = tuple[str, str]


@dataclass
class _Run:
    """An open run of consecutive days."""

    start: str | None = None
    end: str | None = None
    days: int = 0
    total: float = 0.0

    def extend(self, day: str, value: float = 0.0) -> None:
        if self.start is None:
            self.start = day
        self.end = day
        self.days += 1
        self.total += value

    def span(self) -> DateSpan | None:
        if self.start is None or self.end is None:
            return None
        return (self.start, self.end)


@dataclass
class _Walk:
    """Mutable state of the ascending date walk."""

    cumulative: float = 0.0
    peak: float = 0.0
    drawdown_run: _Run = field(default_factory=_Run)
    drawdown_sum: float = 0.0
    drawdown_days: int = 0

    max_drawdown: float = 0.0
    max_drawdown_peak: float = 0.0
    max_drawdown_span: DateSpan | None = None
    longest: _Run = field(default_factory=_Run)

    surge_run: _Run = field(default_factory=_Run)
    best_surge: _Run = field(default_factory=_Run)

    win_run: _Run = field(default_factory=_Run)
    loss_run: _Run = field(default_factory=_Run)
    winning_spans: list[DateSpan] = field(default_factory=list)
    losing_spans: list[DateSpan] = field(default_factory=list)

    def close_drawdown(self) -> None:
        if self.drawdown_run.days > self.longest.days:
            self.longest = self.drawdown_run
        self.drawdown_run = _Run()

    def close_surge(self) -> None:
        if self.surge_run.total > self.best_surge.total:
            self.best_surge = self.surge_run
        self.surge_run = _Run()

    def close_streak(self, run: _Run, spans: list[DateSpan]) -> _Run:
        span = run.span()
        if span is not None:
            spans.append(span)
        return _Run()


def _drawdown_pct(drawdown: float, peak: float) -> float:
    if peak == 0:
        return 0.0
    return drawdown / abs(peak) * 100


def _within(day: str, span: DateSpan | None) -> bool:
    return span is not None and span[0] <= day <= span[1]


def compute_equity_curve(
    pairs: Iterable[PairedTrade],
    date_range: DateRange | None = None,
) -> EquityCurveData:
    """Build the daily equity curve.

    Parameters
    ----------
    pairs : Iterable[PairedTrade]
        Matcher output, filtered by exit timestamp.
    date_range : DateRange | None
        Inclusive range.  ``None`` keeps everything.

    Returns
    -------
    EquityCurveData
        One point per exit date, ascending, plus drawdown and surge
        summaries.  Empty input gives an empty curve.
    """
    scoped = sorted(filter_pairs(list(pairs), date_range), key=lambda p: p.exit_timestamp)

    daily: dict[str, float] = defaultdict(float)
    for pair in scoped:
        daily[date_part(pair.exit_timestamp)] += pair.net_profit_loss

    walk = _Walk()
    points: list[EquityPoint] = []

    for day in sorted(daily):
        pnl = daily[day]
        walk.cumulative += pnl
        walk.peak = max(walk.peak, walk.cumulative)
        drawdown = walk.peak - walk.cumulative

        # Drawdown runs
        if drawdown > 0:
            walk.drawdown_run.extend(day, drawdown)
            walk.drawdown_sum += drawdown
            walk.drawdown_days += 1
            if drawdown > walk.max_drawdown:
                walk.max_drawdown = drawdown
                walk.max_drawdown_peak = walk.peak
                walk.max_drawdown_span = (walk.drawdown_run.start or day, day)
        else:
            walk.close_drawdown()

        # Surges are uninterrupted runs of up days
        if pnl > 0:
            walk.surge_run.extend(day, pnl)
        else:
            walk.close_surge()

        # Day streaks; flat days neither extend nor break a run
        if pnl > 0:
            walk.loss_run = walk.close_streak(walk.loss_run, walk.losing_spans)
            walk.win_run.extend(day)
        elif pnl < 0:
            walk.win_run = walk.close_streak(walk.win_run, walk.winning_spans)
            walk.loss_run.extend(day)

        points.append(EquityPoint(
            date=day,
            cumulative_pnl=walk.cumulative,
            daily_pnl=pnl,
            peak_equity=walk.peak,
            drawdown=drawdown,
            drawdown_pct=finite(_drawdown_pct(drawdown, walk.peak)),
        ))

    walk.close_drawdown()
    walk.close_surge()
    walk.win_run = walk.close_streak(walk.win_run, walk.winning_spans)
    walk.loss_run = walk.close_streak(walk.loss_run, walk.losing_spans)

    surge_span = walk.best_surge.span()
    for point in points:
        point.is_max_drawdown = _within(point.date, walk.max_drawdown_span)
        point.is_best_surge = _within(point.date, surge_span)
        point.is_winning_streak = any(_within(point.date, s) for s in walk.winning_spans)
        point.is_losing_streak = any(_within(point.date, s) for s in walk.losing_spans)

    drawdown_metrics = DrawdownMetrics(
        max_drawdown=walk.max_drawdown,
        max_drawdown_pct=finite(_drawdown_pct(walk.max_drawdown, walk.max_drawdown_peak)),
        max_drawdown_start=walk.max_drawdown_span[0] if walk.max_drawdown_span else None,
        max_drawdown_end=walk.max_drawdown_span[1] if walk.max_drawdown_span else None,
        avg_drawdown=walk.drawdown_sum / walk.drawdown_days if walk.drawdown_days else 0.0,
        longest_drawdown_days=walk.longest.days,
        longest_drawdown_start=walk.longest.start,
        longest_drawdown_end=walk.longest.end,
    )

    logger.debug(
        "Equity curve: %d days, max drawdown %.2f", len(points), walk.max_drawdown
    )
    return EquityCurveData(
        equity_points=points,
        drawdown_metrics=drawdown_metrics,
        best_surge_start=walk.best_surge.start,
        best_surge_end=walk.best_surge.end,
        best_surge_value=walk.best_surge.total,
    )

"""Distribution and concentration of realized per-pair P&L.

Answers "is my edge broad or carried by a handful of trades?".  Builds a
histogram of pair net P&L laid out around zero, measures how much of the
total profit (loss) the top (worst) k trades account for, folds that
and the mean/median gap into a 0-100 stability score, and renders plain
language insights from fixed threshold bands.

Usage::

    data = compute_distribution(pairs, concentration_pct=10)
    print(data.concentration.stability_score)
    for line in data.concentration.insights:
        print(line)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

import numpy as np
from pydantic import BaseModel, Field

from ..core.models import DateRange, PairedTrade, filter_pairs

logger = logging.getLogger(__name__)

MAX_BINS = 20
MIN_BIN_SPAN = 10.0

DEFAULT_CONCENTRATION_PCT = 10.0
MIN_CONCENTRATION_PCT = 5.0
MAX_CONCENTRATION_PCT = 30.0

SMALL_SAMPLE = 30

PROFIT_THRESHOLD = 0.4
LOSS_THRESHOLD = 0.4

NO_TRADES_INSIGHT = "No trades in the selected timeframe."


class HistogramBin(BaseModel):
    bin_start: float
    bin_end: float
    count: int
    total_pnl: float


class ConcentrationStats(BaseModel):
    total_trades: int = 0
    profitable_trades_count: int = 0
    losing_trades_count: int = 0
    top_k: int = 0
    profit_share_top: float = 0.0
    loss_share_top: float = 0.0
    mean_return: float = 0.0
    median_return: float = 0.0
    stability_score: float = 100.0
    insights: list[str] = Field(default_factory=list)


class DistributionData(BaseModel):
    histogram: list[HistogramBin] = Field(default_factory=list)
    concentration: ConcentrationStats = Field(default_factory=ConcentrationStats)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _fmt_pct(value: float) -> str:
    # 10.0 -> "10", 12.5 -> "12.5"
    return f"{value:g}"


# ------------------------------------------------------------------ #
# Histogram                                                            #
# ------------------------------------------------------------------ #

def build_histogram(values: np.ndarray) -> list[HistogramBin]:
    """Bin P&L values, at most ``MAX_BINS`` bins laid out around zero.

    Multi-bin layouts are anchored so that the bin holding zero sits in
    the middle of the histogram; extreme values may fall outside every
    bin.  A zero-width range collapses into one ``[min, max]`` bin.
    """
    if values.size == 0:
        return []

    lo = float(np.min(values))
    hi = float(np.max(values))
    span = hi - lo
    num_bins = int(max(1.0, min(float(MAX_BINS), span / MIN_BIN_SPAN))) if span > 0 else 1

    if num_bins == 1:
        return [HistogramBin(
            bin_start=lo, bin_end=hi, count=int(values.size), total_pnl=float(np.sum(values)),
        )]

    width = span / num_bins
    zero_bin = math.floor(-lo / width)
    first_bin = zero_bin - num_bins // 2

    bins: list[HistogramBin] = []
    for i in range(num_bins):
        start = lo + (first_bin + i) * width
        end = start + width
        if i == num_bins - 1:
            mask = values >= start
        else:
            mask = (values >= start) & (values < end)
        bins.append(HistogramBin(
            bin_start=start,
            bin_end=end,
            count=int(np.count_nonzero(mask)),
            total_pnl=float(np.sum(values[mask])),
        ))
    return bins


# ------------------------------------------------------------------ #
# Concentration                                                        #
# ------------------------------------------------------------------ #

def _penalty(share: float, threshold: float) -> float:
    if share <= threshold:
        return 0.0
    return min((share - threshold) / (1.0 - threshold), 1.0)


def stability_score(
    profit_share: float, loss_share: float, mean: float, median: float
) -> float:
    """0-100, lower when results hinge on a few trades or are skewed."""
    gap_scale = abs(mean) if mean != 0 else 1.0
    gap_penalty = min(abs(mean - median) / max(gap_scale, 1.0), 1.0)
    instability = (
        _penalty(profit_share, PROFIT_THRESHOLD) * 0.5
        + _penalty(loss_share, LOSS_THRESHOLD) * 0.3
        + gap_penalty * 0.2
    )
    return (1.0 - instability) * 100.0


def _insights(
    n: int,
    pct: float,
    profit_share: float,
    loss_share: float,
    mean: float,
    median: float,
    stability: float,
) -> list[str]:
    p = _fmt_pct(pct)
    lines: list[str] = []

    if n < SMALL_SAMPLE:
        lines.append("Limited data: results may be noisy with fewer than 30 trades.")

    profit = profit_share * 100.0
    if profit_share < 0.2:
        lines.append(
            f"Your profits are well distributed. The top {p}% of trades account for "
            f"{profit:.1f}% of total profit, indicating good consistency."
        )
    elif profit_share <= 0.4:
        lines.append(
            f"Your profits show moderate concentration. The top {p}% of trades "
            f"generate {profit:.1f}% of total profit."
        )
    elif profit_share <= 0.7:
        lines.append(
            f"A small percentage of your trades generates a large share of profits. "
            f"The top {p}% of trades produce {profit:.1f}% of your total profit. "
            f"Consider systematizing the conditions of your best trades."
        )
    else:
        lines.append(
            f"Severe profit concentration: the top {p}% of trades generate {profit:.1f}% "
            f"of total profit. Your winners are doing the heavy lifting. Without them, "
            f"your equity curve would be much flatter."
        )

    loss = loss_share * 100.0
    if loss_share < 0.2:
        lines.append(
            f"Your losses are well distributed. The worst {p}% of trades account for "
            f"{loss:.1f}% of total loss."
        )
    elif loss_share <= 0.5:
        lines.append(
            f"Your losses show moderate concentration. The worst {p}% of trades "
            f"account for {loss:.1f}% of total loss."
        )
    elif loss_share <= 0.7:
        lines.append(
            f"A relatively small group of bad trades is responsible for most of your "
            f"drawdowns. The worst {p}% of losing trades account for {loss:.1f}% of "
            f"total loss. Tightening risk controls could significantly stabilize your equity."
        )
    else:
        lines.append(
            f"Severe loss concentration: the worst {p}% of trades cause {loss:.1f}% of "
            f"total loss. Consider hard stop rules, daily loss limits, or reducing "
            f"position size on lower conviction trades."
        )

    if mean != 0 and abs(mean) / max(abs(median), 0.01) >= 1.5:
        lines.append(
            "Median and average returns differ significantly, suggesting performance "
            "is skewed by a small set of large winners or losers."
        )
    elif abs(mean - median) < abs(mean) * 0.1:
        lines.append(
            "Median and average returns are closely aligned, indicating consistent "
            "returns rather than rare outlier events."
        )

    if stability >= 80.0:
        lines.append(
            "Your performance is broadly supported by many trades rather than a few "
            "outliers. This is a sign of a robust and repeatable process."
        )
    elif stability < 50.0:
        lines.append(
            "Your results show high variance and instability. Focus on replicating "
            "your best setups while strictly capping downside on worst trades."
        )

    return lines


def compute_distribution(
    pairs: Iterable[PairedTrade],
    date_range: DateRange | None = None,
    concentration_pct: float | None = None,
) -> DistributionData:
    """Histogram and concentration analysis of pair net P&L.

    Parameters
    ----------
    pairs : Iterable[PairedTrade]
        Matcher output, filtered by exit timestamp.
    date_range : DateRange | None
        Inclusive range.  ``None`` keeps everything.
    concentration_pct : float | None
        Share of trades treated as "top".  Defaults to 10, clamped to
        [5, 30].

    Returns
    -------
    DistributionData
    """
    scoped = filter_pairs(list(pairs), date_range)
    if not scoped:
        return DistributionData(
            concentration=ConcentrationStats(insights=[NO_TRADES_INSIGHT]),
        )

    values = np.array([p.net_profit_loss for p in scoped], dtype=float)
    n = int(values.size)
    mean = float(np.sum(values)) / n
    median = float(np.median(values))

    pct = DEFAULT_CONCENTRATION_PCT if concentration_pct is None else concentration_pct
    pct = min(max(pct, MIN_CONCENTRATION_PCT), MAX_CONCENTRATION_PCT)
    min_absolute = 3 if n < SMALL_SAMPLE else 5
    k = min(max(_round_half_up(n * pct / 100.0), min_absolute), n)

    winners = np.sort(values[values > 0])[::-1]
    losers = np.abs(np.sort(values[values < 0]))

    total_profit = float(np.sum(winners))
    total_loss = float(np.sum(losers))
    profit_share = float(np.sum(winners[:k])) / total_profit if total_profit > 0 else 0.0
    loss_share = float(np.sum(losers[:k])) / total_loss if total_loss > 0 else 0.0

    stability = stability_score(profit_share, loss_share, mean, median)

    logger.debug(
        "Distribution over %d pairs: k=%d profit_share=%.3f loss_share=%.3f",
        n, k, profit_share, loss_share,
    )
    return DistributionData(
        histogram=build_histogram(values),
        concentration=ConcentrationStats(
            total_trades=n,
            profitable_trades_count=int(winners.size),
            losing_trades_count=int(losers.size),
            top_k=k,
            profit_share_top=profit_share,
            loss_share_top=loss_share,
            mean_return=mean,
            median_return=median,
            stability_score=stability,
            insights=_insights(n, pct, profit_share, loss_share, mean, median, stability),
        ),
    )

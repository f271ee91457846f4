"""Tilt detection: does performance degrade after losing trades?

Compares the baseline win rate with the win rate immediately after one
loss, after one win and after two losses in a row, checks whether
losses grow after a loss, and looks for a losing-streak length after
which the next trade is reliably worse.  The four effects are folded
into a 0-10 tilt score with a category and coaching text.

Usage::

    stats = compute_tilt(pairs)
    print(stats.tilt_category, stats.tilt_score)
    if stats.recommended_streak:
        print(f"stop after {stats.recommended_streak} losses")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from ..core.enums import TiltCategory
from ..core.models import DateRange, PairedTrade, filter_pairs

logger = logging.getLogger(__name__)

MIN_TRADES = 10
MAX_STREAK = 4

# Recommended-streak gates
MIN_STREAK_SAMPLE = 20
WIN_DROP_THRESHOLD = 0.15

# A win-rate drop of this size is maximal severity
MAX_DROP = 0.5

CALM_MAX_SCORE = 3.0
MODERATE_MAX_SCORE = 7.0

INSUFFICIENT_DATA_LINE = (
    "Not enough trade history to evaluate tilt yet. Need at least 10 trades."
)


class StreakStats(BaseModel):
    k: int
    sample_size: int
    win_rate_after_k_losses: float
    avg_pnl_after_k_losses: float


class TiltStats(BaseModel):
    baseline_win_rate: float = 0.0
    win_rate_after_loss: float = 0.0
    win_rate_after_win: float = 0.0
    win_rate_after_2_losses: float = 0.0
    avg_loss_normally: float = 0.0  # Negative
    avg_loss_after_loss: float = 0.0  # Negative
    prob_loss_after_loss: float = 0.0
    tilt_score: float = 0.0
    recommended_streak: int | None = None
    streak_stats: list[StreakStats] = Field(default_factory=list)
    coaching_lines: list[str] = Field(default_factory=list)
    tilt_category: str = TiltCategory.INSUFFICIENT_DATA.value


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return min(max(value, lo), hi)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _followers(pnl: Sequence[float], k: int, losses: bool = True) -> list[float]:
    """Non-flat P&L values that immediately follow ``k`` losses (or wins)."""
    out: list[float] = []
    for i in range(k, len(pnl)):
        window = pnl[i - k:i]
        hit = all(v < 0 for v in window) if losses else all(v > 0 for v in window)
        if hit and pnl[i] != 0:
            out.append(pnl[i])
    return out


def _win_rate(values: Sequence[float], fallback: float) -> float:
    if not values:
        return fallback
    return sum(1 for v in values if v > 0) / len(values)


def streak_statistics(pnl: Sequence[float], max_k: int = MAX_STREAK) -> list[StreakStats]:
    """Win rate and mean P&L of the trade following k losses, k = 1..max_k."""
    stats: list[StreakStats] = []
    for k in range(1, max_k + 1):
        following = _followers(pnl, k)
        stats.append(StreakStats(
            k=k,
            sample_size=len(following),
            win_rate_after_k_losses=_win_rate(following, 0.0),
            avg_pnl_after_k_losses=_mean(following),
        ))
    return stats


def recommend_streak(stats: Iterable[StreakStats], baseline: float) -> int | None:
    """First k with enough samples, a clear win-rate drop and negative EV."""
    for stat in stats:
        if stat.sample_size < MIN_STREAK_SAMPLE:
            continue
        if baseline - stat.win_rate_after_k_losses >= WIN_DROP_THRESHOLD and (
            stat.avg_pnl_after_k_losses < 0
        ):
            return stat.k
    return None


def tilt_score(stats: TiltStats) -> float:
    """Weighted severity sum clamped to [0, 10]."""
    baseline = stats.baseline_win_rate
    score = _clamp(max(baseline - stats.win_rate_after_loss, 0.0) / MAX_DROP) * 3.0
    score += _clamp(max(baseline - stats.win_rate_after_2_losses, 0.0) / MAX_DROP) * 3.0

    normal, after = stats.avg_loss_normally, stats.avg_loss_after_loss
    if normal < 0 and after < 0 and abs(after) > abs(normal):
        score += _clamp(abs(after) / abs(normal) - 1.0) * 2.0

    score += _clamp(stats.prob_loss_after_loss) * 2.0
    return _clamp(score, 0.0, 10.0)


def categorize(score: float) -> TiltCategory:
    if score <= CALM_MAX_SCORE:
        return TiltCategory.CALM
    if score <= MODERATE_MAX_SCORE:
        return TiltCategory.MODERATE
    return TiltCategory.SEVERE


def coaching_lines(stats: TiltStats, category: TiltCategory) -> list[str]:
    """Template coaching text for ``category`` filled with the figures."""
    baseline = stats.baseline_win_rate * 100
    after_loss = stats.win_rate_after_loss * 100
    streak = stats.recommended_streak

    if category == TiltCategory.CALM:
        lines = [
            "Your performance after losing trades is similar to your baseline. "
            "There is no strong evidence of emotional tilt.",
            f"You win approximately {baseline:.1f}% overall and {after_loss:.1f}% after "
            "a loss. Loss severity does not increase meaningfully after losing.",
        ]
        if streak is None:
            lines.append(
                "A fixed 'stop after N losses' rule is optional for you. "
                "A standard daily loss cap is likely sufficient."
            )
        else:
            lines.append(_stop_after_line(streak))
        return lines

    if category == TiltCategory.MODERATE:
        return [
            "Your performance degrades after losing trades, but not catastrophically.",
            f"Your win rate drops from {baseline:.1f}% to {after_loss:.1f}% after a loss, "
            f"and the chance of another loss after losing is "
            f"{stats.prob_loss_after_loss * 100:.1f}%.",
            _stop_after_line(streak) if streak is not None else (
                "There is no single streak length that stands out as a clear cutoff, "
                "but you should pay attention to your behavior after losses and "
                "enforce a daily loss cap."
            ),
        ]

    lines = [
        "Your trading shows strong signs of emotional tilt after losses.",
        f"Your win rate falls from {baseline:.1f}% to {after_loss:.1f}% after a loss, "
        f"and to {stats.win_rate_after_2_losses * 100:.1f}% after two losses in a row.",
        "Your average loss becomes larger after losing, which suggests revenge "
        "trading or loss of discipline.",
    ]
    if streak is not None:
        lines.append(
            "Recommendation: set a hard rule to stop trading for the day after "
            f"{streak} consecutive losing trades."
        )
    lines.append(
        "Also consider using a fixed maximum daily loss and reducing position "
        "size immediately after a loss."
    )
    return lines


def _stop_after_line(streak: int) -> str:
    return (
        "Based on your history, you should strongly consider stopping for the day "
        f"after {streak} losing trades in a row. Beyond this streak, your expected "
        "PnL is consistently negative."
    )


def compute_tilt(
    pairs: Iterable[PairedTrade],
    date_range: DateRange | None = None,
) -> TiltStats:
    """Behavioural tilt analysis over pairs in exit order.

    Fewer than ``MIN_TRADES`` pairs gives the insufficient-data result
    rather than an error.
    """
    scoped = sorted(filter_pairs(list(pairs), date_range), key=lambda p: p.exit_timestamp)
    if len(scoped) < MIN_TRADES:
        return TiltStats(coaching_lines=[INSUFFICIENT_DATA_LINE])

    pnl = [p.net_profit_loss for p in scoped]
    baseline = sum(1 for v in pnl if v > 0) / len(pnl)
    avg_loss_normally = _mean([v for v in pnl if v < 0])

    after_loss = _followers(pnl, 1)
    after_loss_losses = [v for v in after_loss if v < 0]

    stats = TiltStats(
        baseline_win_rate=baseline,
        win_rate_after_loss=_win_rate(after_loss, baseline),
        win_rate_after_win=_win_rate(_followers(pnl, 1, losses=False), baseline),
        win_rate_after_2_losses=_win_rate(_followers(pnl, 2), baseline),
        avg_loss_normally=avg_loss_normally,
        avg_loss_after_loss=(
            _mean(after_loss_losses) if after_loss_losses else avg_loss_normally
        ),
        prob_loss_after_loss=(
            len(after_loss_losses) / len(after_loss) if after_loss else 0.0
        ),
        streak_stats=streak_statistics(pnl),
    )
    stats.recommended_streak = recommend_streak(stats.streak_stats, baseline)
    stats.tilt_score = tilt_score(stats)
    category = categorize(stats.tilt_score)
    stats.tilt_category = category.value
    stats.coaching_lines = coaching_lines(stats, category)

    logger.debug(
        "Tilt over %d pairs: score=%.2f category=%s", len(pnl), stats.tilt_score, category.value,
    )
    return stats

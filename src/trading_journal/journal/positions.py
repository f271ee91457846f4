"""Position grouping: split the fill history into position lifecycles.

A position opens with the first unclaimed fill of a symbol and absorbs
every later fill of that symbol until the signed size returns to zero.
Group P&L is taken from the matcher's pairs, so a group's figure always
agrees with the realized pairs that touch its trades.

Usage::

    pairs, _ = match_trades(trades)
    groups = group_positions(trades, pairs)
    strategy_of = position_strategy_map(groups)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from ..core.models import PairedTrade, PositionGroup, Trade
from .matcher import QTY_EPSILON

logger = logging.getLogger(__name__)


def group_positions(
    trades: Iterable[Trade],
    pairs: Iterable[PairedTrade],
) -> list[PositionGroup]:
    """Partition filled trades into position groups.

    Parameters
    ----------
    trades : Iterable[Trade]
        Raw fills; only filled ones are grouped.
    pairs : Iterable[PairedTrade]
        Matcher output for the same fills.

    Returns
    -------
    list[PositionGroup]
        Groups newest first by entry timestamp; trades inside each group
        oldest first.
    """
    filled = sorted((t for t in trades if t.is_filled), key=lambda t: t.timestamp)
    pair_list = list(pairs)

    claimed = [False] * len(filled)
    groups: list[PositionGroup] = []

    for i, entry in enumerate(filled):
        if claimed[i]:
            continue
        claimed[i] = True
        members = [entry]
        size = entry.signed_quantity

        for j in range(i + 1, len(filled)):
            if abs(size) < QTY_EPSILON:
                break
            candidate = filled[j]
            if claimed[j] or candidate.symbol != entry.symbol:
                continue
            claimed[j] = True
            members.append(candidate)
            size += candidate.signed_quantity

        ids = {t.id for t in members}
        total_pnl = sum(
            p.net_profit_loss for p in pair_list
            if p.entry_trade_id in ids or p.exit_trade_id in ids
        )
        groups.append(PositionGroup(
            entry_trade=entry,
            position_trades=members,
            total_pnl=total_pnl,
            final_quantity=0.0 if abs(size) < QTY_EPSILON else size,
        ))

    # Stable, so equal entry timestamps keep scan order
    groups.sort(key=lambda g: g.entry_trade.timestamp, reverse=True)
    logger.debug("Grouped %d fills into %d positions", len(filled), len(groups))
    return groups


def position_strategy_map(groups: Iterable[PositionGroup]) -> dict[int, int | None]:
    """Map every grouped trade id to its position's entry strategy."""
    mapping: dict[int, int | None] = {}
    for group in groups:
        for trade in group.position_trades:
            mapping[trade.id] = group.entry_trade.strategy_id
    return mapping


def resolve_strategy(
    pair: PairedTrade,
    strategy_map: Mapping[int, int | None],
    trades_by_id: Mapping[int, Trade] | None = None,
) -> int | None:
    """Strategy a pair is attributed to.

    The position's entry strategy wins, then the entry trade's own
    strategy, then whatever the matcher stamped on the pair.
    """
    strategy = strategy_map.get(pair.entry_trade_id)
    if strategy is not None:
        return strategy
    if trades_by_id is not None:
        entry = trades_by_id.get(pair.entry_trade_id)
        if entry is not None and entry.strategy_id is not None:
            return entry.strategy_id
    return pair.strategy_id

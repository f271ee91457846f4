"""Lot matching: turn a fill history into realized-P&L pairs.

Every fill either closes quantity against open lots of the opposite
direction or opens a new lot.  Longs and shorts are tracked per symbol,
and which lot is closed first depends on the pairing method (FIFO takes
the oldest lot, LIFO the newest).  Each closing event yields one
``PairedTrade`` with prorated fees on both sides; whatever is left open
at the end comes back as open-lot remainders.

Usage::

    pairs, open_trades = match_trades(trades, "FIFO")
    matcher = TradeMatcher(PairingMethod.LIFO)
    pairs, open_trades = matcher.match(trades)
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..core.enums import PairingMethod, Side
from ..core.models import PairedTrade, Trade
from .symbols import options_multiplier

logger = logging.getLogger(__name__)

# Quantities below this are treated as zero (fractional share rounding)
QTY_EPSILON = 1e-4

OPEN_STATUS = "OPEN"


@dataclass
class _Lot:
    """Unmatched quantity left by one opening trade."""

    trade_id: int
    remaining_qty: float
    price: float
    timestamp: str
    remaining_fee: float
    strategy_id: int | None

    def take_fee(self, closed_qty: float) -> float:
        """Prorate and consume the fee share of ``closed_qty``."""
        share = self.remaining_fee * (closed_qty / self.remaining_qty)
        self.remaining_fee -= share
        self.remaining_qty -= closed_qty
        return share


@dataclass
class _Book:
    """Open long and short lots of a single symbol."""

    longs: deque[_Lot] = field(default_factory=deque)
    shorts: deque[_Lot] = field(default_factory=deque)

    def lots_against(self, side: Side) -> deque[_Lot]:
        """Lots a trade on ``side`` closes first."""
        return self.shorts if side == Side.BUY else self.longs

    def lots_for(self, side: Side) -> deque[_Lot]:
        """Lots a trade on ``side`` opens into."""
        return self.longs if side == Side.BUY else self.shorts


class TradeMatcher:
    """FIFO/LIFO lot matcher.

    Parameters
    ----------
    method : PairingMethod | str | None
        ``"FIFO"`` or ``None`` selects FIFO, any other value LIFO.
    """

    def __init__(self, method: PairingMethod | str | None = None) -> None:
        self.method = PairingMethod.resolve(method)

    def match(self, trades: Iterable[Trade]) -> tuple[list[PairedTrade], list[Trade]]:
        """Match the filled trades in ``trades``.

        Returns
        -------
        tuple[list[PairedTrade], list[Trade]]
            Pairs in processing order, and open-lot remainders sorted by
            ``(timestamp, symbol, id)``.
        """
        # sorted() is stable, equal timestamps keep input order
        filled = sorted(
            (t for t in trades if t.is_filled), key=lambda t: t.timestamp
        )

        books: dict[str, _Book] = {}
        pairs: list[PairedTrade] = []

        for trade in filled:
            book = books.setdefault(trade.symbol, _Book())
            pairs.extend(self._apply(trade, book))

        open_trades = self._open_remainders(books)

        logger.debug(
            "Matched %d fills into %d pairs (%s), %d open lots",
            len(filled), len(pairs), self.method.value, len(open_trades),
        )
        return pairs, open_trades

    # ------------------------------------------------------------------ #
    # Internals                                                            #
    # ------------------------------------------------------------------ #

    def _next_lot(self, lots: deque[_Lot]) -> _Lot:
        return lots[0] if self.method == PairingMethod.FIFO else lots[-1]

    def _drop_lot(self, lots: deque[_Lot]) -> None:
        if self.method == PairingMethod.FIFO:
            lots.popleft()
        else:
            lots.pop()

    def _apply(self, trade: Trade, book: _Book) -> list[PairedTrade]:
        total_qty = trade.quantity
        total_fee = trade.fee_amount
        multiplier = options_multiplier(trade.symbol)
        remaining = total_qty
        closing = book.lots_against(trade.side)
        pairs: list[PairedTrade] = []

        while remaining > QTY_EPSILON and closing:
            lot = self._next_lot(closing)
            closed = min(remaining, lot.remaining_qty)

            lot_fee = lot.take_fee(closed)
            trade_fee = total_fee * (closed / total_qty)

            if trade.side == Side.SELL:
                # Closing a long: lot is the buy
                raw = (trade.price - lot.price) * closed
            else:
                # Covering a short: lot is the sell
                raw = (lot.price - trade.price) * closed

            pairs.append(PairedTrade(
                symbol=trade.symbol,
                entry_trade_id=lot.trade_id,
                exit_trade_id=trade.id,
                quantity=closed,
                entry_price=lot.price,
                exit_price=trade.price,
                entry_timestamp=lot.timestamp,
                exit_timestamp=trade.timestamp,
                gross_profit_loss=raw * multiplier,
                entry_fees=lot_fee,
                exit_fees=trade_fee,
                net_profit_loss=(raw - lot_fee - trade_fee) * multiplier,
                strategy_id=(
                    lot.strategy_id if lot.strategy_id is not None
                    else trade.strategy_id
                ),
            ))

            remaining -= closed
            if lot.remaining_qty < QTY_EPSILON:
                self._drop_lot(closing)

        if remaining > QTY_EPSILON:
            book.lots_for(trade.side).append(_Lot(
                trade_id=trade.id,
                remaining_qty=remaining,
                price=trade.price,
                timestamp=trade.timestamp,
                remaining_fee=total_fee * (remaining / total_qty),
                strategy_id=trade.strategy_id,
            ))

        return pairs

    @staticmethod
    def _open_remainders(books: dict[str, _Book]) -> list[Trade]:
        open_trades: list[Trade] = []
        for symbol, book in books.items():
            for side, lots in ((Side.BUY, book.longs), (Side.SELL, book.shorts)):
                for lot in lots:
                    if lot.remaining_qty <= QTY_EPSILON:
                        continue
                    open_trades.append(Trade(
                        id=lot.trade_id,
                        symbol=symbol,
                        side=side,
                        quantity=lot.remaining_qty,
                        price=lot.price,
                        timestamp=lot.timestamp,
                        order_type=OPEN_STATUS,
                        status=OPEN_STATUS,
                        fees=lot.remaining_fee,
                        strategy_id=lot.strategy_id,
                    ))
        open_trades.sort(key=lambda t: (t.timestamp, t.symbol, t.id))
        return open_trades


def match_trades(
    trades: Iterable[Trade],
    policy: PairingMethod | str | None = None,
) -> tuple[list[PairedTrade], list[Trade]]:
    """Match ``trades`` under ``policy``; see :class:`TradeMatcher`."""
    return TradeMatcher(policy).match(trades)

"""Core domain models used across the trading journal.

``Trade`` is the raw fill supplied by the caller.  ``PairedTrade`` and
``PositionGroup`` are derived on every query and never persisted.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .enums import Side
from .timestamps import in_range


# ---------------------------------------------------------------------------
# Fills
# ---------------------------------------------------------------------------

class Trade(BaseModel):
    """One executed fill, or an open-lot remainder emitted by the matcher."""

    id: int
    symbol: str
    side: Side
    quantity: float = Field(gt=0)
    price: float
    timestamp: str  # ISO-8601, compared lexicographically
    order_type: str = "MARKET"
    status: str = "Filled"
    fees: float | None = None
    notes: str | None = None
    strategy_id: int | None = None

    model_config = {"frozen": True}

    @field_validator("side", mode="before")
    @classmethod
    def _normalize_side(cls, value: Any) -> Any:
        # Broker exports mix "Buy", "buy" and "BUY"
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def is_filled(self) -> bool:
        return self.status.upper() == "FILLED"

    @property
    def fee_amount(self) -> float:
        return self.fees or 0.0

    @property
    def signed_quantity(self) -> float:
        return self.side.sign * self.quantity


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------

class PairedTrade(BaseModel):
    """A single realized-P&L event produced by the matcher.

    ``gross_profit_loss`` and ``net_profit_loss`` carry the options
    contract multiplier.  ``entry_fees``/``exit_fees`` are the prorated
    raw fee amounts of the two sides.
    """

    symbol: str
    entry_trade_id: int
    exit_trade_id: int
    quantity: float
    entry_price: float
    exit_price: float
    entry_timestamp: str
    exit_timestamp: str
    gross_profit_loss: float
    entry_fees: float
    exit_fees: float
    net_profit_loss: float
    strategy_id: int | None = None
    notes: str | None = None

    @property
    def key(self) -> tuple[int, int]:
        return (self.entry_trade_id, self.exit_trade_id)

    @property
    def total_fees(self) -> float:
        return self.entry_fees + self.exit_fees


class PositionGroup(BaseModel):
    """All trades of one position, from first open until it is flat again."""

    entry_trade: Trade
    position_trades: list[Trade] = Field(default_factory=list)
    total_pnl: float = 0.0
    final_quantity: float = 0.0

    @property
    def is_open(self) -> bool:
        return self.final_quantity != 0.0

    @property
    def trade_ids(self) -> set[int]:
        return {t.id for t in self.position_trades}


class DateRange(BaseModel):
    """Inclusive, optionally open-ended range over timestamp strings."""

    start: str | None = None
    end: str | None = None

    def contains(self, timestamp: str) -> bool:
        return in_range(timestamp, self.start, self.end)

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None


def attach_notes(
    pairs: list[PairedTrade],
    notes: Mapping[tuple[int, int], str],
) -> list[PairedTrade]:
    """Return copies of ``pairs`` annotated from an ``(entry_id, exit_id)`` map."""
    return [
        p.model_copy(update={"notes": notes[p.key]}) if p.key in notes else p
        for p in pairs
    ]


def filter_pairs(
    pairs: list[PairedTrade], date_range: DateRange | None
) -> list[PairedTrade]:
    """Keep pairs whose exit timestamp falls in ``date_range``."""
    if date_range is None or date_range.is_open:
        return list(pairs)
    return [p for p in pairs if date_range.contains(p.exit_timestamp)]

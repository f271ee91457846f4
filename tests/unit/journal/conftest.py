"""Shared fixtures and factories for journal tests."""

import itertools

import pytest

from trading_journal.core.models import PairedTrade, Trade

_ids = itertools.count(10_000)


def ts(day: int, hour: int = 10, minute: int = 0, month: int = 1) -> str:
    """ISO timestamp in 2024."""
    return f"2024-{month:02d}-{day:02d}T{hour:02d}:{minute:02d}:00"


def make_trade(
    id: int,
    side: str,
    quantity: float,
    price: float,
    timestamp: str,
    symbol: str = "AAPL",
    fees: float | None = None,
    strategy_id: int | None = None,
    status: str = "Filled",
) -> Trade:
    return Trade(
        id=id,
        symbol=symbol,
        side=side,
        quantity=quantity,
        price=price,
        timestamp=timestamp,
        fees=fees,
        strategy_id=strategy_id,
        status=status,
    )


def make_pair(
    pnl: float,
    exit_timestamp: str,
    entry_timestamp: str | None = None,
    symbol: str = "AAPL",
    quantity: float = 1.0,
    entry_price: float = 100.0,
    strategy_id: int | None = None,
    entry_id: int | None = None,
    exit_id: int | None = None,
) -> PairedTrade:
    """A long pair whose price move matches ``pnl``."""
    return PairedTrade(
        symbol=symbol,
        entry_trade_id=entry_id if entry_id is not None else next(_ids),
        exit_trade_id=exit_id if exit_id is not None else next(_ids),
        quantity=quantity,
        entry_price=entry_price,
        exit_price=entry_price + pnl / quantity,
        entry_timestamp=entry_timestamp or exit_timestamp,
        exit_timestamp=exit_timestamp,
        gross_profit_loss=pnl,
        entry_fees=0.0,
        exit_fees=0.0,
        net_profit_loss=pnl,
        strategy_id=strategy_id,
    )


def pairs_from_pnl(values: list[float], start_day: int = 1) -> list[PairedTrade]:
    """One pair per value, exits on consecutive minutes of one day."""
    return [
        make_pair(v, ts(start_day, hour=10 + i // 60, minute=i % 60))
        for i, v in enumerate(values)
    ]


@pytest.fixture
def round_trip():
    """Buy 10 AAPL @100, sell 10 @110."""
    return [
        make_trade(1, "BUY", 10, 100.0, ts(1)),
        make_trade(2, "SELL", 10, 110.0, ts(2)),
    ]


@pytest.fixture
def short_cover():
    """Short 5 XYZ @50, cover 3 @40 then 2 @45."""
    return [
        make_trade(1, "SELL", 5, 50.0, ts(1), symbol="XYZ"),
        make_trade(2, "BUY", 3, 40.0, ts(2), symbol="XYZ"),
        make_trade(3, "BUY", 2, 45.0, ts(3), symbol="XYZ"),
    ]


@pytest.fixture
def scale_out():
    """Two buys at different prices, closed by one sell."""
    return [
        make_trade(1, "BUY", 10, 100.0, ts(1), fees=2.0),
        make_trade(2, "BUY", 10, 120.0, ts(2), fees=2.0),
        make_trade(3, "SELL", 15, 130.0, ts(3), fees=3.0),
    ]

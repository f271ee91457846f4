"""Shared fixtures for the trading-journal test suite."""

from __future__ import annotations

import pytest

from trading_journal.core.models import Trade


def _trade(id, symbol, side, qty, price, timestamp, **extra) -> Trade:
    return Trade(
        id=id, symbol=symbol, side=side, quantity=qty, price=price,
        timestamp=timestamp, **extra,
    )


@pytest.fixture
def account_trades() -> list[Trade]:
    """A small two-symbol account.

    AAPL scales in twice and partially out, leaving 5 shares open.
    MSFT is a losing short covered the next day.  The NVDA order was
    cancelled and must be ignored everywhere.
    """
    return [
        _trade(1, "AAPL", "BUY", 10, 100.0, "2024-01-01T10:00:00", fees=2.0, strategy_id=1),
        _trade(2, "AAPL", "BUY", 10, 120.0, "2024-01-02T10:00:00", fees=2.0),
        _trade(3, "AAPL", "SELL", 15, 130.0, "2024-01-03T10:00:00", fees=3.0),
        _trade(4, "MSFT", "SELL", 5, 300.0, "2024-01-03T11:00:00"),
        _trade(5, "MSFT", "BUY", 5, 310.0, "2024-01-04T11:00:00", strategy_id=2),
        _trade(6, "NVDA", "BUY", 1, 50.0, "2024-01-05T09:00:00", status="Cancelled"),
    ]

"""Tests for position grouping and strategy attribution."""

import pytest

from trading_journal.journal.matcher import match_trades
from trading_journal.journal.positions import (
    group_positions,
    position_strategy_map,
    resolve_strategy,
)

from .conftest import make_pair, make_trade, ts


def _groups(trades):
    pairs, _ = match_trades(trades)
    return group_positions(trades, pairs)


class TestGrouping:
    def test_scale_out_is_one_group(self):
        trades = [
            make_trade(1, "BUY", 10, 10.0, ts(1), symbol="XYZ"),
            make_trade(2, "SELL", 5, 12.0, ts(2), symbol="XYZ"),
            make_trade(3, "SELL", 5, 13.0, ts(3), symbol="XYZ"),
        ]
        groups = _groups(trades)
        assert len(groups) == 1
        group = groups[0]
        assert [t.id for t in group.position_trades] == [1, 2, 3]
        assert group.final_quantity == 0.0
        assert group.is_open is False
        assert group.total_pnl == pytest.approx(10.0 + 15.0)

    def test_open_position_keeps_signed_size(self):
        trades = [
            make_trade(1, "SELL", 10, 10.0, ts(1)),
            make_trade(2, "BUY", 4, 9.0, ts(2)),
        ]
        group = _groups(trades)[0]
        assert group.final_quantity == pytest.approx(-6.0)
        assert group.is_open is True

    def test_round_trips_are_separate_and_newest_first(self):
        trades = [
            make_trade(1, "BUY", 1, 10.0, ts(1)),
            make_trade(2, "SELL", 1, 11.0, ts(2)),
            make_trade(3, "BUY", 2, 10.0, ts(3)),
            make_trade(4, "SELL", 2, 9.0, ts(4)),
        ]
        groups = _groups(trades)
        assert [g.entry_trade.id for g in groups] == [3, 1]
        assert groups[0].total_pnl == pytest.approx(-2.0)
        assert groups[1].total_pnl == pytest.approx(1.0)

    def test_interleaved_symbols(self):
        trades = [
            make_trade(1, "BUY", 1, 10.0, ts(1), symbol="AAA"),
            make_trade(2, "BUY", 1, 20.0, ts(2), symbol="BBB"),
            make_trade(3, "SELL", 1, 12.0, ts(3), symbol="AAA"),
            make_trade(4, "SELL", 1, 25.0, ts(4), symbol="BBB"),
        ]
        groups = _groups(trades)
        by_symbol = {g.entry_trade.symbol: g for g in groups}
        assert by_symbol["AAA"].trade_ids == {1, 3}
        assert by_symbol["BBB"].trade_ids == {2, 4}

    def test_every_trade_in_exactly_one_group(self, scale_out):
        groups = _groups(scale_out)
        ids = [t.id for g in groups for t in g.position_trades]
        assert sorted(ids) == [1, 2, 3]

    def test_unfilled_trades_skipped(self):
        trades = [
            make_trade(1, "BUY", 1, 10.0, ts(1), status="Rejected"),
            make_trade(2, "BUY", 1, 10.0, ts(2)),
        ]
        groups = _groups(trades)
        assert [g.entry_trade.id for g in groups] == [2]

    def test_empty(self):
        assert group_positions([], []) == []


class TestStrategyAttribution:
    def test_group_entry_strategy_wins(self):
        trades = [
            make_trade(1, "BUY", 1, 10.0, ts(1), strategy_id=7),
            make_trade(2, "BUY", 1, 11.0, ts(2), strategy_id=8),
            make_trade(3, "SELL", 2, 12.0, ts(3)),
        ]
        groups = _groups(trades)
        mapping = position_strategy_map(groups)
        assert mapping == {1: 7, 2: 7, 3: 7}

        pair = make_pair(1.0, ts(3), entry_id=2, exit_id=3, strategy_id=8)
        assert resolve_strategy(pair, mapping) == 7

    def test_falls_back_to_entry_trade_then_pair(self):
        entry = make_trade(1, "BUY", 1, 10.0, ts(1), strategy_id=4)
        pair = make_pair(1.0, ts(2), entry_id=1, exit_id=2, strategy_id=9)
        assert resolve_strategy(pair, {}, {1: entry}) == 4
        assert resolve_strategy(pair, {}, {}) == 9

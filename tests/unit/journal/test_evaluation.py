"""Tests for calendar, symbol and strategy breakdowns."""

import pytest

from trading_journal.core.enums import SymbolConvention
from trading_journal.journal.evaluation import (
    UNASSIGNED_STRATEGY,
    UNKNOWN_STRATEGY,
    compute_evaluation,
    strategy_label,
)
from trading_journal.journal.matcher import match_trades
from trading_journal.journal.positions import group_positions

from .conftest import make_pair, make_trade, ts

# 2024-01-01 is a Monday


class TestCalendarBuckets:
    @pytest.fixture
    def report(self):
        return compute_evaluation([
            make_pair(10, ts(1)),
            make_pair(-4, ts(1, hour=14)),
            make_pair(6, ts(2)),
        ])

    def test_every_bucket_present(self, report):
        assert len(report.weekday_performance) == 7
        assert len(report.day_of_month_performance) == 31
        assert len(report.time_of_day_performance) == 24
        assert report.day_of_month_performance[0].day == 1
        assert report.time_of_day_performance[9].hour_label == "09:00-09:59"

    def test_weekday(self, report):
        monday = report.weekday_performance[0]
        assert monday.weekday_name == "Monday"
        assert monday.trade_count == 2
        assert monday.total_pnl == pytest.approx(6.0)
        assert monday.win_rate == pytest.approx(0.5)
        assert monday.average_win == pytest.approx(10.0)
        assert monday.average_loss == pytest.approx(4.0)
        assert monday.payoff_ratio == pytest.approx(2.5)
        assert monday.profit_factor == pytest.approx(2.5)
        assert monday.gross_profit == pytest.approx(10.0)
        assert monday.gross_loss == pytest.approx(4.0)

        tuesday = report.weekday_performance[1]
        assert tuesday.trade_count == 1
        assert tuesday.profit_factor == 0.0

        wednesday = report.weekday_performance[2]
        assert wednesday.trade_count == 0
        assert wednesday.win_rate == 0.0

    def test_hour_and_day(self, report):
        ten = report.time_of_day_performance[10]
        assert ten.trade_count == 2
        assert ten.total_pnl == pytest.approx(16.0)
        assert report.time_of_day_performance[14].trade_count == 1
        assert report.day_of_month_performance[1].trade_count == 1

    def test_unparseable_exit_skips_calendar_only(self):
        report = compute_evaluation([make_pair(5, "not a date")])
        assert sum(b.trade_count for b in report.weekday_performance) == 0
        assert report.symbol_performance[0].trade_count == 1


class TestSymbolBuckets:
    def test_sorted_by_total(self):
        report = compute_evaluation([
            make_pair(-3, ts(1), symbol="TSLA"),
            make_pair(8, ts(2), symbol="SPY251218C00679000"),
            make_pair(2, ts(3), symbol="SPY"),
            make_pair(1, ts(4), symbol="AAPL"),
        ])
        rows = report.symbol_performance
        assert [r.symbol for r in rows] == ["SPY", "AAPL", "TSLA"]
        assert rows[0].trade_count == 2
        assert rows[0].average_pnl == pytest.approx(5.0)

    def test_occ_convention(self):
        report = compute_evaluation(
            [make_pair(1, ts(1), symbol="BRK1251218C00100000")],
            convention=SymbolConvention.OCC,
        )
        assert report.symbol_performance[0].symbol == "BRK1"


class TestStrategyBuckets:
    def test_labels_and_order(self):
        report = compute_evaluation(
            [
                make_pair(10, ts(1), strategy_id=1),
                make_pair(-2, ts(2), strategy_id=1),
                make_pair(5, ts(3), strategy_id=2),
                make_pair(-1, ts(4)),
            ],
            strategy_names={1: "Breakout"},
        )
        rows = report.strategy_performance
        assert [(r.strategy_id, r.strategy_name) for r in rows] == [
            (1, "Breakout"),
            (2, UNKNOWN_STRATEGY),
            (None, UNASSIGNED_STRATEGY),
        ]
        assert rows[0].average_pnl == pytest.approx(4.0)
        assert rows[0].win_rate == pytest.approx(0.5)

    def test_position_entry_strategy_attribution(self):
        trades = [
            make_trade(1, "BUY", 1, 10.0, ts(1), strategy_id=7),
            make_trade(2, "BUY", 1, 11.0, ts(2), strategy_id=8),
            make_trade(3, "SELL", 2, 12.0, ts(3)),
        ]
        pairs, _ = match_trades(trades)
        groups = group_positions(trades, pairs)
        report = compute_evaluation(pairs, groups, trades=trades)
        assert len(report.strategy_performance) == 1
        row = report.strategy_performance[0]
        assert row.strategy_id == 7
        assert row.trade_count == 2
        assert row.total_pnl == pytest.approx(3.0)


class TestStrategyLabel:
    def test_label(self):
        assert strategy_label(None, {1: "x"}) == "Unassigned"
        assert strategy_label(1, {1: "x"}) == "x"
        assert strategy_label(2, {1: "x"}) == "Unknown"

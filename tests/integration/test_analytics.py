"""End-to-end tests of the TradeAnalytics query facade."""

import pytest
from prometheus_client import REGISTRY

from trading_journal import TradeAnalytics
from trading_journal.core.config import AnalyticsConfig, Settings


@pytest.fixture
def trades(account_trades):
    return account_trades


@pytest.fixture
def analytics(trades):
    settings = Settings(analytics=AnalyticsConfig(
        pairing_method="LIFO",
        strategy_names={1: "Breakout"},
        recent_trades_limit=2,
    ))
    return TradeAnalytics(trades, settings)


class TestPairing:
    def test_settings_method_is_default(self, analytics):
        pairs, open_trades = analytics.paired_trades()
        assert [p.entry_trade_id for p in pairs] == [2, 1, 4]
        assert [p.net_profit_loss for p in pairs] == [
            pytest.approx(96.0), pytest.approx(148.0), pytest.approx(-50.0),
        ]
        assert [(t.id, t.quantity) for t in open_trades] == [(1, 5.0)]

    def test_argument_overrides_settings(self, analytics):
        pairs, open_trades = analytics.paired_trades("FIFO")
        assert [p.entry_trade_id for p in pairs] == [1, 2, 4]
        assert open_trades[0].id == 2

    def test_no_settings_means_fifo(self, trades):
        pairs, _ = TradeAnalytics(trades).paired_trades()
        assert pairs[0].entry_trade_id == 1

    def test_trades_not_mutated(self, analytics, trades):
        analytics.metrics()
        assert list(analytics.trades) == trades


class TestQueries:
    def test_metrics(self, analytics):
        m = analytics.metrics()
        assert m.total_trades == 3
        assert m.net_profit == pytest.approx(194.0)
        assert m.total_fees == pytest.approx(6.0)

    def test_metrics_date_range(self, analytics):
        m = analytics.metrics(start="2024-01-04")
        assert m.total_trades == 1
        assert m.net_profit == pytest.approx(-50.0)

    def test_position_groups_only_see_fills_in_range(self, analytics):
        groups = analytics.position_groups(start="2024-01-03")
        assert [g.entry_trade.id for g in groups] == [4, 3]
        assert groups[1].final_quantity == pytest.approx(-15.0)
        assert groups[0].is_open is False

    def test_equity_curve(self, analytics):
        curve = analytics.equity_curve()
        assert [p.date for p in curve.equity_points] == ["2024-01-03", "2024-01-04"]
        assert curve.drawdown_metrics.max_drawdown == pytest.approx(50.0)

    def test_distribution_uses_configured_pct(self, analytics):
        data = analytics.distribution()
        assert data.concentration.total_trades == 3
        assert data.concentration.top_k == 3

    def test_tilt_needs_history(self, analytics):
        assert analytics.tilt().tilt_category == "Insufficient Data"

    def test_evaluation(self, analytics):
        report = analytics.evaluation()
        assert [r.symbol for r in report.symbol_performance] == ["AAPL", "MSFT"]
        by_strategy = {r.strategy_id: r for r in report.strategy_performance}
        assert by_strategy[1].strategy_name == "Breakout"
        assert by_strategy[1].trade_count == 2
        assert by_strategy[2].strategy_name == "Unknown"

    def test_symbol_pnl(self, analytics):
        rows = analytics.symbol_pnl()
        assert rows[0].symbol == "AAPL"
        assert rows[0].open_position_qty == pytest.approx(5.0)
        assert rows[1].total_net_pnl == pytest.approx(-50.0)

    def test_daily_pnl_counts_filled_trades(self, analytics):
        days = analytics.daily_pnl()
        assert [d.date for d in days] == [
            "2024-01-04", "2024-01-03", "2024-01-02", "2024-01-01",
        ]
        assert days[1].trade_count == 2
        assert days[1].profit_loss == pytest.approx(244.0)

    def test_trades_with_pairing(self, analytics):
        rows = analytics.trades_with_pairing()
        assert [r.trade.id for r in rows] == [6, 5, 4, 3, 2, 1]
        assert len(rows[3].exit_pairs) == 2

    def test_recent_trades_uses_configured_limit(self, analytics):
        rows = analytics.recent_trades()
        assert len(rows) == 2
        assert rows[0].symbol == "MSFT"
        assert rows[0].strategy_name == "Unknown"
        assert len(analytics.recent_trades(limit=10)) == 3

    def test_strategy_performance(self, analytics):
        rows = analytics.strategy_performance()
        assert [(r.strategy_id, r.trade_count) for r in rows] == [(1, 2), (2, 1)]
        assert rows[0].estimated_pnl == pytest.approx(244.0)

    def test_pairs_for_strategy(self, analytics):
        assert len(analytics.pairs_for_strategy(1)) == 2
        assert analytics.pairs_for_strategy(None) == []


class TestInstrumentation:
    def test_query_counter(self, analytics):
        def served():
            return REGISTRY.get_sample_value(
                "trading_journal_queries_total", {"query": "tilt"}
            ) or 0.0

        before = served()
        analytics.tilt()
        analytics.tilt()
        assert served() == before + 2

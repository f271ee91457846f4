"""Tests for run-id propagation and match instrumentation."""

import logging

from prometheus_client import REGISTRY

from trading_journal.observability.logger import (
    get_run_id,
    new_run_id,
    set_run_id,
    setup_logging,
)
from trading_journal.observability.metrics import record_match


class TestRunId:
    def test_new_run_id_becomes_current(self):
        rid = new_run_id()
        assert len(rid) == 12
        assert get_run_id() == rid

    def test_set_run_id(self):
        set_run_id("abc123")
        assert get_run_id() == "abc123"

    def test_ids_are_unique(self):
        assert new_run_id() != new_run_id()


class TestSetupLogging:
    def test_root_level_and_single_handler(self):
        setup_logging("WARNING", "json")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        setup_logging("INFO", "console")
        assert len(logging.getLogger().handlers) == 1

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("chatty")
        assert logging.getLogger().level == logging.INFO


class TestRecordMatch:
    def test_counters(self):
        def pairs_total():
            return REGISTRY.get_sample_value(
                "trading_journal_pairs_matched_total", {"method": "LIFO"}
            ) or 0.0

        before = pairs_total()
        record_match("LIFO", 3, 2)
        assert pairs_total() == before + 3
        assert REGISTRY.get_sample_value("trading_journal_open_lots") == 2.0

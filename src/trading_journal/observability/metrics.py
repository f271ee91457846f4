"""Prometheus instrumentation for analytics queries.

Collected in-process; exposing them is left to the embedding
application (e.g. ``prometheus_client.start_http_server``).
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# Query metrics
# ---------------------------------------------------------------------------

QUERIES_TOTAL = Counter(
    "trading_journal_queries_total",
    "Analytics queries served",
    ["query"],
)

QUERY_SECONDS = Histogram(
    "trading_journal_query_seconds",
    "Wall time of one analytics query, including re-matching",
    ["query"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)

# ---------------------------------------------------------------------------
# Matching metrics
# ---------------------------------------------------------------------------

PAIRS_MATCHED = Counter(
    "trading_journal_pairs_matched_total",
    "Realized pairs produced by the matcher",
    ["method"],
)

OPEN_LOTS = Gauge(
    "trading_journal_open_lots",
    "Open lot remainders after the most recent match",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def record_match(method: str, pairs: int, open_lots: int) -> None:
    PAIRS_MATCHED.labels(method=method).inc(pairs)
    OPEN_LOTS.set(open_lots)

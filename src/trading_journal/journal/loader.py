"""Read trade fills from CSV or JSON files.

Only one neutral column layout is understood::

    id,symbol,side,quantity,price,timestamp,order_type,status,fees,notes,strategy_id

``id`` is optional (row number is used), as are the trailing columns.
Broker-specific exports must be converted to this layout first.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..core.errors import InvalidTradeError, TradeFileError
from ..core.models import Trade

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("symbol", "side", "quantity", "price", "timestamp")
_OPTIONAL_NUMERIC = ("fees", "strategy_id")


def _clean_row(raw: dict[str, Any], row_number: int) -> dict[str, Any]:
    row = {
        k.strip().lower(): (v.strip() if isinstance(v, str) else v)
        for k, v in raw.items()
        if k is not None
    }
    for key in _OPTIONAL_NUMERIC + ("notes",):
        if row.get(key) == "":
            row[key] = None
    if row.get("id") in (None, ""):
        row["id"] = row_number
    for key in ("order_type", "status"):
        if row.get(key) in (None, ""):
            row.pop(key, None)
    return row


def parse_trade_rows(rows: list[dict[str, Any]]) -> list[Trade]:
    """Validate raw row dicts into trades.

    Raises
    ------
    InvalidTradeError
        A row is missing a required column or fails validation.
    """
    trades: list[Trade] = []
    for number, raw in enumerate(rows, start=1):
        if not isinstance(raw, dict):
            raise InvalidTradeError(number, "expected an object")
        row = _clean_row(raw, number)
        missing = [c for c in REQUIRED_COLUMNS if row.get(c) in (None, "")]
        if missing:
            raise InvalidTradeError(number, f"missing {', '.join(missing)}")
        try:
            trades.append(Trade.model_validate(row))
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            raise InvalidTradeError(number, f"{field}: {first.get('msg')}") from exc
    return trades


def load_trades(path: str | Path) -> list[Trade]:
    """Load trades from a ``.csv`` or ``.json`` file.

    Raises
    ------
    TradeFileError
        The file cannot be read or its extension is not supported.
    InvalidTradeError
        A row fails validation.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise TradeFileError(f"Cannot read {path}: {exc}") from exc

    if suffix == ".csv":
        rows = list(csv.DictReader(io.StringIO(text, newline="")))
    elif suffix == ".json":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TradeFileError(f"Invalid JSON in {path}: {exc}") from exc
        if isinstance(payload, dict):
            payload = payload.get("trades", [])
        if not isinstance(payload, list):
            raise TradeFileError(f"{path}: expected a list of trades")
        rows = payload
    else:
        raise TradeFileError(f"Unsupported trade file type: {suffix or path.name}")

    trades = parse_trade_rows(rows)
    logger.info("Loaded %d trades from %s", len(trades), path)
    return trades

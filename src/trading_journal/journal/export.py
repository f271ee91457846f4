"""Report export: JSON and CSV rendering of analytics results.

Every result type is a pydantic model, so JSON output is the model dump.
CSV output flattens a list of models into one row each; nested values
are embedded as compact JSON.

Usage::

    exporter = ReportExporter()
    json_str = exporter.to_json(metrics)
    csv_str = exporter.to_csv(pairs)
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel

from ..core.enums import ExportFormat
from ..core.errors import ExportError

logger = logging.getLogger(__name__)


class ReportExporter:
    """Render analytics results for files and terminals.

    Parameters
    ----------
    decimal_places : int | None
        Rounding precision for float fields.  ``None`` keeps full
        precision.
    """

    def __init__(self, *, decimal_places: int | None = None) -> None:
        self._dp = decimal_places

    # ------------------------------------------------------------------ #
    # JSON Export                                                          #
    # ------------------------------------------------------------------ #

    def to_json(
        self,
        result: BaseModel | Sequence[BaseModel],
        *,
        indent: int = 2,
    ) -> str:
        """Serialize a result model, or a list of them, as JSON."""
        if isinstance(result, BaseModel):
            payload: Any = self._round(result.model_dump(mode="json"))
        else:
            payload = [self._round(r.model_dump(mode="json")) for r in result]
        return json.dumps(payload, indent=indent)

    # ------------------------------------------------------------------ #
    # CSV Export                                                           #
    # ------------------------------------------------------------------ #

    def to_csv(
        self,
        rows: Sequence[BaseModel],
        *,
        columns: list[str] | None = None,
    ) -> str:
        """Export a list of models as a CSV string with a header row.

        Parameters
        ----------
        rows : Sequence[BaseModel]
            Records of one type.
        columns : list[str] | None
            Column selection.  Defaults to the first record's fields.

        Returns
        -------
        str
            CSV text.  Empty input gives an empty string.
        """
        if not rows:
            return ""
        flat = [self._flatten(r) for r in rows]
        cols = columns or list(flat[0].keys())
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        for row in flat:
            writer.writerow({c: row.get(c, "") for c in cols})
        return buf.getvalue()

    def render(
        self,
        result: BaseModel | Sequence[BaseModel],
        fmt: ExportFormat | str = ExportFormat.JSON,
    ) -> str:
        """Render ``result`` in ``fmt``; a single record becomes a one-row CSV.

        Raises
        ------
        ExportError
            The format is unknown.
        """
        try:
            fmt = ExportFormat(fmt)
        except ValueError as exc:
            raise ExportError(f"Unknown export format: {fmt}") from exc

        if fmt == ExportFormat.JSON:
            return self.to_json(result)
        if isinstance(result, BaseModel):
            return self.to_csv([result])
        return self.to_csv(list(result))

    # ------------------------------------------------------------------ #
    # Private helpers                                                      #
    # ------------------------------------------------------------------ #

    def _flatten(self, record: BaseModel) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in self._round(record.model_dump(mode="json")).items():
            if isinstance(value, (dict, list)):
                out[key] = json.dumps(value, separators=(",", ":"))
            elif value is None:
                out[key] = ""
            else:
                out[key] = value
        return out

    def _round(self, value: Any) -> Any:
        if self._dp is None:
            return value
        if isinstance(value, float):
            return round(value, self._dp)
        if isinstance(value, dict):
            return {k: self._round(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._round(v) for v in value]
        return value

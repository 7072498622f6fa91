"""Stdout writers for query results.

Range results render as an ASCII graph, JSON or CSV; instant results render
as an aligned table, JSON or CSV. Renderers are pure and return the text;
``write_range``/``write_instant`` choose a renderer from the requested
output format and print the text once rendering succeeded.
"""

import csv
import io
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any, List, Optional, Protocol, Sequence, TextIO

import asciichartpy
import numpy as np
from rich.cells import cell_len

from .config import GRAPH_HEIGHT_DIVISOR, GRAPH_WIDTH_MARGIN, TABLE_PADDING
from .exceptions import SerializationError
from .models import Matrix, Vector, format_rfc3339, format_stamp, format_value
from .utils import TermDimensions, terminal_size, uniq_labels

logger = logging.getLogger(__name__)

JSON_FORMAT = "json"
CSV_FORMAT = "csv"
GRAPH_FORMAT = "graph"
TABLE_FORMAT = "table"


class Writer(Protocol):
    """Renders a result as JSON or CSV."""

    def json(self) -> str:
        ...

    def csv(self, no_headers: bool = False) -> str:
        ...


class RangeWriter(Writer, Protocol):
    """Writer for range query results, adds an ASCII graph."""

    def graph(self, dim: TermDimensions) -> str:
        ...


class InstantWriter(Writer, Protocol):
    """Writer for instant query results, adds an aligned table."""

    def table(self, no_headers: bool = False) -> str:
        ...


# ====== SHARED HELPERS ======
def _encode_json(payload: Any, kind: str) -> str:
    try:
        return json.dumps(payload, separators=(",", ":"), sort_keys=True, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to encode {kind} result as JSON: {e}") from e


def _encode_csv(rows: Sequence[Sequence[str]], kind: str) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    try:
        writer.writerows(rows)
    except csv.Error as e:
        raise SerializationError(f"failed to encode {kind} result as CSV: {e}") from e
    return buf.getvalue()


def _csv_header(labels: Sequence[str]) -> List[str]:
    return list(labels) + ["value", "timestamp"]


def align_columns(rows: Sequence[Sequence[str]], padding: int = TABLE_PADDING) -> str:
    """Align tab-separated cells into columns.

    Every column but the last is padded to its widest cell plus ``padding``
    spaces; the last cell of a row is written as is. Each row ends with a
    newline.
    """
    if not rows:
        return ""

    columns = max(len(row) for row in rows)
    widths = [0] * columns
    for row in rows:
        for i, cell in enumerate(row[:-1]):
            widths[i] = max(widths[i], cell_len(cell) + padding)

    lines = []
    for row in rows:
        cells = [cell + " " * (widths[i] - cell_len(cell)) for i, cell in enumerate(row[:-1])]
        cells.extend(row[-1:])
        lines.append("".join(cells) + "\n")
    return "".join(lines)


def fit_width(data: np.ndarray, width: int) -> np.ndarray:
    """Linearly resample ``data`` to exactly ``width`` points (no-op if width <= 0)."""
    if width <= 0 or data.size == 0:
        return data
    positions = np.linspace(0, data.size - 1, width)
    return np.interp(positions, np.arange(data.size), data)


def plot(data: np.ndarray, height: int, width: int) -> str:
    """ASCII line chart of ``data`` scaled to ``height`` rows and ``width`` columns."""
    # Infinite values cannot be scaled; treat them as gaps like NaN
    finite = np.where(np.isfinite(data), data, np.nan)
    points = fit_width(finite, width)
    if not np.isfinite(points).any():
        # Nothing to scale against
        return ""
    return asciichartpy.plot(points.tolist(), {"height": max(height, 1)})


# ====== RANGE RESULTS ======
@dataclass
class RangeResult:
    """Wrapper of a matrix returned from range queries.

    Satisfies the ``RangeWriter`` protocol. ``tz`` controls the timezone of
    rendered timestamps; ``None`` means local time.
    """

    matrix: Matrix = field(default_factory=list)
    tz: Optional[tzinfo] = None

    def graph(self, dim: TermDimensions) -> str:
        """Render every series as an ASCII graph sized to the terminal."""
        buf = io.StringIO()
        height = dim.height // GRAPH_HEIGHT_DIVISOR
        width = dim.width - GRAPH_WIDTH_MARGIN

        for stream in self.matrix:
            if not stream.values:
                logger.debug("Skipping series without samples: %s", stream.metric)
                continue

            data = np.array([pair.value for pair in stream.values], dtype=float)
            start = format_stamp(stream.values[0].timestamp, self.tz)
            end = format_stamp(stream.values[-1].timestamp, self.tz)

            buf.write(f"\n TIME_RANGE: {start} -> {end}\n")
            buf.write(f" METRIC:     {stream.metric} \n")
            buf.write(f"{plot(data, height, width)}\n")
        return buf.getvalue()

    def json(self) -> str:
        return _encode_json([stream.to_dict() for stream in self.matrix], "range")

    def csv(self, no_headers: bool = False) -> str:
        """One row per (series, sample) in input order."""
        labels = uniq_labels(self.matrix)
        rows = [] if no_headers else [_csv_header(labels)]

        for stream in self.matrix:
            label_cells = [stream.metric.get(key, "") for key in labels]
            for pair in stream.values:
                rows.append(label_cells + [format_value(pair.value), format_rfc3339(pair.timestamp, self.tz)])
        return _encode_csv(rows, "range")


# ====== INSTANT RESULTS ======
@dataclass
class InstantResult:
    """Wrapper of a vector returned from instant queries.

    Satisfies the ``InstantWriter`` protocol.
    """

    vector: Vector = field(default_factory=list)
    tz: Optional[tzinfo] = None

    def _rows(self, labels: Sequence[str]) -> List[List[str]]:
        return [
            [sample.metric.get(key, "") for key in labels]
            + [format_value(sample.value), format_rfc3339(sample.timestamp, self.tz)]
            for sample in self.vector
        ]

    def table(self, no_headers: bool = False) -> str:
        """Aligned table, one row per series."""
        labels = uniq_labels(self.vector)
        rows = [] if no_headers else [[key.upper() for key in labels] + ["VALUE", "TIMESTAMP"]]
        rows.extend(self._rows(labels))
        return align_columns(rows)

    def json(self) -> str:
        return _encode_json([sample.to_dict() for sample in self.vector], "instant")

    def csv(self, no_headers: bool = False) -> str:
        labels = uniq_labels(self.vector)
        rows = [] if no_headers else [_csv_header(labels)]
        rows.extend(self._rows(labels))
        return _encode_csv(rows, "instant")


# ====== DISPATCH ======
def _emit(text: str, stream: Optional[TextIO]) -> None:
    out = stream or sys.stdout
    print(text, file=out)
    out.flush()


def write_range(r: RangeWriter, output_format: str, no_headers: bool = False, stream: Optional[TextIO] = None) -> None:
    """Render a range result in ``output_format`` and print it.

    ``json`` and ``csv`` select those renderers; anything else draws the
    graph, which needs the current terminal dimensions. Errors propagate and
    nothing is printed.
    """
    if output_format == JSON_FORMAT:
        text = r.json()
    elif output_format == CSV_FORMAT:
        text = r.csv(no_headers)
    else:
        if output_format not in ("", GRAPH_FORMAT):
            logger.warning("Unknown output format %r, rendering %s", output_format, GRAPH_FORMAT)
        dim = terminal_size(stream)
        text = r.graph(dim)
    _emit(text, stream)


def write_instant(i: InstantWriter, output_format: str, no_headers: bool = False, stream: Optional[TextIO] = None) -> None:
    """Render an instant result in ``output_format`` and print it.

    ``json`` and ``csv`` select those renderers; anything else prints the
    table. Errors propagate and nothing is printed.
    """
    if output_format == JSON_FORMAT:
        text = i.json()
    elif output_format == CSV_FORMAT:
        text = i.csv(no_headers)
    else:
        if output_format not in ("", TABLE_FORMAT):
            logger.warning("Unknown output format %r, rendering %s", output_format, TABLE_FORMAT)
        text = i.table(no_headers)
    _emit(text, stream)

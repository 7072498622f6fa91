"""In-memory representation of query API results.

Matrix results (range queries) hold one `SampleStream` per series, vector
results (instant queries) hold one `Sample` per series. Timestamps are kept
as integer milliseconds since the Unix epoch; values are floats.
"""

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

import numpy as np

from .exceptions import SerializationError

METRIC_NAME_LABEL = "__name__"

# e.g. "Jan  2 15:04:05", day padded with a space
STAMP_FORMAT = "%b {day:>2} %H:%M:%S"


class Metric(Dict[str, str]):
    """Label set identifying a series."""

    def __str__(self) -> str:
        name = self.get(METRIC_NAME_LABEL)
        labels = [
            f"{key}={json.dumps(value, ensure_ascii=False)}"
            for key, value in sorted(self.items())
            if key != METRIC_NAME_LABEL
        ]
        if not labels:
            return name if name is not None else "{}"
        return f"{name or ''}{{{', '.join(labels)}}}"


class Labeled(Protocol):
    """Anything carrying a label set, e.g. a `Sample` or `SampleStream`."""

    metric: Mapping[str, str]


# ====== VALUE & TIME FORMATTING ======
def format_value(value: float) -> str:
    """Canonical string form of a sample value.

    Shortest round-tripping positional decimal, so ``2.0`` renders as ``2``
    and ``1e-07`` as ``0.0000001``.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return np.format_float_positional(value, trim="-")


def parse_value(raw: Union[str, float, int]) -> float:
    """Parse a wire value (``"1.5"``, ``"NaN"``, ``"+Inf"``) into a float."""
    return float(raw)


def to_datetime(timestamp_ms: int, tz: Optional[tzinfo] = None) -> datetime:
    """Convert a millisecond timestamp to an aware datetime (local time by default)."""
    seconds, millis = divmod(int(timestamp_ms), 1000)
    moment = datetime.fromtimestamp(seconds, tz=tz) if tz else datetime.fromtimestamp(seconds).astimezone()
    return moment.replace(microsecond=millis * 1000)


def _checked_datetime(timestamp_ms: int, tz: Optional[tzinfo]) -> datetime:
    try:
        return to_datetime(timestamp_ms, tz)
    except (ValueError, OverflowError, OSError) as e:
        raise SerializationError(f"timestamp {timestamp_ms} cannot be rendered: {e}") from e


def format_rfc3339(timestamp_ms: int, tz: Optional[tzinfo] = None) -> str:
    """RFC 3339 timestamp at second precision, ``Z`` for a zero offset.

    Raises:
        SerializationError: If the timestamp is outside the supported date range
    """
    text = _checked_datetime(timestamp_ms, tz).isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def format_stamp(timestamp_ms: int, tz: Optional[tzinfo] = None) -> str:
    """Short clock stamp such as ``Jan  2 15:04:05``."""
    moment = _checked_datetime(timestamp_ms, tz)
    return moment.strftime(STAMP_FORMAT.format(day=moment.day))


def timestamp_to_json(timestamp_ms: int) -> Union[int, float]:
    """Seconds since the epoch with at most millisecond precision."""
    if timestamp_ms % 1000 == 0:
        return timestamp_ms // 1000
    return timestamp_ms / 1000


def timestamp_from_json(raw: Union[str, float, int]) -> int:
    """Parse a wire timestamp (seconds, possibly fractional) into milliseconds."""
    return int(round(float(raw) * 1000))


# ====== RESULT TYPES ======
@dataclass(frozen=True)
class SamplePair:
    """A single (timestamp, value) sample."""

    timestamp: int
    value: float

    def to_json(self) -> List[Any]:
        return [timestamp_to_json(self.timestamp), format_value(self.value)]

    @classmethod
    def from_json(cls, data: List[Any]) -> "SamplePair":
        timestamp, value = data
        return cls(timestamp=timestamp_from_json(timestamp), value=parse_value(value))


@dataclass
class SampleStream:
    """A range series: a label set plus ordered samples."""

    metric: Metric = field(default_factory=Metric)
    values: List[SamplePair] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": dict(self.metric),
            "values": [pair.to_json() for pair in self.values],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SampleStream":
        return cls(
            metric=Metric(data.get("metric") or {}),
            values=[SamplePair.from_json(pair) for pair in data.get("values") or []],
        )


@dataclass
class Sample:
    """An instant series: a label set plus exactly one sample."""

    metric: Metric
    value: float
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": dict(self.metric),
            "value": SamplePair(self.timestamp, self.value).to_json(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Sample":
        pair = SamplePair.from_json(data["value"])
        return cls(
            metric=Metric(data.get("metric") or {}),
            value=pair.value,
            timestamp=pair.timestamp,
        )


Matrix = List[SampleStream]
Vector = List[Sample]

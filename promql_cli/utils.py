"""Shared helpers: label union, terminal dimensions and time parsing."""

import logging
import os
import re
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from .exceptions import LabelIntrospectionError, TerminalSizeError
from .models import Labeled

logger = logging.getLogger(__name__)


# ====== LABELS ======
def uniq_labels(series: Iterable[Labeled]) -> List[str]:
    """Return the sorted, de-duplicated label keys found across all series.

    Works on anything that iterates over objects exposing a ``metric``
    mapping, so matrices and vectors are handled alike.

    Args:
        series: Collection of labeled series (may be empty)

    Returns:
        Label keys in lexicographic order

    Raises:
        LabelIntrospectionError: If the collection or one of its items
            carries no label mapping
    """
    if series is None or isinstance(series, (str, bytes)) or not isinstance(series, Iterable):
        raise LabelIntrospectionError(f"cannot read labels from {type(series).__name__}")

    keys = set()
    for index, item in enumerate(series):
        labels = getattr(item, "metric", None)
        if not isinstance(labels, Mapping):
            raise LabelIntrospectionError(
                f"series #{index} ({type(item).__name__}) has no label set"
            )
        keys.update(labels.keys())
    return sorted(keys)


# ====== TERMINAL ======
@dataclass(frozen=True)
class TermDimensions:
    """Terminal size in character cells."""

    width: int
    height: int


def terminal_size(stream: Any = None) -> TermDimensions:
    """Query the dimensions of the terminal attached to ``stream`` (stdout by default).

    Raises:
        TerminalSizeError: If the stream is not attached to a terminal
    """
    stream = stream or sys.stdout
    try:
        size = os.get_terminal_size(stream.fileno())
    except (OSError, ValueError) as e:
        raise TerminalSizeError(f"unable to determine terminal size: {e}") from e
    logger.debug("Terminal size: %dx%d", size.columns, size.lines)
    return TermDimensions(width=size.columns, height=size.lines)


# ====== TIME ======
_DURATION_RE = re.compile(
    r"^(?:(?P<y>\d+)y)?(?:(?P<w>\d+)w)?(?:(?P<d>\d+)d)?(?:(?P<h>\d+)h)?"
    r"(?:(?P<m>\d+)m)?(?:(?P<s>\d+)s)?(?:(?P<ms>\d+)ms)?$"
)

_DURATION_UNITS = {
    "y": timedelta(days=365),
    "w": timedelta(weeks=1),
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
    "ms": timedelta(milliseconds=1),
}


def parse_duration(value: str) -> timedelta:
    """Parse a Prometheus-style duration such as ``1h30m`` or ``2w``.

    Raises:
        ValueError: If ``value`` is empty or not a valid duration
    """
    text = (value or "").strip()
    match = _DURATION_RE.match(text)
    if not text or match is None or not any(match.groupdict().values()):
        raise ValueError(f"invalid duration {value!r}")

    total = timedelta()
    for unit, amount in match.groupdict().items():
        if amount:
            total += int(amount) * _DURATION_UNITS[unit]
    return total


def parse_time(value: str, now: Optional[datetime] = None) -> datetime:
    """Resolve a user supplied point in time.

    Accepts ``now``, a duration meaning "that long ago" (``1h``), a Unix
    timestamp in seconds, or an RFC 3339 string.

    Raises:
        ValueError: If ``value`` matches none of the accepted forms
    """
    now = now or datetime.now(timezone.utc)
    text = (value or "").strip()
    if not text:
        raise ValueError("empty time value")
    if text.lower() == "now":
        return now

    try:
        return now - parse_duration(text)
    except ValueError:
        pass

    try:
        return datetime.fromtimestamp(float(text), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        pass

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"invalid time {value!r}: expected now, a duration, a unix timestamp or RFC 3339") from e
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed

"""Configuration constants for the PromQL command-line client."""

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlparse

from .exceptions import ConfigError

_logger = logging.getLogger(__name__)


def _get_env_value(
    primary: str,
    default: Optional[str] = None,
    legacy_keys: Optional[Iterable[str]] = None,
) -> Optional[str]:
    """Read environment variables with optional legacy fallbacks.

    Args:
        primary: Preferred environment variable name (`PROMQL_*` namespace)
        default: Default value if nothing is set
        legacy_keys: Older env var names still honoured

    Returns:
        The first non-empty environment value, or the provided default.
    """
    keys = [primary]
    if legacy_keys:
        keys.extend(legacy_keys)
    for key in keys:
        value = os.environ.get(key)
        if value is not None and value.strip() != "":
            return value.strip()
    return default


def _parse_env_float(key: str, default: float, min_val: float = None, max_val: float = None) -> float:
    """Parse float from environment with validation.

    Invalid values are logged and replaced by the default; out-of-range
    values are clamped.

    Args:
        key: Environment variable name
        default: Default value if not set or invalid
        min_val: Minimum allowed value (optional)
        max_val: Maximum allowed value (optional)

    Returns:
        Parsed and validated float value
    """
    value = os.environ.get(key)
    if value is None:
        return default

    try:
        parsed = float(value)
    except ValueError as e:
        _logger.error(
            f"Invalid float for {key}='{value}': {e}. "
            f"Using default: {default}"
        )
        return default

    if min_val is not None and parsed < min_val:
        _logger.warning(f"{key}={parsed} below minimum {min_val}, clamping")
        return min_val
    if max_val is not None and parsed > max_val:
        _logger.warning(f"{key}={parsed} above maximum {max_val}, clamping")
        return max_val

    return parsed


def _get_bool_env(var_name: str, default: str = "1", legacy_keys: Optional[Iterable[str]] = None) -> bool:
    """Read a boolean environment variable with optional legacy aliases."""

    keys = [var_name]
    if legacy_keys:
        keys.extend(legacy_keys)

    for key in keys:
        if key in os.environ:
            value = os.environ[key]
            break
    else:
        value = default

    return value.lower() not in {"0", "false", "no", "off", ""}


# ====== QUERY API CONFIG ======
DEFAULT_PROMQL_HOST = "http://localhost:9090"

PROMQL_HOST = _get_env_value(
    "PROMQL_HOST",
    default=DEFAULT_PROMQL_HOST,
    legacy_keys=("PROMETHEUS_URL",),
)
PROMQL_TIMEOUT = _parse_env_float("PROMQL_TIMEOUT", 10.0, min_val=0.1, max_val=600.0)

# Requests honours HTTP(S)_PROXY only when this is set
ALLOW_PROXIES = _get_bool_env("ALLOW_PROXIES", "0")

# ====== OUTPUT CONFIG ======
# Empty means the default renderer: graph for range queries, table for instant queries
PROMQL_OUTPUT = (_get_env_value("PROMQL_OUTPUT", "") or "").lower()
PROMQL_NO_HEADERS = _get_bool_env("PROMQL_NO_HEADERS", "0")

# ====== RANGE QUERY DEFAULTS ======
PROMQL_STEP = _get_env_value("PROMQL_STEP", "1m") or "1m"
PROMQL_START = _get_env_value("PROMQL_START", "1h") or "1h"

# Graph sizing relative to the terminal
GRAPH_HEIGHT_DIVISOR = 5
GRAPH_WIDTH_MARGIN = 8

# Padding between aligned table columns
TABLE_PADDING = 4

# ====== LOGGING CONFIG ======
PROMQL_LOG_LEVEL = (_get_env_value("PROMQL_LOG_LEVEL", "WARNING") or "WARNING").upper()
PROMQL_LOG_FORMAT = (_get_env_value("PROMQL_LOG_FORMAT", "text") or "text").lower()
PROMQL_LOG_FILE = _get_env_value("PROMQL_LOG_FILE", None)


@dataclass(frozen=True)
class ClientSettings:
    """Typed snapshot of the current query API configuration."""

    host: str
    timeout: float
    allow_proxies: bool


def current_client_settings(host: Optional[str] = None) -> ClientSettings:
    """Return a dataclass capturing the query API configuration.

    Args:
        host: Explicit host overriding `PROMQL_HOST` (e.g. from `--host`)

    Raises:
        ConfigError: If the host is not an http(s) URL
    """
    base_url = (host or PROMQL_HOST).rstrip("/")
    parsed = urlparse(base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid query API host {base_url!r}: expected an http:// or https:// URL")

    return ClientSettings(
        host=base_url,
        timeout=PROMQL_TIMEOUT,
        allow_proxies=ALLOW_PROXIES,
    )

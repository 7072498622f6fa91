"""Typer-based CLI for querying a Prometheus-compatible API.

Provides commands:
- promql query: Instant query rendered as a table, JSON or CSV
- promql range: Range query rendered as an ASCII graph, JSON or CSV
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import typer
from rich.console import Console

from . import config
from .api_client import PrometheusClient
from .exceptions import PromQLCLIError
from .logging_config import setup_logging
from .utils import parse_duration, parse_time
from .writer import InstantResult, RangeResult, write_instant, write_range

logger = logging.getLogger(__name__)
# stdout carries query results only
console = Console(stderr=True)

app = typer.Typer(help="Query a Prometheus-compatible API from the command line")

EXIT_ERROR = 1
EXIT_USAGE = 2


def _fail(message: str, code: int = EXIT_ERROR) -> typer.Exit:
    console.print(f"❌ {message}", markup=False, highlight=False)
    return typer.Exit(code)


def _resolve_time(value: str, option: str, now: datetime) -> datetime:
    try:
        return parse_time(value, now=now)
    except ValueError as e:
        raise _fail(f"Invalid {option}: {e}", EXIT_USAGE)


def _check_step(step: str) -> str:
    """Accept a duration (``30s``, ``1m``) or a number of seconds."""
    try:
        parse_duration(step)
        return step
    except ValueError:
        pass
    try:
        if float(step) > 0:
            return step
    except ValueError:
        pass
    raise _fail(f"Invalid --step: {step!r} is neither a duration nor a positive number of seconds", EXIT_USAGE)


@app.callback()
def main(
    log_level: str = typer.Option(config.PROMQL_LOG_LEVEL, "--log-level", help="Logging level for stderr diagnostics"),
    log_format: str = typer.Option(config.PROMQL_LOG_FORMAT, "--log-format", help="Log format: text or json"),
    log_file: Optional[str] = typer.Option(config.PROMQL_LOG_FILE, "--log-file", help="Also log (as JSON) to this file"),
) -> None:
    """Query a Prometheus-compatible API and render the result."""
    setup_logging(level=log_level, format_type=log_format, log_file=log_file)


# ============================================================================
# Query Command: Instant Query
# ============================================================================


@app.command()
def query(
    expr: str = typer.Argument(..., help="PromQL expression"),
    at: Optional[str] = typer.Option(None, "--time", help="Evaluation time: now, a duration ago (5m), unix or RFC 3339"),
    host: Optional[str] = typer.Option(None, "--host", help="Query API base URL (default: PROMQL_HOST)"),
    output: str = typer.Option(config.PROMQL_OUTPUT, "--output", "-o", help="Output format: table (default), json or csv"),
    no_headers: bool = typer.Option(config.PROMQL_NO_HEADERS, "--no-headers/--headers", help="Omit the header row"),
) -> None:
    """Run an instant query.

    Example:
        promql query 'up{job="node"}' -o csv
    """
    moment = _resolve_time(at, "--time", datetime.now(timezone.utc)) if at else None

    try:
        vector = PrometheusClient(host=host).query(expr, moment)
        logger.info("Instant query returned %d series", len(vector))
        write_instant(InstantResult(vector), output.lower(), no_headers)
    except PromQLCLIError as e:
        logger.error("Query error: %s", e)
        raise _fail(f"Error: {e}")
    except Exception as e:
        logger.error(f"Query error: {e}", exc_info=True)
        raise _fail(f"Unexpected error: {e}")


# ============================================================================
# Range Command: Range Query
# ============================================================================


@app.command("range")
def range_query(
    expr: str = typer.Argument(..., help="PromQL expression"),
    start: str = typer.Option(config.PROMQL_START, "--start", help="Range start: a duration ago (1h), unix or RFC 3339"),
    end: str = typer.Option("now", "--end", help="Range end: now, a duration ago, unix or RFC 3339"),
    step: str = typer.Option(config.PROMQL_STEP, "--step", help="Resolution step, e.g. 30s or 1m"),
    host: Optional[str] = typer.Option(None, "--host", help="Query API base URL (default: PROMQL_HOST)"),
    output: str = typer.Option(config.PROMQL_OUTPUT, "--output", "-o", help="Output format: graph (default), json or csv"),
    no_headers: bool = typer.Option(config.PROMQL_NO_HEADERS, "--no-headers/--headers", help="Omit the CSV header row"),
) -> None:
    """Run a range query.

    Example:
        promql range 'rate(http_requests_total[5m])' --start 6h --step 5m
    """
    now = datetime.now(timezone.utc)
    start_at = _resolve_time(start, "--start", now)
    end_at = _resolve_time(end, "--end", now)
    if start_at > end_at:
        raise _fail("Invalid range: --start is after --end", EXIT_USAGE)
    step = _check_step(step)

    try:
        matrix = PrometheusClient(host=host).query_range(expr, start_at, end_at, step)
        logger.info("Range query returned %d series", len(matrix))
        write_range(RangeResult(matrix), output.lower(), no_headers)
    except PromQLCLIError as e:
        logger.error("Range query error: %s", e)
        raise _fail(f"Error: {e}")
    except Exception as e:
        logger.error(f"Range query error: {e}", exc_info=True)
        raise _fail(f"Unexpected error: {e}")


if __name__ == "__main__":
    app()

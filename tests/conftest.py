"""Shared pytest fixtures for promql_cli tests."""

import importlib.util
import os
import sys
from datetime import timezone

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from promql_cli.logging_config import reset_logging
from promql_cli.models import Metric, Sample, SamplePair, SampleStream

# 2023-11-14T22:13:20Z
T = 1_700_000_000_000
MINUTE = 60_000


def _has_module(name: str) -> bool:
    return importlib.util.find_spec(name) is not None


def pytest_configure(config):
    """Fail fast when runtime dependencies are missing."""
    missing = [name for name in ("numpy", "requests", "asciichartpy", "typer", "rich") if not _has_module(name)]
    if missing:
        pytest.exit(
            f"\nERROR: Missing required test dependencies: {', '.join(missing)}\n"
            f"Install with: pip install -e '.[dev]'\n",
            returncode=1,
        )


@pytest.fixture(autouse=True)
def clean_logging():
    """Undo handlers installed by the CLI callback."""
    yield
    reset_logging()


@pytest.fixture
def utc():
    return timezone.utc


@pytest.fixture
def two_series_vector():
    """{instance="a"} 1.5 and {instance="b", job="x"} 2 at the same instant."""
    return [
        Sample(metric=Metric({"instance": "a"}), value=1.5, timestamp=T),
        Sample(metric=Metric({"instance": "b", "job": "x"}), value=2.0, timestamp=T),
    ]


@pytest.fixture
def sample_matrix():
    """Two series with heterogeneous label sets and unsorted sample values."""
    return [
        SampleStream(
            metric=Metric({"__name__": "up", "instance": "a"}),
            values=[
                SamplePair(T, 3.0),
                SamplePair(T + MINUTE, 1.0),
                SamplePair(T + 2 * MINUTE, 2.0),
            ],
        ),
        SampleStream(
            metric=Metric({"__name__": "up", "instance": "b", "job": "node"}),
            values=[
                SamplePair(T, 0.5),
                SamplePair(T + MINUTE, 0.25),
            ],
        ),
    ]

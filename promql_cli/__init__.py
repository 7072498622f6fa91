"""PromQL command-line client.

Runs instant and range queries against a Prometheus-compatible API and
renders the results as JSON, CSV, an aligned table or an ASCII graph.
"""

__version__ = "0.4.0"

from .exceptions import (
    PromQLCLIError,
    ConfigError,
    QueryError,
    QueryUnavailableError,
    QueryBadResponseError,
    WriterError,
    SerializationError,
    LabelIntrospectionError,
    TerminalSizeError,
)

from .models import (
    Metric,
    SamplePair,
    SampleStream,
    Sample,
    Matrix,
    Vector,
    format_value,
    format_rfc3339,
)

from .utils import (
    TermDimensions,
    terminal_size,
    uniq_labels,
    parse_duration,
    parse_time,
)

from .writer import (
    Writer,
    RangeWriter,
    InstantWriter,
    RangeResult,
    InstantResult,
    write_range,
    write_instant,
)

from .api_client import PrometheusClient

__all__ = [
    "__version__",
    "PromQLCLIError",
    "ConfigError",
    "QueryError",
    "QueryUnavailableError",
    "QueryBadResponseError",
    "WriterError",
    "SerializationError",
    "LabelIntrospectionError",
    "TerminalSizeError",
    "Metric",
    "SamplePair",
    "SampleStream",
    "Sample",
    "Matrix",
    "Vector",
    "format_value",
    "format_rfc3339",
    "TermDimensions",
    "terminal_size",
    "uniq_labels",
    "parse_duration",
    "parse_time",
    "Writer",
    "RangeWriter",
    "InstantWriter",
    "RangeResult",
    "InstantResult",
    "write_range",
    "write_instant",
    "PrometheusClient",
]

"""Custom exceptions for the PromQL command-line client."""


class PromQLCLIError(Exception):
    """Base class for errors surfaced to the command line."""
    pass


class ConfigError(PromQLCLIError):
    """Configuration value is missing or invalid."""
    pass


class QueryError(PromQLCLIError):
    """Query API call failed or the server reported an error."""

    def __init__(self, message: str, error_type: str = ""):
        super().__init__(message)
        self.error_type = error_type


class QueryUnavailableError(QueryError):
    """Query endpoint is unreachable or timed out."""
    pass


class QueryBadResponseError(QueryError):
    """Query API returned a malformed or unexpected payload."""
    pass


class WriterError(PromQLCLIError):
    """Rendering a query result failed."""
    pass


class SerializationError(WriterError):
    """Encoding a result to JSON or CSV failed."""
    pass


class LabelIntrospectionError(WriterError):
    """A series in the result does not expose a label set."""
    pass


class TerminalSizeError(PromQLCLIError):
    """Terminal dimensions could not be determined."""
    pass

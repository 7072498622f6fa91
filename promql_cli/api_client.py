"""Typed client for the Prometheus HTTP query API.

Only the two query endpoints are covered: ``/api/v1/query`` for instant
queries and ``/api/v1/query_range`` for range queries. Responses are decoded
into the ``Vector``/``Matrix`` types from ``promql_cli.models``.
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import requests
from typing_extensions import Literal, TypedDict

from .config import current_client_settings
from .exceptions import QueryBadResponseError, QueryError, QueryUnavailableError
from .models import Matrix, Metric, Sample, SamplePair, SampleStream, Vector

logger = logging.getLogger(__name__)

QUERY_PATH = "/api/v1/query"
QUERY_RANGE_PATH = "/api/v1/query_range"


class QueryData(TypedDict):
    """Typed representation of the ``data`` member of a query response."""

    resultType: Literal["matrix", "vector", "scalar", "string"]
    result: Any


class QueryResponse(TypedDict, total=False):
    """Typed representation of a query API response envelope."""

    status: Literal["success", "error"]
    data: QueryData
    errorType: str
    error: str
    warnings: List[str]


class QueryParams(TypedDict, total=False):
    """Query string parameters accepted by the query endpoints."""

    query: str
    time: str
    start: str
    end: str
    step: str
    timeout: str


def format_api_time(moment: datetime) -> str:
    """Unix seconds with millisecond precision, as accepted by the API."""
    return f"{moment.timestamp():.3f}"


def get_session(allow_proxies: bool = False) -> requests.Session:
    """Create a plain session; no retry adapter is mounted."""
    session = requests.Session()
    session.trust_env = allow_proxies
    return session


class PrometheusClient:
    """Client for a Prometheus-compatible query API."""

    def __init__(self, host: Optional[str] = None, timeout: Optional[float] = None):
        """Initialize the client.

        Args:
            host: Base URL of the API (defaults to config.PROMQL_HOST)
            timeout: Request timeout in seconds (defaults to config.PROMQL_TIMEOUT)
        """
        settings = current_client_settings(host)
        self.host = settings.host
        self.timeout = timeout or settings.timeout
        self.session = get_session(allow_proxies=settings.allow_proxies)

    def query(self, expr: str, at: Optional[datetime] = None) -> Vector:
        """Run an instant query.

        Scalar results are returned as a one-sample vector with an empty
        label set.

        Raises:
            QueryError: If the server rejects the query
            QueryUnavailableError: On timeouts or connection failures
            QueryBadResponseError: If the response is not a vector or scalar
        """
        params: QueryParams = {"query": expr}
        if at is not None:
            params["time"] = format_api_time(at)

        data = self._get(QUERY_PATH, params)
        result_type = data["resultType"]
        try:
            if result_type == "vector":
                return [Sample.from_dict(item) for item in data["result"]]
            if result_type == "scalar":
                pair = SamplePair.from_json(data["result"])
                return [Sample(metric=Metric(), value=pair.value, timestamp=pair.timestamp)]
        except (KeyError, TypeError, ValueError) as e:
            raise QueryBadResponseError(f"Malformed {result_type} result: {e}") from e
        raise QueryBadResponseError(f"Instant query returned unsupported result type {result_type!r}")

    def query_range(self, expr: str, start: datetime, end: datetime, step: str) -> Matrix:
        """Run a range query between ``start`` and ``end`` at resolution ``step``.

        Raises:
            QueryError: If the server rejects the query
            QueryUnavailableError: On timeouts or connection failures
            QueryBadResponseError: If the response is not a matrix
        """
        params: QueryParams = {
            "query": expr,
            "start": format_api_time(start),
            "end": format_api_time(end),
            "step": step,
        }

        data = self._get(QUERY_RANGE_PATH, params)
        result_type = data["resultType"]
        if result_type != "matrix":
            raise QueryBadResponseError(f"Range query returned unsupported result type {result_type!r}")
        try:
            return [SampleStream.from_dict(item) for item in data["result"]]
        except (KeyError, TypeError, ValueError) as e:
            raise QueryBadResponseError(f"Malformed matrix result: {e}") from e

    def _get(self, path: str, params: Union[QueryParams, Dict[str, str]]) -> QueryData:
        url = f"{self.host}{path}"
        start_time = time.time()
        response = None

        try:
            response = self.session.get(url, params=params, timeout=self.timeout, allow_redirects=False)
            payload = response.json()
        except requests.exceptions.Timeout as e:
            logger.error("Query timeout (%.1fs) host=%s: %s", self.timeout, self.host, e)
            raise QueryUnavailableError(f"Query to {self.host} timed out after {self.timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            logger.error("Query connection error host=%s: %s", self.host, e)
            raise QueryUnavailableError(f"Could not connect to {self.host}") from e
        except ValueError as e:
            status = getattr(response, "status_code", "unknown")
            logger.error("Query returned invalid JSON host=%s status=%s: %s", self.host, status, e)
            raise QueryBadResponseError(f"Query API returned invalid JSON (status {status})") from e
        except requests.exceptions.RequestException as e:
            logger.error("Query request error host=%s: %s", self.host, e)
            raise QueryError(f"Query request error: {e}") from e

        # The API reports query errors in the body along with a 4xx/5xx status
        validated = self._validate_response(payload, response.status_code)
        for warning in validated.get("warnings") or []:
            logger.warning("Query warning: %s", warning)
        logger.debug("Query %s finished in %.2fs", path, time.time() - start_time)
        return validated["data"]

    @staticmethod
    def _validate_response(payload: Any, status_code: int) -> QueryResponse:
        if not isinstance(payload, dict):
            raise QueryBadResponseError("Query response must be a JSON object")

        status = payload.get("status")
        if status == "error":
            error_type = payload.get("errorType", "")
            message = payload.get("error", "unknown error")
            raise QueryError(f"{error_type}: {message}" if error_type else message, error_type=error_type)
        if status != "success" or status_code >= 400:
            raise QueryBadResponseError(f"Unexpected query response status {status!r} (HTTP {status_code})")

        data = payload.get("data")
        if not isinstance(data, dict) or "resultType" not in data or "result" not in data:
            raise QueryBadResponseError("Query response is missing data.resultType or data.result")
        return payload  # type: ignore[return-value]

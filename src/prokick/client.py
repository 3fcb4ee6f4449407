"""PostgREST data-access client.

DataClient speaks the REST dialect of a Supabase project: table reads with
filter query parameters and remote procedure calls under ``/rpc``. It knows
nothing about bookings; typed access lives in ``store``.
"""

from datetime import datetime
from typing import Any

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from src.prokick.config import ProKickConfig
from src.prokick.errors import BackendError, TransientError
from src.prokick.logging import get_logger

logger = get_logger(__name__)

REST_PATH = "/rest/v1"
SINGLE_OBJECT = "application/vnd.pgrst.object+json"

# Status codes worth another attempt on reads
_TRANSIENT_STATUS: frozenset[int] = frozenset({429, 500, 502, 503, 504})

OPERATORS: frozenset[str] = frozenset({"eq", "neq", "gt", "gte", "lt", "lte", "is"})


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class Query:
    """Chainable read query against one table.

    Usage:
        rows = client.table("classes").select("*").gt("start_time", now).order("start_time").execute()
    """

    def __init__(self, client: "DataClient", table: str) -> None:
        self.client = client
        self.table_name = table
        self.columns = "*"
        self.filters: list[tuple[str, str]] = []
        self.ordering: list[str] = []
        self.want_single = False

    def select(self, columns: str) -> "Query":
        self.columns = columns
        return self

    def _filter(self, column: str, op: str, value: Any) -> "Query":
        if op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op!r}")
        self.filters.append((column, f"{op}.{_format_value(value)}"))
        return self

    def eq(self, column: str, value: Any) -> "Query":
        return self._filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "Query":
        return self._filter(column, "neq", value)

    def gt(self, column: str, value: Any) -> "Query":
        return self._filter(column, "gt", value)

    def is_(self, column: str, value: Any) -> "Query":
        return self._filter(column, "is", value)

    def order(self, column: str, *, ascending: bool = True) -> "Query":
        self.ordering.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def single(self) -> "Query":
        self.want_single = True
        return self

    def params(self) -> list[tuple[str, str]]:
        params = [("select", self.columns), *self.filters]
        if self.ordering:
            params.append(("order", ",".join(self.ordering)))
        return params

    def execute(self) -> Any:
        return self.client.fetch(self.table_name, self.params(), single=self.want_single)


class DataClient:
    """Thin PostgREST client over a requests.Session.

    Reads are retried on TransientError. RPCs are sent exactly once: the
    backend gets no idempotency key, so a retried booking could land twice.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 15.0,
        read_attempts: int = 3,
        retry_wait: float = 1.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + REST_PATH
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            }
        )
        self._read_retrying = Retrying(
            stop=stop_after_attempt(max(read_attempts, 1)),
            wait=wait_fixed(retry_wait),
            retry=retry_if_exception_type(TransientError),
            reraise=True,
        )

    @classmethod
    def from_config(cls, config: ProKickConfig, session: requests.Session | None = None) -> "DataClient":
        return cls(
            config.supabase_url,
            config.supabase_anon_key,
            timeout=config.request_timeout_seconds,
            read_attempts=config.read_retry_attempts,
            retry_wait=config.retry_wait_seconds,
            session=session,
        )

    def table(self, name: str) -> Query:
        return Query(self, name)

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: list[tuple[str, str, Any]] | None = None,
        order: list[str | tuple[str, bool]] | None = None,
        single: bool = False,
    ) -> Any:
        """Read rows in one call.

        Args:
            filters: ``(column, operator, value)`` triples, e.g.
                ``("start_time", "gt", now)`` or ``("child_id", "is", None)``.
            order: Column names (ascending) or ``(column, ascending)`` pairs.
            single: Expect exactly one row and return it as a dict.

        Raises:
            ValueError: If an operator is not one of ``OPERATORS``.
        """
        query = self.table(table).select(columns)
        for column, op, value in filters or []:
            query._filter(column, op, value)
        for item in order or []:
            column, ascending = (item, True) if isinstance(item, str) else item
            query.order(column, ascending=ascending)
        if single:
            query.single()
        return query.execute()

    def fetch(self, table: str, params: list[tuple[str, str]], *, single: bool = False) -> Any:
        """GET rows from a table.

        Returns:
            A list of row dicts, or one dict when ``single`` is set.

        Raises:
            TransientError: If every attempt failed on the network or with 5xx/429.
            BackendError: If the backend rejected the query.
        """
        headers = {"Accept": SINGLE_OBJECT} if single else None
        return self._read_retrying(
            self._send, "GET", f"{self.base_url}/{table}", params=params, headers=headers
        )

    def rpc(self, name: str, params: dict[str, Any]) -> Any:
        """Call a remote procedure once.

        Argument names are prefixed with ``p_`` to match the procedures'
        parameter names.

        Raises:
            TransientError: On network failure or 5xx/429 (not retried).
            BackendError: If the procedure raised or the call was malformed.
        """
        body = {f"p_{key}": value for key, value in params.items()}
        logger.info("rpc_called", rpc=name, params=sorted(body))
        try:
            return self._send("POST", f"{self.base_url}/rpc/{name}", json=body)
        except (TransientError, BackendError) as e:
            logger.warning("rpc_failed", rpc=name, error=str(e), type=type(e).__name__)
            raise

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.warning("request_timeout", method=method, url=url)
            raise TransientError(f"Request timed out: {e}") from e
        except requests.RequestException as e:
            logger.warning("request_failed", method=method, url=url, error=str(e))
            raise TransientError(f"Network error: {e}") from e

        if resp.status_code in _TRANSIENT_STATUS:
            logger.warning("request_transient_status", method=method, url=url, status=resp.status_code)
            raise TransientError(f"Backend unavailable ({resp.status_code})")

        if resp.status_code >= 400:
            message, code = _error_details(resp)
            logger.warning(
                "request_rejected", method=method, url=url, status=resp.status_code, code=code
            )
            raise BackendError(message, status_code=resp.status_code, code=code)

        if resp.status_code == 204 or not resp.content:
            return None

        try:
            data = resp.json()
        except ValueError as e:
            raise BackendError(
                f"Backend returned a non-JSON body ({resp.status_code})", status_code=resp.status_code
            ) from e

        logger.debug("request_succeeded", method=method, url=url, status=resp.status_code)
        return data


def _error_details(resp: requests.Response) -> tuple[str, str | None]:
    """Pull message and code out of a PostgREST error object."""
    try:
        payload = resp.json()
    except ValueError:
        return (resp.text or f"HTTP {resp.status_code}"), None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error") or f"HTTP {resp.status_code}"
        return str(message), payload.get("code")
    return f"HTTP {resp.status_code}", None

"""HTTP adapter for the Prometheus instant query API."""

import logging
from typing import Any

import httpx

from rules_exporter.core.errors import QueryError

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT = 50.0
QUERY_PATH = "/api/v1/query"


def _error_detail(response: httpx.Response) -> str:
    """Return the backend's ``error`` field if the body carries one."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return response.reason_phrase


class PrometheusHTTPBackend:
    """QueryBackendPort implementation using ``httpx.AsyncClient``.

    One GET per query, no retries. The timeout bounds the whole request
    so a hung backend cannot stall a scrape.

    Args:
        timeout: Seconds allowed per query.
        client: Client to use instead of creating one (tests pass a client
            with ``httpx.MockTransport``). A passed client is not closed by
            ``aclose``.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_QUERY_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def query(self, endpoint: str, expression: str) -> Any:
        """Run an instant query and return the decoded JSON body.

        Raises:
            QueryError: On timeout, transport failure, non-2xx status or a
                body that is not JSON.
        """
        url = endpoint.rstrip("/") + QUERY_PATH
        try:
            response = await self._client.get(
                url, params={"query": expression}, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise QueryError(
                f"query to {endpoint} timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise QueryError(f"query to {endpoint} failed: {e}") from e

        if not response.is_success:
            raise QueryError(
                f"query to {endpoint} returned {response.status_code}: "
                f"{_error_detail(response)}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise QueryError(
                f"query to {endpoint} returned invalid JSON: {e}"
            ) from e

    async def aclose(self) -> None:
        """Close the underlying client if this backend created it."""
        if self._owns_client:
            await self._client.aclose()

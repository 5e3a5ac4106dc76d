"""
Transport protocol for ledger JSON-RPC calls.

Defines the seam where concrete HTTP implementations plug in. The
JSON-RPC client depends on this protocol, not on httpx directly, so the
transport can be swapped without editing client logic.

Concrete implementations:
    - HttpxTransport (default, one shared httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)

Lifecycle: construct one transport at process start, inject it into the
client, close it at shutdown. There is no module-level connection.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Async transport for JSON-RPC POST requests."""

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON-RPC request and return the parsed response.

        Args:
            url: The JSON-RPC endpoint URL.
            payload: The JSON-RPC request body (jsonrpc, id, method, params).

        Returns:
            Parsed JSON response as a dict.

        Raises:
            Exception: On transport-level failures (connection refused,
                timeout, TLS error, non-2xx status). The pipeline
                classifies these as network errors or timeouts.
        """
        ...


class HttpxTransport:
    """Default transport using a long-lived ``httpx.AsyncClient``.

    The underlying client is created lazily on first use and reused for
    every request until ``aclose()``. Pass ``client`` to share an
    existing ``httpx.AsyncClient`` (it is then not closed by us).
    """

    def __init__(
        self,
        timeout: float = 30.0,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send JSON-RPC request via httpx."""
        logger.debug("POST %s method=%s", url, payload.get("method"))
        response = await self._get_client().post(
            url,
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        response.raise_for_status()
        result: dict[str, Any] = response.json()
        return result

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

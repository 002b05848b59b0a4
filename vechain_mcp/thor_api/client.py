"""
Thin async client for the Thor node call-simulation endpoint.

Only read-only contract calls are issued (``POST /accounts/*``); transport
failures are mapped to internal exceptions that the service layer refines.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from vechain_mcp.config import VeChainConfig, default_config

logger = logging.getLogger(__name__)

SIMULATE_CALL_PATH = "/accounts/*"


class ThorApiError(Exception):
    """Base exception for Thor node errors."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.body = body


class NodeUnreachableError(ThorApiError):
    """Raised when the node cannot be reached."""


class ThorApiClient:
    """Async client for the limited Thor API surface."""

    def __init__(
        self,
        config: VeChainConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.node_url, timeout=self.config.timeout
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _process_response(self, response: httpx.Response) -> Any:
        if not 200 <= response.status_code < 300:
            body = response.text or ""
            raise ThorApiError(
                f"Thor node request failed: {response.status_code} - {body}",
                status_code=response.status_code,
                body=body,
            )
        try:
            return response.json()
        except ValueError:
            raise ThorApiError(
                "Unexpected response from node.", status_code=response.status_code
            ) from None

    async def inspect_clauses(
        self,
        clauses: List[Dict[str, Any]],
        *,
        timeout: Optional[float] = None,
    ) -> Any:
        """Simulate the given clauses and return the decoded JSON outputs."""
        client = await self._get_client()
        kwargs: Dict[str, Any] = {
            "json": {"clauses": clauses},
            "headers": {"Content-Type": "application/json", "Accept": "application/json"},
        }
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = await client.post(SIMULATE_CALL_PATH, **kwargs)
        except httpx.RequestError as exc:
            logger.warning("Thor node unreachable for path %s", SIMULATE_CALL_PATH)
            raise NodeUnreachableError("Node unreachable") from exc
        return self._process_response(response)

    async def call_contract(
        self,
        to: str,
        data: str,
        *,
        timeout: Optional[float] = None,
    ) -> Any:
        """Simulate a single zero-value call to ``to`` with ABI ``data``."""
        return await self.inspect_clauses(
            [{"to": to, "value": "0", "data": data}], timeout=timeout
        )


default_client = ThorApiClient()

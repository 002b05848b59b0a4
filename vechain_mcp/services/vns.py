"""
VNS (VeChain Name Service) forward and reverse resolution with TTL caching.

``VnsClient`` talks to the network's VNS resolve-utils contract. ``NameResolver``
layers a forward cache (name -> address) and a reverse cache (address -> name
or None) on top of any ``NameService`` implementation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from vechain_mcp.cache import TTLCache
from vechain_mcp.config import VeChainConfig, default_config
from vechain_mcp.metrics import MetricsRecorder, default_metrics
from vechain_mcp.thor_api import ThorApiClient, ThorApiError, default_client
from vechain_mcp.thor_api.abi import (
    AbiDecodeError,
    ZERO_ADDRESS,
    decode_address_array,
    decode_string_array,
    encode_address_array,
    encode_string_array,
    function_selector,
)
from vechain_mcp.validators import is_valid_address

logger = logging.getLogger(__name__)

GET_ADDRESSES_SELECTOR = function_selector("getAddresses(string[])")
GET_NAMES_SELECTOR = function_selector("getNames(address[])")


class NameNotFoundError(Exception):
    """Raised when a name has no address record."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Unknown VNS name: {value}")
        self.value = value


class NameService(Protocol):
    async def resolve_name(self, name: str, *, timeout: Optional[float] = None) -> Optional[str]:
        ...

    async def lookup_address(self, address: str, *, timeout: Optional[float] = None) -> Optional[str]:
        ...


def _single_output_data(outputs: Any) -> str:
    if not isinstance(outputs, list) or not outputs or not isinstance(outputs[0], dict):
        raise ThorApiError("Unexpected response from node.")
    output = outputs[0]
    if output.get("reverted"):
        raise ThorApiError(
            f"VNS call reverted: {output.get('revertReason') or 'unknown reason'}",
            code="REVERTED",
        )
    data = output.get("data")
    if not isinstance(data, str) or len(data) <= 2:
        raise ThorApiError("No data returned from VNS resolver.")
    return data


class VnsClient:
    """NameService backed by the VNS resolve-utils contract."""

    def __init__(
        self,
        client: ThorApiClient = default_client,
        *,
        config: VeChainConfig | None = None,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self.client = client
        self.config = config or client.config
        self.metrics = metrics or default_metrics

    async def resolve_name(self, name: str, *, timeout: Optional[float] = None) -> Optional[str]:
        resolver = self.config.vns_resolver_address
        if resolver is None:
            logger.debug("VNS not deployed on %s; cannot resolve %s", self.config.network, name)
            return None
        self.metrics.incr_upstream_call("vns_resolve")
        data = GET_ADDRESSES_SELECTOR + encode_string_array([name])
        outputs = await self.client.call_contract(resolver, data, timeout=timeout)
        try:
            addresses = decode_address_array(_single_output_data(outputs))
        except AbiDecodeError as exc:
            raise ThorApiError(f"Malformed VNS response: {exc}") from exc
        if not addresses or addresses[0].lower() == ZERO_ADDRESS:
            return None
        return addresses[0]

    async def lookup_address(self, address: str, *, timeout: Optional[float] = None) -> Optional[str]:
        resolver = self.config.vns_resolver_address
        if resolver is None:
            return None
        self.metrics.incr_upstream_call("vns_lookup")
        data = GET_NAMES_SELECTOR + encode_address_array([address])
        outputs = await self.client.call_contract(resolver, data, timeout=timeout)
        try:
            names = decode_string_array(_single_output_data(outputs))
        except AbiDecodeError as exc:
            raise ThorApiError(f"Malformed VNS response: {exc}") from exc
        if not names or not names[0]:
            return None
        return names[0]


class NameResolver:
    """Resolve VNS names to addresses and back, caching both directions."""

    def __init__(
        self,
        name_service: NameService | None = None,
        *,
        config: VeChainConfig | None = None,
        forward_cache: TTLCache[str] | None = None,
        reverse_cache: TTLCache[Optional[str]] | None = None,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self.config = config or default_config
        self.metrics = metrics or default_metrics
        if name_service is None:
            name_service = VnsClient(config=self.config, metrics=self.metrics)
        self.name_service = name_service
        self.forward_cache = forward_cache if forward_cache is not None else TTLCache(
            self.config.vns_cache_ttl, name="vns_forward", metrics=self.metrics
        )
        self.reverse_cache = reverse_cache if reverse_cache is not None else TTLCache(
            self.config.vns_cache_ttl, name="vns_reverse", metrics=self.metrics
        )

    async def resolve_to_address(self, value: str, *, timeout: Optional[float] = None) -> str:
        """
        Return ``value`` unchanged if it is already an address, otherwise
        resolve it as a name. Any non-address input is looked up; labels
        without a ``.vet`` suffix normally come back unregistered.

        Raises:
            NameNotFoundError: the name has no address record.
        """
        normalized = value.strip()
        if is_valid_address(normalized):
            return normalized
        if not normalized:
            raise NameNotFoundError(value)

        key = normalized.lower()

        async def fetch() -> str:
            logger.debug("Resolving VNS name %s", key)
            resolved = await self.name_service.resolve_name(key)
            if not resolved:
                raise NameNotFoundError(value)
            if not is_valid_address(resolved):
                raise ThorApiError(f"VNS resolved {key} to a malformed address.")
            # One round trip warms both directions.
            self.reverse_cache.set(resolved.lower(), key)
            return resolved

        return await self.forward_cache.get_or_fetch(key, fetch, timeout=timeout)

    async def resolve_to_name(self, address: str, *, timeout: Optional[float] = None) -> Optional[str]:
        """
        Best-effort reverse lookup. Returns None when there is no name, and
        also when the lookup itself fails; failures are cached as "no name".
        """
        if not is_valid_address(address):
            return None
        key = address.strip().lower()

        async def fetch() -> Optional[str]:
            try:
                return await self.name_service.lookup_address(key)
            except Exception as exc:
                logger.warning(
                    "VNS reverse lookup failed for %s: %s",
                    key,
                    exc,
                    extra={"error": type(exc).__name__},
                )
                self.metrics.incr_swallowed_error("vns_lookup")
                return None

        try:
            return await self.reverse_cache.get_or_fetch(key, fetch, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("VNS reverse lookup timed out for %s", key)
            self.metrics.incr_swallowed_error("vns_lookup_timeout")
            return None

    async def enrich(self, address: str, *, timeout: Optional[float] = None) -> Dict[str, Any]:
        return {"address": address, "name": await self.resolve_to_name(address, timeout=timeout)}

    async def enrich_batch(
        self, addresses: Sequence[str], *, timeout: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """Enrich every address concurrently; output order matches input order."""
        return list(
            await asyncio.gather(*(self.enrich(address, timeout=timeout) for address in addresses))
        )

    def clear_cache(self) -> None:
        self.forward_cache.clear()
        self.reverse_cache.clear()


default_resolver = NameResolver()

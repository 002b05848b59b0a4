"""
On-chain price reads from the VeChain Energy oracle contract.

Prices are fetched by simulating ``getLatestValue(bytes32)`` against the
network's oracle and decoding the first returned word. Results are cached per
feed for ``price_cache_ttl`` seconds.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from vechain_mcp.cache import TTLCache
from vechain_mcp.config import VeChainConfig
from vechain_mcp.metrics import MetricsRecorder, default_metrics
from vechain_mcp.thor_api import NodeUnreachableError, ThorApiClient, ThorApiError, default_client

logger = logging.getLogger(__name__)

# keccak256("getLatestValue(bytes32)")[:4]
GET_LATEST_VALUE_SELECTOR = "0x73fc67dd"

# The oracle stores values scaled by 1e12.
PRICE_SCALE = 10**12

# Token-usd feeds, bytes32 of the ASCII pair label.
PRICE_FEED_IDS: Dict[str, str] = {
    "vet": "0x7665742d75736400000000000000000000000000000000000000000000000000",
    "vtho": "0x7674686f2d757364000000000000000000000000000000000000000000000000",
    "b3tr": "0x623374722d757364000000000000000000000000000000000000000000000000",
}

# Fiat-usd feeds used to convert a USD price into another fiat.
FIAT_FEED_IDS: Dict[str, str] = {
    "gbp": "0x6762702d75736400000000000000000000000000000000000000000000000000",
    "eur": "0x657572742d757364000000000000000000000000000000000000000000000000",
}

SUPPORTED_FIATS = ("usd", "eur", "gbp")


class OracleError(Exception):
    """Base exception for oracle price reads."""


class OracleUnavailableError(OracleError):
    """Raised when the active network has no oracle deployed."""


class UnsupportedTokenError(OracleError):
    def __init__(self, token: str) -> None:
        supported = ", ".join(sorted(PRICE_FEED_IDS))
        super().__init__(f"Unsupported token: {token}. Supported tokens: {supported}.")
        self.token = token


class UnsupportedFiatError(OracleError):
    def __init__(self, fiat: str) -> None:
        supported = ", ".join(code.upper() for code in SUPPORTED_FIATS)
        super().__init__(
            f"Fiat currency {fiat.upper()} not available from oracle. "
            f"Only {supported} are supported."
        )
        self.fiat = fiat
        self.supported = SUPPORTED_FIATS


class OracleTransportError(OracleError):
    """
    The oracle call did not produce usable output.

    ``status_code`` and ``body`` are set for non-2xx node responses;
    ``unreachable`` is True when the node could not be contacted at all.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        unreachable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.unreachable = unreachable


class OracleEmptyResponseError(OracleTransportError):
    """The node answered without a first clause output."""


class OracleRevertedError(OracleTransportError):
    """The call executed but the contract reverted it."""

    def __init__(self, revert_reason: Optional[str]) -> None:
        super().__init__(f"Oracle call reverted: {revert_reason or 'unknown reason'}")
        self.revert_reason = revert_reason


class OracleMissingDataError(OracleTransportError):
    """The clause output carried no return data."""


class OracleDecodeError(OracleError):
    """Returned data did not decode to a finite, positive price."""


def build_call_data(feed_id: str) -> str:
    """Selector followed by the 32-byte feed id."""
    feed_hex = feed_id[2:] if feed_id.startswith("0x") else feed_id
    if len(feed_hex) != 64:
        raise ValueError(f"Feed id must be 32 bytes: {feed_id}")
    return GET_LATEST_VALUE_SELECTOR + feed_hex


def decode_price(data: str) -> float:
    """Interpret the first word of ``data`` as a uint scaled by ``PRICE_SCALE``."""
    hex_data = data[2:] if data.startswith("0x") else data
    value_hex = hex_data[:64]
    if len(value_hex) < 64:
        raise OracleDecodeError("Oracle returned fewer than 32 bytes.")
    try:
        value = int.from_bytes(bytes.fromhex(value_hex), "big")
        price = value / PRICE_SCALE
    except (ValueError, OverflowError) as exc:
        raise OracleDecodeError(f"Invalid price value from oracle: {exc}") from exc
    if not math.isfinite(price) or price <= 0:
        raise OracleDecodeError(f"Invalid price value from oracle: {price}")
    return price


class OracleReader:
    """Read token and fiat prices from the on-chain oracle."""

    def __init__(
        self,
        client: ThorApiClient = default_client,
        *,
        config: VeChainConfig | None = None,
        cache: TTLCache[float] | None = None,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self.client = client
        self.config = config or client.config
        self.metrics = metrics or default_metrics
        self.cache = cache if cache is not None else TTLCache(
            self.config.price_cache_ttl, name="oracle_price", metrics=self.metrics
        )

    @property
    def oracle_address(self) -> Optional[str]:
        return self.config.oracle_address

    def is_available(self) -> bool:
        return self.oracle_address is not None

    async def call_oracle(self, feed_id: str, *, timeout: Optional[float] = None) -> float:
        """Fetch and decode the latest value of one feed, uncached."""
        oracle_address = self.oracle_address
        if oracle_address is None:
            raise OracleUnavailableError(
                f"Oracle not available on {self.config.profile.network.value} network"
            )

        self.metrics.incr_upstream_call("oracle")
        try:
            result = await self.client.call_contract(
                oracle_address, build_call_data(feed_id), timeout=timeout
            )
        except NodeUnreachableError as exc:
            raise OracleTransportError("Thor node unreachable", unreachable=True) from exc
        except ThorApiError as exc:
            raise OracleTransportError(
                str(exc), status_code=exc.status_code, body=exc.body
            ) from exc

        output = _first_output(result)
        if output.get("reverted"):
            raise OracleRevertedError(output.get("revertReason"))
        data = output.get("data")
        if not isinstance(data, str) or data in ("", "0x"):
            raise OracleMissingDataError("No data returned from oracle")
        return decode_price(data)

    async def get_usd_price(self, token: str, *, timeout: Optional[float] = None) -> float:
        """Price of one ``token`` in USD."""
        token = token.strip().lower()
        feed_id = PRICE_FEED_IDS.get(token)
        if feed_id is None:
            raise UnsupportedTokenError(token)

        async def fetch() -> float:
            logger.debug("Fetching %s price from oracle", token)
            return await self.call_oracle(feed_id)

        return await self.cache.get_or_fetch(f"{token}-usd", fetch, timeout=timeout)

    async def get_fiat_conversion_rate(self, fiat: str, *, timeout: Optional[float] = None) -> float:
        """Conversion factor applied to a USD price to express it in ``fiat``."""
        fiat = fiat.strip().lower()
        feed_id = FIAT_FEED_IDS.get(fiat)
        if feed_id is None:
            raise UnsupportedFiatError(fiat)

        async def fetch() -> float:
            logger.debug("Fetching %s/USD rate from oracle", fiat)
            return await self.call_oracle(feed_id)

        return await self.cache.get_or_fetch(f"usd-{fiat}", fetch, timeout=timeout)

    async def get_fiat_price(
        self, token: str, fiat: str, *, timeout: Optional[float] = None
    ) -> float:
        fiat = fiat.strip().lower()
        if fiat != "usd" and fiat not in FIAT_FEED_IDS:
            raise UnsupportedFiatError(fiat)

        usd_price = await self.get_usd_price(token, timeout=timeout)
        if fiat == "usd":
            return usd_price
        rate = await self.get_fiat_conversion_rate(fiat, timeout=timeout)
        return usd_price * rate

    def clear_cache(self) -> None:
        self.cache.clear()


def _first_output(result: Any) -> Dict[str, Any]:
    if not isinstance(result, list) or not result or not isinstance(result[0], dict):
        raise OracleEmptyResponseError("Invalid response from Thor node")
    return result[0]


default_oracle = OracleReader()

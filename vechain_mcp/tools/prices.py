"""Token price tools backed by the on-chain oracle."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from vechain_mcp.services.oracle import (
    PRICE_FEED_IDS,
    SUPPORTED_FIATS,
    OracleError,
    OracleReader,
    OracleTransportError,
    OracleUnavailableError,
    UnsupportedFiatError,
    UnsupportedTokenError,
    default_oracle,
)

logger = logging.getLogger(__name__)


def _price_error(token: str, fiat: str, message: str) -> Dict[str, Any]:
    error = f"Error fetching {token.upper()} price in {fiat.upper()}: {message}"
    logger.warning(error)
    return {"token": token, "fiat": fiat, "price": None, "source": "oracle", "error": error}


async def get_token_fiat_price(
    token: str,
    fiat: str = "usd",
    *,
    oracle: OracleReader = default_oracle,
) -> Dict[str, Any]:
    """
    Return the price of VET, VTHO or B3TR in USD, EUR or GBP from the
    on-chain oracle.
    """
    token = (token or "").strip().lower()
    fiat = (fiat or "").strip().lower()
    if token not in PRICE_FEED_IDS:
        return _price_error(token, fiat, str(UnsupportedTokenError(token)))
    if fiat not in SUPPORTED_FIATS:
        return _price_error(token, fiat, str(UnsupportedFiatError(fiat)))

    try:
        price = await oracle.get_fiat_price(token, fiat)
    except OracleUnavailableError:
        return _price_error(
            token, fiat, "Oracle not available on this network. Only mainnet and testnet are supported."
        )
    except OracleTransportError as exc:
        if exc.unreachable:
            return _price_error(token, fiat, "Node unreachable")
        return _price_error(token, fiat, str(exc))
    except OracleError as exc:
        return _price_error(token, fiat, str(exc))
    except asyncio.TimeoutError:
        return _price_error(token, fiat, "Oracle request timed out.")
    except Exception:
        logger.exception("Unexpected error fetching %s price in %s", token, fiat)
        return _price_error(token, fiat, "Unexpected error while retrieving price.")

    return {"token": token, "fiat": fiat, "price": price, "source": "oracle"}

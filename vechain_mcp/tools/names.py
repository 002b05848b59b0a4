"""Address and VNS name tools."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from vechain_mcp.config import VeChainConfig, default_config
from vechain_mcp.services.vns import NameNotFoundError, NameResolver, default_resolver
from vechain_mcp.thor_api import NodeUnreachableError, ThorApiError
from vechain_mcp.validators import is_valid_address

logger = logging.getLogger(__name__)


async def validate_address(address: str) -> Dict[str, Any]:
    """Validate a Thor address format without calling the node."""
    return {"isValid": is_valid_address(address)}


async def resolve_address(
    value: str,
    *,
    resolver: NameResolver = default_resolver,
) -> Dict[str, Any]:
    """
    Resolve a VNS name (``*.vet``) to its address.

    Addresses are returned unchanged without touching the node.
    """
    if not value or not isinstance(value, str):
        return {"error": "Address or VNS name is required."}

    try:
        address = await resolver.resolve_to_address(value)
    except NameNotFoundError as exc:
        return {"error": str(exc)}
    except NodeUnreachableError:
        return {"error": "Node unreachable"}
    except asyncio.TimeoutError:
        return {"error": "VNS resolution timed out."}
    except ThorApiError:
        return {"error": "Thor API error."}
    except Exception:
        logger.exception("Unexpected error resolving %s", value)
        return {"error": "Unexpected error while resolving name."}

    return {"input": value, "address": address}


async def lookup_name(
    address: str,
    *,
    resolver: NameResolver = default_resolver,
) -> Dict[str, Any]:
    """Return the primary VNS name of an address, or None."""
    if not is_valid_address(address):
        return {"error": "Invalid address."}
    return await resolver.enrich(address.strip())


async def enrich_addresses(
    addresses: Optional[List[str]],
    *,
    resolver: NameResolver = default_resolver,
    config: VeChainConfig = default_config,
) -> Dict[str, Any]:
    """Attach VNS names to a list of addresses, preserving order."""
    if not addresses or not isinstance(addresses, list):
        return {"error": "At least one address is required."}
    if len(addresses) > config.max_enrich_batch:
        return {"error": f"At most {config.max_enrich_batch} addresses per request."}
    invalid = [item for item in addresses if not is_valid_address(item)]
    if invalid:
        return {"error": f"Invalid address: {invalid[0]}"}

    enriched = await resolver.enrich_batch([item.strip() for item in addresses])
    return {"addresses": enriched}

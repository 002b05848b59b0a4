"""Minimal sanity checks for the VeChain MCP tools against a live node."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from vechain_mcp.thor_api import default_client  # noqa: E402
from vechain_mcp.tools import (  # noqa: E402
    enrich_addresses,
    get_token_fiat_price,
    lookup_name,
    resolve_address,
    validate_address,
)

# Override via env to check a different account or name.
SAMPLE_ADDRESS = os.getenv("VECHAIN_SAMPLE_ADDRESS", "0x311E811cd3fC29Ba17D45B04c882245FA69DC776")
SAMPLE_NAME = os.getenv("VECHAIN_SAMPLE_NAME", "vechain.vet")


async def main() -> None:
    print("Validate address:", await validate_address(SAMPLE_ADDRESS))
    print("Resolve name:", await resolve_address(SAMPLE_NAME))
    print("Lookup name:", await lookup_name(SAMPLE_ADDRESS))
    print("Enrich:", await enrich_addresses([SAMPLE_ADDRESS]))

    for token in ("vet", "vtho", "b3tr"):
        print(f"{token.upper()} in USD:", await get_token_fiat_price(token, "usd"))
    print("VET in EUR:", await get_token_fiat_price("vet", "eur"))
    # Served from cache; no second oracle round trip.
    print("VET in USD (cached):", await get_token_fiat_price("vet", "usd"))

    await default_client.aclose()


if __name__ == "__main__":
    asyncio.run(main())

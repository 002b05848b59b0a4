"""
Lightweight JSON-RPC surface for MCP-style tooling.

Maps tool names to the implementations in ``vechain_mcp.tools`` together with
their JSON input schemas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from vechain_mcp.config import default_config
from vechain_mcp.services.oracle import PRICE_FEED_IDS, SUPPORTED_FIATS
from vechain_mcp.tools import (
    enrich_addresses,
    get_token_fiat_price,
    lookup_name,
    resolve_address,
    validate_address,
)
from vechain_mcp.validators import ADDRESS_REGEX

ADDRESS_PATTERN = ADDRESS_REGEX.pattern

ToolCallable = Callable[..., Awaitable[Any]] | Callable[..., Any]


@dataclass(slots=True)
class ToolDefinition:
    name: str
    description: str
    params: Dict[str, Any]
    input_schema: Dict[str, Any]
    callable: ToolCallable


def _address_schema(description: str = "Thor address (0x-prefixed, 20 bytes hex)") -> Dict[str, Any]:
    return {"type": "string", "description": description, "pattern": ADDRESS_PATTERN}


TOOL_REGISTRY: Dict[str, ToolDefinition] = {
    "validate_address": ToolDefinition(
        name="validate_address",
        description="Validate Thor address format without calling the node.",
        params={"address": "string (required)"},
        input_schema={
            "type": "object",
            "properties": {"address": {"type": "string", "description": "Address to validate"}},
            "required": ["address"],
            "additionalProperties": False,
        },
        callable=validate_address,
    ),
    "resolve_address": ToolDefinition(
        name="resolve_address",
        description="Resolve a VNS name (ending in .vet) to an address; addresses pass through unchanged.",
        params={"value": "string (required)"},
        input_schema={
            "type": "object",
            "properties": {
                "value": {
                    "type": "string",
                    "description": "VNS name ending in .vet, or a Thor address",
                    "minLength": 1,
                }
            },
            "required": ["value"],
            "additionalProperties": False,
        },
        callable=resolve_address,
    ),
    "lookup_name": ToolDefinition(
        name="lookup_name",
        description="Return the primary VNS name of an address (null if none).",
        params={"address": "string (required)"},
        input_schema={
            "type": "object",
            "properties": {"address": _address_schema()},
            "required": ["address"],
            "additionalProperties": False,
        },
        callable=lookup_name,
    ),
    "enrich_addresses": ToolDefinition(
        name="enrich_addresses",
        description="Attach VNS names to a list of addresses, preserving order.",
        params={"addresses": "array of Thor addresses (required)"},
        input_schema={
            "type": "object",
            "properties": {
                "addresses": {
                    "type": "array",
                    "items": _address_schema(),
                    "minItems": 1,
                    "maxItems": default_config.max_enrich_batch,
                }
            },
            "required": ["addresses"],
            "additionalProperties": False,
        },
        callable=enrich_addresses,
    ),
    "get_token_fiat_price": ToolDefinition(
        name="get_token_fiat_price",
        description="Get the current price of VET, VTHO or B3TR in USD, EUR or GBP from the on-chain oracle.",
        params={"token": "string (required)", "fiat": "string (optional, default usd)"},
        input_schema={
            "type": "object",
            "properties": {
                "token": {
                    "type": "string",
                    "description": "Token symbol, case-insensitive",
                    "enum": sorted(PRICE_FEED_IDS),
                },
                "fiat": {
                    "type": "string",
                    "description": "Fiat currency, case-insensitive",
                    "enum": list(SUPPORTED_FIATS),
                },
            },
            "required": ["token"],
            "additionalProperties": False,
        },
        callable=get_token_fiat_price,
    ),
}


def list_tools() -> List[Dict[str, Any]]:
    """Return a simple list of available tools."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "params": tool.params,
            "inputSchema": tool.input_schema,
        }
        for tool in TOOL_REGISTRY.values()
    ]


async def call_tool(tool_name: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """Dispatch to a tool by name."""
    params = params or {}
    tool = TOOL_REGISTRY.get(tool_name)
    if tool is None:
        return {"error": f"Unknown tool: {tool_name}"}

    # Tools already handle validation and error shaping.
    try:
        result = tool.callable(**params)
        if isinstance(result, Awaitable):
            return await result  # type: ignore[return-value]
        return result
    except TypeError:
        return {"error": "Invalid parameters."}
    except Exception:
        return {"error": "Unexpected error while calling tool."}

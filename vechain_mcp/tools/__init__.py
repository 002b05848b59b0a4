"""LLM-facing tool implementations."""

from .names import enrich_addresses, lookup_name, resolve_address, validate_address
from .prices import get_token_fiat_price

__all__ = [
    "validate_address",
    "resolve_address",
    "lookup_name",
    "enrich_addresses",
    "get_token_fiat_price",
]

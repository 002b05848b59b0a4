"""
Read-only VeChain MCP server package.

This package exposes LLM-friendly tools for VNS name resolution and on-chain
oracle prices, backed by a Thor node. See DESIGN.md for full details.
"""

__all__ = ["config"]

"""
Configuration helpers for the VeChain MCP server.

This module centralizes network selection, the per-network address tables
(oracle contract, VNS resolver), default timeouts, cache TTLs and logging
settings. Everything is read from the environment once at import time and can
be overridden by constructing ``VeChainConfig`` explicitly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SOLO = "solo"


@dataclass(frozen=True, slots=True)
class NetworkProfile:
    """Static facts about one Thor network."""

    network: NetworkType
    node_url: str
    oracle_address: Optional[str] = None
    vns_resolver_address: Optional[str] = None


NETWORK_PROFILES: Dict[NetworkType, NetworkProfile] = {
    NetworkType.MAINNET: NetworkProfile(
        network=NetworkType.MAINNET,
        node_url="https://mainnet.vechain.org",
        oracle_address="0x49eC7192BF804Abc289645ca86F1eD01a6C17713",
        vns_resolver_address="0xA11413086e163e41901bb81fdc5617c975Fa5a1A",
    ),
    NetworkType.TESTNET: NetworkProfile(
        network=NetworkType.TESTNET,
        node_url="https://testnet.vechain.org",
        oracle_address="0xdcCAaBd81B38e0dEEf4c202bC7F1261A4D9192C6",
        vns_resolver_address="0xc403b8EA53F707d7d4de095f0A20bC491Cf2bc94",
    ),
    # Neither the oracle nor VNS is deployed on a local solo node.
    NetworkType.SOLO: NetworkProfile(
        network=NetworkType.SOLO,
        node_url="http://localhost:8669",
    ),
}


def resolve_network(raw: Optional[str]) -> NetworkType:
    """Map a user-supplied network label onto ``NetworkType``."""
    normalized = (raw or "").strip().lower()
    try:
        return NetworkType(normalized)
    except ValueError:
        allowed = ", ".join(member.value for member in NetworkType)
        raise ValueError(f"Unknown network '{raw}'. Supported: {allowed}.") from None


def _load_float(env_var: str, default: float) -> float:
    raw_value = os.getenv(env_var)
    if raw_value:
        try:
            return float(raw_value)
        except ValueError:
            return default
    return default


def _load_network() -> NetworkType:
    try:
        return resolve_network(os.getenv("VECHAIN_NETWORK", NetworkType.MAINNET.value))
    except ValueError:
        return NetworkType.MAINNET


DEFAULT_NETWORK = _load_network()
DEFAULT_NODE_URL = os.getenv("VECHAIN_NODE_URL") or None
DEFAULT_TIMEOUT = _load_float("VECHAIN_HTTP_TIMEOUT", 10.0)

# Oracle prices update slowly; names change even less often.
DEFAULT_PRICE_CACHE_TTL = _load_float("VECHAIN_PRICE_CACHE_TTL", 300.0)
DEFAULT_VNS_CACHE_TTL = _load_float("VECHAIN_VNS_CACHE_TTL", 300.0)

MAX_ENRICH_BATCH = 100
LOG_LEVEL = os.getenv("VECHAIN_MCP_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("VECHAIN_MCP_LOG_FORMAT", "json")  # json or plain


@dataclass(slots=True)
class VeChainConfig:
    """Runtime configuration for Thor node access and the resolution caches."""

    network: NetworkType = DEFAULT_NETWORK
    node_url_override: Optional[str] = DEFAULT_NODE_URL
    timeout: float = DEFAULT_TIMEOUT
    price_cache_ttl: float = DEFAULT_PRICE_CACHE_TTL
    vns_cache_ttl: float = DEFAULT_VNS_CACHE_TTL
    max_enrich_batch: int = MAX_ENRICH_BATCH
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT
    profiles: Dict[NetworkType, NetworkProfile] = field(
        default_factory=lambda: dict(NETWORK_PROFILES)
    )

    @property
    def profile(self) -> NetworkProfile:
        return self.profiles[NetworkType(self.network)]

    @property
    def node_url(self) -> str:
        return (self.node_url_override or self.profile.node_url).rstrip("/")

    @property
    def oracle_address(self) -> Optional[str]:
        return self.profile.oracle_address

    @property
    def vns_resolver_address(self) -> Optional[str]:
        return self.profile.vns_resolver_address


default_config = VeChainConfig()

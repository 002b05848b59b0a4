"""Resolution and on-chain price services."""

from .oracle import (
    OracleDecodeError,
    OracleEmptyResponseError,
    OracleError,
    OracleMissingDataError,
    OracleReader,
    OracleRevertedError,
    OracleTransportError,
    OracleUnavailableError,
    UnsupportedFiatError,
    UnsupportedTokenError,
    default_oracle,
)
from .vns import NameNotFoundError, NameResolver, NameService, VnsClient, default_resolver

__all__ = [
    "NameNotFoundError",
    "NameResolver",
    "NameService",
    "VnsClient",
    "default_resolver",
    "OracleReader",
    "OracleError",
    "OracleUnavailableError",
    "UnsupportedTokenError",
    "UnsupportedFiatError",
    "OracleTransportError",
    "OracleEmptyResponseError",
    "OracleRevertedError",
    "OracleMissingDataError",
    "OracleDecodeError",
    "default_oracle",
]

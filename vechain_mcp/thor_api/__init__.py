"""HTTP client wrappers for the Thor node API."""

from .client import (
    NodeUnreachableError,
    ThorApiClient,
    ThorApiError,
    default_client,
)

__all__ = [
    "ThorApiClient",
    "ThorApiError",
    "NodeUnreachableError",
    "default_client",
]

"""Shared validation helpers for Thor addresses."""

from __future__ import annotations

import re
from typing import Optional

# Thor addresses are 20 bytes, hex encoded with a 0x prefix.
ADDRESS_REGEX = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_address(address: Optional[str]) -> bool:
    """Basic format validation for Thor addresses."""
    if not address or not isinstance(address, str):
        return False
    return bool(ADDRESS_REGEX.fullmatch(address.strip()))


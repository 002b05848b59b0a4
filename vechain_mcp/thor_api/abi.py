"""
Hand-rolled ABI encoding for the handful of contract calls this server makes.

Only the shapes actually used are supported: a single ``string[]`` or
``address[]`` argument, and ``address[]`` / ``string[]`` / ``uint`` outputs.
"""

from __future__ import annotations

import re
from typing import List, Sequence

from Crypto.Hash import keccak

WORD_SIZE = 32
ZERO_ADDRESS = "0x" + "0" * 40
_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class AbiDecodeError(ValueError):
    """Raised when returned call data does not match the expected layout."""


def function_selector(signature: str) -> str:
    """Return ``0x`` + the first 4 bytes of keccak-256 of the signature."""
    digest = keccak.new(digest_bits=256, data=signature.encode("utf-8")).digest()
    return "0x" + digest[:4].hex()


def _word(value: int) -> bytes:
    return value.to_bytes(WORD_SIZE, "big")


def _pad_right(raw: bytes) -> bytes:
    return raw + b"\x00" * (-len(raw) % WORD_SIZE)


def encode_string_array(values: Sequence[str]) -> str:
    """Encode a lone ``string[]`` argument (no selector, no ``0x``)."""
    tails = []
    for value in values:
        raw = value.encode("utf-8")
        tails.append(_word(len(raw)) + _pad_right(raw))
    offsets = []
    cursor = WORD_SIZE * len(tails)
    for tail in tails:
        offsets.append(_word(cursor))
        cursor += len(tail)
    body = _word(len(values)) + b"".join(offsets) + b"".join(tails)
    return (_word(WORD_SIZE) + body).hex()


def encode_address_array(values: Sequence[str]) -> str:
    """Encode a lone ``address[]`` argument (no selector, no ``0x``)."""
    items = []
    for value in values:
        if not _ADDRESS_RE.fullmatch(value):
            raise ValueError(f"Invalid address: {value}")
        items.append(bytes(12) + bytes.fromhex(value[2:]))
    return (_word(WORD_SIZE) + _word(len(values)) + b"".join(items)).hex()


def _to_bytes(data: str) -> bytes:
    hex_part = data[2:] if data.startswith(("0x", "0X")) else data
    try:
        return bytes.fromhex(hex_part)
    except ValueError as exc:
        raise AbiDecodeError("Return data is not valid hex.") from exc


def _read_uint(raw: bytes, offset: int) -> int:
    end = offset + WORD_SIZE
    if offset < 0 or end > len(raw):
        raise AbiDecodeError(f"Word at offset {offset} out of range.")
    return int.from_bytes(raw[offset:end], "big")


def decode_uint(data: str, index: int = 0) -> int:
    """Decode the ``index``-th static word as an unsigned big-endian integer."""
    return _read_uint(_to_bytes(data), index * WORD_SIZE)


def decode_address_array(data: str) -> List[str]:
    raw = _to_bytes(data)
    base = _read_uint(raw, 0)
    count = _read_uint(raw, base)
    addresses = []
    for i in range(count):
        start = base + WORD_SIZE * (i + 1)
        _read_uint(raw, start)
        addresses.append("0x" + raw[start + 12 : start + WORD_SIZE].hex())
    return addresses


def decode_string_array(data: str) -> List[str]:
    raw = _to_bytes(data)
    base = _read_uint(raw, 0)
    count = _read_uint(raw, base)
    heads = base + WORD_SIZE
    values = []
    for i in range(count):
        start = heads + _read_uint(raw, heads + WORD_SIZE * i)
        length = _read_uint(raw, start)
        end = start + WORD_SIZE + length
        if end > len(raw):
            raise AbiDecodeError("String data out of range.")
        try:
            values.append(raw[start + WORD_SIZE : end].decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise AbiDecodeError(f"String is not valid UTF-8: {exc}") from exc
    return values

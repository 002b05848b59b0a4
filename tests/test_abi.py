import pytest

from vechain_mcp.thor_api.abi import (
    AbiDecodeError,
    decode_address_array,
    decode_string_array,
    decode_uint,
    encode_address_array,
    encode_string_array,
    function_selector,
)


def word(value: int) -> str:
    return format(value, "064x")


def padded_text(text: str) -> str:
    raw = text.encode("utf-8").hex()
    return raw + "0" * (-len(raw) % 64)


ADDRESS = "0x311e811cd3fc29ba17d45b04c882245fa69dc776"


def test_function_selector_known_values():
    assert function_selector("transfer(address,uint256)") == "0xa9059cbb"
    assert function_selector("balanceOf(address)") == "0x70a08231"


def test_encode_string_array_single_name():
    encoded = encode_string_array(["alice.vet"])
    assert encoded == word(32) + word(1) + word(32) + word(9) + padded_text("alice.vet")


def test_encode_string_array_two_names_offsets():
    encoded = encode_string_array(["a.vet", "bb.vet"])
    # Two offset slots, then two (length, data) tails of 64 bytes each.
    assert encoded[64 * 2 : 64 * 3] == word(64)
    assert encoded[64 * 3 : 64 * 4] == word(128)


def test_encode_address_array_left_pads():
    encoded = encode_address_array([ADDRESS])
    assert encoded == word(32) + word(1) + "0" * 24 + ADDRESS[2:]


def test_encode_address_array_rejects_bad_address():
    with pytest.raises(ValueError):
        encode_address_array(["0x1234"])


def test_decode_address_array():
    data = "0x" + word(32) + word(1) + "0" * 24 + ADDRESS[2:]
    assert decode_address_array(data) == [ADDRESS]


def test_decode_empty_address_array():
    assert decode_address_array("0x" + word(32) + word(0)) == []


def test_decode_string_array():
    data = "0x" + word(32) + word(1) + word(32) + word(9) + padded_text("alice.vet")
    assert decode_string_array(data) == ["alice.vet"]


def test_decode_string_array_empty_name():
    data = "0x" + word(32) + word(1) + word(32) + word(0)
    assert decode_string_array(data) == [""]


def test_decode_rejects_truncated_payload():
    with pytest.raises(AbiDecodeError):
        decode_address_array("0x" + word(32) + word(2) + "0" * 24 + ADDRESS[2:])


def test_decode_rejects_non_hex():
    with pytest.raises(AbiDecodeError):
        decode_string_array("0xzz")


def test_decode_uint_reads_indexed_word():
    data = "0x" + word(14_800_000_000) + word(1_700_000_000)
    assert decode_uint(data) == 14_800_000_000
    assert decode_uint(data, 1) == 1_700_000_000


def test_decode_string_array_rejects_invalid_utf8():
    data = "0x" + word(32) + word(1) + word(32) + word(2) + "fffe" + "0" * 60
    with pytest.raises(AbiDecodeError):
        decode_string_array(data)

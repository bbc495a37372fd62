import pytest

from sui_ptb.errors import InvalidParameterShape
from sui_ptb.helpers.addresses import (
    address_from_public_key,
    decode_address_value,
    normalize_address,
)
from sui_ptb.helpers.bcs import Deserializer, Serializer, encode_pure


def test_uleb128_multi_byte():
    ser = Serializer()
    ser.uleb128(300)
    assert ser.output() == bytes([0xAC, 0x02])
    assert Deserializer(ser.output()).uleb128() == 300


def test_integers_are_little_endian():
    ser = Serializer()
    ser.u16(1)
    ser.u64(2)
    assert ser.output() == b"\x01\x00" + b"\x02" + b"\x00" * 7


def test_integer_overflow_rejected():
    with pytest.raises(ValueError):
        Serializer().u8(256)


def test_deserializer_reads_what_serializer_wrote():
    ser = Serializer()
    ser.bool(True)
    ser.u128(2**100)
    ser.str("offramp")
    ser.sequence([1, 2, 3], Serializer.u32)

    de = Deserializer(ser.output())
    assert de.bool() is True
    assert de.u128() == 2**100
    assert de.str() == "offramp"
    assert de.sequence(Deserializer.u32) == [1, 2, 3]
    assert de.remaining() == 0


def test_deserializer_truncated_input():
    with pytest.raises(ValueError, match="Unexpected end"):
        Deserializer(b"\x01").u64()


@pytest.mark.parametrize(
    "value,type_tag,expected",
    [
        (True, "bool", b"\x01"),
        (5, "u8", b"\x05"),
        ("0x10", "u16", b"\x10\x00"),
        (7, "u64", b"\x07" + b"\x00" * 7),
        ("hi", "0x1::string::String", b"\x02hi"),
        (b"\xaa\xbb", "vector<u8>", b"\x02\xaa\xbb"),
        ([1, 2], "vector<u16>", b"\x02\x01\x00\x02\x00"),
        (None, "0x1::option::Option<u8>", b"\x00"),
        (9, "0x1::option::Option<u8>", b"\x01\x09"),
    ],
)
def test_encode_pure(value, type_tag, expected):
    assert encode_pure(value, type_tag) == expected


def test_encode_pure_address_is_padded():
    assert encode_pure("0x6", "address") == b"\x00" * 31 + b"\x06"


@pytest.mark.parametrize(
    "value,type_tag",
    [
        (1, "bool"),
        (True, "u64"),
        (-1, "u8"),
        ("not-hex", "address"),
        (5, "vector<u64>"),
        (1, "0x2::coin::Coin<0x2::sui::SUI>"),
    ],
)
def test_encode_pure_rejects_bad_shapes(value, type_tag):
    with pytest.raises(InvalidParameterShape):
        encode_pure(value, type_tag)


def test_normalize_address_pads_short_form():
    assert normalize_address("0x6") == "0x" + "0" * 63 + "6"
    assert normalize_address("0xABC") == "0x" + "0" * 61 + "abc"


def test_normalize_address_rejects_long_input():
    with pytest.raises(ValueError):
        normalize_address("0x" + "1" * 65)


def test_decode_address_value_forms():
    raw = bytes(range(32))
    expected = "0x" + raw.hex()
    assert decode_address_value(raw) == expected
    assert decode_address_value(list(raw)) == expected
    assert decode_address_value("AAECAwQFBgcICQoLDA0ODxAREhMUFRYXGBkaGxwdHh8=") == expected
    assert decode_address_value(expected) == expected


def test_address_from_public_key_is_32_bytes():
    address = address_from_public_key(b"\x01" * 32)
    assert address.startswith("0x")
    assert len(address) == 66


def test_address_from_public_key_rejects_wrong_length():
    with pytest.raises(ValueError):
        address_from_public_key(b"\x01" * 31)

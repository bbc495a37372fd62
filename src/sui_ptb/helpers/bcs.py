"""
Binary Canonical Serialization (BCS) for Sui transaction data.

Serializer / Deserializer cover the primitive set used by transaction kinds,
pure call arguments and devInspect return values. ``encode_pure`` turns a
Python value plus a Move type string into the bytes of a Pure input.
"""

from __future__ import annotations

import io
import re
from typing import Any, Callable, Sequence

from sui_ptb.errors import InvalidParameterShape
from sui_ptb.helpers.addresses import address_bytes

MAX_U8 = 2**8 - 1
MAX_U16 = 2**16 - 1
MAX_U32 = 2**32 - 1
MAX_U64 = 2**64 - 1
MAX_U128 = 2**128 - 1
MAX_U256 = 2**256 - 1

UINT_BITS = {"u8": 8, "u16": 16, "u32": 32, "u64": 64, "u128": 128, "u256": 256}

STRING_TYPES = {"string", "0x1::string::String", "0x1::ascii::String"}
OPTION_RE = re.compile(r"^(?:0x0*1::)?option::Option<(.+)>$")


class Serializer:
    def __init__(self):
        self._output = io.BytesIO()

    def output(self) -> bytes:
        return self._output.getvalue()

    def bool(self, value: bool) -> None:
        self.u8(1 if value else 0)

    def u8(self, value: int) -> None:
        self._write_int(value, 8)

    def u16(self, value: int) -> None:
        self._write_int(value, 16)

    def u32(self, value: int) -> None:
        self._write_int(value, 32)

    def u64(self, value: int) -> None:
        self._write_int(value, 64)

    def u128(self, value: int) -> None:
        self._write_int(value, 128)

    def u256(self, value: int) -> None:
        self._write_int(value, 256)

    def uleb128(self, value: int) -> None:
        if value < 0 or value > MAX_U32:
            raise ValueError(f"Cannot encode {value} as uleb128")
        while value >= 0x80:
            self._output.write(bytes([(value & 0x7F) | 0x80]))
            value >>= 7
        self._output.write(bytes([value]))

    def fixed_bytes(self, value: bytes) -> None:
        self._output.write(value)

    def to_bytes(self, value: bytes) -> None:
        self.uleb128(len(value))
        self._output.write(value)

    def str(self, value: str) -> None:
        self.to_bytes(value.encode("utf-8"))

    def struct(self, value: Any) -> None:
        value.serialize(self)

    def sequence(self, values: Sequence[Any], encoder: Callable[["Serializer", Any], None]) -> None:
        self.uleb128(len(values))
        for value in values:
            encoder(self, value)

    def _write_int(self, value: int, bits: int) -> None:
        if value < 0 or value >= 1 << bits:
            raise ValueError(f"{value} does not fit in u{bits}")
        self._output.write(value.to_bytes(bits // 8, "little", signed=False))


class Deserializer:
    def __init__(self, data: bytes):
        self._input = io.BytesIO(data)
        self._length = len(data)

    def remaining(self) -> int:
        return self._length - self._input.tell()

    def bool(self) -> bool:
        value = self.u8()
        if value not in (0, 1):
            raise ValueError(f"Unexpected boolean value: {value}")
        return value == 1

    def u8(self) -> int:
        return self._read_int(8)

    def u16(self) -> int:
        return self._read_int(16)

    def u32(self) -> int:
        return self._read_int(32)

    def u64(self) -> int:
        return self._read_int(64)

    def u128(self) -> int:
        return self._read_int(128)

    def u256(self) -> int:
        return self._read_int(256)

    def uleb128(self) -> int:
        value = 0
        shift = 0
        while True:
            byte = self._read(1)[0]
            value |= (byte & 0x7F) << shift
            if byte & 0x80 == 0:
                break
            shift += 7
            if shift > 28:
                raise ValueError("uleb128 value too large")
        return value

    def fixed_bytes(self, length: int) -> bytes:
        return self._read(length)

    def to_bytes(self) -> bytes:
        return self._read(self.uleb128())

    def str(self) -> str:
        return self.to_bytes().decode("utf-8")

    def sequence(self, decoder: Callable[["Deserializer"], Any]) -> list[Any]:
        return [decoder(self) for _ in range(self.uleb128())]

    def _read(self, length: int) -> bytes:
        value = self._input.read(length)
        if len(value) != length:
            raise ValueError(f"Unexpected end of input: wanted {length} bytes, got {len(value)}")
        return value

    def _read_int(self, bits: int) -> int:
        return int.from_bytes(self._read(bits // 8), "little", signed=False)


# ---------------------------------------------------------------------------
# Pure argument encoding
# ---------------------------------------------------------------------------

def unwrap_vector(type_tag: str) -> str | None:
    """Inner type of ``vector<T>``, or None when ``type_tag`` is not a vector."""
    type_tag = type_tag.strip()
    if type_tag.startswith("vector<") and type_tag.endswith(">"):
        return type_tag[len("vector<"):-1].strip()
    return None


def unwrap_option(type_tag: str) -> str | None:
    match = OPTION_RE.match(type_tag.strip())
    return match.group(1).strip() if match else None


def _coerce_int(value: Any, type_tag: str) -> int:
    if isinstance(value, bool):
        raise InvalidParameterShape(f"Expected integer for {type_tag}, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            pass
    raise InvalidParameterShape(f"Expected integer for {type_tag}, got {value!r}")


def _write_pure(ser: Serializer, value: Any, type_tag: str) -> None:
    type_tag = type_tag.strip()

    if type_tag == "bool":
        if not isinstance(value, bool):
            raise InvalidParameterShape(f"Expected bool, got {type(value).__name__}")
        ser.bool(value)
        return

    if type_tag in UINT_BITS:
        number = _coerce_int(value, type_tag)
        try:
            getattr(ser, type_tag)(number)
        except ValueError as e:
            raise InvalidParameterShape(str(e)) from e
        return

    if type_tag == "address":
        try:
            ser.fixed_bytes(address_bytes(value))
        except ValueError as e:
            raise InvalidParameterShape(f"Invalid address value {value!r}: {e}") from e
        return

    if type_tag in STRING_TYPES:
        if not isinstance(value, str):
            raise InvalidParameterShape(f"Expected str for {type_tag}, got {type(value).__name__}")
        ser.str(value)
        return

    inner = unwrap_vector(type_tag)
    if inner is not None:
        if inner == "u8" and isinstance(value, (bytes, bytearray)):
            ser.to_bytes(bytes(value))
            return
        if inner == "u8" and isinstance(value, str) and value.startswith("0x"):
            ser.to_bytes(bytes.fromhex(value[2:]))
            return
        if not isinstance(value, (list, tuple)):
            raise InvalidParameterShape(f"Expected list for {type_tag}, got {type(value).__name__}")
        ser.uleb128(len(value))
        for item in value:
            _write_pure(ser, item, inner)
        return

    inner = unwrap_option(type_tag)
    if inner is not None:
        if value is None:
            ser.uleb128(0)
        else:
            ser.uleb128(1)
            _write_pure(ser, value, inner)
        return

    raise InvalidParameterShape(f"Unsupported pure argument type: {type_tag}")


def encode_pure(value: Any, type_tag: str) -> bytes:
    """BCS encode ``value`` as the Move type ``type_tag``.

    Raises:
        InvalidParameterShape: If the value does not fit the type.
    """
    ser = Serializer()
    _write_pure(ser, value, type_tag)
    return ser.output()

"""
Deterministic canonical encoding primitives.

Every on-ledger record and instruction payload in this package is a fixed-width
little-endian byte layout. These helpers are the only place where integers,
booleans, addresses and optionals are turned into bytes (and back), so range
checks live here too.
"""

from __future__ import annotations

import hashlib
import struct
from typing import Optional

from solders.pubkey import Pubkey  # type: ignore[import-untyped]


U8_MAX = (1 << 8) - 1
U16_MAX = (1 << 16) - 1
U32_MAX = (1 << 32) - 1
U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1

PUBKEY_LEN = 32
DISCRIMINATOR_LEN = 8

_INT_FORMATS: dict[int, tuple[str, int]] = {
    1: ("<B", U8_MAX),
    2: ("<H", U16_MAX),
    4: ("<I", U32_MAX),
    8: ("<Q", U64_MAX),
}


class LayoutError(ValueError):
    """Raised when bytes do not decode to a well-formed record."""


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def discriminator(namespace: str, name: str) -> bytes:
    """
    8-byte type tag: ``sha256(f"{namespace}:{name}")[:8]``.

    Used as the leading bytes of both account records and instruction payloads.
    """
    if not namespace or not name:
        raise ValueError("namespace and name must be non-empty")
    return hashlib.sha256(f"{namespace}:{name}".encode("ascii")).digest()[:DISCRIMINATOR_LEN]


def encode_uint(value: int, nbytes: int, *, name: str = "value") -> bytes:
    _require_int(name, value)
    fmt = _INT_FORMATS.get(nbytes)
    if fmt is None:
        raise ValueError(f"unsupported integer width: {nbytes}")
    code, max_value = fmt
    if not (0 <= value <= max_value):
        raise ValueError(f"{name} out of range for u{nbytes * 8}: {value}")
    return struct.pack(code, value)


def encode_u8(value: int, *, name: str = "value") -> bytes:
    return encode_uint(value, 1, name=name)


def encode_u16(value: int, *, name: str = "value") -> bytes:
    return encode_uint(value, 2, name=name)


def encode_u64(value: int, *, name: str = "value") -> bytes:
    return encode_uint(value, 8, name=name)


def encode_bool(value: bool) -> bytes:
    if not isinstance(value, bool):
        raise TypeError("value must be a bool")
    return b"\x01" if value else b"\x00"


def encode_pubkey(value: Pubkey) -> bytes:
    if not isinstance(value, Pubkey):
        raise TypeError("value must be a Pubkey")
    return bytes(value)


def encode_option_pubkey(value: Optional[Pubkey]) -> bytes:
    """Optional address: one tag byte, then 32 bytes when present."""
    if value is None:
        return b"\x00"
    return b"\x01" + encode_pubkey(value)


def encode_coption_pubkey(value: Optional[Pubkey]) -> bytes:
    """Token-record optional address: u32 tag, always followed by 32 bytes."""
    if value is None:
        return struct.pack("<I", 0) + bytes(PUBKEY_LEN)
    return struct.pack("<I", 1) + encode_pubkey(value)


def encode_coption_u64(value: Optional[int]) -> bytes:
    if value is None:
        return struct.pack("<I", 0) + bytes(8)
    return struct.pack("<I", 1) + encode_u64(value)


class Reader:
    """Sequential decoder over a byte buffer; every read is bounds-checked."""

    def __init__(self, data: bytes) -> None:
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("data must be bytes")
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def take(self, n: int) -> bytes:
        if n < 0 or self._offset + n > len(self._data):
            raise LayoutError(f"buffer too short: need {n} bytes at offset {self._offset}")
        out = self._data[self._offset : self._offset + n]
        self._offset += n
        return out

    def uint(self, nbytes: int) -> int:
        code, _ = _INT_FORMATS[nbytes]
        return struct.unpack(code, self.take(nbytes))[0]

    def u8(self) -> int:
        return self.uint(1)

    def u16(self) -> int:
        return self.uint(2)

    def u32(self) -> int:
        return self.uint(4)

    def u64(self) -> int:
        return self.uint(8)

    def boolean(self) -> bool:
        b = self.u8()
        if b > 1:
            raise LayoutError(f"invalid bool byte: {b}")
        return b == 1

    def pubkey(self) -> Pubkey:
        return Pubkey.from_bytes(self.take(PUBKEY_LEN))

    def option_pubkey(self) -> Optional[Pubkey]:
        tag = self.u8()
        if tag == 0:
            return None
        if tag == 1:
            return self.pubkey()
        raise LayoutError(f"invalid option tag: {tag}")

    def coption_pubkey(self) -> Optional[Pubkey]:
        tag = self.u32()
        key = self.take(PUBKEY_LEN)
        if tag == 0:
            return None
        if tag == 1:
            return Pubkey.from_bytes(key)
        raise LayoutError(f"invalid coption tag: {tag}")

    def coption_u64(self) -> Optional[int]:
        tag = self.u32()
        value = self.u64()
        if tag == 0:
            return None
        if tag == 1:
            return value
        raise LayoutError(f"invalid coption tag: {tag}")

    def expect_end(self) -> None:
        if self.remaining:
            raise LayoutError(f"{self.remaining} trailing bytes")


def pad_to(data: bytes, size: int) -> bytes:
    if len(data) > size:
        raise LayoutError(f"encoded record exceeds {size} bytes: {len(data)}")
    return data + bytes(size - len(data))

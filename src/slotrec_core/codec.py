"""Length-prefixed little-endian binary codec.

Every variable-length value carries its own length or tag prefix, so a
reader never needs a length hint beyond the buffer it was handed.
"""
from __future__ import annotations

import struct
from typing import Callable, Optional, TypeVar

from .protocol import (
    I64_FMT,
    LEN_PREFIX_FMT,
    OPTION_NONE,
    OPTION_SOME,
    TAG_FMT,
    U8_FMT,
    U16_FMT,
    U32_FMT,
    U64_FMT,
)

T = TypeVar("T")


class DecodeError(ValueError):
    """Bytes do not form a valid encoding."""


class Truncated(DecodeError):
    def __init__(self, what: str, needed: int, available: int):
        super().__init__(f"Truncated {what}: need {needed} bytes, {available} left")
        self.what = what
        self.needed = needed
        self.available = available


class InvalidTag(DecodeError):
    def __init__(self, type_name: str, tag: int):
        super().__init__(f"Invalid {type_name} tag {tag}")
        self.type_name = type_name
        self.tag = tag


class InvalidValue(DecodeError):
    """A byte run has the right length but an illegal value (bool 2, bad UTF-8)."""


class TrailingBytes(DecodeError):
    def __init__(self, count: int):
        super().__init__(f"Not all bytes read: {count} trailing")
        self.count = count


class EncodeError(ValueError):
    """A value does not fit the wire type declared for it."""


def _pack(fmt: str, value: int, what: str) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodeError(f"{what} must be an int, got {type(value).__name__}")
    try:
        return struct.pack(fmt, value)
    except struct.error as e:
        raise EncodeError(f"{what} out of range: {value}") from e


class Writer:
    """Append-only encoder. Field order is the caller's call order."""

    def __init__(self):
        self.buf = bytearray()

    def getvalue(self) -> bytes:
        return bytes(self.buf)

    def u8(self, v: int, what: str = "u8") -> None:
        self.buf += _pack(U8_FMT, v, what)

    def u16(self, v: int, what: str = "u16") -> None:
        self.buf += _pack(U16_FMT, v, what)

    def u32(self, v: int, what: str = "u32") -> None:
        self.buf += _pack(U32_FMT, v, what)

    def u64(self, v: int, what: str = "u64") -> None:
        self.buf += _pack(U64_FMT, v, what)

    def i64(self, v: int, what: str = "i64") -> None:
        self.buf += _pack(I64_FMT, v, what)

    def boolean(self, v: bool, what: str = "bool") -> None:
        if not isinstance(v, bool):
            raise EncodeError(f"{what} must be a bool, got {type(v).__name__}")
        self.buf.append(1 if v else 0)

    def tag(self, v: int, what: str = "tag") -> None:
        self.buf += _pack(TAG_FMT, v, what)

    def fixed(self, b: bytes, size: int, what: str = "fixed") -> None:
        if not isinstance(b, (bytes, bytearray)) or len(b) != size:
            raise EncodeError(f"{what} must be exactly {size} bytes")
        self.buf += b

    def length(self, n: int, what: str = "length") -> None:
        self.buf += _pack(LEN_PREFIX_FMT, n, what)

    def blob(self, b: bytes, what: str = "bytes") -> None:
        if not isinstance(b, (bytes, bytearray)):
            raise EncodeError(f"{what} must be bytes, got {type(b).__name__}")
        self.length(len(b), what)
        self.buf += b

    def string(self, s: str, what: str = "string") -> None:
        if not isinstance(s, str):
            raise EncodeError(f"{what} must be a str, got {type(s).__name__}")
        self.blob(s.encode("utf-8"), what)

    def seq(self, items: list, write_item: Callable[["Writer", T], None], what: str = "seq") -> None:
        self.length(len(items), what)
        for item in items:
            write_item(self, item)

    def option(self, v: Optional[T], write_value: Callable[["Writer", T], None], what: str = "option") -> None:
        if v is None:
            self.tag(OPTION_NONE, what)
        else:
            self.tag(OPTION_SOME, what)
            write_value(self, v)


class Reader:
    """Cursor over a byte slice. Every read is bounds-checked."""

    def __init__(self, buf: bytes, off: int = 0):
        self.buf = bytes(buf)
        self.off = off

    @property
    def remaining(self) -> int:
        return len(self.buf) - self.off

    def take(self, n: int, what: str) -> bytes:
        if n > self.remaining:
            raise Truncated(what, n, self.remaining)
        out = self.buf[self.off:self.off + n]
        self.off += n
        return out

    def _unpack(self, fmt: str, what: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt), what))[0]

    def u8(self, what: str = "u8") -> int:
        return self._unpack(U8_FMT, what)

    def u16(self, what: str = "u16") -> int:
        return self._unpack(U16_FMT, what)

    def u32(self, what: str = "u32") -> int:
        return self._unpack(U32_FMT, what)

    def u64(self, what: str = "u64") -> int:
        return self._unpack(U64_FMT, what)

    def i64(self, what: str = "i64") -> int:
        return self._unpack(I64_FMT, what)

    def boolean(self, what: str = "bool") -> bool:
        b = self.u8(what)
        if b > 1:
            raise InvalidValue(f"Invalid {what} byte {b}")
        return b == 1

    def tag(self, what: str = "tag") -> int:
        return self._unpack(TAG_FMT, what)

    def fixed(self, size: int, what: str = "fixed") -> bytes:
        return self.take(size, what)

    def length(self, what: str = "length") -> int:
        return self._unpack(LEN_PREFIX_FMT, f"{what} length")

    def blob(self, what: str = "bytes") -> bytes:
        n = self.length(what)
        return self.take(n, what)

    def string(self, what: str = "string") -> str:
        raw = self.blob(what)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidValue(f"{what} is not valid UTF-8") from e

    def seq(self, read_item: Callable[["Reader"], T], what: str = "seq") -> list[T]:
        n = self.length(what)
        return [read_item(self) for _ in range(n)]

    def option(self, read_value: Callable[["Reader"], T], what: str = "option") -> Optional[T]:
        t = self.tag(what)
        if t == OPTION_NONE:
            return None
        if t != OPTION_SOME:
            raise InvalidTag(what, t)
        return read_value(self)

    def finish(self) -> None:
        if self.remaining:
            raise TrailingBytes(self.remaining)

"""A position in a byte buffer, used for parsing little-endian binary files.

A value layout (``fmt``) is either a :mod:`struct` format string, read
little-endian unless it names a byte order, or an object with an integer
``size`` and a ``view(buf)`` callable that builds a value from exactly
``size`` bytes.  A format with one field reads as a bare value, a format
with several fields as a tuple.
"""

from __future__ import annotations

import dataclasses
import struct
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Protocol, Union


class ParseError(Exception):
    """Raised when binary data does not have the expected shape."""


class TooShortError(ParseError):
    """Raised when a read runs past the end of the buffer."""

    def __init__(self, message: str = "ran out of data") -> None:
        super().__init__(message)


class Viewable(Protocol):
    size: int

    def view(self, buf: bytes) -> Any: ...


Format = Union[str, Viewable]


def check(condition: bool, message: str) -> None:
    """Raise :class:`ParseError` with ``message`` unless ``condition`` holds."""
    if not condition:
        raise ParseError(message)


@lru_cache(maxsize=None)
def _struct_layout(fmt: str) -> tuple[int, Callable[[bytes], Any]]:
    if fmt[:1] not in ("@", "=", "<", ">", "!"):
        fmt = "<" + fmt
    packer = struct.Struct(fmt)

    def view(buf: bytes) -> Any:
        values = packer.unpack(buf)
        return values[0] if len(values) == 1 else values

    return packer.size, view


def _layout(fmt: Format) -> tuple[int, Callable[[bytes], Any]]:
    if isinstance(fmt, str):
        return _struct_layout(fmt)
    size = fmt.size
    if callable(size):
        size = size()
    return int(size), fmt.view


@dataclass
class Cursor:
    """A read position in an immutable byte buffer."""

    buf: bytes = field(repr=False)
    pos: int = 0

    def __post_init__(self) -> None:
        self.buf = bytes(self.buf)

    def bytes_remaining(self) -> int:
        return max(0, len(self.buf) - self.pos)

    def peek(self, fmt: Format) -> Any:
        """Read a value at the current position without advancing."""
        size, view = _layout(fmt)
        if self.bytes_remaining() < size:
            raise TooShortError()
        return view(self.buf[self.pos:self.pos + size])

    def next(self, fmt: Format) -> Any:
        """Read a value and advance past it."""
        value = self.peek(fmt)
        self.pos += _layout(fmt)[0]
        return value

    def nth(self, fmt: Format, n: int) -> Any:
        """Read the ``n``-th value of an array starting here, without advancing."""
        if n < 0:
            raise IndexError("negative element index")
        size, view = _layout(fmt)
        if self.bytes_remaining() < size * (n + 1):
            raise TooShortError()
        start = self.pos + size * n
        return view(self.buf[start:start + size])

    def next_n(self, fmt: Format, n: int) -> list[Any]:
        """Read an array of ``n`` values and advance past it."""
        if n < 0:
            raise ValueError("negative element count")
        size, view = _layout(fmt)
        data = self.next_bytes(size * n)
        return [view(data[i:i + size]) for i in range(0, size * n, size)]

    def next_bytes(self, n: int) -> bytes:
        """Read ``n`` raw bytes and advance past them."""
        if n < 0:
            raise ValueError("negative byte count")
        if self.pos + n > len(self.buf):
            raise TooShortError()
        data = self.buf[self.pos:self.pos + n]
        self.pos += n
        return data

    def rest(self) -> bytes:
        """Return every byte from the current position to the end."""
        return self.buf[self.pos:]

    def jump_forward(self, amount: int) -> None:
        self.pos += amount

    def jump_to(self, pos: int) -> None:
        self.pos = pos

    def __add__(self, amount: int) -> Cursor:
        """Return a new cursor ``amount`` bytes further on."""
        if not isinstance(amount, int):
            return NotImplemented
        return dataclasses.replace(self, pos=self.pos + amount)
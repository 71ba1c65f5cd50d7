"""Sixteen-byte NUL-padded names used in Nitro files."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

_NAME_LEN = 16
_SAFE_CHARS = frozenset(b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789")
_PLAIN_CHARS = _SAFE_CHARS | frozenset(b"_-")
_ESCAPES = {
    ord("\t"): "\\t",
    ord("\r"): "\\r",
    ord("\n"): "\\n",
    ord("'"): "\\'",
    ord('"'): '\\"',
    ord("\\"): "\\\\",
}


def _escape(b: int) -> str:
    if b in _ESCAPES:
        return _ESCAPES[b]
    if 0x20 <= b <= 0x7E:
        return chr(b)
    return f"\\u{{{b:x}}}"


@dataclass(frozen=True, repr=False)
class Name:
    """A human-readable name stored as 16 NUL-padded bytes."""

    raw: bytes

    size: ClassVar[int] = _NAME_LEN

    def __post_init__(self) -> None:
        raw = bytes(self.raw)
        if len(raw) != _NAME_LEN:
            raise ValueError(f"a name is {_NAME_LEN} bytes, got {len(raw)}")
        object.__setattr__(self, "raw", raw)

    @classmethod
    def from_bytes(cls, buf: bytes) -> Name:
        return cls(bytes(buf))

    @classmethod
    def view(cls, buf: bytes) -> Name:
        """Build a name from exactly 16 bytes (for use as a cursor format)."""
        return cls(bytes(buf))

    @property
    def trimmed(self) -> bytes:
        """The name bytes without trailing NULs."""
        return self.raw.rstrip(b"\0")

    def print_safe(self) -> str:
        """Return the name as a non-empty string of letters, digits and underscores."""
        trimmed = self.trimmed
        if not trimmed:
            return "_"
        return "".join(chr(b) if b in _SAFE_CHARS else "_" for b in trimmed)

    def __str__(self) -> str:
        # Non-printable bytes become periods, as in a hex editor.
        return "".join("." if b < 0x20 else chr(b) for b in self.trimmed)

    def __repr__(self) -> str:
        trimmed = self.trimmed
        if trimmed and all(b in _PLAIN_CHARS for b in trimmed):
            return trimmed.decode("ascii")
        return '"' + "".join(_escape(b) for b in trimmed) + '"'
"""Info blocks: a common Nitro structure holding (datum, name) pairs.

The datum is usually an offset to a structure with the given name.
"""

from __future__ import annotations

import struct
from typing import Any

from nitrotools.nitro.name import Name
from nitrotools.util.cursor import Cursor, Format, check


def _datum_size(fmt: Format) -> int:
    if isinstance(fmt, str):
        if fmt[:1] not in ("@", "=", "<", ">", "!"):
            fmt = "<" + fmt
        return struct.calcsize(fmt)
    size = fmt.size
    return int(size() if callable(size) else size)


def read_info_block(cur: Cursor, fmt: Format) -> list[tuple[Any, Name]]:
    """Read the (datum, name) pairs of the info block at ``cur``."""
    c = cur + 0
    dummy, count, _header_size, _sub_size, _section_size, _constant = c.next("BBHHHI")
    c.next_bytes(4 * count)
    size_of_datum, _data_section_size = c.next("HH")
    data = c.next_n(fmt, count)
    names = c.next_n(Name, count)

    check(dummy == 0, "info block: expected leading byte to be 0")
    check(
        size_of_datum == _datum_size(fmt),
        f"info block: datum size {size_of_datum} does not match expected {_datum_size(fmt)}",
    )
    return list(zip(data, names))
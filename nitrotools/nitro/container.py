"""Nitro containers (BMD0, BTX0, BCA0, BTP0, BTA0) and their sections.

A container holds sections such as MDL0 (models), JNT0 (joint animations),
PAT0 (pattern animations) and SRT0 (material animations). Any section kind
is read from any container kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from nitrotools.nitro.animation import Animation, read_animation
from nitrotools.nitro.info_block import read_info_block
from nitrotools.nitro.material_animation import MaterialAnimation, read_mat_anim
from nitrotools.nitro.model import Model, read_model
from nitrotools.nitro.name import Name
from nitrotools.nitro.pattern import Pattern, read_pattern
from nitrotools.util.cursor import Cursor, ParseError, check

logger = logging.getLogger(__name__)

STAMPS = (b"BMD0", b"BTX0", b"BCA0", b"BTP0", b"BTA0")


@dataclass
class Container:
    """The contents of a Nitro container file."""

    stamp: bytes
    file_size: int
    models: list[Model] = field(default_factory=list)
    animations: list[Animation] = field(default_factory=list)
    patterns: list[Pattern] = field(default_factory=list)
    mat_anims: list[MaterialAnimation] = field(default_factory=list)


def read_container(cur: Cursor) -> Container:
    """Read the Nitro container at ``cur``; unreadable sections are skipped."""
    c = cur + 0
    stamp, bom, _version, file_size, header_size, num_sections = c.next("4sHHIHH")
    section_offs = c.next_n("I", num_sections)

    if stamp not in STAMPS:
        raise ParseError(
            "unrecognized Nitro container: expected the first four bytes "
            "to be one of: BMD0, BTX0, BCA0, BTP0, BTA0"
        )
    check(bom == 0xFEFF, "container: bad byte-order mark")
    check(header_size == 16, "container: unexpected header size")
    check(file_size > 16, "container: file size too small")

    cont = Container(stamp=stamp, file_size=file_size)
    for off in section_offs:
        try:
            _read_section(cont, cur + off)
        except ParseError as e:
            logger.debug("skipping Nitro section: %s", e)
    return cont


def _read_section(cont: Container, cur: Cursor) -> None:
    stamp = (cur + 0).next_bytes(4)
    readers: dict[bytes, tuple[Callable[[Cursor, Name], Any], list, str]] = {
        b"MDL0": (read_model, cont.models, "model"),
        b"JNT0": (read_animation, cont.animations, "animation"),
        b"PAT0": (read_pattern, cont.patterns, "pattern"),
        b"SRT0": (read_mat_anim, cont.mat_anims, "material animation"),
    }
    if stamp == b"TEX0":
        raise ParseError("texture sections are not supported")
    if stamp not in readers:
        raise ParseError(
            "unrecognized Nitro format: expected the first four bytes "
            "to be one of: MDL0, TEX0, JNT0, PAT0, SRT0"
        )
    reader, target, label = readers[stamp]

    c = cur + 0
    c.next_bytes(4)
    _section_size = c.next("I")
    for off, item_name in read_info_block(c, "I"):
        try:
            target.append(reader(cur + off, item_name))
        except ParseError as e:
            logger.error("error on %s %s: %s", label, item_name, e)
"""Render commands of model files, analysed into simple render ops."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from nitrotools.util.cursor import Cursor, ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkinTerm:
    weight: float
    stack_pos: int
    inv_bind_idx: int


@dataclass(frozen=True)
class LoadMatrix:
    """cur_matrix = matrix_stack[stack_pos]"""

    stack_pos: int


@dataclass(frozen=True)
class StoreMatrix:
    """matrix_stack[stack_pos] = cur_matrix"""

    stack_pos: int


@dataclass(frozen=True)
class MulObject:
    """cur_matrix = cur_matrix * object_matrices[object_idx]"""

    object_idx: int


@dataclass(frozen=True)
class Skin:
    """cur_matrix = sum of weight * matrix_stack[stack_pos] * inv_binds[inv_bind_idx]"""

    terms: tuple[SkinTerm, ...]


@dataclass(frozen=True)
class ScaleUp:
    """cur_matrix = cur_matrix * scale(model.up_scale)"""


@dataclass(frozen=True)
class ScaleDown:
    """cur_matrix = cur_matrix * scale(model.down_scale)"""


@dataclass(frozen=True)
class BindMaterial:
    """Bind materials[material_idx] for subsequent draws."""

    material_idx: int


@dataclass(frozen=True)
class Draw:
    """Draw pieces[piece_idx]."""

    piece_idx: int


Op = Union[LoadMatrix, StoreMatrix, MulObject, Skin, ScaleUp, ScaleDown, BindMaterial, Draw]

_PARAM_LENGTHS = {
    0x00: 0, 0x01: 0, 0x02: 2, 0x03: 1, 0x04: 1, 0x05: 1, 0x06: 3,
    0x07: 1, 0x08: 1, 0x0B: 0, 0x0C: 2, 0x0D: 2, 0x24: 1, 0x26: 4,
    0x2B: 0, 0x40: 0, 0x44: 1, 0x46: 4, 0x47: 2, 0x66: 5, 0x80: 0,
}
_SKIN = 0x09
_END = 0x01


def _next_opcode_params(cur: Cursor) -> tuple[int, bytes]:
    opcode = cur.next("B")
    if opcode == _SKIN:
        # store position, term count, then three bytes per term
        count = cur.nth("B", 1)
        return opcode, cur.next_bytes(2 + 3 * count)
    try:
        params_len = _PARAM_LENGTHS[opcode]
    except KeyError:
        raise ParseError(f"unknown render command opcode: {opcode:#x}") from None
    return opcode, cur.next_bytes(params_len)


def _ops_for(opcode: int, params: bytes) -> list[Op]:
    if opcode == 0x03:
        return [LoadMatrix(params[0])]
    if opcode in (0x04, 0x24, 0x44):
        return [BindMaterial(params[0])]
    if opcode == 0x05:
        return [Draw(params[0])]
    if opcode in (0x06, 0x26, 0x46, 0x66):
        store_pos = params[3] if opcode in (0x26, 0x66) else None
        load_pos = params[3] if opcode == 0x46 else params[4] if opcode == 0x66 else None
        ops: list[Op] = []
        if load_pos is not None:
            ops.append(LoadMatrix(load_pos))
        ops.append(MulObject(params[0]))
        if store_pos is not None:
            ops.append(StoreMatrix(store_pos))
        return ops
    if opcode == _SKIN:
        store_pos, num_terms = params[0], params[1]
        terms = tuple(
            SkinTerm(
                weight=params[i + 2] / 256.0,
                stack_pos=params[i],
                inv_bind_idx=params[i + 1],
            )
            for i in range(2, 2 + 3 * num_terms, 3)
        )
        return [Skin(terms), StoreMatrix(store_pos)]
    if opcode == 0x0B:
        return [ScaleUp()]
    if opcode == 0x2B:
        return [ScaleDown()]
    if opcode not in (0x00, 0x02):
        logger.debug("skipping unknown render command %#x", opcode)
    return []


def parse_render_cmds(cur: Cursor) -> list[Op]:
    """Parse the render command stream at ``cur`` into a list of render ops."""
    c = cur + 0
    ops: list[Op] = []
    while True:
        opcode, params = _next_opcode_params(c)
        if opcode == _END:
            return ops
        ops.extend(_ops_for(opcode, params))
"""Models: materials, pieces of GPU commands, objects (bones) and render ops."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from nitrotools.nitro.info_block import read_info_block
from nitrotools.nitro.name import Name
from nitrotools.nitro.render_cmds import (
    BindMaterial,
    Draw,
    MulObject,
    Op,
    Skin,
    parse_render_cmds,
)
from nitrotools.nitro.rotation import pivot_mat
from nitrotools.util.bits import bits
from nitrotools.util.cursor import Cursor, ParseError, check
from nitrotools.util.fixed import fix16, fix32

logger = logging.getLogger(__name__)

_MODEL_HEADER = "5I3sBBB2s2I4H6H8s"
_PIECE_HEADER = "HHIII"
_MATERIAL_HEADER = "HHIIIIIIHHHHII"
# One 4x3 inverse bind matrix followed by an ignored 3x3 matrix, 4 bytes per entry.
_INV_BIND_SIZE = (4 * 3 + 3 * 3) * 4


def _fx16(x: int) -> float:
    return fix16(x, 1, 3, 12)


def _fx32(x: int) -> float:
    return fix32(x, 1, 19, 12)


@dataclass
class Piece:
    """A piece of a model: a blob of GPU commands drawing its polygons."""

    name: Name
    gpu_commands: bytes


@dataclass
class Material:
    """Drawing state: colours, texture and palette names, culling, UV transform."""

    name: Name
    params: int
    width: int
    height: int
    diffuse: tuple[float, float, float]
    diffuse_is_default_vertex_color: bool
    ambient: tuple[float, float, float]
    specular: tuple[float, float, float]
    enable_shininess_table: bool
    emission: tuple[float, float, float]
    alpha: float
    cull_backface: bool
    cull_frontface: bool
    texture_mat: np.ndarray = field(default_factory=lambda: np.identity(4))
    texture_name: Name | None = None
    palette_name: Name | None = None


@dataclass
class Object:
    """A rest-pose transform, typically one bone of a skeleton."""

    name: Name
    trans: np.ndarray | None
    rot: np.ndarray | None
    scale: np.ndarray | None
    matrix: np.ndarray
    """The 4x4 matrix of the TRS transform above."""


@dataclass
class Model:
    """A model read from an MDL0 section."""

    name: Name
    materials: list[Material]
    pieces: list[Piece]
    objects: list[Object]
    inv_binds: list[np.ndarray]
    render_ops: list[Op]
    up_scale: float
    down_scale: float


def read_model(cur: Cursor, name: Name) -> Model:
    """Read the model at ``cur``."""
    logger.debug("model: %r", name)

    c = cur + 0
    (
        _section_size,
        render_cmds_off,
        materials_off,
        pieces_off,
        inv_binds_off,
        _unknown1,
        num_objects,
        _num_materials,
        _num_pieces,
        _unknown2,
        up_raw,
        down_raw,
        _num_verts,
        _num_surfs,
        _num_tris,
        _num_quads,
        *_bounding_box,
        _unknown3,
    ) = c.next(_MODEL_HEADER)
    objects_cur = c

    render_ops = parse_render_cmds(cur + render_cmds_off)
    pieces = _read_pieces(cur + pieces_off)
    materials = _read_materials(cur + materials_off)
    objects = _read_objects(objects_cur)
    inv_binds = _read_inv_binds(cur + inv_binds_off, num_objects)

    model = Model(
        name=name,
        materials=materials,
        pieces=pieces,
        objects=objects,
        inv_binds=inv_binds,
        render_ops=render_ops,
        up_scale=_fx32(up_raw),
        down_scale=_fx32(down_raw),
    )
    _validate_render_ops(model)
    return model


def _validate_render_ops(model: Model) -> None:
    """Check that every index used by the render ops is in bounds."""
    for op in model.render_ops:
        if isinstance(op, MulObject):
            good = op.object_idx < len(model.objects)
        elif isinstance(op, BindMaterial):
            good = op.material_idx < len(model.materials)
        elif isinstance(op, Draw):
            good = op.piece_idx < len(model.pieces)
        elif isinstance(op, Skin):
            good = all(t.inv_bind_idx < len(model.inv_binds) for t in op.terms)
        else:
            good = True
        if not good:
            raise ParseError("model had out-of-bounds index in render commands")


def _read_pieces(cur: Cursor) -> list[Piece]:
    return [_read_piece(cur + off, name) for off, name in read_info_block(cur, "I")]


def _read_piece(cur: Cursor, name: Name) -> Piece:
    logger.debug("piece: %r", name)
    _dummy, section_size, _unknown, cmds_off, cmds_len = (cur + 0).next(_PIECE_HEADER)
    check(section_size == 16, "piece: unexpected header size")
    check(cmds_len % 4 == 0, "piece: command length is not a multiple of 4")
    gpu_commands = (cur + cmds_off).next_bytes(cmds_len)
    return Piece(name=name, gpu_commands=gpu_commands)


def _read_materials(cur: Cursor) -> list[Material]:
    c = cur + 0
    texture_pairing_off, palette_pairing_off = c.next("HH")

    materials = [_read_material(cur + off, name) for off, name in read_info_block(c, "I")]

    # Texture and palette names are attached to materials through separate
    # tables listing, for each name, the materials that use it.
    for pairing_off, attr in (
        (texture_pairing_off, "texture_name"),
        (palette_pairing_off, "palette_name"),
    ):
        for (off, num, _), paired_name in read_info_block(cur + pairing_off, "HBB"):
            logger.debug("%s pairing: %s", attr, paired_name)
            for mat_id in (cur + off).next_bytes(num):
                if mat_id >= len(materials):
                    raise ParseError("material pairing refers to a missing material")
                setattr(materials[mat_id], attr, paired_name)

    return materials


def _rgb(x: int) -> tuple[float, float, float]:
    return (
        bits(x, 0, 5, 32) / 31.0,
        bits(x, 5, 10, 32) / 31.0,
        bits(x, 10, 15, 32) / 31.0,
    )


def _read_texture_mat(misc: int, cur: Cursor) -> np.ndarray:
    if bits(misc, 0, 1, 16) == 0:
        return np.identity(4)

    c = cur + 0
    x = y = z = None
    if bits(misc, 1, 2, 16) == 0:
        x = tuple(_fx32(v) for v in c.next("II"))
    if bits(misc, 2, 3, 16) == 0:
        y = c.next("HH")
    if bits(misc, 3, 4, 16) == 0:
        z = tuple(_fx32(v) for v in c.next("II"))

    if x is None and y is None and z is None:
        return np.identity(4)
    if x is not None and y is None and z is None:
        x1, x2 = x
        m = np.zeros((4, 4))
        m[0, 0] = x1
        m[1, 1] = x2
        m[3, 3] = 1.0
        return m
    logger.warning("material: texture matrix is unimplemented")
    return np.identity(4)


def _read_material(cur: Cursor, name: Name) -> Material:
    logger.debug("material: %r", name)

    c = cur + 0
    (
        _dummy,
        _sizeof,
        dif_amb,
        spe_emi,
        polygon_attr,
        polygon_attr_mask,
        teximage_param,
        _unknown3,
        _pltt_base,
        misc,
        width,
        height,
        _unknown5,
        _unknown6,
    ) = c.next(_MATERIAL_HEADER)

    return Material(
        name=name,
        params=teximage_param & polygon_attr_mask,
        width=width,
        height=height,
        diffuse=_rgb(bits(dif_amb, 0, 15, 32)),
        diffuse_is_default_vertex_color=bits(dif_amb, 15, 16, 32) != 0,
        ambient=_rgb(bits(dif_amb, 16, 31, 32)),
        specular=_rgb(bits(spe_emi, 0, 15, 32)),
        enable_shininess_table=bits(spe_emi, 15, 16, 32) != 0,
        emission=_rgb(bits(spe_emi, 16, 31, 32)),
        alpha=bits(polygon_attr, 16, 21, 32) / 31.0,
        cull_backface=bits(polygon_attr, 6, 7, 32) == 0,
        cull_frontface=bits(polygon_attr, 7, 8, 32) == 0,
        texture_mat=_read_texture_mat(misc, c),
    )


def _read_objects(cur: Cursor) -> list[Object]:
    return [_read_object(cur + off, name) for off, name in read_info_block(cur, "I")]


def _read_object(cur: Cursor, name: Name) -> Object:
    logger.debug("object: %s", name)
    c = cur + 0

    flags = c.next("H")
    t = bits(flags, 0, 1, 16)
    r = bits(flags, 1, 2, 16)
    s = bits(flags, 2, 3, 16)
    p = bits(flags, 3, 4, 16)
    # First matrix entry; stored here for alignment.
    m0 = c.next("H")

    trans = rot = scale = None

    if t == 0:
        trans = np.array([_fx32(v) for v in c.next("III")])

    if p == 1:
        a, b = (_fx16(v) for v in c.next("HH"))
        rot = pivot_mat(bits(flags, 4, 8, 16), bits(flags, 8, 12, 16), a, b)
    elif r == 0:
        entries = [_fx16(m0)] + [_fx16(v) for v in c.next_n("H", 8)]
        # Entries are stored column by column.
        rot = np.array(entries).reshape(3, 3).T

    if s == 0:
        scale = np.array([_fx32(v) for v in c.next("III")])

    matrix = np.identity(4)
    if scale is not None:
        matrix = np.diag([*scale, 1.0])
    if rot is not None:
        rot4 = np.identity(4)
        rot4[:3, :3] = rot
        matrix = rot4 @ matrix
    if trans is not None:
        trans4 = np.identity(4)
        trans4[:3, 3] = trans
        matrix = trans4 @ matrix

    return Object(name=name, trans=trans, rot=rot, scale=scale, matrix=matrix)


def _read_inv_binds(cur: Cursor, num_objects: int) -> list[np.ndarray]:
    """Read as many inverse bind matrices (up to ``num_objects``) as are present."""
    c = cur + 0
    inv_binds = []
    for _ in range(num_objects):
        if c.bytes_remaining() < _INV_BIND_SIZE:
            break
        entries = [_fx32(v) for v in c.next_n("I", 12)]
        columns = np.array(entries).reshape(4, 3)
        m = np.identity(4)
        m[:3, :] = columns.T
        inv_binds.append(m)
        c.jump_forward(3 * 3 * 4)
    return inv_binds
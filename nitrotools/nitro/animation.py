"""Joint animations: per-object translation, rotation and scale curves."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

from nitrotools.nitro.name import Name
from nitrotools.nitro.rotation import basis_mat, pivot_mat
from nitrotools.util.bits import bits
from nitrotools.util.cursor import Cursor, ParseError, check
from nitrotools.util.fixed import fix16, fix32

logger = logging.getLogger(__name__)

_STAMP = b"J\0AC"


class Curve(ABC):
    """A value that varies over the frames of an animation."""

    @abstractmethod
    def sample_at(self, default: Any, frame: int) -> Any:
        """Return the curve's value at ``frame``, or ``default`` where undefined."""


@dataclass
class NoCurve(Curve):
    """A curve that is undefined everywhere."""

    def sample_at(self, default: Any, frame: int) -> Any:
        return default


@dataclass
class ConstantCurve(Curve):
    """A curve with the same value at every frame."""

    value: Any

    def sample_at(self, default: Any, frame: int) -> Any:
        return self.value


@dataclass
class SampledCurve(Curve):
    """A curve sampled at a fixed rate over [start_frame, end_frame]."""

    start_frame: int
    end_frame: int
    values: list[Any] = field(default_factory=list)

    def sample_at(self, default: Any, frame: int) -> Any:
        values = self.values
        if not values:
            return default
        # Outside the defined range the nearest end value is held.
        if frame <= self.start_frame:
            return values[0]
        if frame >= self.end_frame - 1:
            return values[-1]

        lam = (frame - self.start_frame) / (self.end_frame - 1 - self.start_frame)
        idx = lam * (len(values) - 1)
        lo = math.floor(idx)
        hi = math.ceil(idx)
        gamma = idx - lo
        return values[lo] * (1.0 - gamma) + values[hi] * gamma


def _no_curves() -> tuple[Curve, Curve, Curve]:
    return (NoCurve(), NoCurve(), NoCurve())


@dataclass
class TRSCurves:
    """Translation, rotation and scale curves for one object."""

    trans: tuple[Curve, Curve, Curve] = field(default_factory=_no_curves)
    rotation: Curve = field(default_factory=NoCurve)
    scale: tuple[Curve, Curve, Curve] = field(default_factory=_no_curves)

    def sample_at(self, frame: int) -> np.ndarray:
        """Return the object's 4x4 TRS matrix at ``frame``."""
        tx, ty, tz = (c.sample_at(0.0, frame) for c in self.trans)
        rot = self.rotation.sample_at(np.identity(3), frame)
        sx, sy, sz = (c.sample_at(1.0, frame) for c in self.scale)

        translation = np.identity(4)
        translation[:3, 3] = (tx, ty, tz)
        rotation = np.identity(4)
        rotation[:3, :3] = rot
        scale = np.diag([sx, sy, sz, 1.0])
        return translation @ rotation @ scale


@dataclass
class Animation:
    """A joint animation: one set of TRS curves per object."""

    name: Name
    num_frames: int
    objects_curves: list[TRSCurves]


@dataclass(frozen=True)
class _ObjectFlags:
    animated: bool
    trans_animated: bool
    trans_xyz_const: tuple[bool, bool, bool]
    rot_animated: bool
    rot_const: bool
    scale_animated: bool
    scale_xyz_const: tuple[bool, bool, bool]

    @classmethod
    def from_u16(cls, flags: int) -> _ObjectFlags:
        def b(lo: int, hi: int) -> int:
            return bits(flags, lo, hi, 16)

        return cls(
            animated=b(0, 1) == 0,
            trans_animated=b(1, 3) == 0,
            trans_xyz_const=(b(3, 4) != 0, b(4, 5) != 0, b(5, 6) != 0),
            rot_animated=b(6, 8) == 0,
            rot_const=b(8, 9) != 0,
            scale_animated=b(9, 11) == 0,
            scale_xyz_const=(b(11, 12) != 0, b(12, 13) != 0, b(13, 14) != 0),
        )


@dataclass(frozen=True)
class _CurveInfo:
    start_frame: int
    end_frame: int
    rate: int
    data_width: int
    interp_last: int

    @classmethod
    def from_u32(cls, x: int, end_frame: int) -> _CurveInfo:
        start_frame = bits(x, 0, 16, 32)
        interp_last = bits(x, 16, 29, 32)
        data_width = bits(x, 29, 30, 32)
        if x & 0xC0000000 == 0:
            rate = 1
        elif x & 0x40000000:
            rate = 2
        else:
            rate = 4
        check(start_frame < end_frame, "curve starts at or after the last frame")
        return cls(start_frame, end_frame, rate, data_width, interp_last)

    @property
    def num_samples(self) -> int:
        frames = self.end_frame - self.start_frame
        tail = frames - self.interp_last
        check(tail >= 0, "curve interpolation range exceeds its frame range")
        return self.interp_last // self.rate + tail


def _expand(values: list[Any], info: _CurveInfo) -> list[Any]:
    """Fill in the values skipped by a reduced sampling rate."""
    out: list[Any] = []
    for i, v in enumerate(values):
        out.append(v)
        if info.rate in (2, 4) and i * info.rate < info.interp_last:
            if i + 1 >= len(values):
                raise ParseError("interpolated curve ran out of samples")
            w = values[i + 1]
            if info.rate == 2:
                out.append(v / 2.0 + w / 2.0)
            else:
                out.extend((v / 4.0) * k + (w / 4.0) * (4 - k) for k in (3, 2, 1))
    return out


def _fx32(x: int) -> float:
    return fix32(x, 1, 19, 12)


def _fx16(x: int) -> float:
    return fix16(x, 1, 3, 12)


def _read_scalar_curve(
    base_cur: Cursor, cur: Cursor, num_frames: int, paired: bool
) -> SampledCurve:
    info = _CurveInfo.from_u32(cur.next("I"), num_frames)
    off = cur.next("I")
    data = base_cur + off
    if info.data_width == 0:
        raw = data.next_n("II" if paired else "I", info.num_samples)
        conv: Callable[[int], float] = _fx32
    else:
        raw = data.next_n("HH" if paired else "H", info.num_samples)
        conv = _fx16
    if paired:
        raw = [first for first, _ in raw]
    values = [conv(x) for x in raw]
    return SampledCurve(info.start_frame, info.end_frame, _expand(values, info))


def _read_object_curves(
    base_cur: Cursor,
    cur: Cursor,
    num_frames: int,
    pivot_data: Cursor,
    basis_data: Cursor,
) -> TRSCurves:
    raw_flags, _dummy, _index = cur.next("HBB")
    flags = _ObjectFlags.from_u16(raw_flags)
    logger.debug("flags: %r", flags)

    if not flags.animated:
        return TRSCurves()

    trans: list[Curve] = [NoCurve(), NoCurve(), NoCurve()]
    rotation: Curve = NoCurve()
    scale: list[Curve] = [NoCurve(), NoCurve(), NoCurve()]

    if flags.trans_animated:
        for i, is_const in enumerate(flags.trans_xyz_const):
            if is_const:
                trans[i] = ConstantCurve(_fx32(cur.next("I")))
            else:
                trans[i] = _read_scalar_curve(base_cur, cur, num_frames, paired=False)

    # Rotation values are references into the pivot or basis tables.
    def fetch_matrix(x: int) -> np.ndarray:
        mode = bits(x, 15, 16, 16)
        idx = bits(x, 0, 15, 16)
        if mode == 1:
            selneg, a, b = pivot_data.nth("HHH", idx)
            return pivot_mat(
                bits(selneg, 0, 4, 16), bits(selneg, 4, 8, 16), _fx16(a), _fx16(b)
            )
        return basis_mat(basis_data.nth("HHHHH", idx))

    if flags.rot_animated:
        if flags.rot_const:
            v, _pad = cur.next("HH")
            rotation = ConstantCurve(fetch_matrix(v))
        else:
            info = _CurveInfo.from_u32(cur.next("I"), num_frames)
            off = cur.next("I")
            refs = (base_cur + off).next_n("H", info.num_samples)
            values = [fetch_matrix(v) for v in refs]
            rotation = SampledCurve(info.start_frame, info.end_frame, _expand(values, info))

    # Scale entries hold two values each; only the first is used.
    if flags.scale_animated:
        for i, is_const in enumerate(flags.scale_xyz_const):
            if is_const:
                first, _second = cur.next("II")
                scale[i] = ConstantCurve(_fx32(first))
            else:
                scale[i] = _read_scalar_curve(base_cur, cur, num_frames, paired=True)

    return TRSCurves(
        trans=(trans[0], trans[1], trans[2]),
        rotation=rotation,
        scale=(scale[0], scale[1], scale[2]),
    )


def read_animation(base_cur: Cursor, name: Name) -> Animation:
    """Read the joint animation at ``base_cur``."""
    c = base_cur + 0
    stamp = c.next_bytes(4)
    num_frames, num_objects, _unknown, pivot_data_off, basis_data_off = c.next("HHIII")
    object_offs = c.next_n("H", num_objects)

    check(stamp == _STAMP, "animation: bad stamp")
    if num_frames == 0:
        raise ParseError("ignoring animation with 0 frames")

    pivot_data = base_cur + pivot_data_off
    basis_data = base_cur + basis_data_off

    objects_curves = [
        _read_object_curves(base_cur, base_cur + off, num_frames, pivot_data, basis_data)
        for off in object_offs
    ]
    return Animation(name=name, num_frames=num_frames, objects_curves=objects_curves)
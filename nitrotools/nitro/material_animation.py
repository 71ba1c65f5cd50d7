"""Material animations, such as animated UV translation."""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass, field
from typing import ClassVar

import numpy as np

from nitrotools.nitro.animation import Curve, NoCurve, SampledCurve
from nitrotools.nitro.info_block import read_info_block
from nitrotools.nitro.name import Name
from nitrotools.util.cursor import Cursor
from nitrotools.util.fixed import fix16

logger = logging.getLogger(__name__)

# Only channels with this flag value are understood.
_SAMPLED_FLAGS = 16


class MatChannelTarget(enum.Enum):
    TRANSLATION_U = enum.auto()
    TRANSLATION_V = enum.auto()
    UNKNOWN = enum.auto()


_CHANNEL_TARGETS = (
    MatChannelTarget.UNKNOWN,
    MatChannelTarget.UNKNOWN,
    MatChannelTarget.UNKNOWN,
    MatChannelTarget.TRANSLATION_U,
    MatChannelTarget.TRANSLATION_V,
)


@dataclass
class MaterialChannel:
    """One animated material property."""

    num_frames: int
    target: MatChannelTarget
    curve: Curve = field(default_factory=NoCurve)


@dataclass
class MaterialTrack:
    """Animation of the material with the same name."""

    name: Name
    channels: tuple[MaterialChannel, ...]

    def eval_uv_mat(self, frame: int) -> np.ndarray:
        """Return the 4x4 UV transform at ``frame``."""
        u = v = 0.0
        for chan in self.channels:
            if chan.target is MatChannelTarget.TRANSLATION_U:
                u = chan.curve.sample_at(u, frame)
            if chan.target is MatChannelTarget.TRANSLATION_V:
                v = chan.curve.sample_at(v, frame)
        m = np.identity(4)
        m[:3, 3] = (u, v, 0.0)
        return m


@dataclass
class MaterialAnimation:
    name: Name
    num_frames: int
    tracks: list[MaterialTrack]


@dataclass(frozen=True)
class _ChannelData:
    num_frames: int
    flags: int
    offset: int


class _ChannelSet:
    """Cursor format for the five channel records of a track."""

    _record: ClassVar[struct.Struct] = struct.Struct("<HBBI")
    size: ClassVar[int] = 5 * _record.size

    @classmethod
    def view(cls, buf: bytes) -> tuple[_ChannelData, ...]:
        return tuple(
            _ChannelData(num_frames, flags, offset)
            for num_frames, _dummy, flags, offset in cls._record.iter_unpack(buf)
        )


def _read_channel(
    base_cur: Cursor, data: _ChannelData, target: MatChannelTarget
) -> MaterialChannel:
    if data.flags != _SAMPLED_FLAGS or target is MatChannelTarget.UNKNOWN:
        return MaterialChannel(num_frames=0, target=target, curve=NoCurve())

    raw = (base_cur + data.offset).next_n("H", data.num_frames)
    values = [fix16(n, 1, 10, 5) for n in raw]
    curve = SampledCurve(start_frame=0, end_frame=data.num_frames, values=values)
    return MaterialChannel(num_frames=data.num_frames, target=target, curve=curve)


def read_mat_anim(cur: Cursor, name: Name) -> MaterialAnimation:
    """Read the material animation at ``cur``."""
    logger.debug("material animation: %r", name)

    c = cur + 0
    c.next_bytes(4)
    num_frames, _unknown = c.next("HH")

    tracks = [
        MaterialTrack(
            name=track_name,
            channels=tuple(
                _read_channel(cur, data, target)
                for data, target in zip(chans, _CHANNEL_TARGETS)
            ),
        )
        for chans, track_name in read_info_block(c, _ChannelSet)
    ]
    return MaterialAnimation(name=name, num_frames=num_frames, tracks=tracks)
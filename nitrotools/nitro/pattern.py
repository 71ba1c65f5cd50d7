"""Pattern animations: switching the images used by a model's materials."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from nitrotools.nitro.info_block import read_info_block
from nitrotools.nitro.name import Name
from nitrotools.util.cursor import Cursor, ParseError

logger = logging.getLogger(__name__)


@dataclass
class PatternKeyframe:
    frame: int
    texture_idx: int
    """Index into Pattern.texture_names."""
    palette_idx: int
    """Index into Pattern.palette_names."""


@dataclass
class PatternTrack:
    """The keyframes at which one material's image changes."""

    name: Name
    keyframes: list[PatternKeyframe]

    def sample(self, frame: int) -> tuple[int, int]:
        """Return (texture_idx, palette_idx) in effect at ``frame``."""
        next_pos = next(
            (i for i, key in enumerate(self.keyframes) if key.frame > frame),
            None,
        )
        if next_pos is None:
            keyframe = self.keyframes[-1]
        else:
            keyframe = self.keyframes[max(next_pos - 1, 0)]
        return keyframe.texture_idx, keyframe.palette_idx


@dataclass
class Pattern:
    """A pattern animation."""

    name: Name
    num_frames: int
    texture_names: list[Name]
    palette_names: list[Name]
    material_tracks: list[PatternTrack]


def read_pattern(cur: Cursor, name: Name) -> Pattern:
    """Read the pattern animation at ``cur``."""
    logger.debug("pattern: %r", name)

    c = cur + 0
    c.next_bytes(4)
    num_frames, num_texture_names, num_palette_names, texture_names_off, palette_names_off = (
        c.next("HBBHH")
    )
    end = c

    texture_names = (cur + texture_names_off).next_n(Name, num_texture_names)
    palette_names = (cur + palette_names_off).next_n(Name, num_palette_names)

    material_tracks = []
    for (num_keyframes, _unknown, off), track_name in read_info_block(end, "IHH"):
        keyframes = []
        for frame, texture_idx, palette_idx in (cur + off).next_n("HBB", num_keyframes):
            if texture_idx >= num_texture_names or palette_idx >= num_palette_names:
                raise ParseError("OOB index in pattern animation")
            keyframes.append(PatternKeyframe(frame, texture_idx, palette_idx))
        material_tracks.append(PatternTrack(track_name, keyframes))

    return Pattern(
        name=name,
        num_frames=num_frames,
        texture_names=texture_names,
        palette_names=palette_names,
        material_tracks=material_tracks,
    )
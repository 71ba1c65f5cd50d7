"""Decoding of the compact formats used to store 3x3 rotation matrices.

The matrices are not guaranteed to be true rotations.
"""

from __future__ import annotations

import logging

import numpy as np

from nitrotools.util.bits import bits
from nitrotools.util.fixed import fix16

logger = logging.getLogger(__name__)


def _from_columns(*entries: float) -> np.ndarray:
    """Build a 3x3 matrix from nine entries given column by column."""
    return np.array(entries, dtype=float).reshape(3, 3).T


def pivot_mat(select: int, neg: int, a: float, b: float) -> np.ndarray:
    """Decode a "pivot" matrix: one axis pinned to +-1, the other four entries a, b."""
    if select >= 9:
        logger.debug("pivot with select=%d", select)
        return _from_columns(-a, 0, 0, 0, 0, 0, 0, 0, 0)

    o = 1.0 if bits(neg, 0, 1, 16) == 0 else -1.0
    c = b if bits(neg, 1, 2, 16) == 0 else -b
    d = a if bits(neg, 2, 3, 16) == 0 else -a

    layouts = {
        0: (o, 0, 0, 0, a, b, 0, c, d),
        1: (0, o, 0, a, 0, b, c, 0, d),
        2: (0, 0, o, a, b, 0, c, d, 0),
        3: (0, a, b, o, 0, 0, 0, c, d),
        4: (a, 0, b, 0, o, 0, c, 0, d),
        5: (a, b, 0, 0, 0, o, c, d, 0),
        6: (0, a, b, 0, c, d, o, 0, 0),
        7: (a, 0, b, c, 0, d, 0, o, 0),
        8: (a, b, 0, c, d, 0, 0, 0, o),
    }
    return _from_columns(*layouts[select])


def basis_mat(values: tuple[int, int, int, int, int]) -> np.ndarray:
    """Decode a matrix packed as two basis vectors in five 16-bit words.

    Five 13-bit numbers sit in the high bits of each word; the sixth is
    assembled from the low three bits of each word. The third column is
    the cross product of the first two.
    """
    in0, in1, in2, in3, in4 = values
    words = (in4, in0, in1, in2, in3)
    out = [bits(w, 3, 16, 16) for w in words]
    last = 0
    for w in words:
        last = ((last << 3) | bits(w, 0, 3, 16)) & 0xFFFF
    out.append(last)

    f = [fix16(x, 1, 0, 12) for x in out]
    col_a = np.array([f[1], f[2], f[3]])
    col_b = np.array([f[4], f[0], f[5]])
    col_c = np.cross(col_a, col_b)
    return np.column_stack([col_a, col_b, col_c])
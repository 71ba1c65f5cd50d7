"""Reconstruction of a skeleton (joint tree plus skin weights) for a model.

Given, for every vertex, the symbolic matrix applied to it, build a tree of
joints and a list of (weight, joint) influences per vertex so that the
skinning equation reproduces the same transform for every pose.

Every symbolic matrix is a weighted sum of products of SMatrices. The
longest suffix of pose-independent factors is dropped from each product
(constant leaves are superfluous for skinning) and the remaining object
matrices become a chain of joints; the term's weight becomes the
influence's weight. Sums of several terms only give an exact skin when each
term is the identity at rest and the weights sum to 1; otherwise a warning
is logged and the same construction is used anyway.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, Sequence

import numpy as np

from nitrotools.skeleton.symbolic_matrix import (
    AMatrix,
    InvBindMatrix,
    ObjectMatrix,
    SMatrix,
    UninitializedMatrix,
)
from nitrotools.util.tree import Tree

logger = logging.getLogger(__name__)

_MAX_WEIGHTS = 255
_MAX_WEIGHT_START = 0xFFFFFF
# The smallest representable number on the DS is about 0.0002.
_BUMPS = (0.000012, -0.000017, 0.000006, -0.000008, 0.00001)


@dataclass
class VertexRecord:
    """The symbolic matrices met while drawing, and which one each vertex uses."""

    matrices: list[AMatrix] = field(default_factory=lambda: [AMatrix.one()])
    vertices: list[int] = field(default_factory=list)


@dataclass
class Joint:
    """A joint; ``local_to_parent`` is None for the universal root (identity)."""

    local_to_parent: SMatrix | None
    rest_world_to_local: np.ndarray
    """The inverse bind matrix, cached for convenience."""


@dataclass(frozen=True)
class Weight:
    weight: float
    joint: int


@dataclass
class Skeleton:
    """A joint tree plus skin weights for every vertex."""

    tree: Tree[Joint]
    root: int
    max_num_weights: int
    weights: list[Weight]
    """Weights for all vertices packed together."""
    _verts: list[tuple[int, int]] = field(repr=False)

    def vert_weights(self, vi: int) -> list[Weight]:
        """Return the influences on vertex ``vi``, heaviest first."""
        start, length = self._verts[vi]
        return self.weights[start:start + length]


def build_skeleton(vr: VertexRecord, model: Any, objects: Sequence[np.ndarray]) -> Skeleton:
    """Build the skeleton for the vertices recorded in ``vr``.

    ``model`` supplies ``inv_binds`` and ``name``; ``objects`` are the rest
    pose object matrices.
    """
    b = _Builder(model, objects)

    cache: dict[int, tuple[int, int]] = {}
    max_num_weights = 0
    weights: list[Weight] = []
    verts: list[tuple[int, int]] = []

    for mat_idx in vr.vertices:
        if mat_idx not in cache:
            ws = _simplify_weights(b.amatrix_to_weights(vr.matrices[mat_idx]))
            if len(ws) > _MAX_WEIGHTS:
                raise ValueError("too many influences on one vertex")
            start = len(weights)
            if start > _MAX_WEIGHT_START:
                raise ValueError("too many skin weights")
            max_num_weights = max(max_num_weights, len(ws))
            weights.extend(ws)
            cache[mat_idx] = (start, len(ws))
        verts.append(cache[mat_idx])

    if b.unusual_matrices:
        logger.warning(
            "unusual matrices encountered in model %s; the skin for this "
            "model may function imperfectly",
            model.name,
        )

    # Up to here each joint held its rest local-to-world; invert it now.
    for joint in b.graph.node_idxs():
        b.graph[joint].rest_world_to_local = _invert_matrix(
            b.graph[joint].rest_world_to_local
        )

    if len(b.roots) != 1:
        b.make_root()

    return Skeleton(
        tree=b.graph,
        root=b.roots[0],
        max_num_weights=max_num_weights,
        weights=weights,
        _verts=verts,
    )


class _Builder:
    def __init__(self, model: Any, objects: Sequence[np.ndarray]) -> None:
        self.model = model
        self.objects = objects
        self.graph: Tree[Joint] = Tree()
        self.roots: list[int] = []
        self.unusual_matrices = False

    def _is_universal_root(self, node: int) -> bool:
        return self.graph[node].local_to_parent is None

    def make_root(self) -> int:
        """Put every root under a universal root, turning the forest into a tree."""
        if len(self.roots) == 1 and self._is_universal_root(self.roots[0]):
            return self.roots[0]
        root = self.graph.add_node(Joint(None, np.identity(4)))
        for old_root in self.roots:
            self.graph.reparent(old_root, root)
        self.roots = [root]
        return root

    def amatrix_to_weights(self, amatrix: AMatrix) -> list[Weight]:
        self._detect_unusual_matrices(amatrix)
        return [
            Weight(term.weight, self._cmatrix_to_joint(term.cmat.factors))
            for term in amatrix.terms
        ]

    def _cmatrix_to_joint(self, factors: Sequence[SMatrix]) -> int:
        end = len(factors)
        while end > 0 and not isinstance(factors[end - 1], ObjectMatrix):
            end -= 1
        factors = factors[:end]

        if not factors:
            # Unlikely: the matrix is constant, so it belongs to the universal root.
            return self.make_root()

        node = self._find_root(factors[0])
        for factor in factors[1:]:
            node = self._find_child(node, factor)
        return node

    def _find_root(self, smat: SMatrix) -> int:
        if len(self.roots) == 1 and self._is_universal_root(self.roots[0]):
            return self._find_child(self.roots[0], smat)

        for idx in self.roots:
            if self.graph[idx].local_to_parent == smat:
                return idx

        new_root = self.graph.add_node(Joint(smat, self._eval_smatrix(smat)))
        self.roots.append(new_root)
        return new_root

    def _find_child(self, node: int, smat: SMatrix) -> int:
        for idx in self.graph.children(node):
            if self.graph[idx].local_to_parent == smat:
                return idx

        rest = self.graph[node].rest_world_to_local @ self._eval_smatrix(smat)
        child = self.graph.add_node(Joint(smat, rest))
        self.graph.reparent(child, node)
        return child

    def _detect_unusual_matrices(self, amatrix: AMatrix) -> None:
        if len(amatrix.terms) <= 1:
            return
        total = 0.0
        for term in amatrix.terms:
            total += term.weight
            rest = self._eval_cmatrix(term.cmat.factors)
            if not np.allclose(rest, np.identity(4), rtol=0.1, atol=0.1):
                self.unusual_matrices = True
        if abs(total - 1.0) > 0.1:
            self.unusual_matrices = True

    def _eval_smatrix(self, smat: SMatrix) -> np.ndarray:
        """Value of an SMatrix in the rest pose."""
        if isinstance(smat, ObjectMatrix):
            return np.asarray(self.objects[smat.object_idx], dtype=float)
        if isinstance(smat, InvBindMatrix):
            return np.asarray(self.model.inv_binds[smat.inv_bind_idx], dtype=float)
        if isinstance(smat, UninitializedMatrix):
            return np.identity(4)
        raise TypeError(f"not a symbolic matrix: {smat!r}")

    def _eval_cmatrix(self, factors: Sequence[SMatrix]) -> np.ndarray:
        return reduce(
            lambda acc, smat: acc @ self._eval_smatrix(smat), factors, np.identity(4)
        )


def _simplify_weights(weights: list[Weight]) -> list[Weight]:
    """Merge weights on the same joint, drop zeros, sort heaviest first."""
    totals: dict[int, float] = {}
    for w in weights:
        totals[w.joint] = totals.get(w.joint, 0.0) + w.weight
    merged = [Weight(weight, joint) for joint, weight in totals.items() if weight != 0.0]
    return sorted(merged, key=lambda w: -w.weight)


def _invert_matrix(mat: np.ndarray) -> np.ndarray:
    """Invert ``mat``, nudging its upper-left 3x3 block until it is non-singular."""
    mat = np.array(mat, dtype=float)
    rng = 0x83E17875
    eps = np.finfo(float).eps
    while True:
        if abs(np.linalg.det(mat)) > eps:
            try:
                return np.linalg.inv(mat)
            except np.linalg.LinAlgError:
                pass
        a = rng
        for col in range(3):
            mat[(a + col) % 3, col] += _BUMPS[(a + col) % len(_BUMPS)]
        # xorshift32
        rng ^= (rng << 17) & 0xFFFFFFFF
        rng ^= rng >> 13
        rng ^= (rng << 5) & 0xFFFFFFFF
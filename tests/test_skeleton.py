from types import SimpleNamespace

import numpy as np

from nitrotools.skeleton.skeleton import VertexRecord, Weight, build_skeleton
from nitrotools.skeleton.symbolic_matrix import (
    AMatrix,
    CMatrix,
    InvBindMatrix,
    ObjectMatrix,
    UninitializedMatrix,
)


def translation(x, y, z):
    m = np.identity(4)
    m[:3, 3] = (x, y, z)
    return m


def make_model(inv_binds=()):
    return SimpleNamespace(name="model", inv_binds=list(inv_binds))


def skin_term(weight, obj, inv):
    m = AMatrix.of(CMatrix((ObjectMatrix(obj), InvBindMatrix(inv))))
    m *= weight
    return m


def test_chain_of_objects():
    objects = [translation(1, 0, 0), translation(0, 2, 0)]
    vr = VertexRecord(
        matrices=[AMatrix.one(), AMatrix.of(CMatrix((ObjectMatrix(0), ObjectMatrix(1))))],
        vertices=[1, 1],
    )
    skel = build_skeleton(vr, make_model(), objects)
    assert skel.tree.node_count() == 2
    assert skel.root == 0
    assert list(skel.tree.children(0)) == [1]
    assert skel.vert_weights(0) == [Weight(1.0, 1)]
    assert skel.vert_weights(1) == skel.vert_weights(0)
    assert skel.max_num_weights == 1
    rest = objects[0] @ objects[1]
    assert np.allclose(skel.tree[1].rest_world_to_local @ rest, np.identity(4))


def test_multiple_roots_get_universal_root():
    objects = [translation(1, 0, 0), translation(0, 1, 0)]
    vr = VertexRecord(
        matrices=[AMatrix.of(ObjectMatrix(0)), AMatrix.of(ObjectMatrix(1))],
        vertices=[0, 1],
    )
    skel = build_skeleton(vr, make_model(), objects)
    assert skel.tree.node_count() == 3
    assert skel.tree[skel.root].local_to_parent is None
    assert list(skel.tree.children(skel.root)) == [0, 1]
    assert np.allclose(skel.tree[skel.root].rest_world_to_local, np.identity(4))


def test_like_terms_are_merged():
    objects = [np.identity(4)]
    skin = skin_term(0.5, 0, 0)
    skin += skin_term(0.5, 0, 0)
    vr = VertexRecord(matrices=[skin], vertices=[0])
    skel = build_skeleton(vr, make_model([np.identity(4)]), objects)
    assert skel.vert_weights(0) == [Weight(1.0, 0)]


def test_weights_sorted_heaviest_first():
    objects = [np.identity(4), np.identity(4)]
    skin = skin_term(0.25, 0, 0)
    skin += skin_term(0.75, 1, 1)
    vr = VertexRecord(matrices=[skin], vertices=[0])
    skel = build_skeleton(vr, make_model([np.identity(4)] * 2), objects)
    ws = skel.vert_weights(0)
    assert [w.weight for w in ws] == [0.75, 0.25]
    assert skel.max_num_weights == 2
    assert skel.tree[ws[0].joint].local_to_parent == ObjectMatrix(1)


def test_shared_matrix_weights_are_cached():
    vr = VertexRecord(matrices=[AMatrix.of(ObjectMatrix(0))], vertices=[0, 0, 0])
    skel = build_skeleton(vr, make_model(), [np.identity(4)])
    assert len(skel.weights) == 1
    assert all(skel.vert_weights(i) == skel.weights for i in range(3))


def test_constant_suffix_is_dropped():
    vr = VertexRecord(
        matrices=[
            AMatrix.of(ObjectMatrix(0)),
            AMatrix.of(CMatrix((ObjectMatrix(0), UninitializedMatrix(3)))),
        ],
        vertices=[0, 1],
    )
    skel = build_skeleton(vr, make_model(), [np.identity(4)])
    assert skel.tree.node_count() == 1
    assert skel.vert_weights(0) == skel.vert_weights(1)


def test_identity_matrix_maps_to_universal_root():
    vr = VertexRecord(vertices=[0])
    skel = build_skeleton(vr, make_model(), [])
    assert skel.tree[skel.root].local_to_parent is None
    assert skel.vert_weights(0) == [Weight(1.0, skel.root)]


def test_singular_rest_matrix_is_still_inverted():
    objects = [np.diag([0.0, 0.0, 0.0, 1.0])]
    vr = VertexRecord(matrices=[AMatrix.of(ObjectMatrix(0))], vertices=[0])
    skel = build_skeleton(vr, make_model(), objects)
    inv = skel.tree[0].rest_world_to_local
    assert np.all(np.isfinite(inv))
    assert abs(np.linalg.det(inv)) > 0


def test_no_vertices_yields_single_root():
    skel = build_skeleton(VertexRecord(vertices=[]), make_model(), [])
    assert skel.tree.node_count() == 1
    assert skel.weights == []
    assert skel.max_num_weights == 0
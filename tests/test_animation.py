import struct

import numpy as np
import pytest

from nitrotools.nitro.animation import (
    Animation,
    ConstantCurve,
    NoCurve,
    SampledCurve,
    TRSCurves,
    read_animation,
)
from nitrotools.nitro.name import Name
from nitrotools.nitro.rotation import basis_mat, pivot_mat
from nitrotools.util.cursor import Cursor, ParseError, TooShortError

NAME = Name(b"walk".ljust(16, b"\0"))

NOT_ANIMATED = 1
TRANS_OFF = 1 << 1
TRANS_CONST = (1 << 3, 1 << 4, 1 << 5)
ROT_OFF = 1 << 6
ROT_CONST = 1 << 8
SCALE_OFF = 1 << 9
SCALE_CONST = (1 << 11, 1 << 12, 1 << 13)

DATA = 0x100
DATA2 = 0x140
PIVOT = 0x180
BASIS = 0x1C0


def _info(start, interp_last=0, narrow=True, rate_bits=0):
    return start | (interp_last << 16) | (int(narrow) << 29) | (rate_bits << 30)


def _obj(flags, payload=b""):
    return struct.pack("<HBB", flags, 0, 0) + payload


def _anim(num_frames, objects, data=None, pivot=b"", basis=b"", stamp=b"J\0AC"):
    buf = bytearray(0x200)

    def put(off, chunk):
        buf[off:off + len(chunk)] = chunk

    offs = [0x40 * (i + 1) for i in range(len(objects))]
    header = struct.pack("<4sHHIII", stamp, num_frames, len(objects), 0, PIVOT, BASIS)
    header += struct.pack(f"<{len(offs)}H", *offs)
    put(0, header)
    for off, obj in zip(offs, objects):
        put(off, obj)
    for off, chunk in (data or {}).items():
        put(off, chunk)
    put(PIVOT, pivot)
    put(BASIS, basis)
    return Cursor(bytes(buf))


def test_no_curve_returns_default():
    assert NoCurve().sample_at(7.5, 3) == 7.5


def test_constant_curve_ignores_frame():
    curve = ConstantCurve(2.5)
    assert curve.sample_at(0.0, 0) == 2.5
    assert curve.sample_at(0.0, 100) == 2.5


def test_sampled_curve_empty_returns_default():
    assert SampledCurve(0, 10, []).sample_at(1.0, 5) == 1.0


def test_sampled_curve_holds_outside_range():
    curve = SampledCurve(2, 6, [10.0, 20.0, 30.0])
    assert curve.sample_at(0.0, 0) == 10.0
    assert curve.sample_at(0.0, 2) == 10.0
    assert curve.sample_at(0.0, 5) == 30.0
    assert curve.sample_at(0.0, 50) == 30.0


def test_sampled_curve_interpolates_between_neighbours():
    curve = SampledCurve(2, 6, [10.0, 20.0, 30.0])
    v = curve.sample_at(0.0, 3)
    assert 10.0 < v < 20.0


def test_sampled_curve_of_matrices():
    curve = SampledCurve(0, 3, [np.zeros((3, 3)), 2 * np.identity(3)])
    mid = curve.sample_at(np.identity(3), 1)
    assert np.allclose(mid, (curve.values[0] + curve.values[1]) / 2)


def test_default_trs_is_identity():
    assert np.allclose(TRSCurves().sample_at(0), np.identity(4))


def test_unanimated_object():
    anim = read_animation(_anim(4, [_obj(NOT_ANIMATED)]), NAME)
    assert isinstance(anim, Animation)
    assert anim.name == NAME
    assert anim.num_frames == 4
    trs = anim.objects_curves[0]
    assert all(isinstance(c, NoCurve) for c in (*trs.trans, trs.rotation, *trs.scale))
    assert np.allclose(trs.sample_at(2), np.identity(4))


def test_constant_translation():
    flags = sum(TRANS_CONST) | ROT_OFF | SCALE_OFF
    payload = struct.pack("<3I", 4096, 8192, (-4096) & 0xFFFFFFFF)
    anim = read_animation(_anim(4, [_obj(flags, payload)]), NAME)
    trs = anim.objects_curves[0]
    assert [c.value for c in trs.trans] == [1.0, 2.0, -1.0]
    m = trs.sample_at(0)
    assert np.allclose(m[:3, 3], [1.0, 2.0, -1.0])
    assert np.allclose(m[:3, :3], np.identity(3))


def test_sampled_translation():
    flags = TRANS_CONST[1] | TRANS_CONST[2] | ROT_OFF | SCALE_OFF
    payload = struct.pack("<II", _info(0), DATA) + struct.pack("<2I", 0, 0)
    data = {DATA: struct.pack("<4H", 0, 4096, 8192, 12288)}
    anim = read_animation(_anim(4, [_obj(flags, payload)], data), NAME)
    curve = anim.objects_curves[0].trans[0]
    assert isinstance(curve, SampledCurve)
    assert curve.start_frame == 0
    assert curve.end_frame == 4
    assert curve.values == [0.0, 1.0, 2.0, 3.0]
    assert anim.objects_curves[0].sample_at(1)[0, 3] == pytest.approx(1.0)


@pytest.mark.parametrize(
    "num_frames, interp_last, rate_bits, raw",
    [
        (4, 2, 1, (0, 8192, 16384)),
        (5, 4, 2, (0, 16384)),
    ],
)
def test_reduced_rate_is_filled_in_evenly(num_frames, interp_last, rate_bits, raw):
    flags = TRANS_CONST[1] | TRANS_CONST[2] | ROT_OFF | SCALE_OFF
    info = _info(0, interp_last=interp_last, rate_bits=rate_bits)
    payload = struct.pack("<II", info, DATA) + struct.pack("<2I", 0, 0)
    data = {DATA: struct.pack(f"<{len(raw)}H", *raw)}
    anim = read_animation(_anim(num_frames, [_obj(flags, payload)], data), NAME)
    values = anim.objects_curves[0].trans[0].values
    assert len(values) == num_frames
    assert values[0] == 0.0
    steps = np.diff(values[: interp_last + 1])
    assert np.allclose(steps, steps[0])


def test_interpolation_past_samples_is_error():
    flags = TRANS_CONST[1] | TRANS_CONST[2] | ROT_OFF | SCALE_OFF
    payload = struct.pack("<II", _info(0, interp_last=4, rate_bits=1), DATA)
    payload += struct.pack("<2I", 0, 0)
    data = {DATA: struct.pack("<2H", 0, 4096)}
    with pytest.raises(ParseError):
        read_animation(_anim(4, [_obj(flags, payload)], data), NAME)


def test_constant_pivot_rotation():
    flags = TRANS_OFF | ROT_CONST | SCALE_OFF
    payload = struct.pack("<HH", 0x8000, 0)
    pivot = struct.pack("<3H", 0, 0, 4096)
    anim = read_animation(_anim(2, [_obj(flags, payload)], pivot=pivot), NAME)
    rot = anim.objects_curves[0].rotation
    assert isinstance(rot, ConstantCurve)
    assert np.allclose(rot.value, pivot_mat(0, 0, 0.0, 1.0))
    assert np.allclose(anim.objects_curves[0].sample_at(0)[:3, :3], rot.value)


def test_constant_basis_rotation():
    flags = TRANS_OFF | ROT_CONST | SCALE_OFF
    payload = struct.pack("<HH", 0x0001, 0)
    entry = (0x1000, 0x2008, 0x0010, 0x3000, 0x0007)
    basis = struct.pack("<5H", 0, 0, 0, 0, 0) + struct.pack("<5H", *entry)
    anim = read_animation(_anim(2, [_obj(flags, payload)], basis=basis), NAME)
    assert np.allclose(anim.objects_curves[0].rotation.value, basis_mat(entry))


def test_sampled_rotation():
    flags = TRANS_OFF | SCALE_OFF
    payload = struct.pack("<II", _info(0), DATA)
    data = {DATA: struct.pack("<2H", 0x8000, 0x8001)}
    pivot = struct.pack("<6H", 0, 4096, 0, 0, 0, 4096)
    anim = read_animation(_anim(2, [_obj(flags, payload)], data, pivot=pivot), NAME)
    rot = anim.objects_curves[0].rotation
    assert isinstance(rot, SampledCurve)
    assert np.allclose(rot.sample_at(np.identity(3), 0), pivot_mat(0, 0, 1.0, 0.0))
    assert np.allclose(rot.sample_at(np.identity(3), 1), pivot_mat(0, 0, 0.0, 1.0))


def test_constant_scale():
    flags = TRANS_OFF | ROT_OFF | sum(SCALE_CONST)
    payload = struct.pack("<6I", 8192, 0, 8192, 0, 8192, 0)
    anim = read_animation(_anim(2, [_obj(flags, payload)]), NAME)
    assert np.allclose(anim.objects_curves[0].sample_at(0), np.diag([2.0, 2.0, 2.0, 1.0]))


def test_sampled_wide_scale_uses_first_of_pair():
    flags = TRANS_OFF | ROT_OFF | SCALE_CONST[1] | SCALE_CONST[2]
    payload = struct.pack("<II", _info(0, narrow=False), DATA)
    payload += struct.pack("<4I", 4096, 0, 4096, 0)
    data = {DATA: struct.pack("<4I", 4096, 99, 8192, 99)}
    anim = read_animation(_anim(2, [_obj(flags, payload)], data), NAME)
    assert anim.objects_curves[0].scale[0].values == [1.0, 2.0]
    assert anim.objects_curves[0].scale[1].value == 1.0


def test_several_objects_read_in_order():
    flags = sum(TRANS_CONST) | ROT_OFF | SCALE_OFF
    first = _obj(flags, struct.pack("<3I", 4096, 0, 0))
    second = _obj(NOT_ANIMATED)
    anim = read_animation(_anim(3, [first, second]), NAME)
    assert len(anim.objects_curves) == 2
    assert anim.objects_curves[0].trans[0].value == 1.0
    assert isinstance(anim.objects_curves[1].trans[0], NoCurve)


def test_bad_stamp():
    with pytest.raises(ParseError):
        read_animation(_anim(4, [_obj(NOT_ANIMATED)], stamp=b"JNT0"), NAME)


def test_zero_frames():
    with pytest.raises(ParseError):
        read_animation(_anim(0, [_obj(NOT_ANIMATED)]), NAME)


def test_start_frame_past_end():
    flags = TRANS_CONST[1] | TRANS_CONST[2] | ROT_OFF | SCALE_OFF
    payload = struct.pack("<II", _info(4), DATA) + struct.pack("<2I", 0, 0)
    with pytest.raises(ParseError):
        read_animation(_anim(4, [_obj(flags, payload)]), NAME)


def test_truncated_data():
    header = struct.pack("<4sHHIII", b"J\0AC", 4, 1, 0, 0, 0) + struct.pack("<H", 0x80)
    with pytest.raises(TooShortError):
        read_animation(Cursor(header), NAME)
import pytest

from nitrotools.util.bimap import BiMap


def test_round_trip():
    m = BiMap()
    pairs = [("a", 1), ("b", 2), ("c", 3)]
    for k, v in pairs:
        m.insert(k, v)
    for k, v in pairs:
        assert m.forward(k) == v
        assert m.backward(v) == k
        assert m.backward(m.forward(k)) == k


def test_right_contains():
    m = BiMap()
    m.insert("x", 10)
    assert m.right_contains(10)
    assert not m.right_contains("x")


def test_items():
    m = BiMap()
    m.insert("x", 10)
    m.insert("y", 20)
    assert dict(m.items()) == {"x": 10, "y": 20}


def test_missing():
    m = BiMap()
    with pytest.raises(KeyError):
        m.forward("nope")
    with pytest.raises(KeyError):
        m.backward("nope")
"""Bijective mapping between two sets of hashable values."""

from __future__ import annotations

from typing import Generic, Hashable, ItemsView, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V", bound=Hashable)


class BiMap(Generic[K, V]):
    """Maps left-hand keys to right-hand values and back."""

    def __init__(self) -> None:
        self._fwd: dict[K, V] = {}
        self._rev: dict[V, K] = {}

    def forward(self, key: K) -> V:
        """Go from left to right; raises KeyError if absent."""
        return self._fwd[key]

    def backward(self, value: V) -> K:
        """Go from right to left; raises KeyError if absent."""
        return self._rev[value]

    def insert(self, key: K, value: V) -> None:
        self._fwd[key] = value
        self._rev[value] = key

    def right_contains(self, value: V) -> bool:
        return value in self._rev

    def items(self) -> ItemsView[K, V]:
        return self._fwd.items()
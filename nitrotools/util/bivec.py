"""A list whose elements are unique and can be looked up by value."""

from __future__ import annotations

from typing import Generic, Hashable, Iterator, TypeVar

T = TypeVar("T", bound=Hashable)


class BiVec(Generic[T]):
    """Bijection between indices 0..n-1 and distinct elements."""

    def __init__(self) -> None:
        self._items: list[T] = []
        self._index: dict[T, int] = {}

    def __len__(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        self._items.clear()
        self._index.clear()

    def push(self, x: T) -> int:
        """Append ``x`` unless already present; return its index."""
        idx = self._index.get(x)
        if idx is None:
            idx = len(self._items)
            self._items.append(x)
            self._index[x] = idx
        return idx

    def idx(self, x: T) -> int:
        """Return the index of ``x``; raises KeyError if absent."""
        return self._index[x]

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[index]
"""Generating unique names."""

from __future__ import annotations

from itertools import count


class UniqueNamer:
    """Hands out names that were never handed out before."""

    def __init__(self) -> None:
        self._taken: set[str] = set()

    def get_fresh_name(self, desired_name: str) -> str:
        """Return ``desired_name``, or it with the smallest free numeric suffix."""
        chosen = desired_name
        if chosen in self._taken:
            chosen = next(
                candidate
                for candidate in (f"{desired_name}{i}" for i in count(1))
                if candidate not in self._taken
            )
        self._taken.add(chosen)
        return chosen
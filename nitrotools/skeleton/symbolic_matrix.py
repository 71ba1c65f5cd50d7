"""Symbolic matrices and their algebra.

An :data:`SMatrix` is one matrix taken from a model file. A
:class:`CMatrix` is a product of them, and an :class:`AMatrix` is a
weighted sum of such products.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class ObjectMatrix:
    """An object matrix; its value depends on the pose."""

    object_idx: int


@dataclass(frozen=True)
class InvBindMatrix:
    """An inverse bind matrix from the model file."""

    inv_bind_idx: int


@dataclass(frozen=True)
class UninitializedMatrix:
    """The contents of a matrix stack slot that was never stored to."""

    stack_pos: int


SMatrix = Union[ObjectMatrix, InvBindMatrix, UninitializedMatrix]
_SMATRIX_TYPES = (ObjectMatrix, InvBindMatrix, UninitializedMatrix)


@dataclass(frozen=True)
class CMatrix:
    """A composition (product) of SMatrices, applied left to right."""

    factors: tuple[SMatrix, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "factors", tuple(self.factors))

    @classmethod
    def one(cls) -> CMatrix:
        """The identity: an empty product."""
        return cls()


@dataclass(frozen=True)
class ATerm:
    """One weighted term of an AMatrix."""

    weight: float
    cmat: CMatrix


@dataclass
class AMatrix:
    """A linear combination of CMatrices.

    In-place operations replace the term list rather than mutating it, so
    ``AMatrix(other.terms)`` is an independent copy.
    """

    terms: list[ATerm] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.terms = list(self.terms)

    @classmethod
    def one(cls) -> AMatrix:
        """The identity: a single empty product with weight 1."""
        return cls.of(CMatrix.one())

    @classmethod
    def zero(cls) -> AMatrix:
        """The zero matrix: no terms at all."""
        return cls()

    @classmethod
    def of(cls, value: SMatrix | CMatrix) -> AMatrix:
        """Wrap an SMatrix or CMatrix as a single term of weight 1."""
        if isinstance(value, _SMATRIX_TYPES):
            value = CMatrix((value,))
        if not isinstance(value, CMatrix):
            raise TypeError(f"cannot make an AMatrix from {type(value).__name__}")
        return cls([ATerm(1.0, value)])

    def __imul__(self, other: SMatrix | float) -> AMatrix:
        if isinstance(other, _SMATRIX_TYPES):
            # Distribute the factor over the sum.
            self.terms = [
                ATerm(t.weight, CMatrix(t.cmat.factors + (other,))) for t in self.terms
            ]
            return self
        if isinstance(other, (int, float)) and not isinstance(other, bool):
            if other == 0:
                self.terms = []
            else:
                self.terms = [ATerm(t.weight * other, t.cmat) for t in self.terms]
            return self
        return NotImplemented

    def __iadd__(self, other: AMatrix) -> AMatrix:
        if not isinstance(other, AMatrix):
            return NotImplemented
        # Like terms are not grouped here; that is easier once terms are joints.
        self.terms = self.terms + other.terms
        return self
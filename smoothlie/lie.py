"""Lie group base class and the translation group T(n)."""

from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import numpy as np


class LieGroup(ABC):
    """Base class for Lie group elements stored as a flat coefficient vector.

    Subclasses provide the group-specific operations on raw numpy arrays;
    this class builds the user-facing API on top of them.
    """

    rep_size: ClassVar[int | None] = None
    dof: ClassVar[int | None] = None
    dim: ClassVar[int | None] = None

    coeffs: np.ndarray

    def __init__(self, coeffs: Any) -> None:
        self.coeffs = type(self)._checked_coeffs(coeffs)

    # ------------------------------------------------------------------
    # group-specific operations on raw arrays

    @classmethod
    @abstractmethod
    def _identity_coeffs(cls) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _random_coeffs(cls, rng: np.random.Generator) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _matrix_of(cls, c: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _compose(cls, c1: np.ndarray, c2: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _inverse_of(cls, c: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _log_of(cls, c: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _Ad_of(cls, c: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _exp_of(cls, a: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _hat_of(cls, a: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _vee_of(cls, A: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _ad_of(cls, a: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _dr_exp_of(cls, a: np.ndarray) -> np.ndarray: ...

    @classmethod
    @abstractmethod
    def _dr_expinv_of(cls, a: np.ndarray) -> np.ndarray: ...

    # ------------------------------------------------------------------
    # validation and construction helpers

    @classmethod
    def _require_concrete(cls) -> None:
        if cls.dof is None:
            raise TypeError(f"{cls.__name__} has no fixed dimensions")

    @classmethod
    def _checked_coeffs(cls, coeffs: Any) -> np.ndarray:
        cls._require_concrete()
        arr = np.array(coeffs, dtype=float).ravel()
        if arr.size != cls.rep_size:
            raise ValueError(
                f"{cls.__name__} needs {cls.rep_size} coefficients, got {arr.size}"
            )
        return arr

    @classmethod
    def _tangent(cls, a: Any) -> np.ndarray:
        cls._require_concrete()
        arr = np.asarray(a, dtype=float).ravel()
        if arr.size != cls.dof:
            raise ValueError(
                f"{cls.__name__} tangent vectors have size {cls.dof}, got {arr.size}"
            )
        return arr

    @classmethod
    def _wrap(cls, coeffs: Any) -> LieGroup:
        obj = object.__new__(cls)
        obj.coeffs = cls._checked_coeffs(coeffs)
        return obj

    # ------------------------------------------------------------------
    # static API

    @classmethod
    def identity(cls) -> LieGroup:
        """The identity element."""
        cls._require_concrete()
        return cls._wrap(cls._identity_coeffs())

    @classmethod
    def random(cls, rng: Any = None) -> LieGroup:
        """A random element drawn with ``rng`` (a Generator or a seed)."""
        cls._require_concrete()
        return cls._wrap(cls._random_coeffs(np.random.default_rng(rng)))

    @classmethod
    def exp(cls, a: Any) -> LieGroup:
        """Group exponential of a tangent vector."""
        return cls._wrap(cls._exp_of(cls._tangent(a)))

    @classmethod
    def hat(cls, a: Any) -> np.ndarray:
        """Map a tangent vector to its Lie algebra matrix."""
        return cls._hat_of(cls._tangent(a))

    @classmethod
    def vee(cls, A: Any) -> np.ndarray:
        """Map a Lie algebra matrix to its tangent vector."""
        cls._require_concrete()
        A = np.asarray(A, dtype=float)
        if A.shape != (cls.dim, cls.dim):
            raise ValueError(f"{cls.__name__} algebra matrices are {cls.dim}x{cls.dim}")
        return cls._vee_of(A)

    @classmethod
    def ad(cls, a: Any) -> np.ndarray:
        """Lie algebra adjoint of a tangent vector."""
        return cls._ad_of(cls._tangent(a))

    @classmethod
    def lie_bracket(cls, a: Any, b: Any) -> np.ndarray:
        """Lie bracket [a, b]."""
        return cls.ad(a) @ cls._tangent(b)

    @classmethod
    def dr_exp(cls, a: Any) -> np.ndarray:
        """Right-trivialized derivative of exp."""
        return cls._dr_exp_of(cls._tangent(a))

    @classmethod
    def dr_expinv(cls, a: Any) -> np.ndarray:
        """Inverse of the right-trivialized derivative of exp."""
        return cls._dr_expinv_of(cls._tangent(a))

    @classmethod
    def dl_exp(cls, a: Any) -> np.ndarray:
        """Left-trivialized derivative of exp."""
        return cls._dr_exp_of(-cls._tangent(a))

    @classmethod
    def dl_expinv(cls, a: Any) -> np.ndarray:
        """Inverse of the left-trivialized derivative of exp."""
        return cls._dr_expinv_of(-cls._tangent(a))

    # ------------------------------------------------------------------
    # element API

    def log(self) -> np.ndarray:
        """Group logarithm."""
        return type(self)._log_of(self.coeffs)

    def inverse(self) -> LieGroup:
        """Group inverse."""
        return type(self)._wrap(type(self)._inverse_of(self.coeffs))

    def matrix(self) -> np.ndarray:
        """Matrix Lie group form."""
        return type(self)._matrix_of(self.coeffs)

    def Ad(self) -> np.ndarray:
        """Group adjoint."""
        return type(self)._Ad_of(self.coeffs)

    def is_approx(self, other: LieGroup, tol: float = 1e-12) -> bool:
        """Relative coefficient comparison: |x - y| <= tol * min(|x|, |y|)."""
        if type(other) is not type(self):
            raise TypeError(
                f"cannot compare {type(self).__name__} with {type(other).__name__}"
            )
        diff = float(np.sum((self.coeffs - other.coeffs) ** 2))
        scale = min(float(np.sum(self.coeffs**2)), float(np.sum(other.coeffs**2)))
        return diff <= tol * tol * scale

    def __mul__(self, other: LieGroup) -> LieGroup:
        if not isinstance(other, LieGroup):
            return NotImplemented
        if type(other) is not type(self):
            raise TypeError(
                f"cannot compose {type(self).__name__} with {type(other).__name__}"
            )
        return type(self)._wrap(type(self)._compose(self.coeffs, other.coeffs))

    def __add__(self, a: Any) -> LieGroup:
        return self * type(self).exp(a)

    def __sub__(self, other: LieGroup) -> np.ndarray:
        if type(other) is not type(self):
            raise TypeError(
                f"cannot subtract {type(other).__name__} from {type(self).__name__}"
            )
        return (other.inverse() * self).log()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.coeffs.tolist()})"


@functools.lru_cache(maxsize=None)
def _tn_class(n: int) -> type[Tn]:
    return type(Tn)(
        f"T{n}",
        (Tn,),
        {"rep_size": n, "dof": n, "dim": n + 1, "__module__": __name__},
    )


class Tn(LieGroup):
    """The translation group T(n), represented as R^n.

    ``Tn[n]`` is the concrete group of dimension ``n``; ``Tn(coeffs)`` picks
    the dimension from the number of coefficients.
    """

    def __class_getitem__(cls, n: int) -> type[Tn]:
        if isinstance(n, bool) or not isinstance(n, int):
            raise TypeError("Tn dimension must be an int")
        if n < 1:
            raise ValueError("Tn dimension must be positive")
        return _tn_class(n)

    def __new__(cls, coeffs: Any) -> Tn:
        target = Tn[int(np.asarray(coeffs).size)] if cls.dof is None else cls
        return object.__new__(target)

    def __init__(self, coeffs: Any) -> None:
        super().__init__(coeffs)

    @classmethod
    def _identity_coeffs(cls) -> np.ndarray:
        return np.zeros(cls.dof)

    @classmethod
    def _random_coeffs(cls, rng: np.random.Generator) -> np.ndarray:
        return rng.uniform(-1.0, 1.0, cls.dof)

    @classmethod
    def _matrix_of(cls, c: np.ndarray) -> np.ndarray:
        m = np.eye(cls.dim)
        m[: cls.dof, cls.dof] = c
        return m

    @classmethod
    def _compose(cls, c1: np.ndarray, c2: np.ndarray) -> np.ndarray:
        return c1 + c2

    @classmethod
    def _inverse_of(cls, c: np.ndarray) -> np.ndarray:
        return -c

    @classmethod
    def _log_of(cls, c: np.ndarray) -> np.ndarray:
        return c.copy()

    @classmethod
    def _Ad_of(cls, c: np.ndarray) -> np.ndarray:
        return np.eye(cls.dof)

    @classmethod
    def _exp_of(cls, a: np.ndarray) -> np.ndarray:
        return a.copy()

    @classmethod
    def _hat_of(cls, a: np.ndarray) -> np.ndarray:
        A = np.zeros((cls.dim, cls.dim))
        A[: cls.dof, cls.dof] = a
        return A

    @classmethod
    def _vee_of(cls, A: np.ndarray) -> np.ndarray:
        return A[: cls.dof, cls.dof].copy()

    @classmethod
    def _ad_of(cls, a: np.ndarray) -> np.ndarray:
        return np.zeros((cls.dof, cls.dof))

    @classmethod
    def _dr_exp_of(cls, a: np.ndarray) -> np.ndarray:
        return np.eye(cls.dof)

    @classmethod
    def _dr_expinv_of(cls, a: np.ndarray) -> np.ndarray:
        return np.eye(cls.dof)
"""Direct product of Lie groups and vector spaces."""

from __future__ import annotations

import functools
from itertools import pairwise
from typing import Any, ClassVar

import numpy as np
from scipy.linalg import block_diag

from .lie import LieGroup, Tn
from .utils import array_psum

PartSpec = "type[LieGroup] | int"


def _slices(sizes: list[int]) -> tuple[slice, ...]:
    return tuple(slice(b, e) for b, e in pairwise(array_psum(sizes)))


def _spec_name(spec: Any) -> str:
    return str(spec) if isinstance(spec, int) else spec.__name__


@functools.lru_cache(maxsize=None)
def _bundle_class(specs: tuple[Any, ...]) -> type[Bundle]:
    impls = tuple(Tn[s] if isinstance(s, int) else s for s in specs)
    rep_sizes = [impl.rep_size for impl in impls]
    dofs = [impl.dof for impl in impls]
    dims = [impl.dim for impl in impls]
    namespace = {
        "part_types": specs,
        "rep_size": sum(rep_sizes),
        "dof": sum(dofs),
        "dim": sum(dims),
        "_impls": impls,
        "_rep_slices": _slices(rep_sizes),
        "_dof_slices": _slices(dofs),
        "_dim_slices": _slices(dims),
        "__module__": __name__,
    }
    name = f"Bundle[{', '.join(_spec_name(s) for s in specs)}]"
    return type(Bundle)(name, (Bundle,), namespace)


class Bundle(LieGroup):
    """The product G1 x G2 x ... x Gk of Lie groups.

    A part given as an int ``n`` is a plain vector in R^n, treated as T(n).
    ``Bundle.of(...)`` returns the concrete product type; ``Bundle(*parts)``
    infers it from the parts.
    """

    part_types: ClassVar[tuple[Any, ...] | None] = None
    _impls: ClassVar[tuple[type[LieGroup], ...]] = ()
    _rep_slices: ClassVar[tuple[slice, ...]] = ()
    _dof_slices: ClassVar[tuple[slice, ...]] = ()
    _dim_slices: ClassVar[tuple[slice, ...]] = ()

    @classmethod
    def of(cls, *args: Any) -> type[Bundle]:
        """The bundle type with the given part types."""
        if not args:
            raise ValueError("a bundle needs at least one part")
        specs = []
        for spec in args:
            if isinstance(spec, bool):
                raise TypeError("bundle part must be a Lie group type or a vector size")
            if isinstance(spec, (int, np.integer)):
                if spec < 1:
                    raise ValueError("vector part size must be positive")
                specs.append(int(spec))
            elif isinstance(spec, type) and issubclass(spec, LieGroup):
                if spec.dof is None:
                    raise TypeError(f"{spec.__name__} has no fixed dimensions")
                specs.append(spec)
            else:
                raise TypeError("bundle part must be a Lie group type or a vector size")
        return _bundle_class(tuple(specs))

    def __new__(cls, *args: Any) -> Bundle:
        if cls.part_types is None:
            specs = [
                type(a) if isinstance(a, LieGroup) else int(np.asarray(a).size)
                for a in args
            ]
            cls = Bundle.of(*specs)
        return object.__new__(cls)

    def __init__(self, *args: Any) -> None:
        specs = type(self).part_types
        if len(args) != len(specs):
            raise ValueError(f"expected {len(specs)} parts, got {len(args)}")
        pieces = []
        for spec, impl, arg in zip(specs, self._impls, args):
            if isinstance(spec, int):
                vec = np.asarray(arg, dtype=float).ravel()
                if vec.size != spec:
                    raise ValueError(f"vector part needs size {spec}, got {vec.size}")
                pieces.append(vec)
            else:
                if not isinstance(arg, impl):
                    raise TypeError(
                        f"expected {impl.__name__}, got {type(arg).__name__}"
                    )
                pieces.append(arg.coeffs)
        super().__init__(np.concatenate(pieces))

    def part(self, index: int) -> Any:
        """A copy of part ``index``: a group element, or an array for vector parts."""
        spec = self.part_types[index]
        segment = self.coeffs[self._rep_slices[index]].copy()
        if isinstance(spec, int):
            return segment
        return self._impls[index]._wrap(segment)

    @classmethod
    def _identity_coeffs(cls) -> np.ndarray:
        return np.concatenate([impl._identity_coeffs() for impl in cls._impls])

    @classmethod
    def _random_coeffs(cls, rng: np.random.Generator) -> np.ndarray:
        return np.concatenate([impl._random_coeffs(rng) for impl in cls._impls])

    @classmethod
    def _matrix_of(cls, c: np.ndarray) -> np.ndarray:
        return block_diag(
            *(impl._matrix_of(c[rs]) for impl, rs in zip(cls._impls, cls._rep_slices))
        )

    @classmethod
    def _compose(cls, c1: np.ndarray, c2: np.ndarray) -> np.ndarray:
        return np.concatenate(
            [impl._compose(c1[rs], c2[rs]) for impl, rs in zip(cls._impls, cls._rep_slices)]
        )

    @classmethod
    def _inverse_of(cls, c: np.ndarray) -> np.ndarray:
        return np.concatenate(
            [impl._inverse_of(c[rs]) for impl, rs in zip(cls._impls, cls._rep_slices)]
        )

    @classmethod
    def _log_of(cls, c: np.ndarray) -> np.ndarray:
        return np.concatenate(
            [impl._log_of(c[rs]) for impl, rs in zip(cls._impls, cls._rep_slices)]
        )

    @classmethod
    def _Ad_of(cls, c: np.ndarray) -> np.ndarray:
        return block_diag(
            *(impl._Ad_of(c[rs]) for impl, rs in zip(cls._impls, cls._rep_slices))
        )

    @classmethod
    def _exp_of(cls, a: np.ndarray) -> np.ndarray:
        return np.concatenate(
            [impl._exp_of(a[ts]) for impl, ts in zip(cls._impls, cls._dof_slices)]
        )

    @classmethod
    def _hat_of(cls, a: np.ndarray) -> np.ndarray:
        return block_diag(
            *(impl._hat_of(a[ts]) for impl, ts in zip(cls._impls, cls._dof_slices))
        )

    @classmethod
    def _vee_of(cls, A: np.ndarray) -> np.ndarray:
        return np.concatenate(
            [impl._vee_of(A[ds, ds]) for impl, ds in zip(cls._impls, cls._dim_slices)]
        )

    @classmethod
    def _ad_of(cls, a: np.ndarray) -> np.ndarray:
        return block_diag(
            *(impl._ad_of(a[ts]) for impl, ts in zip(cls._impls, cls._dof_slices))
        )

    @classmethod
    def _dr_exp_of(cls, a: np.ndarray) -> np.ndarray:
        return block_diag(
            *(impl._dr_exp_of(a[ts]) for impl, ts in zip(cls._impls, cls._dof_slices))
        )

    @classmethod
    def _dr_expinv_of(cls, a: np.ndarray) -> np.ndarray:
        return block_diag(
            *(impl._dr_expinv_of(a[ts]) for impl, ts in zip(cls._impls, cls._dof_slices))
        )
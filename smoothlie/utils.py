"""Helpers for prefix sums and for tuples of optimisation variables."""

from __future__ import annotations

from itertools import accumulate, pairwise
from typing import Any, Iterable, Sequence

import numpy as np


def array_psum(values: Iterable[int]) -> list[int]:
    """Return the prefix sums of ``values``, starting with zero."""
    return [0, *accumulate(values)]


def _variable_dof(variable: Any) -> int:
    dof = getattr(variable, "dof", None)
    if dof is not None:
        return int(dof)
    return int(np.asarray(variable).size)


def tuple_dof(variables: Sequence[Any]) -> int:
    """Total number of tangent degrees of freedom of a tuple of variables.

    Lie group elements contribute their ``dof``; plain vectors their size.
    """
    return sum(_variable_dof(v) for v in variables)


def tuple_plus(variables: Sequence[Any], a: Any) -> tuple[Any, ...]:
    """Add the stacked tangent vector ``a`` to a tuple of variables.

    Each variable receives the segment of ``a`` matching its degrees of
    freedom, in order.  A new tuple is returned; the inputs are unchanged.
    """
    a = np.asarray(a, dtype=float).ravel()
    sizes = [_variable_dof(v) for v in variables]
    if a.size != sum(sizes):
        raise ValueError(f"tangent vector has size {a.size}, expected {sum(sizes)}")

    result = []
    for variable, (begin, end) in zip(variables, pairwise(array_psum(sizes))):
        segment = a[begin:end]
        if hasattr(variable, "dof"):
            result.append(variable + segment)
        else:
            vec = np.asarray(variable, dtype=float)
            result.append(vec + segment.reshape(vec.shape))
    return tuple(result)
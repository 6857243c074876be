"""Non-linear least squares on manifolds with a trust-region LM solver."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Sequence

import numpy as np

from .lmpar import lmpar
from .utils import tuple_dof, tuple_plus


class DiffType(enum.Enum):
    """How the residual Jacobian is obtained."""

    NUMERICAL = "numerical"
    ANALYTIC = "analytic"
    DEFAULT = "numerical"


@dataclass
class MinimizeOptions:
    """Solver options."""

    ptol: float = 1e-6
    ftol: float = 1e-6
    max_iter: int = 1000
    verbosity: int = 0


def _residual(value: Any) -> np.ndarray:
    return np.asarray(value, dtype=float).ravel()


def _numerical_dr(f: Callable[..., Any], x: tuple[Any, ...]) -> tuple[np.ndarray, np.ndarray]:
    r = _residual(f(*x))
    n = tuple_dof(x)
    h = np.cbrt(np.finfo(float).eps)
    J = np.empty((r.size, n))
    for i, e in enumerate(np.eye(n) * h):
        forward = _residual(f(*tuple_plus(x, e)))
        backward = _residual(f(*tuple_plus(x, -e)))
        J[:, i] = (forward - backward) / (2.0 * h)
    return r, J


def _analytic_dr(f: Callable[..., Any], x: tuple[Any, ...]) -> tuple[np.ndarray, np.ndarray]:
    value, jac = f(*x)
    r = _residual(value)
    if hasattr(jac, "toarray"):
        jac = jac.toarray()
    J = np.asarray(jac, dtype=float)
    if J.ndim == 1:
        J = J.reshape(r.size, -1)
    expected = (r.size, tuple_dof(x))
    if J.shape != expected:
        raise ValueError(f"jacobian has shape {J.shape}, expected {expected}")
    return r, J


def _evaluate(f, x, diff: DiffType) -> tuple[np.ndarray, np.ndarray]:
    if diff is DiffType.ANALYTIC:
        return _analytic_dr(f, x)
    return _numerical_dr(f, x)


def minimize(
    f: Callable[..., Any],
    variables: Sequence[Any],
    opts: MinimizeOptions | None = None,
    diff: DiffType = DiffType.DEFAULT,
) -> tuple[Any, ...]:
    """Minimise ``sum_i |f(x)_i|^2`` over the tuple of variables.

    ``f`` is called as ``f(*variables)``.  With ``DiffType.ANALYTIC`` it must
    return ``(residuals, jacobian)`` where the jacobian is taken with respect
    to the stacked right tangent spaces of the variables (dense or sparse).
    Returns the optimised variables as a new tuple.
    """
    opts = opts or MinimizeOptions()
    x = tuple(variables)

    r, J = _evaluate(f, x, diff)

    d = np.linalg.norm(J, axis=0)
    d[d == 0] = 1.0

    r_norm = float(np.linalg.norm(r))
    delta = 100.0 * float(np.linalg.norm(d))

    with np.errstate(divide="ignore", invalid="ignore"):
        for i in range(opts.max_iter):
            lam, a = lmpar(J, d, r, delta)

            x_plus_a = tuple_plus(x, a)
            r_cand, J_cand = _evaluate(f, x_plus_a, diff)

            r_cand_norm = np.float64(np.linalg.norm(r_cand))
            da_norm = np.float64(np.linalg.norm(d * a))
            r_norm64 = np.float64(r_norm)

            act_red = 1.0 - (r_cand_norm / r_norm64) ** 2
            fra2 = (np.float64(np.linalg.norm(J @ a)) / r_norm64) ** 2
            fra3 = (np.sqrt(np.float64(lam)) * da_norm / r_norm64) ** 2
            pred_red = fra2 + 2.0 * fra3
            rho = act_red / pred_red

            if rho < 0.25:
                if r_cand_norm <= r_norm64:
                    mu = 0.5
                elif r_cand_norm <= 10.0 * r_norm64:
                    gamma = -fra2 - fra3
                    mu = float(np.clip(gamma / (2.0 * gamma + act_red), 0.1, 0.5))
                else:
                    mu = 0.1
                delta *= mu
            elif (lam == 0 and rho < 0.75) or rho > 0.75:
                delta = 2.0 * float(da_norm)

            if rho > 1e-4:
                x = x_plus_a
                r = r_cand
                J = J_cand
                r_norm = float(r_cand_norm)
                d = np.maximum(d, np.linalg.norm(J, axis=0))

            if opts.verbosity > 0:
                print(f"Step {i}: {float(np.sum(r))}")

            if abs(act_red) < opts.ftol and pred_red < opts.ftol and rho <= 2.0:
                break
            if da_norm < opts.ptol * a.size:
                break

    return x
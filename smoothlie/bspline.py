"""Cardinal B-splines on Lie groups and fitting them to data."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Iterable

import numpy as np

from .lie import LieGroup
from .optim import DiffType, MinimizeOptions, minimize
from .spline import CSplineEval, CSplineType, cspline_eval


@lru_cache(maxsize=None)
def _bspline_matrix(k: int) -> np.ndarray:
    M = cum_coefmat_bspline(k)
    M.setflags(write=False)
    return M


def cum_coefmat_bspline(k: int) -> np.ndarray:
    from .spline import cum_coefmat

    return cum_coefmat(CSplineType.BSPLINE, k)


def _check_degree(k: Any) -> int:
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise TypeError("spline degree must be an int")
    if k < 0:
        raise ValueError("spline degree must be non-negative")
    return int(k)


def _check_dt(dt: Any) -> float:
    dt = float(dt)
    if not dt > 0.0:
        raise ValueError("knot distance dt must be positive")
    return dt


class BSpline:
    """Cardinal B-spline of degree k on a Lie group.

    The curve is ``g(t) = g_0 * exp(B~_1(t) v_1) * ... * exp(B~_N(t) v_N)``
    with ``v_i = g_i - g_{i-1}``.  The first k control points lie outside the
    support, so the spline is defined on ``[t0, t0 + (N - k) * dt]`` where
    ``N + 1`` is the number of control points.
    """

    def __init__(self, k: int, t0: float, dt: float, ctrl_pts: Iterable[LieGroup]) -> None:
        self._k = _check_degree(k)
        self._t0 = float(t0)
        self._dt = _check_dt(dt)
        self._ctrl_pts = tuple(ctrl_pts)
        if len(self._ctrl_pts) < self._k + 1:
            raise ValueError(
                f"a degree {self._k} spline needs at least {self._k + 1} control points, "
                f"got {len(self._ctrl_pts)}"
            )

    @classmethod
    def constant(cls, k: int, group: type[LieGroup]) -> BSpline:
        """Spline on [0, 1] that is identically the identity of ``group``."""
        k = _check_degree(k)
        return cls(k, 0.0, 1.0, [group.identity()] * (k + 1))

    @property
    def k(self) -> int:
        """Spline degree."""
        return self._k

    @property
    def dt(self) -> float:
        """Distance between knots."""
        return self._dt

    @property
    def ctrl_pts(self) -> tuple[LieGroup, ...]:
        """The control points."""
        return self._ctrl_pts

    def t_min(self) -> float:
        """Start of the interval of definition."""
        return self._t0

    def t_max(self) -> float:
        """End of the interval of definition."""
        return self._t0 + (len(self._ctrl_pts) - self._k) * self._dt

    def eval(self, t: float, with_derivatives: bool = False) -> Any:
        """Evaluate the spline at ``t``, clamped to the interval of definition.

        Returns the group element, or ``(value, vel, acc)`` with body
        velocity and acceleration in time when ``with_derivatives`` is set.
        """
        k = self._k
        n = len(self._ctrl_pts)
        istar = int((t - self._t0) / self._dt)
        if istar < 0:
            istar, u = 0, 0.0
        elif istar + k + 1 > n:
            istar, u = n - k - 1, 1.0
        else:
            u = (t - self._t0 - istar * self._dt) / self._dt

        res: CSplineEval = cspline_eval(
            self._ctrl_pts[istar : istar + k + 1],
            _bspline_matrix(k),
            u,
            with_derivatives=with_derivatives,
        )
        if not with_derivatives:
            return res.value
        return res.value, res.vel / self._dt, res.acc / (self._dt * self._dt)

    def __repr__(self) -> str:
        return (
            f"BSpline(k={self._k}, t0={self._t0}, dt={self._dt}, "
            f"ctrl_pts={len(self._ctrl_pts)})"
        )


def fit_bspline(
    k: int, tt: Iterable[float], gg: Iterable[LieGroup], dt: float
) -> BSpline:
    """Fit a degree-k B-spline with knot distance ``dt`` to data ``(t_i, g_i)``.

    Minimises ``sum_i |p(t_i) - g_i|^2`` with loose convergence criteria.
    Times must be non-decreasing.
    """
    k = _check_degree(k)
    dt = _check_dt(dt)
    times = [float(t) for t in tt]
    values = list(gg)
    if not times or not values:
        raise ValueError("fit_bspline needs at least one data point")

    group = type(values[0])
    dof = group.dof
    t0 = min(times)
    t1 = max(times)
    num_data = min(len(times), len(values))
    num_pts = k + int((t1 - t0 + dt) / dt)
    M = _bspline_matrix(k)

    def residuals(*ctrl: LieGroup) -> tuple[np.ndarray, np.ndarray]:
        ret = np.empty(dof * num_data)
        jac = np.zeros((dof * num_data, dof * num_pts))
        for i, (t, g) in enumerate(zip(times, values)):
            istar = int((t - t0) / dt)
            u = (t - t0 - istar * dt) / dt
            res = cspline_eval(ctrl[istar : istar + k + 1], M, u, with_jacobian=True)
            resi = res.value - g
            rows = slice(i * dof, (i + 1) * dof)
            ret[rows] = resi
            jac[rows, istar * dof : (istar + k + 1) * dof] = (
                group.dr_expinv(resi) @ res.jacobian
            )
        return ret, jac

    guess = []
    p = 0
    for i in range(num_pts):
        target = t0 + (i - (k - 1) / 2) * dt
        while p + 1 < num_data and abs(target - times[p + 1]) < abs(target - times[p]):
            p += 1
        guess.append(values[p])

    opts = MinimizeOptions(ftol=1e-3, ptol=1e-3, max_iter=10)
    fitted = minimize(residuals, guess, opts, DiffType.ANALYTIC)
    return BSpline(k, t0, dt, fitted)
"""Cumulative basis splines (B-splines and Bezier curves) on Lie groups."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from itertools import pairwise
from typing import Any, Iterable

import numpy as np

from .lie import LieGroup


class CSplineType(enum.Enum):
    """Family of polynomial basis functions."""

    BEZIER = "bezier"
    BSPLINE = "bspline"


@dataclass
class CSplineEval:
    """Result of a spline evaluation.

    ``vel`` and ``acc`` are the body velocity and acceleration with respect
    to the normalised parameter ``u``; ``jacobian`` is the derivative of the
    value with respect to the K+1 control points, stacked column-wise.
    Each is ``None`` unless it was requested.
    """

    value: LieGroup
    vel: np.ndarray | None = None
    acc: np.ndarray | None = None
    jacobian: np.ndarray | None = None


def _check_degree(k: Any) -> int:
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise TypeError("spline degree must be an int")
    if k < 0:
        raise ValueError("spline degree must be non-negative")
    return int(k)


def _combine(prev: np.ndarray, left: np.ndarray, right: np.ndarray) -> np.ndarray:
    n = prev.shape[0]
    low = np.zeros((n + 1, n))
    high = np.zeros((n + 1, n))
    low[:n] = prev
    high[1:] = prev
    return low @ left + high @ right


def bspline_coefmat(k: int) -> np.ndarray:
    """Coefficients of the degree-k B-spline basis.

    Entry (p, j) is the coefficient of ``u**p`` in basis function j.
    """
    k = _check_degree(k)
    M = np.ones((1, 1))
    for n in range(1, k + 1):
        idx = np.arange(n)
        left = np.zeros((n, n + 1))
        right = np.zeros((n, n + 1))
        left[idx, idx + 1] = (n - (idx + 1)) / n
        left[idx, idx] = 1.0 - left[idx, idx + 1]
        right[idx, idx + 1] = 1.0 / n
        right[idx, idx] = -1.0 / n
        M = _combine(M, left, right)
    return M


def bezier_coefmat(k: int) -> np.ndarray:
    """Coefficients of the degree-k Bernstein basis.

    Entry (p, j) is the coefficient of ``u**p`` in basis function j.
    """
    k = _check_degree(k)
    M = np.ones((1, 1))
    for n in range(1, k + 1):
        idx = np.arange(n)
        left = np.zeros((n, n + 1))
        right = np.zeros((n, n + 1))
        left[idx, idx] = 1.0
        right[idx, idx] = -1.0
        right[idx, idx + 1] = 1.0
        M = _combine(M, left, right)
    return M


def cum_coefmat(spline_type: CSplineType | str, k: int) -> np.ndarray:
    """Coefficients of the cumulative basis functions.

    Column j holds the sum of basis functions j, j+1, ..., k; row p the
    coefficients of ``u**p``.
    """
    spline_type = CSplineType(spline_type)
    if spline_type is CSplineType.BEZIER:
        M = bezier_coefmat(k)
    else:
        M = bspline_coefmat(k)
    return np.cumsum(M[:, ::-1], axis=1)[:, ::-1].copy()


def _coef_matrix(cum_coef_mat: Any) -> np.ndarray:
    M = np.asarray(cum_coef_mat, dtype=float)
    if M.ndim != 2 or M.shape[0] != M.shape[1] or M.shape[0] == 0:
        raise ValueError("cumulative coefficient matrix must be square and non-empty")
    return M


def _control_jacobian(
    group: type[LieGroup], diffs: list[np.ndarray], btilde: np.ndarray
) -> np.ndarray:
    k = len(diffs)
    dof = group.dof
    der = np.zeros((dof, dof * (k + 1)))
    z2inv = group.identity()

    for j in range(k, -1, -1):
        block = der[:, j * dof : (j + 1) * dof]
        if j != k:
            b_next = btilde[j + 1]
            v_next = diffs[j]
            s_next = b_next * v_next
            block -= (
                b_next * z2inv.Ad() @ group.dr_exp(s_next) @ group.dl_expinv(v_next)
            )
            z2inv = z2inv * group.exp(-s_next)
        if j != 0:
            v = diffs[j - 1]
            block += (
                btilde[j] * z2inv.Ad() @ group.dr_exp(btilde[j] * v) @ group.dr_expinv(v)
            )
        else:
            block += btilde[j] * z2inv.Ad()
    return der


def cspline_eval_diff(
    g0: LieGroup,
    diff_points: Iterable[Any],
    cum_coef_mat: Any,
    u: float,
    *,
    with_derivatives: bool = False,
    with_jacobian: bool = False,
) -> CSplineEval:
    """Evaluate ``g0 * exp(B~_1(u) v_1) * ... * exp(B~_K(u) v_K)``.

    ``cum_coef_mat`` is a (K+1)x(K+1) matrix as returned by
    :func:`cum_coefmat`, and ``diff_points`` must hold exactly K tangent
    vectors ``v_i = g_i - g_{i-1}``.
    """
    if not isinstance(g0, LieGroup):
        raise TypeError("g0 must be a Lie group element")
    group = type(g0)
    M = _coef_matrix(cum_coef_mat)
    k = M.shape[0] - 1

    diffs = [group._tangent(v) for v in diff_points]
    if len(diffs) != k:
        raise ValueError(f"diff_points must have size K={k}, got {len(diffs)}")

    u = float(u)
    uvec = np.zeros(k + 1)
    duvec = np.zeros(k + 1)
    d2uvec = np.zeros(k + 1)
    uvec[0] = 1.0
    for p in range(1, k + 1):
        uvec[p] = u * uvec[p - 1]
        duvec[p] = p * uvec[p - 1]
        d2uvec[p] = p * duvec[p - 1]

    btilde = uvec @ M
    dbtilde = duvec @ M
    d2btilde = d2uvec @ M

    vel = np.zeros(group.dof)
    acc = np.zeros(group.dof)
    g = g0
    for v, b, db, d2b in zip(diffs, btilde[1:], dbtilde[1:], d2btilde[1:]):
        g = g * group.exp(b * v)
        if with_derivatives:
            Ad = group.exp(-b * v).Ad()
            vel = Ad @ vel + db * v
            acc = Ad @ acc + db * group.ad(vel) @ v + d2b * v

    return CSplineEval(
        value=g,
        vel=vel if with_derivatives else None,
        acc=acc if with_derivatives else None,
        jacobian=_control_jacobian(group, diffs, btilde) if with_jacobian else None,
    )


def cspline_eval(
    ctrl_points: Iterable[LieGroup],
    cum_coef_mat: Any,
    u: float,
    *,
    with_derivatives: bool = False,
    with_jacobian: bool = False,
) -> CSplineEval:
    """Evaluate a cumulative spline given its K+1 control points."""
    points = list(ctrl_points)
    M = _coef_matrix(cum_coef_mat)
    k = M.shape[0] - 1
    if len(points) != k + 1:
        raise ValueError(f"ctrl_points must have size K+1={k + 1}, got {len(points)}")
    diffs = [b - a for a, b in pairwise(points)]
    return cspline_eval_diff(
        points[0],
        diffs,
        M,
        u,
        with_derivatives=with_derivatives,
        with_jacobian=with_jacobian,
    )
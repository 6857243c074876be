"""Structured least-squares solves and the Levenberg-Marquardt parameter."""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from scipy.linalg import qr, solve_triangular

_DUMMY_PRECISION = 1e-12


def _dense(J: Any) -> np.ndarray:
    if hasattr(J, "toarray"):
        J = J.toarray()
    J = np.asarray(J, dtype=float)
    if J.ndim != 2:
        raise ValueError("J must be a two-dimensional matrix")
    return J


def _vector(v: Any, size: int, name: str) -> np.ndarray:
    arr = np.asarray(v, dtype=float).ravel()
    if arr.size != size:
        raise ValueError(f"{name} has size {arr.size}, expected {size}")
    return arr


def _givens(p: float, q: float) -> tuple[float, float, float]:
    """Rotation (c, s) with s*p + c*q = 0 and r = c*p - s*q >= 0."""
    if q == 0.0:
        c = -1.0 if p < 0.0 else 1.0
        return c, 0.0, abs(p)
    if p == 0.0:
        s = 1.0 if q < 0.0 else -1.0
        return 0.0, s, abs(q)
    if abs(p) > abs(q):
        t = q / p
        u = math.sqrt(1.0 + t * t)
        if p < 0.0:
            u = -u
        c = 1.0 / u
        return c, -t * c, p * u
    t = p / q
    u = math.sqrt(1.0 + t * t)
    if q < 0.0:
        u = -u
    s = -1.0 / u
    return -t * s, s, q * u


def solve_ls_triangular(
    R: Any, qt_r: Any, perm: Any, d: Any
) -> tuple[np.ndarray, np.ndarray]:
    """Solve min_x |[J; D] x + [r; 0]|^2 given a pivoted QR factorisation of J.

    ``R`` is the n x n upper triangular factor of ``J[:, perm] = Q R`` (zero
    padded at the bottom when J has fewer rows than columns), ``qt_r`` the
    first n entries of ``Q^T r`` (zero padded likewise) and ``d`` the diagonal
    of D.  Returns the solution and the triangular factor ``Rt`` of
    ``[R; P^T D P]``, which satisfies ``Rt^T Rt = P^T (J^T J + D^T D) P``.
    """
    R = np.array(R, dtype=float)
    if R.ndim != 2 or R.shape[0] != R.shape[1]:
        raise ValueError("R must be a square matrix")
    n = R.shape[0]
    a = _vector(qt_r, n, "qt_r").copy()
    d = _vector(d, n, "d")
    perm = np.asarray(perm, dtype=int).ravel()
    if perm.size != n:
        raise ValueError(f"perm has size {perm.size}, expected {n}")

    for j in range(n):
        b_row = np.zeros(n)
        b_row[j] = d[perm[j]]
        bj = 0.0
        for col in range(j, n):
            if R[col, col] >= 0.0 and b_row[col] == 0.0:
                continue
            c, s, rr = _givens(R[col, col], b_row[col])
            R[col, col] = rr
            r_tail = R[col, col + 1 :].copy()
            b_tail = b_row[col + 1 :].copy()
            R[col, col + 1 :] = c * r_tail - s * b_tail
            b_row[col + 1 :] = s * r_tail + c * b_tail
            a[col], bj = c * a[col] - s * bj, s * a[col] + c * bj

    rank = 0
    while rank < n and R[rank, rank] >= _DUMMY_PRECISION:
        rank += 1

    sol = np.zeros(n)
    if rank:
        sol[:rank] = solve_triangular(R[:rank, :rank], a[:rank])
    x = np.zeros(n)
    x[perm] = sol
    return -x, R


def _pivoted_qr(J: np.ndarray, r: np.ndarray):
    """Return (R, Q^T r, perm, rank) padded to the number of columns of J."""
    m, n = J.shape
    k = min(m, n)
    Q, R_econ, perm = qr(J, mode="economic", pivoting=True)
    R = np.zeros((n, n))
    R[:k] = R_econ[:k]
    qt_r = np.zeros(n)
    qt_r[:k] = Q.T @ r

    diag = np.abs(np.diag(R_econ[:k, :k]))
    max_pivot = float(diag.max()) if diag.size else 0.0
    threshold = np.finfo(float).eps * k * max_pivot
    rank = int(np.count_nonzero(diag > threshold))
    return R, qt_r, perm, rank


def solve_ls(J: Any, d: Any, r: Any) -> np.ndarray:
    """Solve min_x |[J; diag(d)] x + [r; 0]|^2 via a column-pivoted QR of J."""
    J = _dense(J)
    m, n = J.shape
    d = _vector(d, n, "d")
    r = _vector(r, m, "r")
    R, qt_r, perm, _ = _pivoted_qr(J, r)
    x, _ = solve_ls_triangular(R, qt_r, perm, d)
    return x


def lmpar(J: Any, d: Any, r: Any, delta: float) -> tuple[float, np.ndarray]:
    """Approximate the Levenberg-Marquardt parameter for trust region ``delta``.

    Returns ``(lambda, x)`` where x solves
    ``min |[J; sqrt(lambda) diag(d)] x + [r; 0]|^2`` and either lambda == 0 and
    ``|d * x| <= 1.1 delta``, or lambda > 0 and ``|d * x|`` is within 10% of
    ``delta``.
    """
    J = _dense(J)
    m, n = J.shape
    d = _vector(d, n, "d")
    r = _vector(r, m, "r")
    delta = float(delta)

    R0, qt_r, perm, rank = _pivoted_qr(J, r)

    x_perm = np.zeros(n)
    if rank:
        x_perm[:rank] = solve_triangular(R0[:rank, :rank], -qt_r[:rank])
    x = np.zeros(n)
    x[perm] = x_perm

    d_x = d * x
    d_x_norm = float(np.linalg.norm(d_x))

    alpha = 0.0
    phi = d_x_norm - delta
    if phi <= 0.1 * delta:
        return alpha, x

    lower = 0.0
    if rank == n:
        y = (d * d_x / d_x_norm)[perm]
        y = solve_triangular(R0, y, trans="T")
        dphi = -d_x_norm * float(y @ y)
        lower = max(lower, -phi / dphi)

    upper = float(np.linalg.norm((J.T @ r) / d)) / delta

    for _ in range(20):
        if not (lower < alpha < upper):
            alpha = max(0.001 * upper, math.sqrt(lower * upper))

        x, R = solve_ls_triangular(R0, qt_r, perm, math.sqrt(alpha) * d)

        d_x = d * x
        d_x_norm = float(np.linalg.norm(d_x))
        phi = d_x_norm - delta
        if abs(phi) <= 0.1 * delta:
            break

        y = (d * d_x / d_x_norm)[perm]
        y = solve_triangular(R, y, trans="T")
        dphi = -d_x_norm * float(y @ y)

        lower = max(lower, alpha - phi / dphi)
        if phi < 0:
            upper = alpha
        alpha = alpha - ((phi + delta) / delta) * (phi / dphi)

    return alpha, x
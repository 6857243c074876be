import numpy as np
import pytest
from scipy import sparse

from smoothlie.lmpar import lmpar, solve_ls, solve_ls_triangular


def _approx(a, b, tol=1e-8):
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    scale = min(np.linalg.norm(a), np.linalg.norm(b))
    return np.linalg.norm(a - b) <= tol * max(scale, 1e-300) or np.linalg.norm(a - b) == 0


def _reference(J, d, r):
    m, n = J.shape
    lhs = np.vstack([J, np.diag(d)])
    rhs = np.concatenate([-r, np.zeros(n)])
    return np.linalg.lstsq(lhs, rhs, rcond=None)[0]


CASES = [
    (1, 1, False, False),
    (5, 1, False, False),
    (5, 10, False, False),
    (8, 16, False, False),
    (1, 1, False, True),
    (5, 1, False, True),
    (5, 10, False, True),
    (8, 16, False, True),
    (1, 1, True, False),
    (5, 10, True, False),
    (8, 16, True, False),
    (5, 10, True, True),
    (8, 16, True, True),
]


@pytest.mark.parametrize("n,m,zero_d,sing", CASES)
def test_solve_ls_matches_reference(n, m, zero_d, sing):
    rng = np.random.default_rng(5)
    for _ in range(10):
        J = rng.uniform(-1, 1, (m, n))
        if sing:
            J[:, n // 2] = 0
            J[m // 2, :] = 0
        d = np.maximum(rng.uniform(-1, 1, n) + 1, 0)
        if zero_d:
            d = np.zeros(n)
        r = rng.uniform(-1, 1, m)

        a = solve_ls(J, d, r)
        a_sparse = solve_ls(sparse.csr_matrix(J), d, r)
        expected = _reference(J, d, r)
        assert a.shape == (n,)
        assert np.allclose(a, expected, rtol=1e-7, atol=1e-9)
        assert np.allclose(a_sparse, expected, rtol=1e-7, atol=1e-9)


def test_solve_ls_triangular_factor_property():
    rng = np.random.default_rng(1)
    J = rng.uniform(-1, 1, (6, 4))
    d = rng.uniform(0.5, 1.5, 4)
    r = rng.uniform(-1, 1, 6)
    from scipy.linalg import qr

    Q, R, perm = qr(J, mode="economic", pivoting=True)
    x, Rt = solve_ls_triangular(R, Q.T @ r, perm, d)
    P = np.eye(4)[:, perm]
    lhs = Rt.T @ Rt
    rhs = P.T @ (J.T @ J + np.diag(d**2)) @ P
    assert np.allclose(lhs, rhs, atol=1e-10)
    assert np.allclose(np.triu(Rt), Rt)
    assert _approx(x, _reference(J, d, r))


def test_solve_ls_size_mismatch():
    with pytest.raises(ValueError):
        solve_ls(np.eye(3), np.ones(2), np.ones(3))


def _check_conditions(par, x, d, delta):
    norm = np.linalg.norm(d * x)
    cond1 = par == 0 and norm <= 1.1 * delta
    cond2 = par > 0 and abs(norm - delta) <= 0.1 * delta
    return cond1 or cond2


@pytest.mark.parametrize("delta", [1.0, 0.1])
def test_lmpar(delta):
    rng = np.random.default_rng(7)
    for _ in range(10):
        J = rng.uniform(-1, 1, (4, 4))
        d = rng.uniform(-1, 1, 4) + 1
        r = rng.uniform(-1, 1, 4)

        par1, x = lmpar(J, d, r, delta)
        par2, x_sp = lmpar(sparse.csr_matrix(J), d, r, delta)

        assert abs(par1 - par2) <= 1e-10
        assert _approx(x, x_sp)

        x_test = solve_ls(J, np.sqrt(par1) * d, r)
        assert _approx(x_test, x)

        assert _check_conditions(par1, x, d, delta)


def test_lmpar_singular():
    rng = np.random.default_rng(11)
    delta = 1.0
    for _ in range(10):
        J = rng.uniform(-1, 1, (4, 4))
        J[:, 3] = 0
        d = rng.uniform(-1, 1, 4) + 1
        r = rng.uniform(-1, 1, 4)

        par1, x = lmpar(J, d, r, delta)
        par2, x_sp = lmpar(sparse.csr_matrix(J), d, r, delta)
        assert abs(par1 - par2) <= 1e-10
        assert _approx(x, x_sp)

        x_test = solve_ls(J, np.sqrt(par1) * d, r)
        assert _approx(x_test, x)
        assert _check_conditions(par1, x, d, delta)


def test_lmpar_zero_parameter_inside_region():
    J = np.eye(2)
    r = np.array([0.1, -0.2])
    par, x = lmpar(J, np.ones(2), r, 10.0)
    assert par == 0
    assert np.allclose(x, [-0.1, 0.2])
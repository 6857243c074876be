import numpy as np
import pytest
from scipy.linalg import expm

from smoothlie.bundle import Bundle
from smoothlie.lie import Tn


def test_static_sizes():
    parts = (Tn[3], 2, Tn[4], Tn[1])
    B = Bundle.of(*parts)
    assert B.rep_size == sum(p.rep_size for p in (Tn[3], Tn[2], Tn[4], Tn[1]))
    assert B.dof == sum(p.dof for p in (Tn[3], Tn[2], Tn[4], Tn[1]))
    assert B.dim == sum(p.dim for p in (Tn[3], Tn[2], Tn[4], Tn[1]))
    assert B.part_types == parts
    assert Bundle.of(*parts) is B


def test_construct():
    rng = np.random.default_rng(5)
    t1 = Tn[1].random(rng)
    t3 = Tn[3].random(rng)
    e3 = rng.uniform(-1, 1, 3)

    b = Bundle(t1, t3, e3)
    assert type(b) is Bundle.of(Tn[1], Tn[3], 3)
    assert b.part(0).is_approx(t1)
    assert b.part(1).is_approx(t3)
    assert np.allclose(b.part(2), e3)

    b2 = Bundle.of(Tn[1], Tn[3], 3)(t1, t3, e3)
    assert b.is_approx(b2)

    m = np.eye(4)
    m[:3, 3] = e3
    assert np.allclose(b.matrix()[-4:, -4:], m)


def test_bundle_of_bundle():
    rng = np.random.default_rng(5)
    t2 = Tn[2].random(rng)
    t3 = Tn[3].random(rng)
    e3 = rng.uniform(-1, 1, 3)
    t1 = Tn[1].random(rng)

    sub = Bundle(t3, e3)
    meta = Bundle(t2, sub, t1)

    assert meta.part(1).part(0).is_approx(t3)
    assert np.allclose(meta.part(1).part(1), e3)
    assert meta.dof == t2.dof + sub.dof + t1.dof


def test_part_is_a_copy():
    b = Bundle(Tn[2]([1.0, 2.0]), np.array([3.0]))
    p = b.part(1)
    p[0] = 10.0
    assert np.allclose(b.part(1), [3.0])


B_TEST = Bundle.of(Tn[1], Tn[3], 2, Tn[4])


def test_composition_matrix():
    rng = np.random.default_rng(5)
    for _ in range(10):
        g1, g2 = B_TEST.random(rng), B_TEST.random(rng)
        assert np.allclose((g1 * g2).matrix(), g1.matrix() @ g2.matrix())


def test_inverse_and_identity():
    rng = np.random.default_rng(5)
    g_id = B_TEST.identity()
    for _ in range(10):
        g = B_TEST.random(rng)
        assert np.allclose((g * g.inverse()).coeffs, g_id.coeffs)
        assert np.allclose(np.linalg.inv(g.matrix()), g.inverse().matrix())


def test_log_exp_hat_vee():
    rng = np.random.default_rng(5)
    for _ in range(10):
        g = B_TEST.random(rng)
        log = g.log()
        assert g.is_approx(B_TEST.exp(log), 1e-9)
        assert np.allclose(expm(B_TEST.hat(log)), g.matrix())
        assert np.allclose(B_TEST.vee(B_TEST.hat(log)), log)


def test_operators():
    rng = np.random.default_rng(5)
    for _ in range(10):
        g = B_TEST.random(rng)
        a = rng.uniform(-1, 1, B_TEST.dof)
        assert np.allclose((g + a).coeffs, (g * B_TEST.exp(a)).coeffs)
        assert np.allclose((g + a) - g, a)


def test_adjoints():
    rng = np.random.default_rng(5)
    for _ in range(10):
        g = B_TEST.random(rng)
        a = rng.uniform(-1, 1, B_TEST.dof)
        b = rng.uniform(-1, 1, B_TEST.dof)
        assert np.allclose(
            g.Ad() @ a, B_TEST.vee(g.matrix() @ B_TEST.hat(a) @ g.inverse().matrix())
        )
        A, Bm = B_TEST.hat(a), B_TEST.hat(b)
        assert np.allclose(B_TEST.lie_bracket(a, b), B_TEST.vee(A @ Bm - Bm @ A))


def test_jacobians():
    rng = np.random.default_rng(5)
    eye = np.eye(B_TEST.dof)
    assert np.allclose(B_TEST.dr_exp(np.zeros(B_TEST.dof)), eye)
    for _ in range(10):
        a = rng.uniform(-1, 1, B_TEST.dof)
        assert np.allclose(B_TEST.dr_exp(a) @ B_TEST.dr_expinv(a), eye)
        assert np.allclose(B_TEST.dl_exp(a) @ B_TEST.dl_expinv(a), eye)


def test_wrong_part_count():
    with pytest.raises(ValueError):
        Bundle.of(Tn[2], 3)(Tn[2].identity())


def test_wrong_part_type():
    with pytest.raises(TypeError):
        Bundle.of(Tn[2], 3)(Tn[3].identity(), np.zeros(3))


def test_wrong_vector_size():
    with pytest.raises(ValueError):
        Bundle.of(Tn[2], 3)(Tn[2].identity(), np.zeros(2))


def test_empty_bundle_rejected():
    with pytest.raises(ValueError):
        Bundle.of()


def test_generic_bundle_has_no_identity():
    with pytest.raises(TypeError):
        Bundle.identity()
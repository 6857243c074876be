import numpy as np
import pytest

from smoothlie.bspline import BSpline, fit_bspline
from smoothlie.bundle import Bundle
from smoothlie.lie import Tn

GROUPS = [Tn[2], Bundle.of(Tn[1], 2)]
FIT_TIMES = [2.0, 2.5, 3.5, 4.5, 5.5, 6.0]


def _random_points(group, n, seed=5):
    rng = np.random.default_rng(seed)
    return [group.random(rng) for _ in range(n)]


def test_constant_spline_is_identity():
    spl = BSpline.constant(5, Tn[3])
    g = spl.eval(0.5)
    assert g.is_approx(Tn[3].identity())
    np.testing.assert_array_equal(g.coeffs, np.zeros(3))
    assert spl.t_min() == 0.0
    assert spl.t_max() == 1.0


def test_constructors_agree():
    c1 = _random_points(Tn[3], 50)
    spl1 = BSpline(5, 0, 1, c1)
    spl2 = BSpline(5, 0, 1, iter(list(c1)))

    assert spl1.t_max() == 45.0
    assert len(spl2.ctrl_pts) == 50
    for t in np.arange(0.0, spl1.t_max(), 0.5):
        assert spl1.eval(t).is_approx(spl2.eval(t))


def test_eval_outside_is_clamped():
    c1 = _random_points(Tn[3], 50)
    spl = BSpline(5, 0, 1, c1)

    assert spl.eval(-2).is_approx(spl.eval(0))
    assert spl.eval(-1).is_approx(spl.eval(0))
    assert not spl.eval(45).is_approx(spl.eval(44))
    assert spl.eval(45).is_approx(spl.eval(46))
    assert spl.eval(45).is_approx(spl.eval(47))
    assert spl.eval(45).is_approx(spl.eval(48))


def test_linear_ctrl_points_give_constant_velocity():
    ctrl = [Tn[1]([float(i)]) for i in range(10)]
    spl = BSpline(3, 0.0, 2.0, ctrl)
    for t in np.linspace(spl.t_min(), spl.t_max(), 13):
        _, vel, acc = spl.eval(t, with_derivatives=True)
        np.testing.assert_allclose(vel, [0.5], atol=1e-12)
        np.testing.assert_allclose(acc, [0.0], atol=1e-12)


@pytest.mark.parametrize("group", GROUPS)
def test_velocity_matches_finite_difference_in_time(group):
    ctrl = _random_points(group, 12, seed=3)
    spl = BSpline(3, 1.0, 0.5, ctrl)
    h = 1e-5
    for t in [1.3, 2.7, 4.1]:
        _, vel, _ = spl.eval(t, with_derivatives=True)
        df = (spl.eval(t + h) - spl.eval(t - h)) / (2 * h)
        np.testing.assert_allclose(df, vel, rtol=1e-4, atol=1e-6)


def test_too_few_ctrl_points_raise():
    with pytest.raises(ValueError):
        BSpline(3, 0.0, 1.0, _random_points(Tn[2], 3))


def test_non_positive_dt_raises():
    with pytest.raises(ValueError):
        BSpline(3, 0.0, 0.0, _random_points(Tn[2], 4))


@pytest.mark.parametrize("group", GROUPS)
def test_fit_bspline_interval(group):
    gg = _random_points(group, 6)
    spline = fit_bspline(3, FIT_TIMES, gg, 1)

    assert abs(spline.t_min() - 2.0) <= 1e-6
    assert spline.t_max() >= 6.0
    assert spline.k == 3
    assert len(spline.ctrl_pts) == 8


def test_fit_bspline_reproduces_data():
    gg = _random_points(Tn[1], 6, seed=9)
    spline = fit_bspline(3, FIT_TIMES, gg, 1)
    for t, g in zip(FIT_TIMES, gg):
        np.testing.assert_allclose(spline.eval(t).coeffs, g.coeffs, atol=1e-6)


def test_fit_bspline_constant_data():
    c = Tn[2]([0.3, -1.2])
    spline = fit_bspline(3, FIT_TIMES, [c] * 6, 1)
    for t in np.linspace(2.0, 6.0, 9):
        assert spline.eval(t).is_approx(c, 1e-9)


def test_fit_bspline_empty_raises():
    with pytest.raises(ValueError):
        fit_bspline(3, [], [], 1)
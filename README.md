# smoothlie

A library of Lie groups stored as flat coefficient vectors. It also provides
a trust-region Levenberg-Marquardt solver for nonlinear least squares over
tuples of group elements and vectors, and cumulative splines (B-spline and
Bezier) on Lie groups.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Modules

- `smoothlie.lie` holds the abstract `LieGroup` base class and the
  translation group `Tn`.
  - `Tn[n]` is the concrete group R^n. `Tn(coeffs)` picks `n` from the
    number of coefficients.
  - Class methods: `identity()`, `random(rng)` (`rng` is a numpy Generator
    or a seed), `exp`, `hat`, `vee`, `ad`, `lie_bracket`, `dr_exp`,
    `dr_expinv`, `dl_exp` and `dl_expinv`.
  - Element methods: `log()`, `inverse()`, `matrix()`, `Ad()` and
    `is_approx(other, tol)`.
  - Operators: `g * h` composes, `g + a` is `g * exp(a)`, and `g - h` is
    `log(h^-1 * g)`.
  - Each class has the attributes `rep_size`, `dof` and `dim`.
- `smoothlie.bundle` holds `Bundle`, the direct product of groups.
  - `Bundle.of(Tn[2], 3)` gives the product type. An int part `n` is a plain
    vector in R^n.
  - `Bundle(*parts)` infers the type from the parts it is given.
  - `part(index)` returns a copy of one factor: a group element, or an array
    for a vector part.
- `smoothlie.utils` has three helpers:
  - `array_psum` gives prefix sums starting at zero.
  - `tuple_dof` gives the total degrees of freedom of a tuple of variables.
  - `tuple_plus` adds a stacked tangent vector to a tuple of variables.
- `smoothlie.lmpar` has the least-squares routines:
  - `solve_ls(J, d, r)` solves `min |[J; diag(d)] x + [r; 0]|^2`.
  - `solve_ls_triangular` does the same starting from a pivoted QR factor.
  - `lmpar(J, d, r, delta)` returns `(lambda, x)` for a trust region of
    size `delta`.
- `smoothlie.optim` has `minimize(f, variables, opts, diff)`.
  - It minimises `sum |f(*variables)|^2` and returns the optimised variables
    as a new tuple.
  - `MinimizeOptions` holds `ptol`, `ftol`, `max_iter` and `verbosity`. A
    positive `verbosity` prints one line per step.
  - `DiffType.NUMERICAL` (also `DiffType.DEFAULT`) uses central finite
    differences in the tangent space.
  - With `DiffType.ANALYTIC`, `f` returns `(residuals, jacobian)`. The
    jacobian may be dense or sparse.
- `smoothlie.spline` covers cumulative splines:
  - `bspline_coefmat(k)`, `bezier_coefmat(k)` and
    `cum_coefmat(spline_type, k)` build the coefficient matrices. The spline
    type is a `CSplineType` (`BEZIER` or `BSPLINE`).
  - `cspline_eval(ctrl_points, M, u, ...)` and
    `cspline_eval_diff(g0, diff_points, M, u, ...)` return a `CSplineEval`.
  - The `CSplineEval` has `value`, plus `vel`, `acc` (with
    `with_derivatives=True`) and `jacobian` with respect to the control
    points (with `with_jacobian=True`).
  - A wrong number of points raises `ValueError`.
- `smoothlie.bspline` covers cardinal B-splines:
  - `BSpline(k, t0, dt, ctrl_pts)` is defined on `[t_min(), t_max()]`, and
    `eval(t)` clamps `t` to that interval.
  - `eval(t, with_derivatives=True)` returns `(value, vel, acc)`, with the
    derivatives taken in time.
  - `BSpline.constant(k, group)` is identically the identity of `group`.
  - `fit_bspline(k, tt, gg, dt)` fits a spline to timestamped data.

## Examples

```python
import numpy as np
from smoothlie.lie import Tn
from smoothlie.bspline import BSpline, fit_bspline

rng = np.random.default_rng(5)
T3 = Tn[3]
ctrl = [T3.random(rng) for _ in range(10)]
spline = BSpline(3, 0.0, 1.0, ctrl)

value, vel, acc = spline.eval(2.5, with_derivatives=True)

fitted = fit_bspline(3, [0.0, 0.5, 1.5, 2.0], [T3.random(rng) for _ in range(4)], 1.0)
```

Minimising a residual over a group element:

```python
import numpy as np
from smoothlie.lie import Tn
from smoothlie.optim import minimize, MinimizeOptions

def residual(x):
    return x.log() - np.ones(3)

(x,) = minimize(residual, (Tn(np.zeros(3)),), MinimizeOptions())
```

## What is not included

The only concrete groups are `Tn` and products of them built with `Bundle`.
There are no rotation or rigid-motion groups such as SO(2), SO(3), SE(2) or
SE(3). Those can be added by subclassing `LieGroup` and implementing its
abstract array operations.

There is no piecewise Bezier curve type and no Bezier fitting. Bezier
coefficients can still be used through `cum_coefmat` and `cspline_eval`.

The package has no plotting and no command-line tool.
"""Lie groups (T(n) and products), on-manifold least squares and splines on Lie groups."""

__version__ = "0.1.0"

__all__ = ["utils", "lie", "bundle", "lmpar", "optim", "spline", "bspline"]
[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smoothlie"
version = "0.1.0"
description = "Lie groups, on-manifold least squares and splines on Lie groups"
requires-python = ">=3.10"
keywords = ["lie groups", "robotics", "splines", "b-spline", "optimization", "levenberg-marquardt"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["smoothlie"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

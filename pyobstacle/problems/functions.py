"""pyobstacle.problems.functions
Pointwise data of the obstacle problem.

Every function here returns a plain callable ``f(x) -> float`` where ``x``
is a coordinate array (length 1 in 1-D, 2 in 2-D).
"""
from typing import Callable, Sequence

import numpy as np

from pyobstacle.fem.discretization import evaluate

__all__ = ["constant", "step_obstacle", "vectorize", "BENCHMARK_BREAKPOINTS", "BENCHMARK_VALUES"]

# piecewise constant obstacle of the reference benchmark
BENCHMARK_BREAKPOINTS = (-0.5, 0.0, 0.5)
BENCHMARK_VALUES = (-0.2, -0.4, -0.6, -0.8)


def constant(c: float) -> Callable[[np.ndarray], float]:
    c = float(c)

    def _f(x):
        return c

    return _f


def step_obstacle(breakpoints: Sequence[float] = BENCHMARK_BREAKPOINTS,
                  values: Sequence[float] = BENCHMARK_VALUES) -> Callable[[np.ndarray], float]:
    """
    Piecewise constant function of the first coordinate.

    ``values[0]`` is used for ``x < breakpoints[0]``, ``values[k]`` on
    ``[breakpoints[k-1], breakpoints[k])`` and ``values[-1]`` for
    ``x >= breakpoints[-1]``.
    """
    bps = np.asarray(breakpoints, dtype=float)
    vals = np.asarray(values, dtype=float)
    if vals.size != bps.size + 1:
        raise ValueError(f"step_obstacle needs len(values) == len(breakpoints) + 1, "
                         f"got {vals.size} and {bps.size}.")
    if np.any(np.diff(bps) <= 0):
        raise ValueError("breakpoints must be strictly increasing.")

    def _psi(x):
        x0 = float(np.atleast_1d(x)[0])
        return float(vals[np.searchsorted(bps, x0, side="right")])

    return _psi


def vectorize(f: Callable[[np.ndarray], float], points) -> np.ndarray:
    """Values of ``f`` at every row of ``points``."""
    return evaluate(f, points)

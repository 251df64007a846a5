"""pyobstacle.problems.config
Configuration of the obstacle benchmark.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Mapping, Optional

import numpy as np

from pyobstacle.problems.functions import constant, step_obstacle
from pyobstacle.solvers.active_set import ActiveSetParameters
from pyobstacle.solvers.linear import LinearSolverParameters

_ELEMENT_TYPES = ("quad", "tri")


def _as_function(value) -> Callable[[np.ndarray], float]:
    """Number → constant, ``{"breakpoints": [...], "values": [...]}`` → step, callable → itself."""
    if callable(value):
        return value
    if isinstance(value, (int, float)):
        return constant(value)
    if isinstance(value, Mapping):
        if set(value) != {"breakpoints", "values"}:
            raise ValueError(f"Step function needs exactly 'breakpoints' and 'values', got {sorted(value)}.")
        return step_obstacle(value["breakpoints"], value["values"])
    raise ValueError(f"Cannot build a function from {value!r}.")


@dataclass
class ObstacleConfig:
    """
    Everything needed to set up :class:`~pyobstacle.problems.obstacle.ObstacleProblem`.

    The defaults are the benchmark on ``[-1, 1]^2``: seven global
    refinements of Q1 elements, source ``-10``, homogeneous boundary values
    and a four-step obstacle.
    """

    lower: float = -1.0
    upper: float = 1.0
    refinements: int = 7
    poly_order: int = 1
    element_type: str = "quad"
    source: Callable = field(default_factory=lambda: constant(-10.0))
    boundary: Callable = field(default_factory=lambda: constant(0.0))
    obstacle: Callable = field(default_factory=step_obstacle)
    linear: LinearSolverParameters = field(default_factory=LinearSolverParameters)
    active_set: ActiveSetParameters = field(default_factory=ActiveSetParameters)
    output_dir: Optional[str] = None

    def validate(self) -> "ObstacleConfig":
        if not self.lower < self.upper:
            raise ValueError(f"lower ({self.lower}) must be smaller than upper ({self.upper}).")
        if self.refinements < 0:
            raise ValueError("refinements must be non-negative.")
        if self.poly_order < 1:
            raise ValueError("poly_order must be at least 1.")
        if self.element_type not in _ELEMENT_TYPES:
            raise ValueError(f"Unknown element type '{self.element_type}', expected one of {_ELEMENT_TYPES}.")
        for name in ("source", "boundary", "obstacle"):
            if not callable(getattr(self, name)):
                raise ValueError(f"{name} must be callable.")
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ObstacleConfig":
        """
        Build a config from plain data, e.g. parsed JSON::

            {"refinements": 5,
             "obstacle": {"breakpoints": [0.0], "values": [-0.3, -0.5]},
             "linear": {"method": "direct"}}
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}.")

        kwargs = dict(data)
        for name in ("source", "boundary", "obstacle"):
            if name in kwargs:
                kwargs[name] = _as_function(kwargs[name])
        if isinstance(kwargs.get("linear"), Mapping):
            kwargs["linear"] = LinearSolverParameters(**kwargs["linear"])
        if isinstance(kwargs.get("active_set"), Mapping):
            kwargs["active_set"] = ActiveSetParameters(**kwargs["active_set"])
        return cls(**kwargs).validate()

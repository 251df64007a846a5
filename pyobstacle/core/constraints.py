"""pyobstacle.core.constraints
Inhomogeneous equality constraints ``u[i] = value`` and the manager that
combines Dirichlet data with the obstacle constraints of an active set.
"""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, Mapping, Tuple
import numpy as np

from pyobstacle.utils.bitset import ActiveSet

__all__ = [
    "ConstraintSet",
    "ConstraintManager",
    "ConstraintConflictError",
    "ConstraintSetClosedError",
    "ConstraintIndexError",
]


class ConstraintConflictError(ValueError):
    """Two different prescribed values for one unknown."""


class ConstraintSetClosedError(RuntimeError):
    """A closed ConstraintSet was modified."""


class ConstraintIndexError(IndexError):
    """A constraint refers to an unknown that does not exist."""


class ConstraintSet:
    """
    Ordered collection of lines ``index -> prescribed value``.

    Lines may be added in any order; :meth:`close` sorts them by index and
    freezes the set, after which it can be handed to assembly and to the
    linear solver.
    """

    def __init__(self, lines: Mapping[int, float] | None = None):
        self._lines: Dict[int, float] = {}
        self._closed = False
        if lines:
            for index, value in lines.items():
                self.add_line(index, value)

    # ------------------------------------------------------------------
    def add_line(self, index: int, value: float, *, overwrite: bool = False) -> None:
        if self._closed:
            raise ConstraintSetClosedError("Cannot add a line to a closed ConstraintSet.")
        index = int(index)
        value = float(value)
        old = self._lines.get(index)
        if old is not None and old != value and not overwrite:
            raise ConstraintConflictError(
                f"Unknown {index} is already constrained to {old!r}, refusing {value!r}."
            )
        self._lines[index] = value

    def merge(self, other: "ConstraintSet", *, overwrite: bool = True) -> None:
        """Copy the lines of *other* into this set; *other* wins on shared indices if *overwrite*."""
        for index, value in other.items():
            self.add_line(index, value, overwrite=overwrite)

    def close(self) -> "ConstraintSet":
        self._lines = dict(sorted(self._lines.items()))
        self._closed = True
        return self

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    @property
    def indices(self) -> np.ndarray:
        return np.fromiter(self._lines.keys(), dtype=int, count=len(self._lines))

    @property
    def values(self) -> np.ndarray:
        return np.fromiter(self._lines.values(), dtype=float, count=len(self._lines))

    def items(self) -> Iterable[Tuple[int, float]]:
        return self._lines.items()

    def as_dict(self) -> Dict[int, float]:
        return dict(self._lines)

    def value(self, index: int) -> float:
        return self._lines[int(index)]

    def validate(self, n_unknowns: int) -> None:
        """Raise ConstraintIndexError if any line lies outside ``[0, n_unknowns)``."""
        idx = self.indices
        if idx.size and (idx.min() < 0 or idx.max() >= n_unknowns):
            bad = idx[(idx < 0) | (idx >= n_unknowns)]
            raise ConstraintIndexError(
                f"Constraint indices {bad.tolist()} out of range for {n_unknowns} unknowns."
            )

    def distribute(self, vector: np.ndarray) -> np.ndarray:
        """Write the prescribed values into *vector* in place and return it."""
        if self._lines:
            vector[self.indices] = self.values
        return vector

    # ------------------------------------------------------------------
    def __contains__(self, index) -> bool:
        return int(index) in self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[int]:
        return iter(self._lines)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConstraintSet):
            return NotImplemented
        return list(self._lines.items()) == list(other._lines.items())

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<ConstraintSet {len(self)} lines, {state}>"


class ConstraintManager:
    """
    Builds the constraint set imposed in one active-set iteration.

    Parameters
    ----------
    boundary : ConstraintSet
        Dirichlet constraints, fixed for the whole run.
    obstacle_values : ndarray
        Obstacle evaluated at the coordinate of every unknown.
    """

    def __init__(self, boundary: ConstraintSet, obstacle_values: np.ndarray):
        self.boundary = boundary
        self.obstacle_values = np.asarray(obstacle_values, dtype=float)
        self.n_unknowns = self.obstacle_values.shape[0]
        boundary.validate(self.n_unknowns)

    def build_constraints(self, active_set: ActiveSet) -> ConstraintSet:
        if len(active_set) != self.n_unknowns:
            raise ValueError(
                f"Active set over {len(active_set)} unknowns, expected {self.n_unknowns}."
            )
        constraints = ConstraintSet()
        for k in active_set:
            constraints.add_line(k, self.obstacle_values[k])
        # Boundary lines go in last and replace obstacle lines on shared unknowns.
        constraints.merge(self.boundary, overwrite=True)
        return constraints.close()

    def overridden(self, active_set: ActiveSet) -> np.ndarray:
        """Active unknowns whose obstacle line is replaced by a boundary line."""
        idx = active_set.to_indices()
        return idx[np.isin(idx, self.boundary.indices)]

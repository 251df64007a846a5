"""pyobstacle.fem.discretization
Discretization providers: the objects the active-set controller asks for
unknown counts, coordinates and assembled (constrained) systems.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, Tuple, runtime_checkable

import numpy as np
import scipy.sparse as sp

from pyobstacle.assembly import stiffness_matrix, element_load, assemble as assemble_matrix, assemble_vector
from pyobstacle.assembly.boundary_conditions import apply_constraints
from pyobstacle.core.constraints import ConstraintSet
from pyobstacle.integration import gauss_legendre

logger = logging.getLogger(__name__)

ScalarFunction = Callable[[np.ndarray], float]

__all__ = ["DiscretizationProvider", "FEDiscretization", "IntervalDiscretization", "evaluate"]


@runtime_checkable
class DiscretizationProvider(Protocol):
    """Interface consumed by :class:`pyobstacle.solvers.active_set.ActiveSetSolver`."""

    def n_unknowns(self) -> int: ...

    def coordinates(self) -> np.ndarray: ...

    def coordinate_of(self, index: int) -> np.ndarray: ...

    def boundary_constraints(self, boundary: ScalarFunction) -> ConstraintSet: ...

    def assemble(self, constraints: ConstraintSet) -> Tuple[sp.csr_matrix, np.ndarray]: ...


def evaluate(f: ScalarFunction, points: np.ndarray) -> np.ndarray:
    """Evaluate a pointwise function at every row of ``points``."""
    return np.array([float(f(p)) for p in np.atleast_2d(points)], dtype=float)


class _CachedSystem:
    """Shared part of the providers: pristine system cache + elimination."""

    def __init__(self):
        self._K: Optional[sp.csr_matrix] = None
        self._F: Optional[np.ndarray] = None

    def _assemble_pristine(self) -> Tuple[sp.csr_matrix, np.ndarray]:
        raise NotImplementedError

    def _pristine(self):
        if self._K is None:
            self._K, self._F = self._assemble_pristine()
            logger.debug("Assembled pristine system with %d unknowns, %d nonzeros.",
                         self._K.shape[0], self._K.nnz)
        return self._K, self._F

    def coordinate_of(self, index: int) -> np.ndarray:
        return self.coordinates()[index]

    def assemble(self, constraints: ConstraintSet) -> Tuple[sp.csr_matrix, np.ndarray]:
        """Matrix and load vector with ``constraints`` eliminated."""
        if not constraints.is_closed:
            raise ValueError("ConstraintSet must be closed before assembly.")
        constraints.validate(self.n_unknowns())
        K, F = self._pristine()
        return apply_constraints(K, F, constraints)


class FEDiscretization(_CachedSystem):
    """
    Continuous Lagrange discretization of ``-Δu = f`` on a 2-D :class:`Mesh`.

    One unknown per mesh node; the stiffness matrix and load vector are
    assembled once and every :meth:`assemble` call eliminates the given
    constraints from a copy.
    """

    def __init__(self, mesh, source: ScalarFunction, *, quad_order: Optional[int] = None):
        super().__init__()
        self.mesh = mesh
        self.source = source
        self.quad_order = quad_order

    def n_unknowns(self) -> int:
        return len(self.mesh.nodes)

    def coordinates(self) -> np.ndarray:
        return self.mesh.nodes_x_y_pos

    def boundary_indices(self) -> np.ndarray:
        return self.mesh.boundary_nodes()

    def boundary_constraints(self, boundary: ScalarFunction) -> ConstraintSet:
        cs = ConstraintSet()
        xy = self.coordinates()
        for dof in self.boundary_indices():
            cs.add_line(dof, boundary(xy[dof]))
        return cs.close()

    def _assemble_pristine(self):
        mesh = self.mesh
        K = assemble_matrix(mesh, lambda eid: stiffness_matrix(mesh, eid, quad_order=self.quad_order))
        F = assemble_vector(mesh, lambda eid: element_load(mesh, eid, self.source, quad_order=self.quad_order))
        return K, F


class IntervalDiscretization(_CachedSystem):
    """
    P1 discretization of ``-u'' = f`` on a 1-D grid.

    Coordinates are returned with shape ``(n, 1)`` so that pointwise
    functions receive an array just like in 2-D.
    """

    def __init__(self, points, source: ScalarFunction, *, quad_order: int = 2):
        super().__init__()
        pts = np.asarray(points, dtype=float).ravel()
        if pts.size < 2 or np.any(np.diff(pts) <= 0):
            raise ValueError("Interval grid needs at least two strictly increasing points.")
        self.points = pts
        self.source = source
        self.quad_order = quad_order

    def n_unknowns(self) -> int:
        return self.points.size

    def coordinates(self) -> np.ndarray:
        return self.points[:, None]

    def boundary_indices(self) -> np.ndarray:
        return np.array([0, self.points.size - 1])

    def boundary_constraints(self, boundary: ScalarFunction) -> ConstraintSet:
        cs = ConstraintSet()
        for dof in self.boundary_indices():
            cs.add_line(dof, boundary(self.coordinates()[dof]))
        return cs.close()

    def _assemble_pristine(self):
        n = self.points.size
        xi, wi = gauss_legendre(self.quad_order)
        N = np.column_stack([0.5 * (1.0 - xi), 0.5 * (1.0 + xi)])   # (nq, 2)
        rows, cols, data = [], [], []
        F = np.zeros(n)
        for e in range(n - 1):
            x0, x1 = self.points[e], self.points[e + 1]
            h = x1 - x0
            Ke = np.array([[1.0, -1.0], [-1.0, 1.0]]) / h
            xq = x0 + 0.5 * (1.0 + xi) * h
            fq = np.array([float(self.source(np.array([x]))) for x in xq])
            Fe = 0.5 * h * (N * (wi * fq)[:, None]).sum(axis=0)
            dofs = (e, e + 1)
            for a in range(2):
                F[dofs[a]] += Fe[a]
                for b in range(2):
                    rows.append(dofs[a]); cols.append(dofs[b]); data.append(Ke[a, b])
        K = sp.csr_matrix((data, (rows, cols)), shape=(n, n))
        return K, F

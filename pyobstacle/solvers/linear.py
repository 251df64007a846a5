"""pyobstacle.solvers.linear
Sparse SPD solve with constraint distribution.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla
from scipy.sparse.linalg import spilu, LinearOperator

from pyobstacle.core.constraints import ConstraintSet

logger = logging.getLogger(__name__)

_METHODS = ("cg", "direct")
_PRECONDITIONERS = ("jacobi", "ilu", "none")


@dataclass
class LinearSolverParameters:
    """Sparse linear solver settings."""

    method: str = "cg"                  # "cg" or "direct"
    preconditioner: str = "jacobi"      # "jacobi", "ilu" or "none" (cg only)
    reduction: float = 1e-12            # stop once ‖r‖ ≤ reduction·‖r₀‖ ...
    tolerance: float = 1e-14            # ... or ‖r‖ ≤ tolerance, whichever is larger
    max_iter: int = 10_000
    ilu_drop_tol: float = 1e-3
    ilu_fill_factor: float = 10.0

    def __post_init__(self):
        if self.method not in _METHODS:
            raise ValueError(f"Unknown linear solver method '{self.method}', expected one of {_METHODS}.")
        if self.preconditioner not in _PRECONDITIONERS:
            raise ValueError(f"Unknown preconditioner '{self.preconditioner}', expected one of {_PRECONDITIONERS}.")
        if not 0.0 <= self.reduction < 1.0:
            raise ValueError("reduction must lie in [0, 1).")
        if self.tolerance < 0.0:
            raise ValueError("tolerance must be non-negative.")
        if self.max_iter < 1:
            raise ValueError("max_iter must be positive.")


@dataclass
class LinearSolveResult:
    solution: np.ndarray
    iterations: int
    initial_residual: float
    residual: float
    converged: bool


class LinearSolver:
    """
    Solves ``A x = b`` for an eliminated system and writes the exact
    constraint values into the result.

    Not converging within ``max_iter`` is reported through
    ``LinearSolveResult.converged`` and a warning; the last iterate is
    returned all the same.
    """

    def __init__(self, params: Optional[LinearSolverParameters] = None):
        self.params = params if params is not None else LinearSolverParameters()

    # ------------------------------------------------------------------
    def _preconditioner(self, A):
        kind = self.params.preconditioner
        if kind == "none":
            return None
        if kind == "jacobi":
            d = A.diagonal()
            if np.any(d == 0.0):
                raise ValueError("Jacobi preconditioner needs a matrix with non-zero diagonal.")
            inv_d = 1.0 / d
            return LinearOperator(A.shape, matvec=lambda v: inv_d * v, dtype=float)
        ilu = spilu(A.tocsc(), drop_tol=self.params.ilu_drop_tol, fill_factor=self.params.ilu_fill_factor)
        return LinearOperator(A.shape, ilu.solve, dtype=float)

    def solve(self, A, b, constraints: ConstraintSet, x0: Optional[np.ndarray] = None) -> LinearSolveResult:
        A = sp.csr_matrix(A)
        b = np.asarray(b, dtype=float)
        n = A.shape[0]
        if A.shape != (n, n) or b.shape != (n,):
            raise ValueError(f"Incompatible system: matrix {A.shape}, right-hand side {b.shape}.")
        x0 = np.zeros(n) if x0 is None else np.array(x0, dtype=float, copy=True)

        r0 = float(np.linalg.norm(b - A @ x0))
        if self.params.method == "direct":
            x = spla.spsolve(A.tocsc(), b)
            iterations = 1
            info = 0
        else:
            target = max(self.params.tolerance, self.params.reduction * r0)
            self._it = 0

            def _count(_xk):
                self._it += 1

            if r0 <= target:
                x, info = x0, 0
            else:
                x, info = spla.cg(A, b, x0=x0, rtol=0.0, atol=target,
                                  maxiter=self.params.max_iter,
                                  M=self._preconditioner(A), callback=_count)
            iterations = self._it

        x = np.asarray(x, dtype=float)
        residual = float(np.linalg.norm(b - A @ x))
        converged = info == 0
        if converged:
            logger.debug("Initial error: %.3e", r0)
            logger.debug("%d %s iterations needed to obtain convergence with an error: %.3e",
                         iterations, self.params.method.upper(), residual)
        else:
            logger.warning("Linear solver did not converge: %d iterations, last residual %.3e "
                           "(initial %.3e, scipy info=%d).", iterations, residual, r0, info)

        constraints.distribute(x)
        return LinearSolveResult(solution=x, iterations=iterations, initial_residual=r0,
                                 residual=residual, converged=converged)

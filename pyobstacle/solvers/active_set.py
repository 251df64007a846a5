r"""
active_set.py  –  Primal-dual active-set driver for the obstacle problem
=======================================================================
Finds ``u ≥ ψ`` with ``-Δu = f`` wherever ``u > ψ`` by alternating between

* an equality constrained linear solve in which every unknown of the
  current active set is pinned to the obstacle, and
* a complementarity test on the solution and on the residual of the
  reference (boundary-only) system, which rebuilds the active set from
  scratch for the next solve.

The residual ``r = A_full u - b_full`` plays the role of the Lagrange
multiplier of ``u ≥ ψ``; only its non-positive part is kept, so ``‖r‖₂``
measures how badly the multiplier sign is violated and is the
convergence criterion.

Assembly and the linear solve are delegated to a discretization provider
and a :class:`~pyobstacle.solvers.linear.LinearSolver`; the loop itself only
owns an :class:`IterationState` that is handed from one iteration to the
next.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from pyobstacle.core.constraints import ConstraintManager, ConstraintSet
from pyobstacle.fem.discretization import DiscretizationProvider, ScalarFunction, evaluate
from pyobstacle.solvers.linear import LinearSolver, LinearSolveResult
from pyobstacle.utils.bitset import ActiveSet

logger = logging.getLogger(__name__)

__all__ = [
    "ActiveSetParameters",
    "IterationRecord",
    "IterationState",
    "ActiveSetResult",
    "ActiveSetSolver",
    "clamped_residual",
    "complementarity_update",
]


# ----------------------------------------------------------------------------
#  Parameter / result dataclasses
# ----------------------------------------------------------------------------

@dataclass
class ActiveSetParameters:
    """Settings of the outer active-set loop."""

    convergence_tol: float = 1e-10      # ‖r‖₂ threshold on the clamped residual
    complementarity_tol: float = 1e-15  # r(k) ≥ -tol counts as a non-negative multiplier
    max_iterations: Optional[int] = None  # None → number of unknowns

    def __post_init__(self):
        if self.convergence_tol <= 0.0:
            raise ValueError("convergence_tol must be positive.")
        if self.complementarity_tol < 0.0:
            raise ValueError("complementarity_tol must be non-negative.")
        if self.max_iterations is not None and self.max_iterations < 1:
            raise ValueError("max_iterations must be positive.")


@dataclass
class IterationRecord:
    iteration: int
    n_active: int
    active_set_changed: bool
    linear_iterations: int
    linear_residual: float
    linear_converged: bool
    residual_norm: float


@dataclass
class IterationState:
    """
    Everything the loop carries from one iteration to the next.

    ``active_set``/``constraints`` are the ones imposed in the solve of this
    iteration and ``solution`` satisfies them exactly. ``next_active_set`` is
    the result of the complementarity test, and ``iterate`` is ``solution``
    with its newly active entries reset to zero; it is the initial guess of
    the next solve.
    """

    iteration: int
    active_set: ActiveSet
    constraints: ConstraintSet
    solution: np.ndarray
    residual: np.ndarray
    residual_norm: float
    next_active_set: ActiveSet
    iterate: np.ndarray
    linear_result: Optional[LinearSolveResult] = None

    @property
    def active_set_changed(self) -> bool:
        return self.next_active_set != self.active_set


@dataclass
class ActiveSetResult:
    solution: np.ndarray
    residual: np.ndarray
    active_set: ActiveSet
    constraints: ConstraintSet
    converged: bool
    iterations: int
    residual_norm: float
    history: List[IterationRecord] = field(default_factory=list)


# ----------------------------------------------------------------------------
#  Pure helpers
# ----------------------------------------------------------------------------

def clamped_residual(A_full, b_full, u) -> np.ndarray:
    """``A_full u - b_full`` with every positive entry set to zero."""
    r = A_full @ u - b_full
    r[r > 0] = 0.0
    return r


def complementarity_update(u, r, obstacle_values, tol=1e-15):
    """
    Active set for the next iteration: ``k`` is active iff ``u(k) ≤ ψ_k`` and
    ``r(k) ≥ -tol``. Returns the new set and a copy of ``u`` whose active
    entries are reset to zero.
    """
    u = np.asarray(u, dtype=float)
    mask = (u <= obstacle_values) & (r >= -tol)
    iterate = u.copy()
    iterate[mask] = 0.0
    return ActiveSet(mask), iterate


# ----------------------------------------------------------------------------
#  ActiveSetSolver
# ----------------------------------------------------------------------------

class ActiveSetSolver:
    r"""Primal-dual active-set iteration for a unilateral lower obstacle.

    Parameters
    ----------
    discretization : DiscretizationProvider
        Supplies coordinates and assembles eliminated systems.
    obstacle, boundary : callable
        Pointwise functions of a coordinate array: ``ψ(x)`` and the
        Dirichlet data ``g(x)``.
    linear_solver : LinearSolver, optional
    params : ActiveSetParameters, optional
    callback : callable, optional
        Called with the :class:`IterationState` after every outer iteration,
        e.g. to export fields.
    """

    def __init__(
        self,
        discretization: DiscretizationProvider,
        obstacle: ScalarFunction,
        boundary: ScalarFunction,
        *,
        linear_solver: Optional[LinearSolver] = None,
        params: Optional[ActiveSetParameters] = None,
        callback: Optional[Callable[[IterationState], None]] = None,
    ) -> None:
        self.disc = discretization
        self.params = params if params is not None else ActiveSetParameters()
        self.linear_solver = linear_solver if linear_solver is not None else LinearSolver()
        self.callback = callback

        self.n = discretization.n_unknowns()
        self.obstacle_values = evaluate(obstacle, discretization.coordinates())
        self.boundary = discretization.boundary_constraints(boundary)
        self.manager = ConstraintManager(self.boundary, self.obstacle_values)
        self._A_full = None
        self._b_full = None

    # ------------------------------------------------------------------
    @property
    def max_iterations(self) -> int:
        m = self.params.max_iterations
        return self.n if m is None else m

    def _update_active_set(self, u, r):
        return complementarity_update(u, r, self.obstacle_values, self.params.complementarity_tol)

    def _solve(self, A, b, constraints, x0) -> LinearSolveResult:
        res = self.linear_solver.solve(A, b, constraints, x0=x0)
        logger.info("   %d %s iterations needed to obtain convergence with an error: %.3e",
                    res.iterations, self.linear_solver.params.method.upper(), res.residual)
        return res

    # ------------------------------------------------------------------
    def seed(self) -> IterationState:
        """
        Iteration 0: assemble and solve the reference system with only the
        boundary constraints, then run the complementarity test once with a
        zero residual.
        """
        self._A_full, self._b_full = self.disc.assemble(self.boundary)
        logger.info("Seed solve with %d boundary constraints:", len(self.boundary))
        res = self._solve(self._A_full, self._b_full, self.boundary, None)
        u = res.solution
        r = np.zeros(self.n)
        next_active, iterate = self._update_active_set(u, r)
        logger.info("Update Active Set: %d active constraints", next_active.cardinality())
        return IterationState(
            iteration=0,
            active_set=ActiveSet.empty(self.n),
            constraints=self.boundary,
            solution=u,
            residual=r,
            residual_norm=0.0,
            next_active_set=next_active,
            iterate=iterate,
            linear_result=res,
        )

    def step(self, state: IterationState) -> IterationState:
        """One outer iteration starting from the active set chosen by *state*."""
        i = state.iteration + 1
        active = state.next_active_set
        constraints = self.manager.build_constraints(active)
        overridden = self.manager.overridden(active)
        logger.info("Iteration %d: assemble system with %d active constraints", i, active.cardinality())
        if overridden.size:
            logger.debug("   %d active unknowns keep their boundary value.", overridden.size)

        A, b = self.disc.assemble(constraints)
        res = self._solve(A, b, constraints, state.iterate)
        u = res.solution

        r = clamped_residual(self._A_full, self._b_full, u)
        next_active, iterate = self._update_active_set(u, r)
        norm = float(np.linalg.norm(r))
        logger.info("%d. Residuum = %.6e", i, norm)

        return IterationState(
            iteration=i,
            active_set=active,
            constraints=constraints,
            solution=u,
            residual=r,
            residual_norm=norm,
            next_active_set=next_active,
            iterate=iterate,
            linear_result=res,
        )

    def solve(self) -> ActiveSetResult:
        state = self.seed()
        history: List[IterationRecord] = []
        converged = False

        for _ in range(self.max_iterations):
            state = self.step(state)
            history.append(IterationRecord(
                iteration=state.iteration,
                n_active=state.active_set.cardinality(),
                active_set_changed=state.active_set_changed,
                linear_iterations=state.linear_result.iterations,
                linear_residual=state.linear_result.residual,
                linear_converged=state.linear_result.converged,
                residual_norm=state.residual_norm,
            ))
            if self.callback is not None:
                self.callback(state)
            if state.residual_norm < self.params.convergence_tol:
                converged = True
                break

        if converged:
            logger.info("Active set converged after %d iterations (%d active).",
                        state.iteration, state.active_set.cardinality())
        else:
            logger.warning("Active set iteration did not converge within %d iterations; "
                           "residual norm %.3e. Returning the last iterate.",
                           self.max_iterations, state.residual_norm)

        return ActiveSetResult(
            solution=state.solution,
            residual=state.residual,
            active_set=state.active_set,
            constraints=state.constraints,
            converged=converged,
            iterations=state.iteration,
            residual_norm=state.residual_norm,
            history=history,
        )

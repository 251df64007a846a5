import logging
import numpy as np
import scipy.sparse as sps
import pytest

from pyobstacle.assembly.boundary_conditions import apply_constraints
from pyobstacle.core.constraints import ConstraintSet
from pyobstacle.fem.discretization import FEDiscretization, IntervalDiscretization
from pyobstacle.problems.functions import constant, step_obstacle
from pyobstacle.solvers.active_set import (ActiveSetSolver, ActiveSetParameters,
                                           clamped_residual, complementarity_update)
from pyobstacle.solvers.linear import LinearSolver, LinearSolverParameters
from pyobstacle.utils.bitset import ActiveSet
from pyobstacle.utils.meshgen import hyper_cube, interval_nodes

DIRECT = LinearSolver(LinearSolverParameters(method="direct"))


class IdentityProvider:
    """n decoupled unknowns with ``u_k = b_k`` and no boundary."""

    def __init__(self, b):
        self.b = np.asarray(b, dtype=float)

    def n_unknowns(self):
        return self.b.size

    def coordinates(self):
        return np.arange(self.b.size, dtype=float)[:, None]

    def coordinate_of(self, index):
        return self.coordinates()[index]

    def boundary_constraints(self, boundary):
        return ConstraintSet().close()

    def assemble(self, constraints):
        return apply_constraints(sps.identity(self.b.size, format="csr"), self.b, constraints)


def _solve_1d(points, obstacle, source=-10.0, linear_solver=DIRECT, **kw):
    disc = IntervalDiscretization(points, constant(source))
    solver = ActiveSetSolver(disc, obstacle, constant(0.0), linear_solver=linear_solver, **kw)
    return solver, solver.solve()


# ----------------------------------------------------------------------------
#  Helpers
# ----------------------------------------------------------------------------

def test_clamped_residual_keeps_non_positive_part():
    A = sps.identity(3, format="csr")
    r = clamped_residual(A, np.array([1.0, -2.0, 0.0]), np.array([0.0, 0.0, 0.0]))
    assert np.array_equal(r, [-1.0, 0.0, 0.0])


def test_complementarity_update():
    psi = np.zeros(5)
    u = np.array([-1.0, 0.0, 1.0, -0.5, -0.5])
    r = np.array([0.0, 0.0, 0.0, -1e-16, -1e-3])
    active, iterate = complementarity_update(u, r, psi, tol=1e-15)
    assert list(active) == [0, 1, 3]
    assert np.array_equal(iterate, [0.0, 0.0, 1.0, 0.0, -0.5])
    assert np.array_equal(u, [-1.0, 0.0, 1.0, -0.5, -0.5])


def test_parameters_validation():
    with pytest.raises(ValueError):
        ActiveSetParameters(convergence_tol=0.0)
    with pytest.raises(ValueError):
        ActiveSetParameters(complementarity_tol=-1.0)
    with pytest.raises(ValueError):
        ActiveSetParameters(max_iterations=0)


# ----------------------------------------------------------------------------
#  Synthetic collaborator
# ----------------------------------------------------------------------------

class TestIdentitySystem:
    def test_projection(self):
        b = np.array([1.0, -1.0, 2.0, -3.0, 0.5])
        solver = ActiveSetSolver(IdentityProvider(b), constant(0.0), constant(0.0))
        assert solver.max_iterations == 5
        res = solver.solve()
        assert res.converged and res.iterations == 1
        assert np.allclose(res.solution, np.maximum(b, 0.0))
        assert list(res.active_set) == [1, 3]

    def test_callback_receives_every_iteration(self):
        states = []
        b = np.array([1.0, -1.0, 2.0])
        solver = ActiveSetSolver(IdentityProvider(b), constant(0.0), constant(0.0),
                                 callback=states.append)
        res = solver.solve()
        assert [s.iteration for s in states] == [r.iteration for r in res.history] == [1]
        s = states[0]
        assert s.constraints.is_closed
        assert s.constraints.as_dict() == {1: 0.0}
        assert s.linear_result is not None and s.linear_result.converged


# ----------------------------------------------------------------------------
#  1-D scenarios
# ----------------------------------------------------------------------------

class TestFiveUnknowns:
    points = np.array([-1.0, -0.5, 0.0, 0.5, 1.0])

    def test_seed_activates_interior(self):
        disc = IntervalDiscretization(self.points, constant(-10.0))
        solver = ActiveSetSolver(disc, step_obstacle(), constant(0.0), linear_solver=DIRECT)
        seed = solver.seed()
        # unconstrained solution is 5 (x^2 - 1)
        assert np.allclose(seed.solution, [0.0, -3.75, -5.0, -3.75, 0.0])
        assert list(seed.next_active_set) == [1, 2, 3]
        assert np.array_equal(seed.iterate, [0.0, 0.0, 0.0, 0.0, 0.0])

    @pytest.mark.parametrize("method", ["direct", "cg"])
    def test_converges_in_one_iteration(self, method):
        lin = LinearSolver(LinearSolverParameters(method=method))
        _, res = _solve_1d(self.points, step_obstacle(), linear_solver=lin)
        assert res.converged and res.iterations == 1
        assert list(res.active_set) == [1, 2, 3]
        assert np.allclose(res.solution, [0.0, -0.4, -0.6, -0.8, 0.0])
        assert res.residual_norm == 0.0
        assert not res.history[0].active_set_changed


def test_obstacle_far_below_gives_unconstrained_solution():
    pts = interval_nodes(-1, 1, 16)
    _, res = _solve_1d(pts, constant(-1000.0))
    assert res.converged and res.iterations == 1
    assert res.active_set.cardinality() == 0
    assert np.allclose(res.solution, 5 * (pts**2 - 1))


def test_obstacle_above_everywhere():
    pts = interval_nodes(-1, 1, 8)
    solver, res = _solve_1d(pts, constant(0.5))
    assert res.converged and res.iterations == 1
    assert np.allclose(res.solution[1:-1], 0.5)
    # boundary unknowns are marked active, their value comes from the boundary data
    assert list(res.active_set) == list(range(9))
    assert res.solution[0] == 0.0 and res.solution[-1] == 0.0
    assert solver.manager.overridden(res.active_set).tolist() == [0, 8]


class TestStepObstacleFineGrid:
    pts = interval_nodes(-1, 1, 40)

    def _solve(self, **kw):
        return _solve_1d(self.pts, step_obstacle(), **kw)

    def test_feasibility_and_complementarity(self):
        solver, res = self._solve()
        assert res.converged
        psi = solver.obstacle_values
        u = res.solution
        interior = np.arange(1, self.pts.size - 1)
        assert np.all(u[interior] >= psi[interior] - 1e-12)
        active = res.active_set.to_indices()
        assert np.allclose(u[active], psi[active])
        # equation holds on free unknowns, multiplier sign on active ones
        lam = solver._A_full @ u - solver._b_full
        free = np.setdiff1d(interior, active)
        assert np.allclose(lam[free], 0.0, atol=1e-10)
        assert np.all(lam[active] >= -1e-10)
        assert np.linalg.norm(res.residual) < 1e-10

    def test_active_set_is_corrected(self):
        _, res = self._solve()
        # the unknown right of each downward step is released after the first solve
        assert res.history[0].active_set_changed
        assert res.iterations > 1
        first_stable = next(r.iteration for r in res.history if not r.active_set_changed)
        assert res.iterations <= first_stable + 1

    def test_deterministic(self):
        _, a = self._solve()
        _, b = self._solve()
        assert np.array_equal(a.solution, b.solution)
        assert a.active_set == b.active_set
        assert [r.n_active for r in a.history] == [r.n_active for r in b.history]

    def test_iteration_budget_exhausted(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pyobstacle.solvers.active_set"):
            _, res = self._solve(params=ActiveSetParameters(max_iterations=1))
        assert not res.converged
        assert res.iterations == 1 and len(res.history) == 1
        assert res.residual_norm >= 1e-10
        assert "did not converge" in caplog.text

    def test_outer_loop_continues_after_linear_failure(self, caplog):
        starved = LinearSolver(LinearSolverParameters(preconditioner="none", max_iter=3))
        with caplog.at_level(logging.WARNING, logger="pyobstacle"):
            solver, res = self._solve(linear_solver=starved)
        assert any(not h.linear_converged for h in res.history)
        assert len(res.history) == res.iterations >= 1
        assert res.solution.shape == (self.pts.size,)
        assert np.all(np.isfinite(res.solution))
        # boundary values are written after the solve, converged or not
        assert res.solution[0] == 0.0 and res.solution[-1] == 0.0
        assert "Linear solver did not converge" in caplog.text


# ----------------------------------------------------------------------------
#  2-D
# ----------------------------------------------------------------------------

def test_2d_obstacle_above_everywhere():
    mesh = hyper_cube(-1, 1, refinements=2)
    disc = FEDiscretization(mesh, constant(-10.0))
    res = ActiveSetSolver(disc, constant(0.5), constant(0.0)).solve()
    interior = np.setdiff1d(np.arange(len(mesh.nodes_list)), mesh.boundary_nodes())
    assert res.converged and res.iterations == 1
    assert np.allclose(res.solution[interior], 0.5)
    assert np.allclose(res.solution[mesh.boundary_nodes()], 0.0)
    assert set(interior) <= set(res.active_set)


def test_2d_far_below_matches_plain_solve():
    mesh = hyper_cube(-1, 1, refinements=3)
    disc = FEDiscretization(mesh, constant(-10.0))
    res = ActiveSetSolver(disc, constant(-1000.0), constant(0.0)).solve()
    A, b = disc.assemble(disc.boundary_constraints(constant(0.0)))
    ref = DIRECT.solve(A, b, disc.boundary_constraints(constant(0.0))).solution
    assert res.converged and res.active_set.cardinality() == 0
    assert np.allclose(res.solution, ref, atol=1e-9)


def test_2d_step_obstacle_invariants():
    mesh = hyper_cube(-1, 1, refinements=3)
    disc = FEDiscretization(mesh, constant(-10.0))
    solver = ActiveSetSolver(disc, step_obstacle(), constant(0.0))
    res = solver.solve()
    assert res.converged
    interior = np.setdiff1d(np.arange(len(mesh.nodes_list)), mesh.boundary_nodes())
    psi = solver.obstacle_values
    assert np.all(res.solution[interior] >= psi[interior] - 1e-10)
    active = res.active_set.to_indices()
    assert np.allclose(res.solution[active], psi[active])
    assert res.active_set.cardinality() > 0

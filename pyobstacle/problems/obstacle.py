"""pyobstacle.problems.obstacle
Obstacle benchmark on a uniformly refined square.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from pyobstacle.fem.discretization import FEDiscretization
from pyobstacle.io.vtk import export_vtk
from pyobstacle.problems.config import ObstacleConfig
from pyobstacle.solvers.active_set import ActiveSetResult, ActiveSetSolver, IterationState
from pyobstacle.solvers.linear import LinearSolver
from pyobstacle.utils.meshgen import hyper_cube

logger = logging.getLogger(__name__)


class ObstacleProblem:
    """
    Wires mesh, discretization, linear solver and active-set loop together.

    With ``config.output_dir`` set, every outer iteration writes
    ``output_{iteration}.vtu`` holding the displacement, the clamped
    residual and the indicator of the next active set.
    """

    def __init__(self, config: Optional[ObstacleConfig] = None):
        self.config = (config if config is not None else ObstacleConfig()).validate()
        cfg = self.config
        self.mesh = hyper_cube(cfg.lower, cfg.upper, refinements=cfg.refinements,
                               poly_order=cfg.poly_order, element_type=cfg.element_type)
        self.discretization = FEDiscretization(self.mesh, cfg.source)
        self.linear_solver = LinearSolver(cfg.linear)
        logger.info("Number of active cells: %d", self.mesh.n_elements)
        logger.info("Number of degrees of freedom: %d", self.discretization.n_unknowns())

    def output_results(self, state: IterationState) -> str:
        filename = os.path.join(self.config.output_dir, f"output_{state.iteration}.vtu")
        export_vtk(filename, self.mesh, {
            "displacement": state.solution,
            "residual": state.residual,
            "active_set": state.next_active_set.indicator(),
        })
        return filename

    def run(self) -> ActiveSetResult:
        callback = None
        if self.config.output_dir is not None:
            os.makedirs(self.config.output_dir, exist_ok=True)
            callback = self.output_results

        solver = ActiveSetSolver(
            self.discretization,
            self.config.obstacle,
            self.config.boundary,
            linear_solver=self.linear_solver,
            params=self.config.active_set,
            callback=callback,
        )
        return solver.solve()

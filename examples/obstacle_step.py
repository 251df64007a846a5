"""Example: membrane over a four-step obstacle on [-1, 1]^2"""
import argparse
import logging
from pathlib import Path

import matplotlib.pyplot as plt

from pyobstacle.io import plot_field, plot_active_set
from pyobstacle.problems import ObstacleConfig, ObstacleProblem
from pyobstacle.solvers import LinearSolverParameters


def main():
    parser = argparse.ArgumentParser(description="Primal-dual active-set solve of the obstacle problem.")
    parser.add_argument("--refinements", type=int, default=7)
    parser.add_argument("--order", type=int, default=1)
    parser.add_argument("--element", choices=("quad", "tri"), default="quad")
    parser.add_argument("--solver", choices=("cg", "direct"), default="cg")
    parser.add_argument("--preconditioner", choices=("jacobi", "ilu", "none"), default="jacobi")
    parser.add_argument("--output", type=Path, default=None, help="directory for output_<i>.vtu files")
    parser.add_argument("--plot", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    config = ObstacleConfig(
        refinements=args.refinements,
        poly_order=args.order,
        element_type=args.element,
        linear=LinearSolverParameters(method=args.solver, preconditioner=args.preconditioner),
        output_dir=str(args.output) if args.output is not None else None,
    )
    problem = ObstacleProblem(config)
    result = problem.run()
    print(f"converged={result.converged} after {result.iterations} iterations, "
          f"{result.active_set.cardinality()} active constraints, residual {result.residual_norm:.3e}")

    if args.plot:
        fig, (ax0, ax1) = plt.subplots(1, 2, figsize=(14, 6))
        plot_field(problem.mesh, result.solution, ax=ax0)
        plot_active_set(problem.mesh, result.active_set, ax=ax1)
        plt.show()


if __name__ == "__main__":
    main()

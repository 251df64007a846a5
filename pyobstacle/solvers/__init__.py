from .linear import LinearSolver, LinearSolverParameters, LinearSolveResult
from .active_set import (ActiveSetSolver, ActiveSetParameters, ActiveSetResult,
                         IterationState, IterationRecord)
__all__ = ["LinearSolver", "LinearSolverParameters", "LinearSolveResult",
           "ActiveSetSolver", "ActiveSetParameters", "ActiveSetResult",
           "IterationState", "IterationRecord"]

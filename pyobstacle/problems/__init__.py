from .functions import constant, step_obstacle, vectorize
from .config import ObstacleConfig
from .obstacle import ObstacleProblem
__all__ = ["constant", "step_obstacle", "vectorize", "ObstacleConfig", "ObstacleProblem"]

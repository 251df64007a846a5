from .mesh import Mesh
from .topology import Node, Edge
from .constraints import ConstraintSet, ConstraintManager
__all__=['Mesh','Node','Edge','ConstraintSet','ConstraintManager']

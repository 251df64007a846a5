from .local_assembler import stiffness_matrix, element_load
from .global_matrix import assemble, assemble_vector
from .boundary_conditions import apply_constraints
__all__ = ["stiffness_matrix", "element_load", "assemble", "assemble_vector",
           "apply_constraints"]

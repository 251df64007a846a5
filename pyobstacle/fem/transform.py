"""pyobstacle.fem.transform
Reference → physical mapping for isoparametric elements.

``jacobian`` returns ``J[i, j] = dx_j / dxi_i`` (rows are reference
directions), so physical shape gradients are ``dN @ inv(J).T``.
"""
import numpy as np
from pyobstacle.fem.reference import get_reference


def _element_coords(mesh, elem_id):
    nodes = mesh.nodes[mesh.elements_connectivity[elem_id]]
    return mesh.nodes_x_y_pos[nodes]


def x_mapping(mesh, elem_id, xi_eta):
    ref = get_reference(mesh.element_type, mesh.poly_order)
    N = ref.shape(*xi_eta)
    return N @ _element_coords(mesh, elem_id)                  # (2,)


def jacobian(mesh, elem_id, xi_eta):
    ref = get_reference(mesh.element_type, mesh.poly_order)
    dN = ref.grad(*xi_eta)                                    # (n_loc, 2)
    return dN.T @ _element_coords(mesh, elem_id)


def det_jacobian(mesh, elem_id, xi_eta):
    return np.linalg.det(jacobian(mesh, elem_id, xi_eta))


def physical_grad(mesh, elem_id, xi_eta):
    """Shape-function gradients in physical coordinates, shape (n_loc, 2)."""
    ref = get_reference(mesh.element_type, mesh.poly_order)
    J = jacobian(mesh, elem_id, xi_eta)
    return ref.grad(*xi_eta) @ np.linalg.inv(J).T

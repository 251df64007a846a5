"""pyobstacle.assembly.local_assembler
Element stiffness matrix and load vector of the Laplacian for Lagrange
elements (Tri Pn, Quad Qn).
"""
import numpy as np
from pyobstacle.integration import volume
from pyobstacle.fem.reference import get_reference
from pyobstacle.fem import transform


def stiffness_matrix(mesh, elem_id, *, quad_order=None):
    """Return ``Ke[a, b] = ∫_K ∇φ_a · ∇φ_b dx``."""
    poly_ord = mesh.poly_order
    if quad_order is None:
        quad_order = poly_ord + 2

    pts, wts = volume(mesh.element_type, quad_order)
    ref = get_reference(mesh.element_type, poly_ord)
    n_loc = ref.n_loc

    Ke = np.zeros((n_loc, n_loc))
    for (xi, eta), w in zip(pts, wts):
        grad = transform.physical_grad(mesh, elem_id, (xi, eta))   # (n_loc, 2)
        detJ = abs(transform.det_jacobian(mesh, elem_id, (xi, eta)))
        Ke += w * detJ * grad @ grad.T
    return Ke


def element_load(mesh, elem_id, rhs, *, quad_order=None):
    """Return ``Fe[a] = ∫_K f φ_a dx`` with ``rhs`` a function of the coordinate array."""
    poly_ord = mesh.poly_order
    if quad_order is None:
        quad_order = poly_ord + 2
    pts, wts = volume(mesh.element_type, quad_order)
    ref = get_reference(mesh.element_type, poly_ord)
    Fe = np.zeros(ref.n_loc)
    for (xi, eta), w in zip(pts, wts):
        N = ref.shape(xi, eta)
        detJ = abs(transform.det_jacobian(mesh, elem_id, (xi, eta)))
        x = transform.x_mapping(mesh, elem_id, (xi, eta))
        Fe += w * detJ * N * rhs(x)
    return Fe

"""pyobstacle.assembly.boundary_conditions
Elimination of inhomogeneous constraints with RHS correction.
"""
import numpy as np
import scipy.sparse as sp


def apply_constraints(K, F, constraints):
    """Return (K_bc, F_bc); inputs are left untouched.

    Every constrained row becomes an identity row whose right-hand side is
    the prescribed value. The constrained columns are zeroed in all other
    rows and ``K[:, dof] * value`` is subtracted from their right-hand side,
    so the eliminated system stays symmetric.

    Parameters
    ----------
    constraints : ConstraintSet or dict {dof: value}
    """
    items = constraints.items() if hasattr(constraints, "items") else constraints
    lines = dict(items)
    n = K.shape[0]
    F = np.array(F, dtype=float, copy=True)
    if F.shape != (n,):
        raise ValueError(f"Load vector of shape {F.shape} does not match matrix of size {n}.")
    if not lines:
        return sp.csr_matrix(K, copy=True), F

    dofs = np.fromiter(lines.keys(), dtype=int, count=len(lines))
    vals = np.fromiter(lines.values(), dtype=float, count=len(lines))
    if dofs.min() < 0 or dofs.max() >= n:
        raise IndexError(f"Constraint index out of range for a system of size {n}.")

    u_known = np.zeros(n)
    u_known[dofs] = vals
    F -= K @ u_known

    keep = np.ones(n)
    keep[dofs] = 0.0
    D = sp.diags(keep)
    K_bc = (D @ K @ D + sp.diags(1.0 - keep)).tocsr()
    K_bc.eliminate_zeros()
    F[dofs] = vals
    return K_bc, F


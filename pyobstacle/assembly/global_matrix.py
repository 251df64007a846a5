"""pyobstacle.assembly.global_matrix"""
import numpy as np, scipy.sparse as sp


def assemble(mesh, local_cb):
    """Scatter the element matrices returned by ``local_cb(eid)`` into a CSR matrix."""
    n_dofs = len(mesh.nodes)
    rows, cols, data = [], [], []
    for eid, elem in enumerate(mesh.elements_connectivity):
        Ke = local_cb(eid)
        r, c = np.meshgrid(elem, elem, indexing="ij")
        rows.append(r.ravel()); cols.append(c.ravel()); data.append(Ke.ravel())
    if not data:
        return sp.csr_matrix((n_dofs, n_dofs))
    # duplicate (row, col) pairs are summed by the COO → CSR conversion
    K = sp.coo_matrix((np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
                      shape=(n_dofs, n_dofs)).tocsr()
    return K


def assemble_vector(mesh, local_cb):
    """Scatter the element vectors returned by ``local_cb(eid)``."""
    F = np.zeros(len(mesh.nodes))
    for eid, elem in enumerate(mesh.elements_connectivity):
        np.add.at(F, elem, local_cb(eid))
    return F

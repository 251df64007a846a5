"""pyobstacle.utils.meshgen
Structured mesh generators on rectangles and intervals.
"""
import numpy as np
from pyobstacle.core.topology import Node
from typing import List, Tuple, Optional
import numba

__all__ = ["structured_quad", "structured_triangles", "hyper_cube", "interval_nodes"]


def _boundary_tags(x: float, y: float, bounds) -> List[str]:
    x0, x1, y0, y1 = bounds
    tags = []
    if np.isclose(x, x0): tags.append("boundary_left")
    if np.isclose(x, x1): tags.append("boundary_right")
    if np.isclose(y, y0): tags.append("boundary_bottom")
    if np.isclose(y, y1): tags.append("boundary_top")
    return tags


def _lattice_tag(i_glob: int, j_glob: int, order: int) -> str:
    on_x = i_glob % order == 0
    on_y = j_glob % order == 0
    if on_x and on_y:
        return "corner"
    if on_x or on_y:
        return "edge"
    return "interior"


def structured_quad(Lx: float, Ly: float, *, nx: int, ny: int, poly_order: int,
                    offset: Optional[Tuple[float, float]] = None, numba_path: bool = True):
    """
    Main wrapper for generating structured quadrilateral meshes on
    ``[ox, ox+Lx] x [oy, oy+Ly]``.

    Returns raw data: node objects, element connectivity, edge connectivity,
    and corner node connectivity for each element.
    """
    if not isinstance(poly_order, (int, np.integer)) or poly_order < 1:
        raise ValueError("Polynomial order must be a positive integer.")
    if nx < 1 or ny < 1:
        raise ValueError("nx and ny must be positive.")
    if not numba_path:
        return _structured_qn(Lx, Ly, nx, ny, poly_order, offset)

    # 1. Call the Numba core to get raw NumPy arrays
    nodes_coords, elements, elements_corner_nodes = _structured_qn_numba(
        float(Lx), float(Ly), int(nx), int(ny), int(poly_order)
    )
    if offset is not None:
        nodes_coords[:, 0] += offset[0]
        nodes_coords[:, 1] += offset[1]

    # 2. Convert the raw coordinate array back to a list of tagged Node objects
    ox, oy = offset if offset is not None else (0.0, 0.0)
    bounds = (ox, ox + Lx, oy, oy + Ly)
    n_x = poly_order * nx + 1
    node_objects = []
    for i, (x, y) in enumerate(nodes_coords):
        tags = _boundary_tags(x, y, bounds)
        tags.append(_lattice_tag(i % n_x, i // n_x, poly_order))
        node_objects.append(Node(id=i, x=float(x), y=float(y), tag=",".join(tags)))

    edges = _unique_edges(elements_corner_nodes)
    return node_objects, elements, edges, elements_corner_nodes


def _unique_edges(corners: np.ndarray) -> np.ndarray:
    n_c = corners.shape[1]
    all_edges = np.concatenate(
        [np.sort(corners[:, [i, (i + 1) % n_c]], axis=1) for i in range(n_c)]
    )
    if all_edges.size == 0:
        return np.empty((0, 2), dtype=np.int64)
    return np.unique(all_edges, axis=0)


@numba.jit(nopython=True, parallel=True, cache=True)
def _structured_qn_numba(Lx: float, Ly: float, nx: int, ny: int, order: int):
    """
    Generates raw data for a structured Qn quadrilateral mesh using Numba.
    """
    # --- 1. Generate Node Coordinates ---
    num_global_nodes_x = order * nx + 1
    num_global_nodes_y = order * ny + 1
    num_total_nodes = num_global_nodes_x * num_global_nodes_y
    nodes_coords = np.zeros((num_total_nodes, 2), dtype=np.float64)

    x_coords = np.linspace(0, Lx, num_global_nodes_x)
    y_coords = np.linspace(0, Ly, num_global_nodes_y)

    for j_glob in numba.prange(num_global_nodes_y):
        for i_glob in range(num_global_nodes_x):
            node_id = j_glob * num_global_nodes_x + i_glob
            nodes_coords[node_id, 0] = x_coords[i_glob]
            nodes_coords[node_id, 1] = y_coords[j_glob]

    # --- 2. Generate Element and Corner Connectivity ---
    num_elements = nx * ny
    nodes_per_edge_1d = order + 1
    elements = np.empty((num_elements, nodes_per_edge_1d**2), dtype=np.int64)
    elements_corner_nodes = np.empty((num_elements, 4), dtype=np.int64)

    for el_idx in numba.prange(num_elements):
        el_j = el_idx // nx
        el_i = el_idx % nx
        start_ix, start_iy = order * el_i, order * el_j

        # A. Full element connectivity, eta outer, xi inner
        local_node_idx = 0
        for local_ny in range(nodes_per_edge_1d):
            for local_nx in range(nodes_per_edge_1d):
                gid = (start_iy + local_ny) * num_global_nodes_x + (start_ix + local_nx)
                elements[el_idx, local_node_idx] = gid
                local_node_idx += 1

        # B. Corners in CCW order
        elements_corner_nodes[el_idx, 0] = start_iy * num_global_nodes_x + start_ix
        elements_corner_nodes[el_idx, 1] = start_iy * num_global_nodes_x + (start_ix + order)
        elements_corner_nodes[el_idx, 2] = (start_iy + order) * num_global_nodes_x + (start_ix + order)
        elements_corner_nodes[el_idx, 3] = (start_iy + order) * num_global_nodes_x + start_ix

    return nodes_coords, elements, elements_corner_nodes


def _structured_qn(Lx: float, Ly: float, nx: int, ny: int, order: int,
                   offset: Optional[Tuple[float, float]] = None) -> Tuple[List[Node], np.ndarray, np.ndarray, np.ndarray]:
    """
    Pure Python version of :func:`structured_quad`, same output.

    Returns:
        tuple: (nodes, elements, edges, elements_corner_nodes)
    """
    ox, oy = offset if offset is not None else (0.0, 0.0)
    bounds = (ox, ox + Lx, oy, oy + Ly)
    nodes_per_edge_1d = order + 1
    num_global_nodes_x = order * nx + 1
    num_global_nodes_y = order * ny + 1
    x_coords = ox + np.linspace(0, Lx, num_global_nodes_x)
    y_coords = oy + np.linspace(0, Ly, num_global_nodes_y)

    nodes: List[Node] = []
    for j_glob in range(num_global_nodes_y):
        for i_glob in range(num_global_nodes_x):
            x, y = x_coords[i_glob], y_coords[j_glob]
            tags = _boundary_tags(x, y, bounds)
            tags.append(_lattice_tag(i_glob, j_glob, order))
            nodes.append(Node(id=len(nodes), x=float(x), y=float(y), tag=",".join(tags)))

    num_elements = nx * ny
    elements = np.empty((num_elements, nodes_per_edge_1d**2), dtype=int)
    elements_corner_nodes = np.empty((num_elements, 4), dtype=int)

    get_node_id = lambda ix, iy: iy * num_global_nodes_x + ix

    for el_j in range(ny):
        for el_i in range(nx):
            eid = el_j * nx + el_i
            start_ix, start_iy = order * el_i, order * el_j

            local_node_idx = 0
            for local_ny in range(nodes_per_edge_1d):
                for local_nx in range(nodes_per_edge_1d):
                    elements[eid, local_node_idx] = get_node_id(start_ix + local_nx, start_iy + local_ny)
                    local_node_idx += 1

            elements_corner_nodes[eid] = [
                get_node_id(start_ix, start_iy),
                get_node_id(start_ix + order, start_iy),
                get_node_id(start_ix + order, start_iy + order),
                get_node_id(start_ix, start_iy + order),
            ]

    return nodes, elements, _unique_edges(elements_corner_nodes), elements_corner_nodes


def structured_triangles(Lx: float, Ly: float, *, nx_quads: int, ny_quads: int, poly_order: int,
                         offset: Optional[Tuple[float, float]] = None):
    """
    Structured triangular mesh of Pk elements: every base quad is split
    along its diagonal into two triangles.
    """
    if not isinstance(poly_order, (int, np.integer)) or poly_order < 1:
        raise ValueError("Polynomial order must be a positive integer.")
    order_k = poly_order
    ox, oy = offset if offset is not None else (0.0, 0.0)
    bounds = (ox, ox + Lx, oy, oy + Ly)

    num_fine_nodes_x = order_k * nx_quads + 1
    num_fine_nodes_y = order_k * ny_quads + 1
    x_fine = ox + np.linspace(0, Lx, num_fine_nodes_x)
    y_fine = oy + np.linspace(0, Ly, num_fine_nodes_y)

    nodes: List[Node] = []
    for j_fine in range(num_fine_nodes_y):
        for i_fine in range(num_fine_nodes_x):
            x, y = x_fine[i_fine], y_fine[j_fine]
            tags = _boundary_tags(x, y, bounds)
            tags.append(_lattice_tag(i_fine, j_fine, order_k))
            nodes.append(Node(id=len(nodes), x=float(x), y=float(y), tag=",".join(tags)))

    num_nodes_per_elem = (order_k + 1) * (order_k + 2) // 2
    num_elems = 2 * nx_quads * ny_quads
    elements = np.empty((num_elems, num_nodes_per_elem), dtype=int)
    elements_corner_nodes = np.empty((num_elems, 3), dtype=int)
    elem_idx_counter = 0

    get_node_id = lambda ix, iy: iy * num_fine_nodes_x + ix

    for e_iy in range(ny_quads):
        for e_ix in range(nx_quads):
            v00 = (order_k * e_ix, order_k * e_iy)
            v10 = (order_k * (e_ix + 1), order_k * e_iy)
            v01 = (order_k * e_ix, order_k * (e_iy + 1))
            v11 = (order_k * (e_ix + 1), order_k * (e_iy + 1))

            for V0, V1, V2 in ((v00, v10, v11), (v00, v11, v01)):
                # Node order matches the lattice of the reference Pk element.
                local_node_idx = 0
                for j_level in range(order_k + 1):
                    for i_level in range(order_k + 1 - j_level):
                        node_ix = V0[0] + i_level * ((V1[0] - V0[0]) // order_k) + j_level * ((V2[0] - V0[0]) // order_k)
                        node_iy = V0[1] + i_level * ((V1[1] - V0[1]) // order_k) + j_level * ((V2[1] - V0[1]) // order_k)
                        elements[elem_idx_counter, local_node_idx] = get_node_id(node_ix, node_iy)
                        local_node_idx += 1
                elements_corner_nodes[elem_idx_counter] = [get_node_id(*V0), get_node_id(*V1), get_node_id(*V2)]
                elem_idx_counter += 1

    return nodes, elements, _unique_edges(elements_corner_nodes), elements_corner_nodes


def hyper_cube(lower: float = -1.0, upper: float = 1.0, *, refinements: int = 0,
               poly_order: int = 1, element_type: str = "quad"):
    """
    Mesh of the square ``[lower, upper]^2`` refined uniformly
    ``refinements`` times (``2**refinements`` cells per direction).
    """
    from pyobstacle.core.mesh import Mesh

    if refinements < 0:
        raise ValueError("refinements must be non-negative.")
    if not lower < upper:
        raise ValueError(f"Empty domain [{lower}, {upper}].")
    n = 2 ** refinements
    L = upper - lower
    if element_type == "quad":
        nodes, elems, edges, corners = structured_quad(L, L, nx=n, ny=n, poly_order=poly_order,
                                                       offset=(lower, lower))
    elif element_type == "tri":
        nodes, elems, edges, corners = structured_triangles(L, L, nx_quads=n, ny_quads=n,
                                                            poly_order=poly_order, offset=(lower, lower))
    else:
        raise ValueError(f"Unsupported element type '{element_type}'.")
    return Mesh(nodes, elems, edges, corners, element_type=element_type, poly_order=poly_order)


def interval_nodes(lower: float, upper: float, n_cells: int) -> np.ndarray:
    """Equispaced grid points of ``[lower, upper]`` with ``n_cells`` cells."""
    if n_cells < 1:
        raise ValueError("n_cells must be positive.")
    if not lower < upper:
        raise ValueError(f"Empty interval [{lower}, {upper}].")
    return np.linspace(lower, upper, n_cells + 1)

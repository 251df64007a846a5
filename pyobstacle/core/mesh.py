import numpy as np
from typing import Tuple, List, Dict

from pyobstacle.core.topology import Edge, Node


class Mesh:
    """
    Manages mesh topology: nodes, element connectivity and edges.

    Shared edges are found from the corner connectivity and get a "left" and
    a "right" element. Edges with no right neighbour are boundary edges; the
    nodes on them (high-order ones included) are the unknowns that carry
    Dirichlet data.
    """
    # Defines the local-corner indices that form each edge, in CCW order.
    _EDGE_TABLE = {
        'tri':  ((0, 1), (1, 2), (2, 0)),
        'quad': ((0, 1), (1, 2), (2, 3), (3, 0)),
    }

    def __init__(self,
                 nodes: List['Node'],
                 element_connectivity: np.ndarray,
                 edges_connectivity: np.ndarray = None,
                 elements_corner_nodes: np.ndarray = None,
                 *,
                 element_type: str = 'tri',
                 poly_order: int = 1):
        """
        Initializes the mesh and builds its edges.
        """
        if element_type not in self._EDGE_TABLE:
            raise ValueError(f"Unsupported element type '{element_type}'.")
        self.edges_connectivity: np.ndarray = edges_connectivity
        self.element_type = element_type
        self.poly_order = poly_order
        self.nodes_list: List['Node'] = nodes
        self.nodes_x_y_pos = np.array([[n.x, n.y] for n in self.nodes_list], dtype=float)
        self.nodes = np.array([n.id for n in self.nodes_list])
        self.elements_connectivity: np.ndarray = np.asarray(element_connectivity)
        if elements_corner_nodes is None:
            elements_corner_nodes = self.elements_connectivity
        self.corner_connectivity: np.ndarray = np.asarray(elements_corner_nodes)
        self.n_elements = len(self.elements_connectivity)
        self.edges_list: List['Edge'] = []
        self._build_topology()

    def _build_topology(self):
        """
        Builds the unique Edge objects with their left/right elements.
        """
        # Step 1: Build map from each edge to the elements that share it
        edge_incidences: Dict[Tuple[int, int], List[int]] = {}
        for eid, corners in enumerate(self.corner_connectivity):
            for i in range(len(corners)):
                c1, c2 = int(corners[i]), int(corners[(i + 1) % len(corners)])
                key = tuple(sorted((c1, c2)))
                edge_incidences.setdefault(key, []).append(eid)

        def _locate_edge_nodes(eid: int, vA: int, vB: int) -> Tuple[int, ...]:
            # Only the nodes of the owning element can lie on one of its edges.
            x0, y0 = self.nodes_x_y_pos[vA]
            x1, y1 = self.nodes_x_y_pos[vB]
            dx, dy = x1 - x0, y1 - y0
            L2 = dx*dx + dy*dy
            tol = 1e-12 * np.sqrt(L2)

            ids = []
            for nid in self.elements_connectivity[eid]:
                nid = int(nid)
                px, py = self.nodes_x_y_pos[nid]
                if abs((px - x0)*dy - (py - y0)*dx) > tol:
                    continue
                dot = (px - x0)*dx + (py - y0)*dy
                if -tol <= dot <= L2 + tol:
                    ids.append(nid)
            # sort along the edge for reproducibility
            ids.sort(key=lambda nid: (self.nodes_x_y_pos[nid, 0]-x0)*dx + (self.nodes_x_y_pos[nid, 1]-y0)*dy)
            return tuple(ids)

        # Step 2: Create unique Edge objects, oriented as in their left element
        for edge_gid, ((n_min, n_max), shared_eids) in enumerate(edge_incidences.items()):
            left_eid = shared_eids[0]
            vA, vB = -1, -1
            left_elem_corners = self.corner_connectivity[left_eid]
            for i in range(len(left_elem_corners)):
                if {int(left_elem_corners[i]), int(left_elem_corners[(i + 1) % len(left_elem_corners)])} == {n_min, n_max}:
                    vA, vB = int(left_elem_corners[i]), int(left_elem_corners[(i + 1) % len(left_elem_corners)])
                    break
            right_eid = shared_eids[1] if len(shared_eids) > 1 else None
            self.edges_list.append(Edge(gid=edge_gid, nodes=(vA, vB), left=left_eid, right=right_eid,
                                        all_nodes=_locate_edge_nodes(left_eid, vA, vB)))

    # --- Public API ---
    def boundary_edges(self) -> List['Edge']:
        return [e for e in self.edges_list if e.is_boundary]

    def boundary_nodes(self) -> np.ndarray:
        """Sorted ids of all nodes lying on a boundary edge."""
        ids = set()
        for edge in self.boundary_edges():
            ids.update(edge.all_nodes or edge.nodes)
        return np.array(sorted(ids), dtype=int)

    def __repr__(self):
        return (f"<Mesh n_nodes={len(self.nodes_list)}, "
                f"n_elems={self.n_elements}, "
                f"n_edges={len(self.edges_list)}, "
                f"elem_type='{self.element_type}', "
                f"poly_order={self.poly_order}>")

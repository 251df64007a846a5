import logging
from typing import Callable, Dict, Union

import meshio
import numpy as np

from pyobstacle.core.mesh import Mesh

logger = logging.getLogger(__name__)

_CELL_TYPES = {"quad": "quad", "tri": "triangle"}


def export_vtk(
    filename: str,
    mesh: Mesh,
    fields: Dict[str, Union[np.ndarray, Callable[[np.ndarray], float]]],
):
    """
    Exports nodal fields to a VTK (.vtu) file for visualization.

    Args:
        filename: The path to the output file (e.g., 'results/output_3.vtu').
        mesh: The computational mesh object.
        fields: A dictionary mapping field names to nodal arrays (length =
                number of nodes, or (n, 2)/(n, 3) for vectors) or to
                callables evaluated at the node coordinates.
    """
    # 1) geometry (only corner nodes enter the cell definition)
    points_3d = np.pad(mesh.nodes_x_y_pos, ((0, 0), (0, 1)), constant_values=0)
    try:
        cell_type = _CELL_TYPES[mesh.element_type]
    except KeyError:
        raise ValueError(f"Unsupported element type for VTK export: {mesh.element_type}") from None
    cells = [meshio.CellBlock(cell_type, mesh.corner_connectivity)]

    # 2) point data
    point_data = {}
    num_nodes = len(mesh.nodes_list)

    for name, obj in fields.items():
        if callable(obj):
            obj = np.array([float(obj(xy)) for xy in mesh.nodes_x_y_pos])

        arr = np.asarray(obj, dtype=float)
        if arr.ndim == 1 and arr.shape[0] == num_nodes:
            point_data[name] = arr
        elif arr.ndim == 2 and arr.shape[0] == num_nodes and arr.shape[1] in (2, 3):
            # pad 2D vectors to 3D as VTK expects
            v = np.zeros((num_nodes, 3)); v[:, :arr.shape[1]] = arr
            point_data[name] = v
        else:
            raise ValueError(f"{name}: unexpected array shape {arr.shape}")

    # 3) write
    meshio.Mesh(points_3d, cells, point_data=point_data).write(filename)
    logger.info("Solution exported to %s", filename)

"""pyobstacle.io.visualization"""
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import PolyCollection


def _frame(ax, mesh, title):
    ax.set_aspect('equal', 'box')
    xmin, ymin = mesh.nodes_x_y_pos.min(axis=0)
    xmax, ymax = mesh.nodes_x_y_pos.max(axis=0)
    xpad = (xmax - xmin) * 0.05 or 0.1
    ypad = (ymax - ymin) * 0.05 or 0.1
    ax.set_xlim(xmin - xpad, xmax + xpad)
    ax.set_ylim(ymin - ypad, ymax + ypad)
    ax.set_title(title)
    ax.set_xlabel("X-coordinate")
    ax.set_ylabel("Y-coordinate")


def plot_field(mesh, values, *, ax=None, title="Displacement", levels=14,
               plot_cells=False, show=False):
    """
    Filled contour plot of a nodal field.

    Args:
        mesh (Mesh): The mesh the values live on.
        values (np.ndarray): One value per mesh node.
        ax (matplotlib.axes.Axes, optional): An existing axes object to plot on.
        plot_cells (bool, optional): Overlay the cell outlines.
        show (bool, optional): If True, calls plt.show() at the end.
    Returns:
        matplotlib.axes.Axes: The axes object containing the plot.
    """
    values = np.asarray(values, dtype=float)
    if values.shape != (len(mesh.nodes_x_y_pos),):
        raise ValueError("Length of values must match the number of mesh nodes.")
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 7))

    xy = mesh.nodes_x_y_pos
    contour = ax.tricontourf(xy[:, 0], xy[:, 1], values, levels=levels, cmap='viridis', zorder=0)
    plt.colorbar(contour, ax=ax, label=title)

    if plot_cells:
        polys = [xy[c] for c in mesh.corner_connectivity]
        ax.add_collection(PolyCollection(polys, facecolors='none', edgecolors=(0.1, 0.1, 0.1, 0.3),
                                         linewidths=0.5, zorder=1))
    _frame(ax, mesh, title)
    if show:
        plt.show()
    return ax


def plot_active_set(mesh, active_set, *, ax=None, title="Active set", show=False):
    """Scatter the nodes of ``active_set`` (an ActiveSet or boolean mask) over the mesh."""
    mask = np.asarray(getattr(active_set, "mask", active_set), dtype=bool)
    if mask.shape != (len(mesh.nodes_x_y_pos),):
        raise ValueError("Active set size must match the number of mesh nodes.")
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 7))

    xy = mesh.nodes_x_y_pos
    ax.plot(xy[~mask, 0], xy[~mask, 1], 'o', color='lightgray', markersize=2,
            linestyle='None', label="inactive", zorder=2)
    ax.plot(xy[mask, 0], xy[mask, 1], 'o', color='crimson', markersize=3,
            linestyle='None', label="active", zorder=3)
    ax.legend(loc="upper right")
    _frame(ax, mesh, title)
    if show:
        plt.show()
    return ax

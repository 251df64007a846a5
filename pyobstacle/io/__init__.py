from .vtk import export_vtk
from .visualization import plot_field, plot_active_set
__all__ = ["export_vtk", "plot_field", "plot_active_set"]

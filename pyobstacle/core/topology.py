from dataclasses import dataclass
from typing import Tuple, Optional


class Node:
    def __init__(self, id, x, y, tag=None):
        self.x = x
        self.y = y
        self.id = id
        self.tag = tag

    def __repr__(self):
        return f"Node {self.id}({self.x:.3f}, {self.y:.3f}, tag='{self.tag}')"

    @property
    def on_boundary(self) -> bool:
        return any(t.startswith("boundary_") for t in (self.tag or "").split(","))


@dataclass(slots=True)
class Edge:
    gid: int
    nodes: Tuple[int, int]      # Global node indices of the edge's endpoints
    left: Optional[int]         # Element ID on the left side of the edge
    right: Optional[int]        # Element ID on the right side, None on the boundary
    all_nodes: Tuple[int, ...] = ()

    @property
    def is_boundary(self) -> bool:
        return self.right is None

"""Search nodes: a cell together with the cell it was reached from."""

from __future__ import annotations

import math
from dataclasses import dataclass

from dronepath.cell import DEFAULT_CELL_SCALE, Cell, angle_to_range

_CORNER_OFFSETS = ((0.1, 0.1), (0.1, -0.1), (-0.1, 0.1), (-0.1, -0.1))


@dataclass(frozen=True, order=True)
class Node:
    """A directed edge of the search graph, from ``parent`` to ``cell``."""

    cell: Cell
    parent: Cell

    def __str__(self) -> str:
        return f"({self.cell} , {self.parent})"

    def next_node(self, next_cell: Cell) -> Node:
        return Node(next_cell, self.cell)

    def neighbors(self) -> list[Node]:
        return [self.next_node(c) for c in self.cell.neighbors()]

    def cells(self, scale: float = DEFAULT_CELL_SCALE) -> set[Cell]:
        """Cells touched when moving from the parent to the cell."""
        diff = self.cell - self.parent
        steps = 2 * max(abs(diff.x), abs(diff.y), abs(diff.z))
        if steps == 0:
            return set()
        px, py, pz = self.parent.center(scale)
        cx, cy, cz = self.cell.center(scale)
        sx, sy, sz = (cx - px) / steps, (cy - py) / steps, (cz - pz) / steps
        return {
            Cell.from_position(px + sx * i + ox, py + sy * i + oy, pz + sz * i, scale)
            for i in range(1, steps + 1)
            for ox, oy in _CORNER_OFFSETS
        }

    def length(self, scale: float = DEFAULT_CELL_SCALE) -> float:
        return self.parent.distance_3d(self.cell, scale)

    def rotation(self, other: Node) -> float:
        """Number of 45-degree turns needed to continue with ``other``."""
        this_z = self.cell.z - self.parent.z
        other_z = other.cell.z - other.parent.z
        alt_diff = 0.5 if (this_z == 0) != (other_z == 0) else 0.0
        return alt_diff + self.xy_rotation(other)

    def xy_rotation(self, other: Node) -> float:
        this_diff = self.cell - self.parent
        other_diff = other.cell - other.parent
        if (this_diff.x == 0 and this_diff.y == 0) or (other_diff.x == 0 and this_diff.y == 0):
            return 0.0
        ang_diff = abs(angle_to_range(other_diff.angle() - this_diff.angle()))
        return ang_diff / (math.pi / 4)
"""Discrete grid cells used by the global planner."""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import total_ordering
from typing import Sequence

DEFAULT_CELL_SCALE = 1.0
_DIAG_COST = 1.41421356237

_NEIGHBOR_OFFSETS = (
    (1, 0, 0),
    (-1, 0, 0),
    (0, 1, 0),
    (0, -1, 0),
    (0, 0, 1),
    (0, 0, -1),
    (1, 1, 0),
    (-1, 1, 0),
    (1, -1, 0),
    (-1, -1, 0),
)
_DIAGONAL_OFFSETS = _NEIGHBOR_OFFSETS[6:]


def angle_to_range(angle: float) -> float:
    """Wrap an angle in radians into the range [-pi, pi)."""
    if not math.isfinite(angle):
        return math.nan
    wrapped = math.fmod(angle + math.pi, 2.0 * math.pi)
    if wrapped < 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


def _ceil_distance(radius: int, a: int, b: int) -> int:
    remaining = radius * radius - a * a - b * b
    return math.ceil(math.sqrt(remaining)) if remaining > 0 else 0


def _span(radius: int) -> range:
    return range(-radius, radius + 1)


@total_ordering
@dataclass(frozen=True, eq=False)
class Cell:
    """A cell of the planning grid, identified by its integer indices."""

    x: int
    y: int
    z: int = 0

    @property
    def index(self) -> tuple[int, int, int]:
        return (self.x, self.y, self.z)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cell):
            return NotImplemented
        return self.index == other.index

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Cell):
            return NotImplemented
        return self.index < other.index

    def __hash__(self) -> int:
        return hash(self.index)

    def __sub__(self, other: Cell) -> Cell:
        return Cell(self.x - other.x, self.y - other.y, self.z - other.z)

    def __str__(self) -> str:
        return f"({self.x},{self.y},{self.z})"

    @classmethod
    def from_position(cls, x: float, y: float, z: float = 0.0, scale: float = DEFAULT_CELL_SCALE) -> Cell:
        """Return the cell containing the given metric position."""
        return cls(math.floor(x / scale), math.floor(y / scale), math.floor(z / scale))

    def center(self, scale: float = DEFAULT_CELL_SCALE) -> tuple[float, float, float]:
        """Metric position of the centre of the cell."""
        return (scale * (self.x + 0.5), scale * (self.y + 0.5), scale * (self.z + 0.5))

    def manhattan_dist(self, x: float, y: float, z: float, scale: float = DEFAULT_CELL_SCALE) -> float:
        cx, cy, cz = self.center(scale)
        return abs(cx - x) + abs(cy - y) + abs(cz - z)

    def distance_2d(self, other: Cell, scale: float = DEFAULT_CELL_SCALE) -> float:
        ax, ay, _ = self.center(scale)
        bx, by, _ = other.center(scale)
        return math.hypot(ax - bx, ay - by)

    def distance_3d(self, other: Cell, scale: float = DEFAULT_CELL_SCALE) -> float:
        return math.dist(self.center(scale), other.center(scale))

    def diag_distance_2d(self, other: Cell, scale: float = DEFAULT_CELL_SCALE) -> float:
        """Shortest XY distance when diagonal moves are allowed."""
        ax, ay, _ = self.center(scale)
        bx, by, _ = other.center(scale)
        dx, dy = abs(ax - bx), abs(ay - by)
        return (dx + dy) + (_DIAG_COST - 2.0) * min(dx, dy)

    def diag_distance_3d(self, other: Cell, scale: float = DEFAULT_CELL_SCALE) -> float:
        return self.diag_distance_2d(other, scale) + abs(self.center(scale)[2] - other.center(scale)[2])

    def angle(self) -> float:
        """Angle of the index vector in the XY-plane relative to the X-axis."""
        return math.atan2(self.y, self.x)

    def neighbor_from_yaw(self, yaw: float, scale: float = DEFAULT_CELL_SCALE) -> Cell:
        """The cell lying in the yaw direction from this one."""
        dx = int(2 * scale * math.cos(yaw))
        dy = int(2 * scale * math.sin(yaw))
        cx, cy, cz = self.center(scale)
        return Cell.from_position(cx + dx, cy + dy, cz, scale)

    def flow_neighbors(self, radius: int) -> list[Cell]:
        """Cells within a sphere of the given radius whose risk flows into this cell."""
        return [
            Cell(self.x + dx, self.y + dy, self.z + dz)
            for dx in _span(radius) if abs(dx) <= radius
            for dy in _span(_ceil_distance(radius, dx, 0))
            for dz in _span(_ceil_distance(radius, dx, dy))
        ]

    def diagonal_neighbors(self) -> list[Cell]:
        """The four XY-diagonal neighbours."""
        return [Cell(self.x + dx, self.y + dy, self.z + dz) for dx, dy, dz in _DIAGONAL_OFFSETS]

    def neighbors(self) -> list[Cell]:
        """The six face neighbours followed by the four XY-diagonal ones."""
        return [Cell(self.x + dx, self.y + dy, self.z + dz) for dx, dy, dz in _NEIGHBOR_OFFSETS]


@dataclass(frozen=True, eq=False)
class GoalCell(Cell):
    """A goal cell with an acceptance radius."""

    radius: float = 1.0
    is_temporary: bool = False

    @classmethod
    def from_position(
        cls,
        x: float,
        y: float,
        z: float = 0.0,
        radius: float = 1.0,
        is_temporary: bool = False,
        scale: float = DEFAULT_CELL_SCALE,
    ) -> GoalCell:
        return cls(
            math.floor(x / scale),
            math.floor(y / scale),
            math.floor(z / scale),
            radius,
            is_temporary,
        )

    @property
    def cell(self) -> Cell:
        return Cell(self.x, self.y, self.z)

    def within_position_radius(self, position: Sequence[float], scale: float = DEFAULT_CELL_SCALE) -> bool:
        """True if the position lies within the goal radius of the cell centre."""
        return math.dist(self.center(scale), tuple(position)) < self.radius
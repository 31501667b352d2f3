"""A fixed test scene: a wall of obstacle points, a vehicle pose and a clicked goal."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from dronepath.planner import Pose

FRAME_ID = "/world"
CLOUD_SIZE = 100
POINT_COLOR = (40, 200, 120)

Point3 = tuple[float, float, float]

DEFAULT_POINTS: tuple[Point3, ...] = (
    (5.5, -0.5, 0.5),
    (5.5, 0.5, 0.5),
    (5.5, 1.5, 0.5),
    (5.5, -0.5, 1.5),
    (5.5, 0.5, 1.5),
    (5.5, 1.5, 1.5),
    (5.5, -0.5, 2.5),
    (5.5, 0.5, 2.5),
    (5.5, 1.5, 2.5),
)


@dataclass(frozen=True)
class StampedPoint:
    """A position in a named frame."""

    position: Point3
    frame_id: str = FRAME_ID


@dataclass(frozen=True)
class CloudPoint:
    """One point of a coloured point cloud."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    r: int = 0
    g: int = 0
    b: int = 0


def create_wall(dist: int, width: int, height: int) -> list[Point3]:
    """Cell-centre points of a wall at x = dist, spanning y in [-width, width] and z in [0, height]."""
    return [
        (dist + 0.5, i + 0.5, j + 0.5)
        for i in range(-width, width + 1)
        for j in range(height + 1)
    ]


def format_path(positions: Iterable[Sequence[float]]) -> str:
    """Render a path as a chain of positions."""
    return "".join(f"({x:2.2f}, {y:2.2f}, {z:2.2f}) -> " for x, y, z in positions)


class MockScene:
    """Synthetic sensor data: obstacle points, a vehicle pose and a clicked goal."""

    def __init__(self, wall: tuple[int, int, int] | None = (5, 5, 6)) -> None:
        self.points: list[Point3] = list(DEFAULT_POINTS)
        if wall is not None:
            self.rebuild_wall(*wall)

    def rebuild_wall(self, dist: int, width: int, height: int) -> None:
        """Replace the obstacle points by a wall."""
        self.points = create_wall(dist, width, height)

    def clicked_point(self) -> StampedPoint:
        return StampedPoint((8.5, 4.5, 1.5))

    def vehicle_position(self) -> Pose:
        return Pose((0.5, 2.5, 1.5), 0.0, FRAME_ID)

    def point_cloud(self) -> list[CloudPoint]:
        """The obstacle points, coloured, padded with zero points to the cloud size."""
        r, g, b = POINT_COLOR
        cloud = [CloudPoint(x, y, z, r, g, b) for x, y, z in self.points]
        cloud.extend(CloudPoint() for _ in range(CLOUD_SIZE - len(cloud)))
        return cloud
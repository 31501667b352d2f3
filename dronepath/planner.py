"""Risk-aware global path planner over a discrete cell grid."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from itertools import accumulate
from typing import Iterable, Mapping, Sequence

from dronepath.cell import Cell, GoalCell, angle_to_range
from dronepath.node import Node

_DEFAULT_ALT_PRIOR = (
    1.0, 0.2, 0.1333, 0.1, 0.0833, 0.0714, 0.0625, 0.0556, 0.05, 0.0455,
    0.0417, 0.0385, 0.0357, 0.0333, 0.0313, 0.0294, 0.0278, 0.0263, 0.025,
    0.0238, 0.0227, 0.0217, 0.0208, 0.02, 0.0192,
)


def next_yaw(u: Cell, v: Cell, last_yaw: float) -> float:
    """XY-angle from u to v, or last_yaw when v is directly above or below u."""
    dx = v.x - u.x
    dy = v.y - u.y
    if dx == 0 and dy == 0:
        return last_yaw
    return math.atan2(dy, dx)


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _probability(log_odds: float) -> float:
    return 1.0 - 1.0 / (1.0 + math.exp(log_odds))


def _posterior(prior: float, measurement: float) -> float:
    obstacle = prior * measurement
    free = (1.0 - prior) * (1.0 - measurement)
    total = obstacle + free
    return obstacle / total if total > 0.0 else prior


@dataclass
class PathInfo:
    """Cost breakdown of a path."""

    dist: float = 0.0
    risk: float = 0.0
    cost: float = 0.0
    smoothness: float = 0.0
    is_blocked: bool = False


@dataclass(frozen=True)
class Pose:
    """A position with a heading in a named frame."""

    position: tuple[float, float, float]
    yaw: float
    frame_id: str = ""


@dataclass
class PlannerConfig:
    """Tunable parameters of the global planner."""

    cell_scale: float = 1.0
    map_resolution: float = 1.0
    robot_radius: float = 0.5
    min_altitude: int = 1
    max_altitude: int = 10
    max_cell_risk: float = 0.5
    smooth_factor: float = 10.0
    vert_to_hor_cost: float = 1.0
    risk_factor: float = 500.0
    neighbor_risk_flow: float = 1.0
    explore_penalty: float = 0.005
    up_cost: float = 3.0
    down_cost: float = 1.0
    search_time: float = 0.5
    min_overestimate_factor: float = 1.03
    max_overestimate_factor: float = 2.0
    risk_threshold_risk_based_speedup: float = 0.5
    default_speed: float = 1.0
    max_speed: float = 3.0
    max_iterations: int = 2000
    goal_must_be_free: bool = True
    use_current_yaw: bool = True
    use_risk_heuristics: bool = True
    use_speedup_heuristics: bool = True
    use_risk_based_speedup: bool = True
    bubble_radius: float = 0.0
    bubble_cost: float = 0.0
    default_node_type: str = "SpeedNode"
    alt_prior: tuple[float, ...] = _DEFAULT_ALT_PRIOR


class GlobalPlanner:
    """Keeps the map, pose, goal and current path, and evaluates costs and risks."""

    def __init__(self, config: PlannerConfig | None = None) -> None:
        self.config = config if config is not None else PlannerConfig()
        if not self.config.alt_prior:
            raise ValueError("alt_prior must not be empty")
        self.accumulated_alt_prior = list(accumulate(self.config.alt_prior))
        self.frame_id = "/local_origin"
        self.curr_pos: tuple[float, float, float] = (0.0, 0.0, 0.0)
        self.curr_yaw = 0.0
        self.curr_vel: tuple[float, float, float] = (0.0, 0.0, 0.0)
        self.goal_pos = GoalCell(0, 0, 0)
        self.going_back = False
        self.goal_is_blocked = False
        self.current_cell_blocked = False
        self.overestimate_factor = self.config.max_overestimate_factor
        self.curr_path: list[Cell] = []
        self.curr_path_info = PathInfo()
        self.path_cells: set[Cell] = set()
        self.path_back: list[Cell] = []
        self.occupied: set[Cell] = set()
        self.occupancy: dict[Cell, float] | None = None
        self.seen_count: dict[Cell, float] = {}
        self.risk_cache: dict[Cell, float] = {}
        self.heuristic_cache: dict[Node, float] = {}
        self.bubble_risk_cache: dict[Cell, float] = {}

    @property
    def _scale(self) -> float:
        return self.config.cell_scale

    def _cell_at(self, position: Sequence[float]) -> Cell:
        x, y, z = position
        return Cell.from_position(x, y, z, self._scale)

    def set_pose(self, position: Sequence[float], yaw: float) -> None:
        """Update the current pose and remember the way back."""
        self.curr_pos = tuple(float(c) for c in position)
        self.curr_yaw = yaw
        curr_cell = self._cell_at(self.curr_pos)
        if not self.going_back and (not self.path_back or curr_cell != self.path_back[-1]):
            self.path_back.append(curr_cell)

    def set_goal(self, goal: GoalCell) -> None:
        """Set a new mission goal."""
        self.goal_pos = goal
        self.going_back = False
        self.goal_is_blocked = False
        self.heuristic_cache.clear()
        self.bubble_risk_cache.clear()

    def set_path(self, path: Sequence[Cell]) -> None:
        """Make path the current path."""
        path = list(path)
        self.curr_path_info = self.path_info(path)
        self.curr_path = path
        self.path_cells = {
            cell for prev, curr in zip(path[1:], path[2:]) for cell in Node(curr, prev).cells(self._scale)
        }

    def set_frame(self, frame_id: str) -> None:
        self.frame_id = frame_id

    def update_map(self, occupancy: Mapping[Cell, float]) -> None:
        """Replace the occupancy map, given as log-odds per cell."""
        self.risk_cache.clear()
        self.occupancy = dict(occupancy)

    def open_neighbors(self, cell: Cell, is_3d: bool = True) -> list[tuple[Cell, float]]:
        """The eight horizontal and, in 3D, the vertical neighbours with their step cost."""
        x, y, z = cell.index
        neighbors = [
            (Cell(x + 1, y, z), 1.0),
            (Cell(x + 1, y - 1, z), 1.41),
            (Cell(x + 1, y + 1, z), 1.41),
            (Cell(x - 1, y, z), 1.0),
            (Cell(x - 1, y - 1, z), 1.41),
            (Cell(x - 1, y + 1, z), 1.41),
            (Cell(x, y - 1, z), 1.0),
            (Cell(x, y + 1, z), 1.0),
        ]
        if is_3d and z < self.config.max_altitude:
            neighbors.append((Cell(x, y, z + 1), self.config.up_cost))
        if is_3d and z > self.config.min_altitude:
            neighbors.append((Cell(x, y, z - 1), self.config.down_cost))
        return neighbors

    def is_near_wall(self, cell: Cell) -> bool:
        return any(self.is_occupied(n) for n in cell.diagonal_neighbors())

    def edge_dist(self, u: Cell, v: Cell) -> float:
        """Distance between adjacent cells, weighting climbs and descents."""
        xy_diff = u.distance_2d(v, self._scale)
        z_diff = v.center(self._scale)[2] - u.center(self._scale)[2]
        up = self.config.up_cost * max(z_diff, 0.0)
        down = self.config.down_cost * max(-z_diff, 0.0)
        return xy_diff + up + down

    def single_cell_risk(self, cell: Cell) -> float:
        """Risk of a cell, ignoring its neighbours."""
        if cell.z < 1 or self.occupancy is None:
            return 1.0
        log_odds = self.occupancy.get(cell)
        if log_odds is None:
            return self.config.explore_penalty * self.alt_prior(cell)
        post_prob = _posterior(self.alt_prior(cell), _probability(log_odds))
        if cell in self.occupied or log_odds > 0:
            return post_prob
        return self.config.explore_penalty * post_prob

    def alt_prior(self, cell: Cell) -> float:
        """Prior probability of an obstacle at the cell's altitude."""
        prior = self.config.alt_prior
        index = _round_half_away(cell.center(self._scale)[2])
        if index < 0 or index >= len(prior):
            return prior[-1]
        return prior[index]

    def is_occupied(self, cell: Cell) -> bool:
        return self.single_cell_risk(cell) > 0.5

    def is_legal(self, node: Node) -> bool:
        return (
            node.cell.center(self._scale)[2] < self.config.max_altitude
            and self.node_risk(node) < self.config.max_cell_risk
        )

    def cell_risk(self, cell: Cell) -> float:
        """Risk of a cell including the risk flowing in from its neighbours."""
        cached = self.risk_cache.get(cell)
        if cached is not None:
            return cached
        radius = math.ceil(self.config.robot_radius / self.config.map_resolution)
        risk = self.single_cell_risk(cell) + sum(
            self.config.neighbor_risk_flow * self.single_cell_risk(n) for n in cell.flow_neighbors(radius)
        )
        self.risk_cache[cell] = risk
        return risk

    def node_risk(self, node: Node) -> float:
        """Average risk of the cells an edge touches, times the edge length."""
        cells = node.cells(self._scale)
        if not cells:
            return 0.0
        total = sum(self.cell_risk(c) for c in cells)
        return total / len(cells) * node.length(self._scale)

    def turn_smoothness(self, u: Node, v: Node) -> float:
        turn = u.rotation(v)
        return turn * turn

    def edge_cost(self, u: Node, v: Node) -> float:
        """Total cost of the edge from u to v."""
        dist_cost = self.edge_dist(u.cell, v.cell)
        risk_cost = self.config.risk_factor * self.node_risk(v)
        smooth_cost = self.config.smooth_factor * self.turn_smoothness(u, v)
        curr_cell = self._cell_at(self.curr_pos)
        if u.cell.distance_3d(curr_cell, self._scale) < 3 and math.hypot(*self.curr_vel) > 1:
            smooth_cost *= 2
        return dist_cost + risk_cost + smooth_cost

    def _accumulated_prior(self, z_index: int) -> float:
        index = min(max(z_index, 0), len(self.accumulated_alt_prior) - 1)
        return self.accumulated_alt_prior[index]

    def _unexplored_risk(self) -> float:
        c = self.config
        return (1.0 + 6.0 * c.neighbor_risk_flow) * c.explore_penalty * c.risk_factor

    def risk_heuristic(self, u: Cell, goal: Cell) -> float:
        """Risk of a straight path from u to goal through unexplored space."""
        if u == goal:
            return 0.0
        unexplored = self._unexplored_risk()
        xy_dist = u.diag_distance_2d(goal, self._scale) - 1.0
        xy_risk = xy_dist * unexplored * self.alt_prior(u)
        z_risk = unexplored * abs(self._accumulated_prior(u.z) - self._accumulated_prior(goal.z))
        goal_risk = self.cell_risk(goal) * self.config.risk_factor
        return xy_risk + z_risk + goal_risk

    def risk_heuristic_reverse(self, u: Cell, goal: Cell) -> float:
        """Risk heuristic towards a bubble of known cost around the goal."""
        cached = self.bubble_risk_cache.get(u)
        if cached is not None:
            return cached
        if u == goal:
            return 0.0
        dist_to_bubble = max(0.0, u.diag_distance_3d(goal, self._scale) - self.config.bubble_radius)
        return self.config.bubble_cost + dist_to_bubble * self._unexplored_risk() * self.alt_prior(u)

    def smoothness_heuristic(self, u: Node, goal: Cell) -> float:
        """Lower bound on the turning cost from u to goal."""
        if u.cell.x == goal.x and u.cell.y == goal.y:
            return 0.0
        if u.cell.x == u.parent.x and u.cell.y == u.parent.y:
            return self.config.smooth_factor * self.config.vert_to_hor_cost
        u_ang = (u.cell - u.parent).angle()
        goal_ang = (goal - u.cell).angle()
        num_45_deg_turns = abs(angle_to_range(goal_ang - u_ang)) / (math.pi / 4)
        altitude_change = 0 if u.cell.z == goal.z else 1
        return self.config.smooth_factor * (num_45_deg_turns + altitude_change)

    def altitude_heuristic(self, u: Cell, goal: Cell) -> float:
        """Lower bound on the cost of reaching the goal altitude."""
        diff = goal.z - u.z
        cost = self.config.up_cost if diff > 0 else self.config.down_cost
        return cost * abs(diff)

    def heuristic(self, u: Node, goal: Cell) -> float:
        """Estimated cost of going from u to goal."""
        value = self.overestimate_factor * u.cell.diag_distance_2d(goal, self._scale)
        value += self.altitude_heuristic(u.cell, goal)
        value += self.smoothness_heuristic(u, goal)
        if self.config.use_risk_heuristics:
            value += self.risk_heuristic(u.cell, goal)
        if self.config.use_speedup_heuristics:
            value += self.seen_count.get(u.cell, 0.0)
        self.heuristic_cache[u] = value
        return value

    def _pose(self, cell: Cell, yaw: float) -> Pose:
        return Pose(cell.center(self._scale), yaw, self.frame_id)

    def path_poses(self, path: Iterable[Cell] | None = None) -> list[Pose]:
        """Poses along a path (the current one by default), each facing the next cell."""
        cells = list(self.curr_path if path is None else path)
        if not cells:
            return []
        poses = []
        last_yaw = self.curr_yaw
        for cell, following in zip(cells, cells[1:]):
            last_yaw = next_yaw(cell, following, last_yaw)
            poses.append(self._pose(cell, last_yaw))
        poses.append(self._pose(cells[-1], last_yaw))
        return poses

    def path_risks(self) -> list[float]:
        """Risk of the cell at each pose of the current path."""
        return [self.cell_risk(self._cell_at(pose.position)) for pose in self.path_poses()]

    def path_info(self, path: Sequence[Cell]) -> PathInfo:
        """Distance, risk, cost and smoothness of a path."""
        info = PathInfo()
        for a, b, c in zip(path, path[1:], path[2:]):
            curr_node = Node(c, b)
            last_node = Node(b, a)
            risk = self.node_risk(curr_node)
            info.dist += self.edge_dist(last_node.cell, curr_node.cell)
            info.risk += self.config.risk_factor * risk
            info.cost += self.edge_cost(last_node, curr_node)
            info.is_blocked |= risk > self.config.max_cell_risk
            info.smoothness += self.config.smooth_factor * self.turn_smoothness(last_node, curr_node)
        return info

    def go_back(self) -> None:
        """Follow the travelled path back until a low-risk cell is reached."""
        if not self.path_back:
            raise ValueError("no path back is known")
        self.going_back = True
        new_path = self.path_back[::-1]
        for i in range(1, len(new_path) - 1):
            if i > 5 and self.cell_risk(new_path[i]) < 0.5:
                new_path = new_path[: i + 1]
                del self.path_back[len(self.path_back) - i - 2:]
                break
        self.curr_path = new_path
        last = new_path[-1]
        self.goal_pos = GoalCell(last.x, last.y, last.z, 1.0)

    def stop(self) -> None:
        """Make the current position both the goal and the whole path."""
        x, y, z = self.curr_pos
        self.set_goal(GoalCell.from_position(x, y, z, scale=self._scale))
        self.set_path([self._cell_at(self.curr_pos)])

    def set_robot_radius(self, radius: float) -> None:
        self.config.robot_radius = radius
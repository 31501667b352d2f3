"""Mission layer around the global planner: goals, waypoints, pose tracking and setpoints."""

from __future__ import annotations

import math
from dataclasses import dataclass
from itertools import accumulate
from typing import Iterable, Sequence

from dronepath.cell import Cell, GoalCell
from dronepath.planner import GlobalPlanner, PlannerConfig, Pose


@dataclass
class NodeConfig:
    """Parameters of the planner node."""

    start_pos: tuple[float, float, float] = (0.5, 0.5, 3.5)
    start_yaw: float = 0.0
    frame_id: str = "/local_origin"
    robot_radius: float = 0.5
    clicked_goal_alt: float = 3.5
    clicked_goal_radius: float = 1.0
    simplify_iterations: int = 1
    simplify_margin: float = 1.01
    planner: PlannerConfig | None = None


class PlannerNode:
    """Feeds vehicle state into a GlobalPlanner and turns its path into setpoints."""

    def __init__(self, config: NodeConfig | None = None) -> None:
        self.config = config if config is not None else NodeConfig()
        self.planner = GlobalPlanner(self.config.planner)
        self.waypoints: list[GoalCell] = []
        self.path: list[Pose] = []
        self.actual_path: list[Pose] = []
        self.last_clicked_points: list[Pose] = []
        self.num_pos_msg = 0
        self.position_received = False
        self.temp_goal: tuple[float, float, float] | None = None
        self.global_goal: tuple[float, float, float] | None = None

        frame = self.config.frame_id
        x, y, z = self.config.start_pos
        self.planner.goal_pos = GoalCell.from_position(x, y, z, scale=self.planner.config.cell_scale)
        self.planner.set_frame(frame)
        self.planner.set_robot_radius(self.config.robot_radius)

        self.current_goal = Pose(tuple(self.config.start_pos), self.config.start_yaw, frame)
        self.last_goal = self.current_goal
        self.last_pos = Pose((0.0, 0.0, 0.0), 0.0, frame)
        self.speed = self.planner.config.default_speed

    @property
    def _scale(self) -> float:
        return self.planner.config.cell_scale

    def configure(self, config: NodeConfig) -> None:
        """Apply new node parameters and, if given, new planner parameters."""
        self.config = config
        if config.planner is not None:
            if not config.planner.alt_prior:
                raise ValueError("alt_prior must not be empty")
            self.planner.config = config.planner
            self.planner.accumulated_alt_prior = list(accumulate(config.planner.alt_prior))
            self.planner.risk_cache.clear()
            self.planner.set_robot_radius(config.robot_radius)

    def set_new_goal(self, goal: GoalCell) -> None:
        """Make goal the planner's goal and publish its position."""
        self.planner.set_goal(goal)
        point = goal.center(self._scale)
        self.temp_goal = point
        if not goal.is_temporary:
            self.global_goal = point

    def pop_next_goal(self) -> None:
        """Take the next waypoint as goal, or stop if the goal is blocked and none is left."""
        if self.waypoints:
            self.set_new_goal(self.waypoints.pop(0))
        elif self.planner.goal_is_blocked:
            self.planner.stop()

    def set_intermediate_goal(self) -> None:
        """Set a temporary goal half-way along a long current path."""
        path = self.planner.curr_path
        length = len(path)
        if length > 10:
            self.waypoints.insert(0, self.planner.goal_pos)
            middle = path[length // 2]
            self.set_new_goal(GoalCell(middle.x, middle.y, middle.z, float(length // 4), True))

    def on_velocity(self, velocity: Sequence[float]) -> None:
        self.planner.curr_vel = tuple(float(v) for v in velocity)

    def on_position(self, position: Sequence[float], yaw: float) -> None:
        """Update the pose and advance along the path once the current goal is reached."""
        self.last_pos = Pose(tuple(float(c) for c in position), yaw, self.config.frame_id)
        self.planner.set_pose(self.last_pos.position, yaw)

        if self.num_pos_msg % 10 == 0:
            self.actual_path.append(self.last_pos)
        self.num_pos_msg += 1
        self.position_received = True

        if self.path and self.is_close_to_goal():
            yaw_diff = abs(yaw - self.current_goal.yaw)
            yaw_diff -= math.floor(yaw_diff / (2 * math.pi)) * (2 * math.pi)
            max_yaw_diff = math.pi
            if yaw_diff < max_yaw_diff or yaw_diff > 2 * math.pi - max_yaw_diff:
                self.last_goal = self.current_goal
                self.current_goal = self.path.pop(0)

    def on_clicked_point(self, x: float, y: float, z: float) -> Pose:
        """Record a clicked point at the vehicle's current altitude."""
        pose = Pose((x, y, self.planner.curr_pos[2]), 0.0, self.config.frame_id)
        self.last_clicked_points.append(pose)
        return pose

    def on_move_base_goal(self, x: float, y: float) -> None:
        """Set a goal at the clicked XY position and the configured altitude."""
        self.set_new_goal(
            GoalCell.from_position(
                x, y, self.config.clicked_goal_alt, self.config.clicked_goal_radius, scale=self._scale
            )
        )

    def on_fcu_goal(self, x: float, y: float, z: float, valid: bool) -> bool:
        """Accept a goal from the flight controller if valid and different; return whether it was set."""
        new_goal = GoalCell.from_position(x, y, z, 1.0, scale=self._scale)
        gx, gy, _ = self.planner.goal_pos.center(self._scale)
        nx, ny, _ = new_goal.center(self._scale)
        if valid and (abs(gx - nx) > 0.001 or abs(gy - ny) > 0.001):
            self.set_new_goal(new_goal)
            return True
        return False

    def add_obstacle_points(self, points: Iterable[Sequence[float]]) -> None:
        """Mark the cells of obstacle points (world frame) as seen occupied."""
        for x, y, z in points:
            if not math.isnan(x):
                self.planner.occupied.add(Cell.from_position(x, y, z, self._scale))

    def set_current_path(self, poses: Sequence[Pose]) -> None:
        """Follow a new path: first pose as last goal, second as current goal."""
        self.path.clear()
        if len(poses) < 2:
            return
        self.last_goal = poses[0]
        self.current_goal = poses[1]
        self.path.extend(poses[2:])

    def compute_setpoint(self) -> Pose:
        """Position setpoint towards the current goal, at most one speed-length away."""
        cfg = self.planner.config
        pos = self.last_pos.position
        vec = [g - p for g, p in zip(self.current_goal.position, pos)]

        if cfg.use_speedup_heuristics:
            cur_cell = Cell.from_position(*pos, scale=self._scale)
            cur_risk = math.sqrt(self.planner.cell_risk(cur_cell))
            if cur_risk >= cfg.risk_threshold_risk_based_speedup:
                self.speed = cfg.default_speed
            else:
                self.speed = cfg.default_speed + (cfg.max_speed - cfg.default_speed) * (1 - cur_risk)
        else:
            self.speed = cfg.default_speed

        length = math.hypot(*vec)
        new_len = length if length < 1.0 else self.speed
        if length > 0.0:
            vec = [c / length * new_len for c in vec]
        else:
            vec = [0.0, 0.0, 0.0]

        position = tuple(p + v for p, v in zip(pos, vec))
        return Pose(position, self.current_goal.yaw, self.current_goal.frame_id)

    def is_close_to_goal(self) -> bool:
        return math.dist(self.current_goal.position, self.last_pos.position) < self.speed
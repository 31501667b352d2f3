"""Local obstacle-avoidance planner: goal line projection, histogram outputs and speed limits."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

ALPHA_RES = 6
GRID_LENGTH_Z = 360 // ALPHA_RES
GRID_LENGTH_E = 180 // ALPHA_RES

Vector3 = tuple[float, float, float]


@dataclass
class FOV:
    """Field of view of one camera, all angles in degrees."""

    yaw_deg: float = 0.0
    pitch_deg: float = 0.0
    h_fov_deg: float = 0.0
    v_fov_deg: float = 0.0


@dataclass
class Px4Params:
    """Flight controller parameters relevant to the local planner."""

    param_mpc_auto_mode: int = 1
    param_mpc_jerk_min: float = math.nan
    param_mpc_jerk_max: float = math.nan
    param_mpc_acc_up_max: float = math.nan
    param_mpc_z_vel_max_up: float = math.nan
    param_mpc_acc_down_max: float = math.nan
    param_mpc_z_vel_max_dn: float = math.nan
    param_mpc_acc_hor: float = math.nan
    param_mpc_xy_cruise: float = math.nan
    param_mpc_tko_speed: float = math.nan
    param_mpc_land_speed: float = math.nan
    param_cp_dist: float = math.nan


@dataclass
class AvoidanceOutput:
    """What the local planner hands on to the waypoint generation."""

    cruise_velocity: float
    last_path_time: float | None = None
    path_node_positions: list[Vector3] = field(default_factory=list)


def _vec3(values: Sequence[float]) -> Vector3:
    x, y, z = values
    return (float(x), float(y), float(z))


class LocalPlanner:
    """Holds the vehicle state and goal of the local planner and derives its outputs."""

    def __init__(self, max_sensor_range: float = 15.0, min_sensor_range: float = 0.2) -> None:
        self.max_sensor_range = float(max_sensor_range)
        self.min_sensor_range = float(min_sensor_range)
        self.position: Vector3 = (0.0, 0.0, 0.0)
        self.velocity: Vector3 = (0.0, 0.0, 0.0)
        self.yaw_fcu_frame_deg = 0.0
        self.pitch_fcu_frame_deg = 0.0
        self.goal: Vector3 = (0.0, 0.0, 0.0)
        self.prev_goal: Vector3 = (0.0, 0.0, 0.0)
        self.fov_fcu_frame: list[FOV] = []
        self.px4 = Px4Params()
        self.mission_item_speed = math.nan
        self.last_path_time: float | None = None
        self.path_node_positions: list[Vector3] = []

    def set_state(self, position: Sequence[float], velocity: Sequence[float], yaw_deg: float, pitch_deg: float) -> None:
        """Update the vehicle position, velocity and attitude."""
        self.position = _vec3(position)
        self.velocity = _vec3(velocity)
        self.yaw_fcu_frame_deg = float(yaw_deg)
        self.pitch_fcu_frame_deg = float(pitch_deg)

    def set_goal(self, goal: Sequence[float]) -> None:
        self.goal = _vec3(goal)

    def set_previous_goal(self, prev_goal: Sequence[float]) -> None:
        self.prev_goal = _vec3(prev_goal)

    def set_fov(self, index: int, fov: FOV) -> None:
        """Replace the field of view at index, or append it if index is past the end."""
        if index < len(self.fov_fcu_frame):
            self.fov_fcu_frame[index] = fov
        else:
            self.fov_fcu_frame.append(fov)

    def set_default_px4_parameters(self) -> None:
        self.px4 = Px4Params(
            param_mpc_auto_mode=1,
            param_mpc_jerk_min=8.0,
            param_mpc_jerk_max=20.0,
            param_mpc_acc_up_max=10.0,
            param_mpc_z_vel_max_up=3.0,
            param_mpc_acc_down_max=10.0,
            param_mpc_z_vel_max_dn=1.0,
            param_mpc_acc_hor=5.0,
            param_mpc_xy_cruise=3.0,
            param_mpc_tko_speed=1.0,
            param_mpc_land_speed=0.7,
            param_cp_dist=4.0,
        )

    def closest_point_on_line(self) -> Vector3:
        """Projection of the vehicle onto the previous-goal-to-goal line, at goal altitude.

        Returns the goal itself when the vehicle is already near the line or the
        two goals coincide in XY.
        """
        gx, gy, gz = self.goal
        px, py, _ = self.prev_goal
        dx, dy = gx - px, gy - py
        norm = math.hypot(dx, dy)
        ux, uy = (dx / norm, dy / norm) if norm > 0.0 else (dx, dy)
        tx, ty = self.position[0] - px, self.position[1] - py
        proj = ux * tx + uy * ty
        closest = (px + ux * proj, py + uy * proj, gz)
        off_line = math.hypot(self.position[0] - closest[0], self.position[1] - closest[1])
        if off_line < self.px4.param_mpc_xy_cruise or norm < 0.001:
            return self.goal
        return closest

    def _check_histogram(self, distances: Sequence[Sequence[float]]) -> np.ndarray:
        hist = np.asarray(distances, dtype=np.float32)
        if hist.shape != (GRID_LENGTH_E, GRID_LENGTH_Z):
            raise ValueError(f"histogram must have shape {(GRID_LENGTH_E, GRID_LENGTH_Z)}, got {hist.shape}")
        return hist

    def histogram_image(self, distances: Sequence[Sequence[float]]) -> list[int]:
        """Grey-scale image of a distance histogram, top elevation row first."""
        hist = self._check_histogram(distances)
        depth = np.where(hist > 0.01, 255.0 - 255.0 * hist / self.max_sensor_range, 0.0)
        depth = np.clip(depth, 0.0, 255.0)
        return [int(v) for v in depth[::-1].ravel()]

    def obstacle_distance_ranges(
        self, distances: Sequence[Sequence[float]], in_fov: Callable[[int], bool]
    ) -> list[float]:
        """Per-azimuth obstacle ranges starting from local north, NaN outside the field of view.

        Bins without a measurement are reported just beyond the maximum sensor range.
        """
        hist = self._check_histogram(distances)
        ranges = []
        for i in range(GRID_LENGTH_Z):
            j = (i + GRID_LENGTH_Z // 2) % GRID_LENGTH_Z
            dist = float(hist[0, j])
            if in_fov(j):
                ranges.append(dist if dist > self.min_sensor_range else self.max_sensor_range + 0.01)
            else:
                ranges.append(math.nan)
        return ranges

    @property
    def angle_increment(self) -> float:
        """Angular width of one azimuth bin in radians."""
        return ALPHA_RES * math.pi / 180.0

    def avoidance_output(self) -> AvoidanceOutput:
        """Cruise speed limited so the vehicle can stop within the sensor range."""
        acc = self.px4.param_mpc_acc_hor
        accel_ramp_time = acc / self.px4.param_mpc_jerk_max
        b = 2.0 * acc * accel_ramp_time
        c = 2.0 * -acc * self.max_sensor_range
        limited_speed = (-b + math.sqrt(b * b - 4.0 * c)) / 2.0
        speed = self.mission_item_speed if math.isfinite(self.mission_item_speed) else self.px4.param_mpc_xy_cruise
        return AvoidanceOutput(
            cruise_velocity=min(speed, limited_speed),
            last_path_time=self.last_path_time,
            path_node_positions=list(self.path_node_positions),
        )
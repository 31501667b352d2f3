import math

import numpy as np
import pytest

from dronepath.local_planner import (
    FOV,
    GRID_LENGTH_E,
    GRID_LENGTH_Z,
    LocalPlanner,
)


@pytest.fixture
def planner():
    p = LocalPlanner(max_sensor_range=15.0, min_sensor_range=0.2)
    p.set_default_px4_parameters()
    return p


def empty_hist():
    return np.zeros((GRID_LENGTH_E, GRID_LENGTH_Z))


def test_default_px4_parameters(planner):
    assert planner.px4.param_mpc_xy_cruise == 3.0
    assert planner.px4.param_mpc_jerk_max == 20.0
    assert planner.px4.param_cp_dist == 4.0


def test_set_state_stores_values(planner):
    planner.set_state((1, 2, 3), (0.5, 0, 0), 30.0, 5.0)
    assert planner.position == (1.0, 2.0, 3.0)
    assert planner.velocity == (0.5, 0.0, 0.0)
    assert planner.yaw_fcu_frame_deg == 30.0
    assert planner.pitch_fcu_frame_deg == 5.0


def test_set_fov_replaces_or_appends(planner):
    planner.set_fov(0, FOV(34.0, 12.0, 90.0, 60.0))
    planner.set_fov(5, FOV(80.0, 12.0, 45.0, 60.0))
    assert len(planner.fov_fcu_frame) == 2
    planner.set_fov(0, FOV(0.0, 0.0, 60.0, 40.0))
    assert len(planner.fov_fcu_frame) == 2
    assert planner.fov_fcu_frame[0].h_fov_deg == 60.0


def test_closest_point_same_goals_is_goal(planner):
    planner.set_goal((10.0, 0.0, 5.0))
    planner.set_previous_goal((10.0, 0.0, 2.0))
    planner.set_state((0.0, 20.0, 1.0), (0, 0, 0), 0.0, 0.0)
    assert planner.closest_point_on_line() == (10.0, 0.0, 5.0)


def test_closest_point_far_from_line_is_projection(planner):
    planner.set_previous_goal((0.0, 0.0, 0.0))
    planner.set_goal((10.0, 0.0, 5.0))
    planner.set_state((5.0, 10.0, 1.0), (0, 0, 0), 0.0, 0.0)
    x, y, z = planner.closest_point_on_line()
    assert x == pytest.approx(5.0)
    assert y == pytest.approx(0.0)
    assert z == 5.0


def test_closest_point_near_line_is_goal(planner):
    planner.set_previous_goal((0.0, 0.0, 0.0))
    planner.set_goal((10.0, 0.0, 5.0))
    planner.set_state((5.0, 1.0, 1.0), (0, 0, 0), 0.0, 0.0)
    assert planner.closest_point_on_line() == (10.0, 0.0, 5.0)


def test_histogram_image_empty(planner):
    image = planner.histogram_image(empty_hist())
    assert len(image) == GRID_LENGTH_E * GRID_LENGTH_Z
    assert set(image) == {0}


def test_histogram_image_top_row_first_and_clamped(planner):
    hist = empty_hist()
    hist[GRID_LENGTH_E - 1, 0] = 1.0
    hist[0, 0] = 100.0
    image = planner.histogram_image(hist)
    assert 0 < image[0] <= 255
    assert image[(GRID_LENGTH_E - 1) * GRID_LENGTH_Z] == 0
    assert sum(1 for v in image if v) == 1


def test_histogram_image_closer_is_brighter(planner):
    hist = empty_hist()
    hist[0, 0] = 2.0
    hist[0, 1] = 8.0
    image = planner.histogram_image(hist)
    last_row = (GRID_LENGTH_E - 1) * GRID_LENGTH_Z
    assert image[last_row] > image[last_row + 1]


def test_histogram_shape_is_checked(planner):
    with pytest.raises(ValueError):
        planner.histogram_image(np.zeros((3, 3)))


def test_obstacle_ranges_outside_fov_are_nan(planner):
    ranges = planner.obstacle_distance_ranges(empty_hist(), lambda j: False)
    assert len(ranges) == GRID_LENGTH_Z
    assert all(math.isnan(r) for r in ranges)


def test_obstacle_ranges_empty_bins_beyond_range(planner):
    ranges = planner.obstacle_distance_ranges(empty_hist(), lambda j: True)
    assert all(r == pytest.approx(15.01) for r in ranges)


def test_obstacle_ranges_rotated_to_north(planner):
    hist = empty_hist()
    hist[0, GRID_LENGTH_Z // 2] = 5.0
    ranges = planner.obstacle_distance_ranges(hist, lambda j: True)
    assert ranges[0] == 5.0
    assert ranges[1] == pytest.approx(15.01)


def test_avoidance_output_uses_cruise_speed(planner):
    out = planner.avoidance_output()
    assert out.cruise_velocity == pytest.approx(3.0)


def test_avoidance_output_mission_speed(planner):
    planner.mission_item_speed = 2.0
    assert planner.avoidance_output().cruise_velocity == pytest.approx(2.0)


def test_avoidance_output_short_range_limits_speed(planner):
    planner.max_sensor_range = 0.0
    assert planner.avoidance_output().cruise_velocity == pytest.approx(0.0)
    planner.max_sensor_range = 1.0
    small = planner.avoidance_output().cruise_velocity
    planner.max_sensor_range = 2.0
    larger = planner.avoidance_output().cruise_velocity
    assert 0.0 < small < larger < 3.0


def test_avoidance_output_copies_path(planner):
    planner.path_node_positions = [(1.0, 2.0, 3.0)]
    planner.last_path_time = 4.0
    out = planner.avoidance_output()
    assert out.path_node_positions == [(1.0, 2.0, 3.0)]
    assert out.last_path_time == 4.0
    out.path_node_positions.append((0.0, 0.0, 0.0))
    assert len(planner.path_node_positions) == 1
import math

import pytest

from dronepath.cell import Cell, GoalCell, angle_to_range


@pytest.mark.parametrize("scale", [0.5, 1.0, 2.0])
@pytest.mark.parametrize("cell", [Cell(0, 0, 0), Cell(3, -4, 2), Cell(-7, 5, -1)])
def test_center_round_trip(cell, scale):
    assert Cell.from_position(*cell.center(scale), scale=scale) == cell


def test_from_position_floors_negative_values():
    cell = Cell.from_position(-0.1, 0.9, 0.0)
    assert cell.x < 0
    assert cell.y == 0


def test_str_format():
    assert str(Cell(1, -2, 3)) == "(1,-2,3)"


def test_equality_ordering_and_hash():
    a, b = Cell(1, 2, 3), Cell(1, 2, 4)
    assert a == Cell(1, 2, 3)
    assert a < b
    assert sorted([b, a]) == [a, b]
    assert len({a, Cell(1, 2, 3), b}) == 2


def test_subtraction_of_same_cell_is_zero():
    a = Cell(4, -3, 2)
    assert (a - a).index == (0, 0, 0)


def test_manhattan_dist_to_own_center_is_zero():
    c = Cell(2, 3, 1)
    assert c.manhattan_dist(*c.center()) == 0.0


def test_distances_are_symmetric_and_ordered():
    a, b = Cell(0, 0, 0), Cell(3, 1, 2)
    assert a.distance_3d(b) == pytest.approx(b.distance_3d(a))
    assert a.distance_2d(b) <= a.distance_3d(b)
    assert a.distance_2d(b) <= a.diag_distance_2d(b) <= a.manhattan_dist(*b.center())
    assert a.diag_distance_3d(b) >= a.diag_distance_2d(b)


def test_diag_distance_straight_and_diagonal():
    a = Cell(0, 0, 0)
    assert a.diag_distance_2d(Cell(5, 0, 0)) == pytest.approx(a.distance_2d(Cell(5, 0, 0)))
    assert a.diag_distance_2d(Cell(1, 1, 0)) == pytest.approx(1.41421356237)


def test_angle_of_cell():
    assert Cell(0, 1, 1).angle() == pytest.approx(math.pi / 2)


def test_neighbor_from_yaw_moves_in_yaw_direction():
    c = Cell(2, 2, 1)
    forward = c.neighbor_from_yaw(0.0)
    assert forward.x > c.x
    assert forward.y == c.y
    assert forward.z == c.z
    left = c.neighbor_from_yaw(math.pi / 2)
    assert left.y > c.y
    assert left.x == c.x


def test_neighbors_are_adjacent_and_distinct():
    c = Cell(1, 1, 1)
    neighbors = c.neighbors()
    assert len(set(neighbors)) == len(neighbors)
    assert c not in neighbors
    for n in neighbors:
        diff = n - c
        assert max(abs(v) for v in diff.index) == 1


def test_diagonal_neighbors_are_subset():
    c = Cell(0, 0, 0)
    diagonals = c.diagonal_neighbors()
    assert set(diagonals) <= set(c.neighbors())
    for n in diagonals:
        diff = n - c
        assert abs(diff.x) == 1 and abs(diff.y) == 1 and diff.z == 0


def test_flow_neighbors_radius_zero_is_cell_itself():
    c = Cell(5, -2, 3)
    assert c.flow_neighbors(0) == [c]


def test_flow_neighbors_radius_one_are_face_neighbors():
    c = Cell(1, 2, 3)
    faces = {n for n in c.neighbors() if sum(abs(v) for v in (n - c).index) == 1}
    result = c.flow_neighbors(1)
    assert len(result) == len(set(result))
    assert set(result) == {c} | faces


def test_flow_neighbors_are_symmetric():
    c = Cell(0, 0, 0)
    cells = set(c.flow_neighbors(3))
    assert all(Cell(-n.x, -n.y, -n.z) in cells for n in cells)
    assert all(abs(n.x) <= 3 for n in cells)


@pytest.mark.parametrize("angle", [0.0, 1.0, -2.5, 7.0, -10.0, 100.0])
def test_angle_to_range(angle):
    wrapped = angle_to_range(angle)
    assert -math.pi <= wrapped < math.pi
    assert math.cos(wrapped) == pytest.approx(math.cos(angle))
    assert math.sin(wrapped) == pytest.approx(math.sin(angle), abs=1e-9)


def test_angle_to_range_infinite_is_nan():
    assert math.isnan(angle_to_range(math.inf))


def test_goal_cell_equals_cell_with_same_indices():
    goal = GoalCell(1, 2, 3, radius=2.0)
    assert goal == Cell(1, 2, 3)
    assert hash(goal) == hash(Cell(1, 2, 3))
    assert goal.cell == Cell(1, 2, 3)


def test_goal_cell_from_position():
    goal = GoalCell.from_position(2.3, -1.2, 4.7, radius=3.0, is_temporary=True)
    assert goal == Cell.from_position(2.3, -1.2, 4.7)
    assert goal.radius == 3.0
    assert goal.is_temporary is True


def test_goal_within_position_radius():
    goal = GoalCell(0, 0, 0, radius=1.0)
    assert goal.within_position_radius(goal.center())
    assert not goal.within_position_radius((10.0, 10.0, 10.0))
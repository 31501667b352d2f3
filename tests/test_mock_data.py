from dronepath.mock_data import (
    CLOUD_SIZE,
    DEFAULT_POINTS,
    CloudPoint,
    MockScene,
    create_wall,
    format_path,
)


def test_create_wall_shape():
    wall = create_wall(5, 5, 6)
    assert len(wall) == 11 * 7
    assert {p[0] for p in wall} == {5.5}
    assert min(p[1] for p in wall) == -4.5
    assert max(p[1] for p in wall) == 5.5
    assert min(p[2] for p in wall) == 0.5
    assert max(p[2] for p in wall) == 6.5


def test_create_wall_order():
    wall = create_wall(2, 1, 1)
    assert wall[0] == (2.5, -0.5, 0.5)
    assert wall[1] == (2.5, -0.5, 1.5)
    assert wall[2] == (2.5, 0.5, 0.5)


def test_format_path():
    assert format_path([(1, 2, 3), (0.5, 2.5, 1.5)]) == "(1.00, 2.00, 3.00) -> (0.50, 2.50, 1.50) -> "
    assert format_path([]) == ""


def test_scene_without_wall_keeps_default_points():
    scene = MockScene(wall=None)
    assert scene.points == list(DEFAULT_POINTS)
    assert scene.points[0] == (5.5, -0.5, 0.5)


def test_scene_default_builds_wall():
    scene = MockScene()
    assert scene.points == create_wall(5, 5, 6)


def test_rebuild_wall_replaces_points():
    scene = MockScene()
    scene.rebuild_wall(3, 0, 0)
    assert scene.points == [(3.5, 0.5, 0.5)]


def test_clicked_point_and_position():
    scene = MockScene()
    point = scene.clicked_point()
    assert point.position == (8.5, 4.5, 1.5)
    assert point.frame_id == "/world"
    pose = scene.vehicle_position()
    assert pose.position == (0.5, 2.5, 1.5)
    assert pose.yaw == 0.0
    assert pose.frame_id == "/world"


def test_point_cloud_content_and_padding():
    scene = MockScene(wall=None)
    cloud = scene.point_cloud()
    assert len(cloud) == CLOUD_SIZE
    assert cloud[0] == CloudPoint(5.5, -0.5, 0.5, 40, 200, 120)
    assert all(p == CloudPoint() for p in cloud[len(DEFAULT_POINTS):])


def test_point_cloud_larger_than_default_size():
    scene = MockScene()
    scene.rebuild_wall(1, 10, 10)
    cloud = scene.point_cloud()
    assert len(cloud) == len(scene.points)
    assert [(p.x, p.y, p.z) for p in cloud] == scene.points
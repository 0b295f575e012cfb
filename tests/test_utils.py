import logging

import numpy as np

from starloc.state.ego_pose import EgoPose
from starloc.utils.logging_utils import add_file_handler, setup_logger
from starloc.utils.simulation import observe_landmarks, render_landmarks
from starloc.utils.trajectory import load_trajectory, save_trajectory


def test_trajectory_round_trip(tmp_path, true_pose):
    """Trajectories survive a write and read in TUM format."""
    trajectory = [(0.0, EgoPose()), (1.5, true_pose)]
    path = tmp_path / "trajectory.txt"

    save_trajectory(trajectory, path)
    loaded = load_trajectory(path)

    assert [t for t, _ in loaded] == [0.0, 1.5]
    for (_, expected), (_, pose) in zip(trajectory, loaded):
        assert np.allclose(pose.position, expected.position, atol=1e-6)
        assert np.allclose(pose.orientation, expected.orientation, atol=1e-6)


def test_tum_column_order(tmp_path):
    """The quaternion is written as qx qy qz qw."""
    pose = EgoPose(np.array([1.0, 2.0, 3.0]), np.array([0.5, 0.5, -0.5, 0.5]))
    path = tmp_path / "trajectory.txt"

    save_trajectory([(2.0, pose)], path)

    values = [float(v) for v in path.read_text().split()]
    assert values == [2.0, 1.0, 2.0, 3.0, 0.5, -0.5, 0.5, 0.5]


def test_ego_pose_yaw():
    """Heading is the rotation about the world z axis."""
    angle = np.radians(30.0)
    pose = EgoPose(orientation=np.array([np.cos(angle / 2), 0.0, 0.0, np.sin(angle / 2)]))

    assert np.isclose(pose.yaw(), angle)
    copy = pose.copy()
    copy.position[0] = 5.0
    assert pose.position[0] == 0.0


def test_observe_landmarks_visibility(catalog, camera, true_pose):
    """Only markers completely inside the image are observed."""
    assert sorted(observe_landmarks(catalog, true_pose, camera)) == sorted(catalog)

    far = true_pose.copy()
    far.position[:2] += [20.0, 20.0]
    assert observe_landmarks(catalog, far, camera) == {}

    above = true_pose.copy()
    above.position[2] = 10.0
    assert observe_landmarks(catalog, above, camera) == {}


def test_render_landmarks(catalog, camera, true_pose):
    """Rendered frames have a bright pixel at every observed point."""
    image = render_landmarks(catalog, true_pose, camera)

    assert image.shape == (camera.height, camera.width)
    for uv in observe_landmarks(catalog, true_pose, camera).values():
        for u, v in np.round(uv).astype(int):
            assert image[v, u] == 255


def test_logger_setup(tmp_path):
    """The package logger gets one stream handler and an optional file."""
    logger = setup_logger("starloc.test", logging.DEBUG)
    setup_logger("starloc.test", logging.DEBUG)
    assert len(logger.handlers) == 1

    log_path = tmp_path / "run.log"
    add_file_handler(logger, str(log_path))
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()

    assert "hello" in log_path.read_text()


def test_render_keeps_subpixel_centers(catalog, camera, true_pose):
    """The brightness centroid of a rendered disc lies at the projected point."""
    image = render_landmarks(catalog, true_pose, camera, radius=2).astype(np.float64)

    for uv in observe_landmarks(catalog, true_pose, camera).values():
        for u, v in uv:
            col, row = int(round(u)), int(round(v))
            rows, cols = np.mgrid[row - 5 : row + 6, col - 5 : col + 6]
            window = image[row - 5 : row + 6, col - 5 : col + 6].copy()
            # neighbouring grid points are 8 px away
            window[np.hypot(cols - u, rows - v) > 3.5] = 0.0
            centroid = np.array(
                [(window * cols).sum(), (window * rows).sum()]
            ) / window.sum()
            assert np.linalg.norm(centroid - [u, v]) < 0.2

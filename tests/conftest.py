import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from starloc.config.config import LandmarkFinderConfig, LocalizerConfig
from starloc.config.map_config import landmark_points
from starloc.datatypes import CameraIntrinsics, Landmark, LandmarkHypothesis
from starloc.geometry import transform_to_global_points
from starloc.modules.id_decoding import encode_id
from starloc.modules.point_detection import PointDetector
from starloc.state.ego_pose import EgoPose
from starloc.utils.simulation import observe_landmarks

# valid ids: corner and orientation cells unset
CATALOG_IDS = (0x0206, 0x0460, 0x2012)


class GroundTruthDetector(PointDetector):
    """Returns fixed points, independent of the image."""

    def __init__(self, points: np.ndarray) -> None:
        self.points = np.asarray(points, dtype=np.float64).reshape(-1, 2)

    def detect(self, image: np.ndarray) -> np.ndarray:
        return self.points.copy()


def make_hypothesis(landmark_id, corners, dim=4):
    """Perfect hypothesis of an id for the given corner pixels (x0y0, x1y0, x1y1)."""
    corners = np.asarray(corners, dtype=np.float64)
    local = encode_id(landmark_id, dim) / (dim - 1)
    id_points = transform_to_global_points(corners[0], corners[1], corners[2], local)
    return LandmarkHypothesis(corners=corners, id_points=id_points)


def pose_from_euler(position, yaw_pitch_roll_deg) -> EgoPose:
    x, y, z, w = Rotation.from_euler("ZYX", yaw_pitch_roll_deg, degrees=True).as_quat()
    return EgoPose(np.asarray(position, dtype=np.float64), np.array([w, x, y, z]))


@pytest.fixture
def finder_config():
    return LandmarkFinderConfig()


@pytest.fixture
def localizer_config():
    return LocalizerConfig()


@pytest.fixture
def camera():
    return CameraIntrinsics(fx=400.0, fy=400.0, cx=320.0, cy=240.0, width=640, height=480)


@pytest.fixture
def catalog():
    positions = (
        (-0.8, 0.6, 4.5),
        (0.4, 0.5, 4.5),
        (-0.2, -0.4, 4.5),
    )
    return {
        landmark_id: Landmark(
            landmark_id,
            np.array(position),
            points=landmark_points(landmark_id),
        )
        for landmark_id, position in zip(CATALOG_IDS, positions)
    }


@pytest.fixture
def true_pose():
    return pose_from_euler([0.1, -0.05, 0.5], [20.0, 3.0, -2.0])


@pytest.fixture
def true_planar_pose():
    return pose_from_euler([0.1, -0.05, 0.0], [20.0, 0.0, 0.0])


@pytest.fixture
def ground_truth_detector():
    def _make(catalog, pose, camera):
        observed = observe_landmarks(catalog, pose, camera)
        return GroundTruthDetector(np.vstack(list(observed.values())))

    return _make


@pytest.fixture
def hypothesis_for():
    return make_hypothesis

"""Passive data structures for the landmark localization pipeline."""

from dataclasses import dataclass, field

import numpy as np

from .geometry import landmark_to_world

# ceiling landmarks face down: 180 deg about x, (w, x, y, z)
CEILING_ORIENTATION = (0.0, 1.0, 0.0, 0.0)


@dataclass
class LandmarkHypothesis:
    """
    An unverified landmark candidate found inside one point cluster.

    Attributes:
        corners: Corner pixels (3, 2) in the order x0y0, x1y0, x1y1.
        id_points: Remaining cluster pixels (N, 2), candidates for id bits.
        score: Shape score of the corner triangle.

    """

    corners: np.ndarray
    id_points: np.ndarray
    score: float = 0.0


@dataclass
class IdentifiedLandmark:
    """
    A landmark observation whose id was resolved against the catalog.

    Attributes:
        landmark_id: Numeric id, unique within one detection pass.
        corners: Corner pixels (3, 2) in the order x0y0, x1y0, x1y1.
        id_points: Pixels (N, 2) of the bright identity points.

    """

    landmark_id: int
    corners: np.ndarray
    id_points: np.ndarray

    @property
    def num_points(self) -> int:
        return len(self.corners) + len(self.id_points)


@dataclass
class Landmark:
    """
    A catalog entry: a physical marker with known pose in the world.

    Attributes:
        landmark_id: Numeric id encoded by the point pattern.
        position: Marker origin in world coordinates (3,).
        orientation: Unit quaternion (w, x, y, z) of the marker frame.
        points: Marker points (N, 3) in the marker frame, corners first.

    """

    landmark_id: int
    position: np.ndarray
    orientation: np.ndarray = field(
        default_factory=lambda: np.array(CEILING_ORIENTATION, dtype=np.float64)
    )
    points: np.ndarray = field(default_factory=lambda: np.empty((0, 3)))

    def world_points(self) -> np.ndarray:
        """Marker points (N, 3) transformed into the world frame."""
        return landmark_to_world(self.points, self.position, self.orientation)


@dataclass
class CameraIntrinsics:
    """
    Pinhole camera parameters.

    Attributes:
        fx, fy: Focal lengths in pixels.
        cx, cy: Principal point in pixels.
        width, height: Image size, 0 if unknown.

    """

    fx: float
    fy: float
    cx: float
    cy: float
    width: int = 0
    height: int = 0

    def as_array(self) -> np.ndarray:
        """Parameter block [fx, fy, cx, cy] for the optimizer."""
        return np.array([self.fx, self.fy, self.cx, self.cy], dtype=np.float64)

    def matrix(self) -> np.ndarray:
        """3x3 camera matrix K."""
        return np.array(
            [[self.fx, 0.0, self.cx], [0.0, self.fy, self.cy], [0.0, 0.0, 1.0]]
        )

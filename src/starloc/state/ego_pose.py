from dataclasses import dataclass, field

import numpy as np
from scipy.spatial.transform import Rotation


@dataclass
class EgoPose:
    """
    Pose of the camera in the world.

    The arrays are used as optimizer parameter blocks and are updated in
    place, so they must not be replaced while a problem refers to them.
    """

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))  # [x, y, z]
    orientation: np.ndarray = field(
        default_factory=lambda: np.array([1.0, 0.0, 0.0, 0.0])
    )  # quaternion [w, x, y, z]

    def rotation(self) -> Rotation:
        w, x, y, z = self.orientation
        return Rotation.from_quat([x, y, z, w])

    def rotation_matrix(self) -> np.ndarray:
        """3x3 rotation from camera to world coordinates."""
        return self.rotation().as_matrix()

    def yaw(self) -> float:
        """Heading around the world z axis in radians."""
        return float(self.rotation().as_euler("ZYX")[0])

    def copy(self) -> "EgoPose":
        return EgoPose(self.position.copy(), self.orientation.copy())

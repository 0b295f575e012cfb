"""Pose refinement from identified landmarks."""

import logging

import numpy as np

from ..config.config import LocalizerConfig
from ..datatypes import CameraIntrinsics, IdentifiedLandmark, Landmark
from ..state.ego_pose import EgoPose
from .optimizer import CeresProblem, ResidualProblem, SolveSummary

logger = logging.getLogger(__name__)


class PointCountMismatchError(ValueError):
    """Observed landmark points do not match the map."""

    def __init__(self, landmark_id: int, observed: int, expected: int) -> None:
        super().__init__(
            f"point count does not match! {observed} (observed) vs. "
            f"{expected} (map)  ID: {landmark_id}"
        )
        self.landmark_id = landmark_id
        self.observed = observed
        self.expected = expected


class CeresLocalizer:
    """
    Estimates the ego pose by minimizing the reprojection error of the
    landmark corners.

    The pose persists between frames and warm starts the next solve. The
    residuals are rebuilt for every frame.
    """

    def __init__(
        self,
        landmarks: dict[int, Landmark],
        camera: CameraIntrinsics,
        config: LocalizerConfig | None = None,
        problem: ResidualProblem | None = None,
    ) -> None:
        """
        Initialize the localizer.

        Args:
            landmarks: Landmark map by id.
            camera: Camera intrinsics, held constant.
            config: Localizer configuration.
            problem: Solver backend, pyceres by default.

        """
        self.config = config or LocalizerConfig()
        self.landmarks = landmarks
        self.problem = problem or CeresProblem(self.config)

        # convert landmark points to world coordinates once
        self.world_points = {
            landmark_id: lm.world_points() for landmark_id, lm in landmarks.items()
        }

        # assumption: camera is below all landmarks
        all_z = [pts[:, 2].min() for pts in self.world_points.values() if len(pts)]
        self.z_upper_bound = (
            min(all_z) - self.config.camera_height_margin if all_z else np.inf
        )

        self.ego_pose = EgoPose()
        self.camera_intrinsics = camera.as_array()
        self.is_initialized = False
        self.summary: SolveSummary | None = None

    def update_pose(self, img_landmarks: list[IdentifiedLandmark]) -> EgoPose:
        """
        Refine the ego pose with the landmarks of one frame.

        Args:
            img_landmarks: Identified landmarks of the current frame.

        Returns:
            The updated ego pose (the same object across calls).

        Raises:
            PointCountMismatchError: If an observation does not fit its map
                entry. Nothing is changed in that case.

        """
        if not img_landmarks:
            logger.warning("Localizer received empty landmarks list")
            return self.ego_pose

        self._check_point_counts(img_landmarks)

        if not self.is_initialized:
            self._initialize_position(img_landmarks)

        # delete old data
        self.problem.clear_residuals()

        # add new data
        self._add_residual_blocks(img_landmarks)

        if not self.is_initialized:
            self._set_constraints()
            self.is_initialized = True

        self.summary = self.problem.solve()
        if not self.summary.converged:
            logger.warning("Pose optimization did not converge: %s", self.summary.message)
        logger.debug(
            "pose update landmarks=%d cost %.4f -> %.4f",
            len(img_landmarks),
            self.summary.initial_cost,
            self.summary.final_cost,
        )
        return self.ego_pose

    def _check_point_counts(self, img_landmarks: list[IdentifiedLandmark]) -> None:
        for img_lm in img_landmarks:
            map_points = self.world_points.get(img_lm.landmark_id)
            expected = 0 if map_points is None else len(map_points)
            if img_lm.num_points != expected:
                error = PointCountMismatchError(
                    img_lm.landmark_id, img_lm.num_points, expected
                )
                logger.error("%s", error)
                raise error

    def _initialize_position(self, img_landmarks: list[IdentifiedLandmark]) -> None:
        xy = np.array(
            [self.landmarks[lm.landmark_id].position[:2] for lm in img_landmarks]
        )
        self.ego_pose.position[:2] = xy.mean(axis=0)

    def _add_residual_blocks(self, img_landmarks: list[IdentifiedLandmark]) -> None:
        # corners only
        for img_lm in img_landmarks:
            map_points = self.world_points[img_lm.landmark_id]
            for k, corner in enumerate(img_lm.corners):
                self.problem.add_reprojection_residual(
                    corner,
                    map_points[k],
                    self.ego_pose.position,
                    self.ego_pose.orientation,
                    self.camera_intrinsics,
                )

    def _set_constraints(self) -> None:
        pose = self.ego_pose
        self.problem.set_parameter_block_constant(self.camera_intrinsics)

        if self.config.estimate_2d_pose:
            # x, y and heading only
            pose.position[2] = 0.0
            pose.orientation[1] = 0.0
            pose.orientation[2] = 0.0
            self.problem.set_subset_manifold(pose.position, [2])
            self.problem.set_subset_manifold(pose.orientation, [1, 2])
            return

        # quaternion: 4 variables, 3 dof
        self.problem.set_quaternion_manifold(pose.orientation)

        # prevents the local minimum with all points behind the camera
        if np.isfinite(self.z_upper_bound):
            # the start has to be feasible
            pose.position[2] = min(pose.position[2], self.z_upper_bound)
            self.problem.set_parameter_upper_bound(pose.position, 2, self.z_upper_bound)

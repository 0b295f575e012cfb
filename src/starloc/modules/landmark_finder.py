"""Landmark recognition: bright points to identified landmarks."""

import logging
from collections.abc import Iterable

import cv2
import numpy as np

from ..config.config import LandmarkFinderConfig
from ..datatypes import IdentifiedLandmark, LandmarkHypothesis
from .clustering import find_clusters
from .corner_detection import find_corners
from .landmark_matching import get_ids
from .point_detection import BlobPointDetector, PointDetector

logger = logging.getLogger(__name__)


def to_gray_image(image: np.ndarray | None) -> np.ndarray:
    """
    Convert an image to a single channel uint8 image.

    Raises:
        ValueError: If the image is missing, empty or has an unsupported shape.

    """
    if image is None:
        raise ValueError("Input data is invalid: no image")
    image = np.asarray(image)
    if image.size == 0:
        raise ValueError("Input data is invalid: empty image")

    if image.ndim == 3 and image.shape[2] == 1:
        image = image[:, :, 0]

    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        return image
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)

    raise ValueError(f"Input data is invalid: unsupported shape {image.shape}")


class LandmarkFinder:
    """
    Detects landmarks in images.

    The intermediate results of the last call (gray image, points, clusters,
    hypotheses) are kept for inspection and visualization.
    """

    def __init__(
        self,
        valid_ids: Iterable[int],
        config: LandmarkFinderConfig | None = None,
        point_detector: PointDetector | None = None,
    ) -> None:
        """
        Initialize the finder.

        Args:
            valid_ids: Ids of all landmarks in the map.
            config: Finder configuration.
            point_detector: Point detector, a blob detector by default.

        """
        self.config = config or LandmarkFinderConfig()
        self.valid_ids = frozenset(int(i) for i in valid_ids)
        self.point_detector = point_detector or BlobPointDetector(self.config.blob)

        self.gray_image: np.ndarray | None = None
        self.points = np.empty((0, 2))
        self.clusters: list[np.ndarray] = []
        self.hypotheses: list[LandmarkHypothesis] = []

    def detect_landmarks(self, image: np.ndarray) -> list[IdentifiedLandmark]:
        """
        Find all landmarks in an image.

        Args:
            image: Grayscale or BGR(A) image.

        Returns:
            Identified landmarks with pairwise distinct ids.

        """
        cfg = self.config
        self.gray_image = to_gray_image(image)

        # bright points
        self.points = np.asarray(
            self.point_detector.detect(self.gray_image), dtype=np.float64
        ).reshape(-1, 2)

        # groups of points which could be landmarks
        self.clusters = find_clusters(
            self.points,
            cfg.max_radius_for_cluster,
            cfg.min_points_per_landmark,
            cfg.max_points_per_landmark,
        )

        # corner hypotheses, clusters in detection order
        self.hypotheses = []
        for cluster in self.clusters:
            hypotheses, _best_score = find_corners(cluster, cfg)
            self.hypotheses.extend(hypotheses)

        landmarks = get_ids(
            self.hypotheses,
            self.valid_ids,
            self.gray_image,
            cfg.grid_dim,
            cfg.intensity_threshold,
        )

        logger.debug(
            "points=%d clusters=%d hypotheses=%d landmarks=%d",
            len(self.points),
            len(self.clusters),
            len(self.hypotheses),
            len(landmarks),
        )
        return landmarks

from abc import ABC, abstractmethod

import cv2
import numpy as np

from ..config.config import BlobDetectorConfig


class PointDetector(ABC):
    """Finds bright marker points in a grayscale image."""

    @abstractmethod
    def detect(self, image: np.ndarray) -> np.ndarray:
        """
        Detect point centroids.

        Args:
            image: Single channel uint8 image.

        Returns:
            (N, 2) array of pixel coordinates [u, v].

        """
        pass


class BlobPointDetector(PointDetector):
    """Point detection with OpenCV's SimpleBlobDetector."""

    def __init__(self, config: BlobDetectorConfig | None = None) -> None:
        self.config = config or BlobDetectorConfig()
        self._detector = cv2.SimpleBlobDetector_create(self._make_params())

    def _make_params(self) -> cv2.SimpleBlobDetector_Params:
        cfg = self.config
        params = cv2.SimpleBlobDetector_Params()
        params.minThreshold = cfg.min_threshold
        params.maxThreshold = cfg.max_threshold
        params.thresholdStep = cfg.threshold_step
        params.minRepeatability = cfg.min_repeatability
        params.minDistBetweenBlobs = cfg.min_dist_between_blobs

        params.filterByArea = cfg.filter_by_area
        params.minArea = cfg.min_area
        params.maxArea = cfg.max_area

        params.filterByColor = cfg.filter_by_color
        params.blobColor = cfg.blob_color

        # light points are too small for shape filters
        params.filterByCircularity = False
        params.filterByConvexity = False
        params.filterByInertia = False
        return params

    def detect(self, image: np.ndarray) -> np.ndarray:
        keypoints = self._detector.detect(image)
        return np.array([kp.pt for kp in keypoints], dtype=np.float64).reshape(-1, 2)

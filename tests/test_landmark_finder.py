import cv2
import numpy as np
import pytest

from starloc.config.config import BlobDetectorConfig
from starloc.modules.landmark_finder import LandmarkFinder, to_gray_image
from starloc.modules.point_detection import BlobPointDetector
from starloc.utils.simulation import render_landmarks


def test_blob_detector_finds_dots():
    """Bright discs are detected at their centers."""
    image = np.zeros((100, 100), dtype=np.uint8)
    centers = np.array([[20.0, 20.0], [50.0, 60.0], [80.0, 30.0]])
    for u, v in centers:
        cv2.circle(image, (int(u), int(v)), 4, 255, -1)

    points = BlobPointDetector(BlobDetectorConfig()).detect(image)

    assert points.shape == (3, 2)
    for center in centers:
        assert np.min(np.linalg.norm(points - center, axis=1)) < 1.0


def test_blob_detector_empty_image():
    """A black image has no points."""
    points = BlobPointDetector().detect(np.zeros((50, 50), dtype=np.uint8))

    assert points.shape == (0, 2)


def test_gray_conversion():
    """Color, single channel and float images become 2D uint8 images."""
    bgr = np.zeros((10, 12, 3), dtype=np.uint8)
    bgr[..., 2] = 200

    assert to_gray_image(bgr).shape == (10, 12)
    assert to_gray_image(np.zeros((10, 12, 1), dtype=np.uint8)).shape == (10, 12)
    assert to_gray_image(np.zeros((10, 12, 4), dtype=np.uint8)).shape == (10, 12)

    gray = to_gray_image(np.full((4, 4), 300.0))
    assert gray.dtype == np.uint8
    assert gray.max() == 255


@pytest.mark.parametrize(
    "image",
    [None, np.zeros((0, 0), dtype=np.uint8), np.zeros((4, 4, 2), dtype=np.uint8), np.zeros(5)],
)
def test_invalid_image_rejected(image, finder_config):
    """Missing or malformed images fail the whole detection call."""
    finder = LandmarkFinder([0x0206], finder_config)

    with pytest.raises(ValueError):
        finder.detect_landmarks(image)


def test_finder_with_ground_truth_points(
    catalog, camera, true_pose, finder_config, ground_truth_detector
):
    """All visible markers are found with their ids and full point sets."""
    image = render_landmarks(catalog, true_pose, camera)
    finder = LandmarkFinder(
        catalog.keys(), finder_config, ground_truth_detector(catalog, true_pose, camera)
    )

    landmarks = finder.detect_landmarks(image)

    assert sorted(lm.landmark_id for lm in landmarks) == sorted(catalog)
    for lm in landmarks:
        assert lm.num_points == len(catalog[lm.landmark_id].points)
    assert len(finder.clusters) == 3
    assert finder.gray_image is not None


def test_finder_with_blob_detector(catalog, camera, true_pose, finder_config):
    """The default detector finds the markers of a rendered frame."""
    image = render_landmarks(catalog, true_pose, camera, radius=2)
    finder = LandmarkFinder(catalog.keys(), finder_config)

    landmarks = finder.detect_landmarks(image)

    assert sorted(lm.landmark_id for lm in landmarks) == sorted(catalog)


def test_ids_are_unique_per_frame(catalog, camera, true_pose, finder_config, ground_truth_detector):
    """Each catalog id is assigned at most once per frame."""
    image = render_landmarks(catalog, true_pose, camera)
    detector = ground_truth_detector(catalog, true_pose, camera)
    # the same frame seen twice, shifted far enough to form separate clusters
    detector.points = np.vstack([detector.points, detector.points + [0.0, 600.0]])
    finder = LandmarkFinder(catalog.keys(), finder_config, detector)

    landmarks = finder.detect_landmarks(np.pad(image, ((0, 600), (0, 0))))

    ids = [lm.landmark_id for lm in landmarks]
    assert len(ids) == len(set(ids)) == len(catalog)


def test_unknown_ids_are_ignored(catalog, camera, true_pose, finder_config, ground_truth_detector):
    """Markers not in the valid id set are dropped."""
    image = render_landmarks(catalog, true_pose, camera)
    known = sorted(catalog)[:2]
    finder = LandmarkFinder(
        known, finder_config, ground_truth_detector(catalog, true_pose, camera)
    )

    landmarks = finder.detect_landmarks(image)

    assert sorted(lm.landmark_id for lm in landmarks) == known

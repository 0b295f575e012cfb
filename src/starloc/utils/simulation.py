"""Synthetic frames of a landmark map seen from a known pose."""

import cv2
import numpy as np

from ..datatypes import CameraIntrinsics, Landmark
from ..geometry import project_points
from ..state.ego_pose import EgoPose

# fractional bits of the sub-pixel disc centers
SUBPIXEL_SHIFT = 4


def observe_landmarks(
    landmarks: dict[int, Landmark],
    pose: EgoPose,
    camera: CameraIntrinsics,
) -> dict[int, np.ndarray]:
    """
    Ground truth pixel positions of all fully visible landmarks.

    Args:
        landmarks: Landmark map by id.
        pose: Camera pose.
        camera: Camera intrinsics, width and height bound the visible area.

    Returns:
        (N, 2) pixel positions per landmark id, in map point order.

    """
    observed = {}
    for landmark_id, lm in landmarks.items():
        uv, in_front = project_points(
            lm.world_points(), pose.position, pose.orientation, camera.as_array()
        )
        if not np.all(in_front):
            continue
        if camera.width and camera.height:
            inside = (
                (uv[:, 0] >= 0)
                & (uv[:, 0] < camera.width)
                & (uv[:, 1] >= 0)
                & (uv[:, 1] < camera.height)
            )
            if not np.all(inside):
                continue
        observed[landmark_id] = uv
    return observed


def render_landmarks(
    landmarks: dict[int, Landmark],
    pose: EgoPose,
    camera: CameraIntrinsics,
    radius: int = 3,
    intensity: int = 255,
) -> np.ndarray:
    """
    Render bright discs at every visible landmark point on a black image.

    Disc centers keep their sub-pixel position, edges are anti-aliased.

    Returns:
        uint8 image of size camera.height x camera.width.

    """
    image = np.zeros((camera.height, camera.width), dtype=np.uint8)
    scale = 1 << SUBPIXEL_SHIFT
    for uv in observe_landmarks(landmarks, pose, camera).values():
        for u, v in np.round(uv * scale).astype(int):
            cv2.circle(
                image,
                (int(u), int(v)),
                radius * scale,
                intensity,
                -1,
                lineType=cv2.LINE_AA,
                shift=SUBPIXEL_SHIFT,
            )
    return image

"""Geometric calculations."""

import numpy as np


def transform_to_local_points(
    x0y0: np.ndarray, x1y0: np.ndarray, x1y1: np.ndarray, points: np.ndarray
) -> np.ndarray:
    """
    Map image points into the unit square spanned by three landmark corners.

    Args:
        x0y0: Corner mapped to (0, 0).
        x1y0: Corner mapped to (1, 0).
        x1y1: Corner mapped to (1, 1).
        points: (N, 2) image points.

    Returns:
        (N, 2) points in local landmark coordinates.

    Raises:
        np.linalg.LinAlgError: If the corners are collinear.

    """
    x0y0 = np.asarray(x0y0, dtype=np.float64)
    v_x = np.asarray(x1y0, dtype=np.float64) - x0y0
    v_y = np.asarray(x1y1, dtype=np.float64) - np.asarray(x1y0, dtype=np.float64)

    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    transform = np.column_stack([v_x, v_y])
    return np.linalg.solve(transform, (points - x0y0).T).T


def transform_to_global_points(
    x0y0: np.ndarray, x1y0: np.ndarray, x1y1: np.ndarray, points: np.ndarray
) -> np.ndarray:
    """
    Inverse of transform_to_local_points.

    Args:
        x0y0: Corner at local (0, 0).
        x1y0: Corner at local (1, 0).
        x1y1: Corner at local (1, 1).
        points: (N, 2) local landmark coordinates.

    Returns:
        (N, 2) image points.

    """
    x0y0 = np.asarray(x0y0, dtype=np.float64)
    v_x = np.asarray(x1y0, dtype=np.float64) - x0y0
    v_y = np.asarray(x1y1, dtype=np.float64) - np.asarray(x1y0, dtype=np.float64)

    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return x0y0 + points[:, :1] * v_x + points[:, 1:] * v_y


def cross_2d(a: np.ndarray, b: np.ndarray) -> float:
    """z component of the cross product of two 2D vectors."""
    return float(a[0] * b[1] - a[1] * b[0])


def quaternion_to_rotation(q: np.ndarray) -> np.ndarray:
    """
    Rotation matrix of a (not necessarily normalized) quaternion.

    Args:
        q: Quaternion (w, x, y, z).

    Returns:
        3x3 rotation matrix of q / |q|.

    """
    w, x, y, z = q
    scale = w * w + x * x + y * y + z * z
    return _quaternion_matrix(w, x, y, z) / scale


def _quaternion_matrix(w: float, x: float, y: float, z: float) -> np.ndarray:
    # homogeneous of degree 2, equals |q|^2 * R(q)
    return np.array(
        [
            [w * w + x * x - y * y - z * z, 2 * (x * y - w * z), 2 * (x * z + w * y)],
            [2 * (x * y + w * z), w * w - x * x + y * y - z * z, 2 * (y * z - w * x)],
            [2 * (x * z - w * y), 2 * (y * z + w * x), w * w - x * x - y * y + z * z],
        ]
    )


def inverse_rotation_jacobian(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Derivative of R(q)^T v with respect to the four quaternion components.

    Args:
        q: Quaternion (w, x, y, z).
        v: 3D vector.

    Returns:
        3x4 Jacobian.

    """
    w, x, y, z = q
    scale = w * w + x * x + y * y + z * z
    m = _quaternion_matrix(w, x, y, z)

    dm = (
        2 * np.array([[w, -z, y], [z, w, -x], [-y, x, w]]),
        2 * np.array([[x, y, z], [y, -x, -w], [z, w, -x]]),
        2 * np.array([[-y, x, w], [x, y, z], [-w, z, -y]]),
        2 * np.array([[-z, -w, x], [w, -z, y], [x, y, z]]),
    )
    rotated = m.T @ v
    columns = [
        dm_i.T @ v / scale - rotated * (2 * q_i) / scale**2
        for dm_i, q_i in zip(dm, (w, x, y, z))
    ]
    return np.column_stack(columns)


def landmark_to_world(
    points: np.ndarray, position: np.ndarray, orientation: np.ndarray
) -> np.ndarray:
    """
    Transform marker-frame points into the world frame.

    Args:
        points: (N, 3) points in the marker frame.
        position: Marker origin in the world (3,).
        orientation: Marker orientation quaternion (w, x, y, z).

    Returns:
        (N, 3) world points.

    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    R = quaternion_to_rotation(np.asarray(orientation, dtype=np.float64))
    return points @ R.T + np.asarray(position, dtype=np.float64)


def project_points(
    points_world: np.ndarray,
    position: np.ndarray,
    orientation: np.ndarray,
    intrinsics: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Project world points into a pinhole camera placed at the ego pose.

    Args:
        points_world: (N, 3) world points.
        position: Camera position in the world (3,).
        orientation: Camera orientation quaternion (w, x, y, z).
        intrinsics: [fx, fy, cx, cy].

    Returns:
        Tuple containing:
        - uv: (N, 2) pixel coordinates.
        - in_front: Boolean mask (N,) for points with positive depth.

    """
    fx, fy, cx, cy = intrinsics
    R = quaternion_to_rotation(np.asarray(orientation, dtype=np.float64))
    delta = np.asarray(points_world, dtype=np.float64).reshape(-1, 3) - position
    # p_cam = R^T (p_world - position), row-wise
    p_cam = delta @ R

    z = p_cam[:, 2]
    in_front = z > 0
    safe_z = np.where(in_front, z, 1.0)
    u = fx * p_cam[:, 0] / safe_z + cx
    v = fy * p_cam[:, 1] / safe_z + cy
    return np.stack([u, v], axis=1), in_front

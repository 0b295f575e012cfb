from pathlib import Path

import numpy as np

from ..state.ego_pose import EgoPose


def save_trajectory(trajectory: list[tuple[float, EgoPose]], filename: str | Path) -> None:
    """
    Save trajectory to file in TUM format (timestamp tx ty tz qx qy qz qw).

    Args:
        trajectory: List of (timestamp, pose) pairs
        filename: Output filename

    """
    with Path(filename).open("w") as f:
        for timestamp, pose in trajectory:
            t = pose.position
            w, x, y, z = pose.orientation
            f.write(
                f"{timestamp:.6f} {t[0]:.6f} {t[1]:.6f} {t[2]:.6f} "
                f"{x:.6f} {y:.6f} {z:.6f} {w:.6f}\n"
            )


def load_trajectory(filename: str | Path) -> list[tuple[float, EgoPose]]:
    """
    Load trajectory from file.

    Args:
        filename: Input filename

    Returns:
        trajectory: List of (timestamp, pose) pairs

    """
    trajectory = []
    data = np.loadtxt(filename, ndmin=2)

    for row in data:
        qx, qy, qz, qw = row[4:8]
        pose = EgoPose(
            position=row[1:4].copy(),
            orientation=np.array([qw, qx, qy, qz]),
        )
        trajectory.append((float(row[0]), pose))
    return trajectory

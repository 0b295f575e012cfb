"""Landmark map and camera files."""

from pathlib import Path
from typing import Any

import numpy as np
import yaml

from ..datatypes import CEILING_ORIENTATION, CameraIntrinsics, Landmark
from ..modules.id_decoding import corner_cells, encode_id, is_valid_id

DEFAULT_GRID_DISTANCE = 0.08  # m between neighbouring grid points


def landmark_points(
    landmark_id: int, grid_distance: float = DEFAULT_GRID_DISTANCE, dim: int = 4
) -> np.ndarray:
    """
    Marker points of an id in the marker frame.

    Args:
        landmark_id: Numeric landmark id.
        grid_distance: Spacing of the point grid.
        dim: Grid dimension.

    Returns:
        (N, 3) points: the corners x0y0, x1y0, x1y1, then one point per id bit.

    Raises:
        ValueError: If the id sets a corner or the orientation cell.

    """
    if not is_valid_id(landmark_id, dim):
        raise ValueError(f"Landmark id {landmark_id:#x} uses corner or orientation cells")

    cells = np.vstack([np.array(corner_cells(dim)), encode_id(landmark_id, dim)])
    points = np.zeros((len(cells), 3))
    points[:, :2] = cells * grid_distance
    return points


def _parse_id(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 0)
    return int(value)


def _vector(value: Any, size: int, name: str, landmark_id: int) -> np.ndarray:
    vec = np.asarray(value, dtype=np.float64).reshape(-1)
    if vec.shape != (size,):
        raise ValueError(f"Landmark {landmark_id:#x}: {name} needs {size} values")
    return vec


def _load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    with p.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML config root must be a mapping")
    return data


def read_map_config(path: str | Path) -> dict[int, Landmark]:
    """
    Read the landmark map.

    Args:
        path: YAML map file.

    Returns:
        Landmarks by id.

    Raises:
        ValueError: On duplicate ids, malformed entries or invalid ids.

    """
    raw = _load_yaml(path)
    grid_distance = float(raw.get("grid_distance", DEFAULT_GRID_DISTANCE))
    dim = int(raw.get("grid_dim", 4))

    landmarks: dict[int, Landmark] = {}
    for entry in raw.get("landmarks") or []:
        if not isinstance(entry, dict) or "id" not in entry:
            raise ValueError(f"Malformed landmark entry: {entry!r}")

        landmark_id = _parse_id(entry["id"])
        if landmark_id in landmarks:
            raise ValueError(f"Duplicate landmark id {landmark_id:#x}")
        if not is_valid_id(landmark_id, dim):
            raise ValueError(f"Landmark id {landmark_id:#x} uses corner or orientation cells")

        position = _vector(entry.get("position"), 3, "position", landmark_id)
        orientation = _vector(
            entry.get("orientation", CEILING_ORIENTATION), 4, "orientation", landmark_id
        )
        orientation /= np.linalg.norm(orientation)

        if "points" in entry:
            points = np.asarray(entry["points"], dtype=np.float64).reshape(-1, 3)
        else:
            points = landmark_points(landmark_id, grid_distance, dim)

        landmarks[landmark_id] = Landmark(landmark_id, position, orientation, points)

    return landmarks


def write_map_config(
    path: str | Path,
    landmarks: dict[int, Landmark],
    grid_distance: float = DEFAULT_GRID_DISTANCE,
    dim: int = 4,
) -> None:
    """
    Write a landmark map readable by read_map_config.

    Point layouts that differ from the generated one are written explicitly.

    """
    entries = []
    for landmark_id in sorted(landmarks):
        lm = landmarks[landmark_id]
        entry: dict[str, Any] = {
            "id": f"{landmark_id:#06x}",
            "position": [float(v) for v in lm.position],
            "orientation": [float(v) for v in lm.orientation],
        }
        generated = landmark_points(landmark_id, grid_distance, dim)
        if lm.points.shape != generated.shape or not np.allclose(lm.points, generated):
            entry["points"] = [[float(v) for v in p] for p in lm.points]
        entries.append(entry)

    data = {"grid_distance": grid_distance, "grid_dim": dim, "landmarks": entries}
    with Path(path).open("w", encoding="utf-8") as fp:
        yaml.safe_dump(data, fp, sort_keys=False)


def read_cam_config(path: str | Path) -> CameraIntrinsics:
    """
    Read pinhole intrinsics (fx, fy, cx, cy, optional width and height).

    """
    raw = _load_yaml(path)
    try:
        return CameraIntrinsics(
            fx=float(raw["fx"]),
            fy=float(raw["fy"]),
            cx=float(raw["cx"]),
            cy=float(raw["cy"]),
            width=int(raw.get("width", 0)),
            height=int(raw.get("height", 0)),
        )
    except KeyError as exc:
        raise ValueError(f"Camera config misses {exc.args[0]}") from exc

"""
Landmark id codec.

A landmark is a DIM x DIM grid of possible light points. Three grid cells
hold the corners and the fourth corner cell stays dark so that the
orientation is unique. Every other cell encodes one bit of the id:

        x -->
    y   x0y0  .     .     x1y0
    |   .     .     .     .
    v   .     .     .     .
        (dark).     .     x1y1

The cell (x, y) contributes (1 << x) << (DIM * y).
"""

import numpy as np

from ..datatypes import IdentifiedLandmark, LandmarkHypothesis
from ..geometry import transform_to_global_points, transform_to_local_points


def cell_value(x: int, y: int, dim: int = 4) -> int:
    """Bit value encoded by the grid cell (x, y)."""
    return (1 << x) << (dim * y)


def corner_cells(dim: int = 4) -> tuple[tuple[int, int], ...]:
    """Grid cells of the corners x0y0, x1y0, x1y1."""
    return ((0, 0), (dim - 1, 0), (dim - 1, dim - 1))


def reserved_cells(dim: int = 4) -> tuple[tuple[int, int], ...]:
    """Corner cells plus the dark orientation cell (0, DIM - 1)."""
    return corner_cells(dim) + ((0, dim - 1),)


def id_cells(dim: int = 4) -> list[tuple[int, int]]:
    """All grid cells that may carry an id bit, in bit order."""
    reserved = reserved_cells(dim)
    return [
        (x, y)
        for y in range(dim)
        for x in range(dim)
        if (x, y) not in reserved
    ]


def is_valid_id(landmark_id: int, dim: int = 4) -> bool:
    """True if the id leaves the corner and orientation cells unset."""
    if landmark_id < 0 or landmark_id >= 1 << (dim * dim):
        return False
    reserved_bits = sum(cell_value(x, y, dim) for x, y in reserved_cells(dim))
    return landmark_id & reserved_bits == 0


def encode_id(landmark_id: int, dim: int = 4) -> np.ndarray:
    """
    Grid cells lit by an id.

    Args:
        landmark_id: Numeric landmark id.
        dim: Grid dimension.

    Returns:
        (N, 2) integer cells (x, y), in ascending bit order.

    """
    cells = [
        (bit % dim, bit // dim)
        for bit in range(dim * dim)
        if (landmark_id >> bit) & 1
    ]
    return np.array(cells, dtype=np.int64).reshape(-1, 2)


def decode_local_points(local_points: np.ndarray, dim: int = 4) -> int:
    """
    Sum the bit values of local points snapped onto the grid.

    Args:
        local_points: (N, 2) points in unit-square landmark coordinates.
        dim: Grid dimension.

    Returns:
        The candidate id.

    """
    landmark_id = 0
    for p in np.asarray(local_points, dtype=np.float64).reshape(-1, 2):
        n_x = int(np.clip(np.floor(0.5 + (dim - 1) * p[0]), 0, dim - 1))
        n_y = int(np.clip(np.floor(0.5 + (dim - 1) * p[1]), 0, dim - 1))
        landmark_id += cell_value(n_x, n_y, dim)
    return landmark_id


def calculate_id_forward(
    hypothesis: LandmarkHypothesis, valid_ids: set[int], dim: int = 4
) -> IdentifiedLandmark | None:
    """
    Decode the id from the already detected identity points.

    A matching id is removed from valid_ids.

    Args:
        hypothesis: Corner hypothesis with its identity point candidates.
        valid_ids: Ids not yet assigned in this pass (consumed on success).
        dim: Grid dimension.

    Returns:
        The identified landmark, or None if the id is not available.

    """
    corners = hypothesis.corners
    local_points = transform_to_local_points(
        corners[0], corners[1], corners[2], hypothesis.id_points
    )
    landmark_id = decode_local_points(local_points, dim)

    if landmark_id not in valid_ids:
        return None

    valid_ids.remove(landmark_id)
    return IdentifiedLandmark(
        landmark_id=landmark_id,
        corners=np.array(corners, dtype=np.float64),
        id_points=np.array(hypothesis.id_points, dtype=np.float64).reshape(-1, 2),
    )


def calculate_id_backward(
    hypothesis: LandmarkHypothesis,
    valid_ids: set[int],
    gray_image: np.ndarray,
    dim: int = 4,
    threshold: float = 128.0,
) -> IdentifiedLandmark | None:
    """
    Decode the id by sampling the image where id points are expected.

    A matching id is removed from valid_ids. The identity points of the
    result are the projected cells that were sampled bright.

    Args:
        hypothesis: Corner hypothesis, identity points are ignored.
        valid_ids: Ids not yet assigned in this pass (consumed on success).
        gray_image: Single channel image the hypothesis was found in.
        dim: Grid dimension.
        threshold: Intensity above which a cell counts as lit.

    Returns:
        The identified landmark, or None if the id is not available or an
        expected point lies outside the image.

    """
    cells = id_cells(dim)
    local_points = np.array(cells, dtype=np.float64) / (dim - 1)

    corners = hypothesis.corners
    image_points = transform_to_global_points(
        corners[0], corners[1], corners[2], local_points
    )

    height, width = gray_image.shape[:2]
    landmark_id = 0
    lit_points = []
    for (x, y), point in zip(cells, image_points):
        col = int(round(point[0]))
        row = int(round(point[1]))
        if col < 0 or row < 0 or col >= width or row >= height:
            # expected id point is not visible, no safe decision possible
            return None
        if gray_image[row, col] > threshold:
            landmark_id += cell_value(x, y, dim)
            lit_points.append(point)

    if landmark_id not in valid_ids:
        return None

    valid_ids.remove(landmark_id)
    return IdentifiedLandmark(
        landmark_id=landmark_id,
        corners=np.array(corners, dtype=np.float64),
        id_points=np.array(lit_points, dtype=np.float64).reshape(-1, 2),
    )

import numpy as np


def find_clusters(
    points: np.ndarray,
    radius: float,
    min_size: int,
    max_size: int,
) -> list[np.ndarray]:
    """
    Group points into clusters of nearby points.

    Points are handled in input order. A point joins the first cluster,
    searched from the newest to the oldest, that has a member within radius;
    otherwise it starts a new cluster. The result depends on the input order.

    Args:
        points: (N, 2) point coordinates.
        radius: Maximum distance to a cluster member.
        min_size: Smallest cluster size kept.
        max_size: Largest cluster size kept.

    Returns:
        List of (K, 2) arrays, one per kept cluster, in creation order.

    """
    clusters: list[list[np.ndarray]] = []

    for point in np.asarray(points, dtype=np.float64).reshape(-1, 2):
        # the last created cluster is the most likely one
        for cluster in reversed(clusters):
            if any(np.linalg.norm(member - point) <= radius for member in cluster):
                cluster.append(point)
                break
        else:
            clusters.append([point])

    return [
        np.array(cluster)
        for cluster in clusters
        if min_size <= len(cluster) <= max_size
    ]

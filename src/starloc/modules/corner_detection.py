import numpy as np

from ..config.config import LandmarkFinderConfig
from ..datatypes import LandmarkHypothesis
from ..geometry import cross_2d, transform_to_local_points


def _is_inside(values: np.ndarray, tolerance: float) -> bool:
    return bool(np.all((values >= -tolerance) & (values <= 1.0 + tolerance)))


def score_triangle(
    p_a: np.ndarray, p_s: np.ndarray, p_b: np.ndarray, config: LandmarkFinderConfig
) -> float:
    """
    Shape score of a corner triangle.

    Area and squared circumference are both quadratic in the landmark size,
    so their weighting does not depend on the scale.

    """
    v_sa = p_a - p_s
    v_sb = p_b - p_s
    v_ab = p_b - p_a

    cross_product = abs(cross_2d(v_sa, v_ab))
    length_triangle = np.linalg.norm(v_sa) + np.linalg.norm(v_sb) + np.linalg.norm(v_ab)

    return float(
        config.fw_cross_product * cross_product
        + config.fw_length_triangle * length_triangle * length_triangle
    )


def find_corners(
    points: np.ndarray, config: LandmarkFinderConfig
) -> tuple[list[LandmarkHypothesis], float]:
    """
    Find corner triples of a landmark inside one cluster.

    Every point is tried as the right-angle corner S together with each
    pair (H1, H2) of the other points. The pair is ordered so that the
    triangle (A, S, B) is right-handed and maps to the unit square corners
    (0, 0), (1, 0), (1, 1).

    Args:
        points: (N, 2) cluster points.
        config: Finder configuration.

    Returns:
        Tuple containing:
        - hypotheses: At most max_corner_hypotheses hypotheses, best first.
        - best_score: Score of the best triple, -inf if none was valid.

    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n_points = len(points)

    scored: list[LandmarkHypothesis] = []
    best_score = -np.inf

    for i in range(n_points):
        p_s = points[i]
        for j in range(n_points):
            for k in range(j + 1, n_points):
                if i == j or i == k:
                    continue

                # ensure rhs
                if cross_2d(points[j] - p_s, points[k] - p_s) < 0.0:
                    p_a, p_b = points[k], points[j]
                else:
                    p_a, p_b = points[j], points[k]

                v_sa = p_a - p_s
                v_sb = p_b - p_s
                norm_sa = np.linalg.norm(v_sa)
                norm_sb = np.linalg.norm(v_sb)
                if norm_sa == 0.0 or norm_sb == 0.0 or cross_2d(v_sa, v_sb) == 0.0:
                    continue

                # angle between secants
                cos_angle = np.dot(v_sa, v_sb) / (norm_sa * norm_sb)
                if abs(cos_angle) > config.corner_angle_tolerance:
                    continue

                # every cluster point has to lie within the landmark
                local_points = transform_to_local_points(p_a, p_s, p_b, points)
                if not _is_inside(local_points, config.point_inside_tolerance):
                    continue

                score = score_triangle(p_a, p_s, p_b, config)

                # keep hypotheses that are good relative to the current best
                if score < config.corner_hypotheses_cutoff * best_score:
                    continue

                id_points = np.delete(points, [i, j, k], axis=0)
                scored.append(
                    LandmarkHypothesis(
                        corners=np.array([p_a, p_s, p_b]),
                        id_points=id_points,
                        score=score,
                    )
                )
                best_score = max(best_score, score)

    # relative to the overall best
    kept = [h for h in scored if h.score >= config.corner_hypotheses_cutoff * best_score]
    kept.sort(key=lambda h: h.score, reverse=True)

    return kept[: config.max_corner_hypotheses], float(best_score)

from collections.abc import Iterable

import numpy as np

from ..datatypes import IdentifiedLandmark, LandmarkHypothesis
from .id_decoding import calculate_id_backward, calculate_id_forward


def get_ids(
    hypotheses: list[LandmarkHypothesis],
    valid_ids: Iterable[int],
    gray_image: np.ndarray,
    dim: int = 4,
    threshold: float = 128.0,
) -> list[IdentifiedLandmark]:
    """
    Resolve the ids of all landmark hypotheses of one frame.

    Hypotheses are handled greedily in the given order. First every
    hypothesis is decoded from its detected points; the ones that fail get
    a second chance by sampling the image. Each id is assigned at most once.

    Args:
        hypotheses: Hypotheses in cluster order, best first within a cluster.
        valid_ids: All catalog ids. Not modified.
        gray_image: Image the hypotheses were found in.
        dim: Grid dimension.
        threshold: Intensity threshold for image sampling.

    Returns:
        Forward decoded landmarks followed by backward decoded ones.

    """
    remaining = set(valid_ids)

    identified = []
    unresolved = []
    for hypothesis in hypotheses:
        landmark = calculate_id_forward(hypothesis, remaining, dim)
        if landmark is None:
            unresolved.append(hypothesis)
        else:
            identified.append(landmark)

    for hypothesis in unresolved:
        landmark = calculate_id_backward(hypothesis, remaining, gray_image, dim, threshold)
        if landmark is not None:
            identified.append(landmark)

    return identified

"""Vector helpers — unit normalisation and cosine similarity."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def normalize(vector: Sequence[float]) -> list[float]:
    """Scale *vector* to unit Euclidean length.

    A zero vector has no direction and is returned unchanged.
    """
    arr = np.asarray(vector, dtype=np.float64)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        return list(vector)
    return (arr / norm).tolist()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine of the angle between *a* and *b*.

    Returns ``0.0`` when the lengths differ or either vector is all zeros.
    """
    if len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))

"""
Vector Math - numeric primitives for embedding similarity.

Vectors of different lengths are compared over their shared prefix;
no error is raised on a length mismatch.
"""

from collections.abc import Sequence

import numpy as np

Vector = Sequence[float] | np.ndarray


def _as_array(vector: Vector) -> np.ndarray:
    return np.asarray(vector, dtype=float).ravel()


def dot(a: Vector, b: Vector) -> float:
    """Sum of element-wise products over ``min(len(a), len(b))`` elements."""
    arr_a = _as_array(a)
    arr_b = _as_array(b)
    n = min(arr_a.size, arr_b.size)
    return float(np.dot(arr_a[:n], arr_b[:n]))


def norm(a: Vector) -> float:
    """Euclidean norm."""
    return float(np.linalg.norm(_as_array(a)))


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    Cosine similarity of two vectors.

    Returns exactly 0.0 when either vector has zero norm.
    """
    norm_a = norm(a)
    norm_b = norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot(a, b) / (norm_a * norm_b)

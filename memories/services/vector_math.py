"""Fixed-dimension vector operations used for face comparison."""
from typing import Sequence, Tuple, Union

import numpy as np

from memories.core.exceptions import DegenerateVectorError, DimensionMismatchError

VectorLike = Union[np.ndarray, Sequence[float]]


def _as_float64(v: VectorLike) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).ravel()


def _scaled(a: np.ndarray) -> Tuple[np.ndarray, float]:
    """Split a vector into a copy with largest magnitude 1 and that magnitude.

    Squaring the components of very small or very large vectors under- or
    overflows; the scaled copy keeps every sum of squares within [1, D].
    """
    scale = float(np.max(np.abs(a))) if a.size else 0.0
    if scale == 0.0:
        return a, 0.0
    return a / scale, scale


def norm(v: VectorLike) -> float:
    """Euclidean norm, accumulated in double precision."""
    a, scale = _scaled(_as_float64(v))
    if scale == 0.0:
        return 0.0
    return scale * float(np.sqrt(np.dot(a, a)))


def is_degenerate(v: VectorLike) -> bool:
    """True when the vector has exactly zero norm."""
    return _scaled(_as_float64(v))[1] == 0.0


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine similarity between two vectors of equal dimension.

    Components are promoted to float64 before accumulating, so float32
    descriptors give the same result as their double precision copies.
    Each vector is rescaled first, so the result does not depend on the
    magnitude of the inputs.

    Args:
        a: First vector
        b: Second vector

    Returns:
        float: Similarity in [-1, 1]

    Raises:
        DimensionMismatchError: If the vectors differ in length
        DegenerateVectorError: If either vector has zero norm
    """
    x = _as_float64(a)
    y = _as_float64(b)
    if x.shape[0] != y.shape[0]:
        raise DimensionMismatchError(
            f"Cannot compare vectors of dimension {x.shape[0]} and {y.shape[0]}",
            details={"left": int(x.shape[0]), "right": int(y.shape[0])},
        )

    x, scale_x = _scaled(x)
    y, scale_y = _scaled(y)
    if scale_x == 0.0 or scale_y == 0.0:
        raise DegenerateVectorError("Cosine similarity is undefined for a zero vector")

    dot = float(np.dot(x, y))
    norm_x = float(np.dot(x, x))
    norm_y = float(np.dot(y, y))
    similarity = dot / np.sqrt(norm_x * norm_y)
    # rounding can push |similarity| a hair past 1
    return float(min(1.0, max(-1.0, similarity)))

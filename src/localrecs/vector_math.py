"""Dense vector algebra used by embeddings, profiles and scoring."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import EmptyCollectionError, InvalidArgumentError, require


def _as_vector(values, param_name: str) -> np.ndarray:
    require(values, param_name)
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1:
        raise InvalidArgumentError(param_name, f"expected a 1-D vector, got shape {vector.shape}")
    return vector


def _check_same_length(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape[0] != b.shape[0]:
        raise InvalidArgumentError(
            "vector_b",
            f"vectors must have the same length (vector_a: {a.shape[0]}, vector_b: {b.shape[0]})",
        )


def dot_product(vector_a, vector_b) -> float:
    a = _as_vector(vector_a, "vector_a")
    b = _as_vector(vector_b, "vector_b")
    _check_same_length(a, b)
    return float(np.dot(a, b))


def magnitude(vector) -> float:
    """L2 norm."""
    return float(np.linalg.norm(_as_vector(vector, "vector")))


def normalize(vector) -> np.ndarray:
    """
    Scale a vector to unit length.

    A zero vector has no direction and is returned as zeros; so is a vector
    whose magnitude is not finite.
    """
    v = _as_vector(vector, "vector")
    norm = np.linalg.norm(v)
    if norm == 0 or not np.isfinite(norm):
        return np.zeros_like(v)
    return v / norm


def cosine_similarity(vector_a, vector_b) -> float:
    """
    Cosine of the angle between two vectors.

    Raises InvalidArgumentError for empty or mismatched vectors. Returns 0.0
    when either vector has zero magnitude.
    """
    a = _as_vector(vector_a, "vector_a")
    b = _as_vector(vector_b, "vector_b")
    if a.shape[0] == 0:
        raise EmptyCollectionError("vector_a", "vector cannot be empty")
    _check_same_length(a, b)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    if not np.isfinite(similarity):
        return 0.0
    return similarity


def weighted_sum(vectors: Sequence, weights: Sequence[float]) -> np.ndarray:
    """Sum of ``vectors[i] * weights[i]``; all vectors must share one length."""
    require(vectors, "vectors")
    require(weights, "weights")
    if len(vectors) == 0:
        raise EmptyCollectionError("vectors", "vectors cannot be empty")
    if len(vectors) != len(weights):
        raise InvalidArgumentError(
            "weights",
            f"number of vectors and weights must match (vectors: {len(vectors)}, weights: {len(weights)})",
        )

    dimensions = _as_vector(vectors[0], "vectors").shape[0]
    for i, v in enumerate(vectors):
        length = np.asarray(v).shape[0]
        if length != dimensions:
            raise InvalidArgumentError(
                "vectors",
                f"all vectors must have the same length (expected {dimensions}, got {length} at index {i})",
            )

    matrix = np.vstack([np.asarray(v, dtype=np.float64) for v in vectors])
    return np.asarray(weights, dtype=np.float64) @ matrix


def scale(vector, scalar: float) -> np.ndarray:
    return _as_vector(vector, "vector") * float(scalar)

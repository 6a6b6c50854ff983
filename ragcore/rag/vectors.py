from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Vector math shared by the vector store and the semantic cache.

Embeddings travel through the public API as ``list[float]``; numpy is used
internally for the arithmetic.  Every binary operation rejects vectors of
different lengths with :class:`VectorValidationError`.
"""

import random
from collections.abc import Sequence

import numpy as np

from ragcore.exceptions import VectorValidationError

Embedding = list[float]


def _as_array(vector: Sequence[float]) -> np.ndarray:
    return np.asarray(vector, dtype=np.float64)


def _check_lengths(a: Sequence[float], b: Sequence[float]) -> None:
    if len(a) != len(b):
        raise VectorValidationError(
            f"Vectors must have the same length ({len(a)} != {len(b)})"
        )


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``(a·b) / (|a||b|)``, or 0.0 when either vector has zero magnitude."""
    _check_lengths(a, b)
    va, vb = _as_array(a), _as_array(b)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def vector_magnitude(vector: Sequence[float]) -> float:
    return float(np.linalg.norm(_as_array(vector)))


def normalize_vector(vector: Sequence[float]) -> Embedding:
    """Scale *vector* to unit length.  The zero vector is returned unchanged."""
    arr = _as_array(vector)
    magnitude = np.linalg.norm(arr)
    if magnitude == 0:
        return list(vector)
    return (arr / magnitude).tolist()


def add_vectors(a: Sequence[float], b: Sequence[float]) -> Embedding:
    _check_lengths(a, b)
    return (_as_array(a) + _as_array(b)).tolist()


def subtract_vectors(a: Sequence[float], b: Sequence[float]) -> Embedding:
    _check_lengths(a, b)
    return (_as_array(a) - _as_array(b)).tolist()


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    _check_lengths(a, b)
    return float(np.linalg.norm(_as_array(a) - _as_array(b)))


def manhattan_distance(a: Sequence[float], b: Sequence[float]) -> float:
    _check_lengths(a, b)
    return float(np.abs(_as_array(a) - _as_array(b)).sum())


def calculate_centroid(vectors: Sequence[Sequence[float]]) -> Embedding:
    """Return the element-wise mean of *vectors* (empty list for no input)."""
    if not vectors:
        return []
    dimensions = len(vectors[0])
    for vector in vectors:
        if len(vector) != dimensions:
            raise VectorValidationError("All vectors must have the same dimensions")
    return np.mean(np.asarray(vectors, dtype=np.float64), axis=0).tolist()


def find_diverse_vectors(
    vectors: Sequence[Sequence[float]],
    count: int,
    rng: random.Random | None = None,
) -> list[Sequence[float]]:
    """Greedily pick *count* vectors maximising the minimum cosine distance.

    The first vector is chosen at random (pass a seeded ``rng`` for
    reproducible picks); each further pick is the candidate whose nearest
    already-selected vector is farthest away.
    """
    if len(vectors) <= count:
        return list(vectors)

    rng = rng or random.Random()
    remaining = list(range(len(vectors)))
    selected = [remaining.pop(rng.randrange(len(remaining)))]

    while len(selected) < count and remaining:
        best_pos = -1
        max_min_distance = -1.0
        for pos, candidate in enumerate(remaining):
            min_distance = min(
                1.0 - cosine_similarity(vectors[candidate], vectors[chosen])
                for chosen in selected
            )
            if min_distance > max_min_distance:
                max_min_distance = min_distance
                best_pos = pos
        if best_pos < 0:
            break
        selected.append(remaining.pop(best_pos))

    return [vectors[i] for i in selected]

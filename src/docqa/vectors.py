from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from docqa.errors import DimensionMismatch


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between ``a`` and ``b``.

    Raises DimensionMismatch for vectors of different length. Returns 0.0 when
    either vector is empty or has zero magnitude.
    """
    if len(a) == 0 or len(b) == 0:
        return 0.0
    if len(a) != len(b):
        raise DimensionMismatch(len(a), len(b))

    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, score))


def pairwise_similarities(query: Sequence[float], vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """Cosine similarity of ``query`` against each row of ``vectors``. Returns shape (n,).

    Rows must all have the query's length; zero rows (and a zero query) score 0.0.
    """
    q = np.asarray(query, dtype=float)
    if not len(vectors):
        return np.zeros(0)
    matrix = np.vstack([np.asarray(v, dtype=float) for v in vectors])
    if matrix.shape[1] != q.shape[0]:
        raise DimensionMismatch(q.shape[0], matrix.shape[1])

    q_norm = np.linalg.norm(q)
    row_norms = np.linalg.norm(matrix, axis=1)
    denominator = row_norms * q_norm
    scores = np.zeros(matrix.shape[0])
    nonzero = denominator > 0.0
    scores[nonzero] = (matrix[nonzero] @ q) / denominator[nonzero]
    return np.clip(scores, -1.0, 1.0)


def parse_vector(raw: str | None) -> list[float]:
    """Parse ``"[0.1, 0.2]"`` into floats, skipping entries that are not finite numbers."""
    if not raw:
        return []
    cleaned = raw.strip()
    if cleaned.startswith("["):
        cleaned = cleaned[1:]
    if cleaned.endswith("]"):
        cleaned = cleaned[:-1]
    cleaned = cleaned.strip()
    if not cleaned:
        return []

    vector: list[float] = []
    for part in cleaned.split(","):
        try:
            value = float(part.strip())
        except ValueError:
            continue
        if math.isfinite(value):
            vector.append(value)
    return vector


def serialize_vector(vector: Sequence[float] | None) -> str:
    if not vector:
        return "[]"
    return "[" + ",".join(repr(float(x)) for x in vector) + "]"


def zero_vector(dimension: int) -> list[float]:
    return [0.0] * dimension

from __future__ import annotations

import random

import pytest

from docqa.errors import DimensionMismatch
from docqa.vectors import (
    cosine_similarity,
    pairwise_similarities,
    parse_vector,
    serialize_vector,
    zero_vector,
)


def test_identical_vectors_score_one() -> None:
    v = [0.3, -1.2, 4.0, 0.0001]
    assert cosine_similarity(v, v) == pytest.approx(1.0)


def test_orthogonal_and_opposite() -> None:
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)


def test_dimension_mismatch_raises() -> None:
    with pytest.raises(DimensionMismatch) as excinfo:
        cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])
    assert excinfo.value.left == 2
    assert excinfo.value.right == 3


def test_zero_or_empty_vectors_score_zero() -> None:
    assert cosine_similarity(zero_vector(3), [1.0, 2.0, 3.0]) == 0.0
    assert cosine_similarity([1.0, 2.0, 3.0], zero_vector(3)) == 0.0
    assert cosine_similarity([], []) == 0.0
    assert cosine_similarity([], [1.0]) == 0.0


def test_scores_stay_within_bounds() -> None:
    rng = random.Random(7)
    for _ in range(50):
        a = [rng.uniform(-5, 5) for _ in range(768)]
        b = [rng.uniform(-5, 5) for _ in range(768)]
        assert -1.0 <= cosine_similarity(a, b) <= 1.0


def test_parse_skips_malformed_entries() -> None:
    assert parse_vector("[0.1, bad, 0.3]") == [0.1, 0.3]
    assert parse_vector("[1, nan, inf, 2e-3]") == [1.0, 0.002]


@pytest.mark.parametrize("raw", [None, "", "[]", "  [ ]  "])
def test_parse_empty_input(raw: str | None) -> None:
    assert parse_vector(raw) == []


def test_serialize_round_trip() -> None:
    rng = random.Random(11)
    vector = [rng.uniform(-1, 1) for _ in range(64)] + [0.0, -0.0, 1e-12, 123456.789]
    text = serialize_vector(vector)
    assert text.startswith("[") and text.endswith("]")
    assert parse_vector(text) == vector


def test_serialize_empty() -> None:
    assert serialize_vector([]) == "[]"
    assert serialize_vector(None) == "[]"


def test_pairwise_matches_single_cosine() -> None:
    rng = random.Random(3)
    query = [rng.uniform(-1, 1) for _ in range(32)]
    rows = [[rng.uniform(-1, 1) for _ in range(32)] for _ in range(6)]

    scores = pairwise_similarities(query, rows)

    assert scores.shape == (6,)
    for row, score in zip(rows, scores):
        assert score == pytest.approx(cosine_similarity(query, row))


def test_pairwise_zero_rows_score_zero() -> None:
    scores = pairwise_similarities([1.0, 0.0], [[0.0, 0.0], [2.0, 0.0], [-3.0, 0.0]])
    assert scores.tolist() == pytest.approx([0.0, 1.0, -1.0])
    assert pairwise_similarities(zero_vector(2), [[1.0, 1.0]]).tolist() == [0.0]


def test_pairwise_no_rows() -> None:
    assert pairwise_similarities([1.0, 2.0], []).shape == (0,)


def test_pairwise_dimension_mismatch_raises() -> None:
    with pytest.raises(DimensionMismatch) as excinfo:
        pairwise_similarities([1.0, 2.0], [[1.0, 2.0, 3.0], [0.0, 1.0, 0.0]])
    assert (excinfo.value.left, excinfo.value.right) == (2, 3)

from __future__ import annotations

import logging

from docqa.chunk_store import ChunkStore
from docqa.embeddings import Embedder
from docqa.errors import DimensionMismatch, InvalidArgument
from docqa.models import Chunk, ScoredChunk
from docqa.vectors import pairwise_similarities, parse_vector

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5


def score_chunks(chunks: list[Chunk], question_vector: list[float]) -> list[ScoredChunk]:
    """Score every chunk against the question; best first, ties by ascending chunk index."""
    vectors = [parse_vector(chunk.embedding) for chunk in chunks]
    scores = [0.0] * len(chunks)
    scorable: list[int] = []
    for position, (chunk, vector) in enumerate(zip(chunks, vectors)):
        if not vector or not question_vector:
            continue
        if len(vector) != len(question_vector):
            logger.error(
                "Stored embedding for document %s chunk %d does not match the question vector dimension",
                chunk.document_id,
                chunk.index,
            )
            raise DimensionMismatch(len(question_vector), len(vector))
        scorable.append(position)

    if scorable:
        similarities = pairwise_similarities(question_vector, [vectors[p] for p in scorable])
        for position, score in zip(scorable, similarities):
            scores[position] = float(score)

    scored = [ScoredChunk(chunk=chunk, score=score) for chunk, score in zip(chunks, scores)]
    return sorted(scored, key=lambda s: (-s.score, s.chunk.index))


def retrieve_chunks(
    document_id: str,
    question: str,
    chunk_store: ChunkStore,
    embedder: Embedder,
    k: int = DEFAULT_TOP_K,
) -> list[ScoredChunk]:
    """Top-``k`` chunks of a document for ``question``.

    Returns an empty list when the document has no chunks; callers fall back to
    the document's full text in that case.
    """
    if k <= 0:
        raise InvalidArgument(f"k must be > 0, got: {k}")

    chunks = chunk_store.chunks_for(document_id)
    if not chunks:
        return []

    question_vector = embedder.embed(question)
    return score_chunks(chunks, question_vector)[:k]

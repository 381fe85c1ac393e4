"""Vector math and the on-disk embedding encoding.

Embeddings are stored as a raw little-endian float32 array: 4 bytes per
component, no header, length implied by the blob size. Writers and readers
must both go through encode_embedding / decode_embedding.
"""

import math
import struct
from typing import Iterable, Optional, Sequence

from artaka.entities import KnowledgeItem, SearchResult
from artaka.observability.logging import get_logger

logger = get_logger(__name__)

FLOAT32_SIZE = 4


class EmbeddingDecodeError(ValueError):
    """Raised when a stored embedding blob cannot be decoded."""


def encode_embedding(vector: Sequence[float]) -> bytes:
    """Pack a vector as little-endian float32."""
    return struct.pack(f"<{len(vector)}f", *vector)


def decode_embedding(blob: bytes) -> list[float]:
    """Unpack a little-endian float32 blob.

    Raises:
        EmbeddingDecodeError: If the blob is empty or not a whole number of floats
    """
    if not blob:
        raise EmbeddingDecodeError("Empty embedding blob")
    if len(blob) % FLOAT32_SIZE:
        raise EmbeddingDecodeError(
            f"Embedding blob of {len(blob)} bytes is not a multiple of {FLOAT32_SIZE}"
        )
    return list(struct.unpack(f"<{len(blob) // FLOAT32_SIZE}f", blob))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|).

    Returns NaN when either vector has zero magnitude.

    Raises:
        ValueError: If the vectors differ in length
    """
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")

    dot = 0.0
    mag_a = 0.0
    mag_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        mag_a += x * x
        mag_b += y * y

    denominator = math.sqrt(mag_a) * math.sqrt(mag_b)
    if denominator == 0:
        return math.nan
    return dot / denominator


def rank_by_similarity(
    query_vector: Sequence[float],
    items: Iterable[KnowledgeItem],
    top_k: Optional[int] = 5,
) -> list[SearchResult]:
    """Score every item against the query and keep the best top_k.

    Items without an embedding are ignored. Items whose embedding cannot be
    compared (wrong length) are skipped with a warning. Scores are sorted
    strictly descending; NaN scores sort last.
    """
    results = []
    for item in items:
        if not item.embedding:
            continue
        try:
            score = cosine_similarity(query_vector, item.embedding)
        except ValueError as e:
            logger.warning("skipping_invalid_embedding", item_id=item.id, path=item.path, error=str(e))
            continue
        results.append(SearchResult(item=item, score=score))

    results.sort(key=lambda r: (not math.isnan(r.score), r.score), reverse=True)
    if top_k is None:
        return results
    return results[:top_k]

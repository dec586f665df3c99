"""Helpers that turn ranked chunk hits into prompt context and citations.

A *hit* is the ``(entry, score)`` pair returned by
``VectorStore.similarity_search``.
"""
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from docchat.config import SNIPPET_COUNT, SNIPPET_LENGTH

Hit = Tuple[Dict[str, Any], float]

CONTEXT_SEPARATOR = "\n\n---\n\n"


def normalize(vectors: np.ndarray) -> np.ndarray:
    """Scale vectors (the last axis) to unit length; zero vectors stay zero."""
    norms = np.linalg.norm(vectors, axis=-1, keepdims=True)
    return vectors / np.where(norms == 0, 1, norms)


def cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of one query vector against every row of a matrix"""
    return normalize(np.atleast_2d(matrix)) @ normalize(query)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 if either has zero length."""
    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)
    if vec_a.shape != vec_b.shape:
        raise ValueError(f"Vector length mismatch: {vec_a.shape[0]} vs {vec_b.shape[0]}")
    return float(cosine_similarities(vec_a, vec_b)[0])


def build_context(hits: List[Hit]) -> str:
    return CONTEXT_SEPARATOR.join(
        f"[Document: {entry['document_name']}]\n{entry['text']}" for entry, _ in hits
    )


def build_sources(hits: List[Hit]) -> List[Dict[str, str]]:
    """Unique documents cited by the hits, in rank order"""
    seen = set()
    sources = []
    for entry, _ in hits:
        if entry["document_id"] in seen:
            continue
        seen.add(entry["document_id"])
        sources.append({"id": entry["document_id"], "name": entry["document_name"]})
    return sources


def truncate(text: str, length: int = SNIPPET_LENGTH) -> str:
    return text[:length] + ("..." if len(text) > length else "")


def build_snippets(
    hits: List[Hit],
    count: int = SNIPPET_COUNT,
    length: int = SNIPPET_LENGTH,
) -> List[Dict[str, Any]]:
    return [
        {
            "document_id": entry["document_id"],
            "document": entry["document_name"],
            "text": truncate(entry["text"], length),
            "score": score,
        }
        for entry, score in hits[:count]
    ]


def build_user_prompt(context: str, question: str) -> str:
    return f"Based on these document excerpts:\n\n{context}\n\nQuestion: {question}"

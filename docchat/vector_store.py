import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import numpy as np

from docchat.config import VECTORS_FILE
from docchat.retrieval import cosine_similarities

logger = logging.getLogger(__name__)


class VectorStore:
    """In-memory per-chunk vector store with JSON persistence.

    Each row of ``embeddings`` belongs to the entry at the same position in
    ``entries``. An entry is ``{document_id, document_name, chunk_index, text}``.
    """

    def __init__(self, storage_path: Path = VECTORS_FILE):
        self.storage_path = Path(storage_path)
        self.entries: List[Dict[str, Any]] = []
        self.embeddings: Optional[np.ndarray] = None
        self.embedding_dimensions: Optional[int] = None
        self.last_update: Optional[str] = None

    def add_document_chunks(
        self,
        document_id: str,
        document_name: str,
        chunks: List[Dict[str, Any]],
        embeddings: List[List[float]],
    ) -> None:
        """Store the vectors of one document, replacing any it had before."""
        if not chunks or not embeddings:
            raise ValueError("Chunks and embeddings cannot be empty")

        if len(chunks) != len(embeddings):
            raise ValueError(f"Mismatch: {len(chunks)} chunks, {len(embeddings)} embeddings")

        embedding_array = np.array(embeddings, dtype=np.float32)
        if embedding_array.ndim != 2:
            raise ValueError("Embeddings must all have the same length")

        # Only the other documents fix the dimensions; a rejected batch leaves the store untouched
        others = sum(1 for entry in self.entries if entry["document_id"] != document_id)
        if others and embedding_array.shape[1] != self.embedding_dimensions:
            raise ValueError(
                f"Embedding dimension mismatch: expected {self.embedding_dimensions}, "
                f"got {embedding_array.shape[1]}"
            )

        self.remove_document(document_id)
        if self.embedding_dimensions is None:
            self.embedding_dimensions = embedding_array.shape[1]
            logger.info(f"Set embedding dimensions to {self.embedding_dimensions}")

        self.entries.extend(
            {
                "document_id": document_id,
                "document_name": document_name,
                "chunk_index": chunk["index"],
                "text": chunk["text"],
            }
            for chunk in chunks
        )

        self.embeddings = (
            embedding_array if self.embeddings is None
            else np.vstack([self.embeddings, embedding_array])
        )

        self.last_update = datetime.now().isoformat()
        logger.debug(f"Added {len(chunks)} chunks for {document_name}. Total: {len(self.entries)}")

    def similarity_search(
        self,
        query_embedding: List[float],
        k: int = 5,
        document_ids: Optional[Iterable[str]] = None,
    ) -> List[Tuple[Dict[str, Any], float]]:
        """Find the k chunks most similar to the query.

        When ``document_ids`` is given only chunks of those documents are
        considered. Results are ordered by cosine similarity, highest first;
        equal scores keep insertion order.
        """
        if self.embeddings is None or not self.entries:
            logger.warning("No chunks in vector store for similarity search")
            return []

        if len(query_embedding) != self.embedding_dimensions:
            raise ValueError(
                f"Query embedding dimension mismatch: expected {self.embedding_dimensions}, "
                f"got {len(query_embedding)}"
            )

        if document_ids is not None:
            allowed: Set[str] = set(document_ids)
            candidates = np.array(
                [i for i, entry in enumerate(self.entries) if entry["document_id"] in allowed],
                dtype=np.int64,
            )
        else:
            candidates = np.arange(len(self.entries))

        if candidates.size == 0 or k <= 0:
            return []

        query_array = np.asarray(query_embedding, dtype=np.float32)
        similarities = cosine_similarities(query_array, self.embeddings[candidates])

        top_k = min(k, candidates.size)
        order = np.argsort(-similarities, kind="stable")[:top_k]

        results = [(self.entries[candidates[i]], float(similarities[i])) for i in order]
        logger.debug(f"Similarity search returned {len(results)} results")
        return results

    def remove_document(self, document_id: str) -> int:
        """Drop every chunk of a document; returns how many were removed."""
        indices_to_remove = [
            i for i, entry in enumerate(self.entries)
            if entry["document_id"] == document_id
        ]
        if not indices_to_remove:
            return 0

        for i in reversed(indices_to_remove):
            del self.entries[i]

        if self.embeddings is not None:
            mask = np.ones(self.embeddings.shape[0], dtype=bool)
            mask[indices_to_remove] = False
            self.embeddings = self.embeddings[mask] if mask.any() else None

            if self.embeddings is None:
                self.embedding_dimensions = None

        self.last_update = datetime.now().isoformat()
        logger.info(f"Removed {len(indices_to_remove)} chunks of document {document_id}")
        return len(indices_to_remove)

    def document_ids(self) -> Set[str]:
        return {entry["document_id"] for entry in self.entries}

    def clear(self) -> None:
        """Clear all chunks and embeddings."""
        self.entries = []
        self.embeddings = None
        self.embedding_dimensions = None
        self.last_update = datetime.now().isoformat()
        logger.info("Vector store cleared")

    def get_stats(self) -> Dict[str, Any]:
        stats = {
            "total_chunks": len(self.entries),
            "total_documents": len(self.document_ids()),
            "embedding_dimensions": self.embedding_dimensions,
            "last_update": self.last_update,
            "vector_store_size": 0
        }
        if self.embeddings is not None:
            stats["vector_store_size"] = self.embeddings.nbytes
        return stats

    def save(self) -> None:
        """Save the vector store to disk."""
        data = {
            "entries": self.entries,
            "embeddings": self.embeddings.tolist() if self.embeddings is not None else None,
            "embedding_dimensions": self.embedding_dimensions,
            "last_update": self.last_update,
            "version": "2.0"
        }
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.storage_path, 'w') as f:
                json.dump(data, f)
            logger.debug(f"Vector store saved to {self.storage_path}")
        except Exception as e:
            logger.error(f"Error saving vector store: {e}")
            raise

    def load(self) -> None:
        """Load the vector store from disk, resetting it if the file is corrupted."""
        if not self.storage_path.exists():
            logger.info("No existing vector store file found")
            return

        try:
            with open(self.storage_path, 'r') as f:
                data = json.load(f)

            entries = data.get("entries", [])
            embeddings_data = data.get("embeddings")
            embeddings = np.array(embeddings_data, dtype=np.float32) if embeddings_data else None

            if embeddings is not None:
                if embeddings.ndim != 2 or len(entries) != embeddings.shape[0]:
                    raise ValueError(
                        f"{len(entries)} entries do not match embeddings of shape {embeddings.shape}"
                    )
            elif entries:
                raise ValueError(f"{len(entries)} entries without embeddings")

            self.entries = entries
            self.embeddings = embeddings
            self.embedding_dimensions = embeddings.shape[1] if embeddings is not None else None
            self.last_update = data.get("last_update")

            logger.info(
                f"Vector store loaded: {len(self.entries)} chunks, "
                f"dimensions: {self.embedding_dimensions}"
            )
        except Exception as e:
            logger.error(f"Corrupted vector store {self.storage_path}: {e}")
            self.clear()
            self.save()

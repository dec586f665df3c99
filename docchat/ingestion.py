"""
Ingestion Service

Moves documents from "uploaded" or "linked" to "searchable":

    upload/link -> extract text -> chunk -> embed chunks -> vector store

Rows in DocumentStore track where each document is in that pipeline, so
a failed document can be retried later with process() or process_pending().
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

from docchat.config import UPLOAD_DIR
from docchat.config_manager import ConfigManager
from docchat.document_processor import DocumentProcessor, guess_suffix
from docchat.document_store import (
    STATUS_FAILED,
    STATUS_PROCESSED,
    STATUS_PROCESSING,
    DocumentStore,
    is_external_path,
)
from docchat.errors import DocumentProcessingError, DuplicateDocumentError
from docchat.model_manager import ModelManager
from docchat.models import BatchProcessResult, ProcessResult
from docchat.utils import validate_file
from docchat.vector_store import VectorStore

logger = logging.getLogger(__name__)


def name_from_url(url: str) -> str:
    """Last path segment of a URL, or its host when the path is empty"""
    parsed = urlparse(url)
    segment = unquote(parsed.path.rstrip("/").rsplit("/", 1)[-1])
    return segment or parsed.netloc


class IngestionService:
    """Upload, link, process and delete documents"""

    def __init__(
        self,
        documents: DocumentStore,
        vector_store: VectorStore,
        model_manager: ModelManager,
        processor: DocumentProcessor,
        config: ConfigManager,
        upload_dir: Path = UPLOAD_DIR
    ):
        self.documents = documents
        self.vector_store = vector_store
        self.model_manager = model_manager
        self.processor = processor
        self.config = config
        self.upload_dir = Path(upload_dir)

    def local_path(self, row: Dict[str, Any]) -> Path:
        return self.upload_dir / row["file_path"]

    async def upload(self, filename: str, data: bytes, category: Optional[str] = None) -> Dict[str, Any]:
        """Store an uploaded file and process it right away.

        A document that can't be processed is not kept.
        """
        logger.info(f"Upload request: {filename}")
        validate_file(filename, len(data))

        if self.documents.find_by_name(filename):
            raise DuplicateDocumentError(filename)

        suffix = Path(filename).suffix.lower()
        row = self.documents.create(
            name=filename,
            file_path="",
            file_type=suffix[1:],
            file_size=len(data),
            category=category
        )
        stored_name = f"{row['id']}{suffix}"
        file_path = self.upload_dir / stored_name

        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(data)
            self.documents.update(row["id"], file_path=stored_name)
            await self.process(row["id"])
        except Exception as e:
            logger.error(f"Error processing {filename}: {e}")
            if file_path.exists():
                file_path.unlink()
            self.documents.remove(row["id"])
            if self.vector_store.remove_document(row["id"]):
                self.vector_store.save()
            if isinstance(e, DocumentProcessingError):
                raise
            raise DocumentProcessingError(f"Failed to process document: {e}") from e

        return self.documents.require(row["id"])

    def link(self, url: str, name: Optional[str] = None, category: Optional[str] = None) -> Dict[str, Any]:
        """Register a document that lives at an external URL. It stays pending until processed."""
        name = name or name_from_url(url)
        if self.documents.find_by_name(name):
            raise DuplicateDocumentError(name)

        row = self.documents.create(
            name=name,
            file_path=url,
            file_type=guess_suffix(url)[1:],
            category=category
        )
        logger.info(f"Linked document {name} -> {url}")
        return row

    async def _load_text(self, row: Dict[str, Any]) -> str:
        if is_external_path(row["file_path"]):
            return await self.processor.fetch_text(row["file_path"])
        return self.processor.extract_text(self.local_path(row))

    async def process(self, document_id: str) -> ProcessResult:
        """Extract, chunk and embed one document, replacing any earlier result.

        On failure the row is marked failed with the error and the error is raised.
        """
        row = self.documents.require(document_id)
        logger.info(f"Processing document {row['name']}")
        self.documents.update(document_id, status=STATUS_PROCESSING, error=None)

        try:
            content = await self._load_text(row)
            if not content.strip():
                raise DocumentProcessingError("No content extracted from document")

            chunks = self.processor.chunk_text(content)
            embeddings = await self.model_manager.embed_documents([chunk["text"] for chunk in chunks])

            self.vector_store.add_document_chunks(document_id, row["name"], chunks, embeddings)
            self.vector_store.save()
        except Exception as e:
            logger.error(f"Processing {row['name']} failed: {e}")
            self.documents.update(document_id, status=STATUS_FAILED, error=str(e))
            raise

        self.documents.update(
            document_id,
            content=content,
            chunks=chunks,
            status=STATUS_PROCESSED,
            error=None,
            file_size=row["file_size"] or len(content.encode("utf-8")),
            embedding_model=self.config.get('embedding_model')
        )
        logger.info(f"Processed {row['name']}: {len(chunks)} chunks")
        return ProcessResult(document_id=document_id, name=row["name"], success=True, chunks=len(chunks))

    async def process_pending(self, external_only: bool = True) -> BatchProcessResult:
        """Process every document that has no content yet; failures don't stop the batch"""
        pending = self.documents.list_unprocessed(external_only=external_only)
        logger.info(f"Processing {len(pending)} pending documents")

        results = []
        for i, row in enumerate(pending, start=1):
            logger.info(f"Processing document {i}/{len(pending)}: {row['name']}")
            try:
                results.append(await self.process(row["id"]))
            except Exception as e:
                results.append(ProcessResult(document_id=row["id"], name=row["name"], success=False, error=str(e)))

        processed = sum(1 for result in results if result.success)
        logger.info(f"Batch finished: {processed} processed, {len(results) - processed} failed")
        return BatchProcessResult(
            total=len(results),
            processed=processed,
            failed=len(results) - processed,
            results=results
        )

    async def reprocess_all(self) -> BatchProcessResult:
        """Rebuild vectors for every document, e.g. after an embedding model change"""
        self.vector_store.clear()
        self.vector_store.save()

        results = []
        for row in self.documents.list_all():
            try:
                results.append(await self.process(row["id"]))
            except Exception as e:
                results.append(ProcessResult(document_id=row["id"], name=row["name"], success=False, error=str(e)))

        processed = sum(1 for result in results if result.success)
        logger.info(f"Rebuild completed: {processed}/{len(results)} successful")
        return BatchProcessResult(
            total=len(results),
            processed=processed,
            failed=len(results) - processed,
            results=results
        )

    def delete(self, document_id: str) -> Dict[str, Any]:
        row = self.documents.require(document_id)
        logger.info(f"Delete request: {row['name']}")

        if self.vector_store.remove_document(document_id):
            self.vector_store.save()

        if row["file_path"] and not is_external_path(row["file_path"]):
            file_path = self.local_path(row)
            if file_path.exists():
                file_path.unlink()

        self.documents.remove(document_id)
        logger.info(f"Deleted: {row['name']}")
        return row

    def clear(self) -> int:
        """Remove every document; returns how many there were"""
        count = len(self.documents.documents)
        self.vector_store.clear()
        self.vector_store.save()
        self.documents.clear()

        if self.upload_dir.exists():
            for file_path in self.upload_dir.glob("*"):
                if file_path.is_file():
                    file_path.unlink()

        logger.info("Cleared all documents")
        return count

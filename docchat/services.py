"""Wiring of stores and services shared by the API routes.

``get_services`` is the FastAPI dependency; tests override it with a
container built on a temporary directory and fake model clients.
"""
import logging
from pathlib import Path
from typing import Optional

from docchat import config
from docchat.chat_service import ChatService
from docchat.config_manager import ConfigManager
from docchat.document_processor import DocumentProcessor
from docchat.document_store import DocumentStore
from docchat.ingestion import IngestionService
from docchat.model_manager import ModelManager
from docchat.vector_store import VectorStore

logger = logging.getLogger(__name__)


class Services:
    """Everything a request handler needs, built around one data directory"""

    def __init__(
        self,
        data_dir: Path = config.DATA_DIR,
        model_manager: Optional[ModelManager] = None,
        processor: Optional[DocumentProcessor] = None
    ):
        self.data_dir = Path(data_dir)
        self.upload_dir = self.data_dir / "uploads"
        self.categories_file = self.data_dir / "categories.json"

        self.config = ConfigManager(self.data_dir / "config.json")
        self.documents = DocumentStore(self.data_dir / "documents.json")
        self.vector_store = VectorStore(self.data_dir / "vectors.json")
        self.vector_store.load()

        self.model_manager = model_manager or ModelManager(self.config)
        self.processor = processor or DocumentProcessor(self.config)

        self.ingestion = IngestionService(
            self.documents,
            self.vector_store,
            self.model_manager,
            self.processor,
            self.config,
            upload_dir=self.upload_dir
        )
        self.chat = ChatService(self.documents, self.vector_store, self.model_manager, self.config)

    async def cleanup(self) -> None:
        await self.model_manager.cleanup()


_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        config.ensure_directories()
        _services = Services()
        logger.info(f"Services ready (data dir: {_services.data_dir})")
    return _services


async def shutdown_services() -> None:
    global _services
    if _services is not None:
        await _services.cleanup()
        _services = None

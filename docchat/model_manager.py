"""Model Manager - lazily built embedding and chat clients"""
import logging
from typing import List, Optional

from langchain_core.embeddings import Embeddings
from langchain_ollama import OllamaEmbeddings

from docchat.config import EMBED_CHAR_LIMIT, OLLAMA_BASE_URL
from docchat.config_manager import ConfigManager
from docchat.ollama import AsyncOllamaLLM

logger = logging.getLogger(__name__)


class ModelManager:
    """Manage LLM and embedding models"""

    def __init__(
        self,
        config: ConfigManager,
        embeddings_model: Optional[Embeddings] = None,
        llm: Optional[AsyncOllamaLLM] = None
    ):
        self.config = config
        self.embeddings_model = embeddings_model
        self.llm = llm

    def get_embeddings_model(self) -> Embeddings:
        """Get or create embeddings model"""
        if self.embeddings_model is None:
            model_name = self.config.get('embedding_model')
            logger.info(f"Initializing embeddings: {model_name}")
            self.embeddings_model = OllamaEmbeddings(
                model=model_name,
                base_url=OLLAMA_BASE_URL
            )
        return self.embeddings_model

    def get_llm(self) -> AsyncOllamaLLM:
        """Get or create LLM model"""
        if self.llm is None:
            model_name = self.config.get('model')
            logger.info(f"Initializing LLM: {model_name}")
            self.llm = AsyncOllamaLLM(
                model=model_name,
                base_url=OLLAMA_BASE_URL,
                temperature=self.config.get('temperature', 0.3),
                max_tokens=self.config.get('max_tokens')
            )
        return self.llm

    async def embed_query(self, text: str) -> List[float]:
        return await self.get_embeddings_model().aembed_query(text[:EMBED_CHAR_LIMIT])

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        return await self.get_embeddings_model().aembed_documents(
            [text[:EMBED_CHAR_LIMIT] for text in texts]
        )

    async def reset(self, embeddings: bool = True, llm: bool = True) -> None:
        """Drop cached clients so the next call picks up new configuration"""
        if embeddings:
            self.embeddings_model = None
        if llm and self.llm is not None:
            await self.llm.close()
            self.llm = None

    async def cleanup(self):
        """Cleanup resources"""
        if self.llm:
            await self.llm.close()

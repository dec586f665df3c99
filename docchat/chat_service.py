"""
Chat Service

Answers a question from the enabled documents:

    enabled documents -> embed question -> rank chunks -> build context
    -> ask the model -> answer + sources + snippets

Only enabled documents are searched. When nothing can be searched, or
nothing relevant turns up, a fixed answer is returned without calling the
model.
"""

import logging
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from docchat.config import NO_DOCUMENTS_ANSWER, NO_RELEVANT_ANSWER
from docchat.config_manager import ConfigManager
from docchat.document_store import DocumentStore
from docchat.model_manager import ModelManager
from docchat.models import ChatRequest, ChatResponse
from docchat.retrieval import Hit, build_context, build_snippets, build_sources, build_user_prompt
from docchat.utils import clean_llm_response
from docchat.vector_store import VectorStore

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(
        self,
        documents: DocumentStore,
        vector_store: VectorStore,
        model_manager: ModelManager,
        config: ConfigManager
    ):
        self.documents = documents
        self.vector_store = vector_store
        self.model_manager = model_manager
        self.config = config

    async def retrieve(self, request: ChatRequest) -> Tuple[List[Hit], Optional[str]]:
        """Rank chunks of the enabled documents.

        Returns the hits, or an empty list and the fixed answer to give instead.
        """
        enabled = self.documents.list_enabled()
        if not enabled:
            logger.info("No enabled documents, skipping retrieval")
            return [], NO_DOCUMENTS_ANSWER

        searchable = self.vector_store.document_ids()
        for row in enabled:
            if row["id"] not in searchable:
                logger.warning(f"Skipping document {row['name']} - not processed yet")

        query_embedding = await self.model_manager.embed_query(request.question)
        hits = self.vector_store.similarity_search(
            query_embedding,
            k=request.top_k or self.config.get('top_k'),
            document_ids=[row["id"] for row in enabled]
        )

        logger.info(f"Found {len(hits)} relevant chunks in {len(enabled)} enabled documents")
        if not hits:
            return [], NO_RELEVANT_ANSWER
        return hits, None

    def _prompt(self, request: ChatRequest, hits: List[Hit]) -> str:
        return build_user_prompt(build_context(hits), request.question)

    def _generation_options(self, request: ChatRequest) -> Dict[str, Any]:
        """System prompt and sampling options for one request"""
        return {
            "system": self.config.get('system_prompt'),
            "temperature": (
                request.temperature if request.temperature is not None
                else self.config.get('temperature')
            ),
            "max_tokens": self.config.get('max_tokens'),
        }

    async def answer(self, request: ChatRequest) -> ChatResponse:
        logger.info(f"Question: '{request.question[:50]}'")
        start_time = datetime.now()

        hits, fixed_answer = await self.retrieve(request)
        if fixed_answer is not None:
            return ChatResponse(
                answer=fixed_answer,
                processing_time=(datetime.now() - start_time).total_seconds()
            )

        llm = self.model_manager.get_llm()
        raw_answer = await llm.ainvoke(self._prompt(request, hits), **self._generation_options(request))

        self.config.increment_queries()
        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"Query completed in {processing_time:.2f}s")

        return ChatResponse(
            answer=clean_llm_response(raw_answer),
            sources=build_sources(hits),
            snippets=build_snippets(hits),
            chunks_used=len(hits),
            similarity_scores=[score for _, score in hits],
            processing_time=processing_time,
            model_used=llm.model
        )

    async def stream(self, request: ChatRequest) -> AsyncIterator[Dict[str, Any]]:
        """Answer as a series of events: metadata, content pieces, then done (or error)."""
        logger.info(f"Streaming question: '{request.question[:50]}'")
        start_time = datetime.now()

        try:
            hits, fixed_answer = await self.retrieve(request)
            if fixed_answer is not None:
                yield {"type": "metadata", "sources": [], "snippets": [], "similarity_scores": [], "chunks_used": 0}
                yield {"type": "content", "content": fixed_answer}
                yield {"type": "done", "processing_time": (datetime.now() - start_time).total_seconds()}
                return

            llm = self.model_manager.get_llm()
            options = self._generation_options(request)
            yield {
                "type": "metadata",
                "sources": build_sources(hits),
                "snippets": build_snippets(hits),
                "similarity_scores": [score for _, score in hits],
                "chunks_used": len(hits),
                "model_used": llm.model
            }

            async for piece in llm.astream(self._prompt(request, hits), **options):
                yield {"type": "content", "content": piece}

            self.config.increment_queries()
            processing_time = (datetime.now() - start_time).total_seconds()
            logger.info(f"Query completed in {processing_time:.2f}s")
            yield {"type": "done", "processing_time": processing_time}
        except Exception as e:
            logger.error(f"Streaming error: {e}")
            yield {"type": "error", "message": str(e)}

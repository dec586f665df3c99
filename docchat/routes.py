"""API Routes"""
import json
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import FileResponse, RedirectResponse, StreamingResponse

from docchat.categories import group_documents, load_categories
from docchat.config import OLLAMA_BASE_URL
from docchat.document_store import is_external_path
from docchat.errors import (
    DocChatError,
    DocumentFetchError,
    DocumentNotFoundError,
    DuplicateDocumentError,
    FileValidationError,
    LLMError,
)
from docchat.models import (
    BatchProcessResult,
    CategoryGroup,
    ChatRequest,
    ChatResponse,
    ConfigUpdate,
    DocumentDetail,
    DocumentInfo,
    DocumentUpdate,
    HealthResponse,
    LinkRequest,
    ProcessResult,
)
from docchat.services import Services, get_services
from docchat.utils import check_ollama_health

logger = logging.getLogger(__name__)

router = APIRouter()


def to_http_error(error: Exception) -> HTTPException:
    """Map a service exception onto an HTTP status"""
    if isinstance(error, DocumentNotFoundError):
        return HTTPException(404, str(error))
    if isinstance(error, (FileValidationError, DuplicateDocumentError, ValueError)):
        return HTTPException(400, str(error))
    if isinstance(error, (DocumentFetchError, LLMError)):
        return HTTPException(502, str(error))
    return HTTPException(500, str(error))


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(services: Services = Depends(get_services)):
    """System health check"""
    ollama_available, ollama_message = await check_ollama_health(OLLAMA_BASE_URL)
    stats = services.vector_store.get_stats()

    return HealthResponse(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        ollama_status={"available": ollama_available, "message": ollama_message},
        configuration={
            "model": services.config.get('model'),
            "embedding_model": services.config.get('embedding_model'),
            "chunk_size": services.config.get('chunk_size'),
            "top_k": services.config.get('top_k')
        },
        document_count=len(services.documents.documents),
        enabled_count=len(services.documents.list_enabled()),
        total_chunks=stats.get("total_chunks", 0),
        total_queries=services.config.get('total_queries')
    )


# ============================================================================
# DOCUMENTS
# ============================================================================

@router.post("/documents", response_model=DocumentInfo, tags=["Documents"])
async def upload_document(
    file: UploadFile = File(...),
    category: Optional[str] = Form(None),
    services: Services = Depends(get_services)
):
    """Upload and process a document"""
    content = await file.read()
    try:
        row = await services.ingestion.upload(file.filename, content, category=category or None)
    except DocChatError as e:
        raise to_http_error(e)
    return DocumentInfo.from_row(row)


@router.post("/documents/link", response_model=DocumentInfo, tags=["Documents"])
async def link_document(
    link: LinkRequest,
    process: bool = Query(False),
    services: Services = Depends(get_services)
):
    """Register an external document by URL, optionally processing it immediately"""
    try:
        row = services.ingestion.link(link.url, name=link.name, category=link.category)
        if process:
            await services.ingestion.process(row["id"])
    except DocChatError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"Processing error: {e}")
        raise HTTPException(500, f"Failed to process document: {e}")
    return DocumentInfo.from_row(services.documents.require(row["id"]))


@router.get("/documents", response_model=List[DocumentInfo], tags=["Documents"])
async def list_documents(
    enabled: Optional[bool] = Query(None),
    services: Services = Depends(get_services)
):
    """List documents, newest first"""
    rows = services.documents.list_all()
    if enabled is not None:
        rows = [row for row in rows if row["enabled"] == enabled]
    return [DocumentInfo.from_row(row) for row in rows]


@router.get("/documents/grouped", response_model=List[CategoryGroup], tags=["Documents"])
async def list_documents_grouped(services: Services = Depends(get_services)):
    """Documents grouped by category"""
    rows = [DocumentInfo.from_row(row).model_dump() for row in services.documents.list_all()]
    return group_documents(rows, load_categories(services.categories_file))


@router.post("/documents/process-pending", response_model=BatchProcessResult, tags=["Processing"])
async def process_pending_documents(
    external_only: bool = Query(True),
    services: Services = Depends(get_services)
):
    """Process every document that has no extracted content yet"""
    return await services.ingestion.process_pending(external_only=external_only)


@router.post("/documents/reprocess", response_model=BatchProcessResult, tags=["Processing"])
async def reprocess_documents(services: Services = Depends(get_services)):
    """Rebuild all vectors with the current embedding model"""
    return await services.ingestion.reprocess_all()


@router.get("/documents/{document_id}", response_model=DocumentDetail, tags=["Documents"])
async def get_document(document_id: str, services: Services = Depends(get_services)):
    """A document including its extracted text"""
    try:
        return DocumentDetail.from_row(services.documents.require(document_id))
    except DocChatError as e:
        raise to_http_error(e)


@router.patch("/documents/{document_id}", response_model=DocumentInfo, tags=["Documents"])
async def update_document(
    document_id: str,
    update: DocumentUpdate,
    services: Services = Depends(get_services)
):
    """Enable/disable a document for search or change its category"""
    try:
        row = services.documents.require(document_id)
        if update.enabled is not None:
            row = services.documents.set_enabled(document_id, update.enabled)
        if "category" in update.model_fields_set:
            row = services.documents.update(document_id, category=update.category or None)
    except DocChatError as e:
        raise to_http_error(e)
    return DocumentInfo.from_row(row)


@router.delete("/documents/{document_id}", tags=["Documents"])
async def delete_document(document_id: str, services: Services = Depends(get_services)):
    """Delete a document, its vectors and its stored file"""
    try:
        row = services.ingestion.delete(document_id)
    except DocChatError as e:
        raise to_http_error(e)
    return {"message": f"Document '{row['name']}' deleted successfully", "id": document_id}


@router.get("/documents/{document_id}/file", tags=["Documents"])
async def open_document_file(document_id: str, services: Services = Depends(get_services)):
    """The stored file: served from disk, or a redirect for linked documents"""
    try:
        row = services.documents.require(document_id)
    except DocChatError as e:
        raise to_http_error(e)

    if is_external_path(row["file_path"]):
        return RedirectResponse(row["file_path"], status_code=307)

    file_path = services.ingestion.local_path(row)
    if not row["file_path"] or not file_path.is_file():
        raise HTTPException(404, f"File for document '{row['name']}' is missing")
    return FileResponse(file_path, filename=row["name"])


@router.post("/documents/{document_id}/process", response_model=ProcessResult, tags=["Processing"])
async def process_document(document_id: str, services: Services = Depends(get_services)):
    """(Re)process a single document"""
    try:
        return await services.ingestion.process(document_id)
    except DocChatError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"Processing error: {e}")
        raise HTTPException(500, f"Failed to process document: {e}")


@router.delete("/clear", tags=["Documents"])
async def clear_all_documents(services: Services = Depends(get_services)):
    """Remove all documents and embeddings"""
    count = services.ingestion.clear()
    return {"message": "All documents cleared successfully", "cleared": count}


# ============================================================================
# CHAT
# ============================================================================

@router.post("/chat", response_model=ChatResponse, tags=["Chat"])
async def chat(request: Request, chat_request: ChatRequest, services: Services = Depends(get_services)):
    """Answer a question from the enabled documents"""
    if chat_request.stream:
        async def generate():
            async for event in services.chat.stream(chat_request):
                if await request.is_disconnected():
                    logger.info("Client disconnected")
                    break
                yield f"data: {json.dumps(event)}\n\n"

        return StreamingResponse(generate(), media_type="text/event-stream")

    try:
        return await services.chat.answer(chat_request)
    except DocChatError as e:
        logger.error(f"Query error: {e}")
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"Query error: {e}")
        raise HTTPException(500, f"Failed to process question: {e}")


# ============================================================================
# CONFIGURATION & STATS
# ============================================================================

@router.get("/config", tags=["Configuration"])
async def get_config(services: Services = Depends(get_services)):
    return services.config.as_dict()


@router.patch("/config", tags=["Configuration"])
async def update_config(update: ConfigUpdate, services: Services = Depends(get_services)):
    """Update runtime configuration"""
    try:
        changed = services.config.update(**update.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(400, str(e))

    if "embedding_model" in changed or "model" in changed:
        await services.model_manager.reset(
            embeddings="embedding_model" in changed,
            llm="model" in changed
        )

    response = {"message": "Configuration updated successfully", "changed_fields": changed}
    if "embedding_model" in changed:
        response["warning"] = "Embedding model changed. Reprocess documents to rebuild vectors."
    return response


@router.get("/stats", tags=["Statistics"])
async def get_statistics(services: Services = Depends(get_services)):
    """System statistics"""
    stats = services.vector_store.get_stats()
    rows = services.documents.list_all()
    doc_count = len(rows)

    return {
        "total_documents": doc_count,
        "enabled_documents": sum(1 for row in rows if row["enabled"]),
        "processed_documents": sum(1 for row in rows if row["status"] == "processed"),
        "total_chunks": stats.get('total_chunks', 0),
        "total_queries": services.config.get('total_queries'),
        "total_storage_size": sum(row.get('file_size', 0) for row in rows),
        "average_chunks_per_document": round(stats.get('total_chunks', 0) / max(1, doc_count), 2),
        "last_update": stats.get('last_update')
    }

"""
Data Models for API Requests and Responses

Pydantic models that validate what the API accepts and shape what it
returns. The document models mirror the rows kept by DocumentStore, minus
the bulky fields (chunks, and content except on the detail view).
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatRequest(BaseModel):
    """
    A question for the enabled documents.

    top_k and temperature fall back to the runtime configuration when left out.
    """
    question: str = Field(..., min_length=1, max_length=5000)
    top_k: Optional[int] = Field(None, ge=1, le=20)
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    stream: bool = False

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("question must not be blank")
        return value


class Source(BaseModel):
    id: str
    name: str


class Snippet(BaseModel):
    document_id: str
    document: str
    text: str
    score: float


class ChatResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    answer: str
    sources: List[Source] = []
    snippets: List[Snippet] = []
    chunks_used: int = 0
    similarity_scores: List[float] = []
    processing_time: float = 0.0
    model_used: Optional[str] = None


class DocumentInfo(BaseModel):
    """A document as listed in the UI"""
    id: str
    name: str
    file_path: str
    file_type: str
    file_size: int
    enabled: bool
    category: Optional[str] = None
    status: str
    chunk_count: int = 0
    error: Optional[str] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: Dict):
        """Build from a DocumentStore row (works for subclasses too)"""
        return cls(chunk_count=len(row.get("chunks") or []), **{
            key: row.get(key) for key in cls.model_fields if key != "chunk_count"
        })


class DocumentDetail(DocumentInfo):
    """A document with its extracted text, for the viewer"""
    content: Optional[str] = None


class DocumentUpdate(BaseModel):
    enabled: Optional[bool] = None
    category: Optional[str] = None


class LinkRequest(BaseModel):
    url: str = Field(..., pattern=r"^https?://")
    name: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = None


class ProcessResult(BaseModel):
    document_id: str
    name: str
    success: bool
    chunks: int = 0
    error: Optional[str] = None


class BatchProcessResult(BaseModel):
    total: int
    processed: int
    failed: int
    results: List[ProcessResult] = []


class ConfigUpdate(BaseModel):
    model: Optional[str] = None
    embedding_model: Optional[str] = None
    chunk_size: Optional[int] = Field(None, ge=100, le=10000)
    chunk_overlap: Optional[int] = Field(None, ge=0, le=5000)
    top_k: Optional[int] = Field(None, ge=1, le=20)
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, ge=1, le=8192)
    system_prompt: Optional[str] = Field(None, min_length=1)


class CategoryGroup(BaseModel):
    """A category heading with its documents and any non-empty subcategories"""
    title: str
    documents: List[DocumentInfo] = []
    subcategories: List["CategoryGroup"] = []


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    ollama_status: Dict[str, object]
    configuration: Dict[str, object]
    document_count: int
    enabled_count: int
    total_chunks: int
    total_queries: int

"""Exceptions raised by the DocChat services.

Routes translate these into HTTP responses; nothing below the route layer
knows about HTTP.
"""
import logging
from functools import wraps


logger = logging.getLogger(__name__)


class DocChatError(Exception):
    """Base class for all DocChat errors"""


class DocumentNotFoundError(DocChatError):
    def __init__(self, document_id: str):
        super().__init__(f"Document '{document_id}' not found")
        self.document_id = document_id


class DuplicateDocumentError(DocChatError):
    def __init__(self, name: str):
        super().__init__(f"Document '{name}' already exists")
        self.name = name


class FileValidationError(DocChatError):
    """Upload rejected before anything was stored"""


class UnsupportedFileTypeError(FileValidationError):
    pass


class DocumentFetchError(DocChatError):
    """A linked document could not be downloaded"""


class DocumentProcessingError(DocChatError):
    """Text extraction, chunking or embedding failed"""


class LLMError(DocChatError):
    """The language model service failed or could not be reached"""


def handle_errors(operation_name: str):
    """Log failures of ``operation_name`` and re-raise them unchanged."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{operation_name} failed: {e}")
                raise
        return wrapper
    return decorator

"""
Document Store

Keeps one row per document (uploaded file or linked URL) in a JSON file keyed
by document id. Every mutation is written straight back to disk.

A row looks like:

    {
        "id": "3f2a...",
        "name": "report.pdf",
        "file_path": "uploads/3f2a....pdf" or "https://example.com/report.pdf",
        "file_type": "pdf",
        "file_size": 10240,
        "enabled": true,
        "category": "Reports",
        "content": null,          # extracted text, filled in by processing
        "chunks": [],             # [{index, text, length, start}, ...]
        "status": "pending",      # pending | processing | processed | failed
        "error": null,
        "embedding_model": null,
        "created_at": "...",
        "updated_at": "..."
    }
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from docchat.config import DOCUMENTS_FILE
from docchat.errors import DocumentNotFoundError, handle_errors

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_PROCESSED = "processed"
STATUS_FAILED = "failed"


def is_external_path(file_path: str) -> bool:
    """True when the document lives at an http(s) URL rather than on disk"""
    return file_path.startswith("http://") or file_path.startswith("https://")


class DocumentStore:
    """Manage document rows"""

    def __init__(self, documents_file: Path = DOCUMENTS_FILE):
        self.documents_file = documents_file
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.load()

    def load(self) -> None:
        """Load rows from file"""
        try:
            if self.documents_file.exists():
                with open(self.documents_file, 'r') as f:
                    self.documents = json.load(f)
        except Exception as e:
            logger.error(f"Error loading documents: {e}")
            self.documents = {}

    @handle_errors("Document save")
    def save(self) -> None:
        """Save rows to file"""
        self.documents_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.documents_file, 'w') as f:
            json.dump(self.documents, f, indent=2)

    def create(
        self,
        name: str,
        file_path: str,
        file_type: str,
        file_size: int = 0,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Insert a new, unprocessed document row"""
        now = datetime.now().isoformat()
        row = {
            "id": uuid.uuid4().hex,
            "name": name,
            "file_path": file_path,
            "file_type": file_type,
            "file_size": file_size,
            "enabled": True,
            "category": category,
            "content": None,
            "chunks": [],
            "status": STATUS_PENDING,
            "error": None,
            "embedding_model": None,
            "created_at": now,
            "updated_at": now,
        }
        self.documents[row["id"]] = row
        self.save()
        return row

    def get(self, document_id: str) -> Optional[Dict[str, Any]]:
        return self.documents.get(document_id)

    def require(self, document_id: str) -> Dict[str, Any]:
        """Like get(), but a missing row is an error"""
        row = self.documents.get(document_id)
        if row is None:
            raise DocumentNotFoundError(document_id)
        return row

    def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        for row in self.documents.values():
            if row["name"] == name:
                return row
        return None

    def update(self, document_id: str, **fields) -> Dict[str, Any]:
        """Change fields on a row and bump updated_at"""
        row = self.require(document_id)
        row.update(fields)
        row["updated_at"] = datetime.now().isoformat()
        self.save()
        return row

    def set_enabled(self, document_id: str, enabled: bool) -> Dict[str, Any]:
        row = self.update(document_id, enabled=enabled)
        logger.info(f"Document {row['name']} {'enabled' if enabled else 'disabled'}")
        return row

    def remove(self, document_id: str) -> bool:
        if document_id in self.documents:
            del self.documents[document_id]
            self.save()
            return True
        return False

    def clear(self) -> None:
        self.documents = {}
        self.save()

    def list_all(self) -> List[Dict[str, Any]]:
        """All rows, newest first"""
        return sorted(self.documents.values(), key=lambda row: row["created_at"], reverse=True)

    def list_enabled(self) -> List[Dict[str, Any]]:
        return [row for row in self.list_all() if row.get("enabled")]

    def list_unprocessed(self, external_only: bool = False) -> List[Dict[str, Any]]:
        """Rows still to be processed (no content yet, or failed last time), optionally only linked ones"""
        rows = [
            row for row in self.list_all()
            if row.get("content") is None or row.get("status") == STATUS_FAILED
        ]
        if external_only:
            rows = [row for row in rows if is_external_path(row["file_path"])]
        return rows

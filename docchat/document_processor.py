"""Document Processor - text extraction, URL fetching and chunking"""
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, List
from urllib.parse import urlparse

import httpx
from langchain_community.document_loaders import Docx2txtLoader, PyPDFLoader, TextLoader
from langchain_text_splitters import RecursiveCharacterTextSplitter

from docchat.config import FETCH_TIMEOUT
from docchat.config_manager import ConfigManager
from docchat.errors import DocumentFetchError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {'.txt', '.md'}

MIME_SUFFIXES = {
    "application/pdf": ".pdf",
    "text/plain": ".txt",
    "text/markdown": ".md",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}


def guess_suffix(url: str, content_type: str = "") -> str:
    """Best guess at a file suffix for a downloaded document (defaults to .pdf)"""
    suffix = Path(urlparse(url).path).suffix.lower()
    if suffix in DocumentProcessor.LOADERS:
        return suffix

    mime = content_type.split(";")[0].strip().lower()
    return MIME_SUFFIXES.get(mime, ".pdf")


class DocumentProcessor:
    """Handle document loading and chunking"""

    LOADERS = {
        '.pdf': PyPDFLoader,
        '.txt': TextLoader,
        '.md': TextLoader,
        '.docx': Docx2txtLoader
    }

    def __init__(self, config: ConfigManager, http_client: httpx.AsyncClient = None):
        self.config = config
        self.http_client = http_client

    def extract_text(self, file_path: Path) -> str:
        """Load the full text of a local file"""
        suffix = Path(file_path).suffix.lower()
        if suffix not in self.LOADERS:
            raise UnsupportedFileTypeError(f"Unsupported file type: {suffix or 'none'}")

        if suffix in TEXT_SUFFIXES:
            loader = TextLoader(str(file_path), encoding="utf-8", autodetect_encoding=True)
        else:
            loader = self.LOADERS[suffix](str(file_path))
        pages = loader.load()
        return "\n\n".join(page.page_content for page in pages)

    async def fetch_text(self, url: str) -> str:
        """Download a linked document and extract its text"""
        logger.info(f"Fetching document from: {url}")
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url, follow_redirects=True, timeout=FETCH_TIMEOUT)
            else:
                async with httpx.AsyncClient(timeout=FETCH_TIMEOUT) as client:
                    response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DocumentFetchError(f"Fetching {url} failed with HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DocumentFetchError(f"Fetching {url} failed: {e}") from e

        suffix = guess_suffix(url, response.headers.get("content-type", ""))
        if suffix in TEXT_SUFFIXES:
            return response.text

        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp_path = Path(tmp_dir) / f"download{suffix}"
            tmp_path.write_bytes(response.content)
            text = self.extract_text(tmp_path)

        logger.info(f"Extracted {len(text)} characters from {url}")
        return text

    def chunk_text(self, text: str) -> List[Dict[str, Any]]:
        """Split text into overlapping chunks.

        Each chunk is a slice of ``text``: ``text[start:start + length]``.
        """
        if not text or not text.strip():
            return []

        splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.config.get('chunk_size'),
            chunk_overlap=self.config.get('chunk_overlap'),
            length_function=len,
            add_start_index=True
        )
        pieces = splitter.create_documents([text])

        return [
            {
                "index": i,
                "text": piece.page_content,
                "length": len(piece.page_content),
                "start": piece.metadata["start_index"],
            }
            for i, piece in enumerate(pieces)
        ]

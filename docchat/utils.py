"""Utility Functions"""
import re
from pathlib import Path
from typing import Tuple

import httpx

from docchat.config import ALLOWED_EXTENSIONS, MAX_FILE_SIZE_BYTES, MAX_FILE_SIZE_MB, OLLAMA_BASE_URL
from docchat.errors import FileValidationError, UnsupportedFileTypeError


def clean_llm_response(text: str) -> str:
    """Remove reasoning tags from LLM response"""
    patterns = [
        r'<think>.*?</think>',
        r'<reasoning>.*?</reasoning>',
        r'</?(?:think|reasoning)>'
    ]

    for pattern in patterns:
        text = re.sub(pattern, '', text, flags=re.DOTALL | re.IGNORECASE)

    return re.sub(r'\n{3,}', '\n\n', text).strip()


async def check_ollama_health(base_url: str = OLLAMA_BASE_URL) -> Tuple[bool, str]:
    """Check if Ollama is available"""
    try:
        async with httpx.AsyncClient(timeout=5) as client:
            response = await client.get(f"{base_url.rstrip('/')}/api/tags")
        if response.status_code == 200:
            return True, "Available"
        return False, f"HTTP {response.status_code}"
    except httpx.HTTPError as e:
        return False, f"Connection failed: {e}"


def validate_file(filename: str, file_size: int) -> None:
    """Reject uploads with a bad name, type or size"""
    if not filename or Path(filename).name != filename:
        raise FileValidationError(f"Invalid file name: {filename!r}")

    if Path(filename).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"Unsupported type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    if file_size == 0:
        raise FileValidationError("File is empty")

    if file_size > MAX_FILE_SIZE_BYTES:
        raise FileValidationError(
            f"File too large ({file_size/(1024*1024):.1f}MB > {MAX_FILE_SIZE_MB}MB)"
        )


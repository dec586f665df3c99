"""
Configuration Settings for the DocChat Backend

Static settings live here. Anything that should be tweakable while the
server runs (chunk sizes, top_k, temperature, prompts) lives in
ConfigManager instead and starts from the defaults below.
"""

import os
from pathlib import Path

# ============================================================================
# MODEL SERVICE
# ============================================================================

OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

CHAT_MODEL = os.getenv("DOCCHAT_CHAT_MODEL", "llama3.2")

DEFAULT_EMBEDDING_MODEL = os.getenv("DOCCHAT_EMBEDDING_MODEL", "nomic-embed-text")

# Embedding inputs are cut to this many characters
EMBED_CHAR_LIMIT = 8000


# ============================================================================
# WHERE WE STORE STUFF
# ============================================================================

DATA_DIR = Path(os.getenv("DOCCHAT_DATA_DIR", "docchat_data"))
UPLOAD_DIR = DATA_DIR / "uploads"

DOCUMENTS_FILE = DATA_DIR / "documents.json"
VECTORS_FILE = DATA_DIR / "vectors.json"
CONFIG_FILE = DATA_DIR / "config.json"
CATEGORIES_FILE = DATA_DIR / "categories.json"


# ============================================================================
# FILE UPLOAD RULES
# ============================================================================

ALLOWED_EXTENSIONS = {'.pdf', '.txt', '.md', '.docx'}

MAX_FILE_SIZE_MB = int(os.getenv("DOCCHAT_MAX_FILE_SIZE_MB", "20"))
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

# Linked documents are downloaded with this timeout (seconds)
FETCH_TIMEOUT = 60.0


# ============================================================================
# ANSWERS
# ============================================================================

SNIPPET_COUNT = 3
SNIPPET_LENGTH = 200

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based on excerpts "
    "from documents. Always state which documents you used to answer the "
    "question. If the documents do not contain relevant information, say so "
    "clearly."
)

NO_DOCUMENTS_ANSWER = (
    "No documents are currently enabled for search. "
    "Please enable at least one document."
)
NO_RELEVANT_ANSWER = "No relevant information was found in the enabled documents."


def ensure_directories() -> None:
    """Create the data and upload directories if they don't exist yet"""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

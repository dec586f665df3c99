"""DocChat backend: document ingestion, retrieval and cited answers."""

__version__ = "1.0.0"

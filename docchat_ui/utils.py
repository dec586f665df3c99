"""Formatting helpers for the UI"""
from typing import Dict


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def file_type_badge(doc: Dict) -> str:
    """'PDF', 'DOCX', ... from a document's file type (which may be a MIME type)"""
    return (doc.get("file_type") or "").split("/")[-1].upper() or "FILE"

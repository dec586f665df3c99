"""Category tree used to group the document list.

The tree is a list of ``{"title": ..., "subcategories": [...]}`` entries. A
``categories.json`` file in the data directory replaces the defaults.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from docchat.config import CATEGORIES_FILE

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

DEFAULT_CATEGORIES: List[Dict[str, Any]] = [
    {
        "title": "Association",
        "subcategories": [
            "Regulations",
            "Information",
            "Forms and guides",
            "General meetings",
            "Annual reports",
            "Finance - other documents",
            "Board meetings",
        ],
    },
    {"title": "Other documents", "subcategories": []},
    {"title": "Privacy policy", "subcategories": []},
]


def load_categories(path: Path = CATEGORIES_FILE) -> List[Dict[str, Any]]:
    """Read the category tree, falling back to the defaults"""
    if not path.exists():
        return DEFAULT_CATEGORIES
    try:
        with open(path, 'r') as f:
            tree = json.load(f)
        return [
            {"title": str(item["title"]), "subcategories": [str(s) for s in item.get("subcategories", [])]}
            for item in tree
        ]
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Invalid category file {path}: {e}")
        return DEFAULT_CATEGORIES


def group_documents(documents: List[Dict[str, Any]], tree: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Place documents under their category; empty groups are left out.

    Documents whose category is not in the tree end up in a final
    "Uncategorized" group. Document order is preserved within each group.
    """
    placed = set()
    groups = []

    for category in tree:
        subgroups = []
        for sub in category["subcategories"]:
            docs = [doc for doc in documents if doc.get("category") == sub]
            placed.update(doc["id"] for doc in docs)
            if docs:
                subgroups.append({"title": sub, "documents": docs, "subcategories": []})

        direct = [doc for doc in documents if doc.get("category") == category["title"]]
        placed.update(doc["id"] for doc in direct)

        if direct or subgroups:
            groups.append({"title": category["title"], "documents": direct, "subcategories": subgroups})

    leftover = [doc for doc in documents if doc["id"] not in placed]
    if leftover:
        groups.append({"title": UNCATEGORIZED, "documents": leftover, "subcategories": []})

    return groups

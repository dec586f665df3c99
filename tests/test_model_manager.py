import asyncio
from typing import List

import pytest
from langchain_core.embeddings import Embeddings

from docchat.config import EMBED_CHAR_LIMIT
from docchat.config_manager import ConfigManager
from docchat.model_manager import ModelManager


class RecordingEmbeddings(Embeddings):
    def __init__(self):
        self.inputs = []

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.inputs.extend(texts)
        return [[float(len(text)), 1.0] for text in texts]

    def embed_query(self, text: str) -> List[float]:
        self.inputs.append(text)
        return [float(len(text)), 1.0]


@pytest.fixture
def embeddings():
    return RecordingEmbeddings()


@pytest.fixture
def manager(tmp_path, embeddings):
    return ModelManager(ConfigManager(tmp_path / "config.json"), embeddings_model=embeddings)


def test_embed_query_caps_input(manager, embeddings):
    vector = asyncio.run(manager.embed_query("a" * (EMBED_CHAR_LIMIT + 500)))

    assert embeddings.inputs == ["a" * EMBED_CHAR_LIMIT]
    assert vector[0] == EMBED_CHAR_LIMIT


def test_embed_documents_caps_each_input(manager, embeddings):
    long_text = "b" * (EMBED_CHAR_LIMIT * 2)

    vectors = asyncio.run(manager.embed_documents([long_text, "short"]))

    assert embeddings.inputs == ["b" * EMBED_CHAR_LIMIT, "short"]
    assert [v[0] for v in vectors] == [EMBED_CHAR_LIMIT, 5]


def test_embed_documents_without_texts(manager, embeddings):
    assert asyncio.run(manager.embed_documents([])) == []
    assert embeddings.inputs == []


def test_reset_drops_cached_embeddings(manager, embeddings):
    asyncio.run(manager.reset(embeddings=True, llm=False))

    assert manager.embeddings_model is None

import re
import zlib
from typing import List

import httpx
import numpy as np
import pytest
from fastapi.testclient import TestClient
from langchain_core.embeddings import Embeddings

from docchat.main import app
from docchat.services import Services, get_services

DIMENSIONS = 64


class FakeEmbeddings(Embeddings):
    """Bag-of-words vectors: texts sharing words point the same way."""

    def __init__(self, dimensions: int = DIMENSIONS):
        self.dimensions = dimensions

    def _embed(self, text: str) -> List[float]:
        vector = np.zeros(self.dimensions)
        for word in re.findall(r"[a-z]+", text.lower()):
            vector[zlib.crc32(word.encode()) % self.dimensions] += 1.0
        return vector.tolist()

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        return [self._embed(text) for text in texts]

    def embed_query(self, text: str) -> List[float]:
        return self._embed(text)


class FakeLLM:
    def __init__(self, answer="The answer <think>internal notes</think>is 42.\n\n\n\nSee the manual."):
        self.model = "fake-model"
        self.temperature = 0.3
        self.max_tokens = None
        self.answer = answer
        self.calls = []

    async def ainvoke(self, prompt, system=None, temperature=None, max_tokens=None):
        self.calls.append({"prompt": prompt, "system": system, "temperature": temperature, "max_tokens": max_tokens})
        return self.answer

    async def astream(self, prompt, system=None, temperature=None, max_tokens=None):
        self.calls.append({"prompt": prompt, "system": system, "temperature": temperature, "max_tokens": max_tokens})
        for word in ["The ", "answer ", "is ", "42."]:
            yield word

    async def close(self):
        pass


WEB_PAGES = {
    "https://example.com/docs/parking-rules.txt": (
        "text/plain",
        b"Parking rules. Guests may park in the courtyard on weekends only.",
    ),
    "https://example.com/broken.pdf": None,
}


def fake_web(request: httpx.Request) -> httpx.Response:
    page = WEB_PAGES.get(str(request.url))
    if page is None:
        return httpx.Response(404, text="not found")
    content_type, body = page
    return httpx.Response(200, headers={"content-type": content_type}, content=body)


@pytest.fixture
def make_embeddings():
    return FakeEmbeddings


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def services(tmp_path, llm):
    services = Services(data_dir=tmp_path / "data")
    services.model_manager.embeddings_model = FakeEmbeddings()
    services.model_manager.llm = llm
    services.processor.http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_web))
    return services


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def upload(client):
    """Upload a text document through the API and return its JSON"""
    def _upload(name, text, category=None):
        data = {"category": category} if category else None
        response = client.post(
            "/documents",
            files={"file": (name, text.encode("utf-8"), "text/plain")},
            data=data,
        )
        assert response.status_code == 200, response.text
        return response.json()
    return _upload

import json

import httpx
import pytest

from docchat_ui.api_client import APIClient, error_message
from docchat_ui.utils import file_type_badge, format_file_size


def make_client(handler):
    return APIClient("http://backend:8000/", transport=httpx.MockTransport(handler))


def test_toggle_sends_patch():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "abc", "enabled": False})

    status_code, data = make_client(handler).toggle_document("abc", False)

    assert status_code == 200
    assert seen == {"method": "PATCH", "url": "http://backend:8000/documents/abc", "body": {"enabled": False}}


def test_get_documents_returns_empty_list_on_error():
    client = make_client(lambda request: httpx.Response(500, json={"detail": "boom"}))

    assert client.get_documents() == []


def test_connection_errors_become_status_500():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    status_code, data = make_client(handler).delete_document("abc")

    assert status_code == 500
    assert "Connection error" in data["detail"]


def test_link_document_passes_process_flag():
    def handler(request):
        assert request.url.params["process"] == "true"
        assert json.loads(request.content) == {"url": "https://example.com/a.pdf", "name": None, "category": "Parking"}
        return httpx.Response(200, json={"name": "a.pdf"})

    status_code, data = make_client(handler).link_document("https://example.com/a.pdf", "", "Parking")

    assert status_code == 200


def test_ask_stream_parses_events():
    body = (
        'data: {"type": "metadata", "sources": []}\n\n'
        'data: {"type": "content", "content": "Hi"}\n\n'
        'data: not-json\n\n'
        'data: {"type": "done", "processing_time": 0.1}\n\n'
    )
    client = make_client(lambda request: httpx.Response(200, text=body))

    events = list(client.ask_stream("Hello?"))

    assert [e["type"] for e in events] == ["metadata", "content", "done"]


def test_ask_stream_reports_bad_status():
    client = make_client(lambda request: httpx.Response(422, json={"detail": []}))

    assert list(client.ask_stream("")) == [{"type": "error", "message": "Query failed with status 422"}]


def test_file_url():
    client = make_client(lambda request: httpx.Response(200))

    assert client.file_url("abc") == "http://backend:8000/documents/abc/file"


@pytest.mark.parametrize("data, expected", [
    ({"detail": "Document 'x' not found"}, "Document 'x' not found"),
    ({"detail": [{"msg": "field required"}, {"msg": "too long"}]}, "field required; too long"),
    ({"message": "old style"}, "old style"),
    ({}, "fallback"),
    ("plain text", "fallback"),
])
def test_error_message(data, expected):
    assert error_message(data, "fallback") == expected


@pytest.mark.parametrize("size, expected", [
    (512, "512 B"),
    (2048, "2.0 KB"),
    (5 * 1024 * 1024, "5.0 MB"),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_file_type_badge():
    assert file_type_badge({"file_type": "pdf"}) == "PDF"
    assert file_type_badge({"file_type": "application/pdf"}) == "PDF"
    assert file_type_badge({"file_type": None}) == "FILE"

"""HTTP client used by the Streamlit UI to talk to the backend API.

Every call returns ``(status_code, data)`` and never raises on network
problems; connection failures come back as status 500 with a message.
"""
import json
from typing import Any, Dict, Iterator, List, Optional, Tuple

import httpx


class APIClient:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout_seconds, transport=transport)

    def _make_request(self, method: str, endpoint: str, timeout: float = 10, **kwargs) -> Tuple[int, Any]:
        try:
            response = self.client.request(method, endpoint, timeout=timeout, **kwargs)
        except httpx.RequestError as e:
            return 500, {"detail": f"Connection error: {e}"}

        try:
            data = response.json() if response.content else {}
        except json.JSONDecodeError:
            data = {"detail": "Invalid JSON response"}
        return response.status_code, data

    def health_check(self) -> Tuple[bool, Optional[Dict]]:
        status_code, data = self._make_request('GET', '/health', timeout=5)
        return status_code == 200, data if status_code == 200 else None

    def get_documents(self) -> List[Dict]:
        status_code, data = self._make_request('GET', '/documents')
        return data if status_code == 200 else []

    def get_grouped_documents(self) -> List[Dict]:
        status_code, data = self._make_request('GET', '/documents/grouped')
        return data if status_code == 200 else []

    def get_document(self, document_id: str) -> Tuple[int, Dict]:
        return self._make_request('GET', f'/documents/{document_id}')

    def upload_file(self, name: str, content: bytes, mime_type: str = None, category: str = None) -> Tuple[int, Dict]:
        files = {"file": (name, content, mime_type or "application/octet-stream")}
        data = {"category": category} if category else None
        return self._make_request('POST', '/documents', timeout=120, files=files, data=data)

    def link_document(self, url: str, name: str = None, category: str = None, process: bool = True) -> Tuple[int, Dict]:
        payload = {"url": url, "name": name or None, "category": category or None}
        return self._make_request(
            'POST', '/documents/link', timeout=120, json=payload, params={"process": process}
        )

    def toggle_document(self, document_id: str, enabled: bool) -> Tuple[int, Dict]:
        return self._make_request('PATCH', f'/documents/{document_id}', json={"enabled": enabled})

    def delete_document(self, document_id: str) -> Tuple[int, Dict]:
        return self._make_request('DELETE', f'/documents/{document_id}', timeout=30)

    def process_document(self, document_id: str) -> Tuple[int, Dict]:
        return self._make_request('POST', f'/documents/{document_id}/process', timeout=300)

    def process_pending(self) -> Tuple[int, Dict]:
        return self._make_request('POST', '/documents/process-pending', timeout=None)

    def file_url(self, document_id: str) -> str:
        return f"{self.base_url}/documents/{document_id}/file"

    def ask_stream(self, question: str, top_k: Optional[int] = None) -> Iterator[Dict]:
        """Yield the server-sent events of a streaming answer"""
        payload = {"question": question, "stream": True}
        if top_k:
            payload["top_k"] = top_k
        try:
            with self.client.stream('POST', '/chat', json=payload, timeout=180) as response:
                if response.status_code != 200:
                    yield {"type": "error", "message": f"Query failed with status {response.status_code}"}
                    return
                for line in response.iter_lines():
                    if line and line.startswith('data: '):
                        try:
                            yield json.loads(line[6:])
                        except json.JSONDecodeError:
                            continue
        except httpx.TimeoutException:
            yield {"type": "error", "message": "Request timed out"}
        except httpx.RequestError as e:
            yield {"type": "error", "message": f"Connection error: {e}"}

    def close(self):
        self.client.close()


def error_message(data: Any, fallback: str = "Request failed") -> str:
    """Pull a readable message out of an error response body"""
    if isinstance(data, dict):
        detail = data.get("detail") or data.get("message")
        if isinstance(detail, list):
            return "; ".join(str(item.get("msg", item)) for item in detail)
        if detail:
            return str(detail)
    return fallback

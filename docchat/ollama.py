"""
Async Ollama Chat Client

Talks to Ollama's /api/chat endpoint, either streaming tokens as they are
generated or waiting for the complete answer. Network problems are turned
into LLMError so callers only have one exception type to handle.
"""

import json
from typing import AsyncIterator, Dict, List, Optional

import httpx

from docchat.config import CHAT_MODEL, OLLAMA_BASE_URL
from docchat.errors import LLMError


class AsyncOllamaLLM:
    """
    Async chat client for Ollama.

    Example usage:
        llm = AsyncOllamaLLM(model="llama3.2", temperature=0.3)

        async for chunk in llm.astream("Summarize this", system="Be brief"):
            print(chunk, end="", flush=True)

        answer = await llm.ainvoke("What's 2+2?")
    """

    def __init__(
        self,
        model: str = CHAT_MODEL,
        base_url: str = OLLAMA_BASE_URL,
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
        timeout: float = 180.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.base_url = base_url.rstrip('/')

        # One persistent connection pool, reused across requests
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _payload(
        self,
        prompt: str,
        system: Optional[str],
        stream: bool,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict:
        """Build the request body; per-call options win over the client defaults"""
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        if temperature is None:
            temperature = self.temperature
        if max_tokens is None:
            max_tokens = self.max_tokens

        options = {"temperature": temperature}
        if max_tokens:
            options["num_predict"] = max_tokens

        return {
            "model": self.model,
            "messages": messages,
            "stream": stream,
            "options": options
        }

    async def astream(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> AsyncIterator[str]:
        """
        Stream the response piece by piece.

        Raises:
            LLMError: on timeouts, connection failures or a non-200 status
        """
        url = f"{self.base_url}/api/chat"
        payload = self._payload(prompt, system, True, temperature, max_tokens)

        try:
            async with self.client.stream('POST', url, json=payload) as response:
                if response.status_code != 200:
                    raise LLMError(f"Ollama returned HTTP {response.status_code}")

                async for line in response.aiter_lines():
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        # Partial or malformed lines are skipped
                        continue

                    if error := data.get("error"):
                        raise LLMError(f"Ollama error: {error}")
                    if content := data.get("message", {}).get("content", ""):
                        yield content
                    if data.get("done", False):
                        break
        except httpx.TimeoutException as e:
            raise LLMError("The model took too long to respond (timeout)") from e
        except httpx.ConnectError as e:
            raise LLMError("Can't connect to Ollama - is it running?") from e
        except httpx.HTTPError as e:
            raise LLMError(f"Model request failed: {e}") from e

    async def ainvoke(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Get the complete response at once.

        Raises:
            LLMError: on transport failures, HTTP errors or a malformed body
        """
        url = f"{self.base_url}/api/chat"
        payload = self._payload(prompt, system, False, temperature, max_tokens)

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise LLMError("The model took too long to respond (timeout)") from e
        except httpx.ConnectError as e:
            raise LLMError("Can't connect to Ollama - is it running?") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(f"Ollama returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise LLMError(f"Model request failed: {e}") from e
        except ValueError as e:
            raise LLMError("Ollama returned a malformed response") from e

        if error := data.get("error"):
            raise LLMError(f"Ollama error: {error}")
        return data.get("message", {}).get("content", "")

    async def close(self):
        """Release the connection pool. Call this on shutdown."""
        await self.client.aclose()

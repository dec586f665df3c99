import asyncio
import json

import httpx
import pytest

from docchat.errors import LLMError
from docchat.ollama import AsyncOllamaLLM


def make_llm(handler, **kwargs):
    return AsyncOllamaLLM(
        model="llama3.2",
        base_url="http://ollama:11434/",
        transport=httpx.MockTransport(handler),
        **kwargs
    )


def collect(llm, prompt, system=None):
    async def run():
        try:
            return [piece async for piece in llm.astream(prompt, system=system)]
        finally:
            await llm.close()
    return asyncio.run(run())


def test_ainvoke_sends_system_and_options():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"message": {"role": "assistant", "content": "Hello"}, "done": True})

    llm = make_llm(handler, temperature=0.2, max_tokens=500)
    answer = asyncio.run(llm.ainvoke("Question?", system="Be brief"))

    assert answer == "Hello"
    assert seen["url"] == "http://ollama:11434/api/chat"
    assert seen["payload"] == {
        "model": "llama3.2",
        "messages": [
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Question?"},
        ],
        "stream": False,
        "options": {"temperature": 0.2, "num_predict": 500},
    }


def test_ainvoke_http_error():
    llm = make_llm(lambda request: httpx.Response(404, json={"error": "model not found"}))

    with pytest.raises(LLMError, match="404"):
        asyncio.run(llm.ainvoke("Question?"))


def test_ainvoke_connection_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(LLMError, match="connect"):
        asyncio.run(make_llm(handler).ainvoke("Question?"))


def test_astream_yields_content_until_done():
    lines = [
        {"message": {"content": "The "}, "done": False},
        {"message": {"content": "answer"}, "done": False},
        {"message": {"content": ""}, "done": True},
        {"message": {"content": "ignored"}, "done": False},
    ]
    body = "\n".join(json.dumps(line) for line in lines[:2]) + "\n{broken\n" + "\n".join(
        json.dumps(line) for line in lines[2:]
    )

    def handler(request):
        assert json.loads(request.content)["stream"] is True
        return httpx.Response(200, content=body.encode())

    assert collect(make_llm(handler), "Question?") == ["The ", "answer"]


def test_astream_bad_status():
    with pytest.raises(LLMError, match="HTTP 500"):
        collect(make_llm(lambda request: httpx.Response(500)), "Question?")


def test_astream_error_line():
    body = json.dumps({"error": "out of memory"})

    with pytest.raises(LLMError, match="out of memory"):
        collect(make_llm(lambda request: httpx.Response(200, content=body.encode())), "Question?")


def test_per_call_options_override_client_defaults():
    payloads = []

    def handler(request):
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"message": {"content": "ok"}, "done": True})

    llm = make_llm(handler, temperature=0.3, max_tokens=500)

    async def run():
        await llm.ainvoke("Question?", temperature=1.5, max_tokens=50)
        await llm.ainvoke("Question?")
        await llm.close()

    asyncio.run(run())

    assert payloads[0]["options"] == {"temperature": 1.5, "num_predict": 50}
    assert payloads[1]["options"] == {"temperature": 0.3, "num_predict": 500}
    assert llm.temperature == 0.3

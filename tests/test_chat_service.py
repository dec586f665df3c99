import asyncio
import json

import httpx

from docchat.models import ChatRequest
from docchat.ollama import AsyncOllamaLLM

BOILER_TEXT = "The boiler manual explains how to reset the boiler pressure using the red valve."


def ollama_stream(payloads):
    """Ollama stand-in that records every chat payload and streams a short answer"""
    body = "\n".join(
        json.dumps(line) for line in [
            {"message": {"content": "Use the "}, "done": False},
            {"message": {"content": "red valve."}, "done": True},
        ]
    )

    def handler(request):
        payloads.append(json.loads(request.content))
        return httpx.Response(200, content=body.encode())

    return httpx.MockTransport(handler)


def test_interleaved_streams_keep_their_own_temperature(services):
    payloads = []
    services.model_manager.llm = AsyncOllamaLLM(model="llama3.2", transport=ollama_stream(payloads))
    chat = services.chat

    async def run():
        await services.ingestion.upload("boiler.txt", BOILER_TEXT.encode("utf-8"))

        hot = chat.stream(ChatRequest(question="How do I reset the boiler?", temperature=1.5, stream=True))
        first = await hot.__anext__()
        assert first["type"] == "metadata"

        cold = [event async for event in chat.stream(
            ChatRequest(question="How do I reset the boiler?", temperature=0.0, stream=True)
        )]
        rest = [event async for event in hot]

        await services.model_manager.cleanup()
        return cold, rest

    cold, rest = asyncio.run(run())

    assert [payload["options"]["temperature"] for payload in payloads] == [0.0, 1.5]
    assert cold[-1]["type"] == "done"
    assert "".join(e["content"] for e in rest if e["type"] == "content") == "Use the red valve."

# tests/test_llm_client.py

from __future__ import annotations

import json

import httpx
import pytest

from quadrant_tasks.errors import RemoteFailureError, TaskValidationError
from quadrant_tasks.llm.client import DEFAULT_SYSTEM_PROMPT, OpenAIReportClient
from quadrant_tasks.llm.offline import OfflineReportClient


def _completion(content: str | None, *, choices: bool = True) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "test-model",
        "choices": (
            [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ]
            if choices
            else []
        ),
    }


def _client(handler) -> tuple[OpenAIReportClient, httpx.AsyncClient]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = OpenAIReportClient(
        base_url="https://llm.test/v1",
        default_model="default-model",
        http_client=http_client,
    )
    return client, http_client


@pytest.mark.asyncio
async def test_generate_sends_chat_completion() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_completion("Weekly summary"))

    client, http_client = _client(handler)
    try:
        text = await client.generate("sk-test", "gpt-test", "List of tasks")
    finally:
        await http_client.aclose()

    assert text == "Weekly summary"
    req = seen[0]
    assert str(req.url) == "https://llm.test/v1/chat/completions"
    assert req.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(req.content)
    assert body["model"] == "gpt-test"
    assert body["temperature"] == 0.7
    assert body["messages"] == [
        {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
        {"role": "user", "content": "List of tasks"},
    ]


@pytest.mark.asyncio
async def test_generate_uses_default_model_when_empty() -> None:
    models: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        models.append(json.loads(request.content)["model"])
        return httpx.Response(200, json=_completion("ok"))

    client, http_client = _client(handler)
    try:
        await client.generate("sk-test", "  ", "prompt")
    finally:
        await http_client.aclose()
    assert models == ["default-model"]


@pytest.mark.asyncio
async def test_generate_error_status_carries_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}})

    client, http_client = _client(handler)
    try:
        with pytest.raises(RemoteFailureError) as exc:
            await client.generate("sk-bad", "m", "prompt")
    finally:
        await http_client.aclose()
    assert exc.value.status_code == 401
    assert "Incorrect API key provided" in exc.value.body


@pytest.mark.asyncio
async def test_generate_no_retry_on_server_error() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, text="overloaded")

    client, http_client = _client(handler)
    try:
        with pytest.raises(RemoteFailureError):
            await client.generate("sk", "m", "prompt")
    finally:
        await http_client.aclose()
    assert calls == 1


@pytest.mark.asyncio
async def test_generate_empty_choices_is_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion(None, choices=False))

    client, http_client = _client(handler)
    try:
        with pytest.raises(RemoteFailureError):
            await client.generate("sk", "m", "prompt")
    finally:
        await http_client.aclose()


@pytest.mark.asyncio
async def test_generate_requires_api_key() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("no request expected")

    client, http_client = _client(handler)
    try:
        with pytest.raises(TaskValidationError):
            await client.generate("", "m", "prompt")
    finally:
        await http_client.aclose()


@pytest.mark.asyncio
async def test_offline_client_counts_tasks() -> None:
    text = await OfflineReportClient().generate("", "", "intro\n- Task: a\n- Task: b\n")
    assert "Offline demo mode" in text
    assert "2 task(s)" in text

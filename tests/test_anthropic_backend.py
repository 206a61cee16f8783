import json

import httpx
import pytest
import respx

from collabframe.backends.anthropic import AnthropicBackend
from collabframe.backends.base import CompletionRequest
from collabframe.errors import BackendError, MalformedReplyError
from collabframe.format.types import ToolCallBlock, Turn
from collabframe.tools import ToolRegistry

MESSAGES_URL = "http://anthropic.test/v1/messages"


@pytest.fixture
def backend():
    return AnthropicBackend(api_key="sk-test", base_url="http://anthropic.test/")


@pytest.fixture
def completion_request():
    return CompletionRequest(
        turns=[Turn.human("orientation"), Turn.human("make it blue")],
        model="claude-test",
        tools=ToolRegistry().definitions(),
        max_tokens=100,
    )


@pytest.mark.asyncio
@respx.mock
async def test_complete_sends_messages_and_tools(backend, completion_request):
    route = respx.post(MESSAGES_URL).mock(
        return_value=httpx.Response(200, json={
            "model": "claude-test",
            "stop_reason": "tool_use",
            "content": [
                {"type": "text", "text": "Reading"},
                {"type": "tool_use", "id": "toolu_1", "name": "read_file",
                 "input": {"filename": "style.css"}},
            ],
            "usage": {"input_tokens": 20, "output_tokens": 5},
        })
    )

    reply = await backend.complete(completion_request)

    assert reply.tool_calls == [ToolCallBlock("toolu_1", "read_file", {"filename": "style.css"})]
    assert reply.stop_reason == "tool_use"

    sent = route.calls.last.request
    assert sent.headers["x-api-key"] == "sk-test"
    assert sent.headers["anthropic-version"] == "2023-06-01"
    payload = json.loads(sent.content)
    assert payload["model"] == "claude-test"
    assert payload["max_tokens"] == 100
    assert [t["name"] for t in payload["tools"]] == ["read_file", "edit_file", "list_files"]
    # orientation and command were merged into one user message
    assert len(payload["messages"]) == 1
    assert payload["messages"][0]["role"] == "user"
    assert "temperature" not in payload


@pytest.mark.asyncio
@respx.mock
@pytest.mark.parametrize("status, failure_type", [
    (401, "auth_error"),
    (429, "rate_limit"),
    (500, "server_error"),
    (400, "api_error"),
])
async def test_http_errors(backend, completion_request, status, failure_type):
    respx.post(MESSAGES_URL).mock(
        return_value=httpx.Response(status, json={"error": {"message": "nope"}})
    )
    with pytest.raises(BackendError) as exc_info:
        await backend.complete(completion_request)
    assert exc_info.value.failure_type == failure_type
    assert "nope" in str(exc_info.value)


@pytest.mark.asyncio
@respx.mock
async def test_transport_error(backend, completion_request):
    respx.post(MESSAGES_URL).mock(side_effect=httpx.ConnectError("refused"))
    with pytest.raises(BackendError) as exc_info:
        await backend.complete(completion_request)
    assert exc_info.value.failure_type == "backend_error"


@pytest.mark.asyncio
@respx.mock
async def test_timeout(backend, completion_request):
    respx.post(MESSAGES_URL).mock(side_effect=httpx.ReadTimeout("slow"))
    with pytest.raises(BackendError) as exc_info:
        await backend.complete(completion_request)
    assert exc_info.value.failure_type == "timeout"


@pytest.mark.asyncio
@respx.mock
async def test_non_json_reply(backend, completion_request):
    respx.post(MESSAGES_URL).mock(return_value=httpx.Response(200, text="<html>"))
    with pytest.raises(MalformedReplyError):
        await backend.complete(completion_request)


@pytest.mark.asyncio
@respx.mock
async def test_health_check(backend):
    respx.get("http://anthropic.test/v1/models").mock(return_value=httpx.Response(200, json={}))
    assert await backend.health_check() is True

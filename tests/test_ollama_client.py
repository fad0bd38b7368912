"""Tests for the Ollama client wrapper, over a mocked HTTP transport."""

import json

import httpx
import pytest

from prdforge.domain.shared.result import Err, Ok
from prdforge.infrastructure.ai import OllamaClient, OllamaStreamError


def _ndjson(*chunks: dict) -> bytes:
    return b"".join(json.dumps(c).encode() + b"\n" for c in chunks)


def _chunk(content: str, done: bool = False) -> dict:
    return {
        "model": "llama3.2",
        "created_at": "2024-01-01T00:00:00Z",
        "message": {"role": "assistant", "content": content},
        "done": done,
    }


def _client(handler) -> OllamaClient:
    return OllamaClient("http://ollama.test:11434", transport=httpx.MockTransport(handler))


def test_stream_chat_yields_non_empty_fragments():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(
            200,
            content=_ndjson(_chunk("["), _chunk(""), _chunk('{"title": "A"}'), _chunk("]", done=True)),
        )

    fragments = list(_client(handler).stream_chat("llama3.2", "make tasks", temperature=0.3))

    assert fragments == ["[", '{"title": "A"}', "]"]
    body = requests[0]
    assert body["stream"] is True
    assert body["model"] == "llama3.2"
    assert body["options"]["temperature"] == 0.3
    assert body["messages"] == [{"role": "user", "content": "make tasks"}]


def test_stream_chat_maps_http_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "model 'nope' not found"})

    with pytest.raises(OllamaStreamError, match="model 'nope' not found"):
        list(_client(handler).stream_chat("nope", "hi"))


def test_stream_chat_maps_connection_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    with pytest.raises(OllamaStreamError):
        list(_client(handler).stream_chat("llama3.2", "hi"))


def test_complete_returns_stripped_content():
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content)["stream"] is False
        return httpx.Response(200, json=_chunk("  Alice \n", done=True))

    assert _client(handler).complete("llama3.2", "who?") == Ok("Alice")


def test_complete_reports_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "out of memory"})

    result = _client(handler).complete("llama3.2", "who?")

    assert isinstance(result, Err)
    assert "out of memory" in result.error


def test_is_available_is_cached():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json={"models": []})

    client = _client(handler)

    assert client.is_available()
    assert client.is_available()
    assert calls == ["/api/tags"]


def test_unreachable_server_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    assert not _client(handler).is_available()

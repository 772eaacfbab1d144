import json

import httpx
import pytest

from mcp_deepgram.client import PLACEHOLDER_CALLBACK_URL, DeepgramClient, format_api_error
from mcp_deepgram.errors import MalformedResponseError, NoProjectError, ProviderError, TransportError
from mcp_deepgram.models import TranscriptionOptions


class _Recorder:
    """Fake Deepgram: answers by path and keeps every request it saw."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes[(request.method, request.url.path)]
        if isinstance(answer, Exception):
            raise answer
        status, body = answer
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def paths(self):
        return [r.url.path for r in self.requests]


def _client(recorder, **kwargs) -> DeepgramClient:
    return DeepgramClient("secret-key", transport=httpx.MockTransport(recorder), **kwargs)


@pytest.mark.asyncio
async def test_submit_sends_only_defined_options():
    recorder = _Recorder({("POST", "/v1/listen"): (200, {"request_id": "abc123"})})
    client = _client(recorder)

    result = await client.submit(TranscriptionOptions(url="https://example.com/a.mp3", diarize=True))

    assert result.request_id == "abc123"
    request = recorder.requests[0]
    assert request.headers["Authorization"] == "Token secret-key"
    assert json.loads(request.content) == {"url": "https://example.com/a.mp3"}
    params = dict(request.url.params)
    assert params == {"callback": PLACEHOLDER_CALLBACK_URL, "diarize": "true"}
    await client.aclose()


@pytest.mark.asyncio
async def test_submit_keeps_explicit_false_and_strings():
    recorder = _Recorder({("POST", "/v1/listen"): (200, {"request_id": "r1", "extra": 1})})
    client = _client(recorder)

    options = TranscriptionOptions(
        url="https://example.com/b.wav",
        punctuate=False,
        summarize="v2",
        language="es",
        model="nova-2",
    )
    result = await client.submit(options)

    params = dict(recorder.requests[0].url.params)
    assert params["punctuate"] == "false"
    assert params["summarize"] == "v2"
    assert params["language"] == "es"
    assert params["model"] == "nova-2"
    assert params["callback"] == PLACEHOLDER_CALLBACK_URL
    for name in ("sentiment", "topics", "diarize", "smart_format", "detect_entities"):
        assert name not in params
    assert result.model_dump()["extra"] == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_resolve_project_id_is_cached():
    recorder = _Recorder({
        ("GET", "/v1/projects"): (200, {"projects": [
            {"project_id": "p-first", "name": "one"},
            {"project_id": "p-second", "name": "two"},
        ]}),
    })
    client = _client(recorder)

    first = await client.resolve_project_id()
    second = await client.resolve_project_id()

    assert first == second == "p-first"
    assert recorder.paths() == ["/v1/projects"]
    await client.aclose()


@pytest.mark.asyncio
async def test_no_projects_raises_and_does_not_cache():
    recorder = _Recorder({("GET", "/v1/projects"): (200, {"projects": []})})
    client = _client(recorder)

    with pytest.raises(NoProjectError):
        await client.resolve_project_id()
    with pytest.raises(NoProjectError):
        await client.resolve_project_id()

    assert client.cached_project_id is None
    assert len(recorder.requests) == 2
    await client.aclose()


@pytest.mark.asyncio
async def test_configured_project_id_skips_listing():
    recorder = _Recorder({
        ("GET", "/v1/projects/p-conf/requests/abc"): (200, {"request": {"request_id": "abc", "response": {}}}),
    })
    client = _client(recorder, project_id="p-conf")

    result = await client.fetch_result("abc")

    assert result.request_id == "abc"
    assert recorder.paths() == ["/v1/projects/p-conf/requests/abc"]
    await client.aclose()


@pytest.mark.asyncio
async def test_fetch_result_resolves_project_then_fetches_once():
    recorder = _Recorder({
        ("GET", "/v1/projects"): (200, {"projects": [{"project_id": "p1", "name": "main"}]}),
        ("GET", "/v1/projects/p1/requests/abc"): (200, {"request": {
            "request_id": "abc",
            "project_uuid": "p1",
            "created": "2024-01-01T00:00:00Z",
            "code": 200,
            "deployment": "hosted",
            "response": {
                "metadata": {"duration": 12.5, "channels": 1, "models": ["nova-3"]},
                "results": {"channels": [{"alternatives": [{"transcript": "hello world"}]}]},
            },
        }}),
    })
    client = _client(recorder)

    result = await client.fetch_result("abc")
    await client.fetch_result("abc")

    assert recorder.paths() == [
        "/v1/projects",
        "/v1/projects/p1/requests/abc",
        "/v1/projects/p1/requests/abc",
    ]
    assert not result.is_processing
    assert result.response.transcript == "hello world"
    assert result.response.metadata.duration == 12.5
    assert result.code == 200
    await client.aclose()


@pytest.mark.asyncio
async def test_fetch_result_not_found_is_provider_error():
    recorder = _Recorder({
        ("GET", "/v1/projects"): (200, {"projects": [{"project_id": "p1"}]}),
        ("GET", "/v1/projects/p1/requests/missing"): (404, {"err_code": "NOT_FOUND", "err_msg": "Request not found"}),
    })
    client = _client(recorder)

    with pytest.raises(ProviderError) as exc_info:
        await client.fetch_result("missing")

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Request not found"
    await client.aclose()


@pytest.mark.asyncio
async def test_forbidden_surfaces_status_and_connection_test_is_false():
    recorder = _Recorder({
        ("POST", "/v1/listen"): (403, {"message": "Insufficient permissions"}),
        ("GET", "/v1/projects"): (403, {"message": "Insufficient permissions"}),
    })
    client = _client(recorder)

    with pytest.raises(ProviderError) as exc_info:
        await client.submit(TranscriptionOptions(url="https://example.com/a.mp3"))
    assert exc_info.value.status_code == 403

    with pytest.raises(ProviderError) as exc_info:
        await client.resolve_project_id()
    assert exc_info.value.status_code == 403

    assert await client.test_connection() is False
    await client.aclose()


@pytest.mark.asyncio
async def test_network_failure_is_transport_error():
    boom = httpx.ConnectError("connection refused")
    recorder = _Recorder({("POST", "/v1/listen"): boom, ("GET", "/v1/projects"): boom})
    client = _client(recorder)

    with pytest.raises(TransportError):
        await client.submit(TranscriptionOptions(url="https://example.com/a.mp3"))
    assert await client.test_connection() is False
    await client.aclose()


@pytest.mark.asyncio
async def test_connection_ok():
    recorder = _Recorder({("GET", "/v1/projects"): (200, {"projects": []})})
    async with _client(recorder) as client:
        assert await client.test_connection() is True


@pytest.mark.asyncio
async def test_fetch_result_keeps_object_valued_provider_fields():
    recorder = _Recorder({
        ("GET", "/v1/projects/p1/requests/abc"): (200, {"request": {
            "request_id": "abc",
            "created": "2024-01-01T00:00:00Z",
            "path": "/v1/listen?callback=...",
            "deployment": {"region": "us-east"},
            "callback": {"attempts": 1, "code": 404, "completed": "2024-01-01T00:01:00Z"},
            "response": {"results": {"channels": [{"alternatives": [{"transcript": "done"}]}]}},
        }}),
    })
    client = _client(recorder, project_id="p1")

    result = await client.fetch_result("abc")

    assert result.callback == {"attempts": 1, "code": 404, "completed": "2024-01-01T00:01:00Z"}
    assert result.deployment == {"region": "us-east"}
    assert result.response.transcript == "done"
    await client.aclose()


@pytest.mark.asyncio
async def test_fetch_result_unreadable_record_is_malformed_response():
    recorder = _Recorder({
        ("GET", "/v1/projects/p1/requests/abc"): (200, {"request": {"response": {}}}),
    })
    client = _client(recorder, project_id="p1")

    with pytest.raises(MalformedResponseError):
        await client.fetch_result("abc")
    await client.aclose()


@pytest.mark.asyncio
async def test_submit_without_request_id_is_malformed_response():
    recorder = _Recorder({("POST", "/v1/listen"): (200, {"metadata": {"duration": 1.0}, "results": {}})})
    client = _client(recorder)

    with pytest.raises(MalformedResponseError):
        await client.submit(TranscriptionOptions(url="https://example.com/a.mp3"))
    await client.aclose()


@pytest.mark.asyncio
async def test_non_json_success_body_is_malformed_response():
    recorder = _Recorder({("POST", "/v1/listen"): (200, b"<html>gateway</html>")})
    client = _client(recorder)

    with pytest.raises(MalformedResponseError) as exc_info:
        await client.submit(TranscriptionOptions(url="https://example.com/a.mp3"))

    assert not isinstance(exc_info.value, ProviderError)
    await client.aclose()


@pytest.mark.asyncio
async def test_request_id_is_escaped_in_path():
    recorder = _Recorder({
        ("GET", "/v1/projects/p1/requests/a?b/c"): (200, {"request": {"request_id": "a?b/c", "response": {}}}),
    })
    client = _client(recorder, project_id="p1")

    await client.fetch_result("a?b/c")

    request = recorder.requests[0]
    assert request.url.raw_path == b"/v1/projects/p1/requests/a%3Fb%2Fc"
    assert not request.url.params
    await client.aclose()


@pytest.mark.asyncio
async def test_empty_request_id_is_rejected_before_any_call():
    recorder = _Recorder({})
    client = _client(recorder, project_id="p1")

    with pytest.raises(ValueError):
        await client.fetch_result("")

    assert recorder.requests == []
    await client.aclose()


def test_format_api_error():
    assert format_api_error('{"err_code": "BAD", "err_msg": "Bad audio"}', 400) == "Bad audio"
    assert format_api_error('{"category": "x", "message": "No access"}', 403) == "No access"
    assert format_api_error("plain failure", 500) == "plain failure"
    assert format_api_error("", 502) == "HTTP 502"

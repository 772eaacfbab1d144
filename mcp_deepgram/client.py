"""
Deepgram REST client used by the MCP tools.

Flow:
 - submit: POST /listen with {"url"} body, options as query string and a
   placeholder callback so Deepgram queues the job instead of answering inline
 - resolve_project_id: GET /projects once, first project is cached per instance
 - fetch_result: GET /projects/{project_id}/requests/{request_id}

Errors are never retried or recovered here: non-2xx answers raise ProviderError,
network failures raise TransportError, unreadable 2xx bodies raise
MalformedResponseError.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from opentelemetry import trace
from pydantic import BaseModel, ValidationError

from .config import DEFAULT_BASE_URL, get_settings
from .errors import MalformedResponseError, NoProjectError, ProviderError, TransportError
from .metrics import deepgram_api_calls_total
from .models import (
    OPTION_FIELDS,
    ProjectList,
    SubmitResult,
    TranscriptionOptions,
    TranscriptionResult,
)

tracer = trace.get_tracer(__name__)

# Nothing listens here; its presence makes /listen run asynchronously
PLACEHOLDER_CALLBACK_URL = "https://webhook.site/00000000-0000-0000-0000-000000000000"

_Model = TypeVar("_Model", bound=BaseModel)


def format_api_error(body: str, status_code: int) -> str:
    """Pull a readable message out of a Deepgram error body."""
    try:
        js = json.loads(body) if body else None
    except ValueError:
        js = None
    if isinstance(js, dict):
        # Deepgram uses err_msg on /listen and message/details on management endpoints
        for key in ("err_msg", "message", "reason", "details"):
            value = js.get(key)
            if value:
                return str(value)
    text = (body or "").strip()
    if text:
        return text[:500]
    return f"HTTP {status_code}"


def build_query_params(options: TranscriptionOptions) -> Dict[str, Any]:
    params: Dict[str, Any] = {"callback": PLACEHOLDER_CALLBACK_URL}
    for name in OPTION_FIELDS:
        value = getattr(options, name)
        if value is not None:
            params[name] = value
    return params


def _parse(model: Type[_Model], data: Any, endpoint: str) -> _Model:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(
            f"Unexpected response shape from /{endpoint}: {e.error_count()} validation error(s)"
        ) from e


class DeepgramClient:
    def __init__(
        self,
        api_key: str,
        *,
        project_id: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._project_id: Optional[str] = project_id or None
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Token {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "DeepgramClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def cached_project_id(self) -> Optional[str]:
        return self._project_id

    async def _request(self, endpoint: str, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.RequestError as e:
            deepgram_api_calls_total.labels(endpoint=endpoint, status="transport_error").inc()
            raise TransportError(f"Request to Deepgram failed: {e!r}") from e

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            deepgram_api_calls_total.labels(endpoint=endpoint, status=str(resp.status_code)).inc()
            raise ProviderError(resp.status_code, format_api_error(resp.text, resp.status_code)) from e

        deepgram_api_calls_total.labels(endpoint=endpoint, status="success").inc()
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response from /{endpoint} is not valid JSON: {resp.text[:200]}") from e

    async def submit(self, options: TranscriptionOptions) -> SubmitResult:
        """Queue ``options.url`` for transcription and return the request id."""
        params = build_query_params(options)
        with tracer.start_as_current_span("deepgram.submit") as span:
            span.set_attribute("deepgram.params", sorted(params))
            data = await self._request("listen", "POST", "/listen", json={"url": options.url}, params=params)
            result = _parse(SubmitResult, data, "listen")
            span.set_attribute("deepgram.request_id", result.request_id)
            return result

    async def resolve_project_id(self) -> str:
        """
        Return the project id bound to the API key.

        The first project of the listing wins; Deepgram does not document the
        order, so accounts with several projects may want DEEPGRAM_PROJECT_ID.
        """
        if self._project_id:
            return self._project_id

        with tracer.start_as_current_span("deepgram.resolve_project_id") as span:
            data = await self._request("projects", "GET", "/projects")
            listing = _parse(ProjectList, data or {}, "projects")
            if not listing.projects:
                span.set_attribute("deepgram.project_count", 0)
                raise NoProjectError("No projects found for this API key")

            span.set_attribute("deepgram.project_count", len(listing.projects))
            self._project_id = listing.projects[0].project_id
            span.set_attribute("deepgram.project_id", self._project_id)
            return self._project_id

    async def fetch_result(self, request_id: str) -> TranscriptionResult:
        if not request_id:
            raise ValueError("request_id must not be empty")

        project_id = await self.resolve_project_id()
        with tracer.start_as_current_span("deepgram.fetch_result") as span:
            span.set_attribute("deepgram.project_id", project_id)
            span.set_attribute("deepgram.request_id", request_id)
            data = await self._request(
                "requests",
                "GET",
                f"/projects/{quote(project_id, safe='')}/requests/{quote(request_id, safe='')}",
            )
            # record normally arrives wrapped in {"request": {...}}
            record = data.get("request", data) if isinstance(data, dict) else data
            return _parse(TranscriptionResult, record, "requests")

    async def test_connection(self) -> bool:
        try:
            await self._request("projects", "GET", "/projects")
        except Exception:
            return False
        return True


@lru_cache(maxsize=1)
def get_client() -> DeepgramClient:
    settings = get_settings()
    return DeepgramClient(
        settings.deepgram_api_key,
        project_id=settings.deepgram_project_id,
        base_url=settings.deepgram_base_url,
        timeout=settings.deepgram_timeout,
    )

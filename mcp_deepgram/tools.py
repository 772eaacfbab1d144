"""
MCP tools: asynchronous Deepgram transcription.

 - submit_transcription_job: fill boundary defaults, queue the URL, return request_id
 - check_job_status: poll the request; an empty response means still processing
 - test_deepgram_connection: checks that the API key can reach Deepgram
"""

import time
from typing import Annotated, Optional, Union

from dotenv import load_dotenv, find_dotenv
from fastmcp import Context
from fastmcp.tools.tool import ToolResult
from mcp.shared.exceptions import McpError, ErrorData
from mcp.types import TextContent
from opentelemetry import trace
from pydantic import Field

from .client import get_client
from .config import get_settings
from .errors import DeepgramError, ProviderError
from .formatting import (
    enabled_features,
    format_completed,
    format_connection,
    format_failure,
    format_processing,
    format_submission,
)
from .mcp_instance import mcp
from .metrics import tool_calls_total, tool_duration_seconds
from .options import apply_submission_defaults
from .utils import _ctx_debug, _ctx_error, _ctx_info, _require_env_vars

load_dotenv(find_dotenv())

tracer = trace.get_tracer(__name__)

_ENV_VARS = ["DEEPGRAM_API_KEY"]


def _error_code(error: DeepgramError) -> int:
    # bad input from the caller vs. everything else
    if isinstance(error, ProviderError) and error.status_code in (400, 404):
        return -32602
    return -32603


@mcp.tool(
    name="submit_transcription_job",
    description=(
        "Submit an audio or video URL for async transcription with Deepgram. Supports speaker "
        "diarization, sentiment analysis, topic detection, summarization and entity extraction. "
        "Returns a request_id to use with check_job_status."
    ),
)
async def submit_transcription_job(
    url: Annotated[str, Field(description="Publicly accessible URL to the audio or video file to transcribe")],
    diarize: Annotated[Optional[bool], Field(description="Detect different speakers (default: false)")] = None,
    smart_format: Annotated[Optional[bool], Field(description="Apply smart formatting (default: true)")] = None,
    punctuate: Annotated[Optional[bool], Field(description="Add punctuation and capitalization (default: true)")] = None,
    paragraphs: Annotated[Optional[bool], Field(description="Split transcript into paragraphs (default: true)")] = None,
    utterances: Annotated[Optional[bool], Field(description="Segment speech into semantic units (default: false)")] = None,
    sentiment: Annotated[Optional[bool], Field(description="Detect sentiment (default: false)")] = None,
    summarize: Annotated[Optional[Union[bool, str]], Field(description="Generate a summary, e.g. true or 'v2' (default: false)")] = None,
    topics: Annotated[Optional[bool], Field(description="Detect topics (default: false)")] = None,
    detect_entities: Annotated[Optional[bool], Field(description="Extract names, places, organizations (default: false)")] = None,
    filler_words: Annotated[Optional[bool], Field(description="Keep filler words like 'uh' and 'um' (default: false)")] = None,
    language: Annotated[Optional[str], Field(description="BCP-47 language code, e.g. 'en', 'es', 'fr'")] = None,
    model: Annotated[Optional[str], Field(description="Model to use, e.g. 'nova-2', 'nova-3', 'whisper' (default: 'nova-3')")] = None,
    ctx: Optional[Context] = None,
) -> ToolResult:
    _require_env_vars(_ENV_VARS)

    start_time = time.time()
    status_label = "error"
    options = apply_submission_defaults(
        url,
        diarize=diarize,
        smart_format=smart_format,
        punctuate=punctuate,
        paragraphs=paragraphs,
        utterances=utterances,
        sentiment=sentiment,
        summarize=summarize,
        topics=topics,
        detect_entities=detect_entities,
        filler_words=filler_words,
        language=language,
        model=model,
        default_model=get_settings().deepgram_default_model,
    )

    try:
        with tracer.start_as_current_span("tools.submit_transcription_job") as span:
            span.set_attribute("audio_url", url)
            await _ctx_info(ctx, f"🚀 Submitting transcription job for {url}")

            try:
                result = await get_client().submit(options)
            except DeepgramError as e:
                await _ctx_error(ctx, f"Deepgram rejected the job: {e}")
                raise McpError(ErrorData(
                    code=_error_code(e),
                    message=format_failure("submit transcription job", e),
                ))

            span.set_attribute("request_id", result.request_id)
            await _ctx_info(ctx, f"✅ Job queued: {result.request_id}")

            features = enabled_features(options)
            status_label = "success"
            return ToolResult(
                content=[TextContent(type="text", text=format_submission(result.request_id, features))],
                structured_content={
                    "request_id": result.request_id,
                    "status": "submitted",
                    "features": features,
                },
            )
    except McpError:
        raise
    except Exception as e:
        await _ctx_error(ctx, f"Unexpected error while submitting: {e}")
        raise McpError(ErrorData(code=-32603, message=f"Unexpected error: {e}"))
    finally:
        tool_duration_seconds.labels(tool="submit_transcription_job").observe(time.time() - start_time)
        tool_calls_total.labels(tool="submit_transcription_job", status=status_label).inc()


@mcp.tool(
    name="check_job_status",
    description=(
        "Check the status of a transcription job and retrieve the results when ready. "
        "Use the request_id returned from submit_transcription_job."
    ),
)
async def check_job_status(
    request_id: Annotated[str, Field(min_length=1, description="The request ID returned from submit_transcription_job")],
    ctx: Optional[Context] = None,
) -> ToolResult:
    _require_env_vars(_ENV_VARS)

    start_time = time.time()
    status_label = "error"

    try:
        with tracer.start_as_current_span("tools.check_job_status") as span:
            span.set_attribute("request_id", request_id)
            await _ctx_debug(ctx, f"Fetching Deepgram request {request_id}")

            try:
                result = await get_client().fetch_result(request_id)
            except DeepgramError as e:
                await _ctx_error(ctx, f"Failed to fetch request {request_id}: {e}")
                raise McpError(ErrorData(
                    code=_error_code(e),
                    message=format_failure("check job status", e, polling=True),
                ))

            if result.is_processing:
                span.set_attribute("job_status", "processing")
                await _ctx_info(ctx, f"⏳ Request {request_id} is still processing")
                status_label = "processing"
                return ToolResult(
                    content=[TextContent(type="text", text=format_processing(request_id, result))],
                    structured_content={
                        "status": "processing",
                        "request_id": request_id,
                        "created": result.created,
                    },
                )

            span.set_attribute("job_status", "completed")
            await _ctx_info(ctx, f"🎉 Request {request_id} completed")
            status_label = "success"
            return ToolResult(
                content=[TextContent(type="text", text=format_completed(request_id, result))],
                structured_content={
                    "status": "completed",
                    "request_id": request_id,
                    "created": result.created,
                    "transcript": result.response.transcript,
                    "result": result.response_json(),
                },
            )
    except McpError:
        raise
    except Exception as e:
        await _ctx_error(ctx, f"Unexpected error while checking status: {e}")
        raise McpError(ErrorData(code=-32603, message=f"Unexpected error: {e}"))
    finally:
        tool_duration_seconds.labels(tool="check_job_status").observe(time.time() - start_time)
        tool_calls_total.labels(tool="check_job_status", status=status_label).inc()


@mcp.tool(
    name="test_deepgram_connection",
    description="Test connectivity to Deepgram API and validate your API key",
)
async def test_deepgram_connection(ctx: Optional[Context] = None) -> ToolResult:
    env = _require_env_vars(_ENV_VARS)

    start_time = time.time()
    status_label = "error"

    try:
        with tracer.start_as_current_span("tools.test_deepgram_connection") as span:
            connected = await get_client().test_connection()
            span.set_attribute("connected", connected)
            if connected:
                await _ctx_info(ctx, "✅ Deepgram API reachable")
                status_label = "success"
            else:
                await _ctx_error(ctx, "❌ Deepgram API connection test failed")

            return ToolResult(
                content=[TextContent(type="text", text=format_connection(connected, env["DEEPGRAM_API_KEY"]))],
                structured_content={"connected": connected},
            )
    finally:
        tool_duration_seconds.labels(tool="test_deepgram_connection").observe(time.time() - start_time)
        tool_calls_total.labels(tool="test_deepgram_connection", status=status_label).inc()

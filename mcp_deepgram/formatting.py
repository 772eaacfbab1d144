"""User-facing text for the MCP tools."""

import json
from typing import List

from .errors import DeepgramError, MalformedResponseError, NoProjectError, ProviderError, TransportError
from .models import TranscriptionOptions, TranscriptionResult
from .utils import mask_secret

POLL_HINT = "Most jobs complete within 1-5 minutes."

_FEATURE_LABELS = (
    ("diarize", "Speaker Diarization"),
    ("smart_format", "Smart Formatting"),
    ("punctuate", "Punctuation"),
    ("paragraphs", "Paragraphs"),
    ("utterances", "Utterances"),
    ("sentiment", "Sentiment Analysis"),
    ("summarize", "Summarization"),
    ("topics", "Topic Detection"),
    ("detect_entities", "Entity Extraction"),
    ("filler_words", "Filler Words"),
)


def enabled_features(options: TranscriptionOptions) -> List[str]:
    return [label for name, label in _FEATURE_LABELS if getattr(options, name)]


def _bullets(items: List[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def format_submission(request_id: str, features: List[str]) -> str:
    text = (
        "✅ Transcription job submitted successfully!\n\n"
        f"🆔 Request ID: {request_id}\n\n"
        "⏳ Your audio/video is now being processed asynchronously by Deepgram. "
        'Use the "check_job_status" tool with this request ID to retrieve the results when ready.'
    )
    if features:
        text += f"\n\n📋 Enabled Features:\n{_bullets(features)}"
    text += f"\n\n💡 Tip: Processing time varies based on file length and complexity. {POLL_HINT}"
    return text


def format_processing(request_id: str, result: TranscriptionResult) -> str:
    return (
        "⏳ Transcription job is still processing...\n\n"
        f"🆔 Request ID: {request_id}\n"
        f"📅 Created: {result.created}\n\n"
        f"💡 Please wait a moment and try again. {POLL_HINT}"
    )


def format_completed(request_id: str, result: TranscriptionResult) -> str:
    response = result.response
    parts = [
        "✅ Transcription Complete!\n\n"
        f"🆔 Request ID: {request_id}\n"
        f"📅 Created: {result.created}\n"
    ]

    if response.transcript:
        parts.append(f"📝 Transcript:\n{response.transcript}\n")

    metadata = response.metadata
    if metadata:
        lines = []
        if metadata.duration:
            lines.append(f"Duration: {metadata.duration:.2f}s")
        if metadata.channels:
            lines.append(f"Channels: {metadata.channels}")
        if metadata.models:
            lines.append(f"Model: {', '.join(metadata.models)}")
        parts.append("📊 Metadata:\n" + _bullets(lines) + "\n")

    results = response.results
    if results and results.sentiments and results.sentiments.segments:
        lines = []
        for idx, seg in enumerate(results.sentiments.segments, start=1):
            score = (seg.sentiment_score or 0.0) * 100
            lines.append(f"Segment {idx}: {seg.sentiment} (confidence: {score:.1f}%)")
        parts.append("😊 Sentiment Analysis:\n" + _bullets(lines) + "\n")

    if results and results.topics and results.topics.segments:
        lines = []
        for seg in results.topics.segments:
            for topic in seg.topics:
                score = (topic.confidence_score or 0.0) * 100
                lines.append(f"{topic.topic} (confidence: {score:.1f}%)")
        parts.append("🏷️ Topics Detected:\n" + _bullets(lines) + "\n")

    if response.summary_text:
        parts.append(f"📄 Summary:\n{response.summary_text}\n")

    if response.entities:
        lines = [f"{entity.value} ({entity.kind})" for entity in response.entities]
        parts.append("🔍 Entities Detected:\n" + _bullets(lines) + "\n")

    full_json = json.dumps(result.response_json(), indent=2, ensure_ascii=False)
    parts.append(f"\n📦 Full Response (JSON):\n```json\n{full_json}\n```")
    return "\n".join(parts)


def format_connection(connected: bool, api_key: str) -> str:
    if connected:
        return (
            "✅ Deepgram API Connection Successful!\n\n"
            f"🔑 API Key: {mask_secret(api_key)}\n\n"
            "📚 Available Tools:\n"
            + _bullets([
                "submit_transcription_job - Submit audio/video for async transcription",
                "check_job_status - Check status and retrieve results",
                "test_deepgram_connection - Test API connectivity",
            ])
        )
    return (
        "❌ Connection test failed: Invalid API key or network error\n\n"
        "💡 Troubleshooting:\n"
        + _bullets([
            "Verify your Deepgram API key is correct",
            "Check your internet connection",
            "Visit https://console.deepgram.com to get or verify your API key",
        ])
    )


def error_hints(error: DeepgramError, *, polling: bool = False) -> List[str]:
    if isinstance(error, NoProjectError):
        return ["The API key is valid but has no project; create one in the Deepgram console"]
    if isinstance(error, TransportError):
        return ["Check your internet connection", "Deepgram may be temporarily unreachable"]
    if isinstance(error, MalformedResponseError):
        return ["Deepgram answered with an unexpected payload; try again or check the Deepgram status page"]
    if isinstance(error, ProviderError):
        if error.status_code == 401:
            return ["Verify your Deepgram API key is valid"]
        if error.status_code == 403:
            return [
                "The API key lacks permission for this operation",
                "Reading job results needs a key with project member (usage:read) scope",
            ]
        if error.status_code == 404 and polling:
            return [
                "Verify the request_id is correct",
                "A freshly submitted job may not be visible yet; wait a moment and retry",
                "The job may have expired",
            ]
        if polling:
            return ["Verify the request_id is correct", "Ensure your Deepgram API key is valid"]
        return [
            "Ensure the URL is publicly accessible",
            "Check that the file format is supported (MP3, WAV, MP4, etc.)",
            "Make sure the URL points directly to the media file",
        ]
    return []


def format_failure(action: str, error: DeepgramError, *, polling: bool = False) -> str:
    text = f"❌ Failed to {action}: {error}"
    hints = error_hints(error, polling=polling)
    if hints:
        text += "\n\n💡 Common issues:\n" + _bullets(hints)
    return text

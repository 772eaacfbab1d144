from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Options forwarded to /listen as query parameters, names unchanged
OPTION_FIELDS = (
    "diarize",
    "smart_format",
    "punctuate",
    "paragraphs",
    "utterances",
    "sentiment",
    "summarize",
    "topics",
    "detect_entities",
    "filler_words",
    "language",
    "model",
)


class TranscriptionOptions(BaseModel):
    url: str
    diarize: Optional[bool] = None
    smart_format: Optional[bool] = None
    punctuate: Optional[bool] = None
    paragraphs: Optional[bool] = None
    utterances: Optional[bool] = None
    sentiment: Optional[bool] = None
    summarize: Optional[Union[bool, str]] = None
    topics: Optional[bool] = None
    detect_entities: Optional[bool] = None
    filler_words: Optional[bool] = None
    language: Optional[str] = None
    model: Optional[str] = None


class _Payload(BaseModel):
    """Provider payload: typed where we read it, everything else kept as extras."""

    model_config = ConfigDict(extra="allow")


class SubmitResult(_Payload):
    request_id: str


class Project(_Payload):
    project_id: str
    name: Optional[str] = None


class ProjectList(_Payload):
    projects: List[Project] = Field(default_factory=list)


class Entity(_Payload):
    value: Optional[str] = None
    label: Optional[str] = None
    type: Optional[str] = None
    confidence: Optional[float] = None

    @property
    def kind(self) -> Optional[str]:
        return self.type or self.label


class Alternative(_Payload):
    transcript: Optional[str] = None
    confidence: Optional[float] = None
    entities: Optional[List[Entity]] = None


class Channel(_Payload):
    alternatives: List[Alternative] = Field(default_factory=list)


class SentimentSegment(_Payload):
    text: Optional[str] = None
    sentiment: Optional[str] = None
    sentiment_score: Optional[float] = None


class Sentiments(_Payload):
    segments: List[SentimentSegment] = Field(default_factory=list)


class Topic(_Payload):
    topic: Optional[str] = None
    confidence_score: Optional[float] = None


class TopicSegment(_Payload):
    text: Optional[str] = None
    topics: List[Topic] = Field(default_factory=list)


class Topics(_Payload):
    segments: List[TopicSegment] = Field(default_factory=list)


class Summary(_Payload):
    short: Optional[str] = None
    text: Optional[str] = None
    result: Optional[str] = None


class Results(_Payload):
    channels: List[Channel] = Field(default_factory=list)
    sentiments: Optional[Sentiments] = None
    topics: Optional[Topics] = None
    summary: Optional[Summary] = None
    entities: Optional[List[Entity]] = None


class Metadata(_Payload):
    request_id: Optional[str] = None
    created: Optional[str] = None
    duration: Optional[float] = None
    channels: Optional[int] = None
    models: Optional[List[str]] = None


class TranscriptionResponse(_Payload):
    metadata: Optional[Metadata] = None
    results: Optional[Results] = None

    @property
    def transcript(self) -> Optional[str]:
        if not self.results or not self.results.channels:
            return None
        alternatives = self.results.channels[0].alternatives
        if not alternatives:
            return None
        return alternatives[0].transcript

    @property
    def entities(self) -> List[Entity]:
        if not self.results:
            return []
        if self.results.entities is not None:
            return self.results.entities
        # newer responses attach entities to the first alternative
        if self.results.channels and self.results.channels[0].alternatives:
            return self.results.channels[0].alternatives[0].entities or []
        return []

    @property
    def summary_text(self) -> Optional[str]:
        summary = self.results.summary if self.results else None
        if not summary:
            return None
        return summary.short or summary.text


class TranscriptionResult(_Payload):
    request_id: str
    project_uuid: Optional[Any] = None
    created: Optional[Any] = None
    path: Optional[Any] = None
    api_key_id: Optional[Any] = None
    response: Optional[TranscriptionResponse] = None
    code: Optional[Any] = None
    deployment: Optional[Any] = None
    # Deepgram reports the callback delivery here, usually as an object
    callback: Optional[Any] = None

    @property
    def is_processing(self) -> bool:
        """An absent or empty ``response`` is the only sign the job is still running."""
        if self.response is None:
            return True
        return not self.response.model_dump(exclude_unset=True)

    def response_json(self) -> dict:
        if self.response is None:
            return {}
        return self.response.model_dump(mode="json", exclude_unset=True)

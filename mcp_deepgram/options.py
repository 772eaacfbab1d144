from typing import Optional, Union

from .config import DEFAULT_MODEL
from .models import TranscriptionOptions


def apply_submission_defaults(
    url: str,
    *,
    diarize: Optional[bool] = None,
    smart_format: Optional[bool] = None,
    punctuate: Optional[bool] = None,
    paragraphs: Optional[bool] = None,
    utterances: Optional[bool] = None,
    sentiment: Optional[bool] = None,
    summarize: Optional[Union[bool, str]] = None,
    topics: Optional[bool] = None,
    detect_entities: Optional[bool] = None,
    filler_words: Optional[bool] = None,
    language: Optional[str] = None,
    model: Optional[str] = None,
    default_model: str = DEFAULT_MODEL,
) -> TranscriptionOptions:
    """
    Build the options sent to Deepgram from what the caller passed.

    Only smart_format, punctuate, paragraphs and model get defaults here.
    Everything else stays None so Deepgram applies its own defaults.
    """
    return TranscriptionOptions(
        url=url,
        diarize=diarize,
        smart_format=True if smart_format is None else smart_format,
        punctuate=True if punctuate is None else punctuate,
        paragraphs=True if paragraphs is None else paragraphs,
        utterances=utterances,
        sentiment=sentiment,
        summarize=summarize,
        topics=topics,
        detect_entities=detect_entities,
        filler_words=filler_words,
        language=language,
        model=model or default_model,
    )

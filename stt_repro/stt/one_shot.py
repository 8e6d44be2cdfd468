"""One-shot (non-streaming) recognition against the same recognizer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

from stt_repro.stt.base import (
    NoAlternativesError,
    NoResultsError,
    Transcript,
    TranscriptionError,
)
from stt_repro.stt.google_stt import (
    build_recognize_request,
    create_client,
    recognition_options,
)

if TYPE_CHECKING:
    from google.cloud.speech_v2 import SpeechAsyncClient
    from google.cloud.speech_v2.types import cloud_speech

    from stt_repro.config import ReproConfig

logger = logging.getLogger(__name__)


def first_alternative(response: cloud_speech.RecognizeResponse) -> Transcript:
    """Return the top alternative of the first result.

    Raises:
        NoResultsError: the response has no results.
        NoAlternativesError: the first result has no alternatives.
    """
    if not response.results:
        raise NoResultsError()

    result = response.results[0]
    if not result.alternatives:
        raise NoAlternativesError()

    best = result.alternatives[0]
    return Transcript(text=best.transcript, confidence=best.confidence, is_final=True)


async def recognize_once(
    config: ReproConfig,
    audio: bytes,
    client: SpeechAsyncClient | None = None,
) -> Transcript:
    """Send the whole payload in one Recognize call and return the top transcript."""
    owns_client = client is None
    if client is None:
        client = create_client(config.region)

    request = build_recognize_request(recognition_options(config), audio)
    try:
        logger.info("Sending one-shot recognition request (%d bytes)...", len(audio))
        try:
            response = await client.recognize(request=request)
        except (GoogleAPIError, GoogleAuthError) as exc:
            raise TranscriptionError(f"failed to recognize audio: {exc}") from exc
    finally:
        if owns_client:
            await client.transport.close()

    transcript = first_alternative(response)
    logger.info(
        "One-shot recognition succeeded: %r (confidence: %.2f)",
        transcript.text,
        transcript.confidence,
    )
    return transcript

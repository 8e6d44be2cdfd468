"""Speech recognition data types, session interface and error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from google.cloud.speech_v2.types import cloud_speech

# Fixed model for both request modes
DEFAULT_MODEL = "latest_long"


class TranscriptionError(Exception):
    """Base class for failures talking to the speech service."""


class SessionError(TranscriptionError):
    """The speech client or streaming session could not be created."""


class StreamingError(TranscriptionError):
    """A send or receive on an open streaming session failed."""


class NoResultsError(TranscriptionError):
    def __init__(self) -> None:
        super().__init__("no results in response")


class NoAlternativesError(TranscriptionError):
    def __init__(self) -> None:
        super().__init__("no alternatives in result")


@dataclass(frozen=True, slots=True)
class Transcript:
    """A speech recognition result."""

    text: str
    confidence: float = 0.0
    is_final: bool = False


@dataclass(frozen=True, slots=True)
class RecognitionOptions:
    """Recognition parameters shared by the streaming and one-shot paths."""

    recognizer: str
    language_code: str
    model: str = DEFAULT_MODEL


@runtime_checkable
class SpeechSession(Protocol):
    """A bidirectional streaming recognition session.

    The send side (send_audio, close_send) and the receive side (receive)
    may be driven from different tasks. close() releases the session and
    the client behind it.
    """

    async def send_audio(self, chunk: bytes) -> None:
        """Send one audio chunk on the stream."""
        ...

    async def close_send(self) -> None:
        """Signal that no more audio will be sent."""
        ...

    async def receive(self) -> cloud_speech.StreamingRecognizeResponse | None:
        """Wait for the next response. Returns None on clean end of stream."""
        ...

    async def close(self) -> None:
        """Close the send side and release the underlying client."""
        ...

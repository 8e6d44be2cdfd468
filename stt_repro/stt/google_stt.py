"""Google Cloud Speech-to-Text v2 client adapter.

Builds recognizer resource names, regional endpoints and requests, and wraps
a bidirectional ``streaming_recognize`` call in a session object whose send
and receive sides can be driven from separate tasks.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from google.api_core.client_options import ClientOptions
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud.speech_v2 import SpeechAsyncClient
from google.cloud.speech_v2.types import cloud_speech

from stt_repro.stt.base import RecognitionOptions, SessionError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from stt_repro.config import ReproConfig

logger = logging.getLogger(__name__)


def recognizer_path(project_id: str, region: str, recognizer_id: str) -> str:
    """Return the full recognizer resource name."""
    return f"projects/{project_id}/locations/{region}/recognizers/{recognizer_id}"


def regional_endpoint(region: str) -> str:
    """Return the regional API endpoint (used for ``global`` too)."""
    return f"{region}-speech.googleapis.com:443"


def recognition_options(config: ReproConfig) -> RecognitionOptions:
    return RecognitionOptions(
        recognizer=recognizer_path(config.project_id, config.region, config.recognizer_id),
        language_code=config.primary_language,
    )


def build_recognition_config(options: RecognitionOptions) -> cloud_speech.RecognitionConfig:
    """Build a RecognitionConfig with automatic audio format detection."""
    return cloud_speech.RecognitionConfig(
        auto_decoding_config=cloud_speech.AutoDetectDecodingConfig(),
        language_codes=[options.language_code],
        model=options.model,
    )


def build_config_request(
    options: RecognitionOptions,
) -> cloud_speech.StreamingRecognizeRequest:
    """First request of a stream: recognizer + streaming config, no audio."""
    return cloud_speech.StreamingRecognizeRequest(
        recognizer=options.recognizer,
        streaming_config=cloud_speech.StreamingRecognitionConfig(
            config=build_recognition_config(options),
        ),
    )


def build_recognize_request(
    options: RecognitionOptions, audio: bytes
) -> cloud_speech.RecognizeRequest:
    """Single request carrying the whole audio payload inline."""
    return cloud_speech.RecognizeRequest(
        recognizer=options.recognizer,
        config=build_recognition_config(options),
        content=audio,
    )


def create_client(region: str) -> SpeechAsyncClient:
    """Create an async Speech client bound to the regional endpoint."""
    endpoint = regional_endpoint(region)
    try:
        client = SpeechAsyncClient(client_options=ClientOptions(api_endpoint=endpoint))
    except (GoogleAPIError, GoogleAuthError) as exc:
        raise SessionError(f"failed to create speech client: {exc}") from exc
    logger.debug("Speech client created for %s", endpoint)
    return client


class GoogleStreamingSession:
    """One ``streaming_recognize`` call seen as a send side and a receive side.

    Outgoing requests go through a queue drained by the request iterator
    handed to the client; ``None`` on the queue ends the request stream.
    """

    def __init__(self, client: SpeechAsyncClient, options: RecognitionOptions) -> None:
        self._client = client
        self._options = options
        self._requests: asyncio.Queue[cloud_speech.StreamingRecognizeRequest | None] = (
            asyncio.Queue()
        )
        self._responses: AsyncIterator[cloud_speech.StreamingRecognizeResponse] | None = None
        self._send_closed = False
        self._closed = False

    async def open(self) -> None:
        """Start the stream and queue the initial configuration request."""
        await self._requests.put(build_config_request(self._options))
        try:
            call = await self._client.streaming_recognize(requests=self._request_iterator())
        except (GoogleAPIError, GoogleAuthError) as exc:
            raise SessionError(f"failed to create streaming client: {exc}") from exc
        self._responses = call.__aiter__()
        logger.info(
            "Streaming session opened: recognizer=%s, lang=%s, model=%s",
            self._options.recognizer,
            self._options.language_code,
            self._options.model,
        )

    async def _request_iterator(self) -> AsyncIterator[cloud_speech.StreamingRecognizeRequest]:
        while True:
            request = await self._requests.get()
            if request is None:
                return
            yield request

    async def send_audio(self, chunk: bytes) -> None:
        logger.info("Sending audio chunk: %d bytes", len(chunk), extra={"chunk_bytes": len(chunk)})
        await self._requests.put(cloud_speech.StreamingRecognizeRequest(audio=chunk))

    async def close_send(self) -> None:
        if self._send_closed:
            return
        self._send_closed = True
        await self._requests.put(None)

    async def receive(self) -> cloud_speech.StreamingRecognizeResponse | None:
        if self._responses is None:
            raise SessionError("streaming session is not open")
        logger.info("Waiting for transcription response...")
        try:
            response = await anext(self._responses)
        except StopAsyncIteration:
            logger.info("Stream ended with EOF")
            return None
        logger.debug("Received STT response: %s", response)
        return response

    async def close(self) -> None:
        await self.close_send()
        if self._closed:
            return
        self._closed = True
        await self._client.transport.close()
        logger.info("Streaming session closed")


async def open_streaming_session(
    config: ReproConfig,
    client: SpeechAsyncClient | None = None,
) -> GoogleStreamingSession:
    """Create the client (unless given) and open a configured streaming session."""
    if client is None:
        client = create_client(config.region)

    session = GoogleStreamingSession(client, recognition_options(config))
    try:
        await session.open()
    except Exception:
        await session.close()
        raise
    return session

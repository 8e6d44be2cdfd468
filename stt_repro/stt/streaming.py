"""Streaming recognition coordinator.

Drives one full-duplex exchange: a send task feeds paced audio chunks into
the session while a receive task reads responses. Both report through a
single bounded error queue; the coordinator returns on the receive side's
orderly completion and raises on the first error from either side.

A receive that never returns (no response and no end of stream) is not
timed out here. That hang is the behaviour this tool reproduces.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from stt_repro.stt.base import SpeechSession, StreamingError, Transcript
from stt_repro.stt.google_stt import open_streaming_session

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator

    from google.cloud.speech_v2.types import cloud_speech

    from stt_repro.config import ReproConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192
CHUNK_DELAY_SECONDS = 0.2


def iter_chunks(audio: bytes, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Split audio into consecutive chunks of at most chunk_size bytes."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    for start in range(0, len(audio), chunk_size):
        yield audio[start : start + chunk_size]


def extract_transcript(
    response: cloud_speech.StreamingRecognizeResponse,
) -> Transcript | None:
    """Return the first alternative of the first result, or None if there is none."""
    if not response.results:
        logger.info("No results in response")
        return None

    result = response.results[0]
    if not result.alternatives:
        logger.info("Received empty alternatives")
        return None

    best = result.alternatives[0]
    return Transcript(text=best.transcript, confidence=best.confidence, is_final=result.is_final)


class StreamingCoordinator:
    """Runs the send and receive tasks for one streaming session.

    The coordinator owns the session: it is closed exactly once when run()
    finishes, whatever the outcome.
    """

    def __init__(
        self,
        session: SpeechSession,
        *,
        chunk_size: int = CHUNK_SIZE,
        chunk_delay: float = CHUNK_DELAY_SECONDS,
        close_send_after_audio: bool = False,
        on_transcript: Callable[[Transcript], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._session = session
        self._chunk_size = chunk_size
        self._chunk_delay = chunk_delay
        self._close_send_after_audio = close_send_after_audio
        self._on_transcript = on_transcript
        self._sleep = sleep
        # One slot per task so neither blocks reporting before we read
        self._errors: asyncio.Queue[Exception | None] = asyncio.Queue(maxsize=2)
        self._transcripts: list[Transcript] = []
        self._chunks_sent = 0

    @property
    def transcripts(self) -> list[Transcript]:
        """Transcripts surfaced so far."""
        return list(self._transcripts)

    @property
    def chunks_sent(self) -> int:
        return self._chunks_sent

    async def run(self, audio: bytes) -> list[Transcript]:
        """Stream audio and collect transcripts until end of stream.

        Raises:
            StreamingError: a send or receive failed.
        """
        send_task = asyncio.create_task(self._send_loop(audio), name="stt-send")
        receive_task = asyncio.create_task(self._receive_loop(), name="stt-receive")
        try:
            error = await self._errors.get()
            if error is not None:
                raise error
        finally:
            for task in (send_task, receive_task):
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task
            await self._session.close()

        logger.info(
            "Streaming finished: %d chunks sent, %d transcripts",
            self._chunks_sent,
            len(self._transcripts),
        )
        return self.transcripts

    async def _send_loop(self, audio: bytes) -> None:
        chunks = list(iter_chunks(audio, self._chunk_size))
        try:
            for index, chunk in enumerate(chunks):
                await self._session.send_audio(chunk)
                self._chunks_sent += 1
                logger.debug(
                    "Chunk %d/%d sent", index + 1, len(chunks), extra={"chunk_index": index}
                )
                if index < len(chunks) - 1:
                    await self._sleep(self._chunk_delay)
            logger.info("All %d audio chunks sent", len(chunks))
            if self._close_send_after_audio:
                await self._session.close_send()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Send failed after %d chunks", self._chunks_sent)
            error = StreamingError(f"failed to send audio chunk: {exc}")
            error.__cause__ = exc
            await self._errors.put(error)

    async def _receive_loop(self) -> None:
        try:
            while True:
                response = await self._session.receive()
                if response is None:
                    await self._errors.put(None)
                    return

                transcript = extract_transcript(response)
                if transcript is None:
                    continue

                self._transcripts.append(transcript)
                logger.info(
                    "Transcription: %r (confidence: %.2f, final: %s)",
                    transcript.text,
                    transcript.confidence,
                    transcript.is_final,
                )
                if self._on_transcript is not None:
                    self._on_transcript(transcript)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Receive failed")
            error = StreamingError(f"failed to receive transcription: {exc}")
            error.__cause__ = exc
            await self._errors.put(error)


async def transcribe_streaming(
    config: ReproConfig,
    audio: bytes,
    *,
    on_transcript: Callable[[Transcript], None] | None = None,
    session: SpeechSession | None = None,
) -> list[Transcript]:
    """Open a streaming session (unless given) and run the exchange to completion."""
    if session is None:
        session = await open_streaming_session(config)

    coordinator = StreamingCoordinator(
        session,
        close_send_after_audio=config.close_send_after_audio,
        on_transcript=on_transcript,
    )
    return await coordinator.run(audio)

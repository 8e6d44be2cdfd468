"""Shared pytest fixtures for all test types."""

from __future__ import annotations

import pytest

from stt_repro.config import (
    GoogleSettings,
    LoggingSettings,
    RecognizerSettings,
    ReproConfig,
    Settings,
)


@pytest.fixture
def settings() -> Settings:
    """Settings with every required value present."""
    return Settings(
        google=GoogleSettings(project_id="demo-project", region="europe-west4"),
        recognizer=RecognizerSettings(id="demo-recognizer"),
        logging=LoggingSettings(level="INFO", format="text"),
    )


@pytest.fixture
def repro_config() -> ReproConfig:
    """A streaming-mode configuration."""
    return ReproConfig(
        project_id="demo-project",
        region="europe-west4",
        recognizer_id="demo-recognizer",
        primary_language="en-US",
        wav_input_path="capture.wav",
    )


@pytest.fixture
def capture_audio() -> bytes:
    """~16 KB of fake WAV payload (not a multiple of the chunk size)."""
    return bytes(range(256)) * 62 + b"\x01" * 128

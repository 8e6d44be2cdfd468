"""Unit tests for configuration loading and validation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from stt_repro.config import (
    ConfigError,
    GoogleSettings,
    LoggingSettings,
    MissingInputPathError,
    MissingProjectIdError,
    MissingRecognizerIdError,
    RecognizerSettings,
    Settings,
    get_settings,
    load_config,
)

if TYPE_CHECKING:
    from pathlib import Path


def _make_settings(
    project_id: str = "demo-project",
    region: str = "europe-west4",
    recognizer_id: str = "demo-recognizer",
) -> Settings:
    return Settings(
        google=GoogleSettings(project_id=project_id, region=region),
        recognizer=RecognizerSettings(id=recognizer_id),
    )


class TestLoadConfig:
    """Test merging env settings with CLI flags."""

    def test_complete_config(self) -> None:
        config = load_config(
            primary_language="fr-FR",
            wav_input_path="capture.wav",
            one_shot=True,
            settings=_make_settings(),
        )
        assert config.project_id == "demo-project"
        assert config.region == "europe-west4"
        assert config.recognizer_id == "demo-recognizer"
        assert config.primary_language == "fr-FR"
        assert config.wav_input_path == "capture.wav"
        assert config.one_shot is True
        assert config.close_send_after_audio is False

    def test_defaults_to_streaming_and_en_us(self) -> None:
        config = load_config(wav_input_path="capture.wav", settings=_make_settings())
        assert config.one_shot is False
        assert config.primary_language == "en-US"

    def test_config_is_immutable(self) -> None:
        config = load_config(wav_input_path="capture.wav", settings=_make_settings())
        with pytest.raises(AttributeError):
            config.region = "us"  # type: ignore[misc]

    def test_missing_region_defaults_to_global(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="stt_repro.config"):
            config = load_config(wav_input_path="a.wav", settings=_make_settings(region=""))
        assert config.region == "global"
        assert "GOOGLE_REGION" in caplog.text

    def test_present_region_does_not_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="stt_repro.config"):
            load_config(wav_input_path="a.wav", settings=_make_settings())
        assert "GOOGLE_REGION" not in caplog.text

    def test_missing_project_id(self) -> None:
        with pytest.raises(MissingProjectIdError, match="GOOGLE_PROJECT_ID"):
            load_config(wav_input_path="a.wav", settings=_make_settings(project_id=""))

    def test_missing_recognizer_id(self) -> None:
        with pytest.raises(MissingRecognizerIdError, match="RECOGNIZER_ID"):
            load_config(wav_input_path="a.wav", settings=_make_settings(recognizer_id=""))

    def test_missing_input_path(self) -> None:
        with pytest.raises(MissingInputPathError, match="WAV input path"):
            load_config(wav_input_path="", settings=_make_settings())

    @pytest.mark.parametrize(
        ("settings", "wav", "expected"),
        [
            (_make_settings(project_id=""), "a.wav", MissingProjectIdError),
            (_make_settings(recognizer_id=""), "a.wav", MissingRecognizerIdError),
            (_make_settings(), "", MissingInputPathError),
            (_make_settings(project_id="", recognizer_id=""), "", MissingProjectIdError),
            (_make_settings(recognizer_id=""), "", MissingRecognizerIdError),
        ],
    )
    def test_errors_are_field_specific(
        self, settings: Settings, wav: str, expected: type[ConfigError]
    ) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(wav_input_path=wav, settings=settings)
        assert type(exc_info.value) is expected


class TestEnvironment:
    """Test reading settings from environment variables."""

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOOGLE_PROJECT_ID", "env-project")
        monkeypatch.setenv("GOOGLE_REGION", "us-central1")
        monkeypatch.setenv("RECOGNIZER_ID", "env-recognizer")
        monkeypatch.setenv("LOG_FORMAT", "json")

        settings = get_settings()

        assert settings.google.project_id == "env-project"
        assert settings.google.region == "us-central1"
        assert settings.recognizer.id == "env-recognizer"
        assert settings.logging.format == "json"

    def test_load_config_falls_back_to_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOOGLE_PROJECT_ID", "env-project")
        monkeypatch.delenv("GOOGLE_REGION", raising=False)
        monkeypatch.setenv("RECOGNIZER_ID", "env-recognizer")

        config = load_config(wav_input_path="a.wav")

        assert config.project_id == "env-project"
        assert config.region == "global"
        assert config.recognizer_id == "env-recognizer"

    def test_unset_environment_fails_on_project(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("GOOGLE_PROJECT_ID", "GOOGLE_REGION", "RECOGNIZER_ID"):
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(MissingProjectIdError):
            load_config(wav_input_path="a.wav")


class TestValidateRequired:
    """Test Settings.validate_required() checks."""

    def test_all_valid_passes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        result = _make_settings().validate_required()
        assert result.ok

    def test_collects_every_missing_field(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        result = _make_settings(project_id="", recognizer_id="").validate_required()
        assert not result.ok
        assert {e.field for e in result.errors} == {"GOOGLE_PROJECT_ID", "RECOGNIZER_ID"}
        assert all(e.hint for e in result.errors)

    def test_missing_credentials_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/nonexistent/key.json")
        result = _make_settings().validate_required()
        assert {e.field for e in result.errors} == {"GOOGLE_APPLICATION_CREDENTIALS"}

    def test_existing_credentials_file(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        key = tmp_path / "key.json"
        key.write_text("{}")
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", str(key))
        assert _make_settings().validate_required().ok

    def test_unknown_log_format(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        settings = _make_settings()
        settings.logging = LoggingSettings(format="xml")
        result = settings.validate_required()
        assert {e.field for e in result.errors} == {"LOG_FORMAT"}

"""Application configuration loaded from environment variables and CLI flags."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_REGION = "global"
DEFAULT_PRIMARY_LANGUAGE = "en-US"


class ConfigError(Exception):
    """Required configuration is missing or invalid."""


class MissingProjectIdError(ConfigError):
    def __init__(self) -> None:
        super().__init__("GOOGLE_PROJECT_ID environment variable is not set")


class MissingRecognizerIdError(ConfigError):
    def __init__(self) -> None:
        super().__init__("RECOGNIZER_ID environment variable is not set")


class MissingInputPathError(ConfigError):
    def __init__(self) -> None:
        super().__init__("WAV input path is not set")


class GoogleSettings(BaseSettings):
    project_id: str = ""
    region: str = ""

    model_config = {"env_prefix": "GOOGLE_"}


class RecognizerSettings(BaseSettings):
    id: str = ""

    model_config = {"env_prefix": "RECOGNIZER_"}


class LoggingSettings(BaseSettings):
    level: str = "INFO"
    format: str = "text"

    model_config = {"env_prefix": "LOG_"}


@dataclass
class ValidationError:
    """A single config validation error."""

    field: str
    message: str
    hint: str


@dataclass
class ValidationResult:
    """Result of config validation."""

    errors: list[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0

    def add(self, field_name: str, message: str, hint: str = "") -> None:
        self.errors.append(ValidationError(field=field_name, message=message, hint=hint))


class Settings(BaseSettings):
    """Root settings — aggregates all sub-settings."""

    google: GoogleSettings = Field(default_factory=GoogleSettings)
    recognizer: RecognizerSettings = Field(default_factory=RecognizerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {"env_prefix": ""}

    def validate_required(self) -> ValidationResult:
        """Validate that the environment is usable before any network call.

        Collects every problem instead of stopping at the first one.
        """
        result = ValidationResult()

        if not self.google.project_id:
            result.add(
                "GOOGLE_PROJECT_ID",
                "not set",
                "Set: export GOOGLE_PROJECT_ID=<gcp-project>",
            )

        if not self.recognizer.id:
            result.add(
                "RECOGNIZER_ID",
                "not set",
                "Set: export RECOGNIZER_ID=<recognizer> (or _ for the default recognizer)",
            )

        # GOOGLE_APPLICATION_CREDENTIALS — file must exist (if set)
        creds_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
        if creds_path and not os.path.isfile(creds_path):
            result.add(
                "GOOGLE_APPLICATION_CREDENTIALS",
                f"file not found: {creds_path!r}",
                "Point it at an existing service account JSON file",
            )

        if self.logging.format not in ("json", "text"):
            result.add(
                "LOG_FORMAT",
                f"unknown format: {self.logging.format!r}",
                "Expected json or text",
            )

        return result


@dataclass(frozen=True, slots=True)
class ReproConfig:
    """Effective configuration for a single transcription run."""

    project_id: str
    region: str
    recognizer_id: str
    primary_language: str
    wav_input_path: str
    one_shot: bool = False
    close_send_after_audio: bool = False


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()


def load_config(
    *,
    primary_language: str = DEFAULT_PRIMARY_LANGUAGE,
    wav_input_path: str = "",
    one_shot: bool = False,
    close_send_after_audio: bool = False,
    settings: Settings | None = None,
) -> ReproConfig:
    """Merge environment settings with CLI flags into a ReproConfig.

    Raises:
        MissingProjectIdError: GOOGLE_PROJECT_ID is empty.
        MissingRecognizerIdError: RECOGNIZER_ID is empty.
        MissingInputPathError: no WAV input path was given.
    """
    if settings is None:
        settings = get_settings()

    if not settings.google.project_id:
        raise MissingProjectIdError()

    region = settings.google.region
    if not region:
        region = DEFAULT_REGION
        logger.warning("Missing GOOGLE_REGION environment variable, using %s", region)

    if not settings.recognizer.id:
        raise MissingRecognizerIdError()

    if not wav_input_path:
        raise MissingInputPathError()

    return ReproConfig(
        project_id=settings.google.project_id,
        region=region,
        recognizer_id=settings.recognizer.id,
        primary_language=primary_language,
        wav_input_path=wav_input_path,
        one_shot=one_shot,
        close_send_after_audio=close_send_after_audio,
    )

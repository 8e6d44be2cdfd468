"""Speech streaming reproduction CLI — main entry point.

Usage:
    stt-repro transcribe --wav-in capture.wav [--primary en-US] [--one-shot]
    stt-repro config check
    stt-repro config show
    stt-repro version
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer

from stt_repro.config import (
    DEFAULT_PRIMARY_LANGUAGE,
    DEFAULT_REGION,
    ConfigError,
    ReproConfig,
    Settings,
    get_settings,
    load_config,
)
from stt_repro.logging.structured_logger import setup_logging
from stt_repro.stt.base import Transcript, TranscriptionError
from stt_repro.stt.google_stt import recognizer_path, regional_endpoint
from stt_repro.stt.one_shot import recognize_once
from stt_repro.stt.streaming import transcribe_streaming

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="stt-repro",
    help="Reproduce Speech-to-Text v2 streaming vs one-shot recognition behaviour",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Configuration inspection")
app.add_typer(config_app, name="config")

_VERSION = "0.1.0"


def _fatal(message: str, exc: BaseException) -> typer.Exit:
    logger.critical("%s: %s", message, exc)
    typer.echo(typer.style(f"\u274c {message}: {exc}", fg=typer.colors.RED), err=True)
    return typer.Exit(code=1)


def _echo_transcript(transcript: Transcript) -> None:
    typer.echo(
        f"Transcription: {transcript.text!r} "
        f"(confidence: {transcript.confidence:.2f}, final: {transcript.is_final})"
    )


def _describe_config(config: ReproConfig) -> str:
    mode = "one-shot" if config.one_shot else "streaming"
    return (
        f"Configuration: project={config.project_id} region={config.region} "
        f"recognizer={config.recognizer_id} primary={config.primary_language} "
        f"wav_in={config.wav_input_path} mode={mode}"
    )


async def _run(config: ReproConfig, audio: bytes) -> None:
    if config.one_shot:
        transcript = await recognize_once(config, audio)
        typer.echo(
            f"One-shot recognition succeeded: {transcript.text!r} "
            f"(confidence: {transcript.confidence:.2f})"
        )
        return

    transcripts = await transcribe_streaming(config, audio, on_transcript=_echo_transcript)
    typer.echo(f"Streaming finished with {len(transcripts)} transcript(s)")


@app.command()
def version() -> None:
    """Show application version."""
    typer.echo(f"stt-repro v{_VERSION}")


@app.command()
def transcribe(
    wav_in: str = typer.Option("", "--wav-in", help="Path to read WAV file from"),
    primary: str = typer.Option(
        DEFAULT_PRIMARY_LANGUAGE, "--primary", help="Primary language code"
    ),
    one_shot: bool = typer.Option(
        False, "--one-shot", help="Use one-shot recognition instead of streaming"
    ),
    close_send: bool = typer.Option(
        False, "--close-send", help="Half-close the stream after the last audio chunk"
    ),
) -> None:
    """Transcribe a WAV file with streaming (default) or one-shot recognition."""
    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.format)

    try:
        config = load_config(
            primary_language=primary,
            wav_input_path=wav_in,
            one_shot=one_shot,
            close_send_after_audio=close_send,
            settings=settings,
        )
    except ConfigError as exc:
        raise _fatal("Failed to load configuration", exc) from exc

    typer.echo(_describe_config(config))

    logger.info("Reading WAV file from %s", config.wav_input_path)
    try:
        audio = Path(config.wav_input_path).read_bytes()
    except OSError as exc:
        raise _fatal("Failed to read WAV file", exc) from exc

    mode = "one-shot" if config.one_shot else "streaming"
    logger.info(
        "Starting %s recognition of %d bytes",
        mode,
        len(audio),
        extra={"mode": mode, "recognizer": config.recognizer_id},
    )
    try:
        asyncio.run(_run(config, audio))
    except TranscriptionError as exc:
        raise _fatal(f"Failed to handle {mode} WAV input", exc) from exc


@config_app.command("check")
def config_check() -> None:
    """Validate the environment and show each problem found."""
    settings = get_settings()
    result = settings.validate_required()

    if result.ok:
        typer.echo(typer.style("\u2705 All configuration checks passed", fg=typer.colors.GREEN))
    else:
        for err in result.errors:
            hint = f"  Hint: {err.hint}" if err.hint else ""
            typer.echo(
                typer.style(f"\u274c {err.field}: {err.message}.{hint}", fg=typer.colors.RED)
            )
        typer.echo(f"\n{len(result.errors)} error(s) found.")
        raise typer.Exit(code=1)


def _collect_config_display(settings: Settings) -> list[tuple[str, str, str]]:
    """Collect (section, key, display_value) tuples from settings."""
    rows: list[tuple[str, str, str]] = []
    for section, sub_settings in settings:
        for sub_name, sub_value in sub_settings:
            rows.append((section, sub_name, str(sub_value) if sub_value != "" else "<unset>"))
    return rows


@config_app.command("show")
def config_show() -> None:
    """Show the environment configuration and the derived service addresses."""
    settings = get_settings()
    rows = _collect_config_display(settings)

    current_section = ""
    for section, key, value in rows:
        if section != current_section:
            if current_section:
                typer.echo("")
            typer.echo(typer.style(f"[{section}]", fg=typer.colors.CYAN, bold=True))
            current_section = section
        typer.echo(f"  {key} = {value}")

    region = settings.google.region or DEFAULT_REGION
    typer.echo("")
    typer.echo(typer.style("[derived]", fg=typer.colors.CYAN, bold=True))
    typer.echo(f"  endpoint = {regional_endpoint(region)}")
    if settings.google.project_id and settings.recognizer.id:
        typer.echo(
            "  recognizer = "
            f"{recognizer_path(settings.google.project_id, region, settings.recognizer.id)}"
        )


if __name__ == "__main__":
    app()

"""Run ``whisper-cli`` on an uploaded file and read back its JSON output."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Sequence

from ..exceptions import (
    EngineError,
    OutputMalformedError,
    OutputMissingError,
    ProcessTimeoutError,
)
from ..models.transcription import TranscriptionResult
from ..utils.process import ProcessRunner

logger = logging.getLogger(__name__)

# Raw engine output echoed back in error details is cut to this many characters.
MAX_RAW_DETAILS = 4000


def output_path_for(audio_path: Path) -> Path:
    """Where ``whisper-cli -oj -of <audio>`` writes its result."""
    return Path(f"{audio_path}.json")


def extract_transcript(document: Any) -> TranscriptionResult:
    """
    Pull the transcript out of a parsed whisper.cpp JSON document.

    whisper.cpp writes ``{"result": {"language": ..}, "transcription": [{"text": ..}, ..]}``;
    a plain string ``transcription`` is accepted too.

    Raises:
        ValueError: If the document has no usable ``transcription`` field.
    """
    if not isinstance(document, dict) or "transcription" not in document:
        raise ValueError("missing 'transcription' field")

    transcription = document["transcription"]
    if isinstance(transcription, str):
        text = transcription
    elif isinstance(transcription, list):
        parts = []
        for segment in transcription:
            if not isinstance(segment, dict) or not isinstance(segment.get("text"), str):
                raise ValueError("transcription segment without text")
            parts.append(segment["text"])
        text = "".join(parts)
    else:
        raise ValueError(f"unexpected 'transcription' type: {type(transcription).__name__}")

    language = None
    result = document.get("result")
    if isinstance(result, dict) and isinstance(result.get("language"), str):
        language = result["language"]
    return TranscriptionResult(text=text.strip(), language=language)


class TranscriptionInvoker:
    """Wraps the transcription engine binary."""

    def __init__(
        self,
        binary: str,
        runner: ProcessRunner,
        timeout: float | None = None,
        extra_args: Sequence[str] = (),
    ) -> None:
        self.binary = binary
        self.runner = runner
        self.timeout = timeout
        self.extra_args = tuple(extra_args)

    def build_command(self, audio_path: Path, model_path: Path, language: str) -> list[str]:
        return [
            self.binary,
            "-m", str(model_path),
            "-f", str(audio_path),
            "-l", language,
            "-oj",
            "-of", str(audio_path),
            *self.extra_args,
        ]

    async def transcribe(self, audio_path: Path, model_path: Path, language: str = "auto") -> TranscriptionResult:
        """
        Transcribe ``audio_path`` with the model at ``model_path``.

        Raises:
            EngineError: The engine could not be started or exited non-zero.
            ProcessTimeoutError: The engine exceeded its timeout.
            OutputMissingError: The engine exited cleanly but wrote no output.
            OutputMalformedError: The output is not the expected JSON.
        """
        output_path = output_path_for(audio_path)
        try:
            result = await self.runner.run(
                self.build_command(audio_path, model_path, language),
                timeout=self.timeout,
                label="transcription",
            )
        except ProcessTimeoutError:
            logger.error("Transcription of %s timed out", audio_path)
            raise
        except OSError as exc:
            logger.error("Could not start transcription engine %s: %s", self.binary, exc)
            raise EngineError("Transcription failed", details=str(exc)) from exc

        if not result.ok:
            logger.error("Whisper error (status %s) for %s: %s", result.returncode, audio_path, result.stderr[-500:])
            raise EngineError("Transcription failed", details=result.diagnostics())

        if not output_path.is_file():
            logger.error("Engine exited cleanly but %s was not written", output_path)
            raise OutputMissingError("Failed to read transcription result", details=result.diagnostics())

        try:
            raw = output_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.error("Could not read %s: %s", output_path, exc)
            raise OutputMissingError("Failed to read transcription result", details=str(exc)) from exc
        try:
            transcript = extract_transcript(json.loads(raw))
        except ValueError as exc:
            # json.JSONDecodeError is a ValueError as well
            logger.error("Malformed transcription output %s: %s", output_path, exc)
            raise OutputMalformedError(
                f"Failed to parse transcription result: {exc}",
                details=raw[:MAX_RAW_DETAILS],
            ) from exc

        logger.info(
            "Transcribed %s (%d characters, language=%s)", audio_path.name, len(transcript.text), transcript.language
        )
        return transcript

"""Pydantic models for the entities that flow through a transcription request."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class UploadedAudio(BaseModel, frozen=True):
    """
    An audio file received from a client and stored in the scratch directory.

    Owned by the request that created it; removed once the response is sent.
    """

    original_name: str
    stored_path: Path
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    size: int = 0


class ModelRecord(BaseModel, frozen=True):
    """A model identifier and the file it is expected to live in."""

    identifier: str
    path: Path

    @property
    def exists(self) -> bool:
        return self.path.is_file()


class TranscriptionRequest(BaseModel, frozen=True):
    audio: UploadedAudio
    model: str
    language: str = "auto"


class TranscriptionResult(BaseModel, frozen=True):
    """Transcript extracted from the engine's JSON output."""

    text: str
    language: Optional[str] = None


class ProcessResult(BaseModel, frozen=True):
    """Outcome of a finished child process with its (bounded) output."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    stdout_truncated: bool = False
    stderr_truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def diagnostics(self) -> str:
        """Both output streams joined for error details."""
        parts = []
        if self.stdout.strip():
            parts.append(f"stdout:\n{self.stdout.strip()}")
        if self.stderr.strip():
            parts.append(f"stderr:\n{self.stderr.strip()}")
        if self.stdout_truncated or self.stderr_truncated:
            parts.append("(output truncated)")
        return "\n".join(parts) or f"exit status {self.returncode}, no output"

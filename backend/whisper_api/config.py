"""Application-wide configuration loader.

Every setting is read from the environment with a sane fallback.  A module
level ``settings`` singleton serves the default application; tests and
embedding code build their own :class:`Settings` with explicit overrides, e.g.

    Settings(MODELS_DIR=tmp_path / "models", UPLOAD_DIR=tmp_path / "uploads")
"""

import os
from pathlib import Path

DEFAULT_VALID_MODELS = (
    "tiny", "tiny.en", "tiny-q5_1", "tiny.en-q5_1", "tiny-q8_0",
    "base", "base.en", "base-q5_1", "base.en-q5_1", "base-q8_0",
    "small", "small.en", "small.en-tdrz", "small-q5_1", "small.en-q5_1", "small-q8_0",
    "medium", "medium.en", "medium-q5_0", "medium.en-q5_0", "medium-q8_0",
    "large", "large-v1", "large-v2", "large-v2-q5_0", "large-v2-q8_0",
    "large-v3", "large-v3-q5_0", "large-v3-turbo", "large-v3-turbo-q5_0", "large-v3-turbo-q8_0",
)


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


class Settings:
    """Settings helper that gracefully falls back to sane defaults.

    When docker-compose injects an environment variable whose value is empty
    (e.g. ``MODELS_DIR=""``) ``os.getenv("MODELS_DIR", default)`` returns an
    empty string, not ``None``, and that empty string would override the
    in-code default.  Every setting therefore uses the idiom

        os.getenv(KEY) or DEFAULT

    so that *falsy* values are replaced by the specified DEFAULT.
    """

    DATA_ROOT: Path = Path(os.getenv("DATA_ROOT") or "data")
    MODELS_DIR: Path = Path(os.getenv("MODELS_DIR") or "/app/whisper.cpp/models")
    UPLOAD_DIR: Path = Path(os.getenv("UPLOAD_DIR") or DATA_ROOT / "uploads")

    WHISPER_BIN: str = os.getenv("WHISPER_BIN") or "/app/whisper.cpp/build/bin/whisper-cli"
    # Unset means ``download-ggml-model.sh`` inside MODELS_DIR, resolved per instance.
    DOWNLOAD_SCRIPT: str = os.getenv("DOWNLOAD_SCRIPT") or ""
    # Empty string means the script is executed directly.
    DOWNLOAD_INTERPRETER: str = os.getenv("DOWNLOAD_INTERPRETER", "bash")

    DEFAULT_MODEL: str = os.getenv("DEFAULT_MODEL") or "medium"
    DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE") or "auto"
    VALID_MODELS: tuple[str, ...] = _split_csv(os.getenv("VALID_MODELS") or "") or DEFAULT_VALID_MODELS
    MODEL_FILE_PREFIX: str = os.getenv("MODEL_FILE_PREFIX") or "ggml-"
    MODEL_FILE_SUFFIX: str = os.getenv("MODEL_FILE_SUFFIX") or ".bin"

    MAX_CONCURRENT_PROCESSES: int = int(os.getenv("MAX_CONCURRENT_PROCESSES") or "2")
    QUEUE_WAIT_SECONDS: float = float(os.getenv("QUEUE_WAIT_SECONDS") or "30")
    TRANSCRIBE_TIMEOUT: float = float(os.getenv("TRANSCRIBE_TIMEOUT") or "600")
    DOWNLOAD_TIMEOUT: float = float(os.getenv("DOWNLOAD_TIMEOUT") or "1800")
    MAX_PROCESS_OUTPUT_BYTES: int = int(os.getenv("MAX_PROCESS_OUTPUT_BYTES") or str(1024 * 1024))
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB") or "0")

    LOG_DIR: str = os.getenv("LOG_DIR") or "logs"
    LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").upper()
    HOST: str = os.getenv("HOST") or "0.0.0.0"
    PORT: int = int(os.getenv("PORT") or "3000")

    def __init__(self, **overrides) -> None:
        for key, value in overrides.items():
            if not hasattr(type(self), key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)
        if not self.DOWNLOAD_SCRIPT:
            self.DOWNLOAD_SCRIPT = str(Path(self.MODELS_DIR) / "download-ggml-model.sh")

    @property
    def max_upload_size_bytes(self) -> int:
        """Per-file upload limit in bytes (0 == unlimited)."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024


settings = Settings()

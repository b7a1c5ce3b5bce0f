"""Shared fixtures: an application wired to temporary directories."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from whisper_api.config import Settings
from whisper_api.main import create_app


@pytest.fixture
def app_settings(tmp_path: Path) -> Settings:
    return Settings(
        MODELS_DIR=tmp_path / "models",
        UPLOAD_DIR=tmp_path / "uploads",
        WHISPER_BIN="/opt/whisper/whisper-cli",
        DOWNLOAD_SCRIPT="/opt/whisper/download-ggml-model.sh",
        DOWNLOAD_INTERPRETER="bash",
        VALID_MODELS=("tiny", "base", "small", "medium", "large"),
        MAX_CONCURRENT_PROCESSES=2,
        QUEUE_WAIT_SECONDS=1.0,
        TRANSCRIBE_TIMEOUT=30.0,
        DOWNLOAD_TIMEOUT=30.0,
    )


@pytest.fixture
def app(app_settings: Settings):
    return create_app(app_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def models_dir(app_settings: Settings) -> Path:
    path = Path(app_settings.MODELS_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def upload_dir(app_settings: Settings) -> Path:
    return Path(app_settings.UPLOAD_DIR)

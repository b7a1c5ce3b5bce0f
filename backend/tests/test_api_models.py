import shutil
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import status

from whisper_api.exceptions import ProcessTimeoutError
from whisper_api.models.transcription import ProcessResult

from .helpers import fake_download, install_model


@pytest.fixture
def mock_run(app):
    with patch.object(app.state.runner, "run", new_callable=AsyncMock) as run:
        yield run


# --- GET /models -------------------------------------------------------------------------


def test_list_models_without_directory(client, app_settings):
    shutil.rmtree(app_settings.MODELS_DIR, ignore_errors=True)

    response = client.get("/models")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"models": []}


def test_list_models(client, models_dir: Path):
    install_model(models_dir, "tiny")
    install_model(models_dir, "large-v3")
    (models_dir / "download-ggml-model.sh").write_text("#!/bin/sh\n")

    response = client.get("/models")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"models": ["large-v3", "tiny"]}


def test_list_models_io_error_is_reported(client, app):
    with patch.object(app.state.model_store, "list_models", side_effect=PermissionError("Permission denied")):
        response = client.get("/models")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["error"] == "Failed to list models"
    assert "Permission denied" in data["details"]


# --- POST /models/download --------------------------------------------------------------


def test_download_missing_model(client, mock_run, models_dir: Path):
    mock_run.side_effect = fake_download(models_dir)

    response = client.post("/models/download", json={"model": "medium"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "message": "Model 'medium' downloaded successfully"}
    mock_run.assert_called_once()
    assert mock_run.call_args[0][0] == ["bash", "/opt/whisper/download-ggml-model.sh", "medium"]
    assert (models_dir / "ggml-medium.bin").is_file()


def test_download_present_model_is_noop(client, mock_run, models_dir: Path):
    install_model(models_dir, "medium")

    response = client.post("/models/download", json={"model": "medium"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Model 'medium' is already available"
    mock_run.assert_not_called()


@pytest.mark.parametrize(
    "request_kwargs",
    [
        {"json": {"model": "colossal"}},
        {"json": {"model": ""}},
        {"json": {}},
        {"json": None},
        {"json": {"model": 5}},
        {"json": {"model": ["medium"]}},
        {"json": ["medium"]},
        {"json": "medium"},
        {"content": b"{not json", "headers": {"Content-Type": "application/json"}},
    ],
)
def test_download_invalid_or_missing_name(client, mock_run, models_dir: Path, request_kwargs):
    response = client.post("/models/download", **request_kwargs)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    data = response.json()
    assert data["success"] is False
    assert data["kind"] == "InvalidParameter"
    assert "Valid models are: tiny, base, small, medium, large" in data["message"]
    mock_run.assert_not_called()
    assert list(models_dir.iterdir()) == []


def test_download_failure(client, mock_run):
    mock_run.return_value = ProcessResult(args=["bash"], returncode=1, stdout="Failed to download ggml model tiny")

    response = client.post("/models/download", json={"model": "tiny"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["success"] is False
    assert data["message"] == "Failed to download model 'tiny'"
    assert "Failed to download ggml model tiny" in data["details"]


def test_download_reports_success_without_file(client, mock_run, models_dir: Path):
    mock_run.side_effect = fake_download(models_dir, produce_file=False)

    response = client.post("/models/download", json={"model": "tiny"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["kind"] == "ProvisioningFailed"


def test_download_timeout(client, mock_run):
    mock_run.side_effect = ProcessTimeoutError("download of model 'large' timed out after 30 seconds")

    response = client.post("/models/download", json={"model": "large"})

    assert response.status_code == status.HTTP_504_GATEWAY_TIMEOUT
    assert response.json()["message"] == "download of model 'large' timed out after 30 seconds"


def test_download_unreadable_cache(client, mock_run):
    with patch.object(Path, "is_file", side_effect=PermissionError(13, "Permission denied")):
        response = client.post("/models/download", json={"model": "tiny"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["kind"] == "ProvisioningFailed"
    assert data["message"] == "Cannot access model 'tiny'"
    assert "Permission denied" in data["details"]
    mock_run.assert_not_called()

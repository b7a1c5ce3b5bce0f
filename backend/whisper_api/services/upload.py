"""Persist multipart uploads to the scratch directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from ..exceptions import MissingInputError, UploadTooLargeError
from ..models.transcription import UploadedAudio
from ..utils.storage import ensure_dir_exists, unique_upload_name

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def require_upload(upload: Optional[UploadFile]) -> UploadFile:
    """Return ``upload`` or raise :class:`MissingInputError` if no file was sent."""
    if upload is None or not upload.filename:
        raise MissingInputError("No audio file provided")
    return upload


class UploadReceiver:
    """Stores uploaded audio under unique names inside ``upload_dir``."""

    def __init__(self, upload_dir: Path, max_upload_bytes: int = 0) -> None:
        self.upload_dir = Path(upload_dir)
        self.max_upload_bytes = max_upload_bytes

    async def receive(self, upload: Optional[UploadFile]) -> UploadedAudio:
        """Save an uploaded file in the scratch directory.

        No MIME type or format checks are made; the engine rejects what it
        cannot decode.
        """
        upload = require_upload(upload)
        ensure_dir_exists(self.upload_dir)
        file_path = (self.upload_dir / unique_upload_name(upload.filename)).resolve()

        logger.info("Saving upload '%s' to '%s'", upload.filename, file_path)
        bytes_written = 0
        try:
            with open(file_path, "wb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    bytes_written += len(chunk)
                    # 0 == unlimited
                    if self.max_upload_bytes and bytes_written > self.max_upload_bytes:
                        logger.warning(
                            "Upload '%s' exceeded max size of %d bytes", upload.filename, self.max_upload_bytes
                        )
                        raise UploadTooLargeError(
                            f"File '{upload.filename}' exceeds the maximum allowed size of "
                            f"{self.max_upload_bytes // (1024 * 1024)} MB."
                        )
                    f.write(chunk)
        except Exception:
            try:
                file_path.unlink(missing_ok=True)
            except OSError as cleanup_err:
                logger.error("Failed to clean up partial upload %s: %s", file_path, cleanup_err)
            raise

        logger.info("Saved upload '%s' (%d bytes)", upload.filename, bytes_written)
        return UploadedAudio(original_name=upload.filename, stored_path=file_path, size=bytes_written)

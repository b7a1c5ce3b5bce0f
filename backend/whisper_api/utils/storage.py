"""Filesystem helpers for the scratch and model directories."""

import logging
import time
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_dir_exists(path: Path) -> Path:
    """Ensure that the given directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def unique_upload_name(original_name: str) -> str:
    """
    Build a collision-resistant scratch filename for an upload.

    The ingestion time in milliseconds keeps names roughly ordered, the random
    suffix separates uploads that land in the same millisecond.  Only the
    basename of the client supplied name is kept.
    """
    basename = Path(original_name.replace("\\", "/")).name or "audio"
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{basename}"


def remove_files(*paths: Path) -> None:
    """Best-effort removal of transient files. Failures are logged, never raised."""
    for path in paths:
        try:
            Path(path).unlink(missing_ok=True)
            logger.debug("Removed transient file %s", path)
        except OSError as exc:
            logger.error("Failed to delete file: %s (%s)", path, exc)

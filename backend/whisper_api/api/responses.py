"""Translate workflow outcomes into JSON responses.

Body shape: ``{"success": bool, "transcription"?: str, "error"?: str,
"details"?: str}``.  Transient files are removed by a background task that
runs once the response has been sent, whatever the outcome.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask

from ..exceptions import ServiceError
from ..utils.storage import remove_files

logger = logging.getLogger(__name__)


def cleanup_task(*paths: Path) -> BackgroundTask:
    """Background task deleting ``paths``; errors are logged only."""
    return BackgroundTask(remove_files, *paths)


def error_response(
    exc: ServiceError,
    message_key: str = "error",
    background: Optional[BackgroundTask] = None,
) -> JSONResponse:
    """Map a :class:`ServiceError` to its status code and JSON body."""
    body: dict[str, Any] = {"success": False, message_key: exc.message, "kind": exc.kind.value}
    if exc.details:
        body["details"] = exc.details
    logger.info("Request failed with %s (%s): %s", exc.kind.value, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body, background=background)


def success_response(payload: dict[str, Any], background: Optional[BackgroundTask] = None) -> JSONResponse:
    return JSONResponse(status_code=200, content={"success": True, **payload}, background=background)

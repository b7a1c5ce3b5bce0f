"""ASGI entry-point for the FastAPI application.

This module
1. instantiates the :class:`fastapi.FastAPI` application from a
   :class:`~whisper_api.config.Settings` object;
2. builds the process runner, model store, transcription invoker and upload
   receiver once and stores them on ``app.state``;
3. registers global exception handlers and middleware; and
4. performs a few start-up sanity checks (scratch directory writable, engine
   binary and download script present, …).

Run with ``uvicorn whisper_api.main:app`` or the ``whisper-api`` script.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from whisper_api import __version__
from whisper_api.api import api_router
from whisper_api.api.responses import error_response
from whisper_api.config import Settings, settings
from whisper_api.exceptions import ServiceError
from whisper_api.logging_config import setup_logging
from whisper_api.services import ModelStore, TranscriptionInvoker, UploadReceiver
from whisper_api.utils.process import ProcessRunner
from whisper_api.utils.storage import ensure_dir_exists

# ---------------------------------------------------------------------------
# Logging must be configured as soon as possible so that any errors during
# import/start-up are captured.
# ---------------------------------------------------------------------------
setup_logging()
logger = logging.getLogger(__name__)


def _build_components(app: FastAPI, app_settings: Settings) -> None:
    runner = ProcessRunner(
        max_concurrent=app_settings.MAX_CONCURRENT_PROCESSES,
        queue_wait=app_settings.QUEUE_WAIT_SECONDS,
        max_output_bytes=app_settings.MAX_PROCESS_OUTPUT_BYTES,
    )
    app.state.settings = app_settings
    app.state.runner = runner
    app.state.model_store = ModelStore(
        models_dir=Path(app_settings.MODELS_DIR),
        valid_models=app_settings.VALID_MODELS,
        runner=runner,
        download_script=app_settings.DOWNLOAD_SCRIPT,
        download_interpreter=app_settings.DOWNLOAD_INTERPRETER,
        download_timeout=app_settings.DOWNLOAD_TIMEOUT,
        file_prefix=app_settings.MODEL_FILE_PREFIX,
        file_suffix=app_settings.MODEL_FILE_SUFFIX,
    )
    app.state.invoker = TranscriptionInvoker(
        binary=app_settings.WHISPER_BIN,
        runner=runner,
        timeout=app_settings.TRANSCRIBE_TIMEOUT,
    )
    app.state.receiver = UploadReceiver(
        upload_dir=Path(app_settings.UPLOAD_DIR),
        max_upload_bytes=app_settings.max_upload_size_bytes,
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:  # noqa: D401
    """Wire and return the FastAPI application instance."""
    app_settings = app_settings or settings

    app = FastAPI(
        title="Whisper API",
        version=__version__,
        docs_url="/docs",
    )
    _build_components(app, app_settings)

    # ------------------------------------------------------------------
    # Start-up checks
    # ------------------------------------------------------------------

    @app.on_event("startup")
    async def _startup_checks() -> None:  # noqa: D401
        logger.info("Running start-up checks …")

        upload_dir = Path(app_settings.UPLOAD_DIR)
        try:
            ensure_dir_exists(upload_dir)
        except OSError as exc:
            logger.critical("Cannot create/access upload directory %s: %s", upload_dir, exc)
        else:
            writable = os.access(str(upload_dir), os.W_OK)
            logger.info("Directory %s is %swritable", upload_dir, "" if writable else "NOT ")

        models_dir = Path(app_settings.MODELS_DIR)
        if models_dir.is_dir():
            logger.info("Models directory %s holds: %s", models_dir, app.state.model_store.list_models())
        else:
            logger.warning("Models directory %s does not exist yet", models_dir)

        if not Path(app_settings.WHISPER_BIN).is_file():
            logger.warning("Transcription engine not found at %s", app_settings.WHISPER_BIN)
        if not Path(app_settings.DOWNLOAD_SCRIPT).is_file():
            logger.warning("Model download script not found at %s", app_settings.DOWNLOAD_SCRIPT)

        logger.info("Start-up checks finished.")

    # ------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(  # noqa: D401
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        logger.error("Request validation error: %s", exc.errors())
        return JSONResponse(status_code=422, content={"success": False, "detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(  # noqa: D401
        _request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        logger.error("HTTP exception %s: %s", exc.status_code, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})

    @app.exception_handler(ServiceError)
    async def _service_error_handler(  # noqa: D401
        _request: Request,
        exc: ServiceError,
    ) -> JSONResponse:
        return error_response(exc)

    @app.exception_handler(Exception)
    async def _generic_error_handler(  # noqa: D401
        _request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal Server Error"})

    # ------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/health")
    async def _health() -> dict[str, str]:  # noqa: D401
        return {"status": "ok"}

    return app


def run() -> None:
    """Serve the application with uvicorn on ``HOST:PORT``."""
    import uvicorn

    logger.info("Whisper API server listening on %s:%s", settings.HOST, settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


# Instantiate at import time so `uvicorn whisper_api.main:app` works.
app: FastAPI = create_app()


if __name__ == "__main__":
    run()

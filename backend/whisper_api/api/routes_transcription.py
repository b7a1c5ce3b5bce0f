"""Transcription endpoint.

``POST /transcribe``: multipart form with ``audio`` (file), ``model`` and
``language``.  Returns ``{"success": true, "transcription": "..."}``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

from ..exceptions import ServiceError
from ..models.transcription import TranscriptionRequest
from ..services.transcription import output_path_for
from ..services.upload import require_upload
from .dependencies import InvokerDep, ModelStoreDep, ReceiverDep, SettingsDep
from .responses import cleanup_task, error_response, success_response

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/transcribe")
async def transcribe(
    store: ModelStoreDep,
    invoker: InvokerDep,
    receiver: ReceiverDep,
    app_settings: SettingsDep,
    audio: Optional[UploadFile] = File(None),
    model: Optional[str] = Form(None),
    language: Optional[str] = Form(None),
) -> JSONResponse:
    """Transcribe one uploaded audio file."""
    model_name = model or app_settings.DEFAULT_MODEL
    language = language or app_settings.DEFAULT_LANGUAGE
    logger.info(
        "transcribe called: file=%s model=%s language=%s", audio.filename if audio else None, model_name, language
    )

    # Reject bad input before anything touches the disk.
    try:
        upload = require_upload(audio)
        store.validate(model_name)
        uploaded = await receiver.receive(upload)
    except ServiceError as exc:
        return error_response(exc)

    request = TranscriptionRequest(audio=uploaded, model=model_name, language=language)
    cleanup = cleanup_task(uploaded.stored_path, output_path_for(uploaded.stored_path))
    try:
        model_path = await store.ensure(request.model)
        result = await invoker.transcribe(request.audio.stored_path, model_path, request.language)
    except ServiceError as exc:
        return error_response(exc, background=cleanup)
    except Exception:
        logger.exception("Unexpected failure while transcribing %s", uploaded.stored_path)
        await cleanup()
        raise

    return success_response({"transcription": result.text}, background=cleanup)

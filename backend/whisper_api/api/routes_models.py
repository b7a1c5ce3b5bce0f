from __future__ import annotations

import logging
from typing import Any, List

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..exceptions import ServiceError
from .dependencies import ModelStoreDep
from .responses import error_response, success_response

router = APIRouter()
logger = logging.getLogger(__name__)

DOWNLOAD_BODY_SCHEMA = {
    "required": True,
    "content": {
        "application/json": {
            "schema": {"type": "object", "properties": {"model": {"type": "string"}}, "required": ["model"]},
        }
    },
}


class ModelList(BaseModel):
    models: List[str]


async def requested_model(request: Request) -> Any:
    """The ``model`` member of a JSON object body, or ``None``.

    Bodies that are empty, not JSON or not an object carry no model name and
    are answered like a missing one.
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.info("Download request body is not valid JSON")
        return None
    if not isinstance(payload, dict):
        return None
    identifier = payload.get("model")
    if identifier is not None and not isinstance(identifier, str):
        return str(identifier)
    return identifier


@router.get("", response_model=ModelList)
async def list_models(store: ModelStoreDep):
    """List the models present in the local cache."""
    try:
        models = store.list_models()
    except OSError as exc:
        logger.error("Failed to list models in %s: %s", store.models_dir, exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Failed to list models", "details": str(exc)},
        )
    return ModelList(models=models)


@router.post("/download", openapi_extra={"requestBody": DOWNLOAD_BODY_SCHEMA})
async def download_model(request: Request, store: ModelStoreDep) -> JSONResponse:
    """Make sure a model is in the cache, downloading it when missing."""
    try:
        identifier = store.validate(await requested_model(request))
        already_present = store.is_available(identifier)
        await store.ensure(identifier)
    except ServiceError as exc:
        return error_response(exc, message_key="message")

    if already_present:
        message = f"Model '{identifier}' is already available"
    else:
        message = f"Model '{identifier}' downloaded successfully"
    return success_response({"message": message})

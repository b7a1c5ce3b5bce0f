"""FastAPI dependency injection configuration.

The components are built once by :func:`whisper_api.main.create_app` and kept
on ``app.state``; routes receive them through ``Depends``.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..config import Settings
from ..services import ModelStore, TranscriptionInvoker, UploadReceiver


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_model_store(request: Request) -> ModelStore:
    return request.app.state.model_store


def get_invoker(request: Request) -> TranscriptionInvoker:
    return request.app.state.invoker


def get_receiver(request: Request) -> UploadReceiver:
    return request.app.state.receiver


SettingsDep = Annotated[Settings, Depends(get_settings)]
ModelStoreDep = Annotated[ModelStore, Depends(get_model_store)]
InvokerDep = Annotated[TranscriptionInvoker, Depends(get_invoker)]
ReceiverDep = Annotated[UploadReceiver, Depends(get_receiver)]

"""Transcription workflow: upload intake, model cache and engine invocation."""

from .model_store import ModelStore
from .transcription import TranscriptionInvoker, output_path_for
from .upload import UploadReceiver

__all__ = ["ModelStore", "TranscriptionInvoker", "UploadReceiver", "output_path_for"]

# Namespace for Pydantic models.
from .transcription import ModelRecord, ProcessResult, TranscriptionRequest, TranscriptionResult, UploadedAudio

__all__ = ["ModelRecord", "ProcessResult", "TranscriptionRequest", "TranscriptionResult", "UploadedAudio"]

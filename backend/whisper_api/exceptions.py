"""Domain-level exceptions.

Every failure of the transcription workflow is raised as a
:class:`ServiceError` subclass at the point where it happens.  The class
carries the :class:`ErrorKind`, the HTTP status it maps to and any captured
diagnostics, so the API layer never has to inspect process output itself.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Terminal failure classes of a request."""

    MISSING_INPUT = "MissingInput"
    INVALID_PARAMETER = "InvalidParameter"
    UPLOAD_TOO_LARGE = "UploadTooLarge"
    BUSY = "Busy"
    PROVISIONING_FAILED = "ProvisioningFailed"
    ENGINE_FAILED = "EngineFailed"
    OUTPUT_MISSING = "OutputMissing"
    OUTPUT_MALFORMED = "OutputMalformed"
    TIMEOUT = "Timeout"


class ServiceError(Exception):
    """Base exception so we can map to JSON responses easily."""

    kind: ErrorKind
    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class MissingInputError(ServiceError):
    """Raised when the request carries no audio file."""

    kind = ErrorKind.MISSING_INPUT
    status_code = 400


class InvalidModelError(ServiceError):
    """Raised when a model identifier is not in the configured set."""

    kind = ErrorKind.INVALID_PARAMETER
    status_code = 400

    def __init__(self, identifier: str | None, valid_models: tuple[str, ...]) -> None:
        self.identifier = identifier
        self.valid_models = valid_models
        super().__init__(
            f"Invalid model '{identifier}'. Valid models are: {', '.join(valid_models)}"
            if identifier
            else f"Model name is required. Valid models are: {', '.join(valid_models)}"
        )


class UploadTooLargeError(ServiceError):
    kind = ErrorKind.UPLOAD_TOO_LARGE
    status_code = 413


class ServerBusyError(ServiceError):
    """Raised when no process slot frees up within the queue wait."""

    kind = ErrorKind.BUSY
    status_code = 429


class ProvisioningError(ServiceError):
    """Raised when a model could not be downloaded."""

    kind = ErrorKind.PROVISIONING_FAILED


class EngineError(ServiceError):
    """Raised when the transcription engine fails or cannot be started."""

    kind = ErrorKind.ENGINE_FAILED


class OutputMissingError(ServiceError):
    kind = ErrorKind.OUTPUT_MISSING


class OutputMalformedError(ServiceError):
    kind = ErrorKind.OUTPUT_MALFORMED


class ProcessTimeoutError(ServiceError):
    """Raised when a child process exceeds its time budget and is killed."""

    kind = ErrorKind.TIMEOUT
    status_code = 504

"""Local cache of whisper.cpp model files.

A model is "available" when ``<models_dir>/ggml-<id>.bin`` exists on disk at
the moment of the check; nothing about availability is remembered in memory,
because the models volume can be populated or cleared from outside.

Missing models are downloaded with ``download-ggml-model.sh <id>`` run from
inside the models directory.  Concurrent requests for the same missing model
share one download.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable

from ..exceptions import InvalidModelError, ProcessTimeoutError, ProvisioningError
from ..models.transcription import ModelRecord
from ..utils.process import ProcessRunner

logger = logging.getLogger(__name__)


class ModelStore:
    def __init__(
        self,
        models_dir: Path,
        valid_models: Iterable[str],
        runner: ProcessRunner,
        download_script: str,
        download_interpreter: str = "bash",
        download_timeout: float | None = None,
        file_prefix: str = "ggml-",
        file_suffix: str = ".bin",
    ) -> None:
        self.models_dir = Path(models_dir)
        self.valid_models = tuple(valid_models)
        self.runner = runner
        self.download_script = download_script
        self.download_interpreter = download_interpreter
        self.download_timeout = download_timeout
        self.file_prefix = file_prefix
        self.file_suffix = file_suffix
        self._inflight: dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def validate(self, identifier: str | None) -> str:
        """Return ``identifier`` if it is a known model, else raise InvalidModelError."""
        if not identifier or identifier not in self.valid_models:
            raise InvalidModelError(identifier, self.valid_models)
        return identifier

    def path_for(self, identifier: str) -> Path:
        self.validate(identifier)
        return self.models_dir / f"{self.file_prefix}{identifier}{self.file_suffix}"

    def record_for(self, identifier: str) -> ModelRecord:
        return ModelRecord(identifier=identifier, path=self.path_for(identifier))

    def is_available(self, identifier: str) -> bool:
        return self._exists(identifier, self.path_for(identifier))

    def _exists(self, identifier: str, path: Path) -> bool:
        try:
            return path.is_file()
        except OSError as exc:
            logger.error("Cannot access model file %s: %s", path, exc)
            raise ProvisioningError(f"Cannot access model '{identifier}'", details=str(exc)) from exc

    def list_models(self) -> list[str]:
        """Identifiers of the model files currently in the cache.

        A missing models directory is an empty cache.  Any other I/O error is
        left to the caller.
        """
        if not self.models_dir.is_dir():
            logger.info("Models directory %s does not exist", self.models_dir)
            return []
        names = []
        for entry in self.models_dir.iterdir():
            name = entry.name
            if (
                name.startswith(self.file_prefix)
                and name.endswith(self.file_suffix)
                and len(name) > len(self.file_prefix) + len(self.file_suffix)
                and entry.is_file()
            ):
                names.append(name[len(self.file_prefix):len(name) - len(self.file_suffix)])
        return sorted(names)

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    async def ensure(self, identifier: str) -> Path:
        """Return the path of ``identifier``'s model file, downloading it if absent.

        Raises
        ------
        InvalidModelError
            Unknown identifier; no filesystem or process I/O happens.
        ProvisioningError
            The model file is unreadable, or the download script failed or did
            not produce it.
        ProcessTimeoutError
            The download script exceeded its timeout.
        """
        path = self.path_for(identifier)
        if self._exists(identifier, path):
            logger.debug("Model '%s' found at %s", identifier, path)
            return path

        task = self._inflight.get(identifier)
        if task is None:
            task = asyncio.ensure_future(self._provision(identifier, path))
            self._inflight[identifier] = task
            task.add_done_callback(lambda t, key=identifier: self._forget(key, t))
        else:
            logger.info("Download of model '%s' already in progress, waiting for it", identifier)
        # One impatient caller must not cancel a download others are waiting on.
        return await asyncio.shield(task)

    def _forget(self, identifier: str, task: asyncio.Task) -> None:
        if self._inflight.get(identifier) is task:
            del self._inflight[identifier]
        if not task.cancelled():
            # Mark the exception retrieved even when every waiter went away.
            task.exception()

    def _download_command(self, identifier: str) -> list[str]:
        if self.download_interpreter:
            return [self.download_interpreter, self.download_script, identifier]
        return [self.download_script, identifier]

    async def _provision(self, identifier: str, path: Path) -> Path:
        # Another worker (or the operator) may have filled the volume meanwhile.
        if self._exists(identifier, path):
            return path

        logger.info("Model '%s' not found at %s, downloading", identifier, path)
        try:
            self.models_dir.mkdir(parents=True, exist_ok=True)
            result = await self.runner.run(
                self._download_command(identifier),
                cwd=self.models_dir,
                timeout=self.download_timeout,
                label=f"download of model '{identifier}'",
            )
        except ProcessTimeoutError:
            logger.error("Download of model '%s' timed out", identifier)
            raise
        except OSError as exc:
            logger.error("Could not start model download for '%s': %s", identifier, exc)
            raise ProvisioningError(f"Failed to download model '{identifier}'", details=str(exc)) from exc

        if not result.ok:
            logger.error("Model download for '%s' exited with status %s", identifier, result.returncode)
            raise ProvisioningError(f"Failed to download model '{identifier}'", details=result.diagnostics())

        if not self._exists(identifier, path):
            logger.error("Model download for '%s' reported success but %s is missing", identifier, path)
            raise ProvisioningError(
                f"Model '{identifier}' download completed but model file was not found",
                details=f"expected {path}\n{result.diagnostics()}",
            )

        logger.info("Model '%s' downloaded to %s", identifier, path)
        return path

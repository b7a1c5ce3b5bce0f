"""Async supervisor for the external ``whisper-cli`` and download processes.

Child processes are started with :func:`asyncio.create_subprocess_exec` so the
event loop keeps serving other requests while a transcription runs.  The
runner also

* caps how many children run at the same time (callers wait for a free slot
  for at most ``queue_wait`` seconds, then get :class:`ServerBusyError`);
* keeps at most ``max_output_bytes`` of each output stream, draining the rest
  so the child never blocks on a full pipe;
* kills a child that outlives its timeout and raises
  :class:`ProcessTimeoutError`.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Sequence

from ..exceptions import ProcessTimeoutError, ServerBusyError
from ..models.transcription import ProcessResult

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


async def _read_bounded(stream: asyncio.StreamReader, limit: int) -> tuple[str, bool]:
    """Read ``stream`` to EOF keeping only the first ``limit`` bytes."""
    kept = bytearray()
    truncated = False
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        room = max(limit - len(kept), 0)
        if room:
            kept.extend(chunk[:room])
        if len(chunk) > room:
            truncated = True
    return kept.decode("utf-8", errors="replace"), truncated


class ProcessRunner:
    """Runs child processes under a shared concurrency limit."""

    def __init__(
        self,
        max_concurrent: int = 2,
        queue_wait: float = 30.0,
        max_output_bytes: int = 1024 * 1024,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.queue_wait = queue_wait
        self.max_output_bytes = max_output_bytes
        self._semaphore = asyncio.Semaphore(max_concurrent)

    @asynccontextmanager
    async def slot(self, label: str = "process") -> AsyncIterator[None]:
        """Hold one of the ``max_concurrent`` process slots."""
        if self._semaphore.locked():
            logger.info("All %d process slots busy, %s is queued", self.max_concurrent, label)
            try:
                await asyncio.wait_for(self._semaphore.acquire(), timeout=self.queue_wait)
            except asyncio.TimeoutError as exc:
                logger.warning("No process slot freed within %ss for %s", self.queue_wait, label)
                raise ServerBusyError(
                    "Server busy. Please retry.",
                    details=f"{self.max_concurrent} external processes already running",
                ) from exc
        else:
            await self._semaphore.acquire()
        try:
            yield
        finally:
            self._semaphore.release()

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        label: str = "process",
    ) -> ProcessResult:
        """Execute ``args`` and wait for it to finish.

        Parameters
        ----------
        args:
            Program and arguments, passed without a shell.
        cwd:
            Working directory of the child.
        timeout:
            Seconds before the child is killed; ``None`` or ``0`` waits forever.
        label:
            Human readable name used in logs and error messages.

        Returns
        -------
        ProcessResult
            Exit status and bounded stdout/stderr.  A non-zero exit status is
            *not* an exception; callers decide what it means.

        Raises
        ------
        OSError
            The program could not be started (missing binary, bad cwd, …).
        ProcessTimeoutError
            The child exceeded ``timeout`` and was killed.
        ServerBusyError
            No process slot became available within ``queue_wait``.
        """
        argv = [str(a) for a in args]
        async with self.slot(label):
            logger.info("Executing %s: %s", label, shlex.join(argv))
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd) if cwd else None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
            collect = asyncio.gather(
                _read_bounded(proc.stdout, self.max_output_bytes),
                _read_bounded(proc.stderr, self.max_output_bytes),
                proc.wait(),
            )
            try:
                (stdout, out_trunc), (stderr, err_trunc), returncode = await asyncio.wait_for(
                    collect, timeout=timeout or None
                )
            except asyncio.TimeoutError as exc:
                await self._kill(proc, label)
                raise ProcessTimeoutError(
                    f"{label} timed out after {timeout:g} seconds",
                    details=shlex.join(argv),
                ) from exc
            except asyncio.CancelledError:
                await self._kill(proc, label)
                raise

        logger.info("%s exited with status %s (pid %s)", label, returncode, proc.pid)
        if out_trunc or err_trunc:
            logger.warning("%s output exceeded %d bytes and was truncated", label, self.max_output_bytes)
        return ProcessResult(
            args=argv,
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            stdout_truncated=out_trunc,
            stderr_truncated=err_trunc,
        )

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process, label: str) -> None:
        logger.warning("Killing %s (pid %s)", label, proc.pid)
        try:
            # Own session: take down helpers the child spawned (wget, curl) as well.
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        await proc.wait()

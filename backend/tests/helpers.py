"""Stand-ins for the external whisper.cpp programs used across tests."""

from __future__ import annotations

import json
from pathlib import Path

from whisper_api.models.transcription import ProcessResult


def install_model(models_dir: Path, identifier: str) -> Path:
    """Drop a fake model file into the cache."""
    models_dir.mkdir(parents=True, exist_ok=True)
    path = models_dir / f"ggml-{identifier}.bin"
    path.write_bytes(b"fake weights")
    return path


def engine_output_base(args: list[str]) -> str:
    """The ``-of`` argument of a whisper-cli command line."""
    return args[args.index("-of") + 1]


def fake_engine(document=None, raw: str | None = None, returncode: int = 0, stderr: str = ""):
    """Side effect for ``ProcessRunner.run`` imitating whisper-cli.

    Writes ``document`` (or ``raw`` text) to ``<audio>.json``; writes nothing
    when both are ``None``.
    """

    def _run(args, **kwargs):
        args = [str(a) for a in args]
        if document is not None or raw is not None:
            content = raw if raw is not None else json.dumps(document)
            Path(engine_output_base(args) + ".json").write_text(content, encoding="utf-8")
        return ProcessResult(args=args, returncode=returncode, stdout="", stderr=stderr)

    return _run


def fake_download(models_dir: Path, produce_file: bool = True, returncode: int = 0, stdout: str = ""):
    """Side effect for ``ProcessRunner.run`` imitating download-ggml-model.sh."""

    def _run(args, **kwargs):
        args = [str(a) for a in args]
        if produce_file:
            install_model(models_dir, args[-1])
        return ProcessResult(args=args, returncode=returncode, stdout=stdout, stderr="")

    return _run

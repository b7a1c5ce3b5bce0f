import logging
import re
from pathlib import Path
from unittest.mock import patch

from whisper_api.utils.storage import ensure_dir_exists, remove_files, unique_upload_name


def test_ensure_dir_exists_creates_nested(tmp_path: Path):
    target = tmp_path / "a" / "b"

    assert ensure_dir_exists(target) == target
    assert target.is_dir()
    ensure_dir_exists(target)  # idempotent


def test_unique_upload_name_format():
    name = unique_upload_name("meeting notes.m4a")

    assert re.fullmatch(r"\d{13,}-[0-9a-f]{8}-meeting notes\.m4a", name)


def test_unique_upload_name_strips_windows_paths():
    assert unique_upload_name("C:\\Users\\me\\clip.wav").endswith("-clip.wav")


def test_unique_upload_names_differ():
    names = {unique_upload_name("a.wav") for _ in range(100)}

    assert len(names) == 100


def test_remove_files_ignores_missing(tmp_path: Path):
    existing = tmp_path / "a.wav"
    existing.write_bytes(b"x")

    remove_files(existing, tmp_path / "a.wav.json")

    assert not existing.exists()


def test_remove_files_logs_errors(tmp_path: Path, caplog):
    target = tmp_path / "locked.wav"
    target.write_bytes(b"x")

    with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
        with caplog.at_level(logging.ERROR, logger="whisper_api.utils.storage"):
            remove_files(target)

    assert "Failed to delete file" in caplog.text

# Ensure the ``backend`` directory is importable so ``import whisper_api`` works
# without an editable install.
from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT_DIR))

# Keep test logs out of the working tree unless overridden
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "whisper-api-test-logs"))

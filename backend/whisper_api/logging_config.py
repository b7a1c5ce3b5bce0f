"""Process-wide logging for the Whisper API.

Records go to stdout and to ``<LOG_DIR>/whisper_api.log`` (rotated at 5 MB,
two backups).  Child process output is never logged wholesale; services log
the command label and exit status and keep the captured text for responses.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from whisper_api.config import settings

LOG_DIR = settings.LOG_DIR
LOG_FILE = os.path.join(LOG_DIR, "whisper_api.log")


def setup_logging(level: str | None = None):
    """Attach console and rotating-file handlers to the root logger.

    Safe to call more than once; ``level`` overrides ``LOG_LEVEL``.
    """
    os.makedirs(LOG_DIR, exist_ok=True)

    log_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(module)s - %(funcName)s - %(lineno)d - %(message)s"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level or settings.LOG_LEVEL)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)

    # 5MB per file, 2 backups
    file_handler = RotatingFileHandler(LOG_FILE, maxBytes=1024 * 1024 * 5, backupCount=2)
    file_handler.setFormatter(log_formatter)

    # Avoid adding handlers multiple times (uvicorn --reload, test re-imports)
    has_file_handler = any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)
    if not has_file_handler:
        root_logger.addHandler(file_handler)
    else:
        file_handler.close()
    has_console_handler = any(
        isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout
        for h in root_logger.handlers
    )
    if not has_console_handler:
        root_logger.addHandler(console_handler)

    logging.getLogger("whisper_api").setLevel(level or settings.LOG_LEVEL)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)

    logging.info("Logging configured successfully (console and file).")

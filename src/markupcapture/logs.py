from __future__ import annotations

import logging
import os
from pathlib import Path

LOGGER_NAME = "markupcapture.capture"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def build_logger(log_dir: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    logger.propagate = False
    configured_dir = log_dir or _env_log_dir()
    if configured_dir is not None:
        try:
            configured_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(configured_dir / "capture.log", encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(file_handler)
            return logger
        except OSError:
            pass
    # Fallback to stderr logging if no file logger is configured or it cannot be opened.
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)
    return logger


def _env_log_dir() -> Path | None:
    raw = os.environ.get("MARKUP_CAPTURE_LOG_DIR", "").strip()
    return Path(raw).expanduser() if raw else None

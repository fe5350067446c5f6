"""Application-wide logging: rotating file under the app folder plus console."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from settings import APP_DIR

_INITIALIZED = False


def configure_logging(level: str = "INFO", *, log_path: str | None = None) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return

    log_file = log_path or os.path.join(APP_DIR, "mini-year-calendar.log")
    os.makedirs(os.path.dirname(log_file), exist_ok=True)

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=5,
                                       encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.addHandler(file_handler)
    root.addHandler(console_handler)

    _INITIALIZED = True
    logging.getLogger(__name__).debug("Logging configured. Output file: %s", log_file)

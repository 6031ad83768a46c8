#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Logging setup for the imagemin command line.

Standard output carries image bytes, so every handler installed here
writes to standard error or to a log file.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

CONSOLE_FORMAT = "imagemin: %(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"


def configure_logging(log_level: int | str, log_file: Optional[str] = None) -> logging.Logger:
    """Install the CLI's root logging handlers.

    Parameters
    ----------
    log_level : int | str
        Numeric logging level or level name (e.g., "INFO")
    log_file : str, optional
        Also append records to this file, with timestamps and the worker
        thread name so concurrent per-file messages can be told apart

    Returns
    -------
    logging.Logger
        The configured root logger

    """
    level = log_level if isinstance(log_level, int) else logging.getLevelName(str(log_level).upper())
    if not isinstance(level, int):
        level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            root_logger.warning(f"Could not open log file {log_file}: {e}")
        else:
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            root_logger.addHandler(file_handler)
            root_logger.debug(f"Logging to file: {log_file}")

    return root_logger

"""Logging utilities."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional


def setup_logger(name: str = 'sacseg', log_level: Optional[int] = None,
                 log_file: Optional[str] = None) -> logging.Logger:
    """
    Setup logger with console and optional file handler.

    Without an explicit level, SACSEG_DEBUG=1 selects DEBUG, otherwise INFO.
    Calling it again for the same name does not stack handlers.
    """
    if log_level is None:
        log_level = logging.DEBUG if os.environ.get("SACSEG_DEBUG", "0") == "1" else logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if not any(getattr(h, "_sacseg_console", False) for h in logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler._sacseg_console = True
        logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

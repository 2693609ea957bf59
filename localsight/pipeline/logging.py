"""Logging helpers for the detector."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {process}:{thread} | "
    "{name}:{function}:{line} | {message}"
)


def configure_logging(
    log_level: str = "INFO",
    log_dir: str = "logs",
    *,
    json_logs: bool = False,
) -> None:
    """Configure loguru console and rotating file sinks."""
    log_level = os.getenv("LOCALSIGHT_LOG_LEVEL", log_level).upper()
    Path(log_dir).mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(sink=sys.stdout, format=CONSOLE_FORMAT, level=log_level)
    logger.add(
        str(Path(log_dir) / "localsight_{time:YYYY-MM-DD}.log"),
        rotation="10 MB",
        retention="7 days",
        level=log_level,
        format=FILE_FORMAT,
    )
    if json_logs:
        logger.add(
            str(Path(log_dir) / "localsight_{time:YYYY-MM-DD}.jsonl"),
            rotation="10 MB",
            retention="7 days",
            level=log_level,
            serialize=True,
        )

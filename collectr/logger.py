"""Loguru-based logging setup."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

# Records not bound to a provider (service, config, CLI) show this tag
NO_PROVIDER = "-"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level:<7}</level> | "
    "<cyan>{extra[provider]:<5}</cyan> | {message}"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<7} | {extra[provider]:<5} | {name}:{line} | {message}"


def setup_logger(log_dir: Path | None = None, level: str = "INFO") -> None:
    """Configure loguru with console + rotating file output.

    Both sinks carry the ``provider`` bound by the search adapters, so a
    degraded IGDB call can be told apart from a RAWG one in the log.
    """
    logger.remove()
    logger.configure(extra={"provider": NO_PROVIDER})

    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / "collectr.log"),
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="5 MB",
            retention="7 days",
            encoding="utf-8",
        )

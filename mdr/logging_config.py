"""Process logging setup for the API server and the CLI."""

from __future__ import annotations

import logging
import sys


def setup_logging(component_name: str = "mdr", level: str | int = "INFO", format_string: str | None = None) -> logging.Logger:
    if format_string is None:
        format_string = f"[%(asctime)s] [{component_name.upper()}] %(levelname)s %(name)s - %(message)s"
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger = logging.getLogger(component_name)
    logger.debug("logging initialized (level=%s)", logging.getLevelName(level))
    return logger

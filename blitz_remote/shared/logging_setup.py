"""
MODULE OVERVIEW:
One-shot loguru configuration for the CLI entrypoints.

WHAT IS HAPPENING HERE:
loguru ships with a DEBUG-level stderr sink already installed. We swap it for a
single sink at the configured level so `BLITZ_LOG_LEVEL=WARNING` actually
quiets the client. When the rich dashboard owns the terminal, pass a `sink`
(e.g. a file path) so log lines do not tear through the live display.
"""
import sys
from typing import Any

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - {message}"

def configure_logging(level: str = "INFO", sink: Any = None) -> None:
    logger.remove()
    logger.add(sink if sink is not None else sys.stderr, level=level.upper(), format=LOG_FORMAT)
    logger.debug(f"event=logging_configured level={level.upper()}")

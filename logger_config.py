"""Centralized logging configuration."""

import os
import sys

from loguru import logger

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

log_format = " | ".join(
    (
        "<lk>{time:YYYY-MM-DD HH:mm:ss.SSS}</>",
        "<lvl>{level:<8}</>",
        "<c>{name}:{function}:{line}</>",
        "{message}",
    )
)

logger.remove()  # drop the default handler, keep a single formatted sink
logger.add(sys.stdout, format=log_format, level=LOG_LEVEL)

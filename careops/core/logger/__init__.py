"""
careops logger: console + optional rotating JSON file.

Usage:
    from careops.core.logger import configure, get_logger, LoggerConfig

    # Once at startup (env: LOG_LEVEL, LOG_DIR, LOG_FILE_BASENAME, ...)
    configure()

    logger = get_logger(__name__)
    logger.info("Template applied", extra={"template_id": str(tid), "inserted": 4})
"""
from careops.core.logger.config import LoggerConfig
from careops.core.logger.formatters import JsonFormatter, PlainConsoleFormatter
from careops.core.logger.setup import (
    build_rotating_file_handler,
    configure,
    get_logger,
)

__all__ = [
    "LoggerConfig",
    "JsonFormatter",
    "PlainConsoleFormatter",
    "configure",
    "get_logger",
    "build_rotating_file_handler",
]

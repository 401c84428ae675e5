# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-07
# Updated: 2026-10-18
# Description: logging_utils.py
# -----------------------------------------------------------------------------
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

import colorlog

BASE_LOGGER_NAME = "civic_rag"

_CONSOLE_FORMAT = (
    "%(log_color)s%(asctime)s [%(levelname)s] "
    "%(name)s:%(lineno)d:%(reset)s %(message_log_color)s%(message)s"
)
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _level_from_env() -> int:
    level_name = os.getenv("CIVIC_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(
        colorlog.ColoredFormatter(
            fmt=_CONSOLE_FORMAT,
            datefmt=_DATE_FORMAT,
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
            secondary_log_colors={
                "message": {
                    "INFO": "white",
                    "WARNING": "yellow",
                    "ERROR": "light_red",
                    "CRITICAL": "red",
                }
            },
            style="%",
        )
    )
    return handler


def _file_handler() -> logging.Handler | None:
    """
    Rotating file handler, only when CIVIC_LOG_TO_FILE is set.
    Serverless hosts usually have a read-only filesystem, so off by default.
    """
    log_to_file = os.getenv("CIVIC_LOG_TO_FILE", "0").lower() in ("1", "true", "yes", "y")
    if not log_to_file:
        return None

    log_path = Path(os.getenv("CIVIC_LOG_FILE", "./logs/civicrag.log"))
    _ensure_parent_dir(log_path)

    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=int(os.getenv("CIVIC_LOG_MAX_BYTES", str(5 * 1024 * 1024))),  # 5MB
        backupCount=int(os.getenv("CIVIC_LOG_BACKUP_COUNT", "5")),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _create_logger(full_name: str) -> logging.Logger:
    """
    Internal helper to create/configure a logger with a given full name.
    """
    logger = logging.getLogger(full_name)

    if not logger.handlers:
        logger.addHandler(_console_handler())
        file_handler = _file_handler()
        if file_handler is not None:
            logger.addHandler(file_handler)

        logger.setLevel(_level_from_env())
        logger.propagate = False

    return logger


def configure_root_logging() -> None:
    """
    Colour console output for loggers created with logging.getLogger(__name__)
    (routers, uvicorn). Safe to call more than once.
    """
    root = logging.getLogger()
    if any(getattr(h, "_civic_rag", False) for h in root.handlers):
        return

    handler = _console_handler()
    handler._civic_rag = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(_level_from_env())


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Generic logger that does not include a class name.
    """
    full_name = f"{BASE_LOGGER_NAME}.{name}" if name else BASE_LOGGER_NAME
    return _create_logger(full_name)


def get_class_logger(cls: type) -> logging.Logger:
    """
    Returns a logger whose name includes module + class, e.g.:

      civic_rag.services.CivicSearchService.CivicSearchService
      civic_rag.embedding.CivicEmbedder.CivicEmbedder
    """
    module = getattr(cls, "__module__", "unknown_module")
    classname = getattr(cls, "__name__", "UnknownClass")

    full_name = f"{BASE_LOGGER_NAME}.{module}.{classname}"
    return _create_logger(full_name)

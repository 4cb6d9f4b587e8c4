"""Package logger configuration for seqtagfinder.

Modules log through ``get_logger(__name__)``; only entry points (the CLI and
``run_tag_finder``) call :func:`setup_logging`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "seqtagfinder"
DEFAULT_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LevelLike = Union[int, str]


def resolve_log_level(level: LevelLike) -> int:
    """Return the numeric logging level for an int or a level name (``"debug"``, ``"INFO"``...)."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def _file_handler_for(logger: logging.Logger, log_path: Path) -> Optional[logging.FileHandler]:
    target = str(log_path.resolve())
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return handler
    return None


def _add_file_handler(logger: logging.Logger, log_file: Union[str, Path], formatter: logging.Formatter) -> None:
    log_path = Path(log_file)
    if _file_handler_for(logger, log_path) is not None:
        return
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def setup_logging(
    level: LevelLike = logging.INFO,
    fmt: str = DEFAULT_LOG_FORMAT,
    datefmt: str = DEFAULT_DATE_FORMAT,
    log_file: Optional[Union[str, Path]] = None,
    reconfigure: bool = False,
) -> logging.Logger:
    """
    Attach a stderr handler (and optionally a file handler) to the package logger.

    Repeated calls only adjust the level and add a missing file handler, unless
    ``reconfigure`` is set, in which case existing handlers are closed first.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    if reconfigure:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    if not logger.handlers:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)
    if log_file is not None:
        _add_file_handler(logger, log_file, formatter)

    logger.setLevel(resolve_log_level(level))
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

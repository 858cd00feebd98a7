"""Logging utilities."""

import functools
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Union


PACKAGE_LOGGER = "orthofit"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the package logger (or one below it).

    Calling it again replaces the handlers instead of adding more, so a
    script may reconfigure logging after reading its YAML config.

    Args:
        name: Logger name.
        level: Level name (DEBUG, INFO, WARNING, ERROR) or numeric level.
        log_file: Optional file path for logging.
        console: Whether to log to stdout.

    Returns:
        Configured logger instance.

    Raises:
        ValueError: If the level name is unknown.
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown logging level: {level}")
        level = numeric

    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Get a logger in the ``orthofit`` hierarchy.

    Library modules never attach handlers themselves; names outside the
    package are nested under ``orthofit`` so that a single
    :func:`setup_logger` call configures all of them.

    Args:
        name: Logger name (module or class name).

    Returns:
        Logger instance.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


class LoggerMixin:
    """Gives optimizer classes a logger named after the class."""

    @property
    def logger(self) -> logging.Logger:
        try:
            return self._logger
        except AttributeError:
            self._logger = get_logger(type(self).__name__)
            return self._logger


def log_function_call(logger: Optional[logging.Logger] = None):
    """
    Log entry, wall-clock duration and failures of the decorated function.

    Exceptions, including failed precondition asserts, are logged at ERROR
    and re-raised unchanged.

    Args:
        logger: Logger to use (package logger if None).
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            log = logger or get_logger()
            log.debug(f"Calling {func.__name__}")
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(f"{func.__name__} failed: {e!r}")
                raise
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            log.debug(f"{func.__name__} finished in {elapsed_ms:.1f} ms")
            return result
        return wrapper
    return decorator

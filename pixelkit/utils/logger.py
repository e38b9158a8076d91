"""
Logging setup for PixelKit.

Handlers are attached to the root logger once per `setup_logging` call;
a repeated call replaces the handlers PixelKit installed earlier and
leaves any others (test capture, uvicorn) alone.
"""

import functools
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_installed_handlers: List[logging.Handler] = []


def _level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,  # 10 MB
    backup_count: int = 5,
    console_enabled: bool = True,
    file_enabled: bool = False
):
    """
    Configure the root logger for the API process.

    Args:
        log_level: Root level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Record format, defaults to DEFAULT_FORMAT
        date_format: Timestamp format, defaults to DEFAULT_DATE_FORMAT
        log_file: Path of the rotating log file
        max_bytes: Size at which the log file is rotated
        backup_count: Rotated files kept
        console_enabled: Log to stdout
        file_enabled: Log to `log_file`
    """
    level = _level(log_level)
    formatter = logging.Formatter(log_format or DEFAULT_FORMAT, datefmt=date_format or DEFAULT_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    if console_enabled:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        _installed_handlers.append(console_handler)

    if file_enabled and log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        # The file keeps everything, the console follows the root level
        file_handler.setLevel(logging.DEBUG)
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    file_state = log_file if file_enabled and log_file else "disabled"
    root_logger.info(f"Logging initialized: level={log_level}, file={file_state}")


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Module logger, usually `get_logger(__name__)`.

    Args:
        name: Dotted logger name
        level: Optional level override for this logger only
    """
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(_level(level))
    return logger


def setup_from_config(config):
    """
    Configure logging from the `logging` section of the configuration.

    Args:
        config: ConfigLoader instance or a full config dict with a 'logging' key

    Example:
        >>> from pixelkit.config import get_config
        >>> setup_from_config(get_config())
    """
    if hasattr(config, 'get_section'):
        section = config.get_section('logging')
    elif isinstance(config, dict):
        section = config.get('logging') or {}
    else:
        raise TypeError(f"config must be ConfigLoader or dict, got {type(config)}")

    file_section = section.get('file') or {}
    console_section = section.get('console') or {}

    setup_logging(
        log_level=section.get('level', 'INFO'),
        log_format=section.get('format'),
        date_format=section.get('date_format'),
        log_file=file_section.get('path'),
        max_bytes=file_section.get('max_bytes', 10485760),
        backup_count=file_section.get('backup_count', 5),
        console_enabled=console_section.get('enabled', True),
        file_enabled=file_section.get('enabled', False)
    )

    overrides: Dict[str, str] = section.get('loggers') or {}
    for name, level in overrides.items():
        logging.getLogger(name).setLevel(_level(level))


class LoggerAdapter(logging.LoggerAdapter):
    """
    Prefixes every message with its context, e.g.
    ``[session=a1b2c3d4] Stroke applied``.
    """

    def process(self, msg, kwargs):
        if self.extra:
            context = ', '.join(f"{key}={value}" for key, value in self.extra.items())
            msg = f"[{context}] {msg}"
        return msg, kwargs


def log_execution_time(logger: logging.Logger):
    """
    Decorator logging how long a kernel call took.

    Failures are logged with their traceback and re-raised.

    Example:
        >>> @log_execution_time(logger)
        ... def apply(self, image, kind, params=None):
        ...     ...
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start
                logger.error(f"{func.__name__} failed after {elapsed:.3f}s: {e}", exc_info=True)
                raise
            logger.info(f"{func.__name__} completed in {time.perf_counter() - start:.3f}s")
            return result
        return wrapper
    return decorator

"""
Centralized Logging Configuration
================================

One place to configure logging for the CLI and library use alike. Modules only
ever call `logging.getLogger(__name__)`; `setup_logging` decides where records
go (console, optionally a rotating file) and how they look.

Build diagnostics (classification misses, duplicate resource names, fatal
link errors) are mirrored to these loggers, so a console run shows the same
information a BuildResult carries.
"""

import functools
import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path
from typing import Optional, Dict, Any

from config import LOG_FORMAT, LOG_DATE_FORMAT


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colours the level name on terminals that support it.
    """

    COLOR_CODES = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, fmt=None, datefmt=None, use_colors=None):
        super().__init__(fmt, datefmt)
        self.use_colors = self.supports_color() if use_colors is None else use_colors

    def format(self, record):
        formatted = super().format(record)
        color_code = self.COLOR_CODES.get(record.levelname)
        if self.use_colors and color_code:
            formatted = formatted.replace(
                record.levelname,
                f"{color_code}{record.levelname}{self.RESET}",
                1
            )
        return formatted

    @staticmethod
    def supports_color() -> bool:
        """Detect whether stdout is a colour-capable terminal."""
        if os.environ.get('NO_COLOR'):
            return False
        if os.environ.get('FORCE_COLOR', '').lower() in ('1', 'true', 'yes'):
            return True
        if not hasattr(sys.stdout, 'isatty') or not sys.stdout.isatty():
            return False
        term = os.environ.get('TERM', '').lower()
        return 'color' in term or term in ('xterm', 'screen', 'linux')


def setup_logging(log_level: str = 'INFO',
                  log_file: Optional[str] = None,
                  enable_colors: bool = True,
                  max_file_size: int = 10 * 1024 * 1024,
                  backup_count: int = 5) -> Dict[str, Any]:
    """
    Configure root logging for a build run.

    Args:
        log_level: Minimum level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        log_file: Optional path of a rotating log file
        enable_colors: Colour the console level names when supported
        max_file_size: Rotation threshold for the log file in bytes
        backup_count: Rotated files to keep

    Returns:
        Dict[str, Any]: Summary of the handlers installed

    Raises:
        ValueError: For an unknown log level
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {log_level}')

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)

    config_summary = {'log_level': log_level.upper(), 'handlers': []}

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    if enable_colors:
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, LOG_DATE_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    root_logger.addHandler(console_handler)
    config_summary['handlers'].append('console')

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT + ' - [PID:%(process)d]', LOG_DATE_FORMAT))
        root_logger.addHandler(file_handler)
        config_summary['handlers'].append(f'file({log_file})')

    # PyYAML is quiet today, but keep third-party noise out of build logs
    logging.getLogger('yaml').setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging configured: {config_summary['log_level']} level, "
        f"handlers: {', '.join(config_summary['handlers'])}"
    )
    return config_summary


def create_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Return a module logger, optionally with its own level.

    Example:
        logger = create_logger(__name__)
    """
    logger = logging.getLogger(name)
    if level:
        numeric_level = getattr(logging, level.upper(), None)
        if isinstance(numeric_level, int):
            logger.setLevel(numeric_level)
    return logger


def log_function_timing(func):
    """
    Decorator logging how long a call took, and how long it ran before failing.

    Example:
        @log_function_timing
        def build(self, customer):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{func.__name__} failed after {time.time() - start_time:.3f}s: {str(e)}")
            raise
        logger.debug(f"{func.__name__} completed in {time.time() - start_time:.3f}s")
        return result

    return wrapper

from .logging_config import (
    setup_logging,
    create_logger,
    log_function_timing,
    ColoredFormatter,
)

__all__ = [
    'setup_logging',
    'create_logger',
    'log_function_timing',
    'ColoredFormatter',
]

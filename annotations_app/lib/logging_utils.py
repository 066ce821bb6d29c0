"""
Logging utilities for the annotation access core.

Loggers are named after their module, so the category filter can narrow
output to e.g. "annotations_app.lib.access_control" while debugging a
visibility decision.
"""

import logging
import sys
from typing import Optional


class CategoryFilter(logging.Filter):
    """Filter log records by logger name prefix"""

    def __init__(self, categories: list[str]):
        super().__init__()
        self.categories = categories

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.categories:
            return True
        return any(record.name.startswith(cat) for cat in self.categories)


def setup_logging(log_level: str = "INFO", log_categories: Optional[list[str]] = None):
    """
    Configure the root logger.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_categories: Logger name prefixes to emit (empty = all)
    """
    if log_categories is None:
        log_categories = []

    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    if log_categories:
        handler.addFilter(CategoryFilter(log_categories))

    root_logger.addHandler(handler)


def setup_logging_from_settings(settings=None):
    """Configure logging from the LOG_LEVEL / LOG_CATEGORIES settings."""
    if settings is None:
        from ..config import get_settings
        settings = get_settings()
    setup_logging(settings.log_level, settings.log_categories)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module/category.

    Args:
        name: Logger name (typically __name__ of the module)
    """
    return logging.getLogger(name)

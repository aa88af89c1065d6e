"""
ALIGNIFY Shared Utilities

Logging configuration and timing helpers.
"""

import logging
import sys
import time
from functools import wraps


# ============================================
# Logging Configuration
# ============================================

def setup_logger(name: str = "alignify", level: int = logging.INFO) -> logging.Logger:
    """
    Set up a configured logger with console output.

    Usage:
        logger = setup_logger(__name__)
        logger.info("Hello from ALIGNIFY")
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    logger.propagate = False

    return logger


# Default logger for imports
logger = setup_logger("alignify")


# ============================================
# Decorators
# ============================================

def log_execution_time(func):
    """Decorator to log function execution time at DEBUG level."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"{func.__qualname__} executed in {elapsed:.2f}ms")
        return result

    return wrapper

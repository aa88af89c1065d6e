"""
ALIGNIFY Shared Module

Common utilities used across all services.
"""

from .utils import setup_logger, log_execution_time

__all__ = [
    'setup_logger',
    'log_execution_time',
]

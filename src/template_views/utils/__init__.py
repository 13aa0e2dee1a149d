"""
Shared utilities.
"""
from .logging import JsonFormatter, ViewLoggerAdapter, configure_logging, get_logger

__all__ = [
    'JsonFormatter',
    'ViewLoggerAdapter',
    'configure_logging',
    'get_logger',
]

"""
Error handling exceptions.
"""
from .exceptions import (
    ErrorContext,
    TemplateViewsError,
    ListingError,
    ReadError,
    CompileError,
    ConfigurationError,
)

__all__ = [
    'ErrorContext',
    'TemplateViewsError',
    'ListingError',
    'ReadError',
    'CompileError',
    'ConfigurationError',
]

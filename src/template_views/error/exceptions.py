"""
Exceptions raised while locating, reading and compiling templates.
"""
from typing import Any, Dict, Optional

class ErrorContext:
    """Where an error was raised: the component and its operation."""

    def __init__(self, component: Optional[str] = None, operation: Optional[str] = None, **details: Any):
        self.component = component
        self.operation = operation
        self.details = details

    @property
    def location(self) -> Optional[str]:
        if self.component and self.operation:
            return f"{self.component}.{self.operation}"
        return None

class TemplateViewsError(Exception):
    """
    Base class for template view errors.

    Args:
        message: Human readable description
        context: Component and operation that failed
        path: Template or directory the error concerns, if any
        details: Extra diagnostic values
    """

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.context = context or ErrorContext()
        self.path = path
        self.details = details or {}

    def __str__(self):
        message = super().__str__()
        location = self.context.location
        return f"{message} [in {location}]" if location else message

class ListingError(TemplateViewsError):
    """Directory enumeration failed."""

class ReadError(TemplateViewsError):
    """Template file missing or unreadable."""

class CompileError(TemplateViewsError):
    """Template source could not be compiled."""

class ConfigurationError(TemplateViewsError):
    """Invalid engine or partials configuration."""

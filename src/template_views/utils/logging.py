"""
Logging utilities with structured formatting.
"""
import logging
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
import logging.handlers

class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, **kwargs):
        """Initialize with optional fields."""
        self.additional_fields = kwargs
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        # Render context if available
        if hasattr(record, "view"):
            log_data["view"] = record.view
        if hasattr(record, "file_path"):
            log_data["file_path"] = record.file_path

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        log_data.update(self.additional_fields)

        return json.dumps(log_data)

class ViewLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds render context to log records."""

    def process(self, msg, kwargs):
        """Add context to log records."""
        kwargs.setdefault("extra", {}).update(self.extra)
        return msg, kwargs

def configure_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
    version: str = "1.0.0",
) -> None:
    """
    Configure root logging.

    Args:
        level: Log level name
        structured: Emit JSON records instead of plain text
        log_file: Optional rotating log file
        handler: Console handler to use instead of a stdout stream handler
        version: Version stamped on structured records
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)

    handlers = [handler or logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        if log_path.parent != Path("."):
            log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5
        ))

    if structured:
        formatter = JsonFormatter(application="template_views", version=version)
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        )

    for h in handlers:
        # RichHandler formats its own prefix
        if handler is None or h is not handler or structured:
            h.setFormatter(formatter)
        root_logger.addHandler(h)

    logging.debug("Logging configured with level: %s", level)

def get_logger(name: str, **context: Any) -> logging.Logger:
    """
    Get a logger with context.

    Args:
        name: Logger name
        **context: Additional context fields (e.g. view, file_path)

    Returns:
        Logger with context
    """
    logger = logging.getLogger(name)

    if context:
        return ViewLoggerAdapter(logger, context)

    return logger

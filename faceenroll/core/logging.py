"""
Logging setup for the enrollment client.

Messages use a `[Component]` prefix (`[Enrollment]`, `[FaceApi]`, ...);
the console formatter highlights the level and that prefix.
"""

import logging
import re
import sys
from typing import Optional, TextIO

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_COMPONENT = re.compile(r"^\[[^\]]+\]")


class ColoredFormatter(logging.Formatter):
    """Console formatter with ANSI-colored level names and component tags."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    COMPONENT_COLOR = '\033[1m'
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers share the record
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, '')
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        record.msg = _COMPONENT.sub(
            lambda m: f"{self.COMPONENT_COLOR}{m.group(0)}{self.RESET}", str(record.msg), count=1
        )
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    format_string: Optional[str] = None,
    use_colors: Optional[bool] = None,
    stream: Optional[TextIO] = None
) -> None:
    """
    Configure root logging once at startup.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string
        use_colors: Force colors on/off; by default only for a terminal
        stream: Output stream, stdout by default
    """
    stream = stream or sys.stdout
    if use_colors is None:
        use_colors = hasattr(stream, "isatty") and stream.isatty()

    formatter_cls = ColoredFormatter if use_colors else logging.Formatter
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter_cls(format_string or DEFAULT_FORMAT, datefmt="%H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = [handler]

    # Request lines are logged by FaceApiBase at DEBUG already
    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def configure_from_settings(settings) -> None:
    """Apply LOG_LEVEL, with DEBUG=true forcing debug output."""
    setup_logging(level="DEBUG" if settings.debug else settings.log_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_error(logger: logging.Logger, error: Exception, context: str = None):
    """Log an exception with its traceback under an optional component tag."""
    msg = f"{type(error).__name__}: {error}"
    if context:
        msg = f"[{context}] {msg}"
    logger.error(msg, exc_info=error)

"""
Logging system for the repository cloner.
"""

from .logger_config import (
    setup_logging, get_logging_manager, register_secret,
    close_logging, LoggerConfig, LoggingManager
)
from .log_formatter import StructuredFormatter, ColoredFormatter, CompactFormatter
from .log_handler import RotatingFileHandler, ConsoleHandler, BufferedHandler, CredentialRedactionFilter

__all__ = [
    "setup_logging",
    "get_logging_manager",
    "register_secret",
    "close_logging",
    "LoggerConfig",
    "LoggingManager",
    "StructuredFormatter",
    "ColoredFormatter",
    "CompactFormatter",
    "RotatingFileHandler",
    "ConsoleHandler",
    "BufferedHandler",
    "CredentialRedactionFilter"
]

"""
Logging setup for the repository cloner.

All handlers hang off the root logger and share one
:class:`CredentialRedactionFilter`, so a token registered once is masked
in the console, the log file and the clone summary panel alike.
"""

import logging
import sys
from typing import Optional, Dict
from dataclasses import dataclass

from ..config import LoggingConfig, get_config
from .log_formatter import StructuredFormatter, ColoredFormatter
from .log_handler import RotatingFileHandler, ConsoleHandler, CredentialRedactionFilter

# Loggers that are chatty at INFO (HTTP connection pool, git command lines)
QUIET_LOGGERS = ('urllib3', 'requests', 'git')


@dataclass
class LoggerConfig:
    """Runtime logging options; built from the ``logging`` config section or by the CLI."""
    level: str = "INFO"
    file_path: Optional[str] = None
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = True
    enable_structured: bool = False
    enable_colors: bool = True

    @classmethod
    def from_settings(cls, settings: LoggingConfig, **overrides) -> 'LoggerConfig':
        values = dict(
            level=settings.level,
            file_path=settings.file,
            format_string=settings.format,
            max_file_size=settings.max_file_size,
            backup_count=settings.backup_count,
            enable_structured=settings.structured
        )
        values.update(overrides)
        return cls(**values)

    @property
    def numeric_level(self) -> int:
        level = logging.getLevelName(self.level.upper())
        return level if isinstance(level, int) else logging.INFO


class LoggingManager:
    """
    Owns the named handlers installed on the root logger.

    Handlers are added with :meth:`add_handler` so that each one carries the
    shared redaction filter; :meth:`register_secret` adds a value to mask.
    """

    def __init__(self):
        self._handlers: Dict[str, logging.Handler] = {}
        self._configured = False
        self.config: Optional[LoggerConfig] = None
        self.redaction_filter = CredentialRedactionFilter()

    @property
    def handlers(self) -> Dict[str, logging.Handler]:
        return dict(self._handlers)

    def setup_logging(self, config: Optional[LoggerConfig] = None, force: bool = False) -> None:
        """
        Install the console and (when a file is configured) rotating file handler.

        Args:
            config: Logging options (built from the application config if omitted)
            force: Replace handlers installed by an earlier call
        """
        if self._configured:
            if not force:
                return
            self.close_handlers()

        config = config or LoggerConfig.from_settings(get_config().logging)
        self.config = config

        logging.getLogger().setLevel(config.numeric_level)

        if config.enable_console:
            console = ConsoleHandler()
            console.setFormatter(self._console_formatter(config))
            self.add_handler('console', console)

        if config.enable_file and config.file_path:
            log_file = RotatingFileHandler(
                filename=config.file_path,
                maxBytes=config.max_file_size * 1024 * 1024,
                backupCount=config.backup_count,
                encoding='utf-8'
            )
            log_file.setFormatter(
                StructuredFormatter() if config.enable_structured else logging.Formatter(config.format_string)
            )
            self.add_handler('file', log_file)

        for name in self._handlers:
            self._handlers[name].setLevel(config.numeric_level)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        self._configured = True
        logging.getLogger(__name__).debug(f"Logging configured at {config.level}")

    @staticmethod
    def _console_formatter(config: LoggerConfig) -> logging.Formatter:
        if config.enable_structured:
            return StructuredFormatter()
        if config.enable_colors and sys.stderr.isatty():
            return ColoredFormatter(config.format_string)
        return logging.Formatter(config.format_string)

    def add_handler(self, name: str, handler: logging.Handler) -> None:
        """Attach ``handler`` to the root logger under ``name``, replacing any previous one."""
        self.remove_handler(name)
        handler.addFilter(self.redaction_filter)
        logging.getLogger().addHandler(handler)
        self._handlers[name] = handler

    def remove_handler(self, name: str) -> None:
        handler = self._handlers.pop(name, None)
        if handler is not None:
            logging.getLogger().removeHandler(handler)
            handler.removeFilter(self.redaction_filter)

    def register_secret(self, secret: Optional[str]) -> None:
        self.redaction_filter.add_secret(secret)

    def close_handlers(self) -> None:
        for name in list(self._handlers):
            handler = self._handlers[name]
            self.remove_handler(name)
            handler.close()
        self._configured = False


_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggerConfig] = None, force: bool = False) -> None:
    _logging_manager.setup_logging(config, force=force)


def get_logging_manager() -> LoggingManager:
    return _logging_manager


def register_secret(secret: Optional[str]) -> None:
    """Mask ``secret`` in every log record emitted from now on."""
    _logging_manager.register_secret(secret)


def close_logging() -> None:
    _logging_manager.close_handlers()

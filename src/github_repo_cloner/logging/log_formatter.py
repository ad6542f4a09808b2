"""
Log formatters: JSON lines for log files, colored and compact output for the terminal.
"""

import json
import logging
from datetime import datetime
from typing import Dict, Any, Optional

import click

# Attributes every LogRecord has; anything else arrived through ``extra=``
_RECORD_ATTRIBUTES = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record.

    Context passed as ``logger.info(..., extra={"repository": ...})`` is
    emitted under ``extra``.
    """

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            extra = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRIBUTES and not k.startswith('_')}
            if extra:
                entry["extra"] = extra

        return json.dumps(entry, default=str, ensure_ascii=False)


class ColoredFormatter(logging.Formatter):
    """Colors the level name of console records with click's ANSI styling."""

    LEVEL_COLORS = {
        'DEBUG': 'cyan',
        'INFO': 'green',
        'WARNING': 'yellow',
        'ERROR': 'red',
        'CRITICAL': 'magenta',
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None):
        super().__init__(fmt, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelname)
        if not color:
            return formatted
        return formatted.replace(record.levelname, click.style(record.levelname, fg=color, bold=True), 1)


class CompactFormatter(logging.Formatter):
    """
    ``LEVEL logger: message`` with the logger shortened to its last dotted
    component. Used for the clone summary panel.
    """

    def format(self, record: logging.LogRecord) -> str:
        short_logger = record.name.rsplit('.', 1)[-1]
        formatted = f"{record.levelname:<7} {short_logger}: {record.getMessage()}"

        if record.exc_info:
            formatted += f" | {self.formatException(record.exc_info)}"

        return formatted

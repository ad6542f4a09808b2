"""
Log handlers and the credential redaction filter.
"""

import logging
import logging.handlers
import re
import sys
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Any, Deque, Dict, Iterable, List, Optional, Set, TextIO


_URL_USERINFO = re.compile(r"(https?://)[^/@\s]+@")


class CredentialRedactionFilter(logging.Filter):
    """
    Masks credentials in log records before they reach any handler.

    Registered secrets are replaced wherever they appear, and the userinfo
    part of ``https://<user>@host`` URLs is always replaced, so tokens
    embedded in clone URLs or git diagnostics never reach a log sink.
    """

    MASK = "***"

    def __init__(self, secrets: Optional[Iterable[str]] = None):
        super().__init__()
        self._secrets: Set[str] = set()
        for secret in secrets or ():
            self.add_secret(secret)

    def add_secret(self, secret: Optional[str]) -> None:
        if secret:
            self._secrets.add(secret)

    def remove_secret(self, secret: Optional[str]) -> None:
        self._secrets.discard(secret)

    def redact(self, text: str) -> str:
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, self.MASK)
        return _URL_USERINFO.sub(rf"\g<1>{self.MASK}@", text)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """Size-rotated log file whose parent directory is created on demand."""

    def __init__(self, filename: str, maxBytes: int = 0, backupCount: int = 0, encoding: Optional[str] = None):
        path = Path(filename).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(str(path), maxBytes=maxBytes, backupCount=backupCount, encoding=encoding)


class ConsoleHandler(logging.StreamHandler):
    """
    Writes to stderr unless another stream is given, keeping stdout free
    for command output such as ``list --format json``.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__(stream or sys.stderr)


class BufferedHandler(logging.Handler):
    """
    Keeps the most recent ``capacity`` records in memory.

    The CLI attaches one for the duration of a clone batch and prints what
    it collected in the result summary.
    """

    def __init__(self, capacity: int = 1000, level: int = logging.NOTSET):
        super().__init__(level)
        self.capacity = capacity
        self.buffer: Deque[Dict[str, Any]] = deque(maxlen=capacity)
        self.records_dropped = 0

    def emit(self, record: logging.LogRecord) -> None:
        if len(self.buffer) == self.capacity:
            self.records_dropped += 1
        self.buffer.append({
            'timestamp': datetime.fromtimestamp(record.created),
            'level': record.levelname,
            'logger': record.name,
            'message': self.format(record),
        })

    def get_records(self, level: Optional[str] = None, count: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Buffered records, oldest first.

        Args:
            level: Only records at or above this level name
            count: Only the most recent ``count`` records
        """
        threshold = logging.getLevelName(level.upper()) if level else logging.NOTSET
        selected = [r for r in self.buffer if logging.getLevelName(r['level']) >= threshold]
        return selected[-count:] if count else selected

    def clear_buffer(self) -> int:
        dropped = len(self.buffer)
        self.buffer.clear()
        return dropped

"""
Credential persistence for the GitHub token.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union, Dict, Any

import yaml

from .config import CredentialsConfig

logger = logging.getLogger(__name__)


class TokenStore(ABC):
    """Holds a single credential string."""

    @abstractmethod
    def get(self) -> Optional[str]:
        """Return the stored token, or None when nothing is stored."""
        pass

    @abstractmethod
    def set(self, token: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class MemoryTokenStore(TokenStore):
    """Token store that lives only as long as the process."""

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token or None

    def clear(self) -> None:
        self._token = None


class FileTokenStore(TokenStore):
    """
    Token store backed by a YAML key/value file.

    Other keys in the file are preserved. The file is created with
    owner-only permissions where the platform supports it.
    """

    def __init__(self, path: Union[str, Path], key: str = "GitToken"):
        self.path = Path(path).expanduser()
        self.key = key

    @classmethod
    def from_config(cls, config: CredentialsConfig) -> 'FileTokenStore':
        return cls(config.store_path, config.token_key)

    def _read(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False)
        try:
            os.chmod(self.path, 0o600)
        except OSError as e:
            logger.debug(f"Could not restrict permissions on {self.path}: {e}")

    def get(self) -> Optional[str]:
        value = self._read().get(self.key)
        return str(value) if value else None

    def set(self, token: str) -> None:
        data = self._read()
        data[self.key] = token
        self._write(data)
        logger.info(f"Saved GitHub token to {self.path}")

    def clear(self) -> None:
        data = self._read()
        if self.key in data:
            del data[self.key]
            self._write(data)
            logger.info(f"Removed GitHub token from {self.path}")

"""
Exception hierarchy for the repository cloner.

Catalog errors (:class:`AuthError`, :class:`NetworkError`) abort a fetch.
Per-repository errors (:class:`CloneError`, :class:`LfsError`) are turned
into clone outcomes by the repository manager, and :class:`ScaffoldError`
only ever becomes an outcome warning.
"""

from typing import Optional, Dict, Any


def _with_context(kwargs: Dict[str, Any], **items: Any) -> Dict[str, Any]:
    """Merge the non-empty ``items`` into ``kwargs['context']``."""
    context = dict(kwargs.get('context') or {})
    context.update({key: value for key, value in items.items() if value is not None})
    kwargs['context'] = context
    return kwargs


class ClonerError(Exception):
    """
    Root of every error raised by the cloner.

    Carries a human readable ``message``, an optional machine readable
    ``error_code``, a ``context`` mapping (repository, status code, file
    path, ...) and the underlying ``cause``.
    """

    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": dict(self.context),
            "cause": str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        parts = [self.message]
        if self.error_code:
            parts.append(f"Code: {self.error_code}")
        if self.context:
            parts.append("Context: " + ", ".join(f"{k}={v}" for k, v in self.context.items()))
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class AuthError(ClonerError):
    """
    GitHub rejected the repository listing.

    Every non-success status counts, so the stored token is discarded by
    the session whenever this is raised.
    """

    default_code = "AUTH_FAILED"

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **_with_context(kwargs, status_code=status_code))
        self.status_code = status_code


class NetworkError(ClonerError):
    """GitHub could not be reached (refused connection, timeout, DNS)."""

    default_code = "NETWORK_ERROR"

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        super().__init__(message, **_with_context(kwargs, url=url))
        self.url = url


class RepositoryError(ClonerError):
    """
    A git operation on a single repository failed.

    ``stderr`` holds git's diagnostic output with credentials already
    masked; it is what the clone outcome reports to the user.
    """

    def __init__(
        self,
        message: str,
        repository: Optional[str] = None,
        operation: Optional[str] = None,
        stderr: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **_with_context(kwargs, repository=repository, operation=operation))
        self.repository = repository
        self.operation = operation
        self.stderr = stderr


class CloneError(RepositoryError):
    """``git clone`` failed or git could not be started."""

    default_code = "CLONE_FAILED"

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('operation', 'clone')
        super().__init__(message, **kwargs)


class LfsError(RepositoryError):
    """
    ``git lfs pull`` failed.

    ``lfs_missing`` is set when the LFS extension is not installed; that
    case only produces a warning.
    """

    def __init__(self, message: str, lfs_missing: bool = False, **kwargs):
        kwargs.setdefault('operation', 'lfs_pull')
        kwargs.setdefault('error_code', 'LFS_MISSING' if lfs_missing else 'LFS_FAILED')
        super().__init__(message, **kwargs)
        self.lfs_missing = lfs_missing


class ScaffoldError(ClonerError):
    """A post-clone file system step failed. Never downgrades a clone."""

    default_code = "SCAFFOLD_FAILED"

    def __init__(self, message: str, step: Optional[str] = None, file_path: Optional[str] = None, **kwargs):
        super().__init__(message, **_with_context(kwargs, step=step, file_path=file_path))
        self.step = step
        self.file_path = file_path


class ConfigurationError(ClonerError):
    """A configuration value is invalid."""

    default_code = "CONFIG_INVALID"

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        super().__init__(message, **_with_context(kwargs, config_key=config_key))
        self.config_key = config_key


class SessionError(ClonerError):
    """A session command was rejected."""


class SessionBusyError(SessionError):
    default_code = "SESSION_BUSY"

    def __init__(self, message: str = "A fetch or clone is already in progress", **kwargs):
        super().__init__(message, **kwargs)


class NoSelectionError(SessionError):
    default_code = "NO_SELECTION"

    def __init__(self, message: str = "Please select at least one repository to clone", **kwargs):
        super().__init__(message, **kwargs)

"""
Error types and retry support for the repository cloner.
"""

from .exceptions import (
    ClonerError, AuthError, NetworkError, RepositoryError, CloneError,
    LfsError, ScaffoldError, ConfigurationError, SessionError,
    SessionBusyError, NoSelectionError
)
from .retry_decorator import RetryConfig

__all__ = [
    "ClonerError",
    "AuthError",
    "NetworkError",
    "RepositoryError",
    "CloneError",
    "LfsError",
    "ScaffoldError",
    "ConfigurationError",
    "SessionError",
    "SessionBusyError",
    "NoSelectionError",
    "RetryConfig"
]

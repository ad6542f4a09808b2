"""
Data models for the repository cloner.
"""

from .repository import RepositoryIdentifier
from .clone_result import CloneStatus, CloneOutcome, BatchResult
from .scaffold import AssemblyDefinition, PackageManifest

__all__ = [
    "RepositoryIdentifier",
    "CloneStatus",
    "CloneOutcome",
    "BatchResult",
    "AssemblyDefinition",
    "PackageManifest"
]

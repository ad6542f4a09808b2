"""
Repository components: GitHub catalog access and local clone management.
"""

from .catalog import (
    extract_repository_identifiers, collect_existing_folder_names,
    filter_excluding_local, filter_by_name
)
from .github_client import GitHubClient
from .repository_manager import RepositoryManager, CloneOptions

__all__ = [
    "extract_repository_identifiers",
    "collect_existing_folder_names",
    "filter_excluding_local",
    "filter_by_name",
    "GitHubClient",
    "RepositoryManager",
    "CloneOptions"
]

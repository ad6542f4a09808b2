"""
Repository identifier model for GitHub repositories.
"""

from dataclasses import dataclass
from typing import Dict, Any


@dataclass(frozen=True)
class RepositoryIdentifier:
    """
    Identifies a remote GitHub repository by owner and name.

    The repository name doubles as the local folder name, both when a clone
    target path is computed and when already-cloned repositories are
    excluded from the catalog.
    """

    owner: str
    name: str

    @classmethod
    def parse(cls, full_name: str) -> 'RepositoryIdentifier':
        """
        Parse an ``owner/name`` string.

        Args:
            full_name: Repository full name as returned by the GitHub API

        Returns:
            RepositoryIdentifier instance

        Raises:
            ValueError: If the value is not of the form ``owner/name``
        """
        parts = full_name.split("/")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Invalid repository full name: {full_name!r}")
        return cls(owner=parts[0], name=parts[1])

    @property
    def full_name(self) -> str:
        """Get the full repository name (owner/repo)."""
        return f"{self.owner}/{self.name}"

    @property
    def folder_name(self) -> str:
        """Name of the local folder the repository is cloned into."""
        return self.name

    def clone_url(self, token: str = "", host: str = "github.com") -> str:
        """
        Build the HTTPS clone URL, embedding the token when one is given.

        Args:
            token: GitHub personal access token
            host: Git host name

        Returns:
            Clone URL
        """
        if token:
            return f"https://{token}@{host}/{self.full_name}.git"
        return f"https://{host}/{self.full_name}.git"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "name": self.name,
            "full_name": self.full_name,
        }

    def __str__(self) -> str:
        return self.full_name

"""
GitHub API client for listing the authenticated user's repositories.
"""

import requests
import logging
from typing import Optional, List

from ..config import GitHubConfig, get_config
from ..error_handling import AuthError, NetworkError, RetryConfig
from ..models import RepositoryIdentifier
from .catalog import extract_repository_identifiers

logger = logging.getLogger(__name__)


class GitHubClient:
    """
    GitHub API client with token authentication and transport retries.

    Only transport failures are retried. Any non-success HTTP status is
    reported as :class:`AuthError`, since the listing endpoint only fails
    for a bad or expired token in practice.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        config: Optional[GitHubConfig] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize GitHub API client.

        Args:
            access_token: GitHub personal access token
            base_url: GitHub API base URL
            config: GitHub configuration (global configuration if omitted)
            session: Pre-built requests session
        """
        config = config or get_config().github

        self.access_token = access_token if access_token is not None else config.access_token
        self.base_url = base_url or config.api_base_url
        self.timeout = config.timeout
        self.max_retries = config.max_retries
        self.per_page = config.per_page
        self.user_agent = config.user_agent

        self.session = session or requests.Session()
        self._setup_session()

    def _setup_session(self) -> None:
        """Set up the requests session with headers and authentication."""
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.user_agent
        }

        if self.access_token:
            headers["Authorization"] = f"token {self.access_token}"

        self.session.headers.update(headers)

    def set_token(self, access_token: Optional[str]) -> None:
        self.access_token = access_token
        if access_token:
            self.session.headers["Authorization"] = f"token {access_token}"
        else:
            self.session.headers.pop("Authorization", None)

    def _get(self, endpoint: str, **kwargs) -> requests.Response:
        """
        Issue a GET request, retrying transport failures.

        Raises:
            NetworkError: If the request cannot be completed
        """
        url = f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

        def send() -> requests.Response:
            try:
                return self.session.get(url, timeout=self.timeout, **kwargs)
            except requests.exceptions.RequestException as e:
                raise NetworkError(f"Request to GitHub failed: {e}", url=url, cause=e) from e

        retrying_send = RetryConfig(
            max_attempts=self.max_retries + 1,
            exceptions=[NetworkError]
        ).decorate(send)
        return retrying_send()

    def list_user_repositories(self) -> List[RepositoryIdentifier]:
        """
        Fetch the repositories of the authenticated user.

        Only the first page (``per_page``, at most 100) is requested.

        Returns:
            Repository identifiers in API order, duplicates preserved

        Raises:
            AuthError: If no token is configured or the API returns a non-success status
            NetworkError: If the API cannot be reached
        """
        if not self.access_token:
            raise AuthError("GitHub token is empty")

        response = self._get("/user/repos", params={"per_page": self.per_page})

        if not response.ok:
            raise AuthError(
                f"Invalid token or failed to fetch repositories (HTTP {response.status_code})",
                status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Repository listing response is not valid JSON")
            return []

        repositories = extract_repository_identifiers(payload)
        logger.info(f"Fetched {len(repositories)} repositories from GitHub")
        return repositories

from unittest.mock import MagicMock

import pytest

from github_repo_cloner.config import AppConfig
from github_repo_cloner.models import RepositoryIdentifier


@pytest.fixture
def app_config(tmp_path):
    """Application configuration pointing every path into tmp_path."""
    config = AppConfig()
    config.github.access_token = None
    config.github.max_retries = 0
    config.clone.target_directory = str(tmp_path / "Assets")
    config.clone.template_folder = str(tmp_path / "Templates")
    config.credentials.store_path = str(tmp_path / "credentials.yaml")
    return config


@pytest.fixture
def target_dir(tmp_path):
    path = tmp_path / "Assets"
    path.mkdir()
    return path


def ids(*full_names):
    """Build identifiers from owner/name strings."""
    return [RepositoryIdentifier.parse(name) for name in full_names]


def make_response(payload=None, status_code=200):
    """Fake requests.Response carrying a JSON payload."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response

from unittest.mock import MagicMock, patch

import pytest
import requests

from github_repo_cloner.error_handling import AuthError, NetworkError
from github_repo_cloner.repository import GitHubClient

from conftest import ids, make_response


@pytest.fixture
def http_session():
    session = MagicMock()
    session.headers = {}
    return session


def make_client(app_config, http_session, token="secret-token"):
    return GitHubClient(access_token=token, config=app_config.github, session=http_session)


def test_session_headers_use_token_scheme(app_config, http_session):
    make_client(app_config, http_session)
    assert http_session.headers["Authorization"] == "token secret-token"
    assert http_session.headers["User-Agent"] == "UnityGitClient"


def test_list_user_repositories_requests_first_page(app_config, http_session):
    http_session.get.return_value = make_response([{"full_name": "me/A"}, {"full_name": "me/B"}])
    client = make_client(app_config, http_session)

    repositories = client.list_user_repositories()

    assert repositories == ids("me/A", "me/B")
    http_session.get.assert_called_once_with(
        "https://api.github.com/user/repos",
        timeout=app_config.github.timeout,
        params={"per_page": 100}
    )


@pytest.mark.parametrize("status_code", [401, 403, 404, 500])
def test_non_success_status_raises_auth_error(app_config, http_session, status_code):
    http_session.get.return_value = make_response({"message": "Bad credentials"}, status_code=status_code)
    client = make_client(app_config, http_session)

    with pytest.raises(AuthError) as exc_info:
        client.list_user_repositories()

    assert exc_info.value.status_code == status_code


def test_empty_token_fails_without_request(app_config, http_session):
    client = make_client(app_config, http_session, token="")

    with pytest.raises(AuthError):
        client.list_user_repositories()

    http_session.get.assert_not_called()


def test_set_token_updates_header(app_config, http_session):
    client = make_client(app_config, http_session, token="")
    client.set_token("new-token")
    assert http_session.headers["Authorization"] == "token new-token"
    client.set_token(None)
    assert "Authorization" not in http_session.headers


def test_invalid_json_yields_empty_catalog(app_config, http_session):
    http_session.get.return_value = make_response(ValueError("not json"))
    client = make_client(app_config, http_session)

    assert client.list_user_repositories() == []


def test_transport_failure_raises_network_error(app_config, http_session):
    http_session.get.side_effect = requests.exceptions.ConnectionError("connection refused")
    client = make_client(app_config, http_session)

    with pytest.raises(NetworkError):
        client.list_user_repositories()


def test_transport_failures_are_retried(app_config, http_session):
    app_config.github.max_retries = 2
    http_session.get.side_effect = [
        requests.exceptions.Timeout("slow"),
        requests.exceptions.ConnectionError("reset"),
        make_response([{"full_name": "me/A"}]),
    ]
    client = make_client(app_config, http_session)

    with patch("github_repo_cloner.error_handling.retry_decorator.time.sleep") as sleep:
        repositories = client.list_user_repositories()

    assert repositories == ids("me/A")
    assert http_session.get.call_count == 3
    assert sleep.call_count == 2


def test_status_errors_are_not_retried(app_config, http_session):
    app_config.github.max_retries = 3
    http_session.get.return_value = make_response({}, status_code=401)
    client = make_client(app_config, http_session)

    with pytest.raises(AuthError):
        client.list_user_repositories()

    assert http_session.get.call_count == 1

from unittest.mock import MagicMock

import pytest

from github_repo_cloner.error_handling import AuthError, NetworkError, SessionBusyError, NoSelectionError
from github_repo_cloner.models import BatchResult
from github_repo_cloner.session import (
    ClonerSession, SelectionSet, SessionState, STATE_CHANGED, CATALOG_CHANGED, BATCH_COMPLETE
)
from github_repo_cloner.token_store import MemoryTokenStore

from conftest import ids


@pytest.fixture
def client():
    client = MagicMock()
    client.list_user_repositories.return_value = ids("me/Alpha", "me/Beta", "other/Gamma")
    return client


@pytest.fixture
def manager():
    manager = MagicMock()
    manager.clone_selected.return_value = BatchResult(target_directory="Assets")
    return manager


@pytest.fixture
def session(app_config, client, manager, target_dir):
    return ClonerSession(
        config=app_config,
        token_store=MemoryTokenStore("tok"),
        client=client,
        manager=manager,
        target_directory=target_dir
    )


class TestSelectionSet:

    def test_flags_stay_parallel_to_entries(self):
        selection = SelectionSet(ids("a/X", "a/Y", "a/Z"))
        assert len(selection) == 3
        assert not selection.any_selected()

        selection.toggle(1)
        assert selection.selected() == ids("a/Y")

        selection.select_all()
        assert selection.selected() == ids("a/X", "a/Y", "a/Z")

        selection.select_none()
        assert selection.selected() == []

    def test_select_names_accepts_full_or_bare_names(self):
        selection = SelectionSet(ids("a/X", "b/Y"))

        unmatched = selection.select_names(["x", "B/Y", "missing"])

        assert selection.selected() == ids("a/X", "b/Y")
        assert unmatched == ["missing"]

    def test_reconcile_keeps_flags_of_still_displayed_entries(self):
        selection = SelectionSet(ids("a/X", "a/Y", "a/Z"))
        selection.set(0, True)
        selection.set(2, True)

        reconciled = selection.reconcile(ids("a/Z", "a/W"))

        assert len(reconciled) == 2
        assert reconciled.selected() == ids("a/Z")

    def test_reconcile_carries_each_selected_duplicate_once(self):
        selection = SelectionSet(ids("me/X", "me/X"))
        selection.toggle(0)

        reconciled = selection.reconcile(ids("me/X", "me/X"))

        assert [reconciled.is_selected(i) for i in range(2)] == [True, False]
        assert reconciled.selected() == ids("me/X")

    @pytest.mark.parametrize("index", [-1, 2])
    def test_out_of_range_index_is_rejected(self, index):
        selection = SelectionSet(ids("me/X", "me/Y"))

        for operation in (selection.toggle, selection.is_selected, lambda i: selection.set(i, True)):
            with pytest.raises(IndexError):
                operation(index)

        assert selection.selected() == []


class TestFetch:

    def test_initial_state_follows_token(self, app_config, client, manager):
        assert ClonerSession(app_config, MemoryTokenStore(), client, manager).state == SessionState.UNAUTHENTICATED
        assert ClonerSession(app_config, MemoryTokenStore("t"), client, manager).state == SessionState.IDLE

    def test_fetch_populates_catalog(self, session, client):
        displayed = session.fetch()

        assert displayed == ids("me/Alpha", "me/Beta", "other/Gamma")
        assert len(session.selection) == 3
        assert session.state == SessionState.IDLE
        client.set_token.assert_called_with("tok")

    def test_fetch_hides_repositories_present_locally(self, session, target_dir):
        (target_dir / "Nested" / "Beta").mkdir(parents=True)

        assert session.fetch() == ids("me/Alpha", "other/Gamma")

    def test_fetch_without_token(self, app_config, client, manager):
        session = ClonerSession(app_config, MemoryTokenStore(), client, manager)

        with pytest.raises(AuthError):
            session.fetch()

        client.list_user_repositories.assert_not_called()
        assert session.state == SessionState.UNAUTHENTICATED

    def test_auth_error_clears_token(self, session, client):
        session.fetch()
        client.list_user_repositories.side_effect = AuthError("Bad credentials", status_code=401)

        with pytest.raises(AuthError):
            session.fetch()

        assert session.token is None
        assert session.catalog == []
        assert len(session.selection) == 0
        assert session.state == SessionState.UNAUTHENTICATED

    def test_network_error_keeps_token(self, session, client):
        client.list_user_repositories.side_effect = NetworkError("connection refused")

        with pytest.raises(NetworkError):
            session.fetch()

        assert session.token == "tok"
        assert session.state == SessionState.IDLE
        assert not session.busy

    def test_fetch_while_busy_is_rejected(self, session, client):
        nested = []

        def reenter():
            with pytest.raises(SessionBusyError):
                session.fetch()
            nested.append(True)
            return ids("me/Alpha")

        client.list_user_repositories.side_effect = reenter

        assert session.fetch() == ids("me/Alpha")
        assert nested == [True]
        assert client.list_user_repositories.call_count == 1

    def test_save_token_stores_and_fetches(self, app_config, client, manager):
        store = MemoryTokenStore()
        session = ClonerSession(app_config, store, client, manager)

        displayed = session.save_token("  fresh  ")

        assert store.get() == "fresh"
        assert len(displayed) == 3
        client.set_token.assert_called_with("fresh")

    def test_change_token_resets_everything(self, session):
        session.fetch()
        session.select_all()

        session.change_token()

        assert session.token is None
        assert session.displayed == []
        assert session.selected_identifiers() == []
        assert session.state == SessionState.UNAUTHENTICATED


class TestFilterAndSelection:

    def test_filter_reconciles_selection(self, session):
        session.fetch()
        session.select_by_name(["Alpha", "Gamma"])

        displayed = session.filter_by_name("a")
        assert displayed == ids("me/Alpha", "me/Beta", "other/Gamma")

        displayed = session.filter_by_name("GAM")
        assert displayed == ids("other/Gamma")
        assert session.selected_identifiers() == ids("other/Gamma")

        session.filter_by_name("")
        assert session.selected_identifiers() == ids("other/Gamma")

    def test_toggle_selection_rejects_negative_index(self, session):
        session.fetch()

        with pytest.raises(IndexError):
            session.toggle_selection(-1)

        assert session.selected_identifiers() == []

    def test_filter_survives_refetch(self, session):
        session.filter_by_name("beta")
        session.fetch()
        assert session.displayed == ids("me/Beta")

    def test_listeners_receive_events(self, session):
        events = []
        session.add_listener(lambda event, s: events.append((event, s.state)))

        session.fetch()

        assert (STATE_CHANGED, SessionState.FETCHING) in events
        assert (CATALOG_CHANGED, SessionState.FETCHING) in events
        assert events[-1] == (STATE_CHANGED, SessionState.IDLE)


class TestCloneSelected:

    def test_clone_without_selection(self, session, manager):
        session.fetch()

        with pytest.raises(NoSelectionError):
            session.clone_selected()

        manager.clone_selected.assert_not_called()

    def test_clone_passes_selection_and_refetches(self, session, client, manager, target_dir):
        session.fetch()
        session.select_by_name(["Beta"])
        events = []
        session.add_listener(lambda event, s: events.append(event))

        result = session.clone_selected()

        args = manager.clone_selected.call_args.args
        assert args[0] == ids("me/Beta")
        assert args[1] == target_dir
        assert manager.access_token == "tok"
        assert result is manager.clone_selected.return_value
        assert session.last_result is result
        assert events.count(BATCH_COMPLETE) == 1
        assert client.list_user_repositories.call_count == 2
        assert session.state == SessionState.IDLE
        assert not session.busy

    def test_refresh_failure_does_not_fail_clone(self, session, client, manager):
        session.fetch()
        session.select_all()
        client.list_user_repositories.side_effect = NetworkError("offline")

        result = session.clone_selected()

        assert result is manager.clone_selected.return_value
        assert session.token == "tok"

    def test_clone_while_busy_is_rejected(self, session, manager):
        session.fetch()
        session.select_all()
        nested = []

        def reenter(*args, **kwargs):
            with pytest.raises(SessionBusyError):
                session.clone_selected()
            nested.append(True)
            return BatchResult(target_directory="Assets")

        manager.clone_selected.side_effect = reenter

        session.clone_selected(refresh=False)

        assert nested == [True]
        assert manager.clone_selected.call_count == 1

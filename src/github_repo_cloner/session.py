"""
Cloner session: the state machine behind the command surface.

A session owns the credential, the fetched catalog, the displayed
(filtered) catalog and the selection set. Front ends drive it through
discrete commands and observe it through listeners instead of polling.
"""

import logging
from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from .config import AppConfig, get_config
from .error_handling import AuthError, NetworkError, SessionBusyError, NoSelectionError
from .logging import register_secret
from .models import RepositoryIdentifier, BatchResult
from .repository import (
    GitHubClient, RepositoryManager, CloneOptions,
    collect_existing_folder_names, filter_excluding_local, filter_by_name
)
from .repository.repository_manager import ProgressCallback
from .token_store import TokenStore, MemoryTokenStore

logger = logging.getLogger(__name__)

Listener = Callable[[str, 'ClonerSession'], None]

STATE_CHANGED = "state_changed"
CATALOG_CHANGED = "catalog_changed"
BATCH_COMPLETE = "batch_complete"


class SessionState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    FETCHING = "fetching"
    IDLE = "idle"
    CLONING = "cloning"


class SelectionSet:
    """
    Selected flags kept parallel to a list of displayed catalog entries.

    Indices are positions in the displayed list; anything outside
    ``0 <= index < len(self)`` raises :class:`IndexError`.
    """

    def __init__(self, entries: Iterable[RepositoryIdentifier] = ()):
        self._entries = list(entries)
        self._flags = [False] * len(self._entries)

    @property
    def entries(self) -> List[RepositoryIdentifier]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._flags)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._flags):
            raise IndexError(f"Selection index {index} out of range for {len(self._flags)} entries")

    def is_selected(self, index: int) -> bool:
        self._check_index(index)
        return self._flags[index]

    def set(self, index: int, selected: bool) -> None:
        self._check_index(index)
        self._flags[index] = selected

    def toggle(self, index: int) -> bool:
        self.set(index, not self.is_selected(index))
        return self._flags[index]

    def select_all(self) -> None:
        self._flags = [True] * len(self._entries)

    def select_none(self) -> None:
        self._flags = [False] * len(self._entries)

    def select_names(self, names: Iterable[str]) -> List[str]:
        """
        Select entries by ``owner/name`` or bare repository name (case-insensitive).

        Returns:
            The names that matched no displayed entry
        """
        unmatched = []
        for name in names:
            needle = name.casefold()
            matched = False
            for index, entry in enumerate(self._entries):
                if needle in (entry.full_name.casefold(), entry.name.casefold()):
                    self.set(index, True)
                    matched = True
            if not matched:
                unmatched.append(name)
        return unmatched

    def selected(self) -> List[RepositoryIdentifier]:
        return [entry for entry, flag in zip(self._entries, self._flags) if flag]

    def any_selected(self) -> bool:
        return any(self._flags)

    def reconcile(self, entries: Iterable[RepositoryIdentifier]) -> 'SelectionSet':
        """
        Build a selection for a new displayed list.

        Each selected entry carries its flag over to at most one equal entry
        in ``entries``, matched in order, so a duplicated repository that
        was selected once stays selected once. Entries no longer displayed
        lose their flag.
        """
        remaining = Counter(self.selected())
        reconciled = SelectionSet(entries)
        for index, entry in enumerate(reconciled._entries):
            if remaining[entry]:
                remaining[entry] -= 1
                reconciled._flags[index] = True
        return reconciled


class ClonerSession:
    """
    Explicit session object replacing the editor window's static fields.

    Fetch and clone are guarded by a busy flag; a second fetch or clone
    while one is pending raises :class:`SessionBusyError`.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        token_store: Optional[TokenStore] = None,
        client: Optional[GitHubClient] = None,
        manager: Optional[RepositoryManager] = None,
        target_directory: Optional[Union[str, Path]] = None
    ):
        self.config = config or get_config()
        self.token_store = token_store or MemoryTokenStore(self.config.github.access_token)
        self.client = client or GitHubClient(access_token="", config=self.config.github)
        self.manager = manager or RepositoryManager(access_token="", config=self.config)
        self.target_directory = Path(target_directory or self.config.clone.target_directory)
        self.options = CloneOptions.from_config(self.config.clone)

        self.catalog: List[RepositoryIdentifier] = []
        self.displayed: List[RepositoryIdentifier] = []
        self.selection = SelectionSet()
        self.name_filter = ""
        self.last_result: Optional[BatchResult] = None

        self._listeners: List[Listener] = []
        self._busy = False

        token = self.token_store.get()
        register_secret(token)
        self._state = SessionState.IDLE if token else SessionState.UNAUTHENTICATED

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def token(self) -> Optional[str]:
        return self.token_store.get()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self)

    def _set_state(self, state: SessionState) -> None:
        if state != self._state:
            logger.debug(f"Session state {self._state.value} -> {state.value}")
            self._state = state
            self._emit(STATE_CHANGED)

    def _set_catalog(self, catalog: List[RepositoryIdentifier]) -> None:
        self.catalog = list(catalog)
        self.displayed = filter_by_name(self.catalog, self.name_filter)
        self.selection = SelectionSet(self.displayed)
        self._emit(CATALOG_CHANGED)

    def _reset(self) -> None:
        self._set_catalog([])

    def save_token(self, token: str) -> List[RepositoryIdentifier]:
        """Store a new token and fetch the repository list with it."""
        if self._busy:
            raise SessionBusyError()
        token = token.strip()
        if not token:
            raise AuthError("GitHub token is empty")

        register_secret(token)
        self.token_store.set(token)
        self._set_state(SessionState.IDLE)
        return self.fetch()

    def change_token(self) -> None:
        """Forget the stored token and everything fetched with it."""
        if self._busy:
            raise SessionBusyError()
        self.token_store.clear()
        self._reset()
        self._set_state(SessionState.UNAUTHENTICATED)

    def fetch(self) -> List[RepositoryIdentifier]:
        """
        Fetch the catalog, drop repositories already present under the
        target directory and reapply the current name filter.

        Returns:
            The displayed catalog

        Raises:
            AuthError: If there is no token or GitHub rejects it; the token is cleared
            NetworkError: If GitHub cannot be reached; the token is kept
            SessionBusyError: If a fetch or clone is already in progress
        """
        if self._busy:
            raise SessionBusyError()

        token = self.token
        if not token:
            logger.warning("Token is empty.")
            self._set_state(SessionState.UNAUTHENTICATED)
            raise AuthError("GitHub token is empty")

        self._busy = True
        try:
            self._set_state(SessionState.FETCHING)
            self.client.set_token(token)
            repositories = self.client.list_user_repositories()
        except AuthError:
            logger.error("Invalid token or failed to fetch repositories. Clearing token.")
            self.token_store.clear()
            self._reset()
            self._set_state(SessionState.UNAUTHENTICATED)
            raise
        except NetworkError:
            logger.error("Could not reach GitHub to fetch repositories.")
            self._reset()
            self._set_state(SessionState.IDLE)
            raise
        finally:
            self._busy = False

        existing = collect_existing_folder_names(self.target_directory)
        self._set_catalog(filter_excluding_local(repositories, existing))
        self._set_state(SessionState.IDLE)
        logger.info(f"{len(self.displayed)} of {len(repositories)} repositories available to clone")
        return list(self.displayed)

    def filter_by_name(self, substring: Optional[str]) -> List[RepositoryIdentifier]:
        """Refine the displayed catalog locally, keeping still-visible selections."""
        self.name_filter = substring or ""
        self.displayed = filter_by_name(self.catalog, self.name_filter)
        self.selection = self.selection.reconcile(self.displayed)
        self._emit(CATALOG_CHANGED)
        return list(self.displayed)

    def toggle_selection(self, index: int) -> bool:
        return self.selection.toggle(index)

    def select_all(self) -> None:
        self.selection.select_all()

    def select_none(self) -> None:
        self.selection.select_none()

    def select_by_name(self, names: Iterable[str]) -> List[str]:
        return self.selection.select_names(names)

    def selected_identifiers(self) -> List[RepositoryIdentifier]:
        return self.selection.selected()

    def clone_selected(
        self,
        options: Optional[CloneOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
        refresh: bool = True
    ) -> BatchResult:
        """
        Clone every selected repository into the target directory.

        After the batch a single ``batch_complete`` event is emitted and,
        when ``refresh`` is set, the catalog is fetched again so freshly
        cloned repositories drop out of it.

        Raises:
            SessionBusyError: If a fetch or clone is already in progress
            NoSelectionError: If nothing is selected
        """
        if self._busy:
            raise SessionBusyError()

        selected = self.selected_identifiers()
        if not selected:
            raise NoSelectionError()

        self._busy = True
        try:
            self._set_state(SessionState.CLONING)
            self.target_directory.mkdir(parents=True, exist_ok=True)
            self.manager.access_token = self.token
            result = self.manager.clone_selected(
                selected,
                self.target_directory,
                options or self.options,
                progress_callback
            )
        finally:
            self._busy = False
            self._set_state(SessionState.IDLE)

        self.last_result = result
        self._emit(BATCH_COMPLETE)

        if refresh:
            try:
                self.fetch()
            except (AuthError, NetworkError) as e:
                logger.warning(f"Could not refresh repository list after cloning: {e.message}")

        return result

"""
Picker state machine.

Owns the ranked directories, the host's sessions, the reconciled item list,
the search engine and both cursors, and turns key presses into host actions.
Everything runs synchronously inside one key or refresh event; every data
change recomputes the item list (and the search, if one is active) in full.

Keys are Textual key names ("up", "enter", "ctrl+r", ...). Printable keys
also carry their character.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from loguru import logger

from .config_loader import Config
from .errors import Result
from .items import (
    CandidateDirectory,
    DirectoryItem,
    ExistingSessionItem,
    RecoverableSession,
    RecoverableSessionItem,
    Session,
    SessionItem,
)
from .reconcile import combine_items
from .search import SearchEngine, wrap_down, wrap_up
from .session_names import make_unique, validate_session_name
from .zoxide import build_candidates, query_zoxide, zoxide_error_message

QUICK_CREATE_KEYS = {"ctrl+enter", "ctrl+j", "ctrl+o"}


class SessionHost(Protocol):
    """Session lifecycle operations provided by the terminal multiplexer."""

    def list_sessions(self) -> Result[tuple[list[Session], list[RecoverableSession]]]: ...

    def available_layouts(self) -> list[str]: ...

    def switch_session(self, name: str) -> Result[None]: ...

    def create_session(
        self, name: str | None, folder: str | None, layout: str | None
    ) -> Result[None]: ...

    def kill_session(self, name: str) -> Result[None]: ...

    def delete_session(self, name: str) -> Result[None]: ...


class Screen(Enum):
    MAIN = "main"
    NEW_SESSION = "new_session"


@dataclass
class NewSessionInfo:
    """Name, folder and layout choice of the session being created."""

    name: str = ""
    folder: str | None = None
    layout: str | None = None


class PickerState:
    def __init__(
        self,
        config: Config,
        host: SessionHost,
        fetch_directories: Callable[[], Result[str]] = query_zoxide,
        home: str | None = None,
    ) -> None:
        self.config = config
        self.host = host
        self._fetch_directories = fetch_directories
        self._home = home

        self.sessions: list[Session] = []
        self.recoverable_sessions: list[RecoverableSession] = []
        self.candidates: list[CandidateDirectory] = []
        self.items: list[SessionItem] = []

        self.search = SearchEngine()
        self.selected_index: int | None = None
        self.screen = Screen.MAIN
        self.new_session = NewSessionInfo()
        self.layouts: list[str] = []

        self.error: str | None = None
        self.pending_deletion: str | None = None
        self.current_session_name: str | None = None
        self.visible = True

    # =========================================================================
    # Data Updates
    # =========================================================================

    def update_sessions(
        self,
        sessions: list[Session],
        recoverable_sessions: list[RecoverableSession],
    ) -> None:
        self.sessions = list(sessions)
        self.recoverable_sessions = list(recoverable_sessions)
        self.current_session_name = next(
            (s.name for s in self.sessions if s.is_current), self.current_session_name
        )
        self._rebuild_items()

    def update_candidates(self, candidates: list[CandidateDirectory]) -> None:
        self.candidates = list(candidates)
        self._rebuild_items()

    def refresh_sessions(self) -> None:
        result = self.host.list_sessions()
        if result.is_err():
            self.set_error(f"Failed to list sessions: {result.error.message}")
            return
        sessions, recoverable = result.value
        self.update_sessions(sessions, recoverable)

    def refresh_directories(self) -> None:
        """Re-run the ranking source and replace the candidate set."""
        result = self._fetch_directories()
        if result.is_err():
            self.set_error(zoxide_error_message(result.error))
            return
        candidates = build_candidates(result.value, self.config, self._home)
        logger.debug(
            "Ranked directories refreshed",
            operation="refresh_directories",
            status="success",
            metrics={"candidates": len(candidates)}
        )
        self.update_candidates(candidates)

    def _rebuild_items(self) -> None:
        self.items = combine_items(
            self.sessions, self.recoverable_sessions, self.candidates, self.config
        )
        if self.selected_index is not None:
            if not self.items:
                self.selected_index = None
            elif self.selected_index >= len(self.items):
                self.selected_index = len(self.items) - 1
        if self.search.is_searching:
            self.search.set_query(self.search.query, self.items)

    # =========================================================================
    # Views
    # =========================================================================

    def display_items(self) -> list[SessionItem]:
        if self.search.is_searching:
            return [result.item for result in self.search.results]
        return self.items

    def active_selected_index(self) -> int | None:
        if self.search.is_searching:
            return self.search.selected_index
        return self.selected_index

    def selected_item(self) -> SessionItem | None:
        if self.search.is_searching:
            return self.search.selected_item()
        if self.selected_index is None or self.selected_index >= len(self.items):
            return None
        return self.items[self.selected_index]

    def layout_choices(self) -> list[str | None]:
        return [None] + self.layouts

    def set_error(self, message: str) -> None:
        self.error = message
        logger.warning(
            "Error shown to user",
            operation="set_error",
            status="error",
            error=message
        )

    def hide(self) -> None:
        self.visible = False

    # =========================================================================
    # Key Handling
    # =========================================================================

    def handle_key(self, key: str, character: str | None = None) -> bool:
        """
        Apply one key press.

        Returns:
            True if the view changed and should be re-rendered
        """
        if self.error is not None:
            self.error = None
            return True

        if self.pending_deletion is not None:
            return self._handle_deletion_key(key, character)

        if self.screen is Screen.MAIN:
            return self._handle_main_key(key, character)
        return self._handle_new_session_key(key, character)

    def _handle_main_key(self, key: str, character: str | None) -> bool:
        if key == "up":
            self.move_selection_up()
        elif key == "down":
            self.move_selection_down()
        elif key == "enter":
            self._select_item()
        elif key in QUICK_CREATE_KEYS:
            self._quick_create()
        elif key == "delete":
            self._start_deletion()
        elif key == "backspace":
            self.search.backspace(self.items)
        elif key == "escape":
            if self.search.is_searching:
                self.search.clear()
            else:
                self.hide()
        elif key == "ctrl+c":
            self.hide()
        elif key == "ctrl+r":
            self.refresh_directories()
        elif character and character.isprintable():
            # Always search the full list, never the previous results
            self.search.add_char(character, self.items)
        else:
            return False
        return True

    def _handle_new_session_key(self, key: str, character: str | None) -> bool:
        info = self.new_session
        if key == "enter":
            self._create_from_new_session(info.layout)
        elif key in QUICK_CREATE_KEYS:
            self._create_from_new_session(self._default_layout())
        elif key == "escape":
            if info.name:
                info.name = ""
            else:
                self.screen = Screen.MAIN
        elif key == "ctrl+c":
            info.folder = None
        elif key in ("tab", "shift+tab"):
            choices = self.layout_choices()
            current = choices.index(info.layout) if info.layout in choices else 0
            step = 1 if key == "tab" else -1
            info.layout = choices[(current + step) % len(choices)]
        elif key == "backspace":
            info.name = info.name[:-1]
        elif character and character.isprintable():
            info.name += character
        else:
            return False
        return True

    def _handle_deletion_key(self, key: str, character: str | None) -> bool:
        if key in ("y", "Y") or character in ("y", "Y"):
            self._confirm_deletion()
            return True
        if key in ("n", "N", "escape") or character in ("n", "N"):
            self.pending_deletion = None
            return True
        return False

    # =========================================================================
    # Cursor
    # =========================================================================

    def move_selection_up(self) -> None:
        if self.search.is_searching:
            self.search.move_up()
        else:
            self.selected_index = wrap_up(self.selected_index, len(self.items))

    def move_selection_down(self) -> None:
        if self.search.is_searching:
            self.search.move_down()
        else:
            self.selected_index = wrap_down(self.selected_index, len(self.items))

    # =========================================================================
    # Actions
    # =========================================================================

    def _incremented_name(self, base_name: str) -> str:
        return make_unique(
            base_name,
            [s.name for s in self.sessions],
            [s.name for s in self.recoverable_sessions],
            self.config.separator,
        )

    def _default_layout(self) -> str | None:
        """The configured default layout, if the host offers it."""
        default = self.config.default_layout
        if default is None:
            return None
        if not self.layouts:
            self.layouts = self.host.available_layouts()
        if default in self.layouts:
            return default
        logger.debug(
            "Default layout not available - creating without layout",
            operation="default_layout",
            status="missing",
            layout=default
        )
        return None

    def _switch(self, name: str) -> None:
        result = self.host.switch_session(name)
        if result.is_err():
            self.set_error(result.error.message)
            return
        logger.info(
            "Switching session",
            operation="switch_session",
            status="dispatched",
            session_name=name
        )
        self.hide()

    def _create(self, name: str | None, folder: str | None, layout: str | None) -> bool:
        if name:
            validation = validate_session_name(name, self.current_session_name)
            if validation.is_err():
                self.set_error(validation.error.message)
                return False

        result = self.host.create_session(name or None, folder, layout)
        if result.is_err():
            self.set_error(result.error.message)
            return False

        logger.info(
            "Creating session",
            operation="create_session",
            status="dispatched",
            session_name=name,
            folder=folder,
            layout=layout
        )
        self.hide()
        return True

    def _select_item(self) -> None:
        match self.selected_item():
            case ExistingSessionItem(name=name) | RecoverableSessionItem(name=name):
                self._switch(name)
            case DirectoryItem(path=path, session_name=session_name):
                self.layouts = self.host.available_layouts()
                self.new_session = NewSessionInfo(
                    name=self._incremented_name(session_name),
                    folder=path,
                    layout=self._default_layout(),
                )
                self.screen = Screen.NEW_SESSION
            case None:
                pass

    def _quick_create(self) -> None:
        match self.selected_item():
            case ExistingSessionItem(name=name) | RecoverableSessionItem(name=name):
                self._switch(name)
            case DirectoryItem(path=path, session_name=session_name):
                self._create(self._incremented_name(session_name), path, self._default_layout())
            case None:
                self.set_error("Please select a directory")

    def _create_from_new_session(self, layout: str | None) -> None:
        info = self.new_session
        if self._create(info.name, info.folder, layout):
            self.screen = Screen.MAIN

    def _start_deletion(self) -> None:
        match self.selected_item():
            case ExistingSessionItem(name=name) | RecoverableSessionItem(name=name):
                self.pending_deletion = name
            case DirectoryItem() | None:
                pass

    def _confirm_deletion(self) -> None:
        name = self.pending_deletion
        self.pending_deletion = None
        if name is None:
            return

        if any(s.name == name for s in self.recoverable_sessions):
            result = self.host.delete_session(name)
        else:
            result = self.host.kill_session(name)

        if result.is_err():
            self.set_error(result.error.message)
            return
        self.refresh_sessions()

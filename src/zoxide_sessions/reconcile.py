"""Merge live sessions, recoverable sessions and ranked directories."""

from __future__ import annotations

from .config_loader import Config
from .items import (
    CandidateDirectory,
    DirectoryItem,
    ExistingSessionItem,
    RecoverableSession,
    RecoverableSessionItem,
    Session,
    SessionItem,
)
from .session_names import matches_base_name


def _find_candidate(
    name: str,
    candidates: list[CandidateDirectory],
    separator: str,
) -> CandidateDirectory | None:
    # First match in ranking order wins
    for candidate in candidates:
        if matches_base_name(name, candidate.session_name, separator):
            return candidate
    return None


def combine_items(
    sessions: list[Session],
    recoverable_sessions: list[RecoverableSession],
    candidates: list[CandidateDirectory],
    config: Config,
) -> list[SessionItem]:
    """
    Build the unified, ordered item list.

    Order: live sessions that belong to a ranked directory, then (if enabled)
    recoverable sessions that belong to one, then every ranked directory.
    A session belongs to a directory when its name is the directory's session
    name or an incremented variant of it ("project", "project.2", ...).
    Sessions for unranked directories are not listed.

    Directories are always listed, even when a session already exists for
    them: selecting the session attaches, selecting the directory creates
    another session there.
    """
    separator = config.separator
    items: list[SessionItem] = []

    for session in sessions:
        candidate = _find_candidate(session.name, candidates, separator)
        if candidate is not None:
            items.append(ExistingSessionItem(
                name=session.name,
                directory=candidate.directory,
                is_current=session.is_current,
            ))

    if config.show_recoverable:
        for recoverable in recoverable_sessions:
            if _find_candidate(recoverable.name, candidates, separator) is not None:
                items.append(RecoverableSessionItem(
                    name=recoverable.name,
                    elapsed=recoverable.elapsed,
                ))

    for candidate in candidates:
        items.append(DirectoryItem(
            path=candidate.directory,
            session_name=candidate.session_name,
        ))

    return items

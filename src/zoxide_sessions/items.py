"""Data model: ranked directories, host sessions and unified display items."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Union

# =============================================================================
# Ranked Directories
# =============================================================================


@dataclass
class CandidateDirectory:
    """A zoxide directory with its ranking and generated session name."""

    ranking: float
    directory: str
    session_name: str = ""


def sort_candidates(candidates: list[CandidateDirectory]) -> list[CandidateDirectory]:
    """Order by ranking (highest first), ties by path for determinism."""
    return sorted(candidates, key=lambda c: (-c.ranking, c.directory))


# =============================================================================
# Host Sessions (read-only)
# =============================================================================


@dataclass(frozen=True)
class Session:
    name: str
    directory: str = ""
    is_current: bool = False


@dataclass(frozen=True)
class RecoverableSession:
    name: str
    elapsed: timedelta = timedelta()


# =============================================================================
# Unified Display Items (closed sum type)
# =============================================================================


@dataclass(frozen=True)
class ExistingSessionItem:
    name: str
    directory: str
    is_current: bool


@dataclass(frozen=True)
class RecoverableSessionItem:
    name: str
    elapsed: timedelta


@dataclass(frozen=True)
class DirectoryItem:
    path: str
    session_name: str


SessionItem = Union[ExistingSessionItem, RecoverableSessionItem, DirectoryItem]


def is_session_like(item: SessionItem) -> bool:
    """Live and recoverable sessions sort and act alike."""
    match item:
        case ExistingSessionItem() | RecoverableSessionItem():
            return True
        case DirectoryItem():
            return False
    raise TypeError(f"Unknown session item: {item!r}")


# humantime-style units, largest first
_DURATION_UNITS = [
    (31_557_600, "year", "years"),
    (2_630_016, "month", "months"),
    (24 * 3600, "day", "days"),
    (3600, "h", "h"),
    (60, "m", "m"),
    (1, "s", "s"),
]


def format_elapsed(elapsed: timedelta) -> str:
    """
    Format a duration the way Zellij prints it ("2h 5m 3s", "1day 4h").

    Sub-second precision is dropped; a zero duration reads "0s".
    """
    remaining = int(elapsed.total_seconds())
    if remaining <= 0:
        return "0s"

    parts = []
    for unit_seconds, singular, plural in _DURATION_UNITS:
        count, remaining = divmod(remaining, unit_seconds)
        if count:
            parts.append(f"{count}{singular if count == 1 else plural}")
    return " ".join(parts)


def display_text(item: SessionItem) -> str:
    """
    Canonical rendered text of an item.

    This is exactly what the list shows, and what the fuzzy matcher searches,
    so match offsets can be highlighted directly.
    """
    match item:
        case ExistingSessionItem(name=name, directory=directory, is_current=is_current):
            prefix = "● " if is_current else "○ "
            return f"{prefix}{name} ({directory})"
        case RecoverableSessionItem(name=name, elapsed=elapsed):
            return f"↺ {name} (created {format_elapsed(elapsed)} ago)"
        case DirectoryItem(path=path):
            return path
    raise TypeError(f"Unknown session item: {item!r}")

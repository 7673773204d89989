"""Session name collision handling and validation."""

from __future__ import annotations

import re
from collections.abc import Iterable
from uuid import uuid4

from .errors import Error, ErrorType, Result

MAX_INCREMENT = 1000

# Unix socket paths are limited to 108 bytes
SESSION_NAME_BYTE_LIMIT = 108

_POSITIVE_INTEGER = re.compile(r"[0-9]+")


def make_unique(
    base_name: str,
    session_names: Iterable[str],
    recoverable_names: Iterable[str],
    separator: str = ".",
) -> str:
    """
    Return a session name derived from base_name that is not already in use.

    An unused base_name is returned as-is. Otherwise "<base><sep>2" through
    "<base><sep>1000" are tried against the live sessions; recoverable
    sessions only decide whether the base name is taken. If every increment
    is in use, a random 8-character hex suffix is appended instead.

    Example: make_unique("proj", {"proj", "proj.2"}, set()) -> "proj.3"
    """
    live = set(session_names)
    recoverable = set(recoverable_names)

    if base_name not in live and base_name not in recoverable:
        return base_name

    for counter in range(2, MAX_INCREMENT + 1):
        candidate = f"{base_name}{separator}{counter}"
        if candidate not in live:
            return candidate

    return f"{base_name}{separator}{uuid4().hex[:8]}"


def is_incremented_name(name: str, base_name: str, separator: str = ".") -> bool:
    """True if name is "<base_name><separator><positive integer>"."""
    prefix = base_name + separator
    if not name.startswith(prefix):
        return False
    number = name[len(prefix):]
    return bool(_POSITIVE_INTEGER.fullmatch(number)) and int(number) > 0


def matches_base_name(name: str, base_name: str, separator: str = ".") -> bool:
    """Exact name or one of its incremented variants."""
    return name == base_name or is_incremented_name(name, base_name, separator)


def validate_session_name(name: str, current_session_name: str | None = None) -> Result[str]:
    """
    Check a name before it is handed to session creation.

    Returns:
        Result[str]: Ok with the name, or Err(VALIDATION_ERROR) with a
        user-facing message
    """
    message = None
    if len(name.encode("utf-8")) >= SESSION_NAME_BYTE_LIMIT:
        message = f"Session name must be shorter than {SESSION_NAME_BYTE_LIMIT} bytes"
    elif "/" in name:
        message = "Session name cannot contain '/'"
    elif current_session_name is not None and name == current_session_name:
        message = "Cannot create session with same name as current session"

    if message:
        return Result.err(Error(
            error_type=ErrorType.VALIDATION_ERROR,
            message=message,
            context={"session_name": name}
        ))
    return Result.ok(name)

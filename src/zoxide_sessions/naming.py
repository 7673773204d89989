"""
Smart session naming for ranked directories.

Turns absolute paths into short, collision-free session names:

    ~/code/api, ~/personal/api   -> code.api, personal.api
    ~/code/project               -> project
    ~/code/project/frontend      -> code.project.frontend   (nested)

Names are kept within MAX_NAME_BYTES. Zellij sessions live on a unix socket
whose full path must fit in 108 bytes, and the socket directory is chosen by
Zellij, so only a conservative share of that budget is used here.
"""

from __future__ import annotations

import hashlib
import re
from collections import Counter

from loguru import logger

from .config_loader import Config
from .items import CandidateDirectory
from .paths import is_strict_descendant, normalize_path, split_segments

MAX_NAME_BYTES = 29
NESTED_MIN_SEGMENTS = 3
ROOT_NAME = "root"
# "h" plus hex characters appended to clashing truncated names
DIGEST_LENGTH = 7

_WORD_SEPARATORS = re.compile(r"[-_]")


def byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def truncate_bytes(text: str, limit: int) -> str:
    """Cut text to at most limit UTF-8 bytes without splitting a character."""
    return text.encode("utf-8")[:limit].decode("utf-8", errors="ignore")


def abbreviate_segment(segment: str) -> str:
    """
    Compress one path segment to a short token.

    Example: lobster-watcher -> l-w, documents -> doc, src -> src
    """
    if len(segment) <= 3:
        return segment

    if "-" in segment or "_" in segment:
        parts = _WORD_SEPARATORS.split(segment)
        return "-".join(part[0] if part else "x" for part in parts)

    abbreviated = segment[0]
    for char in segment[1:]:
        if len(abbreviated) >= 3:
            break
        if char.isalpha():
            abbreviated += char

    if len(abbreviated) < 2 and len(segment) > 1:
        abbreviated += segment[1]

    return abbreviated


def _join_tail(segments: list[str], count: int, separator: str) -> str:
    return separator.join(segments[len(segments) - count:]) if count else ""


def truncate_name(
    segments: list[str],
    min_segments: int,
    separator: str,
    limit: int = MAX_NAME_BYTES,
) -> str:
    """
    Build a name of at most limit bytes from the trailing path segments.

    Starting from the last min_segments segments: when they are too long they
    are abbreviated, then dropped from the left, then hard-truncated. When
    they fit, abbreviated parent segments are prepended while the name stays
    within the limit.

    Args:
        segments: All normalized path segments
        min_segments: Number of trailing segments the name must start from
        separator: Session name separator
        limit: Byte budget

    Returns:
        Name of at most limit bytes
    """
    start = max(len(segments) - min_segments, 0)
    result = list(segments[start:])

    if byte_len(separator.join(result)) > limit:
        result = [abbreviate_segment(segment) for segment in result]
        while len(result) > 1 and byte_len(separator.join(result)) > limit:
            result.pop(0)
        if len(result) == 1 and byte_len(result[0]) > limit:
            result = [truncate_bytes(result[0], limit)]
    else:
        left = start - 1
        while left >= 0:
            extended = [abbreviate_segment(segments[left])] + result
            if byte_len(separator.join(extended)) > limit:
                break
            result = extended
            left -= 1

    name = separator.join(result)
    if byte_len(name) > limit:
        name = truncate_bytes(name, limit)
    return name


def _context_length(
    index: int,
    all_segments: list[list[str]],
    conflict_indices: list[int],
    required: int,
    separator: str,
) -> int | None:
    """
    Smallest number of trailing segments that makes this candidate's name
    differ from every other member of the conflict set.

    Members with fewer segments than the tried length cannot collide at that
    length. Returns None when even the full path collides.
    """
    segments = all_segments[index]
    for length in range(required, len(segments) + 1):
        candidate = _join_tail(segments, length, separator)
        is_unique = True
        for other in conflict_indices:
            if other == index:
                continue
            other_segments = all_segments[other]
            if len(other_segments) < length:
                continue
            if _join_tail(other_segments, length, separator) == candidate:
                is_unique = False
                break
        if is_unique:
            return length
    return None


def _is_nested(index: int, all_segments: list[list[str]]) -> bool:
    segments = all_segments[index]
    return any(
        is_strict_descendant(segments, other_segments)
        for other, other_segments in enumerate(all_segments)
        if other != index
    )


def _context_aware_name(
    index: int,
    candidates: list[CandidateDirectory],
    all_segments: list[list[str]],
    conflict_indices: list[int],
    nested: bool,
    separator: str,
) -> tuple[str, bool]:
    """Returns (name, whether the name had to be truncated)."""
    segments = all_segments[index]
    if not segments:
        return ROOT_NAME, False

    required = min(NESTED_MIN_SEGMENTS, len(segments)) if nested else 1
    length = _context_length(index, all_segments, conflict_indices, required, separator)

    if length is None:
        # Identical relative paths under different roots: fall back to the
        # absolute path, which is unique among zoxide entries.
        if any(other != index and all_segments[other] == segments for other in conflict_indices):
            segments = split_segments(candidates[index].directory)
        length = len(segments)

    if nested and length < 2:
        length = min(2, len(segments))

    name = _join_tail(segments, length, separator)
    if byte_len(name) > MAX_NAME_BYTES:
        return truncate_name(segments, length, separator), True
    return name, False


def _path_digest(directory: str, length: int) -> str:
    # Leading letter keeps the suffix from reading as an increment ("api.2")
    return "h" + hashlib.sha1(directory.encode("utf-8")).hexdigest()[:length - 1]


def _disambiguate_truncated(
    candidates: list[CandidateDirectory],
    truncated: set[int],
    separator: str,
) -> None:
    """
    Give truncated names that collide with any other name a path digest.

    Abbreviating and dropping segments can map distinct paths to one name
    ("alpha1/long-name" and "alpha2/long-name" both become "alp.l-n"). Each
    clashing truncated name keeps as much of its head as fits and ends with
    a digest of its absolute path, so it stays within MAX_NAME_BYTES and is
    stable across runs.
    """
    counts = Counter(c.session_name for c in candidates)
    taken = set(counts)

    for index in sorted(truncated):
        candidate = candidates[index]
        if counts[candidate.session_name] < 2:
            continue

        for digest_length in range(DIGEST_LENGTH, MAX_NAME_BYTES + 1):
            suffix = _path_digest(candidate.directory, digest_length)
            budget = MAX_NAME_BYTES - byte_len(separator) - len(suffix)
            head = truncate_bytes(candidate.session_name, max(budget, 0)).rstrip(separator)
            name = f"{head}{separator}{suffix}" if head else suffix
            if name not in taken:
                break

        logger.debug(
            "Truncated session name collided - added path digest",
            operation="resolve_session_names",
            status="disambiguated",
            directory=candidate.directory,
            collided=candidate.session_name,
            session_name=name
        )
        taken.add(name)
        candidate.session_name = name


def resolve_session_names(
    candidates: list[CandidateDirectory],
    config: Config,
    home: str | None = None,
) -> list[CandidateDirectory]:
    """
    Assign a session name to every candidate directory.

    Candidates whose basename is unique and which do not live below another
    candidate are named by their basename. Colliding basenames and nested
    directories get the fewest trailing path segments that make them unique
    (nested ones at least three, or two when the path is shallower).
    Names that still clash after being cut down to the byte budget end with
    a short digest of the absolute path.

    Args:
        candidates: The complete ranked set (names are written in place)
        config: Supplies the separator and base paths
        home: Home directory used when no base paths are configured

    Returns:
        The same list, with session_name filled in
    """
    separator = config.separator
    all_segments = [
        split_segments(normalize_path(c.directory, config.base_paths, home))
        for c in candidates
    ]

    basename_groups: dict[str, list[int]] = {}
    for index, segments in enumerate(all_segments):
        basename = segments[-1] if segments else ""
        basename_groups.setdefault(basename, []).append(index)

    truncated: set[int] = set()
    for basename, indices in basename_groups.items():
        for index in indices:
            nested = _is_nested(index, all_segments)
            if len(indices) == 1 and not nested:
                name = basename or ROOT_NAME
                if byte_len(name) > MAX_NAME_BYTES:
                    name = truncate_name(all_segments[index], 1, separator)
                    truncated.add(index)
            else:
                name, was_truncated = _context_aware_name(
                    index, candidates, all_segments, indices, nested, separator
                )
                if was_truncated:
                    truncated.add(index)
            candidates[index].session_name = name

    _disambiguate_truncated(candidates, truncated, separator)
    return candidates

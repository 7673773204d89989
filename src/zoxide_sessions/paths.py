"""Path normalization for session naming.

Every naming decision works on a path relative to a configured base path (or
the home directory), so that "~/src/work/api" and "/srv/work/api" are both
seen as "work/api" when their roots are configured.
"""

from __future__ import annotations

from pathlib import Path


def _strip_prefix(path: str, prefix: str) -> str | None:
    """Strip prefix from path at a path-component boundary.

    Returns the remainder without the joining "/", or None when prefix is
    not an ancestor-or-self of path.
    """
    if prefix.endswith("/"):
        # Only "/" survives config trimming with a trailing slash
        return path[len(prefix):] if path.startswith(prefix) else None
    if path == prefix:
        return ""
    if path.startswith(prefix) and path[len(prefix)] == "/":
        return path[len(prefix) + 1:]
    return None


def normalize_path(
    path: str,
    base_paths: frozenset[str] | set[str] = frozenset(),
    home: str | None = None,
) -> str:
    """
    Strip a known root from an absolute path.

    With base paths configured, the longest matching base path is removed.
    Without any, the home directory is removed. A path equal to its root is
    returned unchanged so the result is never empty.

    Args:
        path: Absolute directory path
        base_paths: Configured prefixes to strip
        home: Home directory (defaults to the current user's)

    Returns:
        Relative path used for naming, or the original path if no root matches
    """
    if base_paths:
        candidates = [p for p in base_paths if _strip_prefix(path, p) is not None]
        if not candidates:
            return path
        remainder = _strip_prefix(path, max(candidates, key=len))
        return remainder or path

    if home is None:
        home = str(Path.home())
    home = home.rstrip("/") or "/"
    remainder = _strip_prefix(path, home)
    return remainder or path


def split_segments(path: str) -> list[str]:
    """Split a normalized path into its non-empty components."""
    return [segment for segment in path.split("/") if segment]


def is_strict_descendant(path_segments: list[str], ancestor_segments: list[str]) -> bool:
    """Component-wise check that path is strictly below ancestor.

    The filesystem root (no segments) is not treated as an ancestor.
    """
    if not ancestor_segments or len(path_segments) <= len(ancestor_segments):
        return False
    return path_segments[:len(ancestor_segments)] == ancestor_segments

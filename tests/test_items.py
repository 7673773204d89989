from __future__ import annotations

from datetime import timedelta

import pytest

from zoxide_sessions.items import (
    CandidateDirectory,
    DirectoryItem,
    ExistingSessionItem,
    RecoverableSessionItem,
    display_text,
    format_elapsed,
    is_session_like,
    sort_candidates,
)


@pytest.mark.parametrize(
    ("elapsed", "expected"),
    [
        (timedelta(), "0s"),
        (timedelta(seconds=42), "42s"),
        (timedelta(hours=2, minutes=5, seconds=3), "2h 5m 3s"),
        (timedelta(days=1, hours=4), "1day 4h"),
        (timedelta(days=2), "2days"),
        (timedelta(seconds=31_557_600), "1year"),
        (timedelta(milliseconds=900), "0s"),
    ],
)
def test_format_elapsed(elapsed, expected):
    assert format_elapsed(elapsed) == expected


def test_display_text():
    assert display_text(ExistingSessionItem("work", "/home/alice/work", True)) == (
        "● work (/home/alice/work)"
    )
    assert display_text(ExistingSessionItem("work.2", "/home/alice/work", False)) == (
        "○ work.2 (/home/alice/work)"
    )
    assert display_text(RecoverableSessionItem("notes", timedelta(hours=3))) == (
        "↺ notes (created 3h ago)"
    )
    assert display_text(DirectoryItem("/home/alice/notes", "notes")) == "/home/alice/notes"


def test_is_session_like():
    assert is_session_like(ExistingSessionItem("a", "/a", False))
    assert is_session_like(RecoverableSessionItem("a", timedelta()))
    assert not is_session_like(DirectoryItem("/a", "a"))


def test_sort_candidates_by_ranking_then_path():
    candidates = [
        CandidateDirectory(1.0, "/b"),
        CandidateDirectory(7.5, "/z"),
        CandidateDirectory(1.0, "/a"),
    ]
    assert [c.directory for c in sort_candidates(candidates)] == ["/z", "/a", "/b"]

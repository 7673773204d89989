"""
Fuzzy search over the unified item list.

The matcher finds the query as an ordered subsequence of an item's rendered
text and scores the alignment: matches at word boundaries and runs of
consecutive characters score higher, gaps and late first matches score lower.
Matching is smart-case: case-insensitive unless the query has an uppercase
letter.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .items import SessionItem, display_text, is_session_like

SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1
BONUS_BOUNDARY = 8
BONUS_CAMEL = 7
BONUS_CONSECUTIVE = 4
BONUS_FIRST_CHAR_MULTIPLIER = 2
MAX_LEADING_PENALTY = 15

_BOUNDARY_CHARS = set("/-_. ([")


def _char_bonus(text: str, index: int) -> int:
    if index == 0:
        return BONUS_BOUNDARY
    prev, char = text[index - 1], text[index]
    if prev in _BOUNDARY_CHARS or prev.isspace():
        return BONUS_BOUNDARY
    if prev.islower() and char.isupper():
        return BONUS_CAMEL
    if not prev.isdigit() and char.isdigit():
        return BONUS_CAMEL
    return 0


def fuzzy_match(query: str, text: str) -> tuple[int, list[int]] | None:
    """
    Score query against text.

    Returns:
        (score, indices) where indices are the matched character offsets in
        text, or None if query is not a subsequence of text
    """
    if not query:
        return 0, []

    case_sensitive = any(char.isupper() for char in query)
    if case_sensitive:
        haystack = list(text)
        needle = list(query)
    else:
        haystack = [char.lower() for char in text]
        needle = [char.lower() for char in query]

    # Cheap rejection before scoring
    position = 0
    for char in needle:
        while position < len(haystack) and haystack[position] != char:
            position += 1
        if position == len(haystack):
            return None
        position += 1

    bonuses = [_char_bonus(text, j) for j in range(len(text))]

    # scores[i][j]: best score with needle[i] matched at text[j]
    first_row: list[int | None] = [None] * len(haystack)
    for j, char in enumerate(haystack):
        if char == needle[0]:
            first_row[j] = (
                SCORE_MATCH
                + bonuses[j] * BONUS_FIRST_CHAR_MULTIPLIER
                - min(j, MAX_LEADING_PENALTY)
            )
    scores = [first_row]
    parents: list[list[int | None]] = [[None] * len(haystack)]

    for i in range(1, len(needle)):
        previous = scores[-1]
        row: list[int | None] = [None] * len(haystack)
        parent: list[int | None] = [None] * len(haystack)
        gap_best = None
        gap_from = None
        for j, char in enumerate(haystack):
            if j >= 2:
                if gap_best is not None:
                    gap_best += SCORE_GAP_EXTENSION
                start = previous[j - 2]
                if start is not None and (gap_best is None or start + SCORE_GAP_START >= gap_best):
                    gap_best = start + SCORE_GAP_START
                    gap_from = j - 2
            if char != needle[i]:
                continue

            best = None
            best_from = None
            if j >= 1 and previous[j - 1] is not None:
                best = previous[j - 1] + SCORE_MATCH + max(bonuses[j], BONUS_CONSECUTIVE)
                best_from = j - 1
            if gap_best is not None:
                gapped = gap_best + SCORE_MATCH + bonuses[j]
                if best is None or gapped > best:
                    best = gapped
                    best_from = gap_from
            row[j] = best
            parent[j] = best_from
        scores.append(row)
        parents.append(parent)

    last = scores[-1]
    end = None
    for j, score in enumerate(last):
        if score is not None and (end is None or score > last[end]):
            end = j
    if end is None:
        return None

    indices = [end]
    for i in range(len(needle) - 1, 0, -1):
        indices.append(parents[i][indices[-1]])
    indices.reverse()
    return last[end], indices


# =============================================================================
# Selection Cursor
# =============================================================================


def wrap_up(index: int | None, length: int) -> int | None:
    """Move a cursor up; from unset selects the last row, 0 wraps to last."""
    if length == 0:
        return index
    if index is None or index == 0:
        return length - 1
    return min(index - 1, length - 1)


def wrap_down(index: int | None, length: int) -> int | None:
    """Move a cursor down; from unset selects row 0, last wraps to 0."""
    if length == 0:
        return index
    if index is None or index >= length - 1:
        return 0
    return index + 1


# =============================================================================
# Search Engine
# =============================================================================


@dataclass
class SearchResult:
    item: SessionItem
    score: int
    indices: list[int] = field(default_factory=list)


class SearchEngine:
    """
    Query state, ranked results and the search cursor.

    Idle while the query is empty, searching otherwise. Every query change
    re-runs the match over the full item list.
    """

    def __init__(self) -> None:
        self._query = ""
        self._results: list[SearchResult] = []
        self._selected_index: int | None = None

    @property
    def query(self) -> str:
        return self._query

    @property
    def is_searching(self) -> bool:
        return bool(self._query)

    @property
    def results(self) -> list[SearchResult]:
        return self._results

    @property
    def selected_index(self) -> int | None:
        return self._selected_index

    def set_query(self, text: str, items: list[SessionItem]) -> None:
        self._query = text
        if not text:
            self._results = []
            self._selected_index = None
            return
        self._search(items)

    def add_char(self, char: str, items: list[SessionItem]) -> None:
        self.set_query(self._query + char, items)

    def backspace(self, items: list[SessionItem]) -> None:
        self.set_query(self._query[:-1], items)

    def clear(self) -> None:
        self._query = ""
        self._results = []
        self._selected_index = None

    def move_up(self) -> None:
        self._selected_index = wrap_up(self._selected_index, len(self._results))

    def move_down(self) -> None:
        self._selected_index = wrap_down(self._selected_index, len(self._results))

    def selected_item(self) -> SessionItem | None:
        if self._selected_index is None or self._selected_index >= len(self._results):
            return None
        return self._results[self._selected_index].item

    def _search(self, items: list[SessionItem]) -> None:
        matches = []
        for item in items:
            match = fuzzy_match(self._query, display_text(item))
            if match is not None:
                score, indices = match
                matches.append(SearchResult(item=item, score=score, indices=indices))

        # Sessions before directories, then best score; sort is stable
        matches.sort(key=lambda r: (0 if is_session_like(r.item) else 1, -r.score))
        self._results = matches

        # The cursor keeps its position, not its item
        if not matches:
            self._selected_index = None
        elif self._selected_index is None:
            self._selected_index = 0
        elif self._selected_index >= len(matches):
            self._selected_index = len(matches) - 1

from __future__ import annotations

from zoxide_sessions.items import DirectoryItem, ExistingSessionItem, display_text
from zoxide_sessions.search import SearchEngine, fuzzy_match, wrap_down, wrap_up


def _dirs(*paths: str) -> list[DirectoryItem]:
    return [DirectoryItem(path=path, session_name="") for path in paths]


# =============================================================================
# Matcher
# =============================================================================


def test_empty_query_matches_everything():
    assert fuzzy_match("", "anything") == (0, [])


def test_subsequence_match_records_offsets():
    score, indices = fuzzy_match("pr", "project")
    assert indices == [0, 1]
    assert score > 0


def test_gapped_match_offsets():
    _, indices = fuzzy_match("cpt", "/code/project")
    text = "/code/project"
    assert "".join(text[i] for i in indices) == "cpt"
    assert indices == sorted(indices)


def test_non_subsequence_does_not_match():
    assert fuzzy_match("tp", "top") is None
    assert fuzzy_match("xyz", "project") is None


def test_smart_case():
    assert fuzzy_match("proj", "Project") is not None
    assert fuzzy_match("Proj", "project") is None
    assert fuzzy_match("Proj", "Project") is not None


def test_contiguous_boundary_match_beats_scattered_match():
    tight, _ = fuzzy_match("api", "/code/api")
    loose, _ = fuzzy_match("api", "/code/xapxi")
    assert tight > loose


def test_earlier_match_scores_higher():
    early, _ = fuzzy_match("api", "/api/zzzzzzzz")
    late, _ = fuzzy_match("api", "/zzzzzzzz/api")
    assert early > late


# =============================================================================
# Cursor
# =============================================================================


def test_wraparound():
    assert wrap_up(None, 3) == 2
    assert wrap_down(None, 3) == 0
    assert wrap_down(2, 3) == 0
    assert wrap_up(0, 3) == 2
    assert wrap_down(0, 3) == 1


def test_cursor_on_empty_list_is_unchanged():
    assert wrap_up(None, 0) is None
    assert wrap_down(None, 0) is None


# =============================================================================
# Engine
# =============================================================================


def test_starts_idle():
    engine = SearchEngine()
    assert not engine.is_searching
    assert engine.results == []
    assert engine.selected_index is None


def test_empty_query_returns_to_idle():
    items = _dirs("/a/alpha", "/a/beta")
    engine = SearchEngine()
    engine.set_query("al", items)
    assert engine.is_searching
    engine.set_query("", items)
    assert not engine.is_searching
    assert engine.results == []
    assert engine.selected_index is None


def test_no_matches_unsets_selection():
    engine = SearchEngine()
    engine.set_query("zzz", _dirs("/a/alpha", "/a/beta"))
    assert engine.is_searching
    assert engine.results == []
    assert engine.selected_index is None
    assert engine.selected_item() is None


def test_first_result_is_selected():
    items = _dirs("/a/alpha", "/a/beta")
    engine = SearchEngine()
    engine.add_char("b", items)
    assert engine.selected_index == 0
    assert engine.selected_item() == items[1]


def test_sessions_sort_before_directories():
    session = ExistingSessionItem(name="alpha", directory="/x/alpha", is_current=False)
    directory = DirectoryItem(path="/alpha", session_name="alpha")
    engine = SearchEngine()
    engine.set_query("alpha", [directory, session])
    assert [r.item for r in engine.results] == [session, directory]


def test_results_sort_by_score():
    items = _dirs("/code/xapxi", "/code/api", "/other/api")
    engine = SearchEngine()
    engine.set_query("api", items)
    assert [r.item.path for r in engine.results] == ["/code/api", "/other/api", "/code/xapxi"]


def test_equal_scores_keep_encounter_order():
    items = [DirectoryItem("/same", "one"), DirectoryItem("/same", "two")]
    engine = SearchEngine()
    engine.set_query("same", items)
    assert [r.item.session_name for r in engine.results] == ["one", "two"]


def test_result_indices_point_into_display_text():
    session = ExistingSessionItem(name="work", directory="/home/alice/work", is_current=True)
    engine = SearchEngine()
    engine.set_query("wk", [session])
    result = engine.results[0]
    text = display_text(session)
    assert "".join(text[i] for i in result.indices).lower() == "wk"


def test_selection_keeps_position_and_clamps():
    items = _dirs("/a/one", "/a/two", "/a/three")
    engine = SearchEngine()
    engine.set_query("/", items)
    engine.move_down()
    engine.move_down()
    assert engine.selected_index == 2

    engine.set_query("/a", items)
    assert engine.selected_index == 2

    engine.set_query("/a/t", items)
    assert len(engine.results) == 2
    assert engine.selected_index == 1


def test_backspace_and_clear():
    items = _dirs("/a/alpha", "/a/beta")
    engine = SearchEngine()
    engine.add_char("b", items)
    engine.add_char("e", items)
    engine.backspace(items)
    assert engine.query == "b"
    engine.backspace(items)
    assert not engine.is_searching

    engine.add_char("a", items)
    engine.clear()
    assert engine.query == ""
    assert engine.selected_index is None


def test_cursor_wraps_over_results():
    items = _dirs("/a/one", "/a/two", "/a/three")
    engine = SearchEngine()
    engine.set_query("a", items)
    engine.move_up()
    assert engine.selected_index == 2
    engine.move_down()
    assert engine.selected_index == 0

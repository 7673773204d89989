"""
Textual front end for the picker.

The app only draws PickerState and forwards keys to it. Navigation and editing
keys are priority bindings so Textual's own focus and quit handling never sees
them; printable characters arrive through on_key.
"""

from __future__ import annotations

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.events import Key
from textual.widgets import Static

from .items import DirectoryItem, ExistingSessionItem, RecoverableSessionItem, display_text
from .logging_config import trace_context
from .state import PickerState, Screen

TITLE = "Zoxide Session Manager"
EMPTY_MESSAGE = (
    "No zoxide directories found. Make sure zoxide is installed "
    "and you have visited some directories."
)
MAIN_HELP = (
    "↑/↓ navigate • Enter select • Ctrl+Enter quick create • "
    "Del kill/delete • Ctrl+R reload • Esc clear/exit"
)
NEW_SESSION_HELP = (
    "Enter create • Ctrl+Enter create with default layout • "
    "Tab/Shift+Tab layout • Ctrl+C clear folder • Esc back"
)

TRUNCATE_HEAD = 10
ELLIPSIS = "..."

_FORWARDED_KEYS = [
    "up", "down", "enter", "escape", "backspace", "delete", "tab", "shift+tab",
    "ctrl+c", "ctrl+r", "ctrl+j", "ctrl+o", "ctrl+enter",
]


def truncate_middle(text: str, indices: list[int], width: int) -> tuple[str, list[int]]:
    """
    Fit text into width as "first10...tail", remapping highlight offsets.

    Offsets that fall inside the elided middle are dropped.
    """
    if len(text) <= width:
        return text, indices
    if width <= TRUNCATE_HEAD + len(ELLIPSIS):
        return text[:width], [i for i in indices if i < width]

    tail_length = width - TRUNCATE_HEAD - len(ELLIPSIS)
    tail_start = len(text) - tail_length
    shift = tail_start - TRUNCATE_HEAD - len(ELLIPSIS)

    remapped = []
    for index in indices:
        if index < TRUNCATE_HEAD:
            remapped.append(index)
        elif index >= tail_start:
            remapped.append(index - shift)
    return text[:TRUNCATE_HEAD] + ELLIPSIS + text[tail_start:], remapped


def visible_range(selected: int | None, total: int, height: int) -> range:
    """Window of rows to draw that keeps the selected row on screen."""
    if total <= height:
        return range(total)
    if selected is None:
        return range(height)
    start = max(0, min(selected - height // 2, total - height))
    return range(start, start + height)


def render_row(item, indices: list[int], selected: bool, width: int) -> Text:
    text, offsets = truncate_middle(display_text(item), indices, width)

    match item:
        case ExistingSessionItem(is_current=True):
            style = "bold green"
        case ExistingSessionItem():
            style = "green"
        case RecoverableSessionItem():
            style = "yellow"
        case DirectoryItem():
            style = ""
        case _:
            style = ""

    row = Text(text, style=style)
    for offset in offsets:
        row.stylize("bold underline cyan", offset, offset + 1)
    if selected:
        row.stylize("reverse")
    return row


class PickerApp(App):
    """Full-screen session picker."""

    CSS = """
    #title {
        text-style: bold;
        padding: 0 1;
    }
    #search {
        padding: 0 1;
    }
    #rows {
        height: 1fr;
        padding: 0 1;
    }
    #message {
        content-align: center middle;
        padding: 0 1;
    }
    #help {
        color: $text-muted;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding(key, f"press('{key}')", show=False, priority=True)
        for key in _FORWARDED_KEYS
    ]

    def __init__(self, state: PickerState) -> None:
        super().__init__()
        self.state = state

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(TITLE, id="title")
            yield Static(id="search")
            yield Static(id="rows")
            yield Static(id="message")
            yield Static(id="help")

    def on_mount(self) -> None:
        with trace_context():
            self.state.refresh_sessions()
            self.state.refresh_directories()
        self.redraw()
        # Row widget sizes are only known after the first layout pass
        self.call_after_refresh(self.redraw)

    def on_resize(self) -> None:
        self.redraw()

    def on_key(self, event: Key) -> None:
        if event.is_printable and event.character:
            event.stop()
            event.prevent_default()
            self._dispatch(event.key, event.character)

    def action_press(self, key: str) -> None:
        self._dispatch(key, None)

    def _dispatch(self, key: str, character: str | None) -> None:
        with trace_context():
            changed = self.state.handle_key(key, character)
        if not self.state.visible:
            self.exit()
            return
        if changed:
            self.redraw()

    # =========================================================================
    # Drawing
    # =========================================================================

    def redraw(self) -> None:
        state = self.state
        if state.screen is Screen.NEW_SESSION:
            self._draw_new_session()
        else:
            self._draw_main()

        message = self.query_one("#message", Static)
        if state.error is not None:
            message.update(Text(state.error, style="bold red"))
        elif state.pending_deletion is not None:
            verb = "Delete" if any(
                s.name == state.pending_deletion for s in state.recoverable_sessions
            ) else "Kill"
            message.update(Text(
                f"{verb} session '{state.pending_deletion}'? (y/n)", style="bold yellow"
            ))
        else:
            message.update("")

    def _draw_main(self) -> None:
        state = self.state
        self.query_one("#search", Static).update(f"Search: {state.search.query}_")
        self.query_one("#help", Static).update(MAIN_HELP)

        rows_widget = self.query_one("#rows", Static)
        items = state.display_items()
        if not items:
            if state.search.is_searching:
                rows_widget.update("No matches")
            else:
                rows_widget.update(EMPTY_MESSAGE)
            return

        if state.search.is_searching:
            highlights = [result.indices for result in state.search.results]
        else:
            highlights = [[] for _ in items]

        selected = state.active_selected_index()
        width = max(rows_widget.size.width, 20)
        height = max(rows_widget.size.height, 1)

        rows = [
            render_row(items[position], highlights[position], position == selected, width)
            for position in visible_range(selected, len(items), height)
        ]
        rows_widget.update(Text("\n").join(rows))

    def _draw_new_session(self) -> None:
        info = self.state.new_session
        self.query_one("#search", Static).update("New session")
        self.query_one("#help", Static).update(NEW_SESSION_HELP)

        body = Text()
        body.append("Name:   ", style="bold")
        body.append(f"{info.name}_\n")
        body.append("Folder: ", style="bold")
        body.append(f"{info.folder or '(current directory)'}\n")
        body.append("Layout: ", style="bold")
        body.append(info.layout or "(none)")
        self.query_one("#rows", Static).update(body)

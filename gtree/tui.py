"""Textual TUI for gtree."""

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Static

from gtree.app import HELP_TEXT
from gtree.app import App as Explorer
from gtree.models import Entry, FileStatus, Focus

COMMAND_BAR = "Enter: open  |  c: commit  |  r: refresh  |  d: debug  |  ?: help  |  q: quit"
TICK_SECONDS = 0.1

STATUS_LABELS = {
    FileStatus.CURRENT: " ",
    FileStatus.NEW: "N",
    FileStatus.MODIFIED: "M",
    FileStatus.DELETED: "D",
    FileStatus.RENAMED: "R",
    FileStatus.TYPE_CHANGED: "T",
    FileStatus.CONFLICTED: "U",
}

STATUS_STYLES = {
    FileStatus.CURRENT: "",
    FileStatus.NEW: "green",
    FileStatus.MODIFIED: "yellow",
    FileStatus.DELETED: "red",
    FileStatus.RENAMED: "cyan",
    FileStatus.TYPE_CHANGED: "magenta",
    FileStatus.CONFLICTED: "bold red",
}

DIFF_STYLES = {"+": "green", "-": "red", "@": "cyan"}


CSS = """
Screen {
    layout: vertical;
}

#command_bar {
    padding: 0 1;
    height: 1;
    color: $text-muted;
}

#status_line {
    padding: 0 1;
    height: 1;
}

#panes {
    height: 1fr;
}

.pane {
    border: round $panel;
    height: 1fr;
    padding: 0 1;
}

.pane.focused {
    border: round $accent;
}

#tree {
    width: 30%;
}

#details {
    width: 1fr;
}

#debug {
    width: 35%;
}

.modal {
    align: center middle;
}

.modal-body {
    width: 72;
    max-width: 90;
    height: auto;
    border: thick $primary;
    background: $surface;
    padding: 1 2;
}

.modal-title {
    margin-bottom: 1;
    text-style: bold;
}

.modal-hint {
    margin-top: 1;
    color: $text-muted;
}

.modal-error {
    margin-top: 1;
    color: $error;
}
"""


def format_entry(entry: Entry, expanded: bool) -> str:
    """Format one tree row as plain text."""
    indent = "  " * entry.depth
    if entry.is_error:
        return f"{indent}! {entry.name}"
    marker = ("▾" if expanded else "▸") if entry.is_dir else " "
    suffix = "/" if entry.is_dir else ""
    return f"{indent}{marker} {STATUS_LABELS[entry.status]} {entry.name}{suffix}"


def window_top(total: int, selected: int, height: int, top: int) -> int:
    """Return the first visible row so that selected stays on screen."""
    if height <= 0 or total <= height:
        return 0
    if selected < top:
        top = selected
    elif selected >= top + height:
        top = selected - height + 1
    return min(max(top, 0), total - height)


def _render_tree(explorer: Explorer, height: int, top: int) -> tuple[Text, int]:
    entries = explorer.entries
    if not entries:
        return Text("(no changes)", style="dim"), 0
    top = window_top(len(entries), explorer.selected_index, height, top)
    text = Text(no_wrap=True, overflow="ellipsis")
    for idx in range(top, min(top + max(height, 1), len(entries))):
        entry = entries[idx]
        style = "bold red" if entry.is_error else STATUS_STYLES[entry.status]
        if idx == explorer.selected_index:
            style = f"{style} reverse".strip()
        expanded = bool(explorer.tree.expanded.get(entry.path))
        text.append(format_entry(entry, expanded) + "\n", style=style)
    return text, top


def _render_lines(lines: list[str], scroll: int, height: int, colorize: bool) -> Text:
    text = Text()
    for line in lines[scroll : scroll + max(height, 1)]:
        style = DIFF_STYLES.get(line[:1], "") if colorize else ""
        text.append(line + "\n", style=style)
    return text


class HelpScreen(ModalScreen[None]):
    """Key binding reference."""

    CLOSE_KEYS = {"escape", "question_mark", "q"}

    def compose(self) -> ComposeResult:
        with Vertical(classes="modal"):
            with Vertical(classes="modal-body"):
                yield Static("Help", classes="modal-title")
                yield Static(HELP_TEXT)

    def on_key(self, event: events.Key) -> None:
        # Swallow everything so the tree underneath stays put.
        event.stop()
        event.prevent_default()
        if event.key in self.CLOSE_KEYS:
            self.dismiss(None)


class CommitScreen(ModalScreen[bool]):
    """Commit message modal.

    Keys are fed to the explorer one at a time so the typed text lives in the
    explorer state, not in a widget.
    """

    def __init__(self, explorer: Explorer) -> None:
        super().__init__()
        self.explorer = explorer

    def compose(self) -> ComposeResult:
        with Vertical(classes="modal"):
            with Vertical(classes="modal-body"):
                yield Static("Commit Message", classes="modal-title")
                yield Static("", id="commit_text")
                yield Static("", id="commit_error", classes="modal-error")
                yield Static("Enter to commit, Esc to cancel.", classes="modal-hint")

    def on_mount(self) -> None:
        self._refresh_text()

    def _refresh_text(self) -> None:
        self.query_one("#commit_text", Static).update(Text(self.explorer.commit_text + "▏"))
        self.query_one("#commit_error", Static).update(Text(self.explorer.commit_error or ""))

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        if event.key == "enter":
            if self.explorer.confirm_commit():
                self.dismiss(True)
                return
        elif event.key == "escape":
            self.explorer.cancel_commit()
            self.dismiss(False)
            return
        elif event.key == "backspace":
            self.explorer.backspace()
        elif event.is_printable and event.character:
            self.explorer.type_char(event.character)
        self._refresh_text()


class TuiApp(App[None]):
    """Main textual application."""

    CSS = CSS
    BINDINGS = [
        Binding("q", "quit_explorer", "Quit"),
        Binding("escape", "close_modals", "Close", show=False),
        Binding("up", "move(-1)", "Up", show=False),
        Binding("down", "move(1)", "Down", show=False),
        Binding("pageup", "page(-1)", "Page up", show=False),
        Binding("pagedown", "page(1)", "Page down", show=False),
        Binding("left", "focus_left", "Left", show=False),
        Binding("right", "focus_right", "Right", show=False),
        Binding("enter", "activate", "Open"),
        Binding("c", "commit", "Commit"),
        Binding("r", "refresh", "Refresh"),
        Binding("d", "toggle_debug", "Debug"),
        Binding("question_mark", "help", "Help"),
    ]

    def __init__(self, explorer: Explorer) -> None:
        super().__init__()
        self.explorer = explorer
        self._tree_top = 0

    def compose(self) -> ComposeResult:
        yield Static(COMMAND_BAR, id="command_bar")
        yield Static("", id="status_line")
        with Horizontal(id="panes"):
            yield Static("", id="tree", classes="pane")
            yield Static("", id="details", classes="pane")
            yield Static("", id="debug", classes="pane")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#tree", Static).border_title = "Files"
        self.query_one("#details", Static).border_title = "Details"
        self.query_one("#debug", Static).border_title = "Debug"
        self.call_after_refresh(self._repaint)
        self.set_interval(TICK_SECONDS, self._tick)

    def on_resize(self, event: events.Resize) -> None:
        self._repaint()

    def _tick(self) -> None:
        if self.explorer.poll_debug() and self.explorer.show_debug:
            self._repaint()

    def _set_status(self, message: str | None) -> None:
        self.query_one("#status_line", Static).update(Text(message or ""))

    def _repaint(self) -> None:
        explorer = self.explorer
        tree = self.query_one("#tree", Static)
        details = self.query_one("#details", Static)
        debug = self.query_one("#debug", Static)

        content, self._tree_top = _render_tree(
            explorer, tree.content_size.height, self._tree_top
        )
        tree.update(content)
        details.update(
            _render_lines(
                explorer.detail_text.splitlines(),
                explorer.detail_scroll,
                details.content_size.height,
                colorize=True,
            )
        )
        debug.display = explorer.show_debug
        if explorer.show_debug:
            debug.update(
                _render_lines(
                    explorer.debug_lines, explorer.debug_scroll, debug.content_size.height, False
                )
            )

        for pane, focus in ((tree, Focus.TREE), (details, Focus.DETAILS), (debug, Focus.DEBUG)):
            pane.set_class(explorer.focus is focus, "focused")
        self._set_status(explorer.status_message)

    def action_quit_explorer(self) -> None:
        if self.explorer.can_quit():
            self.exit(None)

    def action_close_modals(self) -> None:
        self.explorer.close_modals()
        self._repaint()

    def action_move(self, delta: int) -> None:
        self.explorer.move(delta)
        self._repaint()

    def action_page(self, direction: int) -> None:
        self.explorer.page(direction)
        self._repaint()

    def action_focus_left(self) -> None:
        self.explorer.focus_left()
        self._repaint()

    def action_focus_right(self) -> None:
        self.explorer.focus_right()
        self._repaint()

    def action_activate(self) -> None:
        self.explorer.activate()
        self._repaint()

    def action_refresh(self) -> None:
        self.explorer.refresh()
        self._repaint()

    def action_toggle_debug(self) -> None:
        self.explorer.toggle_debug()
        self._repaint()

    def action_help(self) -> None:
        self.explorer.toggle_help()
        if self.explorer.show_help:
            self.push_screen(HelpScreen(), callback=self._after_help)

    def _after_help(self, _: None) -> None:
        self.explorer.show_help = False
        self._repaint()

    def action_commit(self) -> None:
        if not self.explorer.open_commit_dialog():
            self._repaint()
            return
        self._repaint()
        self.push_screen(CommitScreen(self.explorer), callback=self._after_commit)

    def _after_commit(self, committed: bool | None) -> None:
        if not committed:
            self.explorer.status_message = "Commit cancelled."
        self._repaint()


def run_tui(explorer: Explorer) -> None:
    """Run the textual TUI application."""
    TuiApp(explorer).run()

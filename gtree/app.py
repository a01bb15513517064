"""Explorer controller: tree, detail pane, focus and the commit dialog."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from .commit import commit, stage_all
from .config import Settings
from .debug_log import DebugChannel
from .diff import assemble, directory_summary
from .errors import CommitFailed, DiffComputationFailed, StagingFailed, StatusQueryFailed
from .models import Entry, Focus, Mode
from .repository import GitRepository, Repository
from .tree_state import ToggleResult, TreeState

logger = logging.getLogger(__name__)

MAX_DEBUG_LINES = 500

HELP_TEXT = """Key Bindings:
Up/Down: Navigate file list or scroll the focused pane
PageUp/PageDown: Move by a page
Left/Right: Switch focus between panes
Enter: Expand/collapse directory or view file details/diff
c: Stage all modified files and open commit dialog
r: Refresh the file list
d: Toggle the debug pane
?: Toggle this help menu
q: Quit the application

In commit dialog:
Enter: Confirm commit
Esc: Cancel commit"""


class App:
    """State behind the explorer UI.

    Every operation is synchronous. Navigation is ignored while the commit
    dialog is open; character input is ignored while it is closed.
    """

    def __init__(
        self,
        repository: Repository,
        settings: Settings | None = None,
        channel: DebugChannel | None = None,
    ) -> None:
        self.repository = repository
        self.settings = settings or Settings()
        self.channel = channel
        self.tree = TreeState(
            repository,
            include_untracked=self.settings.include_untracked,
            scan_filesystem=self.settings.scan_filesystem,
            page_size=self.settings.page_size,
        )
        self.focus = Focus.TREE
        self.mode = Mode.BROWSING
        self.commit_text = ""
        self.commit_error: str | None = None
        self.detail_text = ""
        self.detail_scroll = 0
        self.debug_lines: list[str] = []
        self.debug_scroll = 0
        self.show_help = False
        self.show_debug = self.settings.show_debug
        self.status_message = ""

    @classmethod
    def open(
        cls, path: Path, settings: Settings | None = None, channel: DebugChannel | None = None
    ) -> App:
        """Open the repository containing path and build the initial tree.

        Raises RepositoryUnavailable or StatusQueryFailed; both are fatal at
        startup.
        """
        app = cls(GitRepository.open(path), settings, channel)
        app.load()
        return app

    def load(self) -> None:
        self.tree.reset()

    @property
    def entries(self) -> Sequence[Entry]:
        return self.tree.current_entries()

    @property
    def selected_index(self) -> int:
        return self.tree.selected_index

    def selected_entry(self) -> Entry | None:
        return self.tree.selected_entry()

    # -- navigation -------------------------------------------------------

    def _panes(self) -> list[Focus]:
        panes = [Focus.TREE, Focus.DETAILS]
        if self.show_debug:
            panes.append(Focus.DEBUG)
        return panes

    def move(self, delta: int) -> None:
        """Route a vertical move to the focused pane."""
        if self.mode is not Mode.BROWSING:
            return
        if self.focus is Focus.TREE:
            self.tree.move_selection(delta)
        elif self.focus is Focus.DETAILS:
            self.scroll_details(delta)
        else:
            self.scroll_debug(delta)

    def page(self, direction: int) -> None:
        self.move(direction * self.tree.page_size)

    def focus_left(self) -> None:
        if self.mode is not Mode.BROWSING:
            return
        panes = self._panes()
        idx = panes.index(self.focus) if self.focus in panes else 0
        self.focus = panes[max(idx - 1, 0)]

    def focus_right(self) -> None:
        if self.mode is not Mode.BROWSING:
            return
        panes = self._panes()
        idx = panes.index(self.focus) if self.focus in panes else 0
        self.focus = panes[min(idx + 1, len(panes) - 1)]

    def scroll_details(self, delta: int) -> None:
        last = max(len(self.detail_text.splitlines()) - 1, 0)
        self.detail_scroll = min(max(self.detail_scroll + delta, 0), last)

    def scroll_debug(self, delta: int) -> None:
        last = max(len(self.debug_lines) - 1, 0)
        self.debug_scroll = min(max(self.debug_scroll + delta, 0), last)

    # -- tree and detail --------------------------------------------------

    def activate(self) -> None:
        """Toggle the selected directory, or show the selected file's diff."""
        if self.mode is not Mode.BROWSING:
            return
        entry = self.selected_entry()
        if entry is None:
            return
        result = self.tree.toggle(self.tree.selected_index)
        if result is ToggleResult.VIEW:
            self.view_selected()
        elif result is ToggleResult.FAILED:
            self._set_detail(directory_summary(entry))
            self.status_message = f"Could not expand {entry.path}"
        elif result is not ToggleResult.NOOP:
            self._set_detail(directory_summary(entry))

    def view_selected(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            return
        try:
            text = assemble(self.repository, entry)
        except DiffComputationFailed as exc:
            logger.error("%s", exc)
            text = str(exc)
        self._set_detail(text)

    def _set_detail(self, text: str) -> None:
        self.detail_text = text
        self.detail_scroll = 0

    def refresh(self) -> None:
        """Rebuild the tree, keeping expanded directories."""
        try:
            self.tree.rebuild()
        except StatusQueryFailed as exc:
            logger.error("%s", exc)
            self.tree.show_error(str(exc))
            self.status_message = "Refresh failed."
            return
        self.status_message = "Refreshed."

    # -- commit dialog ----------------------------------------------------

    def open_commit_dialog(self) -> bool:
        """Stage everything and open the commit dialog."""
        if self.mode is not Mode.BROWSING:
            return False
        try:
            staged = stage_all(self.repository)
        except StagingFailed as exc:
            logger.error("%s", exc)
            self.status_message = str(exc)
            return False
        self.mode = Mode.COMPOSING
        self.commit_text = ""
        self.commit_error = None
        self.show_help = False
        self.status_message = f"Staged {len(staged)} path(s)."
        return True

    def type_char(self, char: str) -> None:
        if self.mode is Mode.COMPOSING:
            self.commit_text += char

    def backspace(self) -> None:
        if self.mode is Mode.COMPOSING:
            self.commit_text = self.commit_text[:-1]

    def confirm_commit(self) -> bool:
        """Commit with the typed message; on failure the dialog stays open."""
        if self.mode is not Mode.COMPOSING:
            return False
        try:
            commit_id = commit(self.repository, self.commit_text)
        except CommitFailed as exc:
            logger.error("%s", exc)
            self.commit_error = str(exc)
            return False
        self.mode = Mode.BROWSING
        self.commit_text = ""
        self.commit_error = None
        self._set_detail("")
        try:
            self.tree.reset()
        except StatusQueryFailed as exc:
            logger.error("%s", exc)
            self.tree.show_error(str(exc))
        self.status_message = f"Committed {commit_id[:7]}."
        return True

    def cancel_commit(self) -> None:
        self.mode = Mode.BROWSING
        self.commit_text = ""
        self.commit_error = None

    # -- modals and debug pane --------------------------------------------

    def toggle_help(self) -> None:
        if self.mode is Mode.BROWSING:
            self.show_help = not self.show_help

    def toggle_debug(self) -> None:
        if self.mode is not Mode.BROWSING:
            return
        self.show_debug = not self.show_debug
        if not self.show_debug and self.focus is Focus.DEBUG:
            self.focus = Focus.DETAILS

    def close_modals(self) -> None:
        self.cancel_commit()
        self.show_help = False

    def can_quit(self) -> bool:
        return self.mode is Mode.BROWSING and not self.show_help

    def poll_debug(self) -> bool:
        """Move queued log messages into the debug pane; True if any arrived."""
        if self.channel is None:
            return False
        messages = self.channel.drain()
        if not messages:
            return False
        self.debug_lines.extend(messages)
        del self.debug_lines[:-MAX_DEBUG_LINES]
        return True

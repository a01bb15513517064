"""Expand/collapse tree state and selection over a flat entry sequence."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from gtree.errors import StatusQueryFailed
from gtree.models import Entry, FileStatus
from gtree.repository import Repository
from gtree.tree_builder import build

logger = logging.getLogger(__name__)

Builder = Callable[[str], list[Entry]]


class ToggleResult(Enum):
    """Outcome of toggling an entry."""

    NOOP = "noop"
    VIEW = "view"
    EXPANDED = "expanded"
    COLLAPSED = "collapsed"
    FAILED = "failed"


@dataclass
class _Node:
    entry: Entry
    parent: int | None
    children: list[int] = field(default_factory=list)
    materialized: bool = False


def error_entry(message: str, parent: Entry | None = None) -> Entry:
    """Inline row standing in for a failed status query."""
    return Entry(
        name=f"error: {message}",
        path=f"{parent.path}/" if parent else "",
        status=FileStatus.CURRENT,
        is_dir=False,
        depth=parent.depth + 1 if parent else 0,
        parent_path=parent.path if parent else None,
        error=message,
    )


class TreeState:
    """Owns the expansion set, the node arena and the on-screen sequence.

    Nodes are kept in an arena keyed by id with parent links. The flat
    sequence is a depth-first walk that skips collapsed directories; expand
    and collapse splice it in place so neither walks the whole tree.
    """

    def __init__(
        self,
        repository: Repository,
        *,
        include_untracked: bool = True,
        scan_filesystem: bool = True,
        page_size: int = 10,
    ) -> None:
        self.repository = repository
        self.page_size = max(1, page_size)
        self.expanded: dict[str, bool] = {}
        self.selected_index = 0
        self._build: Builder = lambda scope: build(
            repository,
            scope,
            include_untracked=include_untracked,
            scan_filesystem=scan_filesystem,
        )
        self._nodes: dict[int, _Node] = {}
        self._roots: list[int] = []
        self._flat: list[int] = []
        self._entries: list[Entry] = []
        self._next_id = 0

    @property
    def entries(self) -> Sequence[Entry]:
        return tuple(self._entries)

    def current_entries(self) -> Sequence[Entry]:
        """Read-only view of the on-screen sequence."""
        return self.entries

    def selected_entry(self) -> Entry | None:
        if not self._entries:
            return None
        return self._entries[self.selected_index]

    # -- building ---------------------------------------------------------

    def rebuild(self) -> None:
        """Rebuild from the root, keeping expansions and the selected path.

        Raises StatusQueryFailed when the root status cannot be read.
        """
        selected = self.selected_entry()
        entries = self._build("")
        self._nodes.clear()
        self._roots = self._attach(None, entries)
        self._reflow()
        if selected is not None:
            for idx, entry in enumerate(self._entries):
                if entry.path == selected.path:
                    self.selected_index = idx
                    break
        self._clamp()

    def reset(self) -> None:
        """Collapse everything and rebuild from the root."""
        self.expanded.clear()
        self.selected_index = 0
        self.rebuild()

    def show_error(self, message: str) -> None:
        """Replace the whole tree with a single error row."""
        self._nodes.clear()
        node_id = self._new_node(error_entry(message), None)
        self._roots = [node_id]
        self._reflow()
        self.selected_index = 0

    def _new_node(self, entry: Entry, parent: int | None) -> int:
        node_id = self._next_id
        self._next_id += 1
        self._nodes[node_id] = _Node(entry=entry, parent=parent)
        return node_id

    def _attach(self, parent: int | None, entries: list[Entry]) -> list[int]:
        base = self._nodes[parent].entry.depth + 1 if parent is not None else 0
        ids: list[int] = []
        for entry in entries:
            node_id = self._new_node(replace(entry, depth=base + entry.depth), parent)
            ids.append(node_id)
            if entry.is_dir and self.expanded.get(entry.path):
                self._materialize(node_id)
        return ids

    def _materialize(self, node_id: int) -> bool:
        node = self._nodes[node_id]
        for child in node.children:
            self._forget(child)
        node.children = []
        try:
            entries = self._build(node.entry.path)
        except StatusQueryFailed as exc:
            logger.error("Expanding %s failed: %s", node.entry.path, exc)
            node.children = [self._new_node(error_entry(str(exc), node.entry), node_id)]
            node.materialized = False
            return False
        node.children = self._attach(node_id, entries)
        node.materialized = True
        return True

    def _forget(self, node_id: int) -> None:
        for child in self._nodes[node_id].children:
            self._forget(child)
        del self._nodes[node_id]

    def _walk(self, node_ids: list[int]) -> list[int]:
        visible: list[int] = []
        for node_id in node_ids:
            node = self._nodes[node_id]
            visible.append(node_id)
            if node.entry.is_dir and self.expanded.get(node.entry.path):
                visible.extend(self._walk(node.children))
        return visible

    def _reflow(self) -> None:
        self._flat = self._walk(self._roots)
        self._entries = [self._nodes[node_id].entry for node_id in self._flat]

    # -- toggling ---------------------------------------------------------

    def toggle(self, index: int) -> ToggleResult:
        """Expand or collapse the directory at index; files are viewed."""
        if not 0 <= index < len(self._flat):
            return ToggleResult.NOOP
        node_id = self._flat[index]
        entry = self._nodes[node_id].entry
        if not entry.is_dir:
            return ToggleResult.VIEW

        if self.expanded.get(entry.path):
            self.expanded[entry.path] = False
            end = index + 1
            while end < len(self._entries) and self._entries[end].depth > entry.depth:
                end += 1
            del self._flat[index + 1 : end]
            del self._entries[index + 1 : end]
            if self.selected_index >= end:
                self.selected_index -= end - index - 1
            elif self.selected_index > index:
                self.selected_index = index
            logger.debug("Collapsed %s (%d rows)", entry.path, end - index - 1)
            return ToggleResult.COLLAPSED

        self.expanded[entry.path] = True
        ok = self._materialize(node_id)
        visible = self._walk(self._nodes[node_id].children)
        self._flat[index + 1 : index + 1] = visible
        self._entries[index + 1 : index + 1] = [self._nodes[i].entry for i in visible]
        if self.selected_index > index:
            self.selected_index += len(visible)
        logger.debug("Expanded %s (%d rows)", entry.path, len(visible))
        return ToggleResult.EXPANDED if ok else ToggleResult.FAILED

    # -- selection --------------------------------------------------------

    def _clamp(self) -> None:
        if not self._entries:
            self.selected_index = 0
            return
        self.selected_index = min(max(self.selected_index, 0), len(self._entries) - 1)

    def move_selection(self, delta: int) -> None:
        """Move the selection by delta rows, clamped to the sequence."""
        if not self._entries:
            return
        self.selected_index += delta
        self._clamp()

    def page(self, direction: int) -> None:
        """Move the selection one page up (-1) or down (+1)."""
        self.move_selection(direction * self.page_size)

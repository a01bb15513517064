from __future__ import annotations

import pytest

from gtree.models import Entry, FileStatus
from gtree.tree_state import error_entry
from gtree.tui import format_entry, window_top


def _entry(name: str, status: FileStatus, is_dir: bool, depth: int = 0) -> Entry:
    return Entry(name=name, path=name, status=status, is_dir=is_dir, depth=depth)


def test_format_entry_directories_and_files() -> None:
    assert format_entry(_entry("src", FileStatus.MODIFIED, True), expanded=False) == "▸ M src/"
    assert format_entry(_entry("src", FileStatus.MODIFIED, True), expanded=True) == "▾ M src/"
    assert format_entry(_entry("a.py", FileStatus.NEW, False, depth=2), False) == "      N a.py"


def test_format_entry_error_row() -> None:
    parent = _entry("src", FileStatus.MODIFIED, True)
    assert format_entry(error_entry("boom", parent), False) == "  ! error: boom"


@pytest.mark.parametrize(
    ("total", "selected", "height", "top", "expected"),
    [
        (5, 4, 10, 0, 0),
        (50, 0, 10, 0, 0),
        (50, 12, 10, 0, 3),
        (50, 5, 10, 8, 5),
        (50, 49, 10, 45, 40),
        (50, 20, 0, 7, 0),
    ],
)
def test_window_top_keeps_selection_visible(
    total: int, selected: int, height: int, top: int, expected: int
) -> None:
    assert window_top(total, selected, height, top) == expected

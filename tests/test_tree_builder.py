from __future__ import annotations

from pathlib import Path

import pytest

from gtree.errors import StatusQueryFailed
from gtree.models import FileStatus
from gtree.tree_builder import build
from tests.fakes import FakeRepository
from tests.utils import write


def _names(entries) -> list[str]:
    return [entry.name for entry in entries]


def test_directories_sort_before_files(tmp_path: Path) -> None:
    write(tmp_path, "a/x.txt")
    repo = FakeRepository(
        tmp_path,
        {"c.txt": FileStatus.NEW, "b.txt": FileStatus.MODIFIED, "a/x.txt": FileStatus.NEW},
    )
    entries = build(repo)
    assert _names(entries) == ["a", "b.txt", "c.txt"]
    assert [entry.is_dir for entry in entries] == [True, False, False]


def test_root_build_folds_paths_into_top_level_children(fake_repo: FakeRepository) -> None:
    entries = build(fake_repo)
    assert _names(entries) == ["docs", "src", "b.txt", "c.txt"]
    by_name = {entry.name: entry for entry in entries}
    assert by_name["src"].status is FileStatus.MODIFIED
    assert by_name["docs"].status is FileStatus.DELETED
    assert by_name["c.txt"].status is FileStatus.NEW
    assert all(entry.depth == 0 and entry.parent_path is None for entry in entries)


def test_scoped_build_uses_first_occurrence(fake_repo: FakeRepository) -> None:
    entries = build(fake_repo, "src")
    assert [entry.path for entry in entries] == ["src/lib", "src/app.py"]
    lib = entries[0]
    assert lib.is_dir
    # src/lib/deep/mod.py is reported before src/lib/util.py.
    assert lib.status is FileStatus.NEW
    assert lib.parent_path == "src"
    assert fake_repo.scopes == ["src"]


def test_deleted_directory_is_still_a_directory(tmp_path: Path) -> None:
    repo = FakeRepository(tmp_path, {"gone/file.txt": FileStatus.DELETED})
    (entry,) = build(repo)
    assert entry.name == "gone"
    assert entry.is_dir


def test_collapsed_untracked_directory_is_scanned(tmp_path: Path) -> None:
    write(tmp_path, "newdir/one.txt")
    write(tmp_path, "newdir/sub/two.txt")
    repo = FakeRepository(tmp_path)
    repo.collapsed.add("newdir")

    (top,) = build(repo)
    assert top.path == "newdir"
    assert top.is_dir
    assert top.status is FileStatus.NEW

    children = build(repo, "newdir")
    assert [entry.path for entry in children] == ["newdir/sub", "newdir/one.txt"]
    assert all(entry.status is FileStatus.NEW for entry in children)


def test_failed_lookup_defaults_to_new(tmp_path: Path) -> None:
    write(tmp_path, "newdir/one.txt")
    repo = FakeRepository(tmp_path)
    repo.collapsed.add("newdir")
    repo.fail_lookup = True
    (entry,) = build(repo, "newdir")
    assert entry.name == "one.txt"
    assert entry.status is FileStatus.NEW


def test_scan_skips_clean_directories_and_git_dir(fake_repo: FakeRepository) -> None:
    write(fake_repo.root, "clean/file.txt")
    entries = build(fake_repo)
    assert "clean" not in _names(entries)
    assert "clean" in fake_repo.lookups
    assert ".git" not in fake_repo.lookups
    # Files are only scanned when the scope was reported as a unit.
    assert "b.txt" not in fake_repo.lookups


def test_scan_can_be_disabled(fake_repo: FakeRepository) -> None:
    build(fake_repo, scan_filesystem=False)
    assert fake_repo.lookups == []


def test_untracked_files_excluded_on_request(fake_repo: FakeRepository) -> None:
    fake_repo.untracked.add("c.txt")
    entries = build(fake_repo, include_untracked=False)
    assert "c.txt" not in _names(entries)
    assert fake_repo.lookups == []


def test_status_failure_is_fatal_for_the_build(fake_repo: FakeRepository) -> None:
    fake_repo.fail_status = True
    with pytest.raises(StatusQueryFailed, match="index file corrupt"):
        build(fake_repo)

from __future__ import annotations

from pathlib import Path

import pytest

from gtree.models import FileStatus
from tests.fakes import FakeRepository
from tests.utils import GIT_AVAILABLE, init_repo, write


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GTREE_CONFIG", str(tmp_path / "no-settings.json"))


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    if not GIT_AVAILABLE:
        pytest.skip("git missing")
    return init_repo(tmp_path / "repo")


@pytest.fixture
def fake_repo(tmp_path: Path) -> FakeRepository:
    """Fake repository over a small working tree on disk."""
    root = tmp_path / "work"
    write(root, "src/app.py", "x")
    write(root, "src/lib/util.py", "x")
    write(root, "src/lib/deep/mod.py", "x")
    write(root, "docs/guide.md", "x")
    write(root, "b.txt", "x")
    write(root, "c.txt", "x")
    (root / ".git").mkdir()
    return FakeRepository(
        root,
        {
            "b.txt": FileStatus.MODIFIED,
            "c.txt": FileStatus.NEW,
            "docs/guide.md": FileStatus.DELETED,
            "src/app.py": FileStatus.MODIFIED,
            "src/lib/deep/mod.py": FileStatus.NEW,
            "src/lib/util.py": FileStatus.MODIFIED,
        },
    )

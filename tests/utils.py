"""Helpers for tests that drive a real git repository."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

GIT_AVAILABLE = subprocess.run(["git", "--version"], capture_output=True).returncode == 0

requires_git = pytest.mark.skipif(not GIT_AVAILABLE, reason="git missing")


def run(cmd: list[str], cwd: Path | None = None) -> str:
    result = subprocess.run(
        cmd, cwd=str(cwd) if cwd else None, check=True, capture_output=True, text=True
    )
    return result.stdout


def init_repo(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    run(["git", "init", "-q"], cwd=root)
    run(["git", "config", "user.email", "test@example.com"], cwd=root)
    run(["git", "config", "user.name", "Test"], cwd=root)
    run(["git", "config", "commit.gpgsign", "false"], cwd=root)
    (root / "README.md").write_text("hello\n")
    run(["git", "add", "."], cwd=root)
    run(["git", "commit", "-q", "-m", "init"], cwd=root)
    return root


def write(root: Path, path: str, text: str = "") -> Path:
    target = root / path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text)
    return target

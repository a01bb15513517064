"""In-memory repository used by the unit tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from gtree.git_ops import GitError
from gtree.models import DiffBase, DiffLine, FileStatus, Signature, StatusRecord


def _under(path: str, scope: str) -> bool:
    return not scope or path == scope or path.startswith(scope + "/")


class FakeRepository:
    """Status, diff and commit primitives backed by plain dicts.

    ``statuses`` maps file paths to their status. Paths listed in
    ``untracked`` are hidden when untracked files are excluded. Directories in
    ``collapsed`` are reported as a single record without descending into
    them; with ``--untracked-files=all`` real git only does this for nested
    repositories and submodules.
    """

    def __init__(self, root: Path, statuses: dict[str, FileStatus] | None = None) -> None:
        self.root = root
        self.statuses: dict[str, FileStatus] = dict(statuses or {})
        self.untracked: set[str] = set()
        self.collapsed: set[str] = set()
        self.diffs: dict[tuple[DiffBase, DiffBase], list[DiffLine]] = {}
        self.index: set[str] = set()
        self.pending: list[str] = []
        self.head: str | None = "c0"
        self.commits: list[tuple[str, list[str], str, Signature]] = []
        self.identity = Signature("Test", "test@example.com")
        self.scopes: list[str] = []
        self.lookups: list[str] = []
        self.fail_status = False
        self.fail_lookup = False
        self.fail_diff = False
        self.fail_stage = False

    def query_status(self, scope: str = "", include_untracked: bool = True) -> list[StatusRecord]:
        self.scopes.append(scope)
        if self.fail_status:
            raise GitError(["status"], "index file corrupt")
        records: list[StatusRecord] = []
        for directory in sorted(self.collapsed):
            if include_untracked and (_under(directory, scope) or _under(scope, directory)):
                records.append(StatusRecord(directory, FileStatus.NEW))
        for path, status in sorted(self.statuses.items()):
            if not _under(path, scope):
                continue
            if any(_under(path, d) for d in self.collapsed):
                continue
            if not include_untracked and path in self.untracked:
                continue
            records.append(StatusRecord(path, status))
        return records

    def status_of(self, path: str) -> FileStatus:
        self.lookups.append(path)
        if self.fail_lookup:
            raise GitError(["status", path], "lookup failed")
        if any(_under(path, d) for d in self.collapsed):
            return FileStatus.NEW
        for candidate, status in sorted(self.statuses.items()):
            if _under(candidate, path) and status is not FileStatus.CURRENT:
                return status
        return FileStatus.CURRENT

    def diff(self, base_a: DiffBase, base_b: DiffBase, path_filter: str) -> Iterator[DiffLine]:
        if self.fail_diff:
            raise GitError(["diff", path_filter], "unable to read object")
        return iter(self.diffs.get((base_a, base_b), []))

    def stage(self, path: str) -> None:
        self.pending.append(path)

    def write_index(self) -> None:
        if self.fail_stage:
            raise GitError(["update-index"], "index.lock exists")
        self.index.update(self.pending)
        self.pending = []

    def read_identity(self) -> Signature:
        return self.identity

    def resolve_head(self) -> str:
        if self.head is None:
            raise GitError(["rev-parse", "HEAD"], "ambiguous argument 'HEAD'")
        return self.head

    def write_tree(self) -> str:
        return "tree-" + ",".join(sorted(self.index))

    def write_commit(
        self, tree: str, parents: list[str], message: str, signature: Signature
    ) -> str:
        commit_id = f"c{len(self.commits) + 1:040d}"
        self.commits.append((tree, parents, message, signature))
        self.head = commit_id
        for path in self.index:
            self.statuses.pop(path, None)
        self.collapsed.clear()
        return commit_id

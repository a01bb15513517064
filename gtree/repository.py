"""Repository capability used by the explorer core."""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from gtree import git_ops
from gtree.errors import RepositoryUnavailable
from gtree.models import DiffBase, DiffLine, FileStatus, Signature, StatusRecord

logger = logging.getLogger(__name__)


class Repository(Protocol):
    """Narrow interface over status, diff, staging and commit primitives.

    Paths are repository-relative POSIX strings; ``""`` names the root.
    Implementations raise ``git_ops.GitError`` on failure.
    """

    root: Path

    def query_status(self, scope: str = "", include_untracked: bool = True) -> list[StatusRecord]: ...

    def status_of(self, path: str) -> FileStatus: ...

    def diff(self, base_a: DiffBase, base_b: DiffBase, path_filter: str) -> Iterator[DiffLine]: ...

    def stage(self, path: str) -> None: ...

    def write_index(self) -> None: ...

    def read_identity(self) -> Signature: ...

    def resolve_head(self) -> str: ...

    def write_tree(self) -> str: ...

    def write_commit(
        self, tree: str, parents: list[str], message: str, signature: Signature
    ) -> str: ...


class GitRepository:
    """Repository backed by the git command line client."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._pending: list[str] = []

    @classmethod
    def open(cls, path: Path) -> "GitRepository":
        """Open the repository whose working tree contains path."""
        try:
            root = git_ops.get_repo_root(path)
        except git_ops.GitError as exc:
            raise RepositoryUnavailable(f"not inside a git repository: {path}") from exc
        logger.info("Opened repository at %s", root)
        return cls(root)

    def query_status(self, scope: str = "", include_untracked: bool = True) -> list[StatusRecord]:
        return git_ops.status(self.root, scope, include_untracked)

    def status_of(self, path: str) -> FileStatus:
        # A directory is changed when anything beneath it is.
        records = git_ops.status(self.root, path, include_untracked=True)
        if not records:
            return FileStatus.CURRENT
        for record in records:
            if record.path == path:
                return record.status
        return records[0].status

    def diff(self, base_a: DiffBase, base_b: DiffBase, path_filter: str) -> Iterator[DiffLine]:
        if (base_a, base_b) == (DiffBase.INDEX, DiffBase.WORKDIR):
            if self._is_untracked(path_filter):
                return git_ops.diff_untracked(self.root, path_filter)
            return git_ops.diff(self.root, [], path_filter)
        if (base_a, base_b) == (DiffBase.HEAD, DiffBase.INDEX):
            return git_ops.diff(self.root, ["--cached"], path_filter)
        if (base_a, base_b) == (DiffBase.HEAD, DiffBase.WORKDIR):
            return git_ops.diff(self.root, ["HEAD"], path_filter)
        raise ValueError(f"unsupported diff bases: {base_a.value} -> {base_b.value}")

    def _is_untracked(self, path: str) -> bool:
        if not (self.root / path).is_file():
            return False
        tracked = git_ops.try_run(["ls-files", "--error-unmatch", "--", path], cwd=self.root)
        return tracked is None

    def stage(self, path: str) -> None:
        self._pending.append(path)

    def write_index(self) -> None:
        pending, self._pending = self._pending, []
        if pending:
            git_ops.update_index(self.root, pending)
            logger.debug("Staged %d path(s)", len(pending))

    def read_identity(self) -> Signature:
        return git_ops.read_identity(self.root)

    def resolve_head(self) -> str:
        return git_ops.resolve_head(self.root)

    def write_tree(self) -> str:
        return git_ops.write_tree(self.root)

    def write_commit(
        self, tree: str, parents: list[str], message: str, signature: Signature
    ) -> str:
        commit_id = git_ops.commit_tree(self.root, tree, parents, message, signature)
        subject = message.strip().splitlines()[0] if message.strip() else ""
        old = parents[0] if parents else None
        git_ops.update_ref(self.root, "HEAD", commit_id, old, f"commit: {subject}")
        return commit_id

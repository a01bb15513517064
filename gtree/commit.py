"""Stage every pending change and commit it."""

import logging

from gtree.errors import CommitFailed, StagingFailed
from gtree.git_ops import GitError
from gtree.models import FileStatus
from gtree.repository import Repository

logger = logging.getLogger(__name__)


def stage_all(repository: Repository) -> list[str]:
    """Stage all changed and untracked paths, then persist the index."""
    staged: list[str] = []
    try:
        for record in repository.query_status("", include_untracked=True):
            if record.status is FileStatus.CURRENT:
                continue
            repository.stage(record.path)
            staged.append(record.path)
            if record.orig_path:
                repository.stage(record.orig_path)
                staged.append(record.orig_path)
        repository.write_index()
    except GitError as exc:
        raise StagingFailed(f"staging failed: {exc.stderr}") from exc
    logger.info("Staged %d path(s)", len(staged))
    return staged


def commit(repository: Repository, message: str) -> str:
    """Commit the index on top of HEAD and return the new commit id."""
    if not message.strip():
        raise CommitFailed("commit message is empty")
    try:
        tree = repository.write_tree()
        signature = repository.read_identity()
        parent = repository.resolve_head()
        commit_id = repository.write_commit(tree, [parent], message, signature)
    except GitError as exc:
        raise CommitFailed(f"commit failed: {exc.stderr}") from exc
    logger.info("Created commit %s", commit_id[:12])
    return commit_id

"""Build status-annotated tree entries for one directory scope."""

import logging
import os
import stat
from pathlib import PurePosixPath

from gtree.errors import StatusQueryFailed
from gtree.git_ops import GitError
from gtree.models import Entry, FileStatus
from gtree.repository import Repository

logger = logging.getLogger(__name__)

SKIP_NAMES = {".git"}


def _relative(path: str, scope: str) -> str | None:
    if not scope:
        return path
    if path == scope:
        return ""
    if path.startswith(scope + "/"):
        return path[len(scope) + 1 :]
    return None


def _is_dir(repository: Repository, path: str) -> bool:
    # lstat: a symlink to a directory is a file as far as git is concerned.
    try:
        mode = os.lstat(repository.root / path).st_mode
    except OSError:
        return False
    return stat.S_ISDIR(mode)


def _join(scope: str, name: str) -> str:
    return f"{scope}/{name}" if scope else name


def build(
    repository: Repository,
    scope: str = "",
    *,
    include_untracked: bool = True,
    scan_filesystem: bool = True,
) -> list[Entry]:
    """Return the changed children of scope, directories first.

    Every changed path under ``scope`` is folded into the child of ``scope``
    that contains it. Depths are relative to ``scope``; the caller re-bases
    them when splicing into a deeper tree.
    """
    try:
        records = repository.query_status(scope, include_untracked)
    except GitError as exc:
        raise StatusQueryFailed(f"cannot read status of {scope or '.'}: {exc.stderr}") from exc

    entries: list[Entry] = []
    seen: set[str] = set()
    scope_reported = False

    def register(name: str, status: FileStatus, is_dir: bool) -> None:
        seen.add(name)
        entries.append(
            Entry(
                name=name,
                path=_join(scope, name),
                status=status,
                is_dir=is_dir,
                depth=len(PurePosixPath(name).parts) - 1,
                parent_path=scope or None,
            )
        )

    for record in records:
        rel = _relative(record.path, scope)
        if rel is None:
            continue
        if not rel:
            scope_reported = True
            continue
        parts = PurePosixPath(rel).parts
        name = parts[0]
        if name in seen:
            continue
        is_dir = len(parts) > 1 or _is_dir(repository, _join(scope, name))
        register(name, record.status, is_dir)

    if scan_filesystem and include_untracked:
        _scan(repository, scope, seen, register, scan_files=scope_reported)

    entries.sort(key=lambda entry: (not entry.is_dir, entry.name))
    logger.debug("Built %d entries for %s", len(entries), scope or ".")
    return entries


def _scan(repository, scope, seen, register, scan_files: bool) -> None:
    """Add children of scope that the status query did not descend into.

    Directories are always checked; files only when the status query reported
    the scope as a single unit (an untracked directory, for example).
    """
    directory = repository.root / scope if scope else repository.root
    try:
        with os.scandir(directory) as children:
            names = sorted(
                (child.name, child.is_dir(follow_symlinks=False)) for child in children
            )
    except OSError as exc:
        logger.debug("Skipping scan of %s: %s", directory, exc)
        return

    for name, is_dir in names:
        if name in seen or name in SKIP_NAMES:
            continue
        if not is_dir and not scan_files:
            continue
        path = _join(scope, name)
        try:
            status = repository.status_of(path)
        except GitError as exc:
            logger.debug("Status lookup failed for %s, assuming new: %s", path, exc.stderr)
            status = FileStatus.NEW
        if status is FileStatus.CURRENT:
            continue
        register(name, status, is_dir)

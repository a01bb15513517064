"""Assemble the staged/unstaged diff report shown in the detail pane."""

import logging
from collections.abc import Iterable

from gtree.errors import DiffComputationFailed
from gtree.git_ops import GitError
from gtree.models import DiffBase, DiffLine, Entry, LineKind
from gtree.repository import Repository

logger = logging.getLogger(__name__)

UNSTAGED_HEADER = "Unstaged changes:\n"
STAGED_HEADER = "\nStaged changes:\n"
NO_SECTION_CHANGES = "No changes\n"

MARKERS = {
    LineKind.ADDITION: "+",
    LineKind.DELETION: "-",
    LineKind.ADD_EOFNL: "+",
    LineKind.DEL_EOFNL: "-",
    LineKind.CONTEXT: " ",
}


def no_changes_message(path: str) -> str:
    return f"No changes detected for file: {path}"


def directory_summary(entry: Entry) -> str:
    return f"Directory: {entry.path}"


def filter_lines(lines: Iterable[DiffLine], path: str) -> list[str]:
    """Keep lines owned by path, prefixed with their kind marker.

    A diff may cover several files; ownership is checked against both sides
    so renames and deletions match too.
    """
    kept: list[str] = []
    for line in lines:
        if line.new_path != path and line.old_path != path:
            continue
        kept.append(MARKERS.get(line.kind, "") + line.content)
    return kept


def _section(repository: Repository, base_a: DiffBase, base_b: DiffBase, path: str) -> list[str]:
    try:
        return filter_lines(repository.diff(base_a, base_b, path), path)
    except GitError as exc:
        raise DiffComputationFailed(
            f"cannot diff {path} ({base_a.value} -> {base_b.value}): {exc.stderr}"
        ) from exc


def _join(lines: list[str]) -> str:
    if not lines:
        return NO_SECTION_CHANGES
    text = "".join(lines)
    return text if text.endswith("\n") else text + "\n"


def assemble(repository: Repository, entry: Entry) -> str:
    """Build the detail text for entry.

    Directories get a one-line summary. Files get the index-to-workdir diff
    followed by the HEAD-to-index diff.
    """
    if entry.is_error:
        return entry.error or ""
    if entry.is_dir:
        return directory_summary(entry)

    unstaged = _section(repository, DiffBase.INDEX, DiffBase.WORKDIR, entry.path)
    staged = _section(repository, DiffBase.HEAD, DiffBase.INDEX, entry.path)
    logger.debug(
        "Diff for %s: %d unstaged, %d staged lines", entry.path, len(unstaged), len(staged)
    )
    if not unstaged and not staged:
        return no_changes_message(entry.path)
    return UNSTAGED_HEADER + _join(unstaged) + STAGED_HEADER + _join(staged)

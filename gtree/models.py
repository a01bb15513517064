"""Data models for gtree."""

from dataclasses import dataclass
from enum import Enum


class FileStatus(Enum):
    """Coarse change classification of a path."""

    CURRENT = "current"
    NEW = "new"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    TYPE_CHANGED = "typechange"
    CONFLICTED = "conflicted"


@dataclass(frozen=True)
class StatusRecord:
    """One path reported by the status source."""

    path: str
    status: FileStatus
    orig_path: str | None = None


@dataclass(frozen=True)
class Entry:
    """A single row in the flat on-screen tree."""

    name: str
    path: str
    status: FileStatus
    is_dir: bool
    depth: int
    parent_path: str | None = None
    error: str | None = None

    @property
    def is_error(self) -> bool:
        """Check if this row stands in for a failed status query."""
        return self.error is not None


class DiffBase(Enum):
    """Comparison endpoint of a diff."""

    HEAD = "head"
    INDEX = "index"
    WORKDIR = "workdir"


class LineKind(Enum):
    """Kind of a line record in a diff stream."""

    FILE_HEADER = "file_header"
    HUNK_HEADER = "hunk_header"
    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"
    CONTEXT_EOFNL = "context_eofnl"
    ADD_EOFNL = "add_eofnl"
    DEL_EOFNL = "del_eofnl"


@dataclass(frozen=True)
class DiffLine:
    """One line of a diff, tagged with the file it belongs to."""

    old_path: str | None
    new_path: str | None
    kind: LineKind
    content: str


@dataclass(frozen=True)
class Signature:
    """Author/committer identity."""

    name: str
    email: str


class Focus(Enum):
    """Pane that receives navigation keys."""

    TREE = "tree"
    DETAILS = "details"
    DEBUG = "debug"


class Mode(Enum):
    """Modal state of the explorer."""

    BROWSING = "browsing"
    COMPOSING = "composing"

"""Git subprocess operations."""

import os
import re
import subprocess
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

from gtree.models import DiffLine, FileStatus, LineKind, Signature, StatusRecord

STAGE_BATCH = 200
_HUNK_RE = re.compile(r"^@@ -\d+(?:,(\d+))? \+\d+(?:,(\d+))? @@")
_IDENT_RE = re.compile(r"^(?P<name>.*?) <(?P<email>[^>]*)>")
# Only "\n" ends a diff line; form feeds and carriage returns are content.
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+\Z")
# Keep paths unquoted and the a/ b/ prefixes stable regardless of user config.
_BASE_ARGS = ["-c", "core.quotepath=off", "-c", "diff.noprefix=false"]
_DIFF_ARGS = ["--no-color", "--no-ext-diff", "--src-prefix=a/", "--dst-prefix=b/"]


class GitError(Exception):
    """Git command failed."""

    def __init__(self, cmd: Sequence[str], stderr: str) -> None:
        self.cmd = cmd
        self.stderr = stderr
        super().__init__(f"git {' '.join(cmd)}: {stderr}")


def _run_raw(
    args: Sequence[str],
    cwd: Path | None = None,
    input: str | None = None,
    env: dict[str, str] | None = None,
    ok_codes: tuple[int, ...] = (0,),
) -> str:
    try:
        result = subprocess.run(
            ["git", *_BASE_ARGS, *args],
            cwd=cwd,
            check=False,
            input=input,
            env={**os.environ, **env} if env else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="surrogateescape",
        )
    except OSError as exc:
        raise GitError(args, str(exc)) from exc
    if result.returncode not in ok_codes:
        raise GitError(args, result.stderr.strip() or result.stdout.strip())
    return result.stdout


def run(
    args: Sequence[str],
    cwd: Path | None = None,
    input: str | None = None,
    env: dict[str, str] | None = None,
) -> str:
    """Run a git command and return stdout."""
    return _run_raw(args, cwd=cwd, input=input, env=env).strip()


def try_run(args: Sequence[str], cwd: Path | None = None) -> str | None:
    """Run a git command, returning None on failure."""
    try:
        return run(args, cwd=cwd)
    except GitError:
        return None


def get_repo_root(cwd: Path) -> Path:
    """Get the top-level directory of the working tree containing cwd."""
    return Path(run(["rev-parse", "--show-toplevel"], cwd=cwd)).resolve()


def classify(code: str) -> FileStatus:
    """Map a two-letter porcelain status code to a FileStatus."""
    index, worktree = code[0], code[1]
    if "U" in code or code in ("AA", "DD"):
        return FileStatus.CONFLICTED
    if code == "??":
        return FileStatus.NEW
    if "R" in code or "C" in code:
        return FileStatus.RENAMED
    if index == "A":
        return FileStatus.NEW
    if "D" in code:
        return FileStatus.DELETED
    if "T" in code:
        return FileStatus.TYPE_CHANGED
    if "M" in code:
        return FileStatus.MODIFIED
    if index == " " and worktree == " ":
        return FileStatus.CURRENT
    return FileStatus.MODIFIED


def parse_status(output: str) -> list[StatusRecord]:
    """Parse the output of git status --porcelain=v1 -z."""
    records: list[StatusRecord] = []
    fields = output.split("\0")
    idx = 0
    while idx < len(fields):
        field = fields[idx]
        idx += 1
        if len(field) < 4:
            continue
        code, path = field[:2], field[3:]
        orig_path = None
        if code[0] in ("R", "C") and idx < len(fields):
            # -z puts the rename source in its own field after the target.
            orig_path = fields[idx] or None
            idx += 1
        records.append(StatusRecord(path=path.rstrip("/"), status=classify(code), orig_path=orig_path))
    return records


def status(repo_root: Path, scope: str = "", include_untracked: bool = True) -> list[StatusRecord]:
    """List changed paths under scope (repository-relative)."""
    untracked = "all" if include_untracked else "no"
    args = ["status", "--porcelain=v1", "-z", f"--untracked-files={untracked}", "--ignored=no"]
    if scope:
        args += ["--", scope]
    return parse_status(_run_raw(args, cwd=repo_root))


def parse_diff(output: str) -> Iterator[DiffLine]:
    """Parse unified diff output into line records tagged with file paths."""
    old_path: str | None = None
    new_path: str | None = None
    old_left = 0
    new_left = 0
    last_kind = LineKind.CONTEXT

    for match in _LINE_RE.finditer(output):
        line = match.group()
        text = line.rstrip("\n")
        if old_left > 0 or new_left > 0 or text.startswith("\\"):
            marker = text[:1]
            if marker == "+":
                new_left -= 1
                last_kind = LineKind.ADDITION
                yield DiffLine(old_path, new_path, LineKind.ADDITION, line[1:])
                continue
            if marker == "-":
                old_left -= 1
                last_kind = LineKind.DELETION
                yield DiffLine(old_path, new_path, LineKind.DELETION, line[1:])
                continue
            if marker == " " or text == "":
                old_left -= 1
                new_left -= 1
                last_kind = LineKind.CONTEXT
                yield DiffLine(old_path, new_path, LineKind.CONTEXT, line[1:])
                continue
            if marker == "\\":
                eof_kind = {
                    LineKind.ADDITION: LineKind.ADD_EOFNL,
                    LineKind.DELETION: LineKind.DEL_EOFNL,
                }.get(last_kind, LineKind.CONTEXT_EOFNL)
                yield DiffLine(old_path, new_path, eof_kind, line)
                continue

        if text.startswith("diff --git "):
            old_left = new_left = 0
            old_path, new_path = _split_header_paths(text[len("diff --git ") :])
        elif text.startswith("--- "):
            old_path = _strip_prefix(text[4:], "a/") or old_path
            if text[4:] == "/dev/null":
                old_path = None
        elif text.startswith("+++ "):
            new_path = _strip_prefix(text[4:], "b/") or new_path
            if text[4:] == "/dev/null":
                new_path = None
        elif text.startswith("@@"):
            match = _HUNK_RE.match(text)
            if match:
                old_left = int(match.group(1)) if match.group(1) is not None else 1
                new_left = int(match.group(2)) if match.group(2) is not None else 1
            yield DiffLine(old_path, new_path, LineKind.HUNK_HEADER, line)
            continue
        yield DiffLine(old_path, new_path, LineKind.FILE_HEADER, line)


def _strip_prefix(path: str, prefix: str) -> str | None:
    # git appends a tab to ---/+++ paths that contain spaces.
    path = path.removesuffix("\t")
    if path == "/dev/null":
        return None
    return path.removeprefix(prefix)


def _split_header_paths(rest: str) -> tuple[str | None, str | None]:
    # "a/<old> b/<new>"; with identical halves the split point is unambiguous.
    if rest.startswith("a/"):
        body = rest[2:]
        half = (len(body) - 3) // 2
        if body[half : half + 3] == " b/" and body[:half] == body[half + 3 :]:
            return body[:half], body[half + 3 :]
        old, sep, new = body.partition(" b/")
        if sep:
            return old, new
    return None, None


def diff(repo_root: Path, args: Sequence[str], path: str) -> Iterator[DiffLine]:
    """Run git diff with the given extra args, limited to path."""
    output = _run_raw(["diff", *_DIFF_ARGS, *args, "--", path], cwd=repo_root)
    return parse_diff(output)


def diff_untracked(repo_root: Path, path: str) -> Iterator[DiffLine]:
    """Diff an untracked file against an empty file."""
    # --no-index exits 1 when the inputs differ.
    output = _run_raw(
        ["diff", "--no-index", *_DIFF_ARGS, "--", os.devnull, path],
        cwd=repo_root,
        ok_codes=(0, 1),
    )
    return parse_diff(output)


def update_index(repo_root: Path, paths: Iterable[str]) -> None:
    """Add, update or remove paths in the index to match the working tree."""
    pending = list(paths)
    for start in range(0, len(pending), STAGE_BATCH):
        batch = pending[start : start + STAGE_BATCH]
        _run_raw(
            ["update-index", "--add", "--remove", "-z", "--stdin"],
            cwd=repo_root,
            input="\0".join(batch) + "\0",
        )


def write_tree(repo_root: Path) -> str:
    """Write the index as a tree object."""
    return run(["write-tree"], cwd=repo_root)


def resolve_head(repo_root: Path) -> str:
    """Resolve HEAD to a commit id."""
    return run(["rev-parse", "--verify", "HEAD^{commit}"], cwd=repo_root)


def read_identity(repo_root: Path) -> Signature:
    """Read the committer identity git would use in this repository."""
    ident = run(["var", "GIT_COMMITTER_IDENT"], cwd=repo_root)
    match = _IDENT_RE.match(ident)
    if not match:
        raise GitError(["var", "GIT_COMMITTER_IDENT"], f"unparseable identity: {ident}")
    return Signature(name=match.group("name"), email=match.group("email"))


def commit_tree(
    repo_root: Path, tree: str, parents: Sequence[str], message: str, signature: Signature
) -> str:
    """Create a commit object and return its id."""
    env = {
        "GIT_AUTHOR_NAME": signature.name,
        "GIT_AUTHOR_EMAIL": signature.email,
        "GIT_COMMITTER_NAME": signature.name,
        "GIT_COMMITTER_EMAIL": signature.email,
    }
    args = ["commit-tree", tree]
    for parent in parents:
        args += ["-p", parent]
    return run(args, cwd=repo_root, input=message, env=env)


def update_ref(repo_root: Path, ref: str, new: str, old: str | None, reason: str) -> None:
    """Point ref at new, checking it still points at old."""
    args = ["update-ref", "-m", reason, ref, new]
    if old:
        args.append(old)
    run(args, cwd=repo_root)

"""Command line entry point for gtree."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import NoReturn

import click

from gtree.app import App
from gtree.config import ConfigError, Settings, load_settings
from gtree.debug_log import DebugChannel
from gtree.diff import assemble
from gtree.errors import GtreeError
from gtree.models import Entry, FileStatus
from gtree.repository import GitRepository

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@contextmanager
def _logging(settings: Settings, channel: DebugChannel | None) -> Iterator[None]:
    logger = logging.getLogger("gtree")
    handlers: list[logging.Handler] = []
    if channel is not None:
        handlers.append(channel)
    if settings.log_file:
        file_handler = logging.FileHandler(Path(settings.log_file).expanduser(), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)
    previous_level = logger.level
    logger.setLevel(logging.DEBUG if handlers else logging.WARNING)
    for handler in handlers:
        logger.addHandler(handler)
    try:
        yield
    finally:
        for handler in handlers:
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(previous_level)


def _listing_line(entry: Entry) -> str:
    indent = "  " * entry.depth
    if entry.is_error:
        return f"{indent}! {entry.name}"
    suffix = "/" if entry.is_dir else ""
    return f"{indent}{entry.status.value:<10} {entry.name}{suffix}"


def _fail(message: str) -> NoReturn:
    click.echo(f"gtree: {message}", err=True)
    raise SystemExit(1)


def _open(directory: Path, settings: Settings, channel: DebugChannel | None = None) -> App:
    try:
        return App.open(directory, settings, channel)
    except GtreeError as exc:
        _fail(str(exc))


@click.group(context_settings={"help_option_names": ["-h", "--help"]}, invoke_without_command=True)
@click.option(
    "-C",
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Run as if started in this directory.",
)
@click.option("--untracked/--no-untracked", default=None, help="Show untracked files.")
@click.option("--debug/--no-debug", default=None, help="Show the debug pane.")
@click.option("--page-size", type=click.IntRange(min=1), default=None, help="Rows per page step.")
@click.pass_context
def main(
    ctx: click.Context,
    directory: Path,
    untracked: bool | None,
    debug: bool | None,
    page_size: int | None,
) -> None:
    """gtree: browse, diff and commit working tree changes."""
    try:
        settings = load_settings(
            include_untracked=untracked, show_debug=debug, page_size=page_size
        )
    except ConfigError as exc:
        _fail(str(exc))
    ctx.obj = {"directory": directory, "settings": settings}
    if ctx.invoked_subcommand is not None:
        return

    if not sys.stdin.isatty() or not sys.stdout.isatty():
        with _logging(settings, None):
            explorer = _open(directory, settings)
        for entry in explorer.entries:
            click.echo(_listing_line(entry))
        return

    from gtree.tui import run_tui

    channel = DebugChannel()
    with _logging(settings, channel):
        explorer = _open(directory, settings, channel)
        run_tui(explorer)


@main.command("list")
@click.option("--all", "expand_all", is_flag=True, help="Expand every directory.")
@click.pass_context
def list_command(ctx: click.Context, expand_all: bool) -> None:
    """Print the change tree."""
    settings: Settings = ctx.obj["settings"]
    with _logging(settings, None):
        explorer = _open(ctx.obj["directory"], settings)
        if expand_all:
            idx = 0
            while idx < len(explorer.entries):
                entry = explorer.entries[idx]
                if entry.is_dir and not explorer.tree.expanded.get(entry.path):
                    explorer.tree.toggle(idx)
                idx += 1
    for entry in explorer.entries:
        click.echo(_listing_line(entry))


@main.command("diff")
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
def diff_command(ctx: click.Context, file: Path) -> None:
    """Print the unstaged and staged diff of FILE."""
    directory: Path = ctx.obj["directory"]
    try:
        repository = GitRepository.open(directory)
    except GtreeError as exc:
        _fail(str(exc))
    target = (directory / file).resolve()
    try:
        path = target.relative_to(repository.root).as_posix()
    except ValueError:
        _fail(f"{file} is outside the repository")
    entry = Entry(
        name=PurePosixPath(path).name,
        path=path,
        status=FileStatus.CURRENT,
        is_dir=target.is_dir(),
        depth=0,
    )
    with _logging(ctx.obj["settings"], None):
        try:
            text = assemble(repository, entry)
        except GtreeError as exc:
            _fail(str(exc))
    click.echo(text.rstrip("\n"))


if __name__ == "__main__":
    main()

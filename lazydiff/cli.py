"""Command-line front door for lazydiff.

Parses CLI options, resolves the comparison to run, and performs the startup
checks that may end the process. Then dispatches into the interactive loop,
or prints the file tree when ``--nopager`` is given.
"""

from __future__ import annotations

import argparse
import logging
import os
import shutil
import sys
import termios
from collections.abc import Sequence
from logging.handlers import RotatingFileHandler
from pathlib import Path

from platformdirs import user_log_dir

from .config import PagingConfig, describe_command, load_config, load_theme_name
from .diff_model import FileDiffRecord, parse_diff
from .errors import ConfigError, DiffSourceError, PersistenceError
from .external_tool import DefaultDiff, ExternalDiffCommand, ExternalToolInvoker
from .git_source import GitDiffSource
from .navigation import NavigationController
from .operation_mode import WorkingTree, describe_mode, mode_from_args, requires_git_repo
from .persistence import CheckStateStore, CheckStateWriter
from .runtime import RuntimeOptions, run_main_loop
from .terminal import TerminalController
from .tree_model import build_display_rows, format_display_row
from .ui_theme import PLAIN_THEME, UITheme, available_theme_names, resolve_theme

logger = logging.getLogger(__name__)

APP_NAME = "lazydiff"
DEFAULT_LOG_PATH = Path(user_log_dir(APP_NAME, appauthor=False)) / f"{APP_NAME}.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3
WRITER_FLUSH_SECONDS = 2.0
CHECK_STATE_MAX_AGE_DAYS = 30
NO_DIFFERENCES_MESSAGE = "No differences found."
NOT_A_REPOSITORY_MESSAGE = "Not in a git repository"


def configure_logging(verbose: bool, log_file: Path | None = None) -> Path | None:
    """Attach a rotating file handler to the ``lazydiff`` logger.

    Nothing is ever logged to the terminal the TUI draws on. Without
    ``--verbose`` or ``--log-file`` records are discarded.
    """
    package_logger = logging.getLogger(APP_NAME)
    package_logger.handlers.clear()
    target = log_file if log_file is not None else (DEFAULT_LOG_PATH if verbose else None)
    if target is None:
        package_logger.addHandler(logging.NullHandler())
        package_logger.propagate = False
        return None

    target.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=target,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    package_logger.propagate = False
    return target


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Browse a diff as a navigable file tree in the terminal.",
    )
    parser.add_argument(
        "targets",
        nargs="*",
        metavar="REF_OR_PATH",
        help="Nothing for working-tree changes, one ref to diff against, or two refs/paths to compare.",
    )
    parser.add_argument("--cached", action="store_true", help="Show staged changes.")
    parser.add_argument("--status", action="store_true", help="Show git status with diffs.")
    parser.add_argument("--config", type=Path, default=None, metavar="FILE", help="Read config from FILE.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--nopager", action="store_true", help="Print the file tree and exit.")
    parser.add_argument("--verbose", action="store_true", help="Write debug logs to the log file.")
    parser.add_argument("--log-file", type=Path, default=None, metavar="FILE", help="Write logs to FILE.")
    return parser


def render_tree_text(records: Sequence[FileDiffRecord], width: int, theme: UITheme) -> str:
    """Render the flattened file tree with stats, one row per line."""
    out: list[str] = []
    for row in build_display_rows(records):
        line = format_display_row(row, width, theme=theme)
        out.append(line.rstrip())
    return "\n".join(out) + "\n"


def load_checked_files(store: CheckStateStore, records: Sequence[FileDiffRecord]) -> set[str]:
    identities = [record.identity for record in records if record.identity is not None]
    try:
        return store.load(identities)
    except PersistenceError as exc:
        logger.warning("ignoring saved check marks: %s", exc)
        return set()


def _resolve_theme(args: argparse.Namespace, config: dict[str, object]) -> UITheme:
    if args.no_color:
        return PLAIN_THEME
    return resolve_theme(args.theme or load_theme_name(config))


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI arguments and launch the diff viewer.

    Piped stdin is parsed as the diff; otherwise the comparison is produced by
    git (or ``diff -u`` for non-ref paths). Startup failures exit with a
    message before any terminal state is touched.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.log_file)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        raise SystemExit(f"Error: {exc}") from exc
    command = PagingConfig.from_config(config).resolve_command()
    theme = _resolve_theme(args, config)

    source: GitDiffSource | None = None
    piped = not sys.stdin.isatty() and not args.targets and not args.cached and not args.status
    if piped:
        mode = WorkingTree()
        records = parse_diff(sys.stdin.read())
        if isinstance(command, ExternalDiffCommand):
            logger.warning("external diff command ignored for piped input")
            command = DefaultDiff()
    else:
        try:
            mode = mode_from_args(args.targets, cached=args.cached, status=args.status)
        except ValueError as exc:
            raise SystemExit(f"Error: {exc}") from exc
        if requires_git_repo(mode) and not GitDiffSource.is_git_repo():
            raise SystemExit(f"Error: {NOT_A_REPOSITORY_MESSAGE}")
        source = GitDiffSource()
        try:
            records = parse_diff(source.get_diff(mode))
        except DiffSourceError as exc:
            raise SystemExit(f"Error: {exc}") from exc

    logger.info("%s: %d files", describe_mode(mode), len(records))
    if not records:
        print(NO_DIFFERENCES_MESSAGE)
        return

    if args.nopager:
        width = shutil.get_terminal_size((80, 24)).columns
        tree_theme = theme if sys.stdout.isatty() else PLAIN_THEME
        sys.stdout.write(render_tree_text(records, width, tree_theme))
        return

    store = CheckStateStore()
    try:
        store.cleanup_old_files(CHECK_STATE_MAX_AGE_DAYS)
    except PersistenceError as exc:
        logger.warning("check-state cleanup failed: %s", exc)
    writer = CheckStateWriter(store)
    controller = NavigationController(
        records,
        content_source=(lambda path: source.get_file_diff(mode, path)) if source else None,
        invoker=ExternalToolInvoker(command, mode, is_git_ref=source.is_git_ref if source else None),
        save_check_state=writer.submit,
        checked_files=load_checked_files(store, records),
    )
    options = RuntimeOptions(
        mode_label=describe_mode(mode) if not piped else "stdin",
        tool_label=describe_command(command),
        theme=theme,
        no_color=args.no_color,
    )
    load_records = (lambda: parse_diff(source.get_diff(mode))) if source else None

    try:
        terminal, tty_fd = TerminalController.open_interactive()
    except (OSError, termios.error) as exc:
        raise SystemExit(f"Error: no terminal available: {exc}") from exc
    try:
        run_main_loop(controller, terminal, terminal.stdin_fd, options, load_records)
    finally:
        if tty_fd is not None:
            os.close(tty_fd)
        writer.flush(WRITER_FLUSH_SECONDS)


if __name__ == "__main__":
    main()

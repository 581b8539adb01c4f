"""
summarize_repo — Summarize and export the files of a project.

Overview
--------
This utility browses a project directory and works on a selection of its
files and folders:

1) **summarize** — heuristic report per file (imports, dependents, public
   interfaces, architecture/security/performance/testing signals, comment and
   complexity metrics, language specific analysis) or per folder (statistics,
   file types, contents). Reports are saved in a summary store and replace
   older reports of the same path.

2) **export** — one Markdown, HTML, plain text or JSON document holding the
   selection tree, the selected file contents (optionally comment-stripped)
   and the saved summaries flagged for inclusion.

3) **summaries** — list saved summaries, flip their inclusion, remove them.

4) **strip** — print a file without its comments.

Usage
-----
Run `python -m summarize_repo.cli --help` for full options. Common examples:
    - Summarize two files:
        uv run summarize-repo summarize --root . src/app.py src/models.py
    - Export the selection as JSON, without comments:
        uv run summarize-repo export --select src --output bundle.json --strip-comments
    - Exclude a saved summary from exports:
        uv run summarize-repo summaries --toggle src/app.py
"""

from __future__ import annotations

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from summarize_repo.comments import strip_comments_for_path
from summarize_repo.exceptions import SummarizeRepoError
from summarize_repo.file_manipulation import read_text
from summarize_repo.file_tree import ProjectTree
from summarize_repo.imports_index import ImportExportIndex
from summarize_repo.logging import logger, setup_logging
from summarize_repo.output_construction import write_export
from summarize_repo.settings import Settings
from summarize_repo.store import AnalysisStore
from summarize_repo.tasks import AnalysisRunner

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    CommandFn = Callable[[Settings], int]

COMMANDS: dict[str, CommandFn] = {}


def command(name: str) -> Callable[[CommandFn], CommandFn]:
    """Decorator registering a sub-command handler under ``name``."""

    def decorator(func: CommandFn) -> CommandFn:
        COMMANDS[name] = func
        return func

    return decorator


def package_version() -> str:
    try:
        return version("summarize-repo")
    except PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="summarize-repo",
        description="Summarize project files and export them as one document.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {package_version()}")
    p.add_argument("--config", type=Path, default=None, help="YAML settings file.")
    p.add_argument("--store", dest="store_path", type=Path, default=None, help="Saved summaries file.")
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    sub = p.add_subparsers(dest="command", required=True)

    def add_root(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--root", type=Path, default=None, help="Project root directory.")
        sp.add_argument(
            "--show-hidden",
            action="store_true",
            default=None,
            help="List dot-files and dot-directories.",
        )

    summarize = sub.add_parser("summarize", help="Generate reports for files or folders.")
    add_root(summarize)
    summarize.add_argument("selected", nargs="+", type=Path, help="Files or folders (relative to --root).")
    summarize.add_argument("--comment", type=str, default=None, help="Text appended to each report.")
    summarize.add_argument(
        "--no-save",
        dest="save",
        action="store_false",
        default=None,
        help="Do not store the generated reports.",
    )
    summarize.add_argument(
        "--max-analysis-bytes",
        type=int,
        default=None,
        help="Analyze only the head of larger files.",
    )

    export = sub.add_parser("export", help="Export the selection as one document.")
    add_root(export)
    export.add_argument(
        "--select",
        dest="selected",
        action="append",
        type=Path,
        default=None,
        help="File or folder to export (repeatable).",
    )
    export.add_argument("--output", type=Path, default=None, help="Output file or directory.")
    export.add_argument(
        "--format",
        type=str,
        default=None,
        help="markdown, html, plain_text, json or text (default: from --output suffix).",
    )
    export.add_argument("--strip-comments", action="store_true", default=None, help="Strip comments.")
    export.add_argument(
        "--no-summaries",
        dest="include_summaries",
        action="store_false",
        default=None,
        help="Leave saved summaries out.",
    )
    export.add_argument(
        "--no-images",
        dest="include_images",
        action="store_false",
        default=None,
        help="Leave image files out.",
    )

    summaries = sub.add_parser("summaries", help="List or edit saved summaries.")
    action = summaries.add_mutually_exclusive_group()
    action.add_argument("--toggle", type=str, default=None, help="Flip export inclusion (path or id).")
    action.add_argument("--remove", type=str, default=None, help="Delete a saved summary (path or id).")

    strip = sub.add_parser("strip", help="Print a file without its comments.")
    strip.add_argument("selected", nargs=1, type=Path, help="File to print.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse the command line into settings.

    Options left unset do not override values from ``--config``.

    Args:
        argv (Sequence[str] | None): arguments, ``sys.argv[1:]`` when None

    Returns:
        Settings: the merged settings
    """
    args = build_parser().parse_args(argv)
    config_path = args.config
    overrides = {k: v for k, v in vars(args).items() if v is not None and k != "config"}
    if config_path is not None:
        return Settings.from_yaml(config_path, **overrides)
    return Settings(**overrides)


def _open_tree(settings: Settings) -> ProjectTree:
    return ProjectTree(settings.root, show_hidden=settings.show_hidden)


def _open_store(settings: Settings) -> AnalysisStore:
    store = AnalysisStore(settings.store_path, index=ImportExportIndex(extensions=tuple(settings.resolve_extensions)))
    store.load()
    return store


@command("summarize")
def run_summarize(settings: Settings) -> int:
    tree = _open_tree(settings)
    nodes = tree.select(settings.selected)
    store = _open_store(settings)
    with AnalysisRunner(store, project_root=tree.root, max_analysis_bytes=settings.max_analysis_bytes) as runner:
        results = runner.submit_summary(nodes, settings.comment, save=settings.save).result()
    print("\n".join(r.content for r in results), end="")
    return 0


@command("export")
def run_export(settings: Settings) -> int:
    tree = _open_tree(settings)
    nodes = tree.select(settings.selected)
    store = _open_store(settings)
    config = settings.export_config()
    with AnalysisRunner(store, project_root=tree.root) as runner:
        document = runner.submit_export(nodes, config).result()
    target = write_export(document, settings.output or Path.cwd(), config.output_format)
    print(f"Wrote {target} format={config.output_format.value} items={len(nodes)}")
    return 0


@command("summaries")
def run_summaries(settings: Settings) -> int:
    store = _open_store(settings)
    if settings.toggle:
        s = store.toggle_summary(settings.toggle)
        print(f"{s.file_name}: {'included' if s.is_included else 'excluded'}")
        return 0
    if settings.remove:
        if not store.remove_summary(settings.remove):
            print(f"No saved summary for {settings.remove}", file=sys.stderr)
            return 1
        print(f"Removed {settings.remove}")
        return 0
    for s in store.summaries:
        mark = "x" if s.is_included else " "
        print(f"[{mark}] {s.file_name}  {s.timestamp:%Y-%m-%d %H:%M:%S}  {s.id}")
    return 0


@command("strip")
def run_strip(settings: Settings) -> int:
    path = settings.selected[0]
    print(strip_comments_for_path(path, read_text(path)), end="")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except ValidationError as e:
        for err in e.errors():
            print(f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}", file=sys.stderr)
        return 1
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        return COMMANDS[settings.command](settings)
    except SummarizeRepoError as e:
        logger.error("%s failed: %s", settings.command, e.message)
        print(e.message, file=sys.stderr)
        return 1
    except KeyError as e:
        print(e.args[0] if e.args else str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

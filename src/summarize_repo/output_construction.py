from __future__ import annotations

import html
import io
import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from summarize_repo.comments import strip_comments_for_path
from summarize_repo.config import EXPORT_BUILDERS, OutputFormat, guess_file_type, guess_language, is_image, register_export_format
from summarize_repo.exceptions import FileReadError
from summarize_repo.file_manipulation import is_hidden, make_meta_string, now_iso, now_stamp, read_text
from summarize_repo.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from summarize_repo.file_tree import FileNode
    from summarize_repo.settings import ExportConfig
    from summarize_repo.store import SavedSummary

_BACKTICK_RUN = re.compile(r"`{3,}")


@dataclass(frozen=True)
class ExportEntry:
    name: str
    content: str
    language: str


def _visible(node: FileNode, config: ExportConfig) -> bool:
    if not config.show_hidden_files and is_hidden(node.name):
        return False
    return config.include_images or node.is_directory or not is_image(node.path)


def _ordered(selected: Sequence[FileNode], config: ExportConfig) -> list[FileNode]:
    return sorted((n for n in selected if _visible(n, config)), key=lambda n: (n.name, str(n.path)))


def build_file_tree(selected: Sequence[FileNode], config: ExportConfig) -> str:
    """Render selected items as ``- name`` lines, directories followed by their indented children.

    Args:
        selected (Sequence[FileNode]): the selected nodes
        config (ExportConfig): export options (hidden files and images filtering)

    Returns:
        str: the tree, one entry per line
    """
    out = io.StringIO()
    for node in _ordered(selected, config):
        out.write(f"- {node.name}\n")
        if node.is_directory:
            children = sorted((c for c in node.children or [] if _visible(c, config)), key=lambda c: c.name)
            for child in children:
                out.write(f"  {child.name}\n")
    return out.getvalue()


def collect_entries(selected: Sequence[FileNode], config: ExportConfig) -> list[ExportEntry]:
    """Load the contents of every selected file, in name order.

    Comments are stripped when the export asks for it or when the file's own
    ``include_comments`` is off. Images are replaced by a size stub. Files
    that cannot be read are skipped with a warning.

    Args:
        selected (Sequence[FileNode]): the selected nodes
        config (ExportConfig): export options

    Returns:
        list[ExportEntry]: one entry per readable selected file
    """
    entries: list[ExportEntry] = []
    for node in _ordered(selected, config):
        if node.is_directory:
            continue
        if is_image(node.path):
            entries.append(ExportEntry(node.name, make_meta_string(node.path), ""))
            continue
        try:
            content = read_text(node.path, keep_newlines=True)
        except FileReadError as e:
            logger.warning("Skipping file in export: %s", e.message)
            continue
        if config.strip_comments or not node.include_comments:
            content = strip_comments_for_path(node.path, content)
        entries.append(ExportEntry(node.name, content, guess_language(guess_file_type(node.path))))
    return entries


def _summaries(summaries: Sequence[SavedSummary], config: ExportConfig) -> list[SavedSummary]:
    if not config.include_summaries:
        return []
    return [s for s in summaries if s.is_included]


def _fence(content: str) -> str:
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN.finditer(content)), default=2)
    return "`" * max(3, longest + 1)


@register_export_format(OutputFormat.MARKDOWN)
def build_markdown(
    selected: Sequence[FileNode],
    summaries: Sequence[SavedSummary],
    config: ExportConfig,
    timestamp: str,
) -> str:
    """Markdown export: title, selected files tree, fenced file contents, then summaries."""
    out = io.StringIO()
    out.write(f"# Export {timestamp}\n\n")
    out.write("## Selected Files\n\n")
    out.write(build_file_tree(selected, config))
    out.write("\n## File Contents\n\n")
    for entry in collect_entries(selected, config):
        fence = _fence(entry.content)
        out.write(f"### {entry.name}\n\n")
        out.write(f"{fence}{entry.language}\n{entry.content}")
        if not entry.content.endswith("\n"):
            out.write("\n")
        out.write(f"{fence}\n\n")
    included = _summaries(summaries, config)
    if included:
        out.write("## Summaries\n\n")
        for summary in included:
            out.write(f"### {summary.display_name}\n\n{summary.content.rstrip()}\n\n")
    return out.getvalue().rstrip() + "\n"


@register_export_format(OutputFormat.HTML)
def build_html(
    selected: Sequence[FileNode],
    summaries: Sequence[SavedSummary],
    config: ExportConfig,
    timestamp: str,
) -> str:
    """HTML export; every user provided text is escaped."""
    title = html.escape(f"Export {timestamp}")
    out = io.StringIO()
    out.write("<!DOCTYPE html>\n<html>\n<head>\n")
    out.write('<meta charset="utf-8">\n')
    out.write(f"<title>{title}</title>\n")
    out.write("<style>\n")
    out.write("body { font-family: -apple-system, BlinkMacSystemFont, sans-serif; }\n")
    out.write("pre { background: #f5f5f5; padding: 1em; border-radius: 4px; }\n")
    out.write("</style>\n</head>\n<body>\n")
    out.write(f"<h1>{title}</h1>\n")
    out.write("<h2>Selected Files</h2>\n<pre>\n")
    out.write(html.escape(build_file_tree(selected, config)))
    out.write("</pre>\n<h2>File Contents</h2>\n")
    for entry in collect_entries(selected, config):
        css = f' class="language-{entry.language}"' if entry.language else ""
        out.write(f"<h3>{html.escape(entry.name)}</h3>\n")
        out.write(f"<pre><code{css}>{html.escape(entry.content)}</code></pre>\n")
    included = _summaries(summaries, config)
    if included:
        out.write("<h2>Summaries</h2>\n")
        for summary in included:
            out.write(f"<h3>{html.escape(summary.display_name)}</h3>\n")
            body = html.escape(summary.content).replace("\n", "<br>\n")
            out.write(f"<div class='summary'>\n{body}</div>\n")
    out.write("</body></html>\n")
    return out.getvalue()


@register_export_format([OutputFormat.PLAIN_TEXT, OutputFormat.TEXT])
def build_plain_text(
    selected: Sequence[FileNode],
    summaries: Sequence[SavedSummary],
    config: ExportConfig,
    timestamp: str,
) -> str:
    out = io.StringIO()
    out.write(f"Export {timestamp}\n\n")
    out.write("Selected Files:\n\n")
    out.write(build_file_tree(selected, config))
    out.write("\nFile Contents:\n\n")
    for entry in collect_entries(selected, config):
        out.write(f"=== {entry.name} ===\n\n{entry.content}\n\n")
    included = _summaries(summaries, config)
    if included:
        out.write("Summaries:\n\n")
        for summary in included:
            out.write(f"=== {summary.display_name} ===\n\n{summary.content}\n\n")
    return out.getvalue().rstrip() + "\n"


@register_export_format(OutputFormat.JSON)
def build_json(
    selected: Sequence[FileNode],
    summaries: Sequence[SavedSummary],
    config: ExportConfig,
    timestamp: str,
) -> str:
    """JSON export: ``{timestamp, fileTree, files: [{name, content}], summaries: [{name, content}]}``."""
    document = {
        "timestamp": timestamp,
        "fileTree": build_file_tree(selected, config),
        "files": [{"name": e.name, "content": e.content} for e in collect_entries(selected, config)],
        "summaries": [{"name": s.display_name, "content": s.content} for s in _summaries(summaries, config)],
    }
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def assemble(
    selected: Sequence[FileNode],
    summaries: Sequence[SavedSummary],
    config: ExportConfig,
    *,
    generated_at: str | None = None,
) -> str:
    """Build the export document in ``config.output_format``.

    Never fails on a valid selection: an empty selection yields a minimal
    document and unreadable files are left out.

    Args:
        selected (Sequence[FileNode]): selected files and folders
        summaries (Sequence[SavedSummary]): saved summaries, only included ones are exported
        config (ExportConfig): export options
        generated_at (str | None): document timestamp, now when omitted

    Returns:
        str: the document
    """
    builder = EXPORT_BUILDERS[config.output_format]
    return builder(selected, summaries, config, generated_at or now_iso())


def export_filename(fmt: OutputFormat, stamp: str | None = None) -> str:
    """Default export file name, e.g. ``export-2024-05-01-120000.md``."""
    return f"export-{stamp or now_stamp()}.{fmt.file_extension}"


def write_export(document: str, destination: Path, fmt: OutputFormat) -> Path:
    """Write ``document`` to ``destination`` (a file, or a directory receiving a default name).

    Returns:
        Path: the written file
    """
    target = destination / export_filename(fmt) if destination.is_dir() else destination
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(document, encoding="utf-8", newline="")
    logger.info("Wrote export %s (%s)", target, fmt.value)
    return target

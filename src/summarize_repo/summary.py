"""Compose the textual reports of files and folders."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from summarize_repo.config import describe_file_type, is_image, language_key
from summarize_repo.detectors import (
    analyze_documentation,
    analyze_key_components,
    analyze_performance,
    analyze_security,
    analyze_testing,
    architecture_patterns,
    count_comment_lines,
    describe_purpose,
    extract_declarations,
    quick_summary,
)
from summarize_repo.exceptions import (
    NoFilesSelectedError,
    SummarizeRepoError,
    SummaryGenerationFailedError,
)
from summarize_repo.file_manipulation import (
    canonical_key,
    file_size,
    format_byte_count,
    now_iso,
    read_text,
    sniff_text_utf8,
    walk_files,
)
from summarize_repo.language_analysis import analyze_language
from summarize_repo.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from summarize_repo.file_tree import FileNode
    from summarize_repo.imports_index import ImportExportIndex
    from summarize_repo.store import AnalysisStore

NO_EXTENSION = "(no extension)"


@dataclass(frozen=True)
class GeneratedSummary:
    key: str
    name: str
    content: str


def _display_reference(target: str, base: Path) -> str:
    if os.path.isabs(target):
        return os.path.relpath(target, base).replace("\\", "/")
    return target


def _bullets(items: Sequence[str]) -> list[str]:
    return [f"- {item}" for item in items] or ["- None"]


def compose_file_summary(
    path: Path,
    content: str,
    index: ImportExportIndex,
    additional_comments: str = "",
    *,
    generated_at: str | None = None,
    total_bytes: int | None = None,
) -> str:
    """Compose the report of one file.

    Sections come in a fixed order: header, quick summary, purpose,
    dependencies, dependents, public interfaces, structure, key components,
    architecture, security, performance, testing, documentation, language
    analysis and finally the user comments when given. Apart from the
    ``Generated:`` line the report only depends on ``content`` and ``index``.

    Args:
        path (Path): the summarized file
        content (str): its content (possibly only the head of a large file)
        index (ImportExportIndex): project index providing imports, exports and dependents
        additional_comments (str): free text appended verbatim
        generated_at (str | None): timestamp written in the header, now when omitted
        total_bytes (int | None): full file size when ``content`` was truncated

    Returns:
        str: the report
    """
    key = language_key(path)
    base = path.parent
    declarations = extract_declarations(content, key)

    parts: list[str] = [
        "\n".join(
            [
                f"# File Summary: {path.name}",
                f"File Type: {describe_file_type(path)}",
                f"Location: {path}",
                f"Generated: {generated_at or now_iso()}",
            ],
        ),
    ]

    quick = [quick_summary(content)]
    if total_bytes is not None:
        analyzed = format_byte_count(len(content.encode("utf-8")))
        quick.append(f"Note: analysis limited to the first {analyzed} of {format_byte_count(total_bytes)}.")

    dependencies = sorted(_display_reference(t, base) for t in index.imports_of(path))
    dependents = sorted(_display_reference(t, base) for t in index.dependents_of(path))
    interfaces = sorted(index.exports_of(path))

    sections: list[tuple[str, list[str]]] = [
        ("Quick Summary", quick),
        ("Purpose", [describe_purpose(path.name, content)]),
        ("Dependencies", _bullets(dependencies)),
        ("Imported By", _bullets(dependents)),
        ("Public Interfaces", _bullets(interfaces)),
        (
            "Structure",
            [
                f"- Functions: {declarations.function_count}",
                f"- Types: {declarations.type_count}",
                f"- Comment lines: {count_comment_lines(content, key)}",
            ],
        ),
        ("Key Components", analyze_key_components(content, key)),
        ("Architecture Patterns", [architecture_patterns(content)]),
        ("Security Considerations", analyze_security(content)),
        ("Performance Impact", analyze_performance(content)),
        ("Testing Status", analyze_testing(content)),
        ("Documentation Status", analyze_documentation(content, key)),
    ]
    parts.extend("\n".join([f"{title}:", *lines]) for title, lines in sections)

    language_sections = analyze_language(content, key)
    if language_sections:
        parts.append("## Language Analysis")
        parts.extend(section.render() for section in language_sections)

    if additional_comments.strip():
        parts.append(f"User Comments:\n{additional_comments}")
    return "\n\n".join(parts) + "\n"


def compose_folder_summary(node: FileNode, additional_comments: str = "", *, generated_at: str | None = None) -> str:
    """Compose the report of a folder from its (already listed) tree node.

    Args:
        node (FileNode): the directory node
        additional_comments (str): free text appended verbatim
        generated_at (str | None): timestamp written in the header, now when omitted

    Returns:
        str: the report
    """
    files = list(node.iter_files())
    subdirectories = [n for n in node.walk() if n.is_directory and n is not node]
    total_size = sum(file_size(f.path) for f in files)

    by_extension: dict[str, list[str]] = {}
    for f in files:
        by_extension.setdefault(f.path.suffix.lower() or NO_EXTENSION, []).append(f.name)

    parts = [
        "\n".join([f"# Folder Summary: {node.name}", f"Location: {node.path}", f"Generated: {generated_at or now_iso()}"]),
        "\n".join(
            [
                "## Statistics",
                f"- Total Items: {len(files) + len(subdirectories)}",
                f"- Total Files: {len(files)}",
                f"- Total Subdirectories: {len(subdirectories)}",
                f"- Total Size: {format_byte_count(total_size)}",
            ],
        ),
    ]
    if by_extension:
        lines = ["## File Types"]
        for ext, names in sorted(by_extension.items()):
            label = "file" if len(names) == 1 else "files"
            lines.append(f"- {ext} ({len(names)} {label}): {', '.join(sorted(names))}")
        parts.append("\n".join(lines))
    contents = ["## Contents"]
    for child in node.children or []:
        icon = "📁" if child.is_directory else "📄"
        contents.append(f"{icon} {child.name}")
    if len(contents) == 1:
        contents.append("(empty)")
    parts.append("\n".join(contents))
    if additional_comments.strip():
        parts.append(f"User Comments:\n{additional_comments}")
    return "\n\n".join(parts) + "\n"


def _indexable(path: Path) -> bool:
    return not is_image(path) and sniff_text_utf8(path)


def ensure_index(store: AnalysisStore, project_root: Path) -> None:
    """Index every text file under ``project_root`` unless the store index is already populated."""
    with store.lock:
        if store.index.imports:
            return
        store.index.rebuild(project_root, (p for p in walk_files(project_root) if _indexable(p)))


def summarize_file(
    node: FileNode,
    store: AnalysisStore,
    additional_comments: str = "",
    *,
    max_analysis_bytes: int | None = None,
    generated_at: str | None = None,
) -> GeneratedSummary:
    """Read, index and compose the report of one file node.

    Raises:
        FileReadError: if the file cannot be read
    """
    content = read_text(node.path)
    total_bytes = None
    if max_analysis_bytes is not None and len(content.encode("utf-8")) > max_analysis_bytes:
        total_bytes = len(content.encode("utf-8"))
        content = content.encode("utf-8")[:max_analysis_bytes].decode("utf-8", errors="ignore")
    with store.lock:
        store.index.update(node.path, content)
        report = compose_file_summary(
            node.path,
            content,
            store.index,
            additional_comments,
            generated_at=generated_at,
            total_bytes=total_bytes,
        )
    return GeneratedSummary(key=canonical_key(node.path), name=node.name, content=report)


def generate_summary(
    selection: Sequence[FileNode],
    store: AnalysisStore,
    additional_comments: str = "",
    *,
    save: bool = True,
    project_root: Path | None = None,
    max_analysis_bytes: int | None = None,
    generated_at: str | None = None,
) -> list[GeneratedSummary]:
    """Generate (and by default save) the report of every selected node.

    Args:
        selection (Sequence[FileNode]): selected files and folders
        store (AnalysisStore): the store receiving the reports and holding the index
        additional_comments (str): free text appended to each report
        save (bool): whether reports are saved in ``store`` (replacing older ones)
        project_root (Path | None): when given, the whole project is indexed first so that
            "Imported By" sees every file
        max_analysis_bytes (int | None): larger files are analyzed on their head only
        generated_at (str | None): timestamp written in the reports, now when omitted

    Raises:
        NoFilesSelectedError: if ``selection`` is empty
        FileReadError: if a selected file cannot be read
        SummaryGenerationFailedError: if composing a report fails for any other reason

    Returns:
        list[GeneratedSummary]: one report per selected node, in selection order
    """
    if not selection:
        raise NoFilesSelectedError
    if project_root is not None:
        ensure_index(store, project_root)

    results: list[GeneratedSummary] = []
    for node in selection:
        try:
            if node.is_directory:
                result = GeneratedSummary(
                    key=canonical_key(node.path),
                    name=node.name,
                    content=compose_folder_summary(node, additional_comments, generated_at=generated_at),
                )
            else:
                result = summarize_file(
                    node,
                    store,
                    additional_comments,
                    max_analysis_bytes=max_analysis_bytes,
                    generated_at=generated_at,
                )
        except SummarizeRepoError:
            raise
        except Exception as e:
            logger.exception("Summary generation failed for %s", node.path)
            raise SummaryGenerationFailedError(reason=f"{node.name}: {e}") from e
        if save:
            store.save_summary(node.path, result.content)
        results.append(result)
    return results


from __future__ import annotations

import json
from pathlib import Path

import pytest

from summarize_repo.config import EXPORT_BUILDERS, OutputFormat
from summarize_repo.file_tree import FileNode, ProjectTree
from summarize_repo.output_construction import (
    assemble,
    build_file_tree,
    collect_entries,
    export_filename,
    write_export,
)
from summarize_repo.settings import ExportConfig
from summarize_repo.store import SavedSummary

STAMP = "2024-01-01T00:00:00+00:00"


@pytest.fixture
def tree(tmp_path: Path) -> ProjectTree:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("x = 1  # set x\n", encoding="utf-8")
    (tmp_path / "src" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (tmp_path / "notes.md").write_text("# Notes\n", encoding="utf-8")
    (tmp_path / ".env").write_text("SECRET=1\n", encoding="utf-8")
    return ProjectTree(tmp_path, show_hidden=True)


def _summaries() -> list[SavedSummary]:
    return [
        SavedSummary(file_name="/p/src/app.py", content="App <report>"),
        SavedSummary(file_name="/p/notes.md", content="Hidden report", is_included=False),
    ]


def _select(tree: ProjectTree, *paths: str) -> list[FileNode]:
    return tree.select(paths)


@pytest.mark.unit
def test_json_export_round_trips(tree: ProjectTree) -> None:
    selected = _select(tree, "src/app.py", "notes.md")

    doc = json.loads(assemble(selected, _summaries(), ExportConfig(output_format=OutputFormat.JSON), generated_at=STAMP))

    assert doc["timestamp"] == STAMP
    assert doc["fileTree"] == "- app.py\n- notes.md\n"
    assert doc["files"] == [
        {"name": "app.py", "content": "x = 1  # set x\n"},
        {"name": "notes.md", "content": "# Notes\n"},
    ]
    assert doc["summaries"] == [{"name": "app.py", "content": "App <report>"}]


@pytest.mark.unit
def test_json_export_keeps_quotes_control_characters_and_crlf(tmp_path: Path) -> None:
    raw = b'msg = "say \\"hi\\"\tnow"\r\npath = "C:\\\\tmp"\r\nbell = "\x07"\r\n'
    (tmp_path / "quotes.py").write_bytes(raw)
    tree = ProjectTree(tmp_path)

    document = assemble(tree.select(["quotes.py"]), [], ExportConfig(output_format=OutputFormat.JSON))

    assert json.loads(document)["files"] == [{"name": "quotes.py", "content": raw.decode("utf-8")}]


@pytest.mark.unit
@pytest.mark.parametrize("fmt", [OutputFormat.MARKDOWN, OutputFormat.PLAIN_TEXT])
def test_text_exports_keep_crlf_line_endings(tmp_path: Path, fmt: OutputFormat) -> None:
    (tmp_path / "win.txt").write_bytes(b"one\r\ntwo\r\nthree\r\n")
    tree = ProjectTree(tmp_path)

    document = assemble(tree.select(["win.txt"]), [], ExportConfig(output_format=fmt))

    assert "one\r\ntwo\r\nthree" in document


@pytest.mark.unit
def test_json_export_strips_comments(tree: ProjectTree) -> None:
    selected = _select(tree, "src/app.py")
    config = ExportConfig(output_format=OutputFormat.JSON, strip_comments=True)

    doc = json.loads(assemble(selected, [], config, generated_at=STAMP))

    assert doc["files"] == [{"name": "app.py", "content": "x = 1\n"}]


@pytest.mark.unit
def test_node_comment_override_strips_without_global_flag(tree: ProjectTree) -> None:
    tree.set_include_comments("src/app.py", False)  # noqa: FBT003
    selected = _select(tree, "src/app.py")

    (entry,) = collect_entries(selected, ExportConfig())

    assert entry.content == "x = 1\n"
    assert entry.language == "python"


@pytest.mark.unit
@pytest.mark.parametrize("fmt", list(OutputFormat))
def test_empty_selection_gives_a_document_in_every_format(fmt: OutputFormat) -> None:
    doc = assemble([], [], ExportConfig(output_format=fmt), generated_at=STAMP)

    assert fmt in EXPORT_BUILDERS
    if fmt is OutputFormat.JSON:
        assert json.loads(doc) == {"timestamp": STAMP, "fileTree": "", "files": [], "summaries": []}
    elif fmt is OutputFormat.HTML:
        assert doc.startswith("<!DOCTYPE html>\n<html>\n<head>\n")
        assert f"<title>Export {STAMP}</title>" in doc
        assert "<body>\n" in doc
        assert doc.endswith("</body></html>\n")
    elif fmt is OutputFormat.MARKDOWN:
        assert doc.startswith(f"# Export {STAMP}\n\n## Selected Files\n")
    else:
        assert doc.startswith(f"Export {STAMP}\n\nSelected Files:\n")


@pytest.mark.unit
def test_markdown_export_layout(tree: ProjectTree) -> None:
    selected = _select(tree, "src/app.py")

    doc = assemble(selected, _summaries(), ExportConfig(), generated_at=STAMP)

    assert doc.startswith(f"# Export {STAMP}\n\n## Selected Files\n\n- app.py\n")
    assert "### app.py\n\n```python\nx = 1  # set x\n```\n" in doc
    assert "## Summaries\n\n### app.py\n\nApp <report>" in doc
    assert "Hidden report" not in doc


@pytest.mark.unit
def test_markdown_fence_grows_with_embedded_backticks(tmp_path: Path) -> None:
    (tmp_path / "doc.md").write_text("```python\nprint(1)\n```\n", encoding="utf-8")
    tree = ProjectTree(tmp_path)

    doc = assemble(tree.select(["doc.md"]), [], ExportConfig(), generated_at=STAMP)

    assert "````markdown\n```python\nprint(1)\n```\n````\n" in doc


@pytest.mark.unit
def test_html_export_escapes_content(tmp_path: Path) -> None:
    (tmp_path / "page.html").write_text("<b>&</b>\n", encoding="utf-8")
    tree = ProjectTree(tmp_path)

    doc = assemble(tree.select(["page.html"]), _summaries(), ExportConfig(output_format=OutputFormat.HTML))

    assert doc.startswith("<!DOCTYPE html>")
    assert '<pre><code class="language-html">&lt;b&gt;&amp;&lt;/b&gt;\n</code></pre>' in doc
    assert "<div class='summary'>\nApp &lt;report&gt;</div>" in doc
    assert doc.endswith("</body></html>\n")


@pytest.mark.unit
def test_plain_text_export_without_summaries(tree: ProjectTree) -> None:
    selected = _select(tree, "notes.md")
    config = ExportConfig(output_format=OutputFormat.PLAIN_TEXT, include_summaries=False)

    doc = assemble(selected, _summaries(), config, generated_at=STAMP)

    assert doc.startswith(f"Export {STAMP}\n\nSelected Files:\n\n- notes.md\n")
    assert "=== notes.md ===\n\n# Notes\n" in doc
    assert "Summaries:" not in doc


@pytest.mark.unit
def test_text_alias_renders_like_plain_text(tree: ProjectTree) -> None:
    selected = _select(tree, "notes.md")

    text = assemble(selected, [], ExportConfig(output_format=OutputFormat.TEXT), generated_at=STAMP)
    plain = assemble(selected, [], ExportConfig(output_format=OutputFormat.PLAIN_TEXT), generated_at=STAMP)

    assert text == plain


@pytest.mark.unit
def test_file_tree_lists_directory_children(tree: ProjectTree) -> None:
    selected = _select(tree, "src")

    assert build_file_tree(selected, ExportConfig()) == "- src\n  app.py\n  logo.png\n"
    assert build_file_tree(selected, ExportConfig(include_images=False)) == "- src\n  app.py\n"


@pytest.mark.unit
def test_hidden_files_follow_the_export_flag(tree: ProjectTree) -> None:
    selected = _select(tree, ".env", "notes.md")

    assert build_file_tree(selected, ExportConfig()) == "- notes.md\n"
    assert build_file_tree(selected, ExportConfig(show_hidden_files=True)) == "- .env\n- notes.md\n"


@pytest.mark.unit
def test_images_become_size_stubs_or_disappear(tree: ProjectTree) -> None:
    selected = _select(tree, "src/logo.png")

    (entry,) = collect_entries(selected, ExportConfig())

    assert entry.content == "size=8 bytes"
    assert collect_entries(selected, ExportConfig(include_images=False)) == []


@pytest.mark.unit
def test_unreadable_files_are_skipped(tmp_path: Path) -> None:
    (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\x00")
    (tmp_path / "ok.txt").write_text("fine\n", encoding="utf-8")
    tree = ProjectTree(tmp_path)

    entries = collect_entries(tree.select(["blob.bin", "ok.txt"]), ExportConfig())

    assert [e.name for e in entries] == ["ok.txt"]


@pytest.mark.unit
def test_export_filename() -> None:
    assert export_filename(OutputFormat.JSON, "2024-05-01-120000") == "export-2024-05-01-120000.json"
    assert export_filename(OutputFormat.TEXT, "s") == "export-s.txt"


@pytest.mark.unit
def test_write_export_into_directory(tmp_path: Path) -> None:
    target = write_export("doc\n", tmp_path, OutputFormat.HTML)

    assert target.parent == tmp_path
    assert target.name.startswith("export-")
    assert target.suffix == ".html"
    assert target.read_text(encoding="utf-8") == "doc\n"


@pytest.mark.unit
def test_write_export_to_file_creates_parents(tmp_path: Path) -> None:
    destination = tmp_path / "out" / "bundle.md"

    assert write_export("doc\n", destination, OutputFormat.MARKDOWN) == destination
    assert destination.read_text(encoding="utf-8") == "doc\n"

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from summarize_repo import summary
from summarize_repo.exceptions import FileReadError, NoFilesSelectedError, SummaryGenerationFailedError
from summarize_repo.file_tree import ProjectTree
from summarize_repo.store import AnalysisStore
from summarize_repo.summary import compose_folder_summary, generate_summary

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

STAMP = "2024-01-01T00:00:00+00:00"

PY_SOURCE = '''\
import os


def run():
    # go
    return os.getcwd()
'''

SECTION_ORDER = [
    "# File Summary:",
    "Quick Summary:",
    "Purpose:",
    "Dependencies:",
    "Imported By:",
    "Public Interfaces:",
    "Structure:",
    "Key Components:",
    "Architecture Patterns:",
    "Security Considerations:",
    "Performance Impact:",
    "Testing Status:",
    "Documentation Status:",
    "## Language Analysis",
]


@pytest.fixture
def tree(tmp_path: Path) -> ProjectTree:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text(PY_SOURCE, encoding="utf-8")
    (tmp_path / "src" / "utils.ts").write_text("export function helper() {}\n", encoding="utf-8")
    (tmp_path / "src" / "main.ts").write_text("import { helper } from './utils'\nhelper()\n", encoding="utf-8")
    return ProjectTree(tmp_path)


def _summarize(tree: ProjectTree, rel: str, store: AnalysisStore | None = None, **kwargs) -> str:
    node = tree.find(rel)
    assert node is not None
    (result,) = generate_summary([node], store or AnalysisStore(), generated_at=STAMP, **kwargs)
    return result.content


@pytest.mark.unit
def test_file_summary_header_and_structure(tree: ProjectTree) -> None:
    report = _summarize(tree, "src/app.py")

    assert report.startswith("# File Summary: app.py\nFile Type: Python source (.py)\n")
    assert f"Location: {tree.root / 'src' / 'app.py'}" in report
    assert f"Generated: {STAMP}" in report
    assert "Dependencies:\n- os" in report
    assert "Public Interfaces:\n- run" in report
    assert "Structure:\n- Functions: 1\n- Types: 0\n- Comment lines: 1" in report
    assert report.endswith("\n")


@pytest.mark.unit
def test_file_summary_sections_are_ordered(tree: ProjectTree) -> None:
    report = _summarize(tree, "src/app.py")

    positions = [report.index(title) for title in SECTION_ORDER]
    assert positions == sorted(positions)


@pytest.mark.unit
def test_file_summary_is_deterministic(tree: ProjectTree) -> None:
    assert _summarize(tree, "src/app.py") == _summarize(tree, "src/app.py")


@pytest.mark.unit
def test_file_summary_lists_dependencies_and_dependents(tree: ProjectTree) -> None:
    assert tree.root is not None
    store = AnalysisStore()

    utils_report = _summarize(tree, "src/utils.ts", store, project_root=tree.root)
    main_report = _summarize(tree, "src/main.ts", store, project_root=tree.root)

    assert "Imported By:\n- main.ts" in utils_report
    assert "Public Interfaces:\n- helper" in utils_report
    assert "Dependencies:\n- utils.ts" in main_report
    assert "Imported By:\n- None" in main_report


@pytest.mark.unit
def test_file_summary_appends_user_comments(tree: ProjectTree) -> None:
    node = tree.find("src/app.py")
    assert node is not None

    (result,) = generate_summary([node], AnalysisStore(), "Check the cwd handling.", generated_at=STAMP)

    assert result.content.endswith("User Comments:\nCheck the cwd handling.\n")


@pytest.mark.unit
def test_file_summary_notes_truncated_analysis(tmp_path: Path) -> None:
    (tmp_path / "big.txt").write_text("a" * 99 + "\n", encoding="utf-8")
    tree = ProjectTree(tmp_path)

    report = _summarize(tree, "big.txt", max_analysis_bytes=10)

    assert "Note: analysis limited to the first 10 bytes of 100 bytes." in report


@pytest.mark.unit
def test_folder_summary_statistics(tmp_path: Path) -> None:
    src = tmp_path / "src"
    (src / "sub").mkdir(parents=True)
    (src / "app.py").write_text("x = 1\n", encoding="utf-8")
    (src / "util.py").write_text("y = 2\n", encoding="utf-8")
    (src / "readme").write_text("hi\n", encoding="utf-8")
    node = ProjectTree(tmp_path).find("src")
    assert node is not None

    report = compose_folder_summary(node, generated_at=STAMP)

    assert report.startswith("# Folder Summary: src\n")
    assert "- Total Items: 4\n- Total Files: 3\n- Total Subdirectories: 1\n- Total Size: 15 bytes" in report
    assert "- (no extension) (1 file): readme\n- .py (2 files): app.py, util.py" in report
    assert "## Contents\n📄 app.py\n📄 readme\n📁 sub\n📄 util.py" in report


@pytest.mark.unit
def test_folder_summary_of_empty_folder(tmp_path: Path) -> None:
    (tmp_path / "empty").mkdir()
    node = ProjectTree(tmp_path).find("empty")
    assert node is not None

    report = compose_folder_summary(node, generated_at=STAMP)

    assert "## Contents\n(empty)" in report
    assert "## File Types" not in report


@pytest.mark.unit
def test_generate_summary_requires_a_selection() -> None:
    with pytest.raises(NoFilesSelectedError) as excinfo:
        generate_summary([], AnalysisStore())

    assert "select one or more files" in excinfo.value.message


@pytest.mark.unit
def test_generate_summary_saves_by_default(tree: ProjectTree) -> None:
    store = AnalysisStore()
    node = tree.find("src/app.py")
    assert node is not None

    generate_summary([node], store, generated_at=STAMP)
    generate_summary([node], store, generated_at=STAMP)

    assert [s.display_name for s in store.summaries] == ["app.py"]


@pytest.mark.unit
def test_generate_summary_without_saving(tree: ProjectTree) -> None:
    store = AnalysisStore()
    node = tree.find("src/app.py")
    assert node is not None

    generate_summary([node], store, save=False)

    assert store.summaries == []


@pytest.mark.unit
def test_generate_summary_unreadable_file(tmp_path: Path) -> None:
    (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\x00\x01")
    node = ProjectTree(tmp_path).find("blob.bin")
    assert node is not None

    with pytest.raises(FileReadError) as excinfo:
        generate_summary([node], AnalysisStore())

    assert excinfo.value.message == "Could not read file: blob.bin"


@pytest.mark.unit
def test_generate_summary_wraps_unexpected_errors(tree: ProjectTree, mocker: MockerFixture) -> None:
    mocker.patch.object(summary, "compose_file_summary", side_effect=RuntimeError("boom"))
    store = AnalysisStore()
    node = tree.find("src/app.py")
    assert node is not None

    with pytest.raises(SummaryGenerationFailedError) as excinfo:
        generate_summary([node], store)

    assert excinfo.value.message == "Summary generation failed: app.py: boom"
    assert store.summaries == []

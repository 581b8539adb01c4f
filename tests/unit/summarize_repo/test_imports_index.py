from __future__ import annotations

from pathlib import Path

import pytest

from summarize_repo.file_manipulation import canonical_key
from summarize_repo.imports_index import (
    ImportExportIndex,
    extract_exports,
    extract_imports,
    resolve,
    resolve_import,
)


@pytest.mark.unit
def test_extract_imports_javascript_forms() -> None:
    content = (
        "import { a, b } from './utils'\n"
        "import React from 'react'\n"
        "import * as fs from \"fs\"\n"
        "const x = require('lodash')\n"
        "import './styles.css'\n"
    )

    assert extract_imports(content, "ts") == {"./utils", "react", "fs", "lodash", "./styles.css"}


@pytest.mark.unit
def test_extract_imports_swift() -> None:
    content = "import SwiftUI\n@testable import MyApp\nimport struct Foundation.Date\n"

    assert extract_imports(content, "swift") == {"SwiftUI", "MyApp", "Foundation.Date"}


@pytest.mark.unit
def test_extract_imports_python_absolute_and_relative() -> None:
    content = "import os, json as j\nfrom pathlib import Path\nfrom .models import User\nfrom .. import utils\n"

    assert extract_imports(content, "py") == {"os", "json", "pathlib", "./models", "../utils"}


@pytest.mark.unit
def test_extract_imports_unsupported_language_is_empty() -> None:
    assert extract_imports("import x", "rb") == set()


@pytest.mark.unit
def test_extract_exports_javascript() -> None:
    content = (
        "export default class App {}\n"
        "export const helper = () => 1\n"
        "export { a, b as c }\n"
        "exports.legacy = 1\n"
        "module.exports = { one, two }\n"
    )

    assert extract_exports(content, "js") == {"App", "helper", "a", "c", "legacy", "one", "two"}


@pytest.mark.unit
def test_extract_exports_swift_only_public() -> None:
    content = "public struct Point {}\nopen class Base {}\ninternal func hidden() {}\npublic static func make() {}\n"

    assert extract_exports(content, "swift") == {"Point", "Base", "make"}


@pytest.mark.unit
def test_extract_exports_python_top_level_public() -> None:
    content = "class Model:\n    def method(self):\n        pass\n\ndef run():\n    pass\n\ndef _private():\n    pass\n"

    assert extract_exports(content, "py") == {"Model", "run"}


@pytest.mark.unit
def test_resolve_import_tries_extensions_in_order(tmp_path: Path) -> None:
    (tmp_path / "utils.ts").write_text("export const a = 1\n", encoding="utf-8")
    (tmp_path / "utils.js").write_text("exports.a = 1\n", encoding="utf-8")
    importer = tmp_path / "main.ts"

    assert resolve_import("./utils", importer) == canonical_key(tmp_path / "utils.ts")


@pytest.mark.unit
def test_resolve_import_keeps_unresolvable_and_bare_specs(tmp_path: Path) -> None:
    importer = tmp_path / "main.ts"

    assert resolve_import("./missing", importer) == "./missing"
    assert resolve_import("react", importer) == "react"


@pytest.mark.unit
def test_index_dependents_through_relative_import(tmp_path: Path) -> None:
    (tmp_path / "utils.ts").write_text("export function helper() {}\n", encoding="utf-8")
    (tmp_path / "main.ts").write_text("import { helper } from './utils'\n", encoding="utf-8")

    index = resolve(tmp_path, [Path("utils.ts"), Path("main.ts")])

    utils_key = canonical_key(tmp_path / "utils.ts")
    main_key = canonical_key(tmp_path / "main.ts")
    assert index.imports_of(tmp_path / "main.ts") == {utils_key}
    assert index.exports_of(tmp_path / "utils.ts") == {"helper"}
    assert index.dependents_of(tmp_path / "utils.ts") == {main_key}
    assert index.dependents_of(tmp_path / "main.ts") == set()


@pytest.mark.unit
def test_index_dependents_through_module_name(tmp_path: Path) -> None:
    (tmp_path / "Networking.swift").write_text("public func get() {}\n", encoding="utf-8")
    (tmp_path / "App.swift").write_text("import Networking\n", encoding="utf-8")

    index = resolve(tmp_path, [tmp_path / "Networking.swift", tmp_path / "App.swift"])

    assert index.dependents_of(tmp_path / "Networking.swift") == {canonical_key(tmp_path / "App.swift")}
    assert index.dependents[canonical_key(tmp_path / "App.swift")] == set()


@pytest.mark.unit
def test_index_skips_unreadable_files(tmp_path: Path) -> None:
    (tmp_path / "ok.py").write_text("import os\n", encoding="utf-8")
    (tmp_path / "blob.py").write_bytes(b"\xff\xfe\x00")

    index = resolve(tmp_path, [Path("ok.py"), Path("blob.py"), Path("gone.py")])

    assert set(index.imports) == {canonical_key(tmp_path / "ok.py")}


@pytest.mark.unit
def test_index_update_and_forget(tmp_path: Path) -> None:
    path = tmp_path / "a.py"
    index = ImportExportIndex()

    key = index.update(path, "import os\ndef f():\n    pass\n")
    assert key == canonical_key(path)
    assert index.imports_of(path) == {"os"}

    index.update(path, "import sys\n")
    assert index.imports_of(path) == {"sys"}
    assert index.exports_of(path) == set()

    index.forget(path)
    assert index.imports == {}

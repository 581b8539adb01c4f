from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from summarize_repo.config import DEFAULT_RESOLVE_EXTENSIONS, language_key
from summarize_repo.detectors import JS_FAMILY
from summarize_repo.exceptions import FileReadError
from summarize_repo.file_manipulation import canonical_key, read_text
from summarize_repo.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

_JS_IMPORTS = (
    re.compile(r"""import\s+(?:type\s+)?\{[^}]*\}\s*from\s*['"]([^'"]+)['"]"""),
    re.compile(r"""import\s+[A-Za-z_$][\w$]*(?:\s*,\s*\{[^}]*\})?\s+from\s*['"]([^'"]+)['"]"""),
    re.compile(r"""import\s+\*\s+as\s+[A-Za-z_$][\w$]*\s+from\s*['"]([^'"]+)['"]"""),
    re.compile(r"""\brequire\(\s*['"]([^'"]+)['"]\s*\)"""),
    re.compile(r"""^\s*import\s+['"]([^'"]+)['"]""", re.MULTILINE),
)
_SWIFT_IMPORT = re.compile(
    r"^\s*(?:@testable\s+)?import\s+(?:(?:class|struct|enum|protocol|func|var|let|typealias)\s+)?([A-Za-z_][\w.]*)",
    re.MULTILINE,
)
_PY_IMPORT = re.compile(r"^\s*import\s+([\w.]+(?:\s+as\s+\w+)?(?:\s*,\s*[\w.]+(?:\s+as\s+\w+)?)*)", re.MULTILINE)
_PY_FROM_IMPORT = re.compile(r"^\s*from\s+(\.*)([\w.]*)\s+import\s+\(?([^)\n#]*)", re.MULTILINE)

_SWIFT_EXPORT = re.compile(
    r"^\s*(?:public|open)\s+(?:(?:final|static|class|override|mutating|nonisolated|indirect)\s+)*"
    r"(?:class|struct|enum|protocol|func|var|let|typealias|actor)\s+([A-Za-z_]\w*)",
    re.MULTILINE,
)
_JS_EXPORT_DECLARATION = re.compile(
    r"\bexport\s+(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?(?:async\s+)?"
    r"(?:class|function\*?|const|let|var|interface|type|enum)\s+([A-Za-z_$][\w$]*)",
)
_JS_EXPORT_LIST = re.compile(r"\bexport\s*(?:type\s*)?\{([^}]*)\}")
_JS_EXPORTS_PROPERTY = re.compile(r"\b(?:module\.)?exports\.([A-Za-z_$][\w$]*)\s*=")
_JS_MODULE_EXPORTS = re.compile(r"\bmodule\.exports\s*=\s*(\{[^}]*\}|[A-Za-z_$][\w$]*)")
_PY_EXPORT = re.compile(r"^(?:async\s+def|def|class)\s+([A-Za-z]\w*)", re.MULTILINE)
_GENERIC_EXPORT = re.compile(r"^\s*(?:pub\s+|public\s+|export\s+)?(?:class|def|func|function|fn)\s+([A-Za-z_]\w*)", re.MULTILINE)
_MODULE_NAME = re.compile(r"[\w.]+")


def _python_relative(dots: str, module: str) -> str:
    prefix = "./" if len(dots) == 1 else "../" * (len(dots) - 1)
    return prefix + module.replace(".", "/")


def _python_imports(content: str) -> set[str]:
    found: set[str] = set()
    for m in _PY_IMPORT.finditer(content):
        for part in m.group(1).split(","):
            found.add(part.split(" as ")[0].strip())
    for m in _PY_FROM_IMPORT.finditer(content):
        dots, module, names = m.group(1), m.group(2), m.group(3)
        if not dots:
            found.add(module)
        elif module:
            found.add(_python_relative(dots, module))
        else:
            for name in names.split(","):
                name = name.split(" as ")[0].strip()  # noqa: PLW2901
                if name and name != "*":
                    found.add(_python_relative(dots, name))
    found.discard("")
    return found


def extract_imports(content: str, key: str) -> set[str]:
    """Import identifiers declared by a file, as written.

    Python relative imports are rewritten as relative paths
    (``from .models import X`` gives ``./models``) so they resolve like
    JavaScript ones.

    Args:
        content (str): the file content
        key (str): language dispatch key

    Returns:
        set[str]: module names or import paths, empty for unsupported languages
    """
    if key in JS_FAMILY or key == "svelte":
        return {m.group(1) for pattern in _JS_IMPORTS for m in pattern.finditer(content)}
    if key == "swift":
        return {m.group(1) for m in _SWIFT_IMPORT.finditer(content)}
    if key == "py":
        return _python_imports(content)
    return set()


def _split_export_list(body: str) -> set[str]:
    names = set()
    for part in body.strip("{} \n").split(","):
        tokens = part.replace(":", " ").split()
        if tokens:
            names.add(tokens[-1])
    return names


def extract_exports(content: str, key: str) -> set[str]:
    """Symbols a file makes public.

    - Swift: ``public``/``open`` declarations;
    - JavaScript family: ``export`` declarations, ``export { a, b as c }``
      lists (the last name of each item), ``exports.x =`` and ``module.exports``;
    - Python: top-level classes and functions not starting with an underscore;
    - others: ``export``/``module.exports`` plus class and function declarations.

    Args:
        content (str): the file content
        key (str): language dispatch key

    Returns:
        set[str]: the exported symbol names
    """
    if key == "swift":
        return {m.group(1) for m in _SWIFT_EXPORT.finditer(content)}
    if key == "py":
        return {m.group(1) for m in _PY_EXPORT.finditer(content)}
    exports = {m.group(1) for m in _JS_EXPORT_DECLARATION.finditer(content)}
    for m in _JS_EXPORT_LIST.finditer(content):
        exports |= _split_export_list(m.group(1))
    exports |= {m.group(1) for m in _JS_EXPORTS_PROPERTY.finditer(content)}
    for m in _JS_MODULE_EXPORTS.finditer(content):
        target = m.group(1)
        exports |= _split_export_list(target) if target.startswith("{") else {target}
    if key not in JS_FAMILY and key != "svelte":
        exports |= {m.group(1) for m in _GENERIC_EXPORT.finditer(content)}
    return exports


def resolve_import(spec: str, importing_file: Path, extensions: Sequence[str] = DEFAULT_RESOLVE_EXTENSIONS) -> str:
    """Resolve a relative import against the importing file's directory.

    Candidates are tried by appending each extension in order; the first
    existing regular file wins.

    Args:
        spec (str): the import identifier as written
        importing_file (Path): the file declaring the import
        extensions (Sequence[str]): candidate extensions, ``""`` meaning "as written"

    Returns:
        str: the canonical key of the resolved file, or ``spec`` unchanged when it is
            not relative or no candidate exists
    """
    if not spec.startswith("."):
        return spec
    base = importing_file.parent / spec
    for ext in extensions:
        candidate = Path(f"{base}{ext}")
        if candidate.is_file():
            return canonical_key(candidate)
    return spec


@dataclass
class ImportExportIndex:
    """Project wide imports, exports and dependents, keyed by canonical path.

    ``imports[path]`` is what ``path`` imports (resolved file keys for
    relative imports that exist, identifiers as written otherwise) and
    ``exports[path]`` the symbols it declares public. Dependents (who imports
    ``path``) are derived from ``imports``: an importer refers to ``path``
    through a resolved relative import or through a module name whose last
    dotted component equals the file stem.
    """

    extensions: tuple[str, ...] = DEFAULT_RESOLVE_EXTENSIONS
    imports: dict[str, set[str]] = field(default_factory=dict)
    exports: dict[str, set[str]] = field(default_factory=dict)

    def update(self, path: Path, content: str) -> str:
        """(Re)index one file and return its key."""
        key = canonical_key(path)
        lang = language_key(path)
        self.imports[key] = {resolve_import(s, Path(key), self.extensions) for s in extract_imports(content, lang)}
        self.exports[key] = extract_exports(content, lang)
        return key

    def forget(self, path: Path | str) -> None:
        key = canonical_key(path)
        self.imports.pop(key, None)
        self.exports.pop(key, None)

    def clear(self) -> None:
        self.imports.clear()
        self.exports.clear()

    def imports_of(self, path: Path | str) -> set[str]:
        return set(self.imports.get(canonical_key(path), set()))

    def exports_of(self, path: Path | str) -> set[str]:
        return set(self.exports.get(canonical_key(path), set()))

    def dependents_of(self, path: Path | str) -> set[str]:
        """Keys of the indexed files importing ``path``."""
        key = canonical_key(path)
        stem = Path(key).stem
        return {
            importer
            for importer, targets in self.imports.items()
            if importer != key and any(_refers_to(target, key, stem) for target in targets)
        }

    @property
    def dependents(self) -> dict[str, set[str]]:
        return {key: self.dependents_of(key) for key in self.imports}

    def rebuild(self, project_root: Path, all_files: Iterable[Path]) -> ImportExportIndex:
        """Drop every entry and index ``all_files`` (relative paths are taken from ``project_root``).

        Unreadable files are skipped.
        """
        self.clear()
        for f in all_files:
            p = f if f.is_absolute() else project_root / f
            try:
                self.update(p, read_text(p))
            except FileReadError as e:
                logger.warning("Skipping unreadable file while indexing: %s", e.message)
        logger.info("Indexed %d files under %s", len(self.imports), project_root)
        return self


def _refers_to(target: str, key: str, stem: str) -> bool:
    if target == key:
        return True
    if os.path.isabs(target) or target.startswith("."):
        return False
    return _MODULE_NAME.fullmatch(target) is not None and target.rsplit(".", 1)[-1] == stem


def resolve(
    project_root: Path,
    all_files: Iterable[Path],
    extensions: Sequence[str] = DEFAULT_RESOLVE_EXTENSIONS,
) -> ImportExportIndex:
    """Build a fresh index for ``all_files`` of the project rooted at ``project_root``."""
    return ImportExportIndex(extensions=tuple(extensions)).rebuild(project_root, all_files)

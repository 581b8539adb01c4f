from __future__ import annotations

from enum import StrEnum, auto
from pathlib import PurePath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from summarize_repo.detectors import Section
    from summarize_repo.file_tree import FileNode
    from summarize_repo.settings import ExportConfig
    from summarize_repo.store import SavedSummary

    LanguageAnalyzerFn = Callable[[str], list[Section]]
    ExportBuilderFn = Callable[[Sequence[FileNode], Sequence[SavedSummary], ExportConfig, str], str]


class OutputFormat(StrEnum):
    """Export document formats.

    ``TEXT`` is kept as an alias of ``PLAIN_TEXT`` for stores and callers that
    still use the older name; both render the same document.
    """

    MARKDOWN = auto()
    HTML = auto()
    PLAIN_TEXT = auto()
    JSON = auto()
    TEXT = auto()

    @property
    def file_extension(self) -> str:
        """Extension (without dot) used when writing an export of this format."""
        return _FORMAT_EXTENSION[self]


_FORMAT_EXTENSION: dict[OutputFormat, str] = {
    OutputFormat.MARKDOWN: "md",
    OutputFormat.HTML: "html",
    OutputFormat.PLAIN_TEXT: "txt",
    OutputFormat.JSON: "json",
    OutputFormat.TEXT: "txt",
}

SUFFIX2FORMAT: dict[str, OutputFormat] = {
    ".md": OutputFormat.MARKDOWN,
    ".markdown": OutputFormat.MARKDOWN,
    ".html": OutputFormat.HTML,
    ".htm": OutputFormat.HTML,
    ".txt": OutputFormat.PLAIN_TEXT,
    ".json": OutputFormat.JSON,
}

_FORMAT_ALIASES: dict[str, OutputFormat] = {
    "md": OutputFormat.MARKDOWN,
    "plaintext": OutputFormat.PLAIN_TEXT,
    "plain-text": OutputFormat.PLAIN_TEXT,
    "txt": OutputFormat.PLAIN_TEXT,
    "htm": OutputFormat.HTML,
}


def parse_output_format(value: str) -> OutputFormat:
    """Parse a user supplied format name.

    Accepts enum values (``markdown``, ``plain_text``...), the display style
    ``plainText`` and short forms such as ``md`` or ``txt``.

    Args:
        value (str): the format name

    Raises:
        ValueError: if the name does not denote a known format

    Returns:
        OutputFormat: the parsed format
    """
    normalized = value.strip().lower()
    if normalized in _FORMAT_ALIASES:
        return _FORMAT_ALIASES[normalized]
    try:
        return OutputFormat(normalized)
    except ValueError:
        msg = f"Unknown output format: {value!r}"
        raise ValueError(msg) from None


class FileType(StrEnum):
    """Categorization of file types used for display and export decisions."""

    TEXT = auto()
    IMAGE = auto()
    PYTHON = auto()
    SWIFT = auto()
    JAVASCRIPT = auto()
    TYPESCRIPT = auto()
    SVELTE = auto()
    SQL = auto()
    DOCKERFILE = auto()
    MARKDOWN = auto()
    JSON = auto()
    YAML = auto()
    TOML = auto()
    HTML = auto()
    CSS = auto()
    BASH = auto()
    RUST = auto()
    GO = auto()
    JAVA = auto()
    C = auto()
    CPP = auto()
    OTHER = auto()


EXT2LANG: dict[str, FileType] = {
    ".bash": FileType.BASH,
    ".bmp": FileType.IMAGE,
    ".c": FileType.C,
    ".cc": FileType.CPP,
    ".cpp": FileType.CPP,
    ".css": FileType.CSS,
    ".gif": FileType.IMAGE,
    ".go": FileType.GO,
    ".h": FileType.C,
    ".hpp": FileType.CPP,
    ".htm": FileType.HTML,
    ".html": FileType.HTML,
    ".icns": FileType.IMAGE,
    ".ico": FileType.IMAGE,
    ".java": FileType.JAVA,
    ".jpeg": FileType.IMAGE,
    ".jpg": FileType.IMAGE,
    ".js": FileType.JAVASCRIPT,
    ".json": FileType.JSON,
    ".jsx": FileType.JAVASCRIPT,
    ".markdown": FileType.MARKDOWN,
    ".md": FileType.MARKDOWN,
    ".mjs": FileType.JAVASCRIPT,
    ".png": FileType.IMAGE,
    ".py": FileType.PYTHON,
    ".rs": FileType.RUST,
    ".sh": FileType.BASH,
    ".sql": FileType.SQL,
    ".svelte": FileType.SVELTE,
    ".svg": FileType.IMAGE,
    ".swift": FileType.SWIFT,
    ".toml": FileType.TOML,
    ".ts": FileType.TYPESCRIPT,
    ".tsx": FileType.TYPESCRIPT,
    ".txt": FileType.TEXT,
    ".webp": FileType.IMAGE,
    ".yaml": FileType.YAML,
    ".yml": FileType.YAML,
    ".zsh": FileType.BASH,
}

_FENCE_LANGUAGE: dict[FileType, str] = {
    FileType.PYTHON: "python",
    FileType.SWIFT: "swift",
    FileType.JAVASCRIPT: "javascript",
    FileType.TYPESCRIPT: "typescript",
    FileType.SVELTE: "svelte",
    FileType.SQL: "sql",
    FileType.DOCKERFILE: "dockerfile",
    FileType.MARKDOWN: "markdown",
    FileType.JSON: "json",
    FileType.YAML: "yaml",
    FileType.TOML: "toml",
    FileType.HTML: "html",
    FileType.CSS: "css",
    FileType.BASH: "bash",
    FileType.RUST: "rust",
    FileType.GO: "go",
    FileType.JAVA: "java",
    FileType.C: "c",
    FileType.CPP: "cpp",
}

_DISPLAY_NAME: dict[FileType, str] = {
    FileType.PYTHON: "Python source",
    FileType.SWIFT: "Swift source",
    FileType.JAVASCRIPT: "JavaScript source",
    FileType.TYPESCRIPT: "TypeScript source",
    FileType.SVELTE: "Svelte component",
    FileType.SQL: "SQL script",
    FileType.DOCKERFILE: "Dockerfile",
    FileType.MARKDOWN: "Markdown document",
    FileType.IMAGE: "Image",
}

EXCLUDED_DIRECTORIES = frozenset(
    {
        ".git",
        ".venv",
        "venv",
        "__pycache__",
        ".mypy_cache",
        ".ruff_cache",
        ".pytest_cache",
        ".ipynb_checkpoints",
        "node_modules",
        "dist",
        "build",
        ".build",
        "DerivedData",
        "Pods",
        ".idea",
        ".vscode",
        ".DS_Store",
    },
)

DEFAULT_RESOLVE_EXTENSIONS: tuple[str, ...] = ("", ".ts", ".js", ".tsx", ".py")

# Line prefixes counted as comments, keyed by comment family.
HASH_COMMENT_LANGUAGES = frozenset({"py", "sh", "bash", "zsh", "dockerfile", "yaml", "yml", "toml"})

ANALYZERS: dict[str, LanguageAnalyzerFn] = {}
EXPORT_BUILDERS: dict[OutputFormat, ExportBuilderFn] = {}


def language_key(path: PurePath | str) -> str:
    """Return the key used to dispatch language specific analysis.

    This is the lower-cased extension without its dot, except for Dockerfiles
    (``Dockerfile``, ``Dockerfile.dev``, ``app.dockerfile``) which map to
    ``"dockerfile"``.

    Args:
        path (PurePath | str): the file path or file name

    Returns:
        str: the dispatch key, or "" when the file has no extension
    """
    p = PurePath(path)
    name = p.name.lower()
    if name == "dockerfile" or name.startswith("dockerfile.") or name.endswith(".dockerfile"):
        return "dockerfile"
    return p.suffix.lower().lstrip(".")


def guess_file_type(path: PurePath | str) -> FileType:
    """Heuristic guess of file type based on extension.

    Args:
        path (PurePath | str): The file path to guess the type for.

    Returns:
        FileType: The guessed file type, or FileType.OTHER if unknown.
    """
    if language_key(path) == "dockerfile":
        return FileType.DOCKERFILE
    return EXT2LANG.get(PurePath(path).suffix.lower(), FileType.OTHER)


def guess_language(file_type: FileType) -> str:
    """Get the suggested code fence language for a given file type.

    Args:
        file_type (FileType): The categorized file type.

    Returns:
        str: The suggested language name for code fences, or empty string if none.
    """
    return _FENCE_LANGUAGE.get(file_type, "")


def describe_file_type(path: PurePath | str) -> str:
    """Human readable file type used in report headers (e.g. ``Python source (.py)``)."""
    p = PurePath(path)
    file_type = guess_file_type(p)
    label = _DISPLAY_NAME.get(file_type) or f"{file_type.value.capitalize()} file"
    if file_type is FileType.OTHER:
        label = "File"
    suffix = p.suffix.lower()
    return f"{label} ({suffix})" if suffix else label


def is_image(path: PurePath | str) -> bool:
    """Check whether the path has an image extension."""
    return guess_file_type(path) is FileType.IMAGE


def register_analyzer(
    key: str | list[str],
) -> Callable[[LanguageAnalyzerFn], LanguageAnalyzerFn]:
    """Decorator to register a language analyzer for one or more dispatch keys.

    Keys are the values returned by :func:`language_key` (e.g. ``"py"`` or
    ``"dockerfile"``). Adding a language is a matter of decorating a new
    function; the summary composer never needs to change.

    Args:
        key (str | list[str]): The dispatch key(s) the decorated analyzer handles.

    Returns:
        Callable[[LanguageAnalyzerFn], LanguageAnalyzerFn]: A decorator that registers the given
        function in the ANALYZERS mapping and returns it unchanged.
    """

    def decorator(func: LanguageAnalyzerFn) -> LanguageAnalyzerFn:
        for k in [key] if isinstance(key, str) else key:
            ANALYZERS[k] = func
        return func

    return decorator


def register_export_format(
    fmt: OutputFormat | list[OutputFormat],
) -> Callable[[ExportBuilderFn], ExportBuilderFn]:
    """Decorator to register the document builder for one or more output formats.

    Args:
        fmt (OutputFormat | list[OutputFormat]): The format(s) the decorated builder renders.

    Returns:
        Callable[[ExportBuilderFn], ExportBuilderFn]: A decorator that registers the given
        function in the EXPORT_BUILDERS mapping and returns it unchanged.
    """

    def decorator(func: ExportBuilderFn) -> ExportBuilderFn:
        for f in fmt if isinstance(fmt, list) else [fmt]:
            EXPORT_BUILDERS[f] = func
        return func

    return decorator

"""Language aware comment stripping used by previews and exports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from summarize_repo.config import language_key

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import PurePath

_TRIPLE_QUOTES = ('"""', "'''")


@dataclass(frozen=True)
class CommentSyntax:
    """Comment and string delimiters of one language family.

    Attributes:
        line_markers: markers starting a comment that runs to end of line.
        block: opening and closing markers of non-nested block comments.
        quotes: single character string delimiters; text inside is never a comment.
        multiline_quotes: delimiters whose strings may span lines (other strings end at newline).
        docstrings: treat triple-quoted literals opening a line as comments, keep the others as strings.
        marker_needs_boundary: a line marker only counts at line start or after whitespace.
    """

    line_markers: tuple[str, ...] = ()
    block: tuple[str, str] | None = None
    quotes: tuple[str, ...] = ('"',)
    multiline_quotes: frozenset[str] = field(default_factory=frozenset)
    docstrings: bool = False
    marker_needs_boundary: bool = False


C_STYLE = CommentSyntax(line_markers=("//",), block=("/*", "*/"), quotes=('"', "'"))
# ' opens no literal in Swift and marks lifetimes in Rust.
SWIFT_STYLE = CommentSyntax(line_markers=("//",), block=("/*", "*/"))
JS_STYLE = CommentSyntax(
    line_markers=("//",),
    block=("/*", "*/"),
    quotes=('"', "'", "`"),
    multiline_quotes=frozenset({"`"}),
)
CSS_STYLE = CommentSyntax(block=("/*", "*/"), quotes=('"', "'"))
PYTHON_STYLE = CommentSyntax(line_markers=("#",), quotes=('"', "'"), docstrings=True)
HASH_STYLE = CommentSyntax(line_markers=("#",), quotes=('"', "'"), marker_needs_boundary=True)
SQL_STYLE = CommentSyntax(line_markers=("--",), block=("/*", "*/"), quotes=("'", '"'))
MARKUP_STYLE = CommentSyntax(block=("<!--", "-->"), quotes=())

COMMENT_SYNTAX: dict[str, CommentSyntax] = {}


def register_comment_syntax(keys: Iterable[str], syntax: CommentSyntax) -> None:
    """Register ``syntax`` for every extension in ``keys`` (without leading dot)."""
    for key in keys:
        COMMENT_SYNTAX[key.lower().lstrip(".")] = syntax


register_comment_syntax(
    ["java", "c", "h", "cc", "cpp", "hpp", "cs", "go", "kt", "scala", "m", "mm", "dart"],
    C_STYLE,
)
register_comment_syntax(["swift", "rs"], SWIFT_STYLE)
register_comment_syntax(["js", "jsx", "ts", "tsx", "mjs", "cjs"], JS_STYLE)
register_comment_syntax(["scss", "less"], JS_STYLE)
register_comment_syntax(["css"], CSS_STYLE)
register_comment_syntax(["py", "pyw", "pyi"], PYTHON_STYLE)
register_comment_syntax(["sh", "bash", "zsh", "dockerfile", "yaml", "yml", "toml", "rb", "r"], HASH_STYLE)
register_comment_syntax(["sql"], SQL_STYLE)
register_comment_syntax(["html", "htm", "xml"], MARKUP_STYLE)


def _normalize_hint(language_hint: str) -> str:
    hint = language_hint.strip()
    if "/" in hint or "\\" in hint or hint.lower().startswith("dockerfile"):
        return language_key(hint)
    return hint.lower().lstrip(".")


def _starts_line_marker(text: str, i: int, syntax: CommentSyntax) -> bool:
    if not any(text.startswith(m, i) for m in syntax.line_markers):
        return False
    if syntax.marker_needs_boundary and i > 0:
        return text[i - 1].isspace()
    return True


def _scan(text: str, syntax: CommentSyntax) -> tuple[str, set[int]]:  # noqa: C901, PLR0912, PLR0915
    """Remove comments from ``text``.

    Returns the stripped text and the indexes of output lines that lost a
    comment. Removed block comments are replaced by their newlines, or by a
    single space when they fit on one line, so no new marker can form from
    the surrounding characters.
    """
    out: list[str] = []
    touched: set[int] = set()
    line_no = 0
    line_has_code = False
    quote: str | None = None
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if quote is not None:
            if ch == "\\" and i + 1 < n:
                out.append(text[i : i + 2])
                if text[i + 1] == "\n":
                    line_no += 1
                i += 2
                continue
            if text.startswith(quote, i):
                out.append(quote)
                i += len(quote)
                quote = None
                continue
            if ch == "\n":
                if len(quote) == 1 and quote not in syntax.multiline_quotes:
                    quote = None
                line_no += 1
                line_has_code = False
            out.append(ch)
            i += 1
            continue

        if syntax.docstrings and text.startswith(_TRIPLE_QUOTES, i):
            delim = text[i : i + 3]
            if line_has_code:
                quote = delim
                out.append(delim)
                i += 3
                continue
            end = text.find(delim, i + 3)
            end = n if end == -1 else end + 3
            newlines = text.count("\n", i, end)
            touched.update(range(line_no, line_no + newlines + 1))
            out.append("\n" * newlines)
            line_no += newlines
            i = end
            continue

        if syntax.block is not None and text.startswith(syntax.block[0], i):
            opener, closer = syntax.block
            end = text.find(closer, i + len(opener))
            end = n if end == -1 else end + len(closer)
            newlines = text.count("\n", i, end)
            touched.update(range(line_no, line_no + newlines + 1))
            out.append("\n" * newlines if newlines else " ")
            if newlines:
                line_has_code = False
            line_no += newlines
            i = end
            continue

        if _starts_line_marker(text, i, syntax):
            end = text.find("\n", i)
            touched.add(line_no)
            i = n if end == -1 else end
            continue

        if ch in syntax.quotes:
            quote = ch
            line_has_code = True
        elif ch == "\n":
            line_no += 1
            line_has_code = False
        elif not ch.isspace():
            line_has_code = True
        out.append(ch)
        i += 1

    return "".join(out), touched


def strip_comments(text: str, language_hint: str) -> str:
    """Remove comments from source text.

    The language is chosen from ``language_hint`` (an extension such as
    ``"swift"`` or ``".py"``, or a file name such as ``"Dockerfile"``).
    Unknown languages are returned unchanged.

    Comment markers inside string literals are preserved, honouring
    backslash escapes. Code preceding a trailing comment stays on its line
    (trailing whitespace trimmed) and lines that held nothing but comments
    are dropped. The function is idempotent.

    Args:
        text (str): the source text
        language_hint (str): extension or file name selecting the comment rules

    Returns:
        str: the text without comments
    """
    syntax = COMMENT_SYNTAX.get(_normalize_hint(language_hint))
    if syntax is None or not text:
        return text
    stripped, touched = _scan(text, syntax)
    if not touched:
        return stripped
    lines: list[str] = []
    for idx, line in enumerate(stripped.split("\n")):
        if idx in touched:
            line = line.rstrip()  # noqa: PLW2901
            if not line:
                continue
        lines.append(line)
    result = "\n".join(lines)
    if text.endswith("\n") and not result.endswith("\n") and result:
        result += "\n"
    return result


def strip_comments_for_path(path: PurePath | str, text: str) -> str:
    """Strip comments from ``text`` using the rules of the file at ``path``."""
    return strip_comments(text, language_key(path))

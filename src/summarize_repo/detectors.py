from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from summarize_repo.config import HASH_COMMENT_LANGUAGES
from summarize_repo.file_manipulation import format_byte_count

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

NO_PATTERNS = "No specific architecture patterns identified."
NO_SECURITY = "No immediate security concerns identified."
NO_PERFORMANCE = "No specific performance patterns identified."
NO_TESTING = "No test coverage found."
NO_DOCUMENTATION = "No documentation found."
NO_COMPONENTS = "No key components found."

CONTROL_FLOW_THRESHOLD = 10
NESTING_THRESHOLD = 4
FUNCTION_LENGTH_THRESHOLD = 30
NAMING_CONSISTENCY_THRESHOLD = 60
INTENT_CONFIDENCE_THRESHOLD = 0.3
MAX_DOMAIN_TERMS = 10

JS_FAMILY = frozenset({"js", "jsx", "ts", "tsx", "mjs", "cjs"})

ARCHITECTURE_PATTERNS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("MVVM", "ViewModel"), "MVVM"),
    (("MVC", "Controller"), "MVC"),
    (("Redux", "Store"), "Redux/Store"),
    (("Observable", "Subject"), "Observer"),
    (("Factory",), "Factory"),
    (("Singleton",), "Singleton"),
)

SECURITY_CHECKS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("password", "secret"), "⚠️ Contains sensitive data handling"),
    (("encrypt", "decrypt"), "✓ Uses encryption"),
    (("sanitize", "escape"), "✓ Implements input sanitization"),
    (("auth", "token"), "⚠️ Contains authentication logic"),
)

PERFORMANCE_CHECKS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("async", "await"), "+ Uses async/await for better performance"),
    (("cache",), "+ Implements caching"),
    (("O(n)", "complexity"), "! Contains complexity considerations"),
    (("optimize", "performance"), "+ Contains performance optimizations"),
)

TESTING_CHECKS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("test", "spec"), "✓ Contains test code"),
    (("mock", "stub"), "✓ Uses test doubles"),
    (("describe", "it("), "✓ Uses BDD testing style"),
    (("assert",), "✓ Contains assertions"),
)

TECHNICAL_DEBT_INDICATORS: tuple[tuple[str, str], ...] = (
    ("TODO", "planned enhancement"),
    ("FIXME", "known issue"),
    ("HACK", "implementation concern"),
    ("XXX", "critical concern"),
    ("OPTIMIZE", "performance concern"),
    ("WORKAROUND", "temporary solution"),
)

DOMAIN_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Data Processing", ("process", "transform", "convert", "parse", "format")),
    ("Authentication", ("auth", "login", "password", "credential", "token")),
    ("Database Operations", ("query", "insert", "update", "delete", "select")),
    ("Network Operations", ("request", "response", "http", "api", "endpoint")),
    ("UI Components", ("view", "button", "label", "window", "screen")),
    ("Error Handling", ("error", "exception", "catch", "throw", "handle")),
    ("Configuration", ("config", "setting", "preference", "option", "setup")),
)

INTENT_PATTERNS: tuple[tuple[str, tuple[tuple[str, float], ...]], ...] = (
    ("Data Validation", (("validate", 0.8), ("check", 0.6), ("verify", 0.7))),
    ("Data Transformation", (("convert", 0.8), ("transform", 0.9), ("parse", 0.7))),
    ("Security Implementation", (("encrypt", 0.9), ("decrypt", 0.9), ("hash", 0.8))),
    ("Caching Logic", (("cache", 0.8), ("store", 0.6), ("retrieve", 0.6))),
    ("Error Recovery", (("recover", 0.8), ("retry", 0.7), ("fallback", 0.8))),
    ("Performance Optimization", (("optimize", 0.8), ("improve", 0.6), ("enhance", 0.6))),
)

COMMON_WORDS = frozenset(
    {"this", "that", "these", "those", "have", "from", "will", "what", "when", "where", "which", "with", "would"},
)

_CONTROL_FLOW_TOKENS = ("if ", "for ", "while ", "switch ", "catch ", "? :")
_FUNCTION_START_TOKENS = ("func ", "function ")
_CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
_SNAKE_CASE = re.compile(r"^[a-z][a-z0-9_]*$")
_PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_WORD = re.compile(r"[A-Za-z][A-Za-z0-9_']*")
_TERM_PUNCTUATION = ".,;:()[]{}<>\"'`!?"

_PY_CLASS = re.compile(r"^\s*class\s+(\w+)\s*(\([^)]*\))?\s*:", re.MULTILINE)
_PY_FUNCTION = re.compile(r"^\s*(?:async\s+)?def\s+(\w+)\s*\(", re.MULTILINE)
_PY_DECORATOR = re.compile(r"^\s*@([\w.]+)", re.MULTILINE)
_SWIFT_CLASS = re.compile(r"\bclass\s+(?!func\b|var\b|let\b)(\w+)(?:\s*:\s*([\w.]+))?")
_SWIFT_STRUCT = re.compile(r"\bstruct\s+(\w+)")
_SWIFT_ENUM = re.compile(r"\benum\s+(\w+)")
_SWIFT_PROTOCOL = re.compile(r"\bprotocol\s+(\w+)")
_SWIFT_FUNCTION = re.compile(r"\bfunc\s+(\w+)")
_JS_CLASS = re.compile(r"\bclass\s+([A-Za-z_$][\w$]*)(?:<[^>{]*>)?(?:\s+extends\s+([A-Za-z_$][\w$.]*))?")
_JS_FUNCTION = re.compile(
    r"\bfunction\*?\s+([A-Za-z_$][\w$]*)\s*\("
    r"|\b(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*=\s*(?:async\s+)?(?:\([^)]*\)|[A-Za-z_$][\w$]*)\s*=>",
)
_JS_INTERFACE = re.compile(r"\binterface\s+([A-Za-z_$][\w$]*)")
_JS_ENUM = re.compile(r"\benum\s+([A-Za-z_$][\w$]*)")
_JS_ASYNC_FUNCTION = re.compile(r"\basync\s+(?:function\s+)?(\w+)\s*\(")
_JS_EVENT = re.compile(r"addEventListener\(['\"]([^'\"]+)['\"]")
_GENERIC_CLASS = re.compile(r"\bclass\s+(\w+)")
_GENERIC_STRUCT = re.compile(r"\bstruct\s+(\w+)")
_GENERIC_ENUM = re.compile(r"\benum\s+(\w+)")
_GENERIC_INTERFACE = re.compile(r"\b(?:interface|protocol|trait)\s+(\w+)")
_GENERIC_FUNCTION = re.compile(r"\b(?:def|func|function|fn)\s+(\w+)")


@dataclass(frozen=True)
class Section:
    """A titled group of finding lines in a report."""

    title: str
    lines: tuple[str, ...] = ()

    def render(self) -> str:
        """Render as ``Title:`` followed by one finding per line."""
        return "\n".join([f"{self.title}:", *self.lines])


@dataclass
class Declarations:
    """Declarations discovered in a file, in source order."""

    classes: list[str] = field(default_factory=list)
    structs: list[str] = field(default_factory=list)
    enums: list[str] = field(default_factory=list)
    protocols: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)

    @property
    def type_count(self) -> int:
        return len(self.classes) + len(self.structs) + len(self.enums) + len(self.protocols)

    @property
    def function_count(self) -> int:
        return len(self.functions)

    def lines(self) -> list[str]:
        """Bullet lines (``• Classes: A, B``) for every non-empty kind."""
        kinds = (
            ("Classes", self.classes),
            ("Structs", self.structs),
            ("Enums", self.enums),
            ("Protocols", self.protocols),
            ("Functions", self.functions),
        )
        return [f"  • {label}: {', '.join(names)}" for label, names in kinds if names]


def _contains_any(content: str, needles: Iterable[str]) -> bool:
    return any(n in content for n in needles)


def _checks(content: str, checks: Sequence[tuple[tuple[str, ...], str]], sentinel: str) -> list[str]:
    found = [label for needles, label in checks if _contains_any(content, needles)]
    return found or [sentinel]


def find_architecture_patterns(content: str) -> list[str]:
    """Return the labels of every architecture pattern whose keywords occur in ``content``.

    Detection is presence based and labels are not mutually exclusive, so
    adding text can only add labels.

    Args:
        content (str): the file content

    Returns:
        list[str]: matched labels in a fixed order (MVVM, MVC, Redux/Store, Observer, Factory, Singleton)
    """
    return [label for needles, label in ARCHITECTURE_PATTERNS if _contains_any(content, needles)]


def architecture_patterns(content: str) -> str:
    """Matched pattern labels joined with ``" | "``, or the "none identified" sentinel."""
    labels = find_architecture_patterns(content)
    return " | ".join(labels) if labels else NO_PATTERNS


def analyze_security(content: str) -> list[str]:
    """Security heuristics: one line per matched keyword group, warning or positive."""
    return _checks(content, SECURITY_CHECKS, NO_SECURITY)


def analyze_performance(content: str) -> list[str]:
    """Performance heuristics: async, caching, complexity notes and optimisation keywords."""
    return _checks(content, PERFORMANCE_CHECKS, NO_PERFORMANCE)


def analyze_testing(content: str) -> list[str]:
    """Testing heuristics: test code, test doubles, BDD style and assertions."""
    return _checks(content, TESTING_CHECKS, NO_TESTING)


def _is_hash_language(key: str) -> bool:
    return key in HASH_COMMENT_LANGUAGES


def count_comment_lines(content: str, key: str = "") -> int:
    """Count lines that hold only a comment.

    Args:
        content (str): the file content
        key (str): language dispatch key (``"py"``, ``"swift"``...), selects ``#`` or ``//`` style

    Returns:
        int: the number of comment lines
    """
    if _is_hash_language(key):
        prefixes: tuple[str, ...] = ("#",)
    elif key == "sql":
        prefixes = ("--", "/*", "*")
    else:
        prefixes = ("//", "/*", "*")
    count = 0
    for line in content.splitlines():
        t = line.strip()
        if t.startswith("#!"):
            continue
        if t.startswith(prefixes):
            count += 1
    return count


def analyze_documentation(content: str, key: str = "") -> list[str]:
    """Documentation heuristics: inline versus documentation comment counts and TODO markers.

    For ``//`` languages, inline comments are ``//`` lines and documentation
    comments are ``///`` or ``/**`` lines. For ``#`` languages, inline
    comments are ``#`` lines and documentation lines come from docstrings.

    Args:
        content (str): the file content
        key (str): language dispatch key

    Returns:
        list[str]: finding lines, or the "no documentation" sentinel
    """
    if _is_hash_language(key):
        inline, docs = extract_comments(content, key)
        inline_count, doc_count = len(inline), len(docs)
    else:
        stripped = [line.strip() for line in content.splitlines()]
        doc_count = sum(1 for t in stripped if t.startswith(("///", "/**")))
        inline_count = sum(1 for t in stripped if t.startswith("//") and not t.startswith("///"))

    docs_lines: list[str] = []
    if inline_count > 0:
        docs_lines.append(f"- Contains {inline_count} lines of inline comments")
    if doc_count > 0:
        docs_lines.append(f"- Contains {doc_count} lines of documentation comments")
    if "TODO:" in content or "FIXME:" in content:
        docs_lines.append("! Contains TODO/FIXME markers")
    return docs_lines or [NO_DOCUMENTATION]


def _extract_hash_comments(lines: list[str]) -> tuple[list[str], list[str]]:
    comments: list[str] = []
    docs: list[str] = []
    doc_delim: str | None = None
    for line in lines:
        t = line.strip()
        if doc_delim is not None:
            if doc_delim in t:
                head = t.split(doc_delim, 1)[0].strip()
                if head:
                    docs.append(head)
                doc_delim = None
            elif t:
                docs.append(t)
            continue
        if t.startswith(('"""', "'''")):
            delim = t[:3]
            body = t[3:]
            if delim in body:
                head = body.split(delim, 1)[0].strip()
                if head:
                    docs.append(head)
            else:
                doc_delim = delim
                if body.strip():
                    docs.append(body.strip())
        elif t.startswith("#") and not t.startswith("#!"):
            text = t.lstrip("#").strip()
            if text:
                comments.append(text)
    return comments, docs


def _extract_slash_comments(lines: list[str]) -> tuple[list[str], list[str]]:
    comments: list[str] = []
    docs: list[str] = []
    in_doc = False
    for line in lines:
        t = line.strip()
        if t.startswith(("///", "/**")):
            text = t.removeprefix("///").removeprefix("/**")
            in_doc = t.startswith("/**") and "*/" not in text
            text = text.split("*/", 1)[0].strip()
            if text:
                docs.append(text)
        elif in_doc:
            if "*/" in t:
                in_doc = False
                t = t.split("*/", 1)[0]
            text = t.lstrip("*").strip()
            if text:
                docs.append(text)
        elif t.startswith(("//", "/*")):
            text = t.removeprefix("//").removeprefix("/*").split("*/", 1)[0].strip()
            if text:
                comments.append(text)
    return comments, docs


def extract_comments(content: str, key: str = "") -> tuple[list[str], list[str]]:
    """Split the comments of a file into plain comments and documentation comments.

    Args:
        content (str): the file content
        key (str): language dispatch key

    Returns:
        tuple[list[str], list[str]]: (comments, documentation comments), marker-free and stripped
    """
    lines = content.splitlines()
    if _is_hash_language(key):
        return _extract_hash_comments(lines)
    return _extract_slash_comments(lines)


def analyze_doc_coverage(doc_comments: Sequence[str]) -> list[str]:
    """Score documentation comments on parameters, return values and examples (out of 3).

    Args:
        doc_comments (Sequence[str]): documentation comment lines

    Returns:
        list[str]: the score line followed by one warning per missing category,
            or an empty list when there is no documentation comment at all
    """
    if not doc_comments:
        return []
    doc_text = " ".join(doc_comments)
    has_parameters = _contains_any(doc_text, ("@param", "- Parameter", "Args:", ":param"))
    has_returns = _contains_any(doc_text, ("@return", "- Returns", "Returns:", ":return"))
    has_examples = _contains_any(doc_text, ("Example", "Usage"))
    score = sum((has_parameters, has_returns, has_examples))
    lines = [f"- Documentation Quality Score: {score}/3"]
    if not has_parameters:
        lines.append("  Warning: Missing parameter documentation")
    if not has_returns:
        lines.append("  Warning: Missing return value documentation")
    if not has_examples:
        lines.append("  Warning: Missing usage examples")
    return lines


def analyze_technical_debt(comments: Sequence[str]) -> list[str]:
    """Group comments carrying technical debt markers by debt category.

    Categories follow the fixed marker order TODO, FIXME, HACK, XXX,
    OPTIMIZE, WORKAROUND. A comment with several markers appears under each.

    Args:
        comments (Sequence[str]): comment texts

    Returns:
        list[str]: ``- Category:`` headers each followed by ``  [MARKER] comment`` lines
    """
    grouped: dict[str, list[str]] = {}
    for indicator, category in TECHNICAL_DEBT_INDICATORS:
        for comment in comments:
            if indicator in comment:
                grouped.setdefault(category, []).append(f"  [{indicator}] {comment}")
    lines: list[str] = []
    for category, items in grouped.items():
        lines.append(f"- {category.title()}:")
        lines.extend(items)
    return lines


@dataclass(frozen=True)
class ComplexityMetrics:
    control_flow: int
    max_nesting: int
    longest_function: int


def complexity_metrics(content: str) -> ComplexityMetrics:
    """Compute rough control-flow, nesting and function-length metrics.

    - control flow: lines containing ``if ``, ``for ``, ``while ``, ``switch ``,
      ``catch `` or ``? :`` (case-insensitive);
    - nesting: running ``{`` minus ``}`` count, maximum over lines;
    - function length: lines between a ``func ``/``function `` line and the
      next line that is a bare ``}``.

    Args:
        content (str): the file content

    Returns:
        ComplexityMetrics: the three metrics
    """
    lines = content.splitlines()
    control_flow = sum(
        1 for line in lines if _contains_any(line.strip().lower(), _CONTROL_FLOW_TOKENS)
    )

    max_nesting = 0
    nesting = 0
    for line in lines:
        nesting += line.count("{") - line.count("}")
        max_nesting = max(max_nesting, nesting)

    longest = 0
    current = 0
    in_function = False
    for line in lines:
        t = line.strip()
        if _contains_any(t, _FUNCTION_START_TOKENS):
            in_function = True
            current = 0
        elif in_function:
            if t == "}":
                in_function = False
                longest = max(longest, current)
            else:
                current += 1

    return ComplexityMetrics(control_flow=control_flow, max_nesting=max_nesting, longest_function=longest)


def analyze_complexity(content: str) -> list[str]:
    metrics = complexity_metrics(content)
    lines: list[str] = []
    if metrics.control_flow > 0:
        lines.append(f"- Control flow complexity: {metrics.control_flow}")
        if metrics.control_flow > CONTROL_FLOW_THRESHOLD:
            lines.append("  - Warning: High complexity, consider refactoring")
    if metrics.max_nesting > 0:
        lines.append(f"- Maximum nesting depth: {metrics.max_nesting}")
        if metrics.max_nesting > NESTING_THRESHOLD:
            lines.append("  - Warning: Deep nesting, consider flattening")
    if metrics.longest_function > 0:
        lines.append(f"- Longest function: {metrics.longest_function} lines")
        if metrics.longest_function > FUNCTION_LENGTH_THRESHOLD:
            lines.append("  - Warning: Long function, consider breaking it down")
    return lines


def naming_convention_shares(tokens: Iterable[str]) -> dict[str, int]:
    """Percentage of camelCase, snake_case and PascalCase matches among ``tokens``.

    A token may match several conventions (``value`` is both camelCase and
    snake_case); percentages are taken over the total number of matches and
    truncated to integers.

    Args:
        tokens (Iterable[str]): whitespace delimited tokens

    Returns:
        dict[str, int]: percentages keyed by convention name, empty when nothing matched
    """
    counts = {"camelCase": 0, "snake_case": 0, "PascalCase": 0}
    for token in tokens:
        if _CAMEL_CASE.match(token):
            counts["camelCase"] += 1
        if _SNAKE_CASE.match(token):
            counts["snake_case"] += 1
        if _PASCAL_CASE.match(token):
            counts["PascalCase"] += 1
    total = sum(counts.values())
    if total == 0:
        return {}
    return {name: int(count / total * 100) for name, count in counts.items()}


def analyze_naming_conventions(content: str) -> list[str]:
    shares = naming_convention_shares(content.split())
    if not shares:
        return []
    lines = ["Naming Conventions:"]
    lines.extend(f"- {name}: {percent}%" for name, percent in shares.items())
    if max(shares.values()) < NAMING_CONSISTENCY_THRESHOLD:
        lines.append("Warning: Inconsistent naming conventions")
    return lines


def extract_domain_terms(content: str) -> dict[str, list[str]]:
    """Bucket the words of ``content`` into domain categories by keyword containment.

    Args:
        content (str): the file content

    Returns:
        dict[str, list[str]]: sorted unique words per category, categories in fixed order
    """
    words = {w.strip(_TERM_PUNCTUATION) for w in content.split()}
    words.discard("")
    terms: dict[str, list[str]] = {}
    for category, patterns in DOMAIN_PATTERNS:
        matched = sorted(w for w in words if _contains_any(w.lower(), patterns))
        if matched:
            terms[category] = matched
    return terms


def analyze_code_intent(content: str) -> list[tuple[str, float]]:
    """Weighted keyword scoring of what the code is meant to do.

    Each intent's confidence is the sum of the weights of its keywords found
    in the lower-cased content divided by its keyword count. Intents at or
    below 0.3 are dropped.

    Args:
        content (str): the file content

    Returns:
        list[tuple[str, float]]: (intent, confidence) sorted by decreasing confidence
    """
    lowered = content.lower()
    intents: list[tuple[str, float]] = []
    for intent, patterns in INTENT_PATTERNS:
        matched = [weight for pattern, weight in patterns if pattern in lowered]
        if not matched:
            continue
        confidence = sum(matched) / len(patterns)
        if confidence > INTENT_CONFIDENCE_THRESHOLD:
            intents.append((intent, confidence))
    return sorted(intents, key=lambda item: item[1], reverse=True)


def analyze_semantics(content: str) -> list[str]:
    lines: list[str] = []
    domain_terms = extract_domain_terms(content)
    if domain_terms:
        lines.append("Domain-Specific Language:")
        for category, terms in domain_terms.items():
            lines.append(f"- {category}:")
            lines.extend(f"  - {term}" for term in terms[:MAX_DOMAIN_TERMS])
            if len(terms) > MAX_DOMAIN_TERMS:
                lines.append(f"  - ... and {len(terms) - MAX_DOMAIN_TERMS} more")
    intents = analyze_code_intent(content)
    if intents:
        lines.append("Code Intent Analysis:")
        lines.extend(f"- {intent}: {round(confidence * 100)}% confidence" for intent, confidence in intents)
    return lines


def common_terms(content: str, limit: int = 5) -> list[str]:
    """Most frequent words longer than three letters, stop words excluded.

    Ties are broken alphabetically so the result is stable.
    """
    counts = Counter(
        w for w in (m.group(0).lower() for m in _WORD.finditer(content)) if len(w) > 3 and w not in COMMON_WORDS  # noqa: PLR2004
    )
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [word for word, _ in ranked[:limit]]


def _names(pattern: re.Pattern[str], content: str) -> list[str]:
    return [m.group(1) for m in pattern.finditer(content)]


def _first_group(pattern: re.Pattern[str], content: str) -> list[str]:
    return [next(g for g in m.groups() if g) for m in pattern.finditer(content)]


def extract_declarations(content: str, key: str = "") -> Declarations:
    """Discover type and function declarations with language specific regexes.

    Inheritance is annotated where the syntax makes it visible:
    ``Bar(Base)`` for Python, ``View: Base`` for Swift and ``A extends B``
    for the JavaScript family.

    Args:
        content (str): the file content
        key (str): language dispatch key

    Returns:
        Declarations: the discovered declarations
    """
    if key == "py":
        return Declarations(
            classes=[f"{m.group(1)}{m.group(2) or ''}" for m in _PY_CLASS.finditer(content)],
            functions=_names(_PY_FUNCTION, content),
        )
    if key == "swift":
        return Declarations(
            classes=[f"{m.group(1)}: {m.group(2)}" if m.group(2) else m.group(1) for m in _SWIFT_CLASS.finditer(content)],
            structs=_names(_SWIFT_STRUCT, content),
            enums=_names(_SWIFT_ENUM, content),
            protocols=_names(_SWIFT_PROTOCOL, content),
            functions=_names(_SWIFT_FUNCTION, content),
        )
    if key in JS_FAMILY:
        return Declarations(
            classes=[
                f"{m.group(1)} extends {m.group(2)}" if m.group(2) else m.group(1)
                for m in _JS_CLASS.finditer(content)
            ],
            enums=_names(_JS_ENUM, content),
            protocols=_names(_JS_INTERFACE, content),
            functions=_first_group(_JS_FUNCTION, content),
        )
    return Declarations(
        classes=_names(_GENERIC_CLASS, content),
        structs=_names(_GENERIC_STRUCT, content),
        enums=_names(_GENERIC_ENUM, content),
        protocols=_names(_GENERIC_INTERFACE, content),
        functions=_names(_GENERIC_FUNCTION, content),
    )


def analyze_key_components(content: str, key: str = "") -> list[str]:
    """Declarations plus language extras (decorators, async functions, listeners, promises)."""
    lines = extract_declarations(content, key).lines()
    if key == "py":
        decorators = sorted(set(_names(_PY_DECORATOR, content)))
        if decorators:
            lines.append(f"  • Decorators: {', '.join(decorators)}")
    elif key in JS_FAMILY:
        async_functions = _names(_JS_ASYNC_FUNCTION, content)
        if async_functions:
            lines.append(f"  • Async Functions: {', '.join(async_functions)}")
        events = sorted(set(_names(_JS_EVENT, content)))
        if events:
            lines.append(f"  • Event Listeners: {', '.join(events)}")
        if "new Promise" in content:
            lines.append("  • Uses Promises: Yes")
    return lines or [NO_COMPONENTS]


def quick_summary(content: str) -> str:
    size = format_byte_count(len(content.encode("utf-8")))
    return f"A {size} file containing {len(content.splitlines())} lines of code."


_NETWORK_KEYWORDS = ("URLSession", "fetch(", "axios", "http://", "https://", "requests.", "XMLHttpRequest", "socket")
_PERSISTENCE_KEYWORDS = (
    "UserDefaults",
    "CoreData",
    "NSManagedObject",
    "FileManager",
    "localStorage",
    "sqlite",
    "INSERT INTO",
    "write_text",
    ".save(",
    "json.dump",
)
_CALCULATION_KEYWORDS = ("calculate", "compute", "Math.", "math.", "sum(", "average", "numpy")
_PROPERTY_NAME = re.compile(r"\b(?:var|let)\s+(\w+)")


def _function_lines(lines: Sequence[str]) -> list[str]:
    prefixes = ("func ", "private func ", "public func ", "internal func ", "def ", "async def ", "function ")
    return [t for t in (line.strip() for line in lines) if t.startswith(prefixes)]


def _declared_name(line: str, separator: str) -> str:
    head = line.split(separator, 1)[0].strip()
    return head.split(" ")[-1] if head else ""


def _swiftui_view_purpose(content: str, functions: Sequence[str], properties: Sequence[str]) -> str:
    text = "This is a SwiftUI view that "
    if "NavigationView" in content or "NavigationStack" in content or any("navigate" in f for f in functions):
        text += "handles navigation between different screens. "
    if any("@State" in p or "@Binding" in p for p in properties):
        text += "manages user interface state. "
    if any("@ObservedObject" in p or "@StateObject" in p for p in properties):
        text += "observes and reacts to data model changes. "
    if "List" in content:
        text += "It displays a list of items. "
    elif "Form" in content:
        text += "It presents a form for user input. "
    elif "TabView" in content:
        text += "It organizes content in tabs. "
    if any(_contains_any(f, ("tap", "click", "select")) for f in functions):
        text += "Users can interact with elements through taps/clicks. "
    if any(_contains_any(f, ("save", "update", "delete")) for f in functions):
        text += "It allows users to modify data. "
    return text.rstrip()


def _view_model_purpose(functions: Sequence[str], properties: Sequence[str]) -> str:
    text = "This is a ViewModel that coordinates state for its views. "
    published = [p for p in properties if "@Published" in p][:3]
    names = [m.group(1) for m in (_PROPERTY_NAME.search(p) for p in published) if m]
    if names:
        text += f"It manages and publishes changes to: {', '.join(names)}. "
    if any(_contains_any(f, ("fetch", "load")) for f in functions):
        text += "It loads data from external sources. "
    if any(_contains_any(f, ("save", "update")) for f in functions):
        text += "It handles data persistence. "
    if any(_contains_any(f, ("validate", "check")) for f in functions):
        text += "It performs data validation. "
    return text.rstrip()


def _model_purpose(content: str, properties: Sequence[str]) -> str:
    text = "This is a data model that defines the structure of the application's data. "
    if "Codable" in content:
        text += "It can be encoded/decoded for data persistence. "
    public = [p for p in properties if "private" not in p][:3]
    names = [m.group(1) for m in (_PROPERTY_NAME.search(p) for p in public) if m]
    if names:
        text += f"It represents an entity with properties like: {', '.join(names)}. "
    return text.rstrip()


def _extension_purpose(content: str, functions: Sequence[str]) -> str:
    text = "This file extends existing types with additional functionality. "
    extended = [
        line.strip().removeprefix("extension ").rstrip("{").strip()
        for line in content.splitlines()
        if line.strip().startswith("extension ")
    ]
    if extended:
        text += f"It adds capabilities to: {', '.join(extended)}. "
    names = [n for n in (_declared_name(f, "(") for f in functions[:3]) if n]
    if names:
        text += f"New functions include: {', '.join(names)}. "
    return text.rstrip()


def describe_purpose(file_name: str, content: str) -> str:
    """Describe the role of a file with cheap keyword heuristics.

    The role is the first that applies among: test file, SwiftUI view,
    ViewModel, data model, type extension, generic component. Capability
    sentences are then appended for network, persistence and calculation
    keywords.

    Args:
        file_name (str): the file name
        content (str): the file content

    Returns:
        str: one paragraph
    """
    lines = content.splitlines()
    functions = _function_lines(lines)
    properties = [
        t
        for t in (line.strip() for line in lines)
        if _contains_any(t.split("=", 1)[0], ("var ", "let ")) and "init(" not in t and " = {" not in t
    ]
    type_lines = [
        t for t in (line.strip() for line in lines) if t.startswith(("class ", "struct ", "enum ", "protocol "))
    ]
    lowered_name = file_name.lower()

    if "test" in lowered_name:
        purpose = "This is a test file that verifies functionality of the codebase."
    elif "View" in content and "import SwiftUI" in content:
        purpose = _swiftui_view_purpose(content, functions, properties)
    elif "ViewModel" in content or "ObservableObject" in content:
        purpose = _view_model_purpose(functions, properties)
    elif any("Model" in t for t in type_lines) or "model" in lowered_name:
        purpose = _model_purpose(content, properties)
    elif any(line.strip().startswith("extension ") for line in lines):
        purpose = _extension_purpose(content, functions)
    else:
        purpose = "This file appears to be a component of the application's core functionality."

    capabilities: list[str] = []
    if _contains_any(content, _NETWORK_KEYWORDS):
        capabilities.append("It performs network communication.")
    if _contains_any(content, _PERSISTENCE_KEYWORDS):
        capabilities.append("It reads or writes persistent data.")
    if _contains_any(content, _CALCULATION_KEYWORDS):
        capabilities.append("It performs calculations.")
    return " ".join([purpose, *capabilities])

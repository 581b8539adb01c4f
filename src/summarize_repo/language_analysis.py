"""Per-language deep analysis, dispatched on the file's language key.

Analyzers are registered with :func:`summarize_repo.config.register_analyzer`;
files whose key has no analyzer get :func:`analyze_generic`.
"""

from __future__ import annotations

import re

from summarize_repo.config import ANALYZERS, register_analyzer
from summarize_repo.detectors import (
    JS_FAMILY,
    Section,
    analyze_complexity,
    analyze_doc_coverage,
    analyze_naming_conventions,
    analyze_semantics,
    analyze_technical_debt,
    common_terms,
    extract_comments,
)

_MD_HEADER = re.compile(r"^(#{1,6})\s+(.+)$", re.MULTILINE)
_MD_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_MD_TABLE = re.compile(r"\|[^\n]+\|\s*\n\|[-:\s|]+\|")
_MD_TASK = re.compile(r"^\s*- \[([ x])\]", re.MULTILINE)
_MD_CODE_BLOCK = re.compile(r"```([a-zA-Z0-9]*)\s*\n([^`]+)```")
_SWIFT_ERROR_HANDLING = re.compile(r"throws|throw|catch|try\?|try!|do\s*\{")

_MAX_LINKS = 3
_CODE_PREVIEW_CHARS = 50

SWIFTUI_FEATURES: tuple[tuple[str, str], ...] = (
    ("@State ", "State Management"),
    ("@Binding", "Binding Properties"),
    ("@ObservedObject", "Observable Objects"),
    ("@StateObject", "State Objects"),
    ("@EnvironmentObject", "Environment Objects"),
    ("@Environment", "Environment Values"),
    ("@ViewBuilder", "Custom View Builders"),
    ("@FetchRequest", "Core Data Integration"),
    ("GeometryReader", "Dynamic Layout"),
    ("PreferenceKey", "View Preferences"),
)

COMBINE_FEATURES: tuple[tuple[str, str], ...] = (
    ("Publisher", "Publishers"),
    ("Subscriber", "Subscribers"),
    ("Subject", "Subjects"),
    ("CurrentValueSubject", "Current Value Subjects"),
    ("PassthroughSubject", "Passthrough Subjects"),
    ("sink", "Sink Subscribers"),
    ("assign", "Property Assignment"),
    ("map", "Value Transformation"),
    ("flatMap", "Publisher Transformation"),
    ("combineLatest", "Multiple Publisher Combination"),
    ("merge", "Publisher Merging"),
    ("debounce", "Value Debouncing"),
    ("throttle", "Value Throttling"),
)

CONCURRENCY_FEATURES: tuple[tuple[str, str], ...] = (
    ("Task {", "Task Creation"),
    ("Task.detached", "Detached Tasks"),
    ("await", "Async/Await"),
    ("async let", "Concurrent Let Bindings"),
    ("withTaskGroup", "Task Groups"),
    ("withThrowingTaskGroup", "Error Handling Task Groups"),
    ("@MainActor", "Main Actor Isolation"),
    ("actor ", "Actor Types"),
    ("AsyncSequence", "Async Sequences"),
    ("AsyncStream", "Async Streams"),
)

COMMON_PROTOCOLS = (
    "Codable",
    "Hashable",
    "Equatable",
    "Comparable",
    "Identifiable",
    "CustomStringConvertible",
    "CaseIterable",
    "RawRepresentable",
)


def _features(content: str, features: tuple[tuple[str, str], ...]) -> list[str]:
    return [f"- {description}" for pattern, description in features if pattern in content]


def _attribute_targets(lines: list[str], attribute: str) -> list[str]:
    names = []
    for line in lines:
        if attribute in line:
            name = line.split("struct ")[-1].split(":")[0].strip()
            names.append(f"  - {name}")
    return names


@register_analyzer("swift")
def analyze_swift(content: str) -> list[Section]:
    """Swift deep analysis: language features, SwiftUI, Combine, concurrency and types."""
    lines = content.splitlines()

    modern: list[str] = []
    if "@propertyWrapper" in content:
        modern.append("- Uses Property Wrappers:")
        modern.extend(_attribute_targets(lines, "@propertyWrapper"))
    if "@resultBuilder" in content:
        modern.append("- Uses Result Builders:")
        modern.extend(_attribute_targets(lines, "@resultBuilder"))
    has_async = "async" in content
    if has_async:
        modern.append("- Uses Async/Await Pattern")
        if "AsyncSequence" in content:
            modern.append("  - Implements AsyncSequence")
        if "withTaskGroup" in content or "withThrowingTaskGroup" in content:
            modern.append("  - Uses Task Groups for concurrency")
    if "actor " in content:
        modern.append("- Uses Actor Model for concurrency")
        if "nonisolated" in content:
            modern.append("  - Uses nonisolated members")
        if "@MainActor" in content:
            modern.append("  - Uses MainActor isolation")

    sections = [
        Section("Modern Swift Features", tuple(modern)),
        Section("SwiftUI Features", tuple(_features(content, SWIFTUI_FEATURES) or ["- No SwiftUI features detected"])),
        Section(
            "Combine Framework Usage",
            tuple(_features(content, COMBINE_FEATURES) or ["- No Combine framework usage detected"]),
        ),
    ]
    if has_async:
        sections.append(Section("Concurrency Patterns", tuple(_features(content, CONCURRENCY_FEATURES))))

    protocols = [f"- Conforms to {proto}" for proto in COMMON_PROTOCOLS if proto in content]
    sections.append(Section("Protocol Conformance", tuple(protocols or ["- No common protocol conformance detected"])))

    memory = []
    if "weak " in content:
        memory.append("- Uses weak references")
    if "unowned " in content:
        memory.append("- Uses unowned references")
    sections.append(Section("Memory Management", tuple(memory)))

    if _SWIFT_ERROR_HANDLING.search(content):
        errors = []
        if "throws" in content:
            errors.append("- Uses throwing functions")
        if "try?" in content:
            errors.append("- Uses optional try")
        if "try!" in content:
            errors.append("- Warning: Uses force try")
        if "catch" in content:
            errors.append("- Implements error catching")
        sections.append(Section("Error Handling", tuple(errors)))

    types = []
    if "associatedtype" in content:
        types.append("- Uses associated types")
    if "some " in content:
        types.append("- Uses opaque return types")
    if "any " in content:
        types.append("- Uses existential types")
    if "where " in content and ("extension" in content or "func" in content):
        types.append("- Uses generic constraints")
    sections.append(Section("Type System Features", tuple(types)))
    return sections


@register_analyzer(sorted(JS_FAMILY))
def analyze_javascript(content: str) -> list[Section]:
    findings: list[str] = []
    if "import React" in content or "from 'react'" in content or 'from "react"' in content:
        findings.append("- Uses React framework")
        if "useState" in content or "useEffect" in content:
            findings.append("  - Implements React Hooks")
        if "useContext" in content:
            findings.append("  - Uses Context API for state management")
    if "async" in content and "await" in content:
        findings.append("- Uses async/await for asynchronous operations")
    if "class" in content and "extends" in content:
        findings.append("- Uses ES6+ class inheritance")
    if "=>" in content:
        findings.append("- Uses arrow functions")
    return [Section("JavaScript Analysis", tuple(findings))]


@register_analyzer("py")
def analyze_python(content: str) -> list[Section]:
    findings: list[str] = []
    if "import pandas" in content or "import numpy" in content:
        findings.append("- Uses data science libraries")
        if "DataFrame" in content:
            findings.append("  - Implements pandas DataFrames")
        if "np.array" in content:
            findings.append("  - Uses NumPy arrays")
    if "async def" in content:
        findings.append("- Uses async/await for asynchronous operations")
    if ": " in content and " ->" in content:
        findings.append("- Uses type hints")
    return [Section("Python Analysis", tuple(findings))]


@register_analyzer("sql")
def analyze_sql(content: str) -> list[Section]:
    """Detect the SQL dialect from distinctive syntax, then its dialect specific features.

    The first matching dialect wins, checked in the order PostgreSQL, MySQL,
    SQL Server.

    Args:
        content (str): the SQL script

    Returns:
        list[Section]: a single "SQL Analysis" section
    """
    findings: list[str] = []
    if "ILIKE" in content or "RETURNING" in content or "JSONB" in content:
        findings.append("- PostgreSQL detected:")
        if "JSONB" in content:
            findings.append("  - Uses JSONB data type")
            if "->" in content:
                findings.append("  - Uses JSON operators")
            if "@>" in content or "<@" in content:
                findings.append("  - Uses containment operators")
        if "WITH RECURSIVE" in content:
            findings.append("  - Uses recursive CTEs")
    elif "LIMIT 1,1" in content or "JSON_EXTRACT" in content:
        findings.append("- MySQL detected:")
        if "JSON_EXTRACT" in content:
            findings.append("  - Uses JSON functions")
        if "PARTITION BY" in content:
            findings.append("  - Uses partitioning")
    elif "TOP" in content or "CROSS APPLY" in content:
        findings.append("- SQL Server detected:")
        if "FOR XML" in content or "FOR JSON" in content:
            findings.append("  - Uses XML/JSON features")
        if "TRY_CONVERT" in content:
            findings.append("  - Uses error handling functions")
    return [Section("SQL Analysis", tuple(findings))]


@register_analyzer("dockerfile")
def analyze_dockerfile(content: str) -> list[Section]:  # noqa: C901, PLR0912
    """Dockerfile analysis.

    Covers the base image flavour and tag, multi-stage builds, dependency
    caching, security (user, permissions, ownership, health check), best
    practices, image size and runtime configuration.

    Args:
        content (str): the Dockerfile

    Returns:
        list[Section]: one section per concern, in a fixed order
    """
    lines = content.splitlines()
    from_lines = [line for line in lines if line.startswith("FROM")]
    sections: list[Section] = []

    if from_lines:
        base = from_lines[0]
        found = []
        if "alpine" in base:
            found.append("- Uses Alpine Linux (minimal size)")
        elif "slim" in base:
            found.append("- Uses slim variant")
        if ":latest" in base:
            found.append("- Warning: Using 'latest' tag (consider using specific version)")
        sections.append(Section("Base Image", tuple(found)))

    if len(from_lines) > 1:
        found = ["- Uses multi-stage builds"]
        if "COPY --from=" in content:
            found.append("- Copies artifacts between stages")
        sections.append(Section("Build Optimization", tuple(found)))

    cache = []
    if "COPY package*.json" in content:
        cache.append("- Optimizes dependency caching")
    if "RUN --mount=type=cache" in content:
        cache.append("- Uses BuildKit cache mounting")
    sections.append(Section("Cache Optimization", tuple(cache)))

    security = []
    if "USER " not in content:
        security.append("- Warning: No user specified (runs as root)")
    if "chmod 777" in content:
        security.append("- Warning: Overly permissive file permissions")
    if "COPY --chown=" in content:
        security.append("- Sets proper file ownership")
    if "HEALTHCHECK" not in content:
        security.append("- Warning: No health check defined")
    sections.append(Section("Security Analysis", tuple(security)))

    practices = []
    if "HEALTHCHECK" in content:
        practices.append("- Implements health checks")
    if "ONBUILD" in content:
        practices.append("- Uses ONBUILD triggers")
    if "ARG" in content:
        practices.append("- Uses build arguments for configuration")
    if "ENTRYPOINT" in content and "CMD" in content:
        practices.append("- Properly configures ENTRYPOINT with CMD")
    sections.append(Section("Best Practices", tuple(practices)))

    size = []
    if "rm -rf" in content and "/var/cache" in content:
        size.append("- Cleans package cache")
    if "--no-cache" in content:
        size.append("- Uses no-cache flag for package managers")
    if any("&&" in line and "\\" in line for line in lines):
        size.append("- Combines RUN commands to reduce layers")
    sections.append(Section("Size Optimization", tuple(size)))

    runtime = []
    if "ENV " in content:
        runtime.append("- Sets environment variables")
    if "VOLUME" in content:
        runtime.append("- Defines persistent storage")
    if "EXPOSE" in content:
        runtime.append("- Exposes ports")
    sections.append(Section("Runtime Configuration", tuple(runtime)))
    return sections


@register_analyzer(["md", "markdown"])
def analyze_markdown(content: str) -> list[Section]:
    """Markdown structure: headers, links, tables, task lists and code blocks.

    Args:
        content (str): the Markdown document

    Returns:
        list[Section]: a single "Markdown Analysis" section
    """
    findings: list[str] = []

    headers: dict[int, list[str]] = {}
    for m in _MD_HEADER.finditer(content):
        headers.setdefault(len(m.group(1)), []).append(m.group(2).strip())
    if headers:
        counts = ", ".join(f"H{level}: {len(titles)}" for level, titles in sorted(headers.items()))
        findings.append(f"  • Headers: {counts}")
        if 1 in headers:
            findings.append("  • Document Structure:")
            findings.extend(f"    ◦ {title}" for title in headers[1])

    links = [(m.group(1), m.group(2)) for m in _MD_LINK.finditer(content)]
    if links:
        findings.append(f"  • Links ({len(links)}):")
        findings.extend(f"    ◦ {title} -> {target}" for title, target in links[:_MAX_LINKS])
        if len(links) > _MAX_LINKS:
            findings.append(f"    ◦ ... and {len(links) - _MAX_LINKS} more")

    tables = _MD_TABLE.findall(content)
    if tables:
        findings.append(f"  • Tables: {len(tables)}")

    tasks = _MD_TASK.findall(content)
    if tasks:
        completed = sum(1 for mark in tasks if mark == "x")
        findings.append(f"  • Tasks: {completed}/{len(tasks)} completed")

    blocks = [(m.group(1) or "plain", m.group(2)) for m in _MD_CODE_BLOCK.finditer(content)]
    if blocks:
        findings.append(f"  • Code Blocks ({len(blocks)}):")
        languages = sorted({lang for lang, _ in blocks})
        findings.append(f"    ◦ Languages: {', '.join(languages)}")
        first_lang, first_code = blocks[0]
        preview = first_code[:_CODE_PREVIEW_CHARS].replace("\n", " ")
        findings.append(f"    ◦ First Block ({first_lang}): {preview}...")

    return [Section("Markdown Analysis", tuple(findings))]


@register_analyzer("svelte")
def analyze_svelte(content: str) -> list[Section]:
    findings: list[str] = []
    if "<script" in content:
        findings.append("- Contains script section")
        if "export let" in content:
            findings.append("  - Uses props")
        if "$:" in content:
            findings.append("  - Uses reactive declarations")
        if "onMount" in content:
            findings.append("  - Uses lifecycle methods")
    if "import { writable }" in content or "import { readable }" in content:
        findings.append("- Uses Svelte stores for state management")
    if "transition:" in content or "animate:" in content:
        findings.append("- Implements animations/transitions")
    if "use:" in content:
        findings.append("- Uses Svelte actions")
    if "on:" in content:
        findings.append("- Uses event handlers")
        if "preventDefault" in content:
            findings.append("  - Implements event modifiers")
    return [Section("Svelte Analysis", tuple(findings))]


def analyze_generic(content: str) -> list[Section]:
    """Fallback for languages without a registered analyzer: the most common terms."""
    terms = common_terms(content)
    if not terms:
        return []
    return [Section("General Analysis", (f"  • Common Terms: {', '.join(terms)}",))]


def analyze_comments(content: str, key: str) -> list[Section]:
    comments, doc_comments = extract_comments(content, key)
    sections = []
    coverage = analyze_doc_coverage(doc_comments)
    if coverage:
        sections.append(Section("Documentation Coverage", tuple(coverage)))
    debt = analyze_technical_debt(comments)
    if debt:
        sections.append(Section("Technical Debt Analysis", tuple(debt)))
    return sections


def analyze_language(content: str, key: str) -> list[Section]:
    """Run the full language analysis of one file.

    The registered analyzer for ``key`` (or the generic fallback) runs first,
    then the complexity metrics, then the advanced analysis (comments, code
    quality, semantics) for every language except Dockerfiles. Sections
    without findings are dropped.

    Args:
        content (str): the file content
        key (str): language dispatch key, see :func:`summarize_repo.config.language_key`

    Returns:
        list[Section]: the analysis sections, in a fixed order
    """
    analyzer = ANALYZERS.get(key, analyze_generic)
    sections = list(analyzer(content))
    sections.append(Section("Complexity Analysis", tuple(analyze_complexity(content))))
    if key != "dockerfile":
        sections.extend(analyze_comments(content, key))
        sections.append(Section("Code Quality Metrics", tuple(analyze_naming_conventions(content))))
        sections.append(Section("Semantic Analysis", tuple(analyze_semantics(content))))
    return [section for section in sections if section.lines]

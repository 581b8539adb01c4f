from __future__ import annotations

import pytest

from summarize_repo.detectors import (
    NO_PATTERNS,
    NO_PERFORMANCE,
    NO_SECURITY,
    NO_TESTING,
    Section,
    analyze_code_intent,
    analyze_complexity,
    analyze_doc_coverage,
    analyze_documentation,
    analyze_key_components,
    analyze_naming_conventions,
    analyze_performance,
    analyze_security,
    analyze_semantics,
    analyze_technical_debt,
    analyze_testing,
    architecture_patterns,
    common_terms,
    count_comment_lines,
    describe_purpose,
    extract_comments,
    extract_declarations,
    extract_domain_terms,
    find_architecture_patterns,
    naming_convention_shares,
    quick_summary,
)


def _function_with_ifs(count: int) -> str:
    return "func f() {\n" + "    if x { y() }\n" * count + "}\n"


@pytest.mark.unit
def test_section_render_puts_title_first() -> None:
    assert Section("Title", ("- a", "- b")).render() == "Title:\n- a\n- b"


@pytest.mark.unit
def test_architecture_patterns_sentinel_when_nothing_matches() -> None:
    assert architecture_patterns("plain text") == NO_PATTERNS


@pytest.mark.unit
def test_architecture_patterns_joins_labels() -> None:
    assert architecture_patterns("MyController uses a Factory") == "MVC | Factory"


@pytest.mark.unit
@pytest.mark.parametrize("addition", ["Controller", "Store", "Subject", "Factory", "Singleton", "MVVM"])
def test_architecture_patterns_are_monotonic(addition: str) -> None:
    base = "final class UserViewModel"
    before = find_architecture_patterns(base)

    after = find_architecture_patterns(f"{base} {addition}")

    assert set(before) <= set(after)


@pytest.mark.unit
def test_analyze_security_reports_each_group() -> None:
    lines = analyze_security("let password = token")

    assert lines == ["⚠️ Contains sensitive data handling", "⚠️ Contains authentication logic"]


@pytest.mark.unit
def test_analyze_security_encryption_is_positive() -> None:
    assert analyze_security("encrypt(data)") == ["✓ Uses encryption"]


@pytest.mark.unit
def test_sentinels_when_nothing_found() -> None:
    assert analyze_security("") == [NO_SECURITY]
    assert analyze_performance("") == [NO_PERFORMANCE]
    assert analyze_testing("") == [NO_TESTING]


@pytest.mark.unit
def test_analyze_testing_detects_assertions() -> None:
    assert analyze_testing("assert x") == ["✓ Contains assertions"]


@pytest.mark.unit
def test_analyze_performance_detects_async_and_cache() -> None:
    lines = analyze_performance("async function load() { await cache.get() }")

    assert "+ Uses async/await for better performance" in lines
    assert "+ Implements caching" in lines


@pytest.mark.unit
def test_complexity_warns_above_ten_control_flow_lines() -> None:
    lines = analyze_complexity(_function_with_ifs(11))

    assert "- Control flow complexity: 11" in lines
    assert any("High complexity" in line for line in lines)


@pytest.mark.unit
def test_complexity_silent_at_nine_control_flow_lines() -> None:
    lines = analyze_complexity(_function_with_ifs(9))

    assert "- Control flow complexity: 9" in lines
    assert not any("High complexity" in line for line in lines)


@pytest.mark.unit
def test_complexity_warns_on_deep_nesting() -> None:
    lines = analyze_complexity("a {\n b {\n c {\n d {\n e {\n}}}}}\n")

    assert "- Maximum nesting depth: 5" in lines
    assert any("Deep nesting" in line for line in lines)


@pytest.mark.unit
def test_complexity_warns_on_long_functions() -> None:
    content = "function big() {\n" + "  step();\n" * 31 + "}\n"

    lines = analyze_complexity(content)

    assert "- Longest function: 31 lines" in lines
    assert any("Long function" in line for line in lines)


@pytest.mark.unit
def test_naming_convention_shares_are_even_for_mixed_tokens() -> None:
    shares = naming_convention_shares(["getValue", "get_value", "GetValue"])

    assert shares == {"camelCase": 33, "snake_case": 33, "PascalCase": 33}


@pytest.mark.unit
def test_naming_conventions_flag_inconsistency() -> None:
    lines = analyze_naming_conventions("getValue get_value GetValue")

    assert "- camelCase: 33%" in lines
    assert lines[-1] == "Warning: Inconsistent naming conventions"


@pytest.mark.unit
def test_naming_conventions_empty_without_identifiers() -> None:
    assert analyze_naming_conventions("(){} 123") == []


@pytest.mark.unit
def test_analyze_documentation_counts_comment_kinds() -> None:
    lines = analyze_documentation("// a\n/// b\n// TODO: x\n")

    assert lines == [
        "- Contains 2 lines of inline comments",
        "- Contains 1 lines of documentation comments",
        "! Contains TODO/FIXME markers",
    ]


@pytest.mark.unit
def test_analyze_documentation_python_uses_hash_and_docstrings() -> None:
    lines = analyze_documentation('"""Module."""\n# note\nx = 1\n', "py")

    assert "- Contains 1 lines of inline comments" in lines
    assert "- Contains 1 lines of documentation comments" in lines


@pytest.mark.unit
def test_extract_comments_slash_style() -> None:
    content = "/**\n * @param x\n * @return y\n */\n// TODO: fix\nlet a = 1\n"

    comments, docs = extract_comments(content, "swift")

    assert comments == ["TODO: fix"]
    assert docs == ["@param x", "@return y"]


@pytest.mark.unit
def test_extract_comments_single_line_doc_block_closes() -> None:
    comments, docs = extract_comments("/** one */\nlet a = 1\n// two\n", "js")

    assert docs == ["one"]
    assert comments == ["two"]


@pytest.mark.unit
def test_extract_comments_hash_style() -> None:
    content = '# hello\n"""Doc\nArgs:\n"""\nx = 1  # tail\n'

    comments, docs = extract_comments(content, "py")

    assert comments == ["hello"]
    assert docs == ["Doc", "Args:"]


@pytest.mark.unit
def test_doc_coverage_scores_and_warns() -> None:
    lines = analyze_doc_coverage(["@param x", "@return y"])

    assert lines == ["- Documentation Quality Score: 2/3", "  Warning: Missing usage examples"]


@pytest.mark.unit
def test_doc_coverage_empty_without_doc_comments() -> None:
    assert analyze_doc_coverage([]) == []


@pytest.mark.unit
def test_technical_debt_groups_in_marker_order() -> None:
    lines = analyze_technical_debt(["FIXME broken", "TODO: later", "HACK and TODO"])

    assert lines == [
        "- Planned Enhancement:",
        "  [TODO] TODO: later",
        "  [TODO] HACK and TODO",
        "- Known Issue:",
        "  [FIXME] FIXME broken",
        "- Implementation Concern:",
        "  [HACK] HACK and TODO",
    ]


@pytest.mark.unit
def test_extract_domain_terms_buckets_words() -> None:
    terms = extract_domain_terms("config token query")

    assert terms == {
        "Authentication": ["token"],
        "Database Operations": ["query"],
        "Configuration": ["config"],
    }


@pytest.mark.unit
def test_semantics_caps_terms_per_category() -> None:
    content = " ".join(f"error{i}" for i in range(1, 13))

    lines = analyze_semantics(content)

    assert "- Error Handling:" in lines
    assert "  - ... and 2 more" in lines
    assert sum(1 for line in lines if line.startswith("  - error")) == 10


@pytest.mark.unit
def test_code_intent_confidence() -> None:
    intents = analyze_code_intent("transform convert parse")

    assert intents[0][0] == "Data Transformation"
    assert intents[0][1] == pytest.approx(0.8)
    assert "- Data Transformation: 80% confidence" in analyze_semantics("transform convert parse")


@pytest.mark.unit
def test_code_intent_drops_weak_matches() -> None:
    assert analyze_code_intent("check") == []


@pytest.mark.unit
def test_common_terms_counts_and_filters() -> None:
    terms = common_terms("alpha beta alpha gamma delta alpha beta with this")

    assert terms == ["alpha", "beta", "delta", "gamma"]


@pytest.mark.unit
@pytest.mark.parametrize("key", ["py", ""])
def test_extract_declarations_single_function(key: str) -> None:
    decl = extract_declarations("def foo(): pass", key)

    assert decl.functions == ["foo"]
    assert decl.type_count == 0


@pytest.mark.unit
@pytest.mark.parametrize("key", ["py", ""])
def test_extract_declarations_single_class(key: str) -> None:
    decl = extract_declarations("class Bar: pass", key)

    assert decl.classes == ["Bar"]
    assert decl.function_count == 0


@pytest.mark.unit
def test_extract_declarations_python_keeps_bases() -> None:
    decl = extract_declarations("class Child(Base):\n    def run(self):\n        pass\n", "py")

    assert decl.classes == ["Child(Base)"]
    assert decl.functions == ["run"]


@pytest.mark.unit
def test_extract_declarations_javascript() -> None:
    content = "class A extends B {}\nasync function load() {}\nconst f = (x) => x\n"

    decl = extract_declarations(content, "js")

    assert decl.classes == ["A extends B"]
    assert decl.functions == ["load", "f"]


@pytest.mark.unit
def test_extract_declarations_swift() -> None:
    content = "struct S {}\nclass V: UIView {}\nprotocol P {}\nenum E {}\nclass func make() {}\n"

    decl = extract_declarations(content, "swift")

    assert decl.classes == ["V: UIView"]
    assert decl.structs == ["S"]
    assert decl.protocols == ["P"]
    assert decl.enums == ["E"]
    assert decl.functions == ["make"]
    assert decl.type_count == 4


@pytest.mark.unit
def test_key_components_javascript_extras() -> None:
    content = "async function load() {}\nel.addEventListener('click', load)\nnew Promise(r => r())\n"

    lines = analyze_key_components(content, "js")

    assert "  • Async Functions: load" in lines
    assert "  • Event Listeners: click" in lines
    assert "  • Uses Promises: Yes" in lines


@pytest.mark.unit
def test_key_components_python_decorators() -> None:
    lines = analyze_key_components("@dataclass\nclass A:\n    pass\n", "py")

    assert "  • Classes: A" in lines
    assert "  • Decorators: dataclass" in lines


@pytest.mark.unit
def test_count_comment_lines_by_family() -> None:
    assert count_comment_lines("# a\nx = 1\n#!/bin/sh\n", "py") == 1
    assert count_comment_lines("// a\n/* b\n * c\n */\nlet x = 1\n", "swift") == 4


@pytest.mark.unit
def test_quick_summary_reports_size_and_lines() -> None:
    assert quick_summary("a\nb\n") == "A 4 bytes file containing 2 lines of code."


@pytest.mark.unit
def test_describe_purpose_roles_and_capabilities() -> None:
    assert describe_purpose("test_app.py", "").startswith("This is a test file")
    purpose = describe_purpose("net.swift", "let url = URLSession.shared")
    assert purpose.startswith("This file appears to be a component")
    assert purpose.endswith("It performs network communication.")


@pytest.mark.unit
def test_describe_purpose_view_model() -> None:
    content = "class ProfileViewModel: ObservableObject {\n    @Published var name: String = \"\"\n    func load() {}\n}\n"

    purpose = describe_purpose("ProfileViewModel.swift", content)

    assert purpose.startswith("This is a ViewModel")
    assert "It manages and publishes changes to: name." in purpose
    assert "It loads data from external sources." in purpose

from __future__ import annotations

from hexsync.core.diagnostics import (
    ERROR,
    WARNING,
    Diagnostic,
    PathRule,
    build_diagnostics_index,
    diagnostics_from_validation,
    extract_error_info,
    format_diagnostics_markdown,
    get_descendant_counts,
    get_direct,
    has_descendant_diagnostics,
    normalize_location,
)


def _diag(severity: str, *locations: str, message: str = "bad") -> Diagnostic:
    return Diagnostic(severity, message, locations=tuple(locations))


def test_unrenderable_location_is_still_indexed() -> None:
    d = _diag(ERROR, "x.y")
    idx = build_diagnostics_index([d])
    assert get_direct("x.y", idx) == [d]
    assert get_direct("x", idx) == []


def test_descendant_counts_exclude_self() -> None:
    idx = build_diagnostics_index(
        [
            _diag(ERROR, "a"),
            _diag(ERROR, "a.b"),
            _diag(WARNING, "a.b.c"),
            _diag(WARNING, "ab.c"),
        ]
    )
    counts = get_descendant_counts("a", idx)
    assert (counts.errors, counts.warnings, counts.total) == (1, 1, 2)
    assert get_descendant_counts("a.b.c", idx).total == 0
    assert has_descendant_diagnostics("a", idx)
    assert not has_descendant_diagnostics("a.b.c", idx)


def test_multi_location_diagnostic_lands_everywhere() -> None:
    d = _diag(WARNING, "p.q", "r")
    idx = build_diagnostics_index([d])
    assert get_direct("p.q", idx) == [d]
    assert get_direct("r", idx) == [d]


def test_default_rule_rewrites_plutus_data() -> None:
    loc = "transaction.witness_set.plutus_data.0.fields"
    assert normalize_location(loc) == "transaction.witness_set.plutus_data.elems.0.fields"
    # Non-numeric continuation is left alone
    loc2 = "transaction.witness_set.plutus_data.tag"
    assert normalize_location(loc2) == loc2


def test_first_matching_rule_applies_once() -> None:
    rules = (PathRule("a.", "b.", None), PathRule("b.", "c.", None))
    assert normalize_location("a.x", rules) == "b.x"
    assert normalize_location("z.x", rules) == "z.x"
    idx = build_diagnostics_index([_diag(ERROR, "a.x")], rules)
    assert list(idx) == ["b.x"]


def test_extract_error_info() -> None:
    assert extract_error_info({"BadThing": {"n": 1}}) == ("BadThing", {"n": 1})
    assert extract_error_info({"Flag": "x"}) == ("Flag", None)
    assert extract_error_info({"a": 1, "b": 2}) == (None, {"a": 1, "b": 2})
    assert extract_error_info("oops") == (None, None)


def test_validation_result_flatten_order() -> None:
    result = {
        "warnings": [{"warning_message": "w1", "locations": ["a"]}],
        "errors": [{"error_message": "e1", "hint": "fix it", "error": {"Kind": {"x": 1}}}],
        "phase2_errors": [{"error_message": "e2"}],
        "phase2_warnings": [{"warning_message": "w2"}],
    }
    diags = diagnostics_from_validation(result)
    assert [(d.severity, d.message, d.phase) for d in diags] == [
        (ERROR, "e1", "Phase 1"),
        (ERROR, "e2", "Phase 2"),
        (WARNING, "w1", "Phase 1"),
        (WARNING, "w2", "Phase 2"),
    ]
    assert diags[0].hint == "fix it"
    assert diags[0].error_type == "Kind"
    assert diags[2].locations == ("a",)
    assert diagnostics_from_validation(None) == []
    assert diagnostics_from_validation([1, 2]) == []  # type: ignore[arg-type]


def test_markdown_report() -> None:
    assert format_diagnostics_markdown([]) == "✅ No problems detected"
    md = format_diagnostics_markdown(
        [
            Diagnostic(ERROR, "broken", hint="try again", locations=("a", "b"), phase="Phase 1"),
            Diagnostic(WARNING, "odd", phase="Phase 2"),
        ]
    )
    assert md.startswith("## ❌ Errors (1)")
    assert "### 1. [Phase 1] broken" in md
    assert "- **Hint:** try again" in md
    assert "- **Location:** `a`, `b`" in md
    assert "## ⚠️ Warnings (1)" in md
    assert md.endswith("### 1. [Phase 2] odd")

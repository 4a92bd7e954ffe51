"""Path-keyed diagnostics index with ancestor aggregation.

Diagnostics arrive from an external validator whose location convention may
not match the tree renderer's. Locations are rewritten by an ordered rule
table before indexing; anything that still does not match a rendered node
stays in the index and simply never highlights.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

log = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"
SEVERITIES = (ERROR, WARNING)


@dataclass(frozen=True)
class Diagnostic:
    severity: str
    message: str
    hint: str | None = None
    locations: tuple[str, ...] = ()
    phase: str | None = None
    error_type: str | None = None
    error_data: Any = None


@dataclass(frozen=True)
class DiagnosticCounts:
    errors: int = 0
    warnings: int = 0

    @property
    def total(self) -> int:
        return self.errors + self.warnings


@dataclass(frozen=True)
class PathRule:
    """Rewrite ``prefix`` to ``replacement`` when the remainder matches.

    ``suffix_pattern`` is a regex anchored at the start of the remainder;
    None matches any remainder.
    """

    prefix: str
    replacement: str
    suffix_pattern: str | None = None
    _compiled: re.Pattern[str] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.suffix_pattern is not None:
            object.__setattr__(self, "_compiled", re.compile(self.suffix_pattern))

    def apply(self, location: str) -> str | None:
        if not location.startswith(self.prefix):
            return None
        rest = location[len(self.prefix) :]
        if self._compiled is not None and self._compiled.match(rest) is None:
            return None
        return self.replacement + rest


DEFAULT_PATH_RULES: tuple[PathRule, ...] = (
    PathRule(
        "transaction.witness_set.plutus_data.",
        "transaction.witness_set.plutus_data.elems.",
        r"\d",
    ),
)

DiagnosticsIndex = dict[str, list[Diagnostic]]


def normalize_location(location: str, rules: Iterable[PathRule] = DEFAULT_PATH_RULES) -> str:
    """Apply the first matching rule once; unmatched locations pass through."""
    for rule in rules:
        rewritten = rule.apply(location)
        if rewritten is not None:
            return rewritten
    return location


def build_diagnostics_index(
    diagnostics: Iterable[Diagnostic], rules: Iterable[PathRule] = DEFAULT_PATH_RULES
) -> DiagnosticsIndex:
    rules = tuple(rules)
    index: DiagnosticsIndex = {}
    for diag in diagnostics:
        for location in diag.locations:
            key = normalize_location(location, rules)
            index.setdefault(key, []).append(diag)
    log.debug("diagnostics index: %d locations", len(index))
    return index


def get_direct(path: str, index: Mapping[str, list[Diagnostic]]) -> list[Diagnostic]:
    return list(index.get(path, ()))


def get_descendant_counts(path: str, index: Mapping[str, list[Diagnostic]]) -> DiagnosticCounts:
    """Severity totals for keys strictly below ``path`` (never ``path`` itself)."""
    prefix = path + "."
    errors = 0
    warnings = 0
    for key, diags in index.items():
        if not key.startswith(prefix):
            continue
        for d in diags:
            if d.severity == ERROR:
                errors += 1
            elif d.severity == WARNING:
                warnings += 1
    return DiagnosticCounts(errors, warnings)


def has_descendant_diagnostics(path: str, index: Mapping[str, list[Diagnostic]]) -> bool:
    prefix = path + "."
    return any(key.startswith(prefix) for key in index)


def split_by_severity(diagnostics: Iterable[Diagnostic]) -> tuple[list[Diagnostic], list[Diagnostic]]:
    errors: list[Diagnostic] = []
    warnings: list[Diagnostic] = []
    for d in diagnostics:
        if d.severity == ERROR:
            errors.append(d)
        elif d.severity == WARNING:
            warnings.append(d)
    return errors, warnings


# ---- Validator output ----

def extract_error_info(error: Any) -> tuple[str | None, Any]:
    """Split a single-key enum object into ``(error_type, error_data)``."""
    if not isinstance(error, dict):
        return None, None
    if len(error) == 1:
        (error_type, data), = error.items()
        if isinstance(data, (dict, list)):
            return str(error_type), data
        return str(error_type), None
    return None, error


def _diagnostic_from(item: Mapping[str, Any], severity: str, phase: str) -> Diagnostic:
    if severity == ERROR:
        message = item.get("error_message") or item.get("message") or ""
        error_type, error_data = extract_error_info(item.get("error"))
    else:
        message = item.get("warning_message") or item.get("message") or ""
        error_type, error_data = extract_error_info(item.get("warning"))
    locations = item.get("locations") or ()
    return Diagnostic(
        severity=severity,
        message=str(message),
        hint=item.get("hint"),
        locations=tuple(str(loc) for loc in locations),
        phase=phase,
        error_type=error_type,
        error_data=error_data,
    )


def diagnostics_from_validation(result: Mapping[str, Any] | None) -> list[Diagnostic]:
    """Flatten a validation result: phase 1 errors, phase 2 errors, then warnings."""
    if not isinstance(result, Mapping):
        return []
    out: list[Diagnostic] = []
    for key, severity, phase in (
        ("errors", ERROR, "Phase 1"),
        ("phase2_errors", ERROR, "Phase 2"),
        ("warnings", WARNING, "Phase 1"),
        ("phase2_warnings", WARNING, "Phase 2"),
    ):
        for item in result.get(key) or ():
            if isinstance(item, Mapping):
                out.append(_diagnostic_from(item, severity, phase))
    return out


def _markdown_section(title: str, items: list[Diagnostic]) -> str:
    md = f"## {title} ({len(items)})\n\n"
    for idx, item in enumerate(items, start=1):
        md += f"### {idx}. [{item.phase}] {item.message}\n"
        if item.hint:
            md += f"- **Hint:** {item.hint}\n"
        if item.locations:
            joined = "`, `".join(item.locations)
            md += f"- **Location:** `{joined}`\n"
        md += "\n"
    return md


def format_diagnostics_markdown(diagnostics: Iterable[Diagnostic]) -> str:
    errors, warnings = split_by_severity(diagnostics)
    if not errors and not warnings:
        return "✅ No problems detected"
    md = ""
    if errors:
        md += _markdown_section("❌ Errors", errors)
    if warnings:
        md += _markdown_section("⚠️ Warnings", warnings)
    return md.strip()

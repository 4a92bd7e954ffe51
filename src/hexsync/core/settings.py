from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hexsync.core.diagnostics import DEFAULT_PATH_RULES, PathRule
from hexsync.core.edit_session import HISTORY_LIMIT

PALETTE_NAMES = ("default", "dim", "high_contrast")


class SettingsError(Exception):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


@dataclass(frozen=True)
class Settings:
    debounce_seconds: float = 0.2
    focus_seconds: float = 2.5
    history_limit: int = HISTORY_LIMIT
    bytes_per_row: int = 16
    palette: str = "default"
    path_rules: tuple[PathRule, ...] = field(default=DEFAULT_PATH_RULES)


_NUMBER_KEYS = {
    "debounce_seconds": (float, 0.0),
    "focus_seconds": (float, 0.0),
    "history_limit": (int, 1),
    "bytes_per_row": (int, 1),
}
_KNOWN_KEYS = set(_NUMBER_KEYS) | {"palette", "path_rules", "extend_default_rules"}


def _parse_rules(raw: Any, errors: list[str]) -> list[PathRule]:
    if not isinstance(raw, list):
        errors.append("path_rules must be a list")
        return []
    rules: list[PathRule] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            errors.append(f"path_rules[{i}]: must be a mapping")
            continue
        prefix = item.get("prefix")
        replace = item.get("replace")
        when = item.get("when_suffix")
        if not isinstance(prefix, str) or not prefix:
            errors.append(f"path_rules[{i}]: 'prefix' required")
            continue
        if not isinstance(replace, str):
            errors.append(f"path_rules[{i}]: 'replace' required")
            continue
        if when is not None:
            if not isinstance(when, str):
                errors.append(f"path_rules[{i}]: 'when_suffix' must be a string")
                continue
            try:
                re.compile(when)
            except re.error as e:
                errors.append(f"path_rules[{i}]: bad when_suffix regex: {e}")
                continue
        extra = set(item) - {"prefix", "replace", "when_suffix"}
        if extra:
            errors.append(f"path_rules[{i}]: unknown keys {sorted(extra)}")
            continue
        rules.append(PathRule(prefix, replace, when))
    return rules


def load_settings(text: str | None) -> Settings:
    """Parse YAML settings; all problems are reported together."""
    if text is None or not text.strip():
        return Settings()
    try:
        data = yaml.safe_load(text)
    except Exception as e:  # pragma: no cover
        raise SettingsError([f"YAML parse error: {e}"]) from None
    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise SettingsError(["Top-level YAML must be a mapping"])

    errors: list[str] = []
    values: dict[str, Any] = {}
    for key in sorted(set(data) - _KNOWN_KEYS):
        errors.append(f"unknown setting: {key}")

    for key, (typ, minimum) in _NUMBER_KEYS.items():
        if key not in data:
            continue
        raw = data[key]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            errors.append(f"{key} must be a number")
            continue
        if typ is int and not isinstance(raw, int):
            errors.append(f"{key} must be an integer")
            continue
        if raw < minimum:
            errors.append(f"{key} must be >= {minimum}")
            continue
        values[key] = typ(raw)

    if "palette" in data:
        name = str(data["palette"]).lower().replace("-", "_")
        if name not in PALETTE_NAMES:
            errors.append(f"palette must be one of {', '.join(PALETTE_NAMES)}")
        else:
            values["palette"] = name

    if "path_rules" in data:
        rules = _parse_rules(data["path_rules"], errors)
        # User rules are tried before the built-in table
        if data.get("extend_default_rules", True):
            rules = rules + list(DEFAULT_PATH_RULES)
        values["path_rules"] = tuple(rules)

    if errors:
        raise SettingsError(errors)
    return Settings(**values)


def load_settings_file(path: str | Path) -> Settings:
    p = Path(path)
    if not p.exists():
        raise SettingsError([f"settings file not found: {p}"])
    return load_settings(p.read_text(encoding="utf-8"))

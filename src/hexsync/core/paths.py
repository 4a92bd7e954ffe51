from __future__ import annotations

import re
from dataclasses import dataclass

ROOT = "root"

INDEX = "index"
MAP_KEY = "map_key"
MAP_VALUE = "map_value"
TAG_VALUE = "tag_value"
CHUNK = "chunk"

STEP_KINDS = (INDEX, MAP_KEY, MAP_VALUE, TAG_VALUE, CHUNK)


@dataclass(frozen=True)
class Step:
    kind: str
    index: int = 0

    def token(self) -> str:
        if self.kind == INDEX:
            return str(self.index)
        if self.kind == MAP_KEY:
            return f"keys[{self.index}]"
        if self.kind == MAP_VALUE:
            return f"values[{self.index}]"
        if self.kind == TAG_VALUE:
            return "value"
        if self.kind == CHUNK:
            return f"chunks[{self.index}]"
        raise ValueError(f"unknown step kind: {self.kind}")


Path = tuple[Step, ...]

_TOKEN_RE = re.compile(r"^(?:(\d+)|(keys|values|chunks)\[(\d+)\]|(value))$")
_BRACKET_KINDS = {"keys": MAP_KEY, "values": MAP_VALUE, "chunks": CHUNK}


def index(i: int) -> Step:
    return Step(INDEX, i)


def map_key(i: int) -> Step:
    return Step(MAP_KEY, i)


def map_value(i: int) -> Step:
    return Step(MAP_VALUE, i)


def tag_value() -> Step:
    return Step(TAG_VALUE)


def chunk(i: int) -> Step:
    return Step(CHUNK, i)


def path_to_string(path: Path) -> str:
    """Serialize a path as ``root.<token>.<token>``.

    Every step is joined with ``.`` so a descendant's string always starts
    with ``ancestor + "."``.
    """
    if not path:
        return ROOT
    return ROOT + "." + ".".join(step.token() for step in path)


def parse_path(text: str | None) -> Path | None:
    """Parse a serialized path; returns None for foreign conventions."""
    if not isinstance(text, str):
        return None
    parts = text.split(".")
    if not parts or parts[0] != ROOT:
        return None
    steps: list[Step] = []
    for part in parts[1:]:
        m = _TOKEN_RE.match(part)
        if m is None:
            return None
        if m.group(1) is not None:
            steps.append(Step(INDEX, int(m.group(1))))
        elif m.group(2) is not None:
            steps.append(Step(_BRACKET_KINDS[m.group(2)], int(m.group(3))))
        else:
            steps.append(Step(TAG_VALUE))
    return tuple(steps)


def ancestors(path: Path) -> list[Path]:
    """Proper ancestors of ``path``, root first."""
    return [path[:i] for i in range(len(path))]


def is_descendant(path: str, ancestor: str) -> bool:
    return path.startswith(ancestor + ".")

from __future__ import annotations

from hexsync.core.nodes import ByteRange, Node, children, copy_range
from hexsync.core.paths import Path, parse_path


def hex_for_range(hex_text: str, rng: ByteRange | None) -> str:
    """Exact hex substring covered by ``rng``; clamped, empty when degenerate."""
    if rng is None or rng.length <= 0:
        return ""
    start = min(rng.hex_start, len(hex_text))
    end = min(rng.hex_end, len(hex_text))
    return hex_text[start:end]


def find_node(root: Node | None, path: Path | str) -> Node | None:
    if isinstance(path, str):
        parsed = parse_path(path)
        if parsed is None:
            return None
        path = parsed
    node = root
    for step in path:
        if node is None:
            return None
        node = next((child for s, child in children(node) if s == step), None)
    return node


def hex_for_path(root: Node | None, hex_text: str, path: Path | str) -> str | None:
    """Copy payload for the node at ``path`` (outer range preferred)."""
    node = find_node(root, path)
    if node is None:
        return None
    rng = copy_range(node)
    if rng is None:
        return None
    return hex_for_range(hex_text, rng)

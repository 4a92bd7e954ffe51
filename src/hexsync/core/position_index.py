"""Ordered position index over a decoded node tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hexsync.core.nodes import ByteRange, Node, node_label, short_type_name, walk
from hexsync.core.paths import Path, path_to_string

log = logging.getLogger(__name__)

PALETTE_SIZE = 8
BREADCRUMB_SEP = " → "


@dataclass(frozen=True)
class IndexEntry:
    path: Path
    path_str: str
    range: ByteRange
    outer_range: ByteRange | None
    label: str
    breadcrumb: str
    color_slot: int
    order: int  # visitation order among ranged nodes


def build_index(root: Node | None, palette_size: int = PALETTE_SIZE) -> list[IndexEntry]:
    """Pre-order list of every node that carries a range.

    Color slots follow visitation order (``counter % palette_size``) so
    coloring depends only on document structure.
    """
    entries: list[IndexEntry] = []
    if root is None:
        return entries
    crumbs: dict[Path, str] = {}
    counter = 0
    for path, node in walk(root):
        parent = crumbs.get(path[:-1]) if path else None
        crumb = short_type_name(node) if parent is None else parent + BREADCRUMB_SEP + short_type_name(node)
        crumbs[path] = crumb
        if node.range is None:
            continue
        entries.append(
            IndexEntry(
                path=path,
                path_str=path_to_string(path),
                range=node.range,
                outer_range=node.outer_range,
                label=node_label(node),
                breadcrumb=crumb,
                color_slot=counter % palette_size,
                order=counter,
            )
        )
        counter += 1
    log.debug("built position index: %d entries", len(entries))
    return entries

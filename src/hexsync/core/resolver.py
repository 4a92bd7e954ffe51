from __future__ import annotations

from bisect import bisect_right

from hexsync.core.nodes import ByteRange, Node, walk
from hexsync.core.paths import Path, path_to_string
from hexsync.core.position_index import IndexEntry


def _valid_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class PathResolver:
    """Offset -> innermost path and range -> path lookups over an index.

    Queries never raise; anything that cannot be resolved returns None.
    """

    def __init__(self, entries: list[IndexEntry]) -> None:
        self._entries = [e for e in entries if e.range.length > 0]
        # Sorted by start offset; ties keep visitation order
        self._by_start = sorted(self._entries, key=lambda e: (e.range.offset, e.order))
        self._starts = [e.range.offset for e in self._by_start]
        self._by_range: dict[tuple[int, int], IndexEntry] = {}
        self._by_path: dict[str, IndexEntry] = {}
        for e in entries:
            self._by_range.setdefault((e.range.offset, e.range.length), e)
            self._by_path.setdefault(e.path_str, e)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[IndexEntry]:
        return list(self._entries)

    def entry_at_offset(self, byte_offset: int) -> IndexEntry | None:
        if not _valid_int(byte_offset) or byte_offset < 0 or not self._entries:
            return None
        hi = bisect_right(self._starts, byte_offset)
        best: IndexEntry | None = None
        for e in self._by_start[:hi]:
            if not e.range.contains(byte_offset):
                continue
            if (
                best is None
                or e.range.length < best.range.length
                or (e.range.length == best.range.length and e.order < best.order)
            ):
                best = e
        return best

    def resolve_at_offset(self, byte_offset: int) -> Path | None:
        e = self.entry_at_offset(byte_offset)
        return e.path if e is not None else None

    def resolve_at_char(self, char_pos: int) -> Path | None:
        if not _valid_int(char_pos) or char_pos < 0:
            return None
        return self.resolve_at_offset(char_pos // 2)

    def resolve_path(self, target: ByteRange | None) -> Path | None:
        e = self.entry_for_range(target)
        return e.path if e is not None else None

    def entry_for_range(self, target: ByteRange | None) -> IndexEntry | None:
        if target is None:
            return None
        offset = getattr(target, "offset", None)
        length = getattr(target, "length", None)
        if not _valid_int(offset) or not _valid_int(length) or offset < 0 or length <= 0:
            return None
        return self._by_range.get((offset, length))

    def entry_for_path(self, path: Path | str | None) -> IndexEntry | None:
        if path is None:
            return None
        key = path if isinstance(path, str) else path_to_string(path)
        return self._by_path.get(key)

    def range_for_path(self, path: Path | str | None) -> ByteRange | None:
        e = self.entry_for_path(path)
        return e.range if e is not None else None


def find_path_to_range(root: Node | None, target: ByteRange | None) -> Path | None:
    """Depth-first search for the node whose ``range`` equals ``target``."""
    if root is None or target is None or target.length <= 0:
        return None
    for path, node in walk(root):
        rng = node.range
        if rng is not None and rng.offset == target.offset and rng.length == target.length:
            return path
    return None

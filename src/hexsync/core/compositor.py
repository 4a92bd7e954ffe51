"""Merge base/hover/focus highlight layers into coalesced display runs."""

from __future__ import annotations

from dataclasses import dataclass

from hexsync.core.nodes import ByteRange
from hexsync.core.position_index import IndexEntry


@dataclass(frozen=True)
class BaseSpan:
    start: int  # hex-char offset
    end: int
    color_slot: int
    label: str
    path: str


@dataclass(frozen=True)
class DisplaySpan:
    """One coalesced run of characters sharing color slot, hover and focus.

    ``label`` and ``path`` belong to the run's first character. A run can
    absorb a neighbouring node whose slot wrapped around to the same color;
    ``segments`` lists ``(start, label, path)`` for every node inside it, so
    ``label_at``/``path_at`` answer per character.
    """

    start: int
    end: int
    color_slot: int | None
    is_hover: bool
    is_focus: bool
    label: str
    path: str
    segments: tuple[tuple[int, str, str], ...] = ()

    @property
    def key(self) -> tuple[int | None, bool, bool]:
        return (self.color_slot, self.is_hover, self.is_focus)

    def text(self, hex_text: str) -> str:
        return hex_text[self.start : self.end]

    def _segment_at(self, pos: int) -> tuple[int, str, str] | None:
        if not self.start <= pos < self.end:
            return None
        found = None
        for seg in self.segments:
            if seg[0] > pos:
                break
            found = seg
        return found if found is not None else (self.start, self.label, self.path)

    def label_at(self, pos: int) -> str | None:
        seg = self._segment_at(pos)
        return seg[1] if seg is not None else None

    def path_at(self, pos: int) -> str | None:
        seg = self._segment_at(pos)
        return seg[2] if seg is not None else None


def base_spans(entries: list[IndexEntry]) -> list[BaseSpan]:
    """Character spans for every indexed node, innermost first.

    Ordering by byte length (stable on visitation) lets the compositor's
    first-wins rule give each character to its most specific node.
    """
    ordered = sorted(
        (e for e in entries if e.range.length > 0),
        key=lambda e: (e.range.length, e.order),
    )
    label_for = {e.path_str: f"{e.label} ({e.breadcrumb})" for e in ordered}
    return [
        BaseSpan(e.range.hex_start, e.range.hex_end, e.color_slot, label_for[e.path_str], e.path_str)
        for e in ordered
    ]


def _hex_bounds(rng: ByteRange | None, size: int) -> tuple[int, int] | None:
    if rng is None:
        return None
    offset = getattr(rng, "offset", None)
    length = getattr(rng, "length", None)
    if not isinstance(offset, int) or not isinstance(length, int) or offset < 0 or length <= 0:
        return None
    start = min(offset * 2, size)
    end = min((offset + length) * 2, size)
    if start >= end:
        return None
    return start, end


def composite(
    hex_text: str,
    spans: list[BaseSpan],
    hover: ByteRange | None = None,
    focus: ByteRange | None = None,
) -> list[DisplaySpan]:
    size = len(hex_text)
    if size == 0:
        return []
    slots: list[int | None] = [None] * size
    labels: list[str] = [""] * size
    paths: list[str] = [""] * size
    hovered = [False] * size
    focused = [False] * size

    for sp in spans:
        for i in range(max(0, sp.start), min(sp.end, size)):
            if slots[i] is None:
                slots[i] = sp.color_slot
                labels[i] = sp.label
                paths[i] = sp.path

    hb = _hex_bounds(hover, size)
    if hb is not None:
        for i in range(*hb):
            hovered[i] = True
    fb = _hex_bounds(focus, size)
    if fb is not None:
        for i in range(*fb):
            focused[i] = True

    out: list[DisplaySpan] = []
    i = 0
    while i < size:
        key = (slots[i], hovered[i], focused[i])
        j = i + 1
        while j < size and (slots[j], hovered[j], focused[j]) == key:
            j += 1
        segments = tuple(
            (k, labels[k], paths[k]) for k in range(i, j) if k == i or paths[k] != paths[k - 1]
        )
        out.append(DisplaySpan(i, j, slots[i], hovered[i], focused[i], labels[i], paths[i], segments))
        i = j
    return out


def paint_priority(span: DisplaySpan) -> str:
    """Which layer a renderer should paint: focus > hover > base color."""
    if span.is_focus:
        return "focus"
    if span.is_hover:
        return "hover"
    if span.color_slot is not None:
        return "base"
    return "plain"

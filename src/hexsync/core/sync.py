"""Hover/focus/expansion coordination between the hex and tree views.

One controller per open document. Hover and focus are independent axes;
editing is handled by :class:`~hexsync.core.edit_session.TextEditSession`.
Resolver misses never raise, they just mean "no highlight".
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from hexsync.core.clipboard import find_node, hex_for_path, hex_for_range
from hexsync.core.compositor import DisplaySpan, composite
from hexsync.core.diagnostics import (
    DEFAULT_PATH_RULES,
    Diagnostic,
    DiagnosticCounts,
    DiagnosticsIndex,
    PathRule,
    build_diagnostics_index,
    get_descendant_counts,
    get_direct,
    normalize_location,
)
from hexsync.core.document import Document
from hexsync.core.nodes import ByteRange, copy_range, has_children, walk
from hexsync.core.paths import Path, ancestors, parse_path, path_to_string
from hexsync.core.timers import Scheduler, TimerHandle

log = logging.getLogger(__name__)

DEFAULT_FOCUS_SECONDS = 2.5
DEFAULT_EXPAND_DEPTH = 2


@dataclass(frozen=True)
class HoverState:
    path: Path | None = None
    range: ByteRange | None = None

    @property
    def active(self) -> bool:
        return self.range is not None


@dataclass
class FocusState:
    path_str: str
    path: Path | None
    range: ByteRange | None
    handle: TimerHandle | None = None


IDLE = HoverState()


class SyncController:
    def __init__(
        self,
        scheduler: Scheduler,
        *,
        focus_seconds: float = DEFAULT_FOCUS_SECONDS,
        path_rules: Iterable[PathRule] = DEFAULT_PATH_RULES,
        expand_depth: int = DEFAULT_EXPAND_DEPTH,
        on_hover_path: Callable[[str | None], None] | None = None,
        on_hover_range: Callable[[ByteRange | None], None] | None = None,
        on_focus: Callable[[ByteRange | None], None] | None = None,
        on_focus_complete: Callable[[], None] | None = None,
        on_show_in_tree: Callable[[ByteRange], None] | None = None,
        on_expand: Callable[[list[str]], None] | None = None,
        on_scroll_to: Callable[[str], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self.focus_seconds = focus_seconds
        self.path_rules = tuple(path_rules)
        self.expand_depth = expand_depth
        self.on_hover_path = on_hover_path
        self.on_hover_range = on_hover_range
        self.on_focus = on_focus
        self.on_focus_complete = on_focus_complete
        self.on_show_in_tree = on_show_in_tree
        self.on_expand = on_expand
        self.on_scroll_to = on_scroll_to

        self._document = Document.empty()
        self._hover: HoverState = IDLE
        self._focus: FocusState | None = None
        self._expanded: set[str] = set()
        self._diagnostics: list[Diagnostic] = []
        self._diag_index: DiagnosticsIndex = {}

    # ---- Document ----
    @property
    def document(self) -> Document:
        return self._document

    def set_document(self, document: Document) -> None:
        """Swap in a freshly decoded document; old highlights are dropped."""
        had_tree = self._document.root is not None
        self._document = document
        self.clear_focus()
        self._set_hover(IDLE)
        containers = {path_to_string(p) for p, n in walk(document.root) if has_children(n)}
        if had_tree:
            self._expanded &= containers
        else:
            self._expanded = {
                path_to_string(p)
                for p, n in walk(document.root)
                if has_children(n) and len(p) < self.expand_depth
            }
        log.debug("document set: %d entries, %d expanded", len(document.entries), len(self._expanded))

    # ---- Diagnostics ----
    def set_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> None:
        self._diagnostics = list(diagnostics)
        self._diag_index = build_diagnostics_index(self._diagnostics, self.path_rules)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return list(self._diagnostics)

    @property
    def diagnostics_index(self) -> DiagnosticsIndex:
        return self._diag_index

    def direct_diagnostics(self, path: str) -> list[Diagnostic]:
        return get_direct(path, self._diag_index)

    def descendant_counts(self, path: str) -> DiagnosticCounts:
        return get_descendant_counts(path, self._diag_index)

    # ---- Hover ----
    @property
    def hover(self) -> HoverState:
        return self._hover

    def hover_hex(self, byte_offset: int) -> Path | None:
        entry = self._document.resolver.entry_at_offset(byte_offset)
        if entry is None:
            self._set_hover(IDLE)
            return None
        self._set_hover(HoverState(entry.path, entry.range))
        return entry.path

    def hover_hex_char(self, char_pos: int) -> Path | None:
        if not isinstance(char_pos, int) or char_pos < 0:
            self._set_hover(IDLE)
            return None
        return self.hover_hex(char_pos // 2)

    def hover_tree(self, path: Path | str) -> ByteRange | None:
        node = find_node(self._document.root, path)
        rng = copy_range(node) if node is not None else None
        if rng is None:
            self._set_hover(IDLE)
            return None
        if isinstance(path, str):
            path = parse_path(path)
        self._set_hover(HoverState(path, rng))
        return rng

    def leave(self) -> None:
        self._set_hover(IDLE)

    def _set_hover(self, state: HoverState) -> None:
        if state == self._hover:
            return
        self._hover = state
        if self.on_hover_path is not None:
            self.on_hover_path(path_to_string(state.path) if state.path is not None else None)
        if self.on_hover_range is not None:
            self.on_hover_range(state.range)

    # ---- Focus ----
    @property
    def focus(self) -> FocusState | None:
        return self._focus

    def focus_range(self, rng: ByteRange | None) -> bool:
        """Focus a byte range; returns False when no tree node owns it.

        An unowned range still highlights in the hex view but expands nothing.
        """
        if rng is None or rng.length <= 0:
            return False
        path = self._document.resolver.resolve_path(rng)
        if path is None:
            log.debug("focus range %s has no tree node", rng)
            self._install_focus("", None, rng)
            return False
        self._install_focus(path_to_string(path), path, rng)
        return True

    def focus_path(self, path: Path | str) -> bool:
        path_str = path if isinstance(path, str) else path_to_string(path)
        parsed = parse_path(path_str) if isinstance(path, str) else path
        rng = self._document.resolver.range_for_path(path_str)
        if rng is None:
            log.debug("focus path %s has no range", path_str)
            return False
        self._install_focus(path_str, parsed, rng)
        return True

    def focus_location(self, location: str) -> bool:
        """Focus a diagnostic location given in the validator's convention."""
        return self.focus_path(normalize_location(location, self.path_rules))

    def clear_focus(self) -> None:
        state = self._focus
        if state is None:
            return
        if state.handle is not None:
            state.handle.cancel()
        self._focus = None
        if self.on_focus is not None and state.range is not None:
            self.on_focus(None)

    def _install_focus(self, path_str: str, path: Path | None, rng: ByteRange | None) -> None:
        previous = self._focus
        if previous is not None and previous.handle is not None:
            previous.handle.cancel()
            log.debug("focus superseded: %s -> %s", previous.path_str, path_str)
        state = FocusState(path_str, path, rng)
        self._focus = state
        state.handle = self._scheduler.call_later(self.focus_seconds, lambda: self._expire(state))

        if path is not None:
            opened = []
            for anc in ancestors(path):
                key = path_to_string(anc)
                if key not in self._expanded:
                    self._expanded.add(key)
                    opened.append(key)
            if opened and self.on_expand is not None:
                self.on_expand(opened)
        if self.on_focus is not None:
            self.on_focus(rng)
        if rng is not None and path is not None and self.on_scroll_to is not None:
            self.on_scroll_to(path_str)

    def _expire(self, state: FocusState) -> None:
        if self._focus is not state:
            return
        self._focus = None
        if self.on_focus is not None:
            self.on_focus(None)
        if self.on_focus_complete is not None:
            self.on_focus_complete()

    def show_in_tree(self, char_pos: int) -> ByteRange | None:
        """Hex context-menu action: reveal the innermost node under a character."""
        path = self._document.resolver.resolve_at_char(char_pos)
        if path is None:
            return None
        rng = self._document.resolver.range_for_path(path)
        if rng is None:
            return None
        if self.on_show_in_tree is not None:
            self.on_show_in_tree(rng)
        self._install_focus(path_to_string(path), path, rng)
        return rng

    # ---- Expansion ----
    @property
    def expanded(self) -> set[str]:
        return set(self._expanded)

    def is_expanded(self, path: str) -> bool:
        return path in self._expanded

    def expand(self, path: str) -> None:
        self._expanded.add(path)

    def collapse(self, path: str) -> None:
        self._expanded.discard(path)

    def toggle(self, path: str) -> bool:
        if path in self._expanded:
            self._expanded.discard(path)
            return False
        self._expanded.add(path)
        return True

    # ---- Rendering helpers ----
    def display_spans(self) -> list[DisplaySpan]:
        focus_range = self._focus.range if self._focus is not None else None
        doc = self._document
        return composite(doc.hex, doc.spans, self._hover.range, focus_range)

    def copy_hex(self, target: Path | str | ByteRange) -> str | None:
        if isinstance(target, ByteRange):
            return hex_for_range(self._document.hex, target)
        return hex_for_path(self._document.root, self._document.hex, target)

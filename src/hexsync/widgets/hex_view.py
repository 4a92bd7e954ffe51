from __future__ import annotations

from contextlib import suppress
from math import ceil

from rich.style import Style
from rich.text import Text
from textual import events
from textual.reactive import reactive
from textual.widget import Widget

from hexsync.core.compositor import DisplaySpan, paint_priority
from hexsync.core.nodes import ByteRange
from hexsync.core.sync import SyncController
from hexsync.ui.palette import PALETTE, Palette


class HexView(Widget):
    """Read-only, colorized rendering of the decoded hex.

    - Paints composited display spans (base color, hover, focus).
    - Pointer movement hovers the innermost node under the byte.
    - Scrolling is controlled by ``scroll_rows`` like a pager.
    """

    DEFAULT_BYTES_PER_ROW = 16
    GUTTER = 10  # "00000000  "
    can_focus = True

    BINDINGS = [
        ("left", "cursor_left", "Left"),
        ("right", "cursor_right", "Right"),
        ("up", "cursor_up", "Up"),
        ("down", "cursor_down", "Down"),
        ("pageup", "page_up", "PgUp"),
        ("pagedown", "page_down", "PgDn"),
        ("t", "show_in_tree", "Show in tree"),
        ("c", "copy_node", "Copy hex"),
    ]

    scroll_rows: int = reactive(0)
    cursor_offset: int = reactive(0)

    def __init__(
        self,
        controller: SyncController,
        *,
        bytes_per_row: int | None = None,
        palette: Palette | None = None,
    ) -> None:
        super().__init__()
        self.controller = controller
        self.bytes_per_row = bytes_per_row or self.DEFAULT_BYTES_PER_ROW
        self.palette = palette or PALETTE
        self._hex = ""
        self._styles: list[Style | None] = []
        self._spans: list[DisplaySpan] = []

    # ---- Data ----
    @property
    def size_bytes(self) -> int:
        return len(self._hex) // 2

    def set_content(self, hex_text: str, spans: list[DisplaySpan]) -> None:
        self._hex = hex_text
        self._spans = spans
        self._styles = self._char_styles(hex_text, spans)
        if self.cursor_offset >= self.size_bytes:
            self.cursor_offset = max(0, self.size_bytes - 1)
        self.refresh()

    def _span_style(self, span: DisplaySpan) -> Style | None:
        pal = self.palette
        layer = paint_priority(span)
        if layer == "focus":
            return Style(bgcolor=pal.hex_focus_bg, color=pal.hex_highlight_fg, bold=True)
        if layer == "hover":
            return Style(bgcolor=pal.hex_hover_bg, color=pal.hex_highlight_fg)
        if layer == "base":
            return Style(bgcolor=pal.slot_bg(span.color_slot), color=pal.hex_slot_fg)
        return Style(color=pal.hex_plain_fg)

    def _char_styles(self, hex_text: str, spans: list[DisplaySpan]) -> list[Style | None]:
        styles: list[Style | None] = [None] * len(hex_text)
        for span in spans:
            style = self._span_style(span)
            for i in range(span.start, min(span.end, len(hex_text))):
                styles[i] = style
        return styles

    # ---- Scrolling ----
    def total_rows(self) -> int:
        if self.size_bytes == 0:
            return 1
        return int(ceil(self.size_bytes / self.bytes_per_row))

    def visible_rows(self) -> int:
        h = self.size.height or 0
        return max(1, h) if h else 16

    def set_top_row(self, row: int) -> None:
        max_top = max(0, self.total_rows() - 1)
        self.scroll_rows = max(0, min(row, max_top))
        self.refresh()

    def scroll_to_range(self, rng: ByteRange | None) -> None:
        """Center the first row of ``rng`` in the viewport."""
        if rng is None:
            return
        row = rng.offset // self.bytes_per_row
        self.set_top_row(row - self.visible_rows() // 2)

    # ---- Rendering ----
    def render(self) -> Text:
        if not self._hex:
            return Text("No data", style=Style(color=self.palette.hex_plain_fg))
        bpr = self.bytes_per_row
        text = Text()
        start_row = self.scroll_rows
        for i in range(self.visible_rows()):
            row_off = (start_row + i) * bpr
            if row_off >= self.size_bytes:
                break
            line = Text(f"{row_off:08X}  ", style=Style(color=self.palette.hex_offset_fg))
            for col in range(bpr):
                byte_off = row_off + col
                if byte_off >= self.size_bytes:
                    break
                c0 = byte_off * 2
                line.append(self._hex[c0], style=self._styles[c0])
                line.append(self._hex[c0 + 1], style=self._styles[c0 + 1])
                if byte_off == self.cursor_offset and self.has_focus:
                    line.stylize(Style(underline=True), len(line) - 2, len(line))
                if col < bpr - 1:
                    # Keep runs visually continuous when the next byte shares the style
                    nxt = c0 + 2
                    same = nxt < len(self._styles) and self._styles[nxt] == self._styles[c0 + 1]
                    line.append(" ", style=self._styles[c0 + 1] if same else None)
            text.append(line)
            text.append("\n")
        if text.plain.endswith("\n"):
            text = text[:-1]
        return text

    # ---- Pointer ----
    def offset_at(self, x: int, y: int) -> int | None:
        col_x = x - self.GUTTER
        if col_x < 0:
            return None
        col = col_x // 3
        if col >= self.bytes_per_row:
            return None
        off = (self.scroll_rows + y) * self.bytes_per_row + col
        if off >= self.size_bytes:
            return None
        return off

    def label_at(self, offset: int) -> str | None:
        """Tooltip text for the node under a byte."""
        pos = offset * 2
        for span in self._spans:
            if span.start <= pos < span.end:
                return span.label_at(pos) or None
        return None

    def offset_at_event(self, event: events.MouseEvent) -> int | None:
        # Event coordinates include the border; content coordinates do not
        pos = event.get_content_offset(self)
        if pos is None:
            return None
        return self.offset_at(pos.x, pos.y)

    def on_mouse_move(self, event: events.MouseMove) -> None:
        off = self.offset_at_event(event)
        if off is None:
            self.controller.leave()
            self.tooltip = None
        else:
            self.controller.hover_hex(off)
            self.tooltip = self.label_at(off)

    def on_leave(self, event: events.Leave) -> None:
        self.controller.leave()

    def on_click(self, event: events.Click) -> None:
        off = self.offset_at_event(event)
        if off is not None:
            self.set_cursor(off)

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self.set_top_row(self.scroll_rows + 3)

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self.set_top_row(self.scroll_rows - 3)

    # ---- Cursor ----
    def set_cursor(self, offset: int) -> None:
        if self.size_bytes == 0:
            self.cursor_offset = 0
            return
        self.cursor_offset = max(0, min(offset, self.size_bytes - 1))
        row = self.cursor_offset // self.bytes_per_row
        if row < self.scroll_rows:
            self.set_top_row(row)
        elif row >= self.scroll_rows + self.visible_rows():
            self.set_top_row(row - self.visible_rows() + 1)
        self.controller.hover_hex(self.cursor_offset)
        self.refresh()

    def move_cursor(self, delta: int) -> None:
        self.set_cursor(self.cursor_offset + delta)

    def action_cursor_left(self) -> None:
        self.move_cursor(-1)

    def action_cursor_right(self) -> None:
        self.move_cursor(1)

    def action_cursor_up(self) -> None:
        self.move_cursor(-self.bytes_per_row)

    def action_cursor_down(self) -> None:
        self.move_cursor(self.bytes_per_row)

    def action_page_up(self) -> None:
        self.move_cursor(-self.bytes_per_row * self.visible_rows())

    def action_page_down(self) -> None:
        self.move_cursor(self.bytes_per_row * self.visible_rows())

    # ---- Context actions ----
    def action_show_in_tree(self) -> None:
        self.controller.show_in_tree(self.cursor_offset * 2)

    def action_copy_node(self) -> None:
        path = self.controller.document.resolver.resolve_at_offset(self.cursor_offset)
        if path is None:
            return
        payload = self.controller.copy_hex(path)
        if payload:
            with suppress(Exception):
                self.app.copy_to_clipboard(payload)
            if hasattr(self.app, "set_status_hint"):
                self.app.set_status_hint(f"[copied {len(payload) // 2} bytes]")  # type: ignore[attr-defined]

from __future__ import annotations

from collections.abc import Callable

from textual import events
from textual.widgets import TextArea

from hexsync.core.edit_session import HISTORY_LIMIT, TextEditSession, clamp_caret


class TextAreaCaretAdapter:
    """Maps character offsets onto a TextArea's (row, column) locations."""

    def __init__(self, area: TextArea) -> None:
        self.area = area

    def get_text(self) -> str:
        return self.area.text

    def set_text(self, text: str) -> None:
        self.area.load_text(text)

    def get_caret(self) -> int:
        return self.area.document.get_index_from_location(self.area.cursor_location)

    def set_caret(self, offset: int) -> None:
        offset = clamp_caret(self.area.text, offset)
        self.area.cursor_location = self.area.document.get_location_from_index(offset)

    def get_selection(self) -> tuple[int, int]:
        sel = self.area.selection
        doc = self.area.document
        return doc.get_index_from_location(sel.start), doc.get_index_from_location(sel.end)


class HexEditor(TextArea):
    """Raw input editor with caret-preserving undo/redo.

    TextArea's own history is bypassed; every change is recorded by a
    :class:`TextEditSession` so restores also land the caret where it was.
    """

    def __init__(
        self,
        text: str = "",
        *,
        history_limit: int = HISTORY_LIMIT,
        on_text: Callable[[str], None] | None = None,
        id: str | None = None,
    ) -> None:
        super().__init__(text, soft_wrap=True, id=id)
        self._on_text = on_text
        self.adapter = TextAreaCaretAdapter(self)
        self.session = TextEditSession(self.adapter, history_limit=history_limit, on_change=self._notify)

    def _notify(self, text: str) -> None:
        if self._on_text is not None:
            self._on_text(text)

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if event.text_area is not self:
            return
        self.session.on_content_changed(self.text, self.adapter.get_caret())
        self._notify(self.text)

    def action_undo(self) -> None:
        self.session.undo()

    def action_redo(self) -> None:
        self.session.redo()

    def on_paste(self, event: events.Paste) -> None:
        # Only plain text is inserted; the session records the result
        event.prevent_default()
        event.stop()
        if self.read_only:
            return
        start, end = self.adapter.get_selection()
        self.session.paste(event.text, start, end)

    def on_unmount(self) -> None:
        self.session.close()

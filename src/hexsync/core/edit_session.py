"""Caret-preserving editable buffer with bounded undo/redo.

Carets are plain character offsets so they survive the editable surface
being re-rendered; a :class:`CaretAdapter` translates them to and from the
live widget.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol

log = logging.getLogger(__name__)

HISTORY_LIMIT = 100


@dataclass(frozen=True)
class HistoryEntry:
    text: str
    caret: int


class History:
    """Bounded list of entries with a cursor.

    Text equal to the current entry is never pushed and leaves the redo
    entries alone; any other push truncates them first.
    """

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self.limit = limit
        self._entries: list[HistoryEntry] = [HistoryEntry("", 0)]
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> HistoryEntry:
        return self._entries[self._cursor]

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def push(self, text: str, caret: int) -> bool:
        if text == self.current.text:
            return False
        del self._entries[self._cursor + 1 :]
        self._entries.append(HistoryEntry(text, caret))
        while len(self._entries) > self.limit:
            self._entries.pop(0)
        self._cursor = len(self._entries) - 1
        return True

    def undo(self) -> HistoryEntry | None:
        if not self.can_undo():
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> HistoryEntry | None:
        if not self.can_redo():
            return None
        self._cursor += 1
        return self._entries[self._cursor]


class CaretAdapter(Protocol):
    """Bridge between character offsets and a live editable surface."""

    def get_text(self) -> str: ...

    def set_text(self, text: str) -> None: ...

    def get_caret(self) -> int: ...

    def set_caret(self, offset: int) -> None: ...


class StringCaretAdapter:
    """In-memory surface; useful headless and in tests."""

    def __init__(self, text: str = "", caret: int = 0) -> None:
        self.text = text
        self.caret = clamp_caret(text, caret)

    def get_text(self) -> str:
        return self.text

    def set_text(self, text: str) -> None:
        self.text = text
        self.caret = clamp_caret(text, self.caret)

    def get_caret(self) -> int:
        return self.caret

    def set_caret(self, offset: int) -> None:
        self.caret = clamp_caret(self.text, offset)


def clamp_caret(text: str, caret: int) -> int:
    return max(0, min(int(caret), len(text)))


def plain_text_from_clipboard(payload: str | Mapping[str, str] | None) -> str:
    """Only ``text/plain`` is ever inserted; rich flavors are ignored."""
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    text = payload.get("text/plain")
    return text if isinstance(text, str) else ""


class TextEditSession:
    def __init__(
        self,
        adapter: CaretAdapter | None = None,
        *,
        history_limit: int = HISTORY_LIMIT,
        on_change: Callable[[str], None] | None = None,
    ) -> None:
        self.adapter: CaretAdapter = adapter if adapter is not None else StringCaretAdapter()
        self.history = History(history_limit)
        self.on_change = on_change
        self._restoring = False
        self._pending_echoes = 0
        self._closed = False

    @property
    def text(self) -> str:
        return self.adapter.get_text()

    def on_content_changed(self, text: str, caret: int) -> bool:
        """Record an edit. Returns True when a history entry was pushed.

        Clearing the buffer discards the history.
        """
        if self._closed:
            return False
        if self._restoring:
            return False
        if self._pending_echoes:
            self._pending_echoes -= 1
            if text == self.history.current.text:
                return False
        if not text:
            self.reset()
            return False
        pushed = self.history.push(text, clamp_caret(text, caret))
        if pushed:
            log.debug("history push: %d entries, cursor %d", len(self.history), self.history.cursor)
        return pushed

    def undo(self) -> HistoryEntry | None:
        if self._closed:
            return None
        return self._restore(self.history.undo())

    def redo(self) -> HistoryEntry | None:
        if self._closed:
            return None
        return self._restore(self.history.redo())

    def _restore(self, entry: HistoryEntry | None) -> HistoryEntry | None:
        if entry is None:
            return None
        self._restoring = True
        # Surfaces that echo asynchronously deliver the same text later
        self._pending_echoes += 1
        try:
            self.adapter.set_text(entry.text)
            self.adapter.set_caret(entry.caret)
            if self.on_change is not None:
                self.on_change(entry.text)
        finally:
            self._restoring = False
        return entry

    def paste(
        self,
        payload: str | Mapping[str, str] | None,
        caret: int,
        selection_end: int | None = None,
    ) -> HistoryEntry:
        text = self.adapter.get_text()
        start = clamp_caret(text, caret)
        end = clamp_caret(text, selection_end) if selection_end is not None else start
        if end < start:
            start, end = end, start
        inserted = plain_text_from_clipboard(payload)
        new_text = text[:start] + inserted + text[end:]
        new_caret = start + len(inserted)
        self.adapter.set_text(new_text)
        self.adapter.set_caret(new_caret)
        self.on_content_changed(new_text, new_caret)
        if self.on_change is not None:
            self.on_change(new_text)
        return HistoryEntry(new_text, new_caret)

    def reset(self) -> None:
        """Start over with an empty history; the session stays open."""
        self.history = History(self.history.limit)
        self._pending_echoes = 0
        log.debug("history reset")

    def close(self) -> None:
        """Discard history; the session is not reusable afterwards."""
        self._closed = True
        self.history = History(self.history.limit)

    @property
    def closed(self) -> bool:
        return self._closed

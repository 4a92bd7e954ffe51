from __future__ import annotations

import pytest

from hexsync.core.edit_session import (
    History,
    HistoryEntry,
    StringCaretAdapter,
    TextEditSession,
    plain_text_from_clipboard,
)


def _type(session: TextEditSession, text: str) -> None:
    caret = len(text)
    session.adapter.set_text(text)
    session.adapter.set_caret(caret)
    session.on_content_changed(text, caret)


def test_history_starts_with_empty_entry() -> None:
    h = History()
    assert h.current == HistoryEntry("", 0)
    assert not h.can_undo() and not h.can_redo()
    assert h.undo() is None and h.redo() is None


def test_push_skips_duplicates_and_truncates_redo() -> None:
    h = History()
    assert h.push("a", 1)
    assert not h.push("a", 1)
    h.push("ab", 2)
    h.undo()
    assert h.can_redo()
    h.push("ac", 2)
    assert not h.can_redo()
    assert [e.text for e in h.entries()] == ["", "a", "ac"]


def test_history_cap_keeps_cursor_on_newest() -> None:
    h = History(limit=3)
    for text in ["a", "ab", "abc", "abcd"]:
        h.push(text, len(text))
    assert len(h) == 3
    assert [e.text for e in h.entries()] == ["ab", "abc", "abcd"]
    assert h.cursor == 2
    assert h.current.text == "abcd"


def test_history_limit_validation() -> None:
    with pytest.raises(ValueError):
        History(limit=0)


def test_undo_redo_restores_text_and_caret() -> None:
    session = TextEditSession()
    texts = ["8", "82", "8201", "820102"]
    for t in texts:
        _type(session, t)
    # caret moved away from the end before undoing
    session.adapter.set_caret(0)
    k = 3
    for _ in range(k):
        session.undo()
    assert session.text == "8"
    assert session.adapter.get_caret() == 1
    for _ in range(k):
        session.redo()
    assert session.text == "820102"
    assert session.adapter.get_caret() == 6
    assert session.redo() is None


def test_restore_does_not_push_history() -> None:
    changes: list[str] = []
    session = TextEditSession(on_change=changes.append)
    _type(session, "aa")
    _type(session, "aabb")
    session.undo()
    assert changes == ["aa"]
    assert len(session.history) == 3
    # Late echo of the restored text is ignored once
    assert not session.on_content_changed("aa", 2)
    assert session.history.can_redo()


def test_paste_inserts_plain_text_only() -> None:
    adapter = StringCaretAdapter("0000", caret=2)
    session = TextEditSession(adapter)
    entry = session.paste({"text/html": "<b>ff</b>", "text/plain": "ff"}, 2)
    assert entry == HistoryEntry("00ff00", 4)
    assert adapter.caret == 4
    session.paste("11", 0, 2)
    assert session.text == "11ff00"
    session.undo()
    assert session.text == "00ff00"
    assert plain_text_from_clipboard({"text/html": "x"}) == ""
    assert plain_text_from_clipboard(None) == ""


def test_closed_session_ignores_everything() -> None:
    session = TextEditSession()
    _type(session, "ab")
    session.close()
    assert session.closed
    assert session.undo() is None
    assert not session.on_content_changed("abc", 3)


def test_late_echoes_after_two_undos_keep_redo() -> None:
    session = TextEditSession()
    for t in ["a", "ab", "abc"]:
        _type(session, t)
    session.undo()
    session.undo()
    # Both change events arrive after the second restore, reading the live text
    assert not session.on_content_changed(session.text, 1)
    assert not session.on_content_changed(session.text, 1)
    assert [e.text for e in session.history.entries()] == ["", "a", "ab", "abc"]
    session.redo()
    session.redo()
    assert session.text == "abc"
    assert session.redo() is None


def test_push_of_current_text_keeps_redo_entries() -> None:
    h = History()
    h.push("a", 1)
    h.push("ab", 2)
    h.undo()
    assert not h.push("a", 1)
    assert h.can_redo()
    assert h.redo() == HistoryEntry("ab", 2)


def test_edit_after_pending_echo_still_recorded() -> None:
    session = TextEditSession()
    _type(session, "aa")
    _type(session, "aabb")
    session.undo()
    # The restore's echo never arrives; a real edit comes in instead
    assert session.on_content_changed("aac", 3)
    assert session.history.current.text == "aac"
    assert not session.history.can_redo()


def test_clearing_input_discards_history() -> None:
    session = TextEditSession()
    _type(session, "82")
    _type(session, "8201")
    _type(session, "")
    assert not session.closed
    assert len(session.history) == 1
    assert session.undo() is None
    assert session.text == ""
    # The session keeps recording after the reset
    _type(session, "a0")
    assert session.undo() == HistoryEntry("", 0)
    assert session.text == ""


def test_undo_to_empty_then_echo_keeps_redo() -> None:
    session = TextEditSession()
    _type(session, "a")
    session.undo()
    assert session.text == ""
    assert not session.on_content_changed("", 0)
    assert session.redo() == HistoryEntry("a", 1)

from __future__ import annotations

from hexsync.core.diagnostics import ERROR, WARNING, Diagnostic
from hexsync.core.document import Document
from hexsync.core.nodes import ArrayNode, ByteRange, MapNode
from hexsync.core.sync import SyncController
from hexsync.core.timers import ManualScheduler

HEX = "a20182020302d81841ff"


class Recorder:
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def __getattr__(self, name: str):
        if not name.startswith("on_"):
            raise AttributeError(name)

        def record(*args) -> None:
            self.events.append((name, *args))

        return record

    def named(self, name: str) -> list[tuple]:
        return [e[1:] for e in self.events if e[0] == name]


def _controller(tree=None, hex_text: str = HEX, **kwargs) -> tuple[SyncController, ManualScheduler, Recorder]:
    sched = ManualScheduler()
    rec = Recorder()
    ctl = SyncController(
        sched,
        on_hover_path=rec.on_hover_path,
        on_hover_range=rec.on_hover_range,
        on_focus=rec.on_focus,
        on_focus_complete=rec.on_focus_complete,
        on_show_in_tree=rec.on_show_in_tree,
        on_expand=rec.on_expand,
        on_scroll_to=rec.on_scroll_to,
        **kwargs,
    )
    if tree is not None:
        ctl.set_document(Document.build(hex_text, tree))
    return ctl, sched, rec


def test_hover_hex_reports_innermost_node(nested_tree: MapNode) -> None:
    ctl, _, rec = _controller(nested_tree)
    ctl.hover_hex(3)
    assert rec.named("on_hover_path") == [("root.values[0].0",)]
    assert rec.named("on_hover_range") == [(ByteRange(3, 1),)]
    # Same node again does not re-notify
    ctl.hover_hex(3)
    assert len(rec.named("on_hover_path")) == 1
    ctl.leave()
    assert rec.named("on_hover_path")[-1] == (None,)
    assert not ctl.hover.active


def test_hover_tree_uses_outer_range(nested_tree: MapNode) -> None:
    ctl, _, rec = _controller(nested_tree)
    assert ctl.hover_tree("root.values[0]") == ByteRange(2, 3)
    spans = ctl.display_spans()
    hovered = [s for s in spans if s.is_hover]
    assert (hovered[0].start, hovered[-1].end) == (4, 10)
    assert ctl.hover_tree("root.values[9]") is None
    assert not ctl.hover.active


def test_second_focus_supersedes_first(nested_tree: MapNode) -> None:
    ctl, sched, rec = _controller(nested_tree)
    assert ctl.focus_path("root.values[0].0")
    sched.advance(0.5)
    assert ctl.focus_path("root.values[1].value")
    sched.advance(2.0)  # A's timeout has passed
    assert rec.named("on_focus_complete") == []
    assert ctl.focus is not None and ctl.focus.path_str == "root.values[1].value"
    sched.advance(0.5)  # B's own timeout
    assert rec.named("on_focus_complete") == [()]
    focus_events = rec.named("on_focus")
    assert focus_events == [(ByteRange(3, 1),), (ByteRange(8, 2),), (None,)]
    assert ctl.focus is None
    assert not any(s.is_focus for s in ctl.display_spans())


def test_focus_expands_collapsed_ancestors(nested_tree: MapNode) -> None:
    ctl, _, rec = _controller(nested_tree, expand_depth=1)
    assert ctl.expanded == {"root"}
    ctl.focus_path("root.values[1].value")
    assert rec.named("on_expand") == [(["root.values[1]"],)]
    assert rec.named("on_scroll_to") == [("root.values[1].value",)]
    assert ctl.is_expanded("root.values[1]")


def test_focus_range_without_owner_still_highlights(nested_tree: MapNode) -> None:
    ctl, sched, rec = _controller(nested_tree)
    assert not ctl.focus_range(ByteRange(1, 4))
    assert rec.named("on_focus") == [(ByteRange(1, 4),)]
    assert rec.named("on_scroll_to") == []
    assert not ctl.focus_range(ByteRange(0, 0))
    assert not ctl.focus_range(None)
    sched.advance(2.5)
    assert rec.named("on_focus")[-1] == (None,)


def test_focus_location_applies_path_rules() -> None:
    from hexsync.core.diagnostics import PathRule

    tree = ArrayNode((ArrayNode(range=ByteRange(1, 1)),), range=ByteRange(0, 1))
    rules = (PathRule("tx.", "root.", None),)
    ctl, _, _ = _controller(tree, hex_text="8180", path_rules=rules)
    assert ctl.focus_location("tx.0")
    assert ctl.focus.range == ByteRange(1, 1)
    assert not ctl.focus_location("x.y")


def test_show_in_tree_focuses_innermost(nested_tree: MapNode) -> None:
    ctl, _, rec = _controller(nested_tree)
    assert ctl.show_in_tree(17) == ByteRange(8, 2)
    assert rec.named("on_show_in_tree") == [(ByteRange(8, 2),)]
    assert ctl.focus.path_str == "root.values[1].value"
    assert ctl.show_in_tree(99) is None


def test_new_document_drops_highlights_and_prunes_expansion(nested_tree: MapNode, small_array: ArrayNode) -> None:
    ctl, _, rec = _controller(nested_tree)
    ctl.hover_hex(0)
    ctl.focus_path("root.keys[0]")
    ctl.expand("root.values[1]")
    ctl.set_document(Document.build("820102", small_array))
    assert ctl.focus is None
    assert not ctl.hover.active
    assert ctl.expanded == {"root"}
    assert ctl.copy_hex("root.1") == "02"


def test_diagnostic_without_node_never_highlights(nested_tree: MapNode) -> None:
    ctl, _, rec = _controller(nested_tree)
    diag = Diagnostic(ERROR, "nope", locations=("x.y",))
    ctl.set_diagnostics([diag, Diagnostic(WARNING, "w", locations=("root.values[0].1",))])
    assert ctl.direct_diagnostics("x.y") == [diag]
    assert not ctl.focus_location("x.y")
    assert rec.named("on_focus") == []
    counts = ctl.descendant_counts("root.values[0]")
    assert (counts.errors, counts.warnings) == (0, 1)


def test_copy_hex_prefers_outer_range(nested_tree: MapNode) -> None:
    ctl, _, _ = _controller(nested_tree)
    assert ctl.copy_hex("root") == HEX
    assert ctl.copy_hex("root.values[1]") == "d81841ff"
    assert ctl.copy_hex(ByteRange(9, 5)) == "ff"
    assert ctl.copy_hex("root.nothing") is None


def test_toggle_expansion(nested_tree: MapNode) -> None:
    ctl, _, _ = _controller(nested_tree)
    assert ctl.is_expanded("root")
    assert not ctl.toggle("root")
    assert ctl.toggle("root")


def test_focus_location_without_node_is_a_no_op(nested_tree: MapNode) -> None:
    ctl, sched, rec = _controller(nested_tree)
    assert not ctl.focus_location("x.y")
    assert ctl.focus is None
    assert sched.pending() == 0
    sched.advance(10.0)
    assert rec.named("on_focus") == []
    assert rec.named("on_focus_complete") == []
    # An active focus is left untouched
    assert ctl.focus_path("root.values[0]")
    sched.advance(1.0)
    assert not ctl.focus_location("root.values[7]")
    assert ctl.focus is not None and ctl.focus.path_str == "root.values[0]"
    sched.advance(1.5)
    assert rec.named("on_focus_complete") == [()]

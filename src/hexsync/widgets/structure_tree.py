from __future__ import annotations

from contextlib import suppress

from rich.style import Style
from rich.text import Text
from textual import events
from textual.widgets import Tree

from hexsync.core.diagnostics import ERROR
from hexsync.core.nodes import (
    ArrayNode,
    ChunkedNode,
    Leaf,
    MapNode,
    Node,
    TaggedNode,
    children,
    node_label,
    tag_description,
)
from hexsync.core.paths import INDEX, MAP_KEY, MAP_VALUE, Step, path_to_string
from hexsync.core.sync import SyncController
from hexsync.ui.palette import PALETTE, Palette

_INT_KINDS = {"U8", "U16", "U32", "U64", "Int"}
_NINT_KINDS = {"I8", "I16", "I32", "I64"}
_FLOAT_KINDS = {"F16", "F32", "F64"}


class StructureTree(Tree[str | None]):
    """Decoded structure as a collapsible tree.

    Node data is the serialized path. Labels carry diagnostic badges; a
    collapsed container also shows how many problems sit underneath it.
    """

    BINDINGS = [("c", "copy_node", "Copy hex")]
    ALIGN_COL = 40

    def __init__(self, controller: SyncController, *, palette: Palette | None = None) -> None:
        super().__init__("Structure")
        self.controller = controller
        self.palette = palette or PALETTE
        self._node_by_path: dict[str, object] = {}
        self._model_by_path: dict[str, tuple[Step | None, Node]] = {}
        self._hover_path: str | None = None
        self._focus_path: str | None = None

    # ---- Building ----
    def set_document(self, root: Node | None, error: str | None = None) -> None:
        for child in list(self.root.children):
            child.remove()
        self._node_by_path = {}
        self._model_by_path = {}
        self._hover_path = None
        self._focus_path = None
        if root is None:
            if error:
                self.root.set_label(Text(error, style=Style(color=self.palette.status_error)))
            else:
                self.root.set_label(Text("No data", style=Style(color=self.palette.tree_info)))
            self.refresh(layout=True)
            return
        self.root.set_label("Structure")
        self._add_rec(self.root, None, root, ())
        with suppress(Exception):
            self.root.expand()
        self.apply_expansion(sorted(self.controller.expanded))
        self.refresh(layout=True)

    def _add_rec(self, parent, step: Step | None, node: Node, path: tuple) -> None:  # type: ignore[no-untyped-def]
        key = path_to_string(path)
        self._model_by_path[key] = (step, node)
        label = self._format_label(key)
        kids = children(node)
        if kids:
            tnode = parent.add(label, key)
            for child_step, child in kids:
                self._add_rec(tnode, child_step, child, path + (child_step,))
        else:
            tnode = parent.add_leaf(label, key)
        self._node_by_path[key] = tnode

    # ---- Labels ----
    def _type_color(self, node: Node) -> str:
        pal = self.palette
        if isinstance(node, (ArrayNode, MapNode)):
            return pal.tree_container
        if isinstance(node, TaggedNode):
            return pal.tree_tag
        if isinstance(node, ChunkedNode):
            return pal.tree_text if node.kind == "text" else pal.tree_bytes
        assert isinstance(node, Leaf)
        if node.kind in _INT_KINDS:
            return pal.tree_int
        if node.kind in _NINT_KINDS:
            return pal.tree_nint
        if node.kind in _FLOAT_KINDS:
            return pal.tree_float
        if node.kind == "String":
            return pal.tree_text
        if node.kind == "Bytes":
            return pal.tree_bytes
        return pal.tree_simple

    @staticmethod
    def _step_name(step: Step | None) -> str:
        if step is None:
            return ""
        if step.kind == INDEX:
            return f"[{step.index}]"
        if step.kind == MAP_KEY:
            return f"key {step.index}"
        if step.kind == MAP_VALUE:
            return f"value {step.index}"
        return step.token()

    def _format_label(self, path: str) -> Text:
        step, node = self._model_by_path[path]
        pal = self.palette
        t = Text()
        name = self._step_name(step)
        if name:
            t.append(name, style=Style(color=pal.tree_key))
            t.append(": ", style=Style(color=pal.tree_info))
        t.append(node_label(node), style=Style(color=self._type_color(node)))
        if isinstance(node, TaggedNode):
            desc = tag_description(node.tag)
            if desc:
                t.append(f" ({desc})", style=Style(color=pal.tree_info))

        direct = self.controller.direct_diagnostics(path)
        errors = sum(1 for d in direct if d.severity == ERROR)
        warnings = len(direct) - errors
        if errors:
            t.append(f"  ✖ {errors}", style=Style(color=pal.diag_error, bold=True))
        if warnings:
            t.append(f"  ⚠ {warnings}", style=Style(color=pal.diag_warning, bold=True))
        if children(node) and not self.controller.is_expanded(path):
            below = self.controller.descendant_counts(path)
            if below.total:
                color = pal.diag_error if below.errors else pal.diag_warning
                t.append(f"  ({below.total} below)", style=Style(color=color))

        rng = node.range
        if rng is not None:
            pad = max(1, self.ALIGN_COL - t.cell_len)
            t.append(" " * pad)
            t.append(f"@0x{rng.offset:08X} [{rng.length}]", style=Style(color=pal.tree_path))

        if path == self._focus_path:
            t.stylize(Style(bgcolor=pal.tree_focus_bg))
        elif path == self._hover_path:
            t.stylize(Style(bgcolor=pal.tree_hover_bg))
        return t

    def relabel(self, path: str | None) -> None:
        if path is None:
            return
        tnode = self._node_by_path.get(path)
        if tnode is None:
            return
        with suppress(Exception):
            tnode.set_label(self._format_label(path))  # type: ignore[attr-defined]

    def relabel_all(self) -> None:
        for path in list(self._node_by_path):
            self.relabel(path)

    # ---- Highlights pushed from the controller ----
    def set_hover_path(self, path: str | None) -> None:
        previous, self._hover_path = self._hover_path, path
        self.relabel(previous)
        self.relabel(path)

    def set_focus_path(self, path: str | None) -> None:
        previous, self._focus_path = self._focus_path, path
        self.relabel(previous)
        self.relabel(path)

    def apply_expansion(self, paths: list[str]) -> None:
        # The resulting NodeExpanded messages re-enter expand(), which is idempotent
        for path in paths:
            tnode = self._node_by_path.get(path)
            if tnode is not None:
                with suppress(Exception):
                    tnode.expand()  # type: ignore[attr-defined]
                self.relabel(path)

    def scroll_to_path(self, path: str) -> None:
        tnode = self._node_by_path.get(path)
        if tnode is None:
            return

        def _do_scroll(n=tnode) -> None:
            with suppress(Exception):
                self.move_cursor(n)
                self.scroll_to_node(n)

        # Defer slightly so expansion renders first
        try:
            self.set_timer(0.01, _do_scroll)
        except Exception:
            _do_scroll()

    # ---- Events ----
    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        path = event.node.data
        if path is None:
            return
        self.controller.expand(path)
        self.relabel(path)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed) -> None:
        path = event.node.data
        if path is None:
            return
        self.controller.collapse(path)
        self.relabel(path)

    def on_tree_node_highlighted(self, event: Tree.NodeHighlighted) -> None:
        # Keyboard navigation hovers; programmatic cursor moves do not
        if not self.has_focus or event.node.data is None:
            return
        self.controller.hover_tree(event.node.data)

    def on_mouse_move(self, event: events.MouseMove) -> None:
        pos = event.get_content_offset(self)
        if pos is None:
            self.controller.leave()
            return
        line = pos.y + int(self.scroll_offset.y)
        tnode = None
        with suppress(Exception):
            tnode = self.get_node_at_line(line)
        if tnode is None or tnode.data is None:
            self.controller.leave()
            return
        self.controller.hover_tree(tnode.data)

    def on_leave(self, event: events.Leave) -> None:
        self.controller.leave()

    def action_copy_node(self) -> None:
        tnode = self.cursor_node
        if tnode is None or tnode.data is None:
            return
        payload = self.controller.copy_hex(tnode.data)
        if payload:
            with suppress(Exception):
                self.app.copy_to_clipboard(payload)
            if hasattr(self.app, "set_status_hint"):
                self.app.set_status_hint(f"[copied {len(payload) // 2} bytes]")  # type: ignore[attr-defined]

from __future__ import annotations

import logging
from contextlib import suppress

from rich.style import Style
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, Static

from hexsync.core.diagnostics import Diagnostic, format_diagnostics_markdown
from hexsync.core.document import DecodeOutcome, DecodePipeline, Decoder
from hexsync.core.nodes import ByteRange
from hexsync.core.settings import Settings
from hexsync.core.sync import SyncController
from hexsync.ui.palette import get_palette
from hexsync.ui.scheduler import TextualScheduler
from hexsync.widgets.diagnostics_panel import DiagnosticsPanel
from hexsync.widgets.hex_editor import HexEditor
from hexsync.widgets.hex_view import HexView
from hexsync.widgets.structure_tree import StructureTree

log = logging.getLogger(__name__)


class HexSyncApp(App):
    """Textual shell: raw editor, colorized hex, structure tree and problems."""

    CSS = """
    #left { width: 1fr; }
    #right { width: 1fr; }
    #editor { height: 8; }
    #hex { height: 1fr; border: round $primary; }
    #tree { height: 2fr; border: round $primary; }
    #problems { height: 1fr; border: round $primary; }
    #status { height: 1; }
    """

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("f2", "focus_editor", "Editor"),
        ("f3", "focus_hex", "Hex"),
        ("f4", "focus_tree", "Tree"),
        ("ctrl+r", "decode_now", "Decode"),
        ("ctrl+e", "copy_report", "Copy report"),
        ("escape", "clear_focus", "Clear focus"),
    ]

    def __init__(
        self,
        text: str,
        decoder: Decoder,
        *,
        settings: Settings | None = None,
        diagnostics: list[Diagnostic] | None = None,
        title: str = "hexsync",
    ) -> None:
        super().__init__()
        self.settings = settings or Settings()
        self.hex_palette = get_palette(self.settings.palette)
        self.title = title
        self._initial_text = text
        self._initial_diagnostics = list(diagnostics or [])
        self._status_hint = ""
        self._status_message: Text | None = None

        self.scheduler = TextualScheduler(self)
        self.controller = SyncController(
            self.scheduler,
            focus_seconds=self.settings.focus_seconds,
            path_rules=self.settings.path_rules,
            on_hover_path=self._on_hover_path,
            on_hover_range=self._on_hover_range,
            on_focus=self._on_focus,
            on_focus_complete=self._on_focus_complete,
            on_show_in_tree=self._on_show_in_tree,
            on_expand=self._on_expand,
            on_scroll_to=self._on_scroll_to,
        )
        self.pipeline = DecodePipeline(
            decoder,
            self.scheduler,
            self._on_decoded,
            delay=self.settings.debounce_seconds,
            palette_size=len(self.hex_palette.hex_slot_bg),
        )
        self.editor: HexEditor | None = None
        self.hex_view: HexView | None = None
        self.structure: StructureTree | None = None
        self.problems: DiagnosticsPanel | None = None
        self.status = Static(id="status")

    def compose(self) -> ComposeResult:  # noqa: D401 - Textual API
        self.editor = HexEditor(
            history_limit=self.settings.history_limit,
            on_text=self.pipeline.request,
            id="editor",
        )
        self.hex_view = HexView(
            self.controller,
            bytes_per_row=self.settings.bytes_per_row,
            palette=self.hex_palette,
        )
        self.hex_view.id = "hex"
        self.structure = StructureTree(self.controller, palette=self.hex_palette)
        self.structure.id = "tree"
        self.problems = DiagnosticsPanel(self.controller, palette=self.hex_palette)
        self.problems.id = "problems"
        yield Header(show_clock=False)
        with Horizontal():
            with Vertical(id="left"):
                yield self.editor
                yield self.hex_view
            with Vertical(id="right"):
                yield self.structure
                yield self.problems
        yield self.status
        yield Footer()

    def on_mount(self) -> None:
        self.set_diagnostics(self._initial_diagnostics)
        if self.editor is not None and self._initial_text:
            # Seeds history through the editor's change event
            self.editor.load_text(self._initial_text)
        self.pipeline.decode_now(self._initial_text)
        if self.editor is not None:
            self.set_focus(self.editor)

    def on_unmount(self) -> None:
        self.pipeline.cancel()
        self.controller.clear_focus()

    # ---- Decode results ----
    def _on_decoded(self, outcome: DecodeOutcome) -> None:
        doc = outcome.document
        self.controller.set_document(doc)
        if self.structure is not None:
            self.structure.set_document(doc.root, outcome.error)
        self._repaint_hex()
        if outcome.error:
            self.set_status_message(outcome.error, error=True)
        elif outcome.notice:
            self.set_status_message(outcome.notice)
        else:
            self.set_status_message(None)

    def set_diagnostics(self, diagnostics: list[Diagnostic]) -> None:
        self.controller.set_diagnostics(diagnostics)
        if self.problems is not None:
            self.problems.set_diagnostics(diagnostics)
        if self.structure is not None:
            self.structure.relabel_all()

    # ---- Controller callbacks ----
    def _repaint_hex(self) -> None:
        if self.hex_view is None:
            return
        with suppress(Exception):
            self.hex_view.set_content(self.controller.document.hex, self.controller.display_spans())

    def _on_hover_path(self, path: str | None) -> None:
        if self.structure is not None:
            self.structure.set_hover_path(path)
        self.set_status_hint(path or "")

    def _on_hover_range(self, rng: ByteRange | None) -> None:
        self._repaint_hex()

    def _on_focus(self, rng: ByteRange | None) -> None:
        focus = self.controller.focus
        if self.structure is not None:
            self.structure.set_focus_path(focus.path_str if focus is not None and focus.path is not None else None)
        self._repaint_hex()
        if rng is not None and self.hex_view is not None:
            self.hex_view.scroll_to_range(rng)

    def _on_focus_complete(self) -> None:
        log.debug("focus highlight expired")

    def _on_show_in_tree(self, rng: ByteRange) -> None:
        if self.structure is not None:
            self.set_focus(self.structure)

    def _on_expand(self, paths: list[str]) -> None:
        if self.structure is not None:
            self.structure.apply_expansion(paths)

    def _on_scroll_to(self, path: str) -> None:
        if self.structure is not None:
            self.structure.scroll_to_path(path)

    # ---- Status ----
    def set_status_message(self, message: str | None, *, error: bool = False) -> None:
        if message is None:
            self._status_message = None
        else:
            color = self.hex_palette.status_error if error else self.hex_palette.status_notice
            self._status_message = Text(message, style=Style(color=color))
        self.update_status()

    def set_status_hint(self, text: str | None) -> None:
        self._status_hint = text or ""
        self.update_status()

    def update_status(self) -> None:
        doc = self.controller.document
        t = Text()
        t.append(f"{len(doc.hex) // 2} bytes", style=Style(color=self.hex_palette.footer_fg))
        t.append(f"  {len(doc.entries)} nodes", style=Style(color=self.hex_palette.footer_fg))
        counts = self.controller.descendant_counts("root")
        direct = self.controller.direct_diagnostics("root")
        total = counts.total + len(direct)
        if total:
            t.append(f"  {total} problems", style=Style(color=self.hex_palette.diag_warning))
        if self._status_message is not None:
            t.append("  ")
            t.append_text(self._status_message)
        if self._status_hint:
            t.append(f"  {self._status_hint}", style=Style(color=self.hex_palette.tree_path))
        with suppress(Exception):
            self.status.update(t)

    # ---- Actions ----
    def action_focus_editor(self) -> None:
        if self.editor is not None:
            self.set_focus(self.editor)

    def action_focus_hex(self) -> None:
        if self.hex_view is not None:
            self.set_focus(self.hex_view)

    def action_focus_tree(self) -> None:
        if self.structure is not None:
            self.set_focus(self.structure)

    def action_decode_now(self) -> None:
        if self.editor is not None:
            self.pipeline.decode_now(self.editor.text)

    def action_clear_focus(self) -> None:
        self.controller.clear_focus()

    def action_copy_report(self) -> None:
        report = format_diagnostics_markdown(self.controller.diagnostics)
        with suppress(Exception):
            self.copy_to_clipboard(report)
        self.set_status_hint("[copied problem report]")

from __future__ import annotations

from contextlib import suppress

from rich.style import Style
from rich.text import Text
from textual.widgets import Tree

from hexsync.core.diagnostics import Diagnostic, split_by_severity
from hexsync.core.sync import SyncController
from hexsync.ui.palette import PALETTE, Palette

# (diagnostic, location the row jumps to)
ProblemRow = tuple[Diagnostic, str | None]


class DiagnosticsPanel(Tree[ProblemRow | None]):
    """Validator problems grouped by severity; selecting one focuses it.

    A problem with several locations gets one child row per location. The
    problem row itself jumps to the first one. Headers carry None.
    """

    def __init__(self, controller: SyncController, *, palette: Palette | None = None) -> None:
        super().__init__("Problems")
        self.controller = controller
        self.palette = palette or PALETTE
        self.show_root = True

    def set_diagnostics(self, diagnostics: list[Diagnostic]) -> None:
        for ch in list(self.root.children):
            ch.remove()
        errors, warnings = split_by_severity(diagnostics)
        pal = self.palette
        if not errors and not warnings:
            self.root.set_label(Text("✅ No problems detected", style=Style(color=pal.status_notice)))
            self.refresh(layout=True)
            return
        self.root.set_label(f"Problems ({len(errors) + len(warnings)})")
        for title, items, color in (
            ("❌ Errors", errors, pal.diag_error),
            ("⚠️ Warnings", warnings, pal.diag_warning),
        ):
            if not items:
                continue
            section = self.root.add(Text(f"{title} ({len(items)})", style=Style(color=color, bold=True)), None)
            for diag in items:
                first = diag.locations[0] if diag.locations else None
                if len(diag.locations) > 1:
                    row = section.add(self._format(diag, color), (diag, first))
                    for location in diag.locations:
                        row.add_leaf(self._format_location(location), (diag, location))
                else:
                    section.add_leaf(self._format(diag, color), (diag, first))
            with suppress(Exception):
                section.expand()
        with suppress(Exception):
            self.root.expand()
        self.refresh(layout=True)

    def _format(self, diag: Diagnostic, color: str) -> Text:
        pal = self.palette
        t = Text()
        if diag.phase:
            t.append(f"[{diag.phase}] ", style=Style(color=pal.diag_hint))
        t.append(diag.message, style=Style(color=color))
        if len(diag.locations) == 1:
            t.append(f"  {diag.locations[0]}", style=Style(color=pal.tree_path))
        elif diag.locations:
            t.append(f"  ({len(diag.locations)} locations)", style=Style(color=pal.tree_path))
        if diag.hint:
            t.append(f"  hint: {diag.hint}", style=Style(color=pal.diag_hint, italic=True))
        return t

    def _format_location(self, location: str) -> Text:
        return Text(f"→ {location}", style=Style(color=self.palette.tree_path))

    @staticmethod
    def location_of(row: ProblemRow | None) -> str | None:
        if row is None:
            return None
        _diag, location = row
        return location

    def open_row(self, row: ProblemRow | None) -> bool:
        """Focus the location a row points at; False when nothing was focused."""
        location = self.location_of(row)
        if location is None:
            return False
        if self.controller.focus_location(location):
            return True
        if hasattr(self.app, "set_status_hint"):
            self.app.set_status_hint(f"no node at {location}")  # type: ignore[attr-defined]
        return False

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:  # type: ignore[override]
        self.open_row(event.node.data)

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Palette:
    footer_bg: str
    footer_fg: str
    accent: str
    panel_border: str
    hex_plain_fg: str
    hex_offset_fg: str
    hex_slot_bg: tuple[str, ...]  # one background per color slot
    hex_slot_fg: str
    hex_hover_bg: str
    hex_focus_bg: str
    hex_highlight_fg: str
    tree_container: str
    tree_tag: str
    tree_int: str
    tree_nint: str
    tree_float: str
    tree_text: str
    tree_bytes: str
    tree_simple: str
    tree_key: str
    tree_info: str
    tree_path: str
    tree_hover_bg: str
    tree_focus_bg: str
    diag_error: str
    diag_warning: str
    diag_hint: str
    status_error: str
    status_notice: str

    def slot_bg(self, slot: int | None) -> str | None:
        if slot is None or not self.hex_slot_bg:
            return None
        return self.hex_slot_bg[slot % len(self.hex_slot_bg)]


DEFAULT = Palette(
    footer_bg="#1f2430",
    footer_fg="#d8dee9",
    accent="#5ea1ff",
    panel_border="#3b4252",
    hex_plain_fg="#6b7280",
    hex_offset_fg="#8892a0",
    hex_slot_bg=(
        "#2e2f5c",  # indigo
        "#4a2440",  # pink
        "#1f4030",  # green
        "#4a3020",  # orange
        "#1b3a4f",  # sky
        "#3a2752",  # purple
        "#4a4218",  # yellow
        "#1a403c",  # teal
    ),
    hex_slot_fg="#e5e9f0",
    hex_hover_bg="#8a7414",
    hex_focus_bg="#8b2c2c",
    hex_highlight_fg="#ffffff",
    tree_container="#ef4444",
    tree_tag="#8b5cf6",
    tree_int="#eab308",
    tree_nint="#f59e0b",
    tree_float="#10b981",
    tree_text="#22c55e",
    tree_bytes="#06b6d4",
    tree_simple="#6b7280",
    tree_key="#5ea1ff",
    tree_info="#8892a0",
    tree_path="#4c75c6",
    tree_hover_bg="#314f76",
    tree_focus_bg="#8b2c2c",
    diag_error="#ff5555",
    diag_warning="#ffb86c",
    diag_hint="#8892a0",
    status_error="#ff5555",
    status_notice="#10b981",
)

DIM = Palette(
    footer_bg="#2b2b2b",
    footer_fg="#cccccc",
    accent="#a0a0a0",
    panel_border="#444444",
    hex_plain_fg="#666666",
    hex_offset_fg="#777777",
    hex_slot_bg=(
        "#303030",
        "#383838",
        "#2c2c2c",
        "#343434",
        "#3a3a3a",
        "#2e2e2e",
        "#363636",
        "#323232",
    ),
    hex_slot_fg="#e0e0e0",
    hex_hover_bg="#555555",
    hex_focus_bg="#7a7a7a",
    hex_highlight_fg="#ffffff",
    tree_container="#bbbbbb",
    tree_tag="#aaaaaa",
    tree_int="#cccccc",
    tree_nint="#cccccc",
    tree_float="#cccccc",
    tree_text="#bbbbbb",
    tree_bytes="#aaaaaa",
    tree_simple="#888888",
    tree_key="#a0a0a0",
    tree_info="#777777",
    tree_path="#888888",
    tree_hover_bg="#555555",
    tree_focus_bg="#7a7a7a",
    diag_error="#ff6666",
    diag_warning="#e6b673",
    diag_hint="#777777",
    status_error="#ff6666",
    status_notice="#00bb66",
)

HIGH_CONTRAST = Palette(
    footer_bg="#000000",
    footer_fg="#ffffff",
    accent="#00ffff",
    panel_border="#888888",
    hex_plain_fg="#888888",
    hex_offset_fg="#aaaaaa",
    hex_slot_bg=(
        "#000080",
        "#800080",
        "#006400",
        "#804000",
        "#005f87",
        "#5f0087",
        "#5f5f00",
        "#005f5f",
    ),
    hex_slot_fg="#ffffff",
    hex_hover_bg="#888800",
    hex_focus_bg="#ff0000",
    hex_highlight_fg="#000000",
    tree_container="#ff6666",
    tree_tag="#ff00ff",
    tree_int="#ffff00",
    tree_nint="#ffb000",
    tree_float="#00ff00",
    tree_text="#00ff00",
    tree_bytes="#00ffff",
    tree_simple="#aaaaaa",
    tree_key="#00ffff",
    tree_info="#aaaaaa",
    tree_path="#00aaaa",
    tree_hover_bg="#333333",
    tree_focus_bg="#ff0000",
    diag_error="#ff6666",
    diag_warning="#ffff00",
    diag_hint="#aaaaaa",
    status_error="#ff6666",
    status_notice="#00ff00",
)

PALETTES = {"default": DEFAULT, "dim": DIM, "high_contrast": HIGH_CONTRAST}

# Selected palette for now
PALETTE = DEFAULT


def get_palette(name: str) -> Palette:
    return PALETTES.get(name, DEFAULT)

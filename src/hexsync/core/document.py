"""Decoded document state and the debounced decode trigger.

A :class:`Document` is rebuilt wholesale on every successful decode; nothing
derived from an older tree survives a re-decode.
"""

from __future__ import annotations

import base64
import binascii
import importlib
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from hexsync.core.compositor import BaseSpan, base_spans
from hexsync.core.nodes import Node, load_tree_json
from hexsync.core.position_index import PALETTE_SIZE, IndexEntry, build_index
from hexsync.core.resolver import PathResolver
from hexsync.core.timers import Debouncer, Scheduler

log = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.2
BASE64_NOTICE = "Base64 → hex"

_HEX_RE = re.compile(r"^[0-9a-f]*$")
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
_NON_HEX_RE = re.compile(r"[g-zG-Z+/=]")
_WS_RE = re.compile(r"\s+")


class InputError(Exception):
    """Raw input is not hex or base64."""


class DecodeError(Exception):
    """Raised by decoders that cannot produce a tree for the input."""


class DecoderLoadError(Exception):
    pass


@dataclass(frozen=True)
class PreparedInput:
    hex: str
    notice: str | None = None


def _looks_like_base64(text: str) -> bool:
    if not text or len(text) % 4 != 0:
        return False
    if not _BASE64_RE.match(text) or not _NON_HEX_RE.search(text):
        return False
    try:
        raw = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return False
    return len(raw) > 0 and base64.b64encode(raw).decode("ascii") == text


def prepare_input(text: str) -> PreparedInput:
    """Normalize editor text to lowercase hex, converting base64 when detected."""
    trimmed = text.strip()
    notice = None
    if _looks_like_base64(trimmed):
        hex_text = base64.b64decode(trimmed).hex()
        notice = BASE64_NOTICE
    else:
        hex_text = _WS_RE.sub("", trimmed).lower()
    if not _HEX_RE.match(hex_text):
        raise InputError("Invalid hex")
    if len(hex_text) % 2:
        raise InputError("Odd number of hex digits")
    return PreparedInput(hex_text, notice)


@dataclass
class Document:
    hex: str
    root: Node | None
    entries: list[IndexEntry] = field(default_factory=list)
    resolver: PathResolver = field(default_factory=lambda: PathResolver([]))
    spans: list[BaseSpan] = field(default_factory=list)

    @classmethod
    def build(cls, hex_text: str, root: Node | None, palette_size: int = PALETTE_SIZE) -> Document:
        entries = build_index(root, palette_size)
        return cls(hex_text, root, entries, PathResolver(entries), base_spans(entries))

    @classmethod
    def empty(cls, hex_text: str = "") -> Document:
        """Raw buffer with every derived index cleared."""
        return cls(hex_text, None)

    @property
    def is_decoded(self) -> bool:
        return self.root is not None


@dataclass(frozen=True)
class DecodeOutcome:
    document: Document
    error: str | None = None
    notice: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Decoder(Protocol):
    def __call__(self, hex_text: str) -> Node: ...


class SnapshotDecoder:
    """Replays a saved annotation for the exact hex it was produced from."""

    def __init__(self, hex_text: str, root: Node) -> None:
        self.hex = hex_text.lower()
        self.root = root

    @classmethod
    def from_json(cls, hex_text: str, json_text: str) -> SnapshotDecoder:
        return cls(hex_text, load_tree_json(json_text))

    def __call__(self, hex_text: str) -> Node:
        if hex_text != self.hex:
            raise DecodeError("No annotation available for edited input")
        return self.root


def load_decoder(target: str) -> Decoder:
    """Import ``module:function`` and return it as a decoder."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise DecoderLoadError(f"decoder must look like 'module:function', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise DecoderLoadError(f"cannot import {module_name}: {e}") from None
    fn = getattr(module, attr, None)
    if not callable(fn):
        raise DecoderLoadError(f"{target} is not callable")
    return fn


class DecodePipeline:
    """Debounced raw text -> Document pipeline.

    Every request cancels the pending one before scheduling, so a slow
    stream of edits only decodes the latest text.
    """

    def __init__(
        self,
        decoder: Decoder,
        scheduler: Scheduler,
        on_result: Callable[[DecodeOutcome], None],
        *,
        delay: float = DEFAULT_DEBOUNCE,
        palette_size: int = PALETTE_SIZE,
    ) -> None:
        self.decoder = decoder
        self.on_result = on_result
        self.palette_size = palette_size
        self._debouncer = Debouncer(scheduler, delay)
        self.last: DecodeOutcome | None = None

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def request(self, text: str) -> None:
        self._debouncer.schedule(lambda: self._deliver(text))

    def cancel(self) -> None:
        self._debouncer.cancel()

    def decode_now(self, text: str) -> DecodeOutcome:
        self._debouncer.cancel()
        return self._deliver(text)

    def _deliver(self, text: str) -> DecodeOutcome:
        outcome = self.decode(text)
        self.last = outcome
        self.on_result(outcome)
        return outcome

    def decode(self, text: str) -> DecodeOutcome:
        if not text.strip():
            return DecodeOutcome(Document.empty())
        try:
            prepared = prepare_input(text)
        except InputError as e:
            log.info("input rejected: %s", e)
            return DecodeOutcome(Document.empty(_WS_RE.sub("", text)), str(e))
        try:
            root = self.decoder(prepared.hex)
        except Exception as e:  # decoder is external; any failure is a message
            log.warning("decode failed: %s", e)
            message = str(e) or "Decode error"
            return DecodeOutcome(Document.empty(prepared.hex), message, prepared.notice)
        document = Document.build(prepared.hex, root, self.palette_size)
        log.debug("decoded %d bytes, %d indexed nodes", len(prepared.hex) // 2, len(document.entries))
        return DecodeOutcome(document, None, prepared.notice)


def missing_decoder(hex_text: str) -> Node:
    """Placeholder used when no decoder or annotation was supplied."""
    raise DecodeError("No decoder configured")

"""Position-annotated value tree produced by the external decoder.

The node shape is a closed set of five frozen dataclasses. All consumers
(index building, path resolution, clipboard extraction, the tree widget) go
through the single traversal contract in :func:`children` / :func:`walk`.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Union

from hexsync.core.paths import Path, Step, chunk, index, map_key, map_value, tag_value


class NodeFormatError(Exception):
    """Raised when decoder output cannot be turned into a node tree."""


@dataclass(frozen=True)
class ByteRange:
    offset: int
    length: int

    def __post_init__(self) -> None:
        if self.offset < 0 or self.length < 0:
            raise ValueError(f"invalid byte range: offset={self.offset} length={self.length}")

    @property
    def end(self) -> int:
        return self.offset + self.length

    @property
    def hex_start(self) -> int:
        return self.offset * 2

    @property
    def hex_end(self) -> int:
        return self.end * 2

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def contains(self, offset: int) -> bool:
        return self.offset <= offset < self.end


@dataclass(frozen=True)
class Leaf:
    kind: str
    value: Any = None
    range: ByteRange | None = None
    outer_range: ByteRange | None = None


@dataclass(frozen=True)
class ArrayNode:
    items: tuple[Node, ...] = ()
    indefinite: bool = False
    range: ByteRange | None = None
    outer_range: ByteRange | None = None


@dataclass(frozen=True)
class MapNode:
    entries: tuple[tuple[Node, Node], ...] = ()
    indefinite: bool = False
    range: ByteRange | None = None
    outer_range: ByteRange | None = None


@dataclass(frozen=True)
class TaggedNode:
    tag: int
    inner: Node
    range: ByteRange | None = None
    outer_range: ByteRange | None = None


@dataclass(frozen=True)
class ChunkedNode:
    kind: str  # "text" | "bytes"
    chunks: tuple[Node, ...] = ()
    range: ByteRange | None = None
    outer_range: ByteRange | None = None


Node = Union[Leaf, ArrayNode, MapNode, TaggedNode, ChunkedNode]


class NodeVisitor:
    """Per-kind callbacks for :func:`visit`; override what you need."""

    def visit_leaf(self, node: Leaf) -> Any:
        return None

    def visit_array(self, node: ArrayNode) -> Any:
        return None

    def visit_map(self, node: MapNode) -> Any:
        return None

    def visit_tagged(self, node: TaggedNode) -> Any:
        return None

    def visit_chunked(self, node: ChunkedNode) -> Any:
        return None


def visit(node: Node, visitor: NodeVisitor) -> Any:
    if isinstance(node, ArrayNode):
        return visitor.visit_array(node)
    if isinstance(node, MapNode):
        return visitor.visit_map(node)
    if isinstance(node, TaggedNode):
        return visitor.visit_tagged(node)
    if isinstance(node, ChunkedNode):
        return visitor.visit_chunked(node)
    return visitor.visit_leaf(node)


class _Children(NodeVisitor):
    def visit_leaf(self, node: Leaf) -> list[tuple[Step, Node]]:
        return []

    def visit_array(self, node: ArrayNode) -> list[tuple[Step, Node]]:
        return [(index(i), item) for i, item in enumerate(node.items)]

    def visit_map(self, node: MapNode) -> list[tuple[Step, Node]]:
        out: list[tuple[Step, Node]] = []
        for i, (key, value) in enumerate(node.entries):
            out.append((map_key(i), key))
            out.append((map_value(i), value))
        return out

    def visit_tagged(self, node: TaggedNode) -> list[tuple[Step, Node]]:
        return [(tag_value(), node.inner)]

    def visit_chunked(self, node: ChunkedNode) -> list[tuple[Step, Node]]:
        return [(chunk(i), c) for i, c in enumerate(node.chunks)]


_CHILDREN = _Children()


def children(node: Node) -> list[tuple[Step, Node]]:
    """Direct children in the fixed traversal order."""
    return visit(node, _CHILDREN)


def has_children(node: Node) -> bool:
    return not isinstance(node, Leaf)


def walk(root: Node | None) -> Iterator[tuple[Path, Node]]:
    """Pre-order iteration of ``(path, node)`` pairs."""
    if root is None:
        return
    stack: list[tuple[Path, Node]] = [((), root)]
    while stack:
        path, node = stack.pop()
        yield path, node
        kids = children(node)
        for step, child in reversed(kids):
            stack.append((path + (step,), child))


def copy_range(node: Node) -> ByteRange | None:
    return node.outer_range or node.range


# ---- Labels ----

_LEAF_NAMES = {
    "Null": "null",
    "Undefined": "undefined",
    "Bool": "bool",
    "U8": "uint8",
    "U16": "uint16",
    "U32": "uint32",
    "U64": "uint64",
    "I8": "nint8",
    "I16": "nint16",
    "I32": "nint32",
    "I64": "nint64",
    "Int": "bigint",
    "F16": "float16",
    "F32": "float32",
    "F64": "float64",
    "Bytes": "bytes",
    "String": "tstr",
    "Simple": "simple",
    "Break": "break",
}

TAG_DESCRIPTIONS = {
    0: "date/time string",
    1: "epoch timestamp",
    2: "positive bignum",
    3: "negative bignum",
    4: "decimal fraction",
    5: "bigfloat",
    21: "base64url",
    22: "base64",
    23: "base16",
    24: "encoded CBOR",
    32: "URI",
    33: "base64url string",
    34: "base64 string",
    35: "regex",
    36: "MIME message",
    55799: "self-describe CBOR",
    121: "Plutus data (constr 0)",
    122: "Plutus data (constr 1)",
    123: "Plutus data (constr 2)",
    124: "Plutus data (constr 3)",
    125: "Plutus data (constr 4)",
    126: "Plutus data (constr 5)",
    127: "Plutus data (constr 6)",
    258: "set",
    259: "map (preserve order)",
}

TEXT_PREVIEW = 30


def tag_description(tag: int) -> str | None:
    return TAG_DESCRIPTIONS.get(tag)


def format_value(val: Any) -> str:
    if val is None:
        return "null"
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, (int, float)):
        return str(val)
    if isinstance(val, str):
        return val
    if isinstance(val, (bytes, bytearray)):
        return bytes(val).hex()
    if isinstance(val, (list, tuple)) and all(isinstance(v, int) and not isinstance(v, bool) for v in val):
        return bytes(v & 0xFF for v in val).hex()
    if isinstance(val, dict):
        if "value" in val:
            return format_value(val["value"])
        try:
            return json.dumps(val)
        except (TypeError, ValueError):
            return "[object]"
    return str(val)


def short_type_name(node: Node) -> str:
    if isinstance(node, ArrayNode):
        return "array"
    if isinstance(node, MapNode):
        return "map"
    if isinstance(node, TaggedNode):
        return f"tag#{node.tag}"
    if isinstance(node, ChunkedNode):
        return "tstr~" if node.kind == "text" else "bytes~"
    return _LEAF_NAMES.get(node.kind, node.kind.lower())


def node_label(node: Node) -> str:
    """One-line description used for tooltips and tree rows."""
    if isinstance(node, ArrayNode):
        count = "∞" if node.indefinite else str(len(node.items))
        return f"array ({count} items)"
    if isinstance(node, MapNode):
        count = "∞" if node.indefinite else str(len(node.entries))
        return f"map ({count} entries)"
    if isinstance(node, TaggedNode):
        return f"tag #{node.tag}"
    if isinstance(node, ChunkedNode):
        kind = "text" if node.kind == "text" else "bytes"
        return f"{kind} (indefinite, {len(node.chunks)} chunks)"
    kind = node.kind
    if kind in ("Null", "Undefined", "Break"):
        return _LEAF_NAMES[kind]
    if kind == "Bytes":
        return f"bytes ({len(format_value(node.value)) // 2} bytes)"
    if kind == "String":
        text = format_value(node.value)
        preview = text[:TEXT_PREVIEW] + "..." if len(text) > TEXT_PREVIEW else text
        return f"text: {preview}"
    if kind == "Simple":
        return f"simple({format_value(node.value)})"
    name = _LEAF_NAMES.get(kind, kind.lower())
    return f"{name}: {format_value(node.value)}"


# ---- Decoder JSON ----

_CHUNKED_TYPES = {"IndefiniteLengthString": "text", "IndefiniteLengthBytes": "bytes"}


def _range_from_json(obj: Any, where: str) -> ByteRange | None:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise NodeFormatError(f"{where}: position must be an object")
    offset = obj.get("offset")
    length = obj.get("length")
    if not isinstance(offset, int) or not isinstance(length, int) or isinstance(offset, bool):
        raise NodeFormatError(f"{where}: position needs integer offset and length")
    if offset < 0 or length < 0:
        raise NodeFormatError(f"{where}: negative position ({offset}, {length})")
    return ByteRange(offset, length)


def node_from_json(obj: Any, where: str = "root") -> Node:
    """Convert decoder JSON output into a node tree."""
    if not isinstance(obj, dict):
        raise NodeFormatError(f"{where}: expected an object, got {type(obj).__name__}")
    typ = obj.get("type")
    if not isinstance(typ, str):
        raise NodeFormatError(f"{where}: missing 'type'")
    rng = _range_from_json(obj.get("position_info"), where)
    outer = _range_from_json(obj.get("struct_position_info"), where)
    indefinite = obj.get("items") == "Indefinite"

    if typ == "Array":
        values = obj.get("values") or []
        if not isinstance(values, list):
            raise NodeFormatError(f"{where}: array 'values' must be a list")
        items = tuple(node_from_json(v, f"{where}.{i}") for i, v in enumerate(values))
        return ArrayNode(items, indefinite, rng, outer)
    if typ == "Map":
        values = obj.get("values") or []
        if not isinstance(values, list):
            raise NodeFormatError(f"{where}: map 'values' must be a list")
        entries = []
        for i, entry in enumerate(values):
            if not isinstance(entry, dict) or "key" not in entry or "value" not in entry:
                raise NodeFormatError(f"{where}: map entry {i} needs 'key' and 'value'")
            entries.append(
                (
                    node_from_json(entry["key"], f"{where}.keys[{i}]"),
                    node_from_json(entry["value"], f"{where}.values[{i}]"),
                )
            )
        return MapNode(tuple(entries), indefinite, rng, outer)
    if typ == "Tag":
        tag = obj.get("tag")
        try:
            tag_num = int(tag)
        except (TypeError, ValueError):
            raise NodeFormatError(f"{where}: tag number missing or invalid") from None
        inner = node_from_json(obj.get("value"), f"{where}.value")
        return TaggedNode(tag_num, inner, rng, outer)
    if typ in _CHUNKED_TYPES:
        chunks = obj.get("chunks") or []
        if not isinstance(chunks, list):
            raise NodeFormatError(f"{where}: 'chunks' must be a list")
        kids = tuple(node_from_json(c, f"{where}.chunks[{i}]") for i, c in enumerate(chunks))
        return ChunkedNode(_CHUNKED_TYPES[typ], kids, rng, outer)
    return Leaf(typ, obj.get("value"), rng, outer)


def load_tree_json(text: str) -> Node:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise NodeFormatError(f"JSON parse error: {e}") from None
    # Some decoders wrap the value in a single-element list
    if isinstance(data, list) and len(data) == 1:
        data = data[0]
    return node_from_json(data)

from __future__ import annotations

import pytest

from hexsync.core.nodes import (
    ArrayNode,
    ByteRange,
    ChunkedNode,
    Leaf,
    MapNode,
    NodeFormatError,
    TaggedNode,
    children,
    load_tree_json,
    node_from_json,
    node_label,
    tag_description,
    walk,
)
from hexsync.core.paths import (
    ancestors,
    chunk,
    index,
    is_descendant,
    map_key,
    map_value,
    parse_path,
    path_to_string,
    tag_value,
)


def test_path_strings_and_parse() -> None:
    assert path_to_string(()) == "root"
    p = (map_value(1), tag_value(), index(0))
    s = path_to_string(p)
    assert s == "root.values[1].value.0"
    assert parse_path(s) == p
    assert parse_path("root.keys[3].chunks[2]") == (map_key(3), chunk(2))
    assert parse_path("transaction.body.0") is None
    assert parse_path("root.bogus") is None
    assert parse_path(None) is None


def test_ancestors_and_descendants() -> None:
    p = (index(0), index(1))
    assert ancestors(p) == [(), (index(0),)]
    assert is_descendant("root.0.1", "root.0")
    assert not is_descendant("root.0", "root.0")
    assert not is_descendant("root.01", "root.0")


def test_children_order_for_maps(nested_tree: MapNode) -> None:
    kinds = [step for step, _ in children(nested_tree)]
    assert kinds == [map_key(0), map_value(0), map_key(1), map_value(1)]


def test_walk_is_preorder(nested_tree: MapNode) -> None:
    paths = [path_to_string(p) for p, _ in walk(nested_tree)]
    assert paths == [
        "root",
        "root.keys[0]",
        "root.values[0]",
        "root.values[0].0",
        "root.values[0].1",
        "root.keys[1]",
        "root.values[1]",
        "root.values[1].value",
    ]
    assert list(walk(None)) == []


def test_byte_range_rejects_negative() -> None:
    with pytest.raises(ValueError):
        ByteRange(-1, 2)
    r = ByteRange(3, 2)
    assert (r.hex_start, r.hex_end) == (6, 10)
    assert r.contains(4) and not r.contains(5)


def test_labels() -> None:
    assert node_label(ArrayNode((Leaf("Null"), Leaf("Null")))) == "array (2 items)"
    assert node_label(ArrayNode(indefinite=True)) == "array (∞ items)"
    assert node_label(MapNode()) == "map (0 entries)"
    assert node_label(Leaf("U8", 7)) == "uint8: 7"
    assert node_label(Leaf("I16", -300)) == "nint16: -300"
    assert node_label(Leaf("Bool", True)) == "bool: true"
    assert node_label(Leaf("Bytes", [1, 2, 255])) == "bytes (3 bytes)"
    assert node_label(Leaf("String", "x" * 40)) == "text: " + "x" * 30 + "..."
    assert node_label(TaggedNode(258, ArrayNode())) == "tag #258"
    assert node_label(ChunkedNode("text", (Leaf("String", "a"),))) == "text (indefinite, 1 chunks)"
    assert tag_description(24) == "encoded CBOR"
    assert tag_description(9999) is None


def test_node_from_json_cquisitor_shape() -> None:
    obj = {
        "type": "Map",
        "items": "Indefinite",
        "position_info": {"offset": 0, "length": 1},
        "struct_position_info": {"offset": 0, "length": 6},
        "values": [
            {
                "key": {"type": "U8", "value": 1, "position_info": {"offset": 1, "length": 1}},
                "value": {
                    "type": "Tag",
                    "tag": "2",
                    "position_info": {"offset": 2, "length": 1},
                    "value": {"type": "Bytes", "value": [1], "position_info": {"offset": 3, "length": 2}},
                },
            }
        ],
    }
    root = node_from_json(obj)
    assert isinstance(root, MapNode)
    assert root.indefinite
    assert root.outer_range == ByteRange(0, 6)
    key, value = root.entries[0]
    assert key == Leaf("U8", 1, ByteRange(1, 1))
    assert isinstance(value, TaggedNode) and value.tag == 2
    assert value.inner.range == ByteRange(3, 2)


def test_node_from_json_chunks_and_errors() -> None:
    root = node_from_json(
        {
            "type": "IndefiniteLengthString",
            "chunks": [{"type": "String", "value": "ab", "position_info": {"offset": 1, "length": 3}}],
        }
    )
    assert isinstance(root, ChunkedNode) and root.kind == "text"
    with pytest.raises(NodeFormatError):
        node_from_json({"value": 1})
    with pytest.raises(NodeFormatError):
        node_from_json({"type": "U8", "position_info": {"offset": -1, "length": 1}})
    with pytest.raises(NodeFormatError):
        node_from_json({"type": "Map", "values": [{"key": {"type": "Null"}}]})


def test_load_tree_json_unwraps_single_list() -> None:
    root = load_tree_json('[{"type": "U8", "value": 5, "position_info": {"offset": 0, "length": 1}}]')
    assert root == Leaf("U8", 5, ByteRange(0, 1))
    with pytest.raises(NodeFormatError):
        load_tree_json("{not json")

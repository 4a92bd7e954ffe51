from __future__ import annotations

import pytest

from hexsync.core.nodes import ArrayNode, ByteRange, Leaf, MapNode, TaggedNode


def u8(offset: int, value: int) -> Leaf:
    return Leaf("U8", value, ByteRange(offset, 1))


@pytest.fixture
def small_array() -> ArrayNode:
    # 82 01 02
    return ArrayNode((u8(1, 1), u8(2, 2)), range=ByteRange(0, 3))


@pytest.fixture
def nested_tree() -> MapNode:
    # a2 01 82 02 03 02 d8 18 41 ff
    # {1: [2, 3], 2: 24(h'ff')}
    inner = ArrayNode((u8(3, 2), u8(4, 3)), range=ByteRange(2, 1), outer_range=ByteRange(2, 3))
    tagged = TaggedNode(
        24,
        Leaf("Bytes", [255], ByteRange(8, 2)),
        range=ByteRange(6, 2),
        outer_range=ByteRange(6, 4),
    )
    return MapNode(
        ((u8(1, 1), inner), (u8(5, 2), tagged)),
        range=ByteRange(0, 1),
        outer_range=ByteRange(0, 10),
    )

"""Tests for the tag model and tag body codec."""

from __future__ import annotations

import pytest

from apetag.descriptor import HAS_HEADER, IS_HEADER, Descriptor
from apetag.errors import (
    HeaderMismatch,
    IncompatibleType,
    InvalidItemType,
    InvalidKey,
    InvalidTagSize,
    ReservedKey,
    Truncated,
)
from apetag.item import Item, ItemType
from apetag.tag import Tag
from tests.builders import make_descriptor, make_raw_item

# Model operations


def test_empty_tag():
    tag = Tag()

    assert len(tag) == 0
    assert tag.get("Artist") is None
    assert tag.items("Artist") == []
    assert list(tag) == []


def test_get_is_case_insensitive_and_preserves_case():
    tag = Tag()
    tag.set("ArTiSt", ItemType.TEXT, "Queen")

    item = tag.get("artist")
    assert item is not None
    assert item.key == "ArTiSt"
    assert "ARTIST" in tag


def test_set_replaces_all_under_key():
    tag = Tag([Item.text("Artist", "A"), Item.text("Album", "X"), Item.text("ARTIST", "B")])

    tag.set("artist", ItemType.TEXT, "C")

    assert len(tag) == 2
    assert tag.items("Artist") == [Item.text("artist", "C")]
    assert tag.keys() == ["Album", "artist"]


def test_add_value_multi_value_law():
    tag = Tag()

    tag.add_value("Genre", "Rock")
    tag.add_value("genre", "Opera")

    assert len(tag) == 1
    item = tag.get("Genre")
    assert item is not None
    assert item.type == ItemType.TEXT
    assert item.key == "Genre"
    assert item.value == ("Rock", "Opera")


def test_add_value_keeps_position():
    tag = Tag()
    tag.add_value("Artist", "A")
    tag.set("Album", ItemType.TEXT, "X")

    tag.add_value("Artist", "B")

    assert tag.keys() == ["Artist", "Album"]


@pytest.mark.parametrize(
    "item_type,value",
    [(ItemType.BINARY, b"\x00\x01"), (ItemType.LOCATOR, "http://example.com")],
)
def test_add_value_to_non_text_fails_unchanged(item_type: ItemType, value):
    tag = Tag()
    tag.set("Extra", item_type, value)
    before = list(tag)

    with pytest.raises(IncompatibleType):
        tag.add_value("extra", "text")

    assert list(tag) == before


@pytest.mark.parametrize("key", ["ID3", "tag", "OggS", "mp+"])
def test_reserved_keys_rejected_unchanged(key: str):
    tag = Tag()
    tag.set("Title", ItemType.TEXT, "x")

    with pytest.raises(ReservedKey):
        tag.set(key, ItemType.TEXT, "x")
    with pytest.raises(ReservedKey):
        tag.add_value(key, "x")

    assert tag.keys() == ["Title"]


def test_invalid_key_rejected():
    with pytest.raises(InvalidKey):
        Tag().set("a", ItemType.TEXT, "x")


def test_set_unknown_type_rejected_unchanged():
    tag = Tag()
    tag.set("Artist", ItemType.TEXT, "Queen")

    with pytest.raises(InvalidItemType):
        tag.set("Artist", "foo", "x")

    assert tag.get("artist").value == ("Queen",)  # type: ignore[union-attr]


def test_remove_absent_is_noop():
    tag = Tag()
    tag.set("Title", ItemType.TEXT, "x")

    assert tag.remove("Artist") is False
    assert len(tag) == 1
    assert tag.remove("TITLE") is True
    assert len(tag) == 0


def test_iteration_is_restartable(sample_tag: Tag):
    first = [item.key for item in sample_tag.iter()]
    second = [item.key for item in sample_tag.iter()]

    assert first == second == ["Artist", "Genre", "Cover Art (Front)", "Related"]


def test_duplicates_from_decoded_tag_are_surfaced():
    body = make_raw_item(b"Artist", b"A") + make_raw_item(b"ARTIST", b"B")
    footer = Descriptor(tag_size=len(body) + 32, item_count=2)

    tag = Tag.decode_items(body, footer)

    assert [item.value for item in tag.items("artist")] == [("A",), ("B",)]
    assert tag.get("artist") == Item.text("Artist", "A")

    tag.set("Artist", ItemType.TEXT, "C")
    assert len(tag.items("artist")) == 1


# Body codec


def test_encode_with_header(sample_tag: Tag):
    data = sample_tag.encode(header=True)

    header = Descriptor.decode(data[:32])
    footer = Descriptor.decode(data[-32:])
    assert header.is_header and header.has_header
    assert footer.has_header and not footer.is_header
    assert footer.item_count == 4
    assert footer.tag_size == len(data) - 32
    assert header.agrees_with(footer)


def test_encode_without_header(sample_tag: Tag):
    data = sample_tag.encode(header=False)

    footer = Descriptor.decode(data[-32:])
    assert not footer.has_header
    assert footer.tag_size == len(data)
    assert data[:8] != b"APETAGEX"


@pytest.mark.parametrize("header", [True, False])
def test_round_trip(sample_tag: Tag, header: bool):
    assert Tag.decode(sample_tag.encode(header=header)) == sample_tag


def test_read_only_tag_flag_round_trips():
    tag = Tag([Item.text("Title", "x")], read_only=True)

    decoded = Tag.decode(tag.encode())

    assert decoded.read_only is True


def test_decode_items_size_mismatch():
    body = make_raw_item(b"Artist", b"A") + b"\0\0\0\0"
    footer = Descriptor(tag_size=len(body) + 32, item_count=1)

    with pytest.raises(InvalidTagSize):
        Tag.decode_items(body, footer)


def test_decode_item_count_too_high():
    body = make_raw_item(b"Artist", b"A")
    footer = Descriptor(tag_size=len(body) + 32, item_count=2)

    with pytest.raises(Truncated):
        Tag.decode_items(body, footer)


def test_decode_header_mismatch():
    body = make_raw_item(b"Artist", b"A")
    size = len(body) + 32
    data = (
        make_descriptor(size, 2, HAS_HEADER | IS_HEADER)
        + body
        + make_descriptor(size, 1, HAS_HEADER)
    )

    with pytest.raises(HeaderMismatch):
        Tag.decode(data)


def test_decode_size_larger_than_data():
    data = make_raw_item(b"Artist", b"A") + make_descriptor(500, 1)

    with pytest.raises(InvalidTagSize):
        Tag.decode(data)

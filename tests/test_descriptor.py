"""Tests for the 32-byte header/footer descriptor."""

from __future__ import annotations

import struct

import pytest

from apetag.descriptor import (
    DESCRIPTOR_SIZE,
    HAS_HEADER,
    HAS_NO_FOOTER,
    IS_HEADER,
    READ_ONLY,
    Descriptor,
)
from apetag.errors import InvalidMagic, Truncated
from tests.builders import make_descriptor


def test_decode_footer_fields():
    data = make_descriptor(tag_size=120, item_count=3, flags=HAS_HEADER | READ_ONLY)

    footer = Descriptor.decode(data)

    assert footer.version == 2000
    assert footer.tag_size == 120
    assert footer.item_count == 3
    assert footer.has_header is True
    assert footer.is_header is False
    assert footer.has_footer is True
    assert footer.read_only is True


def test_decode_header_flags():
    data = make_descriptor(tag_size=64, item_count=1, flags=HAS_HEADER | IS_HEADER | HAS_NO_FOOTER)

    header = Descriptor.decode(data)

    assert header.is_header is True
    assert header.has_footer is False
    assert header.read_only is False


def test_magic_one_byte_off_fails():
    data = make_descriptor(tag_size=32, item_count=0, magic=b"APETAGEY")

    with pytest.raises(InvalidMagic):
        Descriptor.decode(data)


def test_magic_checked_before_length():
    with pytest.raises(InvalidMagic):
        Descriptor.decode(b"ID3")


def test_truncated_descriptor():
    data = make_descriptor(tag_size=32, item_count=0)[:20]

    with pytest.raises(Truncated):
        Descriptor.decode(data)


def test_encode_layout_is_little_endian():
    data = Descriptor(version=2000, tag_size=0x01020304, item_count=7, flags=HAS_HEADER).encode()

    assert len(data) == DESCRIPTOR_SIZE
    assert data[:8] == b"APETAGEX"
    assert struct.unpack("<IIII", data[8:24]) == (2000, 0x01020304, 7, HAS_HEADER)


def test_reserved_bytes_kept_on_read_zeroed_on_write():
    data = make_descriptor(tag_size=32, item_count=0)[:24] + b"\xff" * 8

    footer = Descriptor.decode(data)

    assert footer.reserved == b"\xff" * 8
    assert footer.encode()[24:] == bytes(8)


def test_agrees_with_ignores_is_header_bit():
    footer = Descriptor(tag_size=100, item_count=2, flags=HAS_HEADER)
    header = Descriptor(tag_size=100, item_count=2, flags=HAS_HEADER | IS_HEADER)

    assert header.agrees_with(footer)
    assert not Descriptor(tag_size=100, item_count=3, flags=HAS_HEADER).agrees_with(footer)
    assert not Descriptor(tag_size=96, item_count=2, flags=HAS_HEADER).agrees_with(footer)

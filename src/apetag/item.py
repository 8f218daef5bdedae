"""APE tag items: typed key/value records and their wire codec.

Packed format for an item:

    4B  value length
    4B  flags (bit 0 read-only, bits 1-2 type)
    key, printable ASCII, null terminated
    value, ``value length`` bytes
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from apetag.errors import (
    IncompatibleType,
    InvalidItemType,
    InvalidItemValue,
    InvalidKey,
    Truncated,
)

MIN_KEY_LENGTH = 2
MAX_KEY_LENGTH = 255

# Keys that collide with other tag formats' preambles
RESERVED_KEYS = frozenset({"id3", "tag", "oggs", "mp+"})

_ITEM_HEADER = struct.Struct("<II")
_TYPE_MASK = 0b110
_READ_ONLY = 0b001


class ItemType(StrEnum):
    """APE item value types."""

    TEXT = "text"
    BINARY = "binary"
    LOCATOR = "locator"

    @classmethod
    def from_flags(cls, flags: int) -> ItemType:
        bits = (flags & _TYPE_MASK) >> 1
        try:
            return _TYPE_BY_BITS[bits]
        except KeyError:
            raise InvalidItemType(f"Reserved item type bits: {bits}") from None

    def to_flags(self) -> int:
        return _BITS_BY_TYPE[self] << 1

    @classmethod
    def coerce(cls, value: ItemType | str) -> ItemType:
        """
        Accept an ItemType or its name.

        Raises:
            InvalidItemType: If value names no item type
        """
        try:
            return cls(value)
        except ValueError:
            raise InvalidItemType(f"Unknown item type: {value!r}") from None


_TYPE_BY_BITS = {0: ItemType.TEXT, 1: ItemType.BINARY, 2: ItemType.LOCATOR}
_BITS_BY_TYPE = {v: k for k, v in _TYPE_BY_BITS.items()}


def normalize_key(key: str) -> str:
    """Lookup form of a key; never used for output."""
    return key.lower()


def is_reserved_key(key: str) -> bool:
    return normalize_key(key) in RESERVED_KEYS


def validate_key(key: str) -> None:
    """
    Check key length and characters.

    Allowed: 2..255 characters in 0x20..0x7E, except '='.

    Raises:
        InvalidKey: If the key is not legal on the wire
    """
    if not isinstance(key, str):
        raise InvalidKey(f"Key must be a string, got {type(key).__name__}")
    if not MIN_KEY_LENGTH <= len(key) <= MAX_KEY_LENGTH:
        raise InvalidKey(
            f"Key length must be {MIN_KEY_LENGTH}..{MAX_KEY_LENGTH}, got {len(key)}: {key!r}"
        )
    for ch in key:
        if not " " <= ch <= "~" or ch == "=":
            raise InvalidKey(f"Illegal character {ch!r} in key {key!r}")


def _normalize_value(item_type: ItemType, value: Any) -> str | bytes | tuple[str, ...]:
    """Coerce a value to the shape its type requires."""
    if item_type == ItemType.BINARY:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        raise InvalidItemValue(f"Binary value must be bytes, got {type(value).__name__}")

    if item_type == ItemType.LOCATOR:
        if not isinstance(value, str):
            raise InvalidItemValue(f"Locator value must be str, got {type(value).__name__}")
        if "\0" in value:
            raise InvalidItemValue("Locator value must not contain null characters")
        return value

    values = (value,) if isinstance(value, str) else tuple(value)
    if not values:
        raise InvalidItemValue("Text item needs at least one value")
    for sub in values:
        if not isinstance(sub, str):
            raise InvalidItemValue(f"Text values must be str, got {type(sub).__name__}")
        if "\0" in sub:
            raise InvalidItemValue("Text values must not contain null characters")
    return values


@dataclass(frozen=True)
class Item:
    """
    One APE tag item.

    ``value`` shape depends on ``type``: a tuple of strings for TEXT, a
    string for LOCATOR, bytes for BINARY. The key keeps the case it was
    created with; lookups elsewhere compare it case-insensitively.
    """

    key: str
    type: ItemType
    value: str | bytes | tuple[str, ...]
    read_only: bool = False

    def __post_init__(self) -> None:
        validate_key(self.key)
        item_type = ItemType.coerce(self.type)
        object.__setattr__(self, "type", item_type)
        object.__setattr__(self, "value", _normalize_value(item_type, self.value))

    @classmethod
    def text(cls, key: str, *values: str, read_only: bool = False) -> Item:
        return cls(key, ItemType.TEXT, values, read_only)

    @classmethod
    def binary(cls, key: str, data: bytes, read_only: bool = False) -> Item:
        return cls(key, ItemType.BINARY, data, read_only)

    @classmethod
    def locator(cls, key: str, url: str, read_only: bool = False) -> Item:
        return cls(key, ItemType.LOCATOR, url, read_only)

    @property
    def normalized_key(self) -> str:
        return normalize_key(self.key)

    def append_value(self, value: str) -> Item:
        """
        Return a copy with ``value`` appended as a new sub-value.

        Raises:
            IncompatibleType: If the item is not TEXT
        """
        if not isinstance(self.value, tuple):
            raise IncompatibleType(f"Cannot append a value to {self.type} item {self.key!r}")
        return Item(self.key, self.type, (*self.value, value), self.read_only)

    def value_bytes(self) -> bytes:
        if isinstance(self.value, bytes):
            return self.value
        if isinstance(self.value, tuple):
            return "\0".join(self.value).encode("utf-8")
        return self.value.encode("utf-8")

    def encode(self) -> bytes:
        """Serialize to the packed item format."""
        raw = self.value_bytes()
        flags = self.type.to_flags() | (_READ_ONLY if self.read_only else 0)
        return _ITEM_HEADER.pack(len(raw), flags) + self.key.encode("ascii") + b"\0" + raw

    @classmethod
    def decode(cls, data: bytes, offset: int = 0) -> tuple[Item, int]:
        """
        Decode one item starting at ``offset``.

        Reserved keys are accepted here; rejecting them is the tag model's job.

        Returns:
            The item and the number of bytes it occupied

        Raises:
            Truncated: If a field runs past the end of ``data``
            InvalidItemType: If the type bits are 3
            InvalidKey: If the key is not legal on the wire
            InvalidItemValue: If a text value is not UTF-8
        """
        if offset + _ITEM_HEADER.size > len(data):
            raise Truncated(f"Item header at offset {offset} runs past end of tag")
        size, flags = _ITEM_HEADER.unpack_from(data, offset)
        item_type = ItemType.from_flags(flags)
        read_only = bool(flags & _READ_ONLY)

        key_start = offset + _ITEM_HEADER.size
        key_end = data.find(b"\0", key_start)
        if key_end < 0:
            raise Truncated(f"Item key at offset {key_start} is not null terminated")
        raw_key = bytes(data[key_start:key_end])
        if not all(0x20 <= b <= 0x7E for b in raw_key):
            raise InvalidKey(f"Illegal bytes in key {raw_key!r}")
        key = raw_key.decode("ascii")

        value_start = key_end + 1
        value_end = value_start + size
        if value_end > len(data):
            raise Truncated(
                f"Item {key!r} declares {size} value bytes, only {len(data) - value_start} left"
            )
        raw = bytes(data[value_start:value_end])

        value: str | bytes | tuple[str, ...]
        if item_type == ItemType.BINARY:
            value = raw
        else:
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidItemValue(f"Item {key!r} is not valid UTF-8: {e}") from e
            value = tuple(text.split("\0")) if item_type == ItemType.TEXT else text

        return cls(key, item_type, value, read_only), value_end - offset

"""In-memory APE tag model and tag body codec."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from apetag.descriptor import (
    APE_V2,
    DESCRIPTOR_SIZE,
    HAS_HEADER,
    IS_HEADER,
    READ_ONLY,
    Descriptor,
)
from apetag.errors import HeaderMismatch, IncompatibleType, InvalidTagSize, ReservedKey
from apetag.item import Item, ItemType, is_reserved_key, normalize_key, validate_key


class Tag:
    """
    Ordered collection of APE items, keyed case-insensitively.

    Items written through ``set``/``add_value`` are unique per key. A tag
    decoded from a non-conformant file may hold duplicates; ``get`` returns
    the first and ``items`` returns all of them.
    """

    def __init__(
        self,
        items: Iterable[Item] = (),
        version: int = APE_V2,
        read_only: bool = False,
    ):
        self._items: list[Item] = list(items)
        self._index: dict[str, list[int]] = {}
        self.version = version
        self.read_only = read_only
        self._reindex()

    def _reindex(self) -> None:
        self._index = {}
        for pos, item in enumerate(self._items):
            self._index.setdefault(item.normalized_key, []).append(pos)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self._items))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_key(key) in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tag):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"Tag({self._items!r})"

    def iter(self) -> Iterator[Item]:
        """Iterate items in insertion order. Each call starts over."""
        return iter(self)

    def keys(self) -> list[str]:
        return [item.key for item in self._items]

    def get(self, key: str) -> Item | None:
        """First item whose key matches case-insensitively."""
        positions = self._index.get(normalize_key(key))
        return self._items[positions[0]] if positions else None

    def items(self, key: str) -> list[Item]:
        """All items whose key matches case-insensitively."""
        return [self._items[pos] for pos in self._index.get(normalize_key(key), [])]

    def set(
        self,
        key: str,
        item_type: ItemType | str,
        value: Any,
        read_only: bool = False,
    ) -> Item:
        """
        Replace everything stored under ``key`` with one fresh item.

        Raises:
            ReservedKey: If key is ID3, TAG, OggS or MP+
            InvalidKey: If key is not legal on the wire
            InvalidItemType: If item_type names no item type
            InvalidItemValue: If value does not fit the type
        """
        self._check_key(key)
        item = Item(key, ItemType.coerce(item_type), value, read_only)
        self.remove(key)
        self._items.append(item)
        self._reindex()
        return item

    def add_value(self, key: str, value: str) -> Item:
        """
        Append a sub-value to the TEXT item under ``key``.

        Creates a TEXT item when the key is absent. The existing item keeps
        its position and the case of its key.

        Raises:
            ReservedKey: If key is ID3, TAG, OggS or MP+
            IncompatibleType: If the existing item is BINARY or LOCATOR
        """
        self._check_key(key)
        existing = self.get(key)
        if existing is None:
            return self.set(key, ItemType.TEXT, (value,))
        if existing.type != ItemType.TEXT:
            raise IncompatibleType(
                f"Cannot append a value to {existing.type} item {existing.key!r}"
            )
        updated = existing.append_value(value)
        self._items[self._index[existing.normalized_key][0]] = updated
        return updated

    def remove(self, key: str) -> bool:
        """Remove every item under ``key``. Returns whether anything was removed."""
        norm = normalize_key(key)
        if norm not in self._index:
            return False
        self._items = [item for item in self._items if item.normalized_key != norm]
        self._reindex()
        return True

    @staticmethod
    def _check_key(key: str) -> None:
        validate_key(key)
        if is_reserved_key(key):
            raise ReservedKey(f"Key {key!r} is reserved (ID3, TAG, OggS, MP+)")

    # Tag body codec

    def encode(self, header: bool = True, version: int | None = None) -> bytes:
        """
        Serialize to ``[header] items footer``.

        Items keep insertion order.
        """
        body = b"".join(item.encode() for item in self._items)
        flags = READ_ONLY if self.read_only else 0
        if header:
            flags |= HAS_HEADER
        footer = Descriptor(
            version=self.version if version is None else version,
            tag_size=len(body) + DESCRIPTOR_SIZE,
            item_count=len(self._items),
            flags=flags,
        )
        parts = [body, footer.encode()]
        if header:
            head = Descriptor(
                version=footer.version,
                tag_size=footer.tag_size,
                item_count=footer.item_count,
                flags=flags | IS_HEADER,
            )
            parts.insert(0, head.encode())
        return b"".join(parts)

    @classmethod
    def decode_items(cls, body: bytes, footer: Descriptor) -> Tag:
        """
        Decode the item region described by ``footer``.

        ``body`` must be exactly the bytes between header (or tag start) and
        footer.

        Raises:
            InvalidTagSize: If the items do not fill the region exactly
        """
        items: list[Item] = []
        offset = 0
        for _ in range(footer.item_count):
            item, consumed = Item.decode(body, offset)
            items.append(item)
            offset += consumed
        if offset != len(body):
            raise InvalidTagSize(
                f"Items occupy {offset} bytes but tag declares {len(body)}"
            )
        return cls(items, version=footer.version, read_only=footer.read_only)

    @classmethod
    def decode(cls, data: bytes) -> Tag:
        """
        Decode a complete tag ending at the end of ``data``.

        Raises:
            InvalidMagic: If the footer (or declared header) has a bad preamble
            InvalidTagSize: If the declared size does not fit ``data``
            HeaderMismatch: If header and footer disagree
        """
        footer = Descriptor.decode(data[-DESCRIPTOR_SIZE:])
        items_end = len(data) - DESCRIPTOR_SIZE
        items_start = len(data) - footer.tag_size
        if footer.tag_size < DESCRIPTOR_SIZE or items_start < 0:
            raise InvalidTagSize(f"Tag size {footer.tag_size} does not fit {len(data)} bytes")

        if footer.has_header:
            if items_start < DESCRIPTOR_SIZE:
                raise InvalidTagSize("Tag declares a header but there is no room for one")
            header = Descriptor.decode(data[items_start - DESCRIPTOR_SIZE : items_start])
            if not header.agrees_with(footer):
                raise HeaderMismatch(
                    f"Header (size={header.tag_size}, items={header.item_count}, "
                    f"flags={header.flags:#x}) disagrees with footer "
                    f"(size={footer.tag_size}, items={footer.item_count}, flags={footer.flags:#x})"
                )

        return cls.decode_items(data[items_start:items_end], footer)

"""APE tag header/footer descriptor.

Layout (32 bytes, little-endian):

    8B  preamble "APETAGEX"
    4B  version
    4B  tag size (items + footer, excluding header)
    4B  item count
    4B  flags
    8B  reserved
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from apetag.errors import InvalidMagic, Truncated

PREAMBLE = b"APETAGEX"
DESCRIPTOR_SIZE = 32

APE_V1 = 1000
APE_V2 = 2000
SUPPORTED_VERSIONS = frozenset({APE_V1, APE_V2})

HAS_HEADER = 1 << 31
HAS_NO_FOOTER = 1 << 30
IS_HEADER = 1 << 29
READ_ONLY = 1

_FIELDS = struct.Struct("<8sIIII8s")


@dataclass(frozen=True)
class Descriptor:
    """Decoded header or footer record."""

    version: int = APE_V2
    tag_size: int = DESCRIPTOR_SIZE
    item_count: int = 0
    flags: int = 0
    reserved: bytes = bytes(8)

    @property
    def has_header(self) -> bool:
        return bool(self.flags & HAS_HEADER)

    @property
    def has_footer(self) -> bool:
        return not self.flags & HAS_NO_FOOTER

    @property
    def is_header(self) -> bool:
        return bool(self.flags & IS_HEADER)

    @property
    def read_only(self) -> bool:
        return bool(self.flags & READ_ONLY)

    @classmethod
    def decode(cls, data: bytes) -> Descriptor:
        """
        Decode a 32-byte descriptor.

        The preamble is checked before anything else so scanning callers
        can reject non-tags cheaply.

        Raises:
            InvalidMagic: If the preamble does not match
            Truncated: If fewer than 32 bytes are given
        """
        if data[: len(PREAMBLE)] != PREAMBLE:
            raise InvalidMagic(f"Bad preamble: {bytes(data[: len(PREAMBLE)])!r}")
        if len(data) < DESCRIPTOR_SIZE:
            raise Truncated(f"Descriptor needs {DESCRIPTOR_SIZE} bytes, got {len(data)}")

        _, version, tag_size, item_count, flags, reserved = _FIELDS.unpack_from(data)
        return cls(
            version=version,
            tag_size=tag_size,
            item_count=item_count,
            flags=flags,
            reserved=reserved,
        )

    def encode(self) -> bytes:
        """Encode to 32 bytes; the reserved region is always zeroed."""
        return _FIELDS.pack(
            PREAMBLE, self.version, self.tag_size, self.item_count, self.flags, bytes(8)
        )

    def agrees_with(self, other: Descriptor) -> bool:
        """Whether a header and footer describe the same tag (is-header bit ignored)."""
        return (
            self.tag_size == other.tag_size
            and self.item_count == other.item_count
            and (self.flags & ~IS_HEADER) == (other.flags & ~IS_HEADER)
        )

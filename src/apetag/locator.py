"""
Find APE tag boundaries at the end of a stream.

Trailers are appended newest-last (audio | APE | Lyrics3v2 | ID3v1), so the
locator peels ID3v1 first, then Lyrics3v2, before it reads the APE footer.
Both legacy trailers are only skipped, never interpreted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import BinaryIO

from apetag.descriptor import DESCRIPTOR_SIZE, PREAMBLE, Descriptor
from apetag.errors import (
    ApeIOError,
    HeaderMismatch,
    InvalidMagic,
    InvalidTagSize,
    ParseLyrics3V2SizeInt,
    ParseLyrics3V2SizeStr,
)

logger = logging.getLogger(__name__)

ID3V1_SIZE = 128
ID3V1_PREAMBLE = b"TAG"
LYRICS3V2_MARKER = b"LYRICS200"
LYRICS3V2_SIZE_DIGITS = 6


@dataclass(frozen=True)
class Trailers:
    """Legacy trailers at the end of a stream."""

    start: int  # first byte of the trailers, or stream size when there are none
    stream_size: int
    id3v1: bool = False
    lyrics3v2: bool = False

    @property
    def size(self) -> int:
        return self.stream_size - self.start


@dataclass(frozen=True)
class Location:
    """Byte extent ``[start, end)`` of an APE tag, header included."""

    start: int
    end: int
    footer: Descriptor
    trailers: Trailers

    @property
    def size(self) -> int:
        return self.end - self.start


@contextmanager
def wrap_io(action: str) -> Iterator[None]:
    """Re-raise stream failures as ApeIOError."""
    try:
        yield
    except OSError as e:
        if isinstance(e, ApeIOError):
            raise
        raise ApeIOError(f"I/O error while {action}: {e}") from e


def stream_size(stream: BinaryIO) -> int:
    with wrap_io("measuring stream"):
        return stream.seek(0, 2)


def read_at(stream: BinaryIO, offset: int, size: int) -> bytes:
    with wrap_io(f"reading {size} bytes at {offset}"):
        stream.seek(offset)
        return stream.read(size)


def find_trailers(stream: BinaryIO) -> Trailers:
    """
    Skip ID3v1 and Lyrics3v2 trailers at the end of ``stream``.

    Raises:
        ParseLyrics3V2SizeStr: If the Lyrics3v2 size field is not digits
        ParseLyrics3V2SizeInt: If the Lyrics3v2 block would start before the stream
    """
    size = stream_size(stream)
    cursor = size
    id3v1 = lyrics3v2 = False

    # A 131-byte APE tag puts the "TAG" of its header's preamble exactly
    # 128 bytes from the end; a trailing APE footer rules out ID3v1.
    ends_with_ape = (
        cursor >= DESCRIPTOR_SIZE
        and read_at(stream, cursor - DESCRIPTOR_SIZE, len(PREAMBLE)) == PREAMBLE
    )
    if (
        not ends_with_ape
        and cursor >= ID3V1_SIZE
        and read_at(stream, cursor - ID3V1_SIZE, 3) == ID3V1_PREAMBLE
    ):
        cursor -= ID3V1_SIZE
        id3v1 = True
        logger.debug("ID3v1 trailer at offset %d", cursor)

    footer_len = len(LYRICS3V2_MARKER) + LYRICS3V2_SIZE_DIGITS
    if cursor >= len(LYRICS3V2_MARKER) and (
        read_at(stream, cursor - len(LYRICS3V2_MARKER), len(LYRICS3V2_MARKER))
        == LYRICS3V2_MARKER
    ):
        if cursor < footer_len:
            raise ParseLyrics3V2SizeStr("Lyrics3v2 marker without a size field")
        raw = read_at(stream, cursor - footer_len, LYRICS3V2_SIZE_DIGITS)
        if len(raw) != LYRICS3V2_SIZE_DIGITS or not raw.isdigit():
            raise ParseLyrics3V2SizeStr(f"Lyrics3v2 size field is not digits: {raw!r}")
        block = int(raw) + footer_len
        if block > cursor:
            raise ParseLyrics3V2SizeInt(
                f"Lyrics3v2 size {int(raw)} exceeds the {cursor - footer_len} bytes before it"
            )
        cursor -= block
        lyrics3v2 = True
        logger.debug("Lyrics3v2 trailer at offset %d (%d bytes)", cursor, block)

    return Trailers(start=cursor, stream_size=size, id3v1=id3v1, lyrics3v2=lyrics3v2)


def locate(stream: BinaryIO, trailers: Trailers | None = None) -> Location | None:
    """
    Find the APE tag immediately before any legacy trailers.

    Returns:
        The tag's extent, or None when there is no tag

    Raises:
        InvalidTagSize: If the footer's size would reach before the stream start,
            or a declared header is missing
        HeaderMismatch: If the declared header disagrees with the footer
    """
    if trailers is None:
        trailers = find_trailers(stream)
    end = trailers.start
    if end < DESCRIPTOR_SIZE:
        return None

    try:
        footer = Descriptor.decode(read_at(stream, end - DESCRIPTOR_SIZE, DESCRIPTOR_SIZE))
    except InvalidMagic:
        return None

    if footer.tag_size < DESCRIPTOR_SIZE:
        raise InvalidTagSize(f"Tag size {footer.tag_size} is smaller than its footer")
    length = footer.tag_size + (DESCRIPTOR_SIZE if footer.has_header else 0)
    start = end - length
    if start < 0:
        raise InvalidTagSize(f"Tag of {length} bytes does not fit before offset {end}")

    if footer.has_header:
        check_header(stream, start, footer)

    logger.debug("APE tag at [%d, %d), %d items", start, end, footer.item_count)
    return Location(start=start, end=end, footer=footer, trailers=trailers)


def check_header(stream: BinaryIO, offset: int, footer: Descriptor) -> Descriptor:
    """
    Decode the header a footer declares at ``offset`` and compare the two.

    Raises:
        InvalidTagSize: If there is no header at ``offset``
        HeaderMismatch: If the header disagrees with the footer
    """
    try:
        header = Descriptor.decode(read_at(stream, offset, DESCRIPTOR_SIZE))
    except InvalidMagic as e:
        raise InvalidTagSize(f"Footer declares a header but none is at offset {offset}") from e
    if not header.is_header:
        raise InvalidTagSize(f"Descriptor at offset {offset} is not a header")
    if not header.agrees_with(footer):
        raise HeaderMismatch(
            f"Header (size={header.tag_size}, items={header.item_count}) disagrees with "
            f"footer (size={footer.tag_size}, items={footer.item_count})"
        )
    return header


def locate_leading(stream: BinaryIO) -> tuple[Descriptor, int, int] | None:
    """
    Find a header-first APE tag at offset 0.

    Some encoders put the tag at the start of the file. Such a tag is only
    read, never rewritten in place.

    Returns:
        The header and the ``[start, end)`` offsets of the item region, or
        None when the stream does not start with an APE header
    """
    size = stream_size(stream)
    if size < DESCRIPTOR_SIZE:
        return None
    try:
        header = Descriptor.decode(read_at(stream, 0, DESCRIPTOR_SIZE))
    except InvalidMagic:
        return None
    if not header.is_header:
        return None

    items_end = DESCRIPTOR_SIZE + header.tag_size
    if header.has_footer:
        if header.tag_size < DESCRIPTOR_SIZE:
            raise InvalidTagSize(f"Tag size {header.tag_size} is smaller than its footer")
        items_end -= DESCRIPTOR_SIZE
    if items_end > size:
        raise InvalidTagSize(f"Leading tag of {header.tag_size} bytes overruns the stream")

    logger.debug("Leading APE tag, items at [%d, %d)", DESCRIPTOR_SIZE, items_end)
    return header, DESCRIPTOR_SIZE, items_end

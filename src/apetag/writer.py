"""
Read, replace and remove APE tags in streams and files.

Writes are buffer based: the trailers after the splice point are read into
memory, the new tag is written at the splice point, the trailers are
re-appended and the stream is truncated to its new length. Nothing is
atomic; an I/O failure mid-write leaves the stream as the failed call left it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

from apetag.config import WriteConfig
from apetag.descriptor import APE_V2, SUPPORTED_VERSIONS, Descriptor
from apetag.errors import EmptyTag, InvalidVersion
from apetag.locator import find_trailers, locate, locate_leading, read_at, wrap_io
from apetag.tag import Tag

logger = logging.getLogger(__name__)


def open(stream: BinaryIO) -> Tag | None:  # noqa: A001
    """
    Decode the APE tag at the end of ``stream``.

    Falls back to a header-first tag at offset 0 when the end of the stream
    carries none.

    Returns:
        The decoded tag, or None if the stream has no APE tag

    Raises:
        InvalidVersion: If the tag is neither APEv1 nor APEv2
        ApeError: If the tag is malformed; nothing is partially loaded
    """
    location = locate(stream)
    if location is None:
        return _open_leading(stream)
    _check_version(location.footer)
    data = read_at(stream, location.start, location.size)
    return Tag.decode(data)


def _open_leading(stream: BinaryIO) -> Tag | None:
    leading = locate_leading(stream)
    if leading is None:
        return None
    header, start, end = leading
    _check_version(header)
    return Tag.decode_items(read_at(stream, start, end - start), header)


def _check_version(descriptor: Descriptor) -> None:
    if descriptor.version not in SUPPORTED_VERSIONS:
        raise InvalidVersion(f"Unsupported APE version {descriptor.version}")


def splice(stream: BinaryIO, new_tag: bytes | None) -> None:
    """
    Replace the APE tag in ``stream`` with ``new_tag`` (None removes it).

    Without an existing tag the new bytes go just before any ID3v1 or
    Lyrics3v2 trailer. Trailer bytes are carried over verbatim.
    """
    trailers = find_trailers(stream)
    location = locate(stream, trailers)

    if location is None:
        if not new_tag:
            logger.debug("No APE tag present, nothing to remove")
            return
        splice_at = tail_start = trailers.start
    else:
        splice_at, tail_start = location.start, location.end

    tail = read_at(stream, tail_start, trailers.stream_size - tail_start)
    payload = new_tag or b""
    logger.debug(
        "Splicing %d bytes at %d, replacing [%d, %d), keeping %d trailer bytes",
        len(payload),
        splice_at,
        splice_at,
        tail_start,
        len(tail),
    )

    with wrap_io("writing tag"):
        stream.seek(splice_at)
        stream.write(payload)
        stream.write(tail)
        stream.truncate()
        stream.flush()


def save(stream: BinaryIO, tag: Tag, config: WriteConfig | None = None) -> None:
    """
    Write ``tag`` into ``stream``, replacing any existing APE tag.

    Raises:
        EmptyTag: If the tag has no items; use remove_tag instead
    """
    if config is None:
        config = WriteConfig()
    if not len(tag):
        raise EmptyTag("Refusing to write a tag without items")
    data = tag.encode(header=config.header, version=APE_V2)
    splice(stream, data)
    logger.info("Wrote APE tag: %d items, %d bytes", len(tag), len(data))


def remove_tag(stream: BinaryIO) -> None:
    """Strip the APE tag from ``stream``. No tag is not an error."""
    splice(stream, None)


def read(path: Path | str) -> Tag | None:
    """Read the APE tag of the file at ``path``."""
    with wrap_io(f"opening {path}"):
        fileobj = Path(path).open("rb")
    with fileobj:
        return open(fileobj)


def write(path: Path | str, tag: Tag, config: WriteConfig | None = None) -> None:
    """Write ``tag`` to the file at ``path`` in place."""
    with wrap_io(f"opening {path}"):
        fileobj = Path(path).open("r+b")
    with fileobj:
        save(fileobj, tag, config)
    logger.info("Saved tag to %s", Path(path))


def remove(path: Path | str) -> None:
    """Strip the APE tag from the file at ``path``."""
    with wrap_io(f"opening {path}"):
        fileobj = Path(path).open("r+b")
    with fileobj:
        remove_tag(fileobj)

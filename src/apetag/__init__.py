__all__ = (
    "main",
    "Config",
    "WriteConfig",
    # Codecs
    "Descriptor",
    "Item",
    "ItemType",
    "Tag",
    # Trailers
    "Location",
    "Trailers",
    "find_trailers",
    "locate",
    "locate_leading",
    # Stream and file API. ``open`` is left out of star imports so it
    # never shadows the builtin; use ``apetag.open``.
    "save",
    "remove_tag",
    "splice",
    "read",
    "write",
    "remove",
    # Errors
    "ApeError",
    "ApeIOError",
    "EmptyTag",
    "HeaderMismatch",
    "IncompatibleType",
    "InvalidItemType",
    "InvalidItemValue",
    "InvalidKey",
    "InvalidMagic",
    "InvalidTagSize",
    "InvalidVersion",
    "ParseLyrics3V2SizeInt",
    "ParseLyrics3V2SizeStr",
    "ReservedKey",
    "Truncated",
)

__version__ = "0.1.0"

from apetag.cli import app as main
from apetag.config import Config, WriteConfig
from apetag.descriptor import Descriptor
from apetag.errors import (
    ApeError,
    ApeIOError,
    EmptyTag,
    HeaderMismatch,
    IncompatibleType,
    InvalidItemType,
    InvalidItemValue,
    InvalidKey,
    InvalidMagic,
    InvalidTagSize,
    InvalidVersion,
    ParseLyrics3V2SizeInt,
    ParseLyrics3V2SizeStr,
    ReservedKey,
    Truncated,
)
from apetag.item import Item, ItemType
from apetag.locator import Location, Trailers, find_trailers, locate, locate_leading
from apetag.tag import Tag
from apetag.writer import open, read, remove, remove_tag, save, splice, write

"""Exception taxonomy for APE tag processing.

Every failure raised by the codecs, the locator and the writer is an
``ApeError``. Absence of a tag is not an error and is reported as ``None``.
"""

from __future__ import annotations


class ApeError(Exception):
    """Base class for all APE tag errors."""

    pass


class Truncated(ApeError, ValueError):
    """Not enough bytes for a declared field."""

    pass


class InvalidMagic(ApeError, ValueError):
    """Descriptor does not start with the APETAGEX preamble."""

    pass


class InvalidTagSize(ApeError, ValueError):
    """Declared tag size is inconsistent with the stream or the items."""

    pass


class InvalidVersion(ApeError, ValueError):
    """Tag version is neither APEv1 (1000) nor APEv2 (2000)."""

    pass


class HeaderMismatch(ApeError, ValueError):
    """Header and footer disagree on size, item count or flags."""

    pass


class InvalidItemType(ApeError, ValueError):
    """Item flags carry the reserved type value 3."""

    pass


class InvalidItemValue(ApeError, ValueError):
    """Item value has the wrong shape or is not valid UTF-8."""

    pass


class InvalidKey(ApeError, ValueError):
    """Item key has an illegal length or character."""

    pass


class ReservedKey(InvalidKey):
    """Item key is one of ID3, TAG, OggS, MP+."""

    pass


class IncompatibleType(ApeError, TypeError):
    """Sub-value appended to a Binary or Locator item."""

    pass


class EmptyTag(ApeError, ValueError):
    """A tag without items cannot be written."""

    pass


class ParseLyrics3V2SizeStr(ApeError, ValueError):
    """Lyrics3v2 size field is not six ASCII digits."""

    pass


class ParseLyrics3V2SizeInt(ApeError, ValueError):
    """Lyrics3v2 size field points outside the stream."""

    pass


class ApeIOError(ApeError, OSError):
    """Underlying stream operation failed; the original error is chained."""

    pass

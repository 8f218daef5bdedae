"""Pytest configuration and shared fixtures for apetag tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from apetag.tag import Tag
from tests.builders import AUDIO


@pytest.fixture
def sample_tag() -> Tag:
    """A tag with one item of every type."""
    tag = Tag()
    tag.set("Artist", "text", "Queen")
    tag.add_value("Genre", "Rock")
    tag.add_value("Genre", "Opera")
    tag.set("Cover Art (Front)", "binary", b"\x89PNG\r\n\x1a\n" + b"\0" * 16)
    tag.set("Related", "locator", "https://example.com/queen")
    return tag


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    """An untagged 'audio' file."""
    path = tmp_path / "track.mpc"
    path.write_bytes(AUDIO)
    return path

"""Pytest configuration and shared fixtures for Django tests."""

import io
import os
import zipfile
from unittest.mock import MagicMock
from xml.sax.saxutils import escape

import django
import pytest
from PIL import Image


def pytest_configure(config):
    """Configure Django settings before running tests."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "launchmeta.settings")
    django.setup()


# -----------------------------------------------------------------------------
# Image test helpers
# -----------------------------------------------------------------------------


def create_test_image(width: int, height: int, format: str = "PNG") -> bytes:
    """Create a test image in memory."""
    img = Image.new("RGB", (width, height), color="red")
    buffer = io.BytesIO()
    img.save(buffer, format=format)
    return buffer.getvalue()


# -----------------------------------------------------------------------------
# Metadata archive helpers
# -----------------------------------------------------------------------------


def _element(tag: str, fields: dict) -> str:
    children = "".join(
        f"<{name}>{escape(str(value))}</{name}>"
        for name, value in fields.items()
        if value is not None
    )
    return f"  <{tag}>{children}</{tag}>\n"


def build_metadata_xml(
    games=(), alternate_names=(), images=(), platforms=("Sega Genesis",)
) -> bytes:
    """Build a Metadata.xml document from LaunchBox-style field dicts.

    Platform elements are included so tests cover element kinds the
    importer has to skip.
    """
    parts = ['<?xml version="1.0" standalone="yes"?>\n<LaunchBox>\n']
    parts.extend(_element("Platform", {"Name": name}) for name in platforms)
    parts.extend(_element("Game", game) for game in games)
    parts.extend(_element("GameAlternateName", alt) for alt in alternate_names)
    parts.extend(_element("GameImage", image) for image in images)
    parts.append("</LaunchBox>\n")
    return "".join(parts).encode("utf-8")


def make_metadata_zip(xml: bytes, filename: str = "Metadata.xml") -> bytes:
    """Wrap a Metadata.xml document in an in-memory zip archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(filename, xml)
        zf.writestr("Mame.xml", b"<Mame />")
    return buffer.getvalue()


SONIC_GAME = {
    "Name": "Sonic the Hedgehog",
    "ReleaseDate": "1991-06-23T00:00:00-07:00",
    "Overview": "Sonic races through Green Hill Zone.",
    "CommunityRating": "4.25",
    "CommunityRatingCount": "120",
    "DatabaseID": "1001",
    "Platform": "Sega Genesis",
    "Genres": "Platform; Action",
    "Developer": "Sonic Team",
    "Publisher": "Sega",
    "WikipediaURL": "https://en.wikipedia.org/wiki/Sonic_the_Hedgehog_(1991_video_game)",
    "VideoURL": "https://www.youtube.com/watch?v=example",
}

SONIC_ALTERNATE_NAMES = [
    {"AlternateName": "Sonic The Hedgehog", "DatabaseID": "1001", "Region": "Europe"},
    {"AlternateName": "Sonic", "DatabaseID": "1001", "Region": "Japan"},
]

SONIC_IMAGES = [
    {"FileName": "1001-01.jpg", "Type": "Box - Front", "Region": "North America", "DatabaseID": "1001"},
    {"FileName": "1001-02.jpg", "Type": "Box - Front", "Region": "Europe", "DatabaseID": "1001"},
    {"FileName": "1001-03.png", "Type": "Clear Logo", "DatabaseID": "1001"},
]


@pytest.fixture
def sonic_metadata_xml() -> bytes:
    """A small Metadata.xml with one game, its alternate names and images."""
    return build_metadata_xml(
        games=[SONIC_GAME],
        alternate_names=SONIC_ALTERNATE_NAMES,
        images=SONIC_IMAGES,
    )


@pytest.fixture
def sonic_metadata_zip(sonic_metadata_xml) -> bytes:
    return make_metadata_zip(sonic_metadata_xml)


# -----------------------------------------------------------------------------
# Mock fixtures for external services
# -----------------------------------------------------------------------------


@pytest.fixture
def mock_gamesdb_client():
    """A GamesDbClient stand-in with a fixed remote version."""
    client = MagicMock()
    client.metadata_url = "https://gamesdb.example.com/Metadata.zip"
    client.get_remote_version_hash.return_value = "abc123"
    return client

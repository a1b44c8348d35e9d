"""Shared pytest fixtures for lessonprobe tests."""

from __future__ import annotations

from pathlib import Path
import struct
import zipfile

import pytest

from lessonprobe.core.io import FakeDescriptorSource, FakeFileLister
from lessonprobe.core.processing import PackageProcessor

# ============================================================================
# Path Fixtures
# ============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Get test fixtures directory."""
    return Path(__file__).parent / "fixtures"


# ============================================================================
# Document Fixtures
# ============================================================================


@pytest.fixture
def scorm12_manifest(fixtures_dir: Path) -> str:
    """SCORM 1.2 manifest: quiz resource, nested items, mastery score on an item."""
    return (fixtures_dir / "scorm12_imsmanifest.xml").read_text(encoding="utf-8")


@pytest.fixture
def scorm2004_manifest(fixtures_dir: Path) -> str:
    """SCORM 2004 manifest with LOM metadata and sequencing objectives."""
    return (fixtures_dir / "scorm2004_imsmanifest.xml").read_text(encoding="utf-8")


@pytest.fixture
def story_xml(fixtures_dir: Path) -> str:
    """Storyline-style story document with drag/drop interactions."""
    return (fixtures_dir / "story.xml").read_text(encoding="utf-8")


@pytest.fixture
def corrupt_zip(tmp_path: Path, scorm12_manifest: str) -> Path:
    """Deflated package whose manifest data is damaged; the central directory is intact."""
    path = tmp_path / "corrupt.zip"
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("imsmanifest.xml", scorm12_manifest)
    with zipfile.ZipFile(path) as archive:
        info = archive.getinfo("imsmanifest.xml")

    raw = bytearray(path.read_bytes())
    header = info.header_offset
    name_len, extra_len = struct.unpack("<HH", raw[header + 26 : header + 30])
    data_start = header + 30 + name_len + extra_len
    # 0xFF opens a deflate block of the reserved (invalid) type
    raw[data_start : data_start + 20] = b"\xff" * 20
    path.write_bytes(bytes(raw))
    return path


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def lister(scorm12_manifest: str, story_xml: str) -> FakeFileLister:
    """Fake lister serving one package per family of interest."""
    return FakeFileLister(
        {
            "uploads/safety-course.zip": {
                "imsmanifest.xml": scorm12_manifest,
                "content/index.html": "<html><body>Welcome</body></html>",
            },
            "uploads/sorting-game.story": {
                "story.html": "<html>articulate player</html>",
                "story_content/story.js": "var player = {};",
                "story.xml": story_xml,
            },
            "uploads/capitals.zip": {
                "capitals_flashcard.json": '{"cards": []}',
            },
            "uploads/empty.zip": {},
            "uploads/broken-manifest.zip": {
                "imsmanifest.xml": "<manifest><organizations>",
            },
        }
    )


@pytest.fixture
def source(scorm2004_manifest: str) -> FakeDescriptorSource:
    """Fake descriptor source with one valid and one non-manifest document."""
    return FakeDescriptorSource(
        {
            "manifests/golf/imsmanifest.xml": scorm2004_manifest,
            "manifests/not-a-manifest.xml": "<html><body/></html>",
        }
    )


@pytest.fixture
def processor(lister: FakeFileLister, source: FakeDescriptorSource) -> PackageProcessor:
    """Processor wired to the fake collaborators with an in-memory store."""
    return PackageProcessor(lister=lister, source=source)

"""Descriptors derived from package naming when no manifest can be used."""

from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import urlparse
from uuid import uuid4

from lessonprobe.core.models.descriptor import Descriptor

# Launcher files whose name says nothing about the course; the parent
# directory names the package instead.
GENERIC_LAUNCHERS = frozenset({"story.html", "index.html", "index_lms.html", "imsmanifest.xml", "story.xml"})


def _posix_path(source_path: str) -> PurePosixPath:
    parsed = urlparse(source_path)
    raw = parsed.path if parsed.scheme in ("http", "https", "file") else source_path
    return PurePosixPath(raw.replace("\\", "/").rstrip("/"))


def package_name(source_path: str) -> str:
    """Display name for a package path.

    Example:
        >>> package_name("courses/fire-safety/story.html")
        'fire-safety'
        >>> package_name("uploads/Quiz Week 3.zip")
        'Quiz Week 3'
    """
    path = _posix_path(source_path)
    if path.name.lower() in GENERIC_LAUNCHERS and path.parent.name:
        return path.parent.name
    return path.stem or path.name or source_path


def synthetic_descriptor(source_path: str, title: str | None = None) -> Descriptor:
    """Valid, empty descriptor titled after the package.

    Carries no organizations or resources, so template mapping only sees the
    title. ``synthetic`` is set so callers skip descriptor-derived
    configuration overrides.
    """
    return Descriptor(
        id=uuid4().hex,
        version="1.2",
        metadata={
            "title": title or package_name(source_path),
            "description": f"Fallback manifest for {source_path}",
        },
        organizations=[],
        resources=[],
        valid=True,
        synthetic=True,
    )

"""Local filesystem collaborators: zip archives, unpacked directories, files."""

from __future__ import annotations

import asyncio
from pathlib import Path
import zipfile
import zlib

import aiofiles

from lessonprobe.core.io.errors import SourceFetchError, SourceFormatError, SourceNotFoundError
from lessonprobe.core.models.files import FileEntry
from lessonprobe.core.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SAMPLE_BYTES = 4096

# Only these are sampled into FileEntry.content for keyword rules
TEXT_SUFFIXES = frozenset(
    {".xml", ".html", ".htm", ".js", ".json", ".txt", ".css", ".csv", ".md", ".xsd"}
)

# Raised by zipfile for corrupt, encrypted or unsupported members
_ARCHIVE_ERRORS = (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, EOFError)


def _is_text(name: str) -> bool:
    return Path(name).suffix.lower() in TEXT_SUFFIXES


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="ignore")


class LocalFileLister:
    """Lists zip-based packages (.zip, .story) and unpacked package directories.

    Archive reads run in a worker thread; nothing is extracted to disk.

    Example:
        >>> lister = LocalFileLister()
        >>> entries = await lister.list_files("uploads/course.zip")
        >>> manifest = await lister.read_member("uploads/course.zip", "imsmanifest.xml")
    """

    def __init__(self, sample_bytes: int = DEFAULT_SAMPLE_BYTES) -> None:
        self.sample_bytes = sample_bytes

    async def list_files(self, source_path: str) -> list[FileEntry]:
        return await asyncio.to_thread(self._list_files, source_path)

    async def read_member(self, source_path: str, member_path: str) -> str:
        return await asyncio.to_thread(self._read_member, source_path, member_path)

    def _list_files(self, source_path: str) -> list[FileEntry]:
        path = Path(source_path)
        if not path.exists():
            raise SourceNotFoundError(message="Package does not exist", location=source_path)

        if path.is_dir():
            try:
                entries = []
                for file_path in sorted(p for p in path.rglob("*") if p.is_file()):
                    member = file_path.relative_to(path).as_posix()
                    content = None
                    if _is_text(member):
                        with file_path.open("rb") as f:
                            content = _decode(f.read(self.sample_bytes))
                    entries.append(FileEntry.from_path(member, content))
            except OSError as e:
                raise SourceFetchError(
                    message="Could not read package directory", location=source_path, cause=e
                ) from e
            logger.debug(f"Listed {len(entries)} files in directory {source_path}")
            return entries

        try:
            with zipfile.ZipFile(path) as archive:
                entries = []
                for info in archive.infolist():
                    if info.is_dir():
                        continue
                    content = None
                    if _is_text(info.filename):
                        with archive.open(info) as f:
                            content = _decode(f.read(self.sample_bytes))
                    entries.append(FileEntry.from_path(info.filename, content))
        except _ARCHIVE_ERRORS as e:
            raise SourceFormatError(
                message="Corrupt or unsupported archive", location=source_path, cause=e
            ) from e
        except OSError as e:
            raise SourceFetchError(message="Could not read archive", location=source_path, cause=e) from e

        logger.debug(f"Listed {len(entries)} files in archive {source_path}")
        return entries

    def _read_member(self, source_path: str, member_path: str) -> str:
        path = Path(source_path)
        location = f"{source_path}!{member_path}"
        if not path.exists():
            raise SourceNotFoundError(message="Package does not exist", location=source_path)

        try:
            if path.is_dir():
                return _decode((path / member_path).read_bytes())
            with zipfile.ZipFile(path) as archive:
                return _decode(archive.read(member_path))
        except (KeyError, FileNotFoundError) as e:
            raise SourceNotFoundError(message="No such package member", location=location, cause=e) from e
        except _ARCHIVE_ERRORS as e:
            raise SourceFormatError(
                message="Corrupt or unsupported archive member", location=location, cause=e
            ) from e
        except OSError as e:
            raise SourceFetchError(message="Could not read package member", location=location, cause=e) from e


class LocalDescriptorSource:
    """Reads descriptor text from the local filesystem."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    async def fetch(self, location: str) -> str:
        path = Path(location)
        if not path.is_file():
            raise SourceNotFoundError(message="Descriptor file does not exist", location=location)
        try:
            async with aiofiles.open(path, encoding=self.encoding, errors="replace") as f:
                return await f.read()
        except OSError as e:
            raise SourceFetchError(message="Could not read descriptor", location=location, cause=e) from e

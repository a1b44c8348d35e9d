"""Protocols for the asynchronous collaborators of the classification core.

Archive listing and descriptor fetching are the only suspension points; the
classification itself is synchronous and runs on already-materialized input.
Implementations raise ``SourceError`` subclasses, never bare I/O errors.
"""

from typing import Protocol

from lessonprobe.core.models.files import FileEntry


class FileLister(Protocol):
    """Lists and reads the files inside a package (archive or directory)."""

    async def list_files(self, source_path: str) -> list[FileEntry]:
        """
        List every file in the package.

        Args:
            source_path: Archive or directory path

        Returns:
            File entries; ``content`` holds sampled text for text-like files

        Raises:
            SourceNotFoundError: If the package does not exist
            SourceFormatError: If the package cannot be opened
        """
        ...

    async def read_member(self, source_path: str, member_path: str) -> str:
        """
        Read one file of the package in full.

        Args:
            source_path: Archive or directory path
            member_path: Path of the file inside the package (as listed)

        Returns:
            Decoded text

        Raises:
            SourceNotFoundError: If the package or member does not exist
            SourceFetchError: On read failure
        """
        ...


class DescriptorSource(Protocol):
    """Fetches raw descriptor text from a path or URL."""

    async def fetch(self, location: str) -> str:
        """
        Fetch descriptor text.

        Args:
            location: Local path or URL

        Returns:
            Raw document text

        Raises:
            SourceNotFoundError: If nothing exists at location
            SourceFetchError: On read/network failure
        """
        ...

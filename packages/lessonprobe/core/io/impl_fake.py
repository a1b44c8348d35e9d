"""In-memory collaborators for tests and dry runs."""

from __future__ import annotations

from lessonprobe.core.io.errors import SourceNotFoundError
from lessonprobe.core.models.files import FileEntry


class FakeFileLister:
    """Serves packages from a ``{source_path: {member_path: text}}`` mapping.

    Every call is recorded in ``calls`` as ``(method, source_path)``.
    """

    def __init__(
        self,
        packages: dict[str, dict[str, str]] | None = None,
        sample_bytes: int | None = None,
    ) -> None:
        self.packages = packages or {}
        self.sample_bytes = sample_bytes
        self.calls: list[tuple[str, str]] = []

    async def list_files(self, source_path: str) -> list[FileEntry]:
        self.calls.append(("list_files", source_path))
        members = self._package(source_path)
        return [
            FileEntry.from_path(path, text[: self.sample_bytes] if self.sample_bytes else text)
            for path, text in members.items()
        ]

    async def read_member(self, source_path: str, member_path: str) -> str:
        self.calls.append(("read_member", source_path))
        members = self._package(source_path)
        if member_path not in members:
            raise SourceNotFoundError(
                message="No such package member", location=f"{source_path}!{member_path}"
            )
        return members[member_path]

    def _package(self, source_path: str) -> dict[str, str]:
        if source_path not in self.packages:
            raise SourceNotFoundError(message="Package does not exist", location=source_path)
        return self.packages[source_path]


class FakeDescriptorSource:
    """Serves descriptor text from a ``{location: text}`` mapping."""

    def __init__(self, documents: dict[str, str] | None = None) -> None:
        self.documents = documents or {}
        self.fetched: list[str] = []

    async def fetch(self, location: str) -> str:
        self.fetched.append(location)
        if location not in self.documents:
            raise SourceNotFoundError(message="Descriptor not found", location=location)
        return self.documents[location]

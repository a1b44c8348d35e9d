"""File listing models produced by archive collaborators."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FileEntry(BaseModel):
    """One observed file inside a package.

    Attributes:
        name: Base file name (e.g. "imsmanifest.xml")
        path: Path inside the package, forward or back slashes as listed
        content: Optional sampled text used for keyword matching
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: str = ""
    content: str | None = Field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: str, content: str | None = None) -> FileEntry:
        """Build an entry from a package-relative path.

        Example:
            >>> FileEntry.from_path("story_content/story.js").name
            'story.js'
        """
        name = path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
        return cls(name=name, path=path, content=content)

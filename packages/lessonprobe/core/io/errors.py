"""Errors raised by file-lister and descriptor-source collaborators.

Classification code catches ``SourceError`` at the call site and degrades to
the fallback path; these never escape ``PackageProcessor.process``.
"""

from __future__ import annotations


class SourceError(Exception):
    """Base exception for collaborator failures.

    Attributes:
        message: Human-readable error description
        location: Path, URL or archive member that failed
        status_code: HTTP status code (if available)
        cause: Original exception that caused this error
    """

    def __init__(
        self,
        *,
        message: str,
        location: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.message = message
        self.location = location
        self.status_code = status_code
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.message, self.location]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        return " | ".join(parts)


class SourceNotFoundError(SourceError):
    """Path, URL or archive member does not exist."""


class SourceFetchError(SourceError):
    """Read or network failure (I/O error, timeout, non-2xx status)."""


class SourceFormatError(SourceError):
    """Content exists but is not in the expected container format (e.g. bad zip)."""

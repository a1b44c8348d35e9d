"""Protocol for processed-package stores.

Defines the async-first store the processor caches results in, keyed by
source path. Implementations may be in-process maps or external key-value
stores shared between processes.
"""

from typing import Protocol

from lessonprobe.core.models.enums import TemplateId
from lessonprobe.core.models.package import ProcessedPackage


class PackageStore(Protocol):
    """
    Protocol for processed-package stores (async-first).

    No locking is required of implementations; the processor deduplicates
    concurrent work per path itself and otherwise last write wins.
    """

    async def get(self, source_path: str) -> ProcessedPackage | None:
        """
        Load the record for a source path.

        Returns:
            Stored package, or None on miss
        """
        ...

    async def put(self, package: ProcessedPackage) -> None:
        """
        Store (or replace) the record for ``package.source_path``.
        """
        ...

    async def find_by_id(self, package_id: str) -> ProcessedPackage | None:
        """
        Look a record up by its package id.

        Returns:
            Stored package, or None when no record has that id
        """
        ...

    async def values(self, template: TemplateId | None = None) -> list[ProcessedPackage]:
        """
        All records in insertion order, optionally filtered by template.
        """
        ...

    async def clear(self) -> None:
        """Drop every record."""
        ...

    async def count(self) -> int:
        """Number of stored records."""
        ...

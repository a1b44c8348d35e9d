"""No-op store for development/testing.

Always reports a miss and discards every record, so each ``process`` call
recomputes.
"""

from lessonprobe.core.models.enums import TemplateId
from lessonprobe.core.models.package import ProcessedPackage


class NullPackageStore:
    """
    No-op async store.

    Always reports miss, discards all stores.
    """

    async def get(self, source_path: str) -> ProcessedPackage | None:
        """Always returns None (async)."""
        return None

    async def put(self, package: ProcessedPackage) -> None:
        """Discard (async)."""
        pass

    async def find_by_id(self, package_id: str) -> ProcessedPackage | None:
        """Always returns None (async)."""
        return None

    async def values(self, template: TemplateId | None = None) -> list[ProcessedPackage]:
        """Always empty (async)."""
        return []

    async def clear(self) -> None:
        """No-op (async)."""
        pass

    async def count(self) -> int:
        """Always 0 (async)."""
        return 0

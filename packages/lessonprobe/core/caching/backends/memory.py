"""In-process package store backed by a dict keyed by source path."""

from __future__ import annotations

from lessonprobe.core.models.enums import TemplateId
from lessonprobe.core.models.package import ProcessedPackage


class InMemoryPackageStore:
    """
    Async in-memory store.

    Records live as long as the process (or until ``clear``). There is no
    eviction and no cross-process sharing.
    """

    def __init__(self) -> None:
        self._by_path: dict[str, ProcessedPackage] = {}

    async def get(self, source_path: str) -> ProcessedPackage | None:
        return self._by_path.get(source_path)

    async def put(self, package: ProcessedPackage) -> None:
        self._by_path[package.source_path] = package

    async def find_by_id(self, package_id: str) -> ProcessedPackage | None:
        for package in self._by_path.values():
            if package.id == package_id:
                return package
        return None

    async def values(self, template: TemplateId | None = None) -> list[ProcessedPackage]:
        packages = list(self._by_path.values())
        if template is None:
            return packages
        return [p for p in packages if p.template_type == template]

    async def clear(self) -> None:
        self._by_path.clear()

    async def count(self) -> int:
        return len(self._by_path)
